"""
Supervisor Node

Routes each step of a turn to exactly one worker (or ends the turn). The model
is forced to answer through the `route` tool; anything that does not name a
declared member is a RoutingError.
"""
import json
from typing import Sequence

from langchain_core.messages import HumanMessage, SystemMessage

from supervisor_chat.agent.capability import AgentCapability, CapabilityResult, to_langchain_messages
from supervisor_chat.agent.errors import RoutingError
from supervisor_chat.agent.nodes.base import END, SUPERVISOR, START, latest_query
from supervisor_chat.agent.prompts import (
    ROUTE_TOOL_DESCRIPTION,
    format_supervisor_prompt,
    format_supervisor_question,
)
from supervisor_chat.agent.state import ConversationState

FINISH = "FINISH"
ROUTE_TOOL_NAME = "route"


def _decision_from_text(content: str) -> str | None:
    """Fallback parse when the model answered in text instead of calling the tool."""
    text = content.strip()
    if not text:
        return None
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        return text.strip("\"'` \n")
    if isinstance(data, dict):
        value = data.get("next")
        return value if isinstance(value, str) else None
    if isinstance(data, str):
        return data
    return None


class SupervisorAgent:
    """
    Router over the declared worker members.

    `decide` returns a member name or END and never anything else.
    """

    name = SUPERVISOR

    def __init__(self, capability: AgentCapability, members: Sequence[str]):
        if not members:
            raise ValueError("SupervisorAgent needs at least one member")
        for member in members:
            if member in (START, END, SUPERVISOR, FINISH):
                raise ValueError(f"Reserved name cannot be a routing member: {member}")
        self.capability = capability
        self.members = tuple(members)

    @property
    def options(self) -> list[str]:
        return [*self.members, FINISH]

    def route_tool(self) -> dict:
        """Tool schema the model must call with its decision."""
        return {
            "type": "function",
            "function": {
                "name": ROUTE_TOOL_NAME,
                "description": ROUTE_TOOL_DESCRIPTION,
                "parameters": {
                    "type": "object",
                    "properties": {
                        "next": {"type": "string", "enum": self.options},
                    },
                    "required": ["next"],
                },
            },
        }

    def parse_decision(self, result: CapabilityResult) -> str:
        """Map raw model output to a member name or END."""
        if result.tool_call is not None:
            candidate = result.tool_call.args.get("next")
        else:
            candidate = _decision_from_text(result.content)

        if not isinstance(candidate, str) or not candidate.strip():
            raise RoutingError("Router returned no parseable decision")

        candidate = candidate.strip()
        if candidate in (FINISH, END):
            return END
        if candidate not in self.members:
            raise RoutingError(
                f"Invalid next value: {candidate}. Must be one of: {', '.join(self.options)}"
            )
        return candidate

    async def decide(self, state: ConversationState) -> str:
        from supervisor_chat.agent.logging import log_decision, log_node_start

        log_node_start(self.name, latest_query(state))

        messages = [
            SystemMessage(content=format_supervisor_prompt(self.options)),
            *to_langchain_messages(state.messages),
            HumanMessage(content=format_supervisor_question(self.options)),
        ]

        result = await self.capability.invoke(
            messages,
            tools=[self.route_tool()],
            tool_choice=ROUTE_TOOL_NAME,
        )
        decision = self.parse_decision(result)

        log_decision(decision if decision != END else FINISH)
        return decision
