"""
Shared worker-agent plumbing.

A worker wraps an AgentCapability and turns the current ConversationState
into a StateDelta. Tool-backed workers run at most one tool round and report
tool failures in-band instead of raising.
"""
from abc import ABC, abstractmethod
from typing import Any

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_core.tools import BaseTool
from langgraph.graph import END, START

from supervisor_chat.agent.capability import AgentCapability, CapabilityResult, ToolCall, to_langchain_messages
from supervisor_chat.agent.errors import ToolError
from supervisor_chat.agent.state import Assign, ConversationState, Message, StateDelta, last_user_message
from supervisor_chat.agent.stream import StreamSink

# Node names
SUPERVISOR = "supervisor"
WEATHER_REPORTER = "weather_reporter"
NEWS_REPORTER = "news_reporter"
CHATBOT = "chatbot"
SUMMARY_AGENT = "summary_agent"

__all__ = [
    "START",
    "END",
    "SUPERVISOR",
    "WEATHER_REPORTER",
    "NEWS_REPORTER",
    "CHATBOT",
    "SUMMARY_AGENT",
    "WorkerAgent",
    "ToolWorker",
]

CONTINUE_INSTRUCTION = "Continue with my latest request using the information above."


def model_messages(system_prompt: str, state: ConversationState) -> list[BaseMessage]:
    """
    System prompt followed by the conversation.

    The conversation must end on a user turn for the model to answer it, so a
    short instruction is appended when workers have already replied.
    """
    messages: list[BaseMessage] = [SystemMessage(content=system_prompt)]
    messages.extend(to_langchain_messages(state.messages))
    if state.messages and state.messages[-1].role == "assistant":
        messages.append(HumanMessage(content=CONTINUE_INSTRUCTION))
    return messages


def latest_query(state: ConversationState) -> str | None:
    msg = last_user_message(state)
    return msg.content if msg else None


class WorkerAgent(ABC):
    """Base class for graph worker nodes."""

    name: str = ""
    # Only the terminal worker may set next = END
    terminal: bool = False

    def __init__(self, capability: AgentCapability):
        self.capability = capability

    @abstractmethod
    async def run(self, state: ConversationState, sink: StreamSink | None = None) -> StateDelta:
        """Execute the node and return its state update."""

    def reply(self, content: str, next_node: str = SUPERVISOR) -> StateDelta:
        """Delta carrying one assistant message from this worker."""
        return StateDelta(
            messages=(Message(role="assistant", content=content, name=self.name),),
            next=Assign(next_node),
            source=self.name,
        )


class ToolWorker(WorkerAgent):
    """
    Worker that answers with the help of a single data-provider tool.

    Subclasses set the prompt, the failure message and, if needed, how tool
    arguments are normalized.
    """

    system_prompt: str = ""
    failure_template: str = "Lookup failed: {error}"
    empty_reply: str = "I have nothing to report for this request."

    def __init__(self, capability: AgentCapability, tool: BaseTool):
        super().__init__(capability)
        self.tool = tool

    def tool_input(self, call: ToolCall) -> dict[str, Any]:
        """Arguments passed to the tool for a model tool call."""
        return dict(call.args)

    def _tool_request_message(self, result: CapabilityResult) -> BaseMessage:
        if isinstance(result.raw, AIMessage):
            return result.raw
        call = result.tool_call
        return AIMessage(
            content=result.content,
            tool_calls=[{
                "name": call.name,
                "args": call.args,
                "id": call.id or f"{call.name}_call",
                "type": "tool_call",
            }],
        )

    async def _call_tool(self, call: ToolCall) -> str:
        if call.name != self.tool.name:
            raise ToolError(f"Unknown tool: {call.name}")
        output = await self.tool.ainvoke(self.tool_input(call))
        return output if isinstance(output, str) else str(output)

    async def run(self, state: ConversationState, sink: StreamSink | None = None) -> StateDelta:
        from supervisor_chat.agent.logging import (
            log_node_result,
            log_node_start,
            log_tool_call,
            log_tool_result,
        )

        log_node_start(self.name, latest_query(state))

        messages = model_messages(self.system_prompt, state)
        result = await self.capability.invoke(messages, tools=[self.tool])

        if result.tool_call is None:
            content = result.content.strip() or self.empty_reply
            log_node_result(self.name, {"tool_used": False, "reply": content})
            return self.reply(content)

        call = result.tool_call
        log_tool_call(call.name, call.args)
        try:
            output = await self._call_tool(call)
        except Exception as e:
            # Recoverable: the failure is reported to the user and the router
            log_tool_result(call.name, f"ERROR: {e}", success=False)
            content = self.failure_template.format(error=e)
            log_node_result(self.name, {"tool_used": True, "degraded": True, "reply": content})
            return self.reply(content)
        log_tool_result(call.name, output, success=True)

        followup = messages + [
            self._tool_request_message(result),
            ToolMessage(
                content=output,
                tool_call_id=call.id or f"{call.name}_call",
                name=call.name,
            ),
        ]
        final = await self.capability.invoke(followup, tools=[self.tool])
        content = final.content.strip() or output

        log_node_result(self.name, {"tool_used": True, "degraded": False, "reply": content})
        return self.reply(content)
