"""
Summary Node

Runs after the chatbot on every completed turn and replaces the running
synopsis with one that covers the latest messages.
"""
from langchain_core.messages import HumanMessage, SystemMessage

from supervisor_chat.agent.nodes.base import SUMMARY_AGENT, WorkerAgent
from supervisor_chat.agent.prompts import BEGINNING_OF_CONVERSATION, SUMMARY_CONTEXT, SUMMARY_PROMPT
from supervisor_chat.agent.state import Assign, ConversationState, Message, StateDelta
from supervisor_chat.agent.stream import StreamSink


def format_transcript(messages: tuple[Message, ...]) -> str:
    lines = []
    for msg in messages:
        speaker = msg.name or msg.role
        lines.append(f"[{speaker}] {msg.content}")
    return "\n".join(lines)


class SummaryAgent(WorkerAgent):
    name = SUMMARY_AGENT

    def __init__(self, capability, window: int = 3):
        if window < 1:
            raise ValueError("Summary window must be at least 1 message")
        super().__init__(capability)
        self.window = window

    async def run(self, state: ConversationState, sink: StreamSink | None = None) -> StateDelta:
        from supervisor_chat.agent.logging import log_node_result, log_node_start

        log_node_start(self.name)

        if not state.messages:
            log_node_result(self.name, {"summary": BEGINNING_OF_CONVERSATION, "model_called": False})
            return StateDelta(summary=Assign(BEGINNING_OF_CONVERSATION), source=self.name)

        recent = state.messages[-self.window:]
        context = SUMMARY_CONTEXT.format(summary=state.summary or "No summary yet.")
        messages = [
            SystemMessage(content=f"{SUMMARY_PROMPT}\n\n{context}"),
            HumanMessage(content=f"Last messages:\n{format_transcript(recent)}"),
        ]

        result = await self.capability.invoke(messages)
        summary = result.content.strip() or state.summary

        log_node_result(self.name, {"summary": summary, "messages_considered": len(recent)})
        return StateDelta(summary=Assign(summary), source=self.name)
