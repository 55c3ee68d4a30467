"""
Chatbot (persona) Node

The terminal worker: writes the user-facing answer in character, folding in
whatever the reporters added to the conversation, and streams it token by
token. It is the only node allowed to end the turn.
"""
from supervisor_chat.agent.nodes.base import CHATBOT, END, WorkerAgent, latest_query, model_messages
from supervisor_chat.agent.prompts import PERSONA_PROMPT, PERSONA_SUMMARY_CONTEXT
from supervisor_chat.agent.state import ConversationState, StateDelta
from supervisor_chat.agent.stream import StreamSink


class ChatbotAgent(WorkerAgent):
    name = CHATBOT
    terminal = True

    async def run(self, state: ConversationState, sink: StreamSink | None = None) -> StateDelta:
        from supervisor_chat.agent.logging import log_node_result, log_node_start

        log_node_start(self.name, latest_query(state))

        prompt = PERSONA_PROMPT
        if state.summary:
            prompt = f"{prompt}\n\n{PERSONA_SUMMARY_CONTEXT.format(summary=state.summary)}"

        on_token = sink.emit_delta if sink is not None else None
        result = await self.capability.invoke(model_messages(prompt, state), on_token=on_token)

        log_node_result(self.name, {"reply": result.content})
        return self.reply(result.content, next_node=END)
