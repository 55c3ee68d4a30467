"""
Agent capability: the uniform seam around a language-model call.

Every node talks to its model through `AgentCapability.invoke`, which takes
LangChain messages and an optional tool list and returns either text or a
single tool call. Streaming variants push text chunks to `on_token` as they
arrive. Provider failures surface as AgentInvocationError.
"""
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Protocol, Sequence

from langchain_anthropic import ChatAnthropic
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from supervisor_chat.agent.errors import AgentInvocationError
from supervisor_chat.agent.state import Message
from supervisor_chat.config import Settings, get_settings

TokenCallback = Callable[[str], Awaitable[None] | None]


@dataclass(frozen=True)
class ToolCall:
    """A single tool invocation requested by the model."""
    name: str
    args: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


@dataclass(frozen=True)
class CapabilityResult:
    """Model output: plain content, or a tool call (content may still carry preamble text)."""
    content: str = ""
    tool_call: ToolCall | None = None
    # Raw provider message, kept so a tool round can be replayed to the model
    raw: BaseMessage | None = None


class AgentCapability(Protocol):
    name: str

    async def invoke(
        self,
        messages: Sequence[BaseMessage],
        tools: Sequence[Any] | None = None,
        tool_choice: str | None = None,
        on_token: TokenCallback | None = None,
    ) -> CapabilityResult:
        ...


def content_text(content: Any) -> str:
    """Flatten provider content (str or list of content blocks) to text."""
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content)


def to_langchain_messages(messages: Sequence[Message]) -> list[BaseMessage]:
    """Convert conversation messages to LangChain message objects."""
    converted: list[BaseMessage] = []
    for msg in messages:
        if msg.role == "user":
            converted.append(HumanMessage(content=msg.content))
        elif msg.role == "assistant":
            converted.append(AIMessage(content=msg.content, name=msg.name))
        else:
            converted.append(SystemMessage(content=msg.content))
    return converted


async def _emit(on_token: TokenCallback, text: str) -> None:
    result = on_token(text)
    if result is not None:
        await result


class ChatModelCapability:
    """
    AgentCapability backed by a LangChain chat model.

    Tools are bound with `bind_tools`; with `on_token` set the call goes through
    `astream` and every text chunk is forwarded in generation order.
    """

    def __init__(self, model: BaseChatModel, name: str = "model"):
        self._model = model
        self.name = name

    def _runnable(self, tools: Sequence[Any] | None, tool_choice: str | None):
        if not tools:
            return self._model
        if tool_choice:
            return self._model.bind_tools(list(tools), tool_choice=tool_choice)
        return self._model.bind_tools(list(tools))

    async def invoke(
        self,
        messages: Sequence[BaseMessage],
        tools: Sequence[Any] | None = None,
        tool_choice: str | None = None,
        on_token: TokenCallback | None = None,
    ) -> CapabilityResult:
        runnable = self._runnable(tools, tool_choice)
        try:
            if on_token is None:
                response = await runnable.ainvoke(list(messages))
            else:
                response = None
                async for chunk in runnable.astream(list(messages)):
                    text = content_text(chunk.content)
                    if text:
                        await _emit(on_token, text)
                    response = chunk if response is None else response + chunk
        except Exception as e:
            raise AgentInvocationError(self.name, e) from e

        if response is None:
            return CapabilityResult()

        tool_call = None
        calls = getattr(response, "tool_calls", None) or []
        if calls:
            first = calls[0]
            tool_call = ToolCall(
                name=first.get("name", ""),
                args=first.get("args") or {},
                id=first.get("id"),
            )

        return CapabilityResult(
            content=content_text(response.content),
            tool_call=tool_call,
            raw=response,
        )


def build_chat_model(settings: Settings | None = None, streaming: bool = False) -> BaseChatModel:
    """Build the provider chat model for a node."""
    settings = settings or get_settings()
    return ChatAnthropic(
        model=settings.CHAT_MODEL if streaming else settings.BASE_MODEL,
        api_key=settings.ANTHROPIC_API_KEY,
        temperature=settings.CHAT_TEMPERATURE if streaming else settings.BASE_TEMPERATURE,
        max_tokens=settings.MAX_TOKENS,
        streaming=streaming,
    )
