"""
Conversation state and reducers for the supervisor graph.

Nodes never mutate the state. Each node returns a StateDelta and the executor
folds it into a new ConversationState with merge(), field by field:

- messages:        append (never reordered or deduplicated)
- next:            last write wins, Reset -> END
- invoked_agents:  order-preserving union without START/END, Reset -> empty
- summary:         last write wins, Reset -> ""
"""
from dataclasses import dataclass, field
from functools import reduce
from typing import Any, Generic, Iterable, Literal, TypeVar, Union

from langgraph.graph import END, START
from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

SENTINELS = frozenset({START, END})


class Message(BaseModel):
    """A single conversation message. Immutable once created."""
    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str
    # Producing node for assistant messages ("weather_reporter", "chatbot", ...)
    name: str | None = None


class ConversationState(BaseModel):
    """
    State for one thread.

    The default instance is the empty initial state used for new threads and
    for resets.
    """
    model_config = ConfigDict(frozen=True)

    messages: tuple[Message, ...] = ()
    next: str = END
    invoked_agents: tuple[str, ...] = ()
    summary: str = ""


# =============================================================================
# Tagged updates
# =============================================================================

@dataclass(frozen=True)
class NoChange:
    """Leave the field as it is."""


@dataclass(frozen=True)
class Assign(Generic[T]):
    """Write a value through the field's reducer."""
    value: T


@dataclass(frozen=True)
class Reset:
    """Return the field to its initial value."""


NO_CHANGE = NoChange()
RESET = Reset()

Update = Union[NoChange, Assign[Any], Reset]


@dataclass(frozen=True)
class StateDelta:
    """Partial state update produced by one node execution."""
    messages: tuple[Message, ...] = ()
    next: Update = NO_CHANGE
    invoked_agents: Update = NO_CHANGE
    summary: Update = NO_CHANGE
    # Node that produced the delta, for tracing only
    source: str | None = field(default=None, compare=False)


# =============================================================================
# Reducers
# =============================================================================

def reduce_messages(current: tuple[Message, ...], new: Iterable[Message]) -> tuple[Message, ...]:
    return current + tuple(new)


def reduce_next(current: str, update: Update) -> str:
    if isinstance(update, Assign):
        return update.value or current or END
    if isinstance(update, Reset):
        return END
    return current or END


def reduce_invoked_agents(current: tuple[str, ...], update: Update) -> tuple[str, ...]:
    if isinstance(update, Reset):
        return ()
    if not isinstance(update, Assign):
        return current

    value = update.value
    names = [value] if isinstance(value, str) else list(value)
    result = list(current)
    for name in names:
        if name in SENTINELS or name in result:
            continue
        result.append(name)
    return tuple(result)


def reduce_summary(current: str, update: Update) -> str:
    if isinstance(update, Assign):
        return update.value if update.value is not None else current
    if isinstance(update, Reset):
        return ""
    return current


def merge(state: ConversationState, delta: StateDelta) -> ConversationState:
    """Apply one delta to a state and return the new state. Pure."""
    return ConversationState(
        messages=reduce_messages(state.messages, delta.messages),
        next=reduce_next(state.next, delta.next),
        invoked_agents=reduce_invoked_agents(state.invoked_agents, delta.invoked_agents),
        summary=reduce_summary(state.summary, delta.summary),
    )


def apply_deltas(state: ConversationState, deltas: Iterable[StateDelta]) -> ConversationState:
    """Fold a log of deltas into a state, left to right."""
    return reduce(merge, deltas, state)


def begin_turn_delta(user_message: Message) -> StateDelta:
    """Delta that opens a new turn: append the user message, clear the invoked set."""
    return StateDelta(
        messages=(user_message,),
        next=Assign(START),
        invoked_agents=RESET,
        source=START,
    )


def messages_since(state: ConversationState, start: int) -> tuple[Message, ...]:
    """Messages appended after index `start` (the current turn's messages)."""
    return state.messages[start:]


def last_assistant_message(messages: Iterable[Message]) -> Message | None:
    found = None
    for msg in messages:
        if msg.role == "assistant":
            found = msg
    return found


def last_user_message(state: ConversationState) -> Message | None:
    return next((m for m in reversed(state.messages) if m.role == "user"), None)


def has_turn_reply(state: ConversationState) -> bool:
    """True if an assistant message follows the latest user message."""
    for msg in reversed(state.messages):
        if msg.role == "user":
            return False
        if msg.role == "assistant":
            return True
    return False
