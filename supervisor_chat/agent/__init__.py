"""
Supervisor multi-agent orchestration.

Architecture:
- Supervisor: routes each step to one worker (or finishes)
- Weather / News reporters: tool-backed lookups that report back
- Chatbot: terminal persona, streams the final answer
- Summary: keeps the running conversation synopsis
- Checkpoint store: per-thread persisted state between turns
"""
from .state import ConversationState, Message, StateDelta, merge
from .checkpoint import CheckpointStore, InMemoryCheckpointStore, SqliteCheckpointStore
from .stream import StreamSink, StreamEvent
from .graph import GraphExecutor, TurnResult, build_transition_table, create_executor
from .runner import run_turn, stream_turn

__all__ = [
    "ConversationState",
    "Message",
    "StateDelta",
    "merge",
    "CheckpointStore",
    "InMemoryCheckpointStore",
    "SqliteCheckpointStore",
    "StreamSink",
    "StreamEvent",
    "GraphExecutor",
    "TurnResult",
    "build_transition_table",
    "create_executor",
    "run_turn",
    "stream_turn",
]
