"""
Stream sink for a single turn.

The executor writes events into an asyncio.Queue and the transport drains it
concurrently, so generation never waits on the client. Per turn the sink
carries any number of deltas, then exactly one final or error event, then the
"done" sentinel written by close().
"""
import asyncio
import json
import uuid
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Literal

from supervisor_chat.agent.errors import StreamStateError

EventKind = Literal["delta", "final", "error", "done"]


@dataclass(frozen=True)
class StreamEvent:
    """One event on the stream."""
    kind: EventKind
    message_id: str
    text: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_frame(self) -> dict[str, Any]:
        """Wire frame for this event."""
        if self.kind == "done":
            return {"type": "done", "id": self.message_id}
        frame: dict[str, Any] = {
            "type": self.kind,
            "id": self.message_id,
            "role": "assistant",
            "content": self.text,
        }
        if self.kind == "error":
            frame["error"] = dict(self.metadata)
        elif self.metadata:
            frame["metadata"] = dict(self.metadata)
        return frame


def encode_ndjson(event: StreamEvent) -> str:
    """Encode an event as one newline-delimited JSON line."""
    return json.dumps(event.to_frame()) + "\n"


class StreamSink:
    """
    Per-turn channel for token deltas and the final message.

    Emission is non-blocking for the producer. Delta frames carry the
    accumulated text so far so a client can render any frame directly.
    """

    def __init__(self, message_id: str | None = None):
        self.message_id = message_id or str(uuid.uuid4())
        self._queue: asyncio.Queue[StreamEvent] = asyncio.Queue()
        self._buffer = ""
        self._finished = False
        self._closed = False

    @property
    def text(self) -> str:
        """Text accumulated from deltas so far."""
        return self._buffer

    @property
    def finished(self) -> bool:
        """True once a final or error event was emitted."""
        return self._finished

    @property
    def closed(self) -> bool:
        return self._closed

    def _put(self, event: StreamEvent) -> None:
        self._queue.put_nowait(event)

    def emit_delta(self, text: str) -> None:
        """Emit an incremental token."""
        if self._closed:
            raise StreamStateError("emit_delta after close()")
        if self._finished:
            raise StreamStateError("emit_delta after the final event")
        if not text:
            return
        self._buffer += text
        self._put(StreamEvent("delta", self.message_id, self._buffer, {"isThinking": True}))

    def emit_final(self, text: str, metadata: dict[str, Any] | None = None) -> None:
        """Emit the turn's final message. Allowed exactly once."""
        if self._closed:
            raise StreamStateError("emit_final after close()")
        if self._finished:
            raise StreamStateError("final event already emitted for this turn")
        self._finished = True
        meta = {"isThinking": False}
        meta.update(metadata or {})
        self._put(StreamEvent("final", self.message_id, text, meta))

    def emit_error(self, error: BaseException) -> None:
        """Emit a failure event in place of the final message."""
        if self._closed:
            raise StreamStateError("emit_error after close()")
        if self._finished:
            raise StreamStateError("final event already emitted for this turn")
        self._finished = True
        self._put(StreamEvent(
            "error",
            self.message_id,
            "",
            {"type": type(error).__name__, "message": str(error)},
        ))

    def close(self) -> None:
        """Write the end-of-stream sentinel. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._put(StreamEvent("done", self.message_id))

    async def events(self) -> AsyncIterator[StreamEvent]:
        """Drain events in emission order until the sentinel."""
        while True:
            event = await self._queue.get()
            yield event
            if event.kind == "done":
                return
