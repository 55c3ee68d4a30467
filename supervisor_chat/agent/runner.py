"""
Helpers for running turns against a GraphExecutor.

`stream_turn` decouples generation from transport: the turn runs as its own
task writing into a StreamSink while the caller drains events. If the caller
stops early (client disconnect) the turn task is cancelled, so nothing is
checkpointed.
"""
import asyncio
from typing import AsyncGenerator

from supervisor_chat.agent.errors import InputError, OrchestrationError
from supervisor_chat.agent.graph import GraphExecutor, TurnResult
from supervisor_chat.agent.stream import StreamEvent, StreamSink


async def stream_turn(
    executor: GraphExecutor,
    thread_id: str,
    content: str,
    sink: StreamSink | None = None,
) -> AsyncGenerator[StreamEvent, None]:
    """
    Run a turn and yield its stream events as they are produced.

    The last event is always the "done" sentinel; a failed turn yields an
    "error" event before it instead of a "final" one.
    """
    from supervisor_chat.agent.logging import log_error, log_warning

    sink = sink or StreamSink()
    task = asyncio.create_task(executor.run_turn(thread_id, content, sink))

    try:
        async for event in sink.events():
            yield event
    finally:
        if not task.done():
            log_warning(f"Stream for thread {thread_id} closed early, cancelling turn")
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except (OrchestrationError, InputError):
            # Already reported in-band as an error event
            pass
        except Exception as e:
            log_error(f"Unexpected failure in turn for thread {thread_id}", e)


async def run_turn(executor: GraphExecutor, thread_id: str, content: str) -> TurnResult:
    """Run a turn without streaming and return its result."""
    return await executor.run_turn(thread_id, content, StreamSink())
