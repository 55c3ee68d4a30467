"""
Checkpoint stores.

A checkpoint is the persisted ConversationState of one thread between turns.
Stores hold at most one reservation per thread: the executor reserves the
thread for the whole turn, so load/save/clear for a thread never interleave
with another turn on the same thread.
"""
import asyncio
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator

import aiosqlite
from pydantic import BaseModel, ConfigDict

from supervisor_chat.agent.errors import TurnInProgressError
from supervisor_chat.agent.state import ConversationState


class Checkpoint(BaseModel):
    """Persisted snapshot of a thread."""
    model_config = ConfigDict(frozen=True)

    thread_id: str
    state: ConversationState
    revision: datetime


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CheckpointStore(ABC):
    """
    Abstract checkpoint store keyed by thread id.

    Subclasses implement the storage primitives; reservation bookkeeping is
    shared.
    """

    def __init__(self):
        self._reserved: set[str] = set()

    async def connect(self) -> None:
        """Open the backing storage."""

    async def disconnect(self) -> None:
        """Release the backing storage."""

    @abstractmethod
    async def get_checkpoint(self, thread_id: str) -> Checkpoint | None:
        """Return the full checkpoint record, or None for an unknown thread."""

    @abstractmethod
    async def _write(self, checkpoint: Checkpoint) -> None:
        ...

    async def load(self, thread_id: str) -> ConversationState | None:
        """Last persisted state of the thread, or None if it was never saved."""
        checkpoint = await self.get_checkpoint(thread_id)
        return checkpoint.state if checkpoint else None

    async def save(self, thread_id: str, state: ConversationState) -> Checkpoint:
        """Overwrite the thread's checkpoint with `state`."""
        checkpoint = Checkpoint(thread_id=thread_id, state=state, revision=_now())
        await self._write(checkpoint)
        return checkpoint

    async def clear(self, thread_id: str) -> Checkpoint:
        """
        Reset the thread to the empty initial state.

        The key is kept, so a later load returns a fresh state instead of None.
        Safe on unknown threads and idempotent.
        """
        return await self.save(thread_id, ConversationState())

    def is_reserved(self, thread_id: str) -> bool:
        return thread_id in self._reserved

    @asynccontextmanager
    async def reserve(self, thread_id: str) -> AsyncIterator[None]:
        """
        Hold the thread for one turn.

        A second reservation while the first is held raises TurnInProgressError.
        """
        if thread_id in self._reserved:
            raise TurnInProgressError(thread_id)
        self._reserved.add(thread_id)
        try:
            yield
        finally:
            self._reserved.discard(thread_id)


class InMemoryCheckpointStore(CheckpointStore):
    """Process-local store. Checkpoints are lost on restart."""

    def __init__(self):
        super().__init__()
        self._checkpoints: dict[str, Checkpoint] = {}

    async def get_checkpoint(self, thread_id: str) -> Checkpoint | None:
        return self._checkpoints.get(thread_id)

    async def _write(self, checkpoint: Checkpoint) -> None:
        self._checkpoints[checkpoint.thread_id] = checkpoint

    async def disconnect(self) -> None:
        self._checkpoints.clear()

    def __len__(self) -> int:
        return len(self._checkpoints)


SCHEMA = """
CREATE TABLE IF NOT EXISTS checkpoints (
    thread_id TEXT PRIMARY KEY,
    state_json TEXT NOT NULL,
    revision TEXT NOT NULL
);
"""


class SqliteCheckpointStore(CheckpointStore):
    """
    SQLite-backed store using aiosqlite.

    One row per thread; the state is stored as its JSON dump.
    """

    def __init__(self, db_path: str | Path):
        super().__init__()
        self.db_path = str(db_path)
        self._db: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        if self._db is not None:
            return
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._db = await aiosqlite.connect(self.db_path)
        await self._db.executescript(SCHEMA)
        await self._db.commit()

    async def disconnect(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("SqliteCheckpointStore is not connected; call connect() first")
        return self._db

    async def get_checkpoint(self, thread_id: str) -> Checkpoint | None:
        async with self._lock:
            cursor = await self._conn().execute(
                "SELECT state_json, revision FROM checkpoints WHERE thread_id = ?",
                (thread_id,),
            )
            row = await cursor.fetchone()
            await cursor.close()

        if row is None:
            return None
        state_json, revision = row
        return Checkpoint(
            thread_id=thread_id,
            state=ConversationState.model_validate_json(state_json),
            revision=datetime.fromisoformat(revision),
        )

    async def _write(self, checkpoint: Checkpoint) -> None:
        async with self._lock:
            db = self._conn()
            await db.execute(
                """
                INSERT INTO checkpoints (thread_id, state_json, revision)
                VALUES (?, ?, ?)
                ON CONFLICT(thread_id) DO UPDATE SET
                    state_json = excluded.state_json,
                    revision = excluded.revision
                """,
                (
                    checkpoint.thread_id,
                    checkpoint.state.model_dump_json(),
                    checkpoint.revision.isoformat(),
                ),
            )
            await db.commit()


def create_checkpoint_store(backend: str = "memory", db_path: str | None = None) -> CheckpointStore:
    """Build the store selected by configuration."""
    if backend == "memory":
        return InMemoryCheckpointStore()
    if backend == "sqlite":
        return SqliteCheckpointStore(db_path or "checkpoints.db")
    raise ValueError(f"Unknown checkpoint backend: {backend!r}")
