"""
Tests for checkpoint stores.
"""
import pytest

from supervisor_chat.agent.checkpoint import (
    InMemoryCheckpointStore,
    SqliteCheckpointStore,
    create_checkpoint_store,
)
from supervisor_chat.agent.errors import TurnInProgressError
from supervisor_chat.agent.state import ConversationState, Message


def populated_state():
    return ConversationState(
        messages=(
            Message(role="user", content="weather in Cairo?"),
            Message(role="assistant", content="31C and clear", name="weather_reporter"),
            Message(role="assistant", content="Hot, as ever.", name="chatbot"),
        ),
        invoked_agents=("weather_reporter", "chatbot"),
        summary="User asked about Cairo weather.",
    )


@pytest.fixture(params=["memory", "sqlite"])
def store_factory(request, tmp_path):
    def make():
        if request.param == "memory":
            return InMemoryCheckpointStore()
        return SqliteCheckpointStore(tmp_path / "checkpoints.db")
    return make


class TestCheckpointStore:
    @pytest.mark.asyncio
    async def test_unknown_thread_loads_none(self, store_factory):
        store = store_factory()
        await store.connect()
        try:
            assert await store.load("missing") is None
            assert await store.get_checkpoint("missing") is None
        finally:
            await store.disconnect()

    @pytest.mark.asyncio
    async def test_save_then_load(self, store_factory):
        store = store_factory()
        await store.connect()
        try:
            state = populated_state()
            checkpoint = await store.save("t1", state)
            assert checkpoint.thread_id == "t1"
            assert await store.load("t1") == state
        finally:
            await store.disconnect()

    @pytest.mark.asyncio
    async def test_save_overwrites(self, store_factory):
        store = store_factory()
        await store.connect()
        try:
            await store.save("t1", populated_state())
            await store.save("t1", ConversationState(summary="replaced"))
            loaded = await store.load("t1")
            assert loaded.summary == "replaced"
            assert loaded.messages == ()
        finally:
            await store.disconnect()

    @pytest.mark.asyncio
    async def test_threads_are_isolated(self, store_factory):
        store = store_factory()
        await store.connect()
        try:
            await store.save("t1", populated_state())
            assert await store.load("t2") is None
        finally:
            await store.disconnect()

    @pytest.mark.asyncio
    async def test_clear_resets_to_initial_state(self, store_factory):
        store = store_factory()
        await store.connect()
        try:
            await store.save("t1", populated_state())
            await store.clear("t1")
            assert await store.load("t1") == ConversationState()
        finally:
            await store.disconnect()

    @pytest.mark.asyncio
    async def test_clear_is_idempotent_and_safe_on_unknown_threads(self, store_factory):
        store = store_factory()
        await store.connect()
        try:
            await store.clear("never-seen")
            await store.clear("never-seen")
            assert await store.load("never-seen") == ConversationState()
        finally:
            await store.disconnect()


class TestReservation:
    @pytest.mark.asyncio
    async def test_second_reservation_is_rejected(self):
        store = InMemoryCheckpointStore()
        async with store.reserve("t1"):
            assert store.is_reserved("t1")
            with pytest.raises(TurnInProgressError):
                async with store.reserve("t1"):
                    pass
        assert not store.is_reserved("t1")

    @pytest.mark.asyncio
    async def test_other_threads_are_not_blocked(self):
        store = InMemoryCheckpointStore()
        async with store.reserve("t1"):
            async with store.reserve("t2"):
                assert store.is_reserved("t1") and store.is_reserved("t2")

    @pytest.mark.asyncio
    async def test_reservation_released_on_error(self):
        store = InMemoryCheckpointStore()
        with pytest.raises(RuntimeError):
            async with store.reserve("t1"):
                raise RuntimeError("boom")
        assert not store.is_reserved("t1")


class TestSqliteStore:
    @pytest.mark.asyncio
    async def test_checkpoint_survives_reconnect(self, tmp_path):
        path = tmp_path / "nested" / "checkpoints.db"

        store = SqliteCheckpointStore(path)
        await store.connect()
        await store.save("t1", populated_state())
        await store.disconnect()

        reopened = SqliteCheckpointStore(path)
        await reopened.connect()
        try:
            assert await reopened.load("t1") == populated_state()
        finally:
            await reopened.disconnect()

    @pytest.mark.asyncio
    async def test_use_before_connect_fails(self, tmp_path):
        store = SqliteCheckpointStore(tmp_path / "checkpoints.db")
        with pytest.raises(RuntimeError):
            await store.load("t1")


class TestFactory:
    def test_memory_backend(self):
        assert isinstance(create_checkpoint_store("memory"), InMemoryCheckpointStore)

    def test_sqlite_backend(self, tmp_path):
        store = create_checkpoint_store("sqlite", str(tmp_path / "c.db"))
        assert isinstance(store, SqliteCheckpointStore)

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            create_checkpoint_store("redis")
