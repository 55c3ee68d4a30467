"""
Supervisor graph orchestration.

Routes one user turn through:
1. Supervisor - picks exactly one worker (or FINISH) per step
2. Reporters  - weather / news lookups, always report back to the supervisor
3. Chatbot    - terminal persona, streams the final answer
4. Summary    - fixed tail after the chatbot, then END

Graph structure:
```
START → supervisor ──┬── weather_reporter ──┐
          ▲          ├── news_reporter ─────┤
          └──────────┼──────────────────────┘
                     ├── chatbot → summary_agent → END
                     └── (FINISH, once answered) → END
```
"""
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from supervisor_chat.agent.checkpoint import CheckpointStore, create_checkpoint_store
from supervisor_chat.agent.errors import (
    InputError,
    InvalidTransitionError,
    RoutingError,
    RoutingLoopError,
)
from supervisor_chat.agent.nodes import (
    CHATBOT,
    NEWS_REPORTER,
    SUMMARY_AGENT,
    SUPERVISOR,
    WEATHER_REPORTER,
    ChatbotAgent,
    NewsReporterAgent,
    SummaryAgent,
    SupervisorAgent,
    WeatherReporterAgent,
    WorkerAgent,
)
from supervisor_chat.agent.nodes.base import END, START
from supervisor_chat.agent.state import (
    NO_CHANGE,
    Assign,
    ConversationState,
    Message,
    StateDelta,
    begin_turn_delta,
    has_turn_reply,
    last_assistant_message,
    merge,
    messages_since,
)
from supervisor_chat.agent.stream import StreamSink
from supervisor_chat.config import Settings, get_settings

DEFAULT_MAX_STEPS = 25

# Key used for unconditional edges in the transition table
ALWAYS = None


@dataclass(frozen=True)
class TransitionTable:
    """
    Static (node, decision) -> next node mapping.

    Unconditional edges use the decision ALWAYS. Only the supervisor has
    conditional edges; its decision is the sole dynamic input to the walk.
    """
    edges: Mapping[tuple[str, str | None], str]
    workers: frozenset[str]
    terminal: str
    tail: tuple[str, ...] = field(default=())

    def resolve(self, node: str, decision: str | None = ALWAYS) -> str:
        key = (node, decision)
        if key not in self.edges:
            if node == SUPERVISOR:
                raise RoutingError(f"No route from {SUPERVISOR} for decision '{decision}'")
            raise InvalidTransitionError(f"No transition from '{node}' for '{decision}'")
        return self.edges[key]

    def routable(self) -> list[str]:
        """Workers the supervisor may choose."""
        return [d for (n, d) in self.edges if n == SUPERVISOR and d not in (ALWAYS, END)]

    def valid_next_values(self) -> frozenset[str]:
        """Values `next` may hold at any point of a walk."""
        return self.workers | {SUPERVISOR, START, END}


def build_transition_table(
    reporters: Sequence[str],
    terminal: str = CHATBOT,
    tail: Sequence[str] = (SUMMARY_AGENT,),
) -> TransitionTable:
    """
    Build and validate the transition table.

    reporters report back to the supervisor; the terminal worker runs the fixed
    tail, which ends at END.
    """
    names = [*reporters, terminal, *tail]
    if len(set(names)) != len(names):
        raise ValueError(f"Duplicate node names: {names}")
    for name in names:
        if name in (START, END, SUPERVISOR):
            raise ValueError(f"Reserved node name: {name}")

    edges: dict[tuple[str, str | None], str] = {(START, ALWAYS): SUPERVISOR}

    for worker in [*reporters, terminal]:
        edges[(SUPERVISOR, worker)] = worker
    edges[(SUPERVISOR, END)] = END

    for reporter in reporters:
        edges[(reporter, ALWAYS)] = SUPERVISOR

    chain = [terminal, *tail, END]
    for current, following in zip(chain, chain[1:]):
        edges[(current, ALWAYS)] = following

    table = TransitionTable(
        edges=edges,
        workers=frozenset([*reporters, terminal, *tail]),
        terminal=terminal,
        tail=tuple(tail),
    )
    _validate_table(table)
    return table


def _validate_table(table: TransitionTable) -> None:
    nodes = table.workers | {START, SUPERVISOR}
    for (node, decision), target in table.edges.items():
        if node not in nodes:
            raise ValueError(f"Edge from undeclared node '{node}'")
        if target not in nodes and target != END:
            raise ValueError(f"Edge into undeclared node '{target}'")
        if decision not in (ALWAYS, END) and decision not in table.workers:
            raise ValueError(f"Edge on undeclared decision '{decision}'")
    for worker in table.workers:
        if (worker, ALWAYS) not in table.edges:
            raise ValueError(f"Worker '{worker}' has no outgoing edge")
    if (SUPERVISOR, table.terminal) not in table.edges:
        raise ValueError(f"Terminal worker '{table.terminal}' is not routable")


@dataclass(frozen=True)
class TurnResult:
    """Outcome of a completed turn."""
    thread_id: str
    message_id: str
    content: str
    state: ConversationState
    path: tuple[str, ...]

    @property
    def invoked_agents(self) -> list[str]:
        return list(self.state.invoked_agents)

    @property
    def summary(self) -> str:
        return self.state.summary


class GraphExecutor:
    """
    Walks the supervisor graph for one turn at a time.

    Each executor owns its checkpoint store handle; call start() before the
    first turn and close() when done.
    """

    def __init__(
        self,
        supervisor: SupervisorAgent,
        workers: Mapping[str, WorkerAgent],
        store: CheckpointStore,
        *,
        table: TransitionTable | None = None,
        max_steps: int = DEFAULT_MAX_STEPS,
    ):
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")

        self.supervisor = supervisor
        self.workers = dict(workers)
        self.store = store
        self.max_steps = max_steps
        self.table = table if table is not None else build_transition_table(
            reporters=[n for n in self.workers if n not in (CHATBOT, SUMMARY_AGENT)],
        )
        self._check_wiring()

    def _check_wiring(self) -> None:
        missing = self.table.workers - set(self.workers)
        if missing:
            raise ValueError(f"Transition table names workers without agents: {sorted(missing)}")
        extra = set(self.workers) - self.table.workers
        if extra:
            raise ValueError(f"Agents not declared in the transition table: {sorted(extra)}")
        routable = set(self.table.routable())
        if set(self.supervisor.members) != routable:
            raise ValueError(
                f"Supervisor members {sorted(self.supervisor.members)} do not match "
                f"routable workers {sorted(routable)}"
            )
        terminal = self.workers[self.table.terminal]
        if not terminal.terminal:
            raise ValueError(f"Worker '{self.table.terminal}' is not a terminal agent")

    async def start(self) -> None:
        await self.store.connect()

    async def close(self) -> None:
        await self.store.disconnect()

    # -------------------------------------------------------------------------
    # Walk
    # -------------------------------------------------------------------------

    def _check_next(self, node: str, state: ConversationState) -> None:
        if state.next not in self.table.valid_next_values():
            raise InvalidTransitionError(f"'{node}' set next to undeclared node '{state.next}'")

    def _check_worker_delta(self, node: str, delta: StateDelta) -> None:
        if not isinstance(delta.next, Assign):
            return
        target = delta.next.value
        if target not in self.table.valid_next_values():
            raise InvalidTransitionError(f"'{node}' set next to undeclared node '{target}'")
        if target == END and node != self.table.terminal:
            raise InvalidTransitionError(f"'{node}' may not end the turn; only '{self.table.terminal}' can")
        if target not in (SUPERVISOR, END):
            raise InvalidTransitionError(
                f"'{node}' may only hand control back to '{SUPERVISOR}' or end the turn, not '{target}'"
            )

    async def walk(self, state: ConversationState, sink: StreamSink | None = None) -> tuple[ConversationState, list[str]]:
        """
        Run nodes from START until END.

        Returns the final merged state and the list of executed nodes. Raises
        RoutingError, RoutingLoopError, InvalidTransitionError or
        AgentInvocationError; all of them abort the turn.
        """
        from supervisor_chat.agent.logging import log_decision

        path: list[str] = []
        node = self.table.resolve(START)

        while node != END:
            if len(path) >= self.max_steps:
                raise RoutingLoopError(self.max_steps, path)
            path.append(node)

            if node == SUPERVISOR:
                decision = await self.supervisor.decide(state)
                if decision == END and not has_turn_reply(state):
                    # No reply yet this turn: FINISH still goes through the persona
                    log_decision(f"FINISH with no reply yet → {self.table.terminal}")
                    decision = self.table.terminal
                delta = StateDelta(
                    next=Assign(decision),
                    invoked_agents=Assign((decision,)) if decision not in (START, END) else NO_CHANGE,
                    source=SUPERVISOR,
                )
                state = merge(state, delta)
                self._check_next(node, state)
                node = self.table.resolve(SUPERVISOR, decision)
            else:
                worker = self.workers[node]
                delta = await worker.run(state, sink)
                self._check_worker_delta(node, delta)
                state = merge(state, delta)
                self._check_next(node, state)
                following = self.table.resolve(node)
                if following != SUPERVISOR:
                    log_decision(f"{node} → {following if following != END else 'END'}")
                node = following

        return state, path

    # -------------------------------------------------------------------------
    # Turn lifecycle
    # -------------------------------------------------------------------------

    async def run_turn(
        self,
        thread_id: str,
        content: str,
        sink: StreamSink | None = None,
    ) -> TurnResult:
        """
        Execute one turn for a thread.

        The thread is reserved for the whole turn. Only a completed turn is
        checkpointed; on any failure the previous checkpoint is left as it was,
        the sink receives an error event and the error is re-raised.
        """
        from supervisor_chat.agent.logging import (
            log_error,
            log_flow_complete,
            log_header,
            log_state_summary,
        )

        sink = sink or StreamSink()

        try:
            if not thread_id or not thread_id.strip():
                raise InputError("thread_id is required")
            if not content or not content.strip():
                raise InputError("Message content is required")

            log_header(f"THREAD {thread_id}: {content[:50]}{'...' if len(content) > 50 else ''}")

            async with self.store.reserve(thread_id):
                previous = await self.store.load(thread_id)
                if previous is None:
                    previous = ConversationState()
                log_state_summary(previous)

                start_index = len(previous.messages)
                state = merge(previous, begin_turn_delta(Message(role="user", content=content)))

                state, path = await self.walk(state, sink)

                reply = last_assistant_message(messages_since(state, start_index))
                text = sink.text or (reply.content if reply else "")

                await self.store.save(thread_id, state)
                sink.emit_final(text, {
                    "invokedAgents": list(state.invoked_agents),
                    "summary": state.summary,
                })
        except Exception as e:
            log_error(f"Turn failed for thread {thread_id}", e)
            if not sink.finished and not sink.closed:
                sink.emit_error(e)
            raise
        finally:
            sink.close()

        log_flow_complete(text)
        return TurnResult(
            thread_id=thread_id,
            message_id=sink.message_id,
            content=text,
            state=state,
            path=tuple(path),
        )

    async def reset_thread(self, thread_id: str) -> None:
        """Reset a thread's checkpoint to the empty initial state."""
        if not thread_id or not thread_id.strip():
            raise InputError("thread_id is required")
        async with self.store.reserve(thread_id):
            await self.store.clear(thread_id)

    async def get_state(self, thread_id: str) -> ConversationState | None:
        return await self.store.load(thread_id)


def create_executor(settings: Settings | None = None, store: CheckpointStore | None = None) -> GraphExecutor:
    """
    Wire the production graph: Anthropic-backed capabilities, HTTP tools and
    the configured checkpoint store.
    """
    from supervisor_chat.agent.capability import ChatModelCapability, build_chat_model
    from supervisor_chat.tools import get_tool

    settings = settings or get_settings()

    base = ChatModelCapability(build_chat_model(settings, streaming=False), name="base")
    chat = ChatModelCapability(build_chat_model(settings, streaming=True), name="chat")

    workers: dict[str, WorkerAgent] = {
        WEATHER_REPORTER: WeatherReporterAgent(base, get_tool("get_current_weather")),
        NEWS_REPORTER: NewsReporterAgent(
            base,
            get_tool("fetch_news"),
            default_count=settings.NEWS_DEFAULT_COUNT,
            max_count=settings.NEWS_MAX_COUNT,
        ),
        CHATBOT: ChatbotAgent(chat),
        SUMMARY_AGENT: SummaryAgent(base, window=settings.SUMMARY_WINDOW),
    }
    supervisor = SupervisorAgent(base, members=[WEATHER_REPORTER, NEWS_REPORTER, CHATBOT])

    return GraphExecutor(
        supervisor,
        workers,
        store if store is not None else create_checkpoint_store(settings.CHECKPOINT_BACKEND, settings.CHECKPOINT_DB_PATH),
        max_steps=settings.MAX_GRAPH_STEPS,
    )
