"""
Exception hierarchy for the orchestration engine.

Fatal errors derive from OrchestrationError: they abort the turn, leave the
last checkpoint untouched and surface to the caller as an error frame.
ToolError is the only recoverable failure and never leaves the worker that
owns the tool.
"""
from langchain_core.tools import ToolException


class OrchestrationError(Exception):
    """Base class for errors that abort a turn."""


class RoutingError(OrchestrationError):
    """The router produced no parseable decision or an undeclared node name."""


class RoutingLoopError(OrchestrationError):
    """A turn exceeded the configured step ceiling."""

    def __init__(self, max_steps: int, path: list[str]):
        self.max_steps = max_steps
        self.path = path
        tail = " -> ".join(path[-6:])
        super().__init__(f"Turn exceeded {max_steps} steps (last steps: {tail})")


class InvalidTransitionError(OrchestrationError):
    """A node asked for a transition the graph does not declare."""


class AgentInvocationError(OrchestrationError):
    """The underlying model call of a node failed (outage, timeout, bad request)."""

    def __init__(self, node: str, cause: BaseException):
        self.node = node
        self.cause = cause
        super().__init__(f"{node}: model call failed: {cause}")


class TurnInProgressError(OrchestrationError):
    """Another turn is already running against the same thread."""

    def __init__(self, thread_id: str):
        self.thread_id = thread_id
        super().__init__(f"A turn is already in progress for thread '{thread_id}'")


class InputError(ValueError):
    """Rejected turn input (missing thread id, empty message)."""


class StreamStateError(RuntimeError):
    """A stream sink was used out of order."""


class ToolError(ToolException):
    """A data-provider tool failed (non-2xx, malformed payload, transport error)."""
