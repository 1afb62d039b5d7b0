"""Uniform lifecycle for queries, mutations and subscriptions.

Every remote operation is wrapped in a :class:`RequestLifecycle` which moves
``idle -> pending -> succeeded | failed``. A lifecycle belongs to a single
invocation: running the operation again means creating a new instance.
Subscriptions use :class:`StreamLifecycle`, which stays open and reports each
pushed event as a transient success.

:func:`describe` turns any lifecycle into a :class:`RenderDescriptor` so the
presentation layer does not need to inspect the states itself.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar

from .errors import LifecycleError, RemoteOperationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestState(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RequestKind(enum.Enum):
    QUERY = "query"
    MUTATION = "mutation"
    SUBSCRIPTION = "subscription"


@dataclass(frozen=True)
class ErrorInfo:
    message: str

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ErrorInfo":
        return cls(getattr(exc, "message", None) or str(exc) or type(exc).__name__)


@dataclass(frozen=True)
class LifecycleView(Generic[T]):
    """Read-only ``{state, data, error}`` snapshot of a lifecycle."""

    state: RequestState
    data: Optional[T] = None
    error: Optional[ErrorInfo] = None


LifecycleListener = Callable[["RequestLifecycle[Any]"], None]


class RequestLifecycle(Generic[T]):
    """State machine for one invocation of a remote operation."""

    def __init__(self, name: str, kind: RequestKind = RequestKind.MUTATION) -> None:
        self.name = name
        self.kind = kind
        self._state = RequestState.IDLE
        self._result: Optional[T] = None
        self._error: Optional[ErrorInfo] = None
        self._listeners: List[LifecycleListener] = []
        self.discarded = False

    # -- read access ----------------------------------------------------
    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def result(self) -> Optional[T]:
        return self._result

    @property
    def error(self) -> Optional[ErrorInfo]:
        return self._error

    @property
    def is_idle(self) -> bool:
        return self._state is RequestState.IDLE

    @property
    def is_pending(self) -> bool:
        return self._state is RequestState.PENDING

    @property
    def succeeded(self) -> bool:
        return self._state is RequestState.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self._state is RequestState.FAILED

    @property
    def settled(self) -> bool:
        return self._state in (RequestState.SUCCEEDED, RequestState.FAILED)

    def view(self) -> LifecycleView[T]:
        return LifecycleView(self._state, self._result, self._error)

    # -- listeners ------------------------------------------------------
    def add_listener(self, cb: LifecycleListener) -> None:
        self._listeners.append(cb)

    def remove_listener(self, cb: LifecycleListener) -> None:
        self._listeners.remove(cb)

    def _notify(self) -> None:
        for cb in list(self._listeners):
            try:
                cb(self)
            except Exception as e:
                logger.error(f"Err in lifecycle listener for {self.name}: {e}")

    # -- transitions ----------------------------------------------------
    def start(self) -> None:
        if self._state is not RequestState.IDLE:
            raise LifecycleError(f"{self.name}: cannot start from {self._state.value}")
        self._state = RequestState.PENDING
        logger.debug(f"{self.kind.value} {self.name} pending")
        self._notify()

    def resolve(self, result: T) -> None:
        if self.discarded:
            logger.debug(f"{self.name}: dropping late result, lifecycle discarded")
            return
        if self._state is not RequestState.PENDING:
            raise LifecycleError(f"{self.name}: cannot succeed from {self._state.value}")
        self._result = result
        self._state = RequestState.SUCCEEDED
        logger.debug(f"{self.kind.value} {self.name} succeeded")
        self._notify()

    def reject(self, error: ErrorInfo) -> None:
        if self.discarded:
            logger.debug(f"{self.name}: dropping late error, lifecycle discarded")
            return
        if self._state is not RequestState.PENDING:
            raise LifecycleError(f"{self.name}: cannot fail from {self._state.value}")
        self._error = error
        self._state = RequestState.FAILED
        logger.info(f"{self.kind.value} {self.name} failed: {error.message}")
        self._notify()

    def discard(self) -> None:
        """Ignore any resolution that arrives after the owner went away."""
        self.discarded = True
        self._listeners.clear()

    async def run(self, call: Awaitable[T]) -> "RequestLifecycle[T]":
        """Drive this lifecycle with ``call``.

        Failures settle the lifecycle in ``failed``; they are not raised to
        the caller. Anything other than a remote failure is also logged.
        """
        if self._state is RequestState.IDLE:
            self.start()
        try:
            result = await call
        except RemoteOperationError as e:
            self.reject(ErrorInfo.from_exception(e))
        except Exception as e:
            logger.exception(f"{self.kind.value} {self.name} raised unexpectedly")
            self.reject(ErrorInfo.from_exception(e))
        else:
            self.resolve(result)
        return self

    def __repr__(self) -> str:
        return f"<RequestLifecycle {self.kind.value}:{self.name} {self._state.value}>"


class StreamLifecycle(RequestLifecycle[T]):
    """Lifecycle of a subscription.

    The stream is pending while open. Each pushed event briefly makes the
    lifecycle ``succeeded`` with that event as result, listeners are told,
    and the lifecycle returns to ``pending``. Only a stream error is terminal.
    """

    def __init__(self, name: str) -> None:
        super().__init__(name, RequestKind.SUBSCRIPTION)
        self.closed = False
        self.latest: Optional[T] = None
        self.events_received = 0

    def open(self) -> None:
        self.start()

    def push(self, result: T) -> None:
        if self.discarded or self.closed:
            logger.debug(f"{self.name}: event after close ignored")
            return
        if self._state is not RequestState.PENDING:
            raise LifecycleError(f"{self.name}: cannot deliver an event while {self._state.value}")
        self._result = result
        self._state = RequestState.SUCCEEDED
        self.latest = result
        self.events_received += 1
        self._notify()
        self._result = None
        self._state = RequestState.PENDING

    def fail(self, error: ErrorInfo) -> None:
        self.reject(error)

    def close(self) -> None:
        self.closed = True


# -- presentation -------------------------------------------------------

class ViewKind(enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    ERROR = "error"
    CONTENT = "content"


@dataclass(frozen=True)
class RenderDescriptor:
    """What the presentation layer should draw for a lifecycle."""

    kind: ViewKind
    text: str = ""
    data: Any = None


def describe(lifecycle: RequestLifecycle[Any],
             content: Callable[[Any], str] = str,
             loading_text: str = "Loading...",
             idle_text: str = "") -> RenderDescriptor:
    state = lifecycle.state
    if state is RequestState.PENDING:
        return RenderDescriptor(ViewKind.LOADING, loading_text)
    if state is RequestState.FAILED:
        error = lifecycle.error or ErrorInfo("Unknown error")
        return RenderDescriptor(ViewKind.ERROR, error.message, error)
    if state is RequestState.SUCCEEDED:
        return RenderDescriptor(ViewKind.CONTENT, content(lifecycle.result), lifecycle.result)
    return RenderDescriptor(ViewKind.IDLE, idle_text)
