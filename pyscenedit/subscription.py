"""Live "node added" feed for the editing session."""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Callable, List, Optional

from .errors import RemoteOperationError
from .lifecycle import ErrorInfo, RequestLifecycle, StreamLifecycle
from .operations import SceneService, SubscriptionEvent

logger = logging.getLogger(__name__)

NodeAddedHandler = Callable[[SubscriptionEvent], None]


class SubscriptionFeed:
    """Keeps the ``nodeAdded`` subscription open and fans events out.

    The feed is opened once per session. Handlers see every event exactly
    once, in delivery order. A feed that was closed cannot be reopened.
    """

    def __init__(self, service: SceneService) -> None:
        self.service = service
        self.lifecycle: StreamLifecycle[SubscriptionEvent] = StreamLifecycle("nodeAdded")
        self._handlers: List[NodeAddedHandler] = []
        self._task: Optional[asyncio.Task] = None
        self._started = False

    def register_event_handler(self, cb: NodeAddedHandler) -> None:
        self._handlers.append(cb)

    def unregister_event_handler(self, cb: NodeAddedHandler) -> None:
        self._handlers.remove(cb)

    @property
    def is_open(self) -> bool:
        return self._started and not self.lifecycle.closed and not self.lifecycle.failed

    def open(self) -> None:
        if self._started:
            raise RuntimeError("nodeAdded feed cannot be restarted")
        self._started = True
        self.lifecycle.add_listener(self._dispatch)
        self.lifecycle.open()
        self._task = asyncio.create_task(self._pump())

    async def _pump(self) -> None:
        try:
            async for event in self.service.node_added():
                self.lifecycle.push(event)
        except RemoteOperationError as e:
            self.lifecycle.fail(ErrorInfo.from_exception(e))
        else:
            logger.info("nodeAdded feed ended by the server")
            self.lifecycle.close()

    def _dispatch(self, lifecycle: RequestLifecycle[SubscriptionEvent]) -> None:
        if not lifecycle.succeeded:
            return
        event = lifecycle.result
        logger.debug(f"Node added: {event}")
        for h in list(self._handlers):
            try:
                h(event)
            except Exception as e:
                logger.error(f"Err in node_added handler: {e}")

    async def close(self) -> None:
        self.lifecycle.close()
        if self._task:
            self._task.cancel()
            with suppress(asyncio.CancelledError):
                await self._task
            self._task = None
