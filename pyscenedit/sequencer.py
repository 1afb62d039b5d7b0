"""Turns an accepted drop into the create-object and render mutations."""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .assets import DragPayload
from .lifecycle import RequestLifecycle
from .operations import ObjectRef, RenderResult, SceneService
from .settings import Settings

logger = logging.getLogger(__name__)


class SequencePolicy(enum.Enum):
    """When render is dispatched relative to create.

    CONCURRENT dispatches render right after create without waiting for it;
    create's object reference is never passed to render and a failed create
    does not stop the render. AFTER_CREATE waits for create to succeed and
    leaves render idle when create fails.
    """

    CONCURRENT = "concurrent"
    AFTER_CREATE = "after_create"


@dataclass
class SequencedOperation:
    """The create and render lifecycles started by one drop."""

    payload: DragPayload
    create: RequestLifecycle[ObjectRef]
    render: RequestLifecycle[RenderResult]
    tasks: List["asyncio.Task"] = field(default_factory=list, repr=False)

    @property
    def done(self) -> bool:
        return all(t.done() for t in self.tasks)

    async def wait(self) -> "SequencedOperation":
        await asyncio.gather(*self.tasks)
        return self

    def discard(self) -> None:
        self.create.discard()
        self.render.discard()


class MutationSequencer:
    #: Finished sequences kept in ``operations`` for display.
    HISTORY = 32

    def __init__(self, service: SceneService, render_batches: int = Settings.RENDER_BATCHES,
                 policy: SequencePolicy = SequencePolicy.CONCURRENT, history: int = HISTORY) -> None:
        self.service = service
        self.render_batches = render_batches
        self.policy = policy
        self.history = history
        self.operations: List[SequencedOperation] = []

    @property
    def latest(self) -> Optional[SequencedOperation]:
        return self.operations[-1] if self.operations else None

    def on_drop(self, payload: DragPayload) -> SequencedOperation:
        """Start a new sequence for ``payload`` and return without waiting.

        Must be called from inside the running event loop. Both lifecycles
        are created fresh; earlier sequences keep running untouched.
        """
        op = SequencedOperation(
            payload=payload,
            create=RequestLifecycle(f"createBasicShape({payload.asset_name})"),
            render=RequestLifecycle(f"render({self.render_batches})"),
        )
        self._prune()
        self.operations.append(op)

        op.create.start()
        create_task = asyncio.create_task(op.create.run(self.service.create_basic_shape(payload.asset_name)))
        op.tasks.append(create_task)

        if self.policy is SequencePolicy.CONCURRENT:
            op.render.start()
            render_task = asyncio.create_task(op.render.run(self.service.render(self.render_batches)))
        else:
            render_task = asyncio.create_task(self._render_after_create(op, create_task))
        op.tasks.append(render_task)

        logger.info(f"Dispatched create+render for {payload.asset_name!r} ({self.policy.value})")
        return op

    def _prune(self) -> None:
        finished = [op for op in self.operations if op.done]
        drop = len(finished) - self.history
        if drop > 0:
            stale = set(map(id, finished[:drop]))
            self.operations = [op for op in self.operations if id(op) not in stale]

    async def _render_after_create(self, op: SequencedOperation,
                                   create_task: "asyncio.Task") -> RequestLifecycle[RenderResult]:
        await create_task
        if not op.create.succeeded:
            logger.info(f"Skipping render, create of {op.payload.asset_name!r} did not succeed")
            return op.render
        return await op.render.run(self.service.render(self.render_batches))

    def close(self) -> None:
        """Ignore resolutions of sequences still in flight."""
        for op in self.operations:
            if not op.done:
                op.discard()
