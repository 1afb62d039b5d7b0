"""Initial project query gating the editor."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from .errors import EditorNotReady
from .lifecycle import RenderDescriptor, RequestKind, RequestLifecycle, describe
from .operations import ProjectInfo, SceneService

logger = logging.getLogger(__name__)


class ProjectLoader:
    """Runs the project query on mount and reports whether the editor may show.

    Nothing behind the loader is reachable until the query succeeded; a
    failure keeps the editor hidden behind the service's error message.
    """

    def __init__(self, service: SceneService) -> None:
        self.service = service
        self.lifecycle: RequestLifecycle[ProjectInfo] = RequestLifecycle("project", RequestKind.QUERY)
        self._task: Optional[asyncio.Task] = None

    def mount(self) -> "asyncio.Task":
        if self._task is not None:
            return self._task
        self.lifecycle.start()
        self._task = asyncio.create_task(self.lifecycle.run(self.service.load_project()))
        return self._task

    async def load(self) -> RequestLifecycle[ProjectInfo]:
        await self.mount()
        return self.lifecycle

    def reload(self) -> "asyncio.Task":
        """Start a fresh query, replacing the settled one."""
        self.lifecycle.discard()
        self.lifecycle = RequestLifecycle("project", RequestKind.QUERY)
        self._task = None
        logger.info("Reloading project")
        return self.mount()

    def unmount(self) -> None:
        self.lifecycle.discard()

    @property
    def ready(self) -> bool:
        return self.lifecycle.succeeded

    @property
    def project(self) -> Optional[ProjectInfo]:
        return self.lifecycle.result

    def require_project(self) -> ProjectInfo:
        if not self.lifecycle.succeeded:
            raise EditorNotReady(f"Project is {self.lifecycle.state.value}")
        return self.lifecycle.result

    def describe(self) -> RenderDescriptor:
        return describe(self.lifecycle, content=lambda p: p.name)
