"""Editor session wiring the palette, viewport and remote operations together."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from .assets import AssetIdentity, build_catalog
from .dragdrop import DragDropManager, DragSource, DropTarget
from .errors import EditorNotReady
from .lifecycle import RenderDescriptor, RequestLifecycle
from .operations import ObjectRef, ProjectInfo, SceneService
from .project import ProjectLoader
from .sequencer import MutationSequencer, SequencedOperation, SequencePolicy
from .settings import Settings
from .subscription import SubscriptionFeed
from .transport import GraphQLTransport

logger = logging.getLogger(__name__)

VIEWPORT_IDLE_TEXT = "Viewport"
VIEWPORT_LOADING_TEXT = "Loading..."
VIEWPORT_DONE_TEXT = "Render finished"


class EditorSession:
    """One editing session against the scene service.

    ``transport`` is injected so tests can replace the network; when omitted
    a :class:`GraphQLTransport` is built from ``settings`` and closed with
    the session. The palette and viewport are only handed out once the
    project query succeeded.
    """

    def __init__(self, settings: Optional[Settings] = None, transport=None,
                 catalog: Optional[Dict[str, List[AssetIdentity]]] = None) -> None:
        logger.info("EditorSession initializing...")
        self.settings = settings or Settings()
        self._owns_transport = transport is None
        self.transport = transport if transport is not None else GraphQLTransport(self.settings)
        self.service = SceneService(self.transport)

        self.loader = ProjectLoader(self.service)
        self.feed = SubscriptionFeed(self.service)
        policy = SequencePolicy.AFTER_CREATE if self.settings.render_after_create else SequencePolicy.CONCURRENT
        self.sequencer = MutationSequencer(self.service, self.settings.render_batches, policy)

        self.drag = DragDropManager()
        self.catalog = catalog if catalog is not None else build_catalog()
        self._palette = {
            group: [DragSource(identity, self.drag) for identity in identities]
            for group, identities in self.catalog.items()
        }
        self._viewport = DropTarget("viewport", self.settings.viewport_accepts,
                                    self.sequencer.on_drop, self.drag)
        self.new_project_request: Optional[RequestLifecycle[ObjectRef]] = None
        self._new_project_task: Optional[asyncio.Task] = None
        self.closed = False

    def __str__(self) -> str:
        if self.loader.project:
            return f"EditorSession(Project: {self.loader.project.name})"
        return f"EditorSession({self.loader.lifecycle.state.value})"

    # -- session lifetime ---------------------------------------------------
    async def start(self) -> RequestLifecycle[ProjectInfo]:
        """Mount the project query and open the node feed."""
        self.loader.mount()
        self.feed.open()
        lifecycle = await self.loader.load()
        if lifecycle.succeeded:
            logger.info(f"Project {lifecycle.result.name!r} loaded")
        else:
            logger.warning(f"Project failed to load: {lifecycle.error.message}")
        return lifecycle

    async def close(self) -> None:
        if self.closed:
            return
        logger.info("EditorSession closing.")
        self.closed = True
        self.sequencer.close()
        self.loader.unmount()
        if self.new_project_request is not None and not self.new_project_request.settled:
            self.new_project_request.discard()
        await self.feed.close()
        if self._owns_transport:
            await self.transport.aclose()

    # -- gated editor surface -----------------------------------------------
    @property
    def ready(self) -> bool:
        return self.loader.ready and not self.closed

    def _require_ready(self) -> None:
        if self.closed:
            raise EditorNotReady("Session is closed")
        self.loader.require_project()

    @property
    def palette(self) -> Dict[str, List[DragSource]]:
        self._require_ready()
        return self._palette

    @property
    def viewport(self) -> DropTarget:
        self._require_ready()
        return self._viewport

    def source(self, name: str) -> DragSource:
        for sources in self.palette.values():
            for src in sources:
                if src.identity.name == name:
                    return src
        raise KeyError(name)

    def drop_asset(self, name: str) -> Optional[SequencedOperation]:
        """Drag the named palette entry onto the viewport.

        Returns the started sequence, or None when the viewport rejected
        the asset's category.
        """
        src = self.source(name)
        src.begin_drag()
        if self.viewport.drop():
            return self.sequencer.latest
        return None

    def create_project(self, name: str) -> RequestLifecycle[ObjectRef]:
        self._require_ready()
        request: RequestLifecycle[ObjectRef] = RequestLifecycle(f"newProject({name})")
        self.new_project_request = request
        request.start()
        self._new_project_task = asyncio.create_task(request.run(self.service.new_project(name)))
        return request

    # -- presentation -------------------------------------------------------
    def describe(self) -> RenderDescriptor:
        """What the area below the app bar should show."""
        return self.loader.describe()

    def viewport_status(self) -> str:
        op = self.sequencer.latest
        if op is None:
            return VIEWPORT_IDLE_TEXT
        if op.render.succeeded:
            return VIEWPORT_DONE_TEXT
        if op.render.is_pending:
            return VIEWPORT_LOADING_TEXT
        return VIEWPORT_IDLE_TEXT
