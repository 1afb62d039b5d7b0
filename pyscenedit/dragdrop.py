"""Drag sources, drop targets and the manager tracking the active gesture."""

from __future__ import annotations

import logging
from typing import Any, Callable, FrozenSet, Iterable, Optional, Tuple

from .assets import AssetCategory, AssetIdentity, DragPayload

logger = logging.getLogger(__name__)

DropHandler = Callable[[DragPayload], Any]


class DragDropManager:
    """Holds the single drag gesture in progress.

    Sources register with :meth:`begin`; a drop hands the payload to the
    target at most once and then forgets it, whether or not the target
    accepted the item type.
    """

    def __init__(self) -> None:
        self._active: Optional[Tuple["DragSource", DragPayload]] = None

    @property
    def is_dragging(self) -> bool:
        return self._active is not None

    @property
    def item_type(self) -> Optional[AssetCategory]:
        return self._active[0].item_type if self._active else None

    def begin(self, source: "DragSource", payload: DragPayload) -> None:
        if self._active is not None:
            logger.debug(f"Drag of {self._active[1].asset_name!r} replaced by {payload.asset_name!r}")
            self._active[0]._finish()
        self._active = (source, payload)

    def end(self, source: "DragSource") -> None:
        if self._active and self._active[0] is source:
            logger.debug(f"Drag of {self._active[1].asset_name!r} abandoned")
            self._active = None

    def can_drop(self, target: "DropTarget") -> bool:
        return self._active is not None and target.accepts(self._active[0].item_type)

    def drop(self, target: "DropTarget") -> bool:
        if self._active is None:
            return False
        source, payload = self._active
        self._active = None
        source._finish()
        if not target.accepts(source.item_type):
            logger.debug(f"{target.name} rejected {source.item_type.value} {payload.asset_name!r}")
            return False
        target._handle_drop(payload)
        return True


class DragSource:
    """A draggable palette entry."""

    def __init__(self, identity: AssetIdentity, manager: DragDropManager) -> None:
        self.identity = identity
        self.manager = manager
        self._dragging = False

    @property
    def item_type(self) -> AssetCategory:
        return self.identity.category

    @property
    def is_dragging(self) -> bool:
        return self._dragging

    def begin_drag(self) -> DragPayload:
        payload = DragPayload.from_identity(self.identity)
        self.manager.begin(self, payload)
        self._dragging = True
        return payload

    def end_drag(self) -> None:
        """End the gesture without a drop."""
        self.manager.end(self)
        self._dragging = False

    def _finish(self) -> None:
        self._dragging = False

    def __repr__(self) -> str:
        return f"<DragSource {self.identity.category.value}:{self.identity.name}>"


class DropTarget:
    """An area accepting drops of the declared asset categories."""

    def __init__(self, name: str, accepts: Iterable[AssetCategory],
                 on_drop: DropHandler, manager: DragDropManager) -> None:
        self.name = name
        self.accepted: FrozenSet[AssetCategory] = frozenset(accepts)
        self.on_drop = on_drop
        self.manager = manager
        self.is_over = False

    def accepts(self, category: Optional[AssetCategory]) -> bool:
        return category in self.accepted

    @property
    def can_drop(self) -> bool:
        return self.is_over and self.manager.can_drop(self)

    def hover(self) -> bool:
        self.is_over = True
        return self.manager.can_drop(self)

    def leave(self) -> None:
        self.is_over = False

    def drop(self) -> bool:
        """Finish the active gesture on this target.

        Returns True when the handler ran. The handler is called
        synchronously and whatever it schedules is not awaited here.
        """
        self.is_over = False
        return self.manager.drop(self)

    def _handle_drop(self, payload: DragPayload) -> None:
        logger.info(f"{self.name} received {payload.asset_name!r} (id {payload.asset_id})")
        self.on_drop(payload)
