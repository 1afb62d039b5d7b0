"""Remote operations offered by the scene service and their result types."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional

from .errors import RemoteOperationError

logger = logging.getLogger(__name__)

PROJECT_QUERY = """
query {
  project {
    name
  }
}
"""

CREATE_BASIC_SHAPE = """
mutation CreateShape($shape: String!) {
  createBasicShape(shape: $shape)
}
"""

# The service rebuilds the scene before rendering it.
RENDER = """
mutation Render($batches: Int!) {
  build,
  render(batches: $batches)
}
"""

NEW_PROJECT = """
mutation NewProject($name: String!) {
  newProject(name: $name)
}
"""

NODE_ADDED_SUBSCRIPTION = """
subscription nodeAdded {
  nodeAdded {
    name
    mesh {
      name
    }
  }
}
"""


@dataclass(frozen=True)
class ProjectInfo:
    name: str


@dataclass(frozen=True)
class ObjectRef:
    """Opaque reference to an object created by the service."""

    value: Any


@dataclass(frozen=True)
class RenderResult:
    built: bool
    rendered: bool


@dataclass(frozen=True)
class SubscriptionEvent:
    node_name: str
    mesh_name: Optional[str] = None


def _field(data: Dict[str, Any], name: str) -> Any:
    if name not in data:
        raise RemoteOperationError(f"Scene service response is missing '{name}'")
    return data[name]


class SceneService:
    """Typed access to the scene service.

    ``transport`` must provide ``execute(document, variables)`` returning the
    ``data`` mapping and ``subscribe(document, variables)`` yielding one
    ``data`` mapping per event. :class:`~pyscenedit.transport.GraphQLTransport`
    is the network implementation.
    """

    def __init__(self, transport) -> None:
        self.transport = transport

    async def load_project(self) -> ProjectInfo:
        data = await self.transport.execute(PROJECT_QUERY)
        project = _field(data, "project")
        if not isinstance(project, dict):
            raise RemoteOperationError("project not found")
        return ProjectInfo(name=str(_field(project, "name")))

    async def create_basic_shape(self, shape_name: str) -> ObjectRef:
        logger.info(f"Creating basic shape {shape_name!r}")
        data = await self.transport.execute(CREATE_BASIC_SHAPE, {"shape": shape_name})
        return ObjectRef(_field(data, "createBasicShape"))

    async def render(self, batch_count: int) -> RenderResult:
        logger.info(f"Requesting render with {batch_count} batches")
        data = await self.transport.execute(RENDER, {"batches": batch_count})
        return RenderResult(built=bool(data.get("build")), rendered=bool(_field(data, "render")))

    async def new_project(self, name: str) -> ObjectRef:
        logger.info(f"Creating project {name!r}")
        data = await self.transport.execute(NEW_PROJECT, {"name": name})
        return ObjectRef(_field(data, "newProject"))

    async def node_added(self) -> AsyncIterator[SubscriptionEvent]:
        async for data in self.transport.subscribe(NODE_ADDED_SUBSCRIPTION):
            node = _field(data, "nodeAdded") or {}
            if not isinstance(node, dict):
                raise RemoteOperationError("Malformed nodeAdded event")
            mesh = node.get("mesh") or {}
            if not isinstance(mesh, dict):
                raise RemoteOperationError("Malformed nodeAdded event")
            yield SubscriptionEvent(node_name=str(node.get("name", "")), mesh_name=mesh.get("name"))
