"""PySceneEdit: drag-and-drop client for a GraphQL scene composition service."""

__version__ = "0.1.0"

from .assets import AssetCategory, AssetIdentity, DragPayload, build_catalog
from .dragdrop import DragDropManager, DragSource, DropTarget
from .editor import EditorSession
from .errors import EditorNotReady, LifecycleError, RemoteOperationError
from .lifecycle import ErrorInfo, RequestLifecycle, RequestState, StreamLifecycle, describe
from .operations import ObjectRef, ProjectInfo, RenderResult, SceneService, SubscriptionEvent
from .project import ProjectLoader
from .sequencer import MutationSequencer, SequencedOperation, SequencePolicy
from .settings import Settings
from .subscription import SubscriptionFeed
from .transport import GraphQLTransport
