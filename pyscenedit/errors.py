"""Exceptions shared across the client."""


class RemoteOperationError(Exception):
    """A query, mutation or subscription failed on the scene service.

    ``message`` is the text reported by the service (or by the transport
    when the service could not be reached).
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class LifecycleError(RuntimeError):
    """Raised on a transition the request state machine does not allow."""


class EditorNotReady(RuntimeError):
    """Raised when editor controls are used before the project has loaded."""
