"""Exception types raised by Tree Mirror.

Caller-facing misuse (``NodeNotFoundError``, ``InvalidOperationError``) is
raised at the point of the call and never changes tree state.
``ReconcileIOError`` aborts a reconciliation pass before anything in the tree
is touched; the driver catches it and retries on the next cycle.
"""

from typing import Optional


class MirrorError(Exception):
    """Base class for all Tree Mirror errors."""


class NodeNotFoundError(MirrorError, LookupError):
    """A path segment did not match any child of the current node."""

    def __init__(self, path: str, segment: str):
        self.path = path
        self.segment = segment
        super().__init__(f"No such node '{segment}' under '{path or '/'}'")


class InvalidOperationError(MirrorError, TypeError):
    """A file-only operation was used on a directory, or the reverse."""


class ReconcileIOError(MirrorError, OSError):
    """Reading the on-disk tree failed during a reconciliation pass."""

    def __init__(self, message: str, path: Optional[str] = None):
        self.path = path
        super().__init__(message)


class SourceError(MirrorError):
    """The snapshot source failed to produce or refresh its directory."""
