"""Abstract base class for snapshot sources.

A source owns the directory the mirror reads. It guarantees that whenever
``refresh()`` returns, the directory holds a complete and consistent
snapshot, so the reconciler can walk it without coordinating with the
source.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import logging


@dataclass
class SourceResult:
    """Result of a source operation.

    Attributes:
        success: Whether the operation succeeded
        changed: Whether the snapshot may differ from the previous one
        message: Human-readable status message
        revision: Identifier of the snapshot (commit sha for git), if known
        error: Exception if operation failed
    """
    success: bool
    changed: bool = False
    message: str = ""
    revision: Optional[str] = None
    error: Optional[Exception] = None

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {
            "success": self.success,
            "changed": self.changed,
            "message": self.message,
            "revision": self.revision,
            "error": str(self.error) if self.error else None,
        }


class SnapshotSource(ABC):
    """Produces and periodically replaces the mirrored directory.

    Example:
        class TarballSource(SnapshotSource):
            def refresh(self) -> SourceResult:
                self._extract_latest()
                return SourceResult(success=True, changed=True)
            # ... implement other methods
    """

    def __init__(self):
        """Initialize the source with a logger."""
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @property
    @abstractmethod
    def path(self) -> Path:
        """Directory holding the current snapshot."""

    @property
    def revision(self) -> Optional[str]:
        """Identifier of the current snapshot, if the source has one."""
        return None

    @abstractmethod
    def prepare(self) -> SourceResult:
        """Make the directory available for the first pass.

        Called once before the first reconciliation.

        Raises:
            SourceError: If the snapshot cannot be produced
        """

    @abstractmethod
    def refresh(self) -> SourceResult:
        """Replace the directory contents with the newest snapshot.

        Returns:
            SourceResult whose ``changed`` flag tells the mirror whether a
            reconciliation pass is worth running

        Raises:
            SourceError: If the refresh fails
        """

    def close(self) -> None:
        """Release any resources held by the source."""
