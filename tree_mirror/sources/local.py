"""Source for a directory that is kept up to date by someone else."""

from pathlib import Path
from typing import Union

from .base import SnapshotSource, SourceResult
from ..errors import SourceError


class LocalDirectorySource(SnapshotSource):
    """Mirror an existing local directory as-is.

    There is no cheap way to tell whether the directory changed, so every
    refresh reports ``changed=True`` and relies on reconciliation being
    idempotent.
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def prepare(self) -> SourceResult:
        if not self._path.is_dir():
            raise SourceError(f"Directory does not exist: {self._path}")
        return SourceResult(success=True, changed=True, message=f"Using {self._path}")

    def refresh(self) -> SourceResult:
        if not self._path.is_dir():
            raise SourceError(f"Directory does not exist: {self._path}")
        return SourceResult(success=True, changed=True, message="Local directory")
