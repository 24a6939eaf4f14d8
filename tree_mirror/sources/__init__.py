"""Tree Mirror snapshot sources.

A source produces the directory the mirror reads and refreshes it between
passes.

Available sources:
    - LocalDirectorySource: an existing directory maintained elsewhere
    - GitSource: a working copy of one branch of a git remote

Usage:
    from tree_mirror.sources import get_source

    source = get_source(config)           # local directory
    source = get_source(config, remote)   # git remote
"""

from typing import Optional

from .base import SnapshotSource, SourceResult
from ..config import MirrorConfig, RemoteConfig


def get_source(
    config: MirrorConfig,
    remote: Optional[RemoteConfig] = None
) -> SnapshotSource:
    """Get the source matching the configuration.

    Args:
        config: Mirror configuration (``root_path`` used for local sources)
        remote: Git remote configuration, if mirroring a repository

    Returns:
        SnapshotSource instance

    Raises:
        ValueError: If neither a remote nor a root path is configured
    """
    if remote is not None:
        from .git import GitSource
        return GitSource(remote)
    if config.root_path is not None:
        from .local import LocalDirectorySource
        return LocalDirectorySource(config.root_path)
    raise ValueError("Either a remote or MirrorConfig.root_path must be provided")


__all__ = [
    "SnapshotSource",
    "SourceResult",
    "get_source",
]
