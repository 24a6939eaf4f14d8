"""Tree Mirror - an in-memory, observable mirror of a synchronized directory.

Keeps a tree of nodes in step with a directory whose contents are
periodically replaced by a new snapshot (typically a git working copy),
and tells subscribers exactly what changed.

Key Features:
    - Incremental reconciliation: unchanged files never fire events
    - Digest-gated change detection with old/new content in notifications
    - Bottom-up change propagation and pre-order removal cascades
    - Readers never see a half-applied pass; failed passes leave the tree as-is
    - Git and plain-directory snapshot sources with a background refresh loop

Quick Start:
    from tree_mirror import Mirror, MirrorConfig

    mirror = Mirror(MirrorConfig(root_path="./settings", update_interval_s=5))
    mirror.open()

    config_file = mirror.root / "app.json"
    config_file.content_changed.connect(
        lambda old, new: print("app.json is now", new.decode())
    )
    mirror.start()

Classes:
    Mirror: Source + tree + refresh loop
    MirrorConfig / RemoteConfig: Configuration
    FileNode / DirectoryNode: Mirrored entries
    Reconciler: The diff/apply algorithm, usable on its own
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .config import (
    DigestAlgorithm,
    MirrorConfig,
    RemoteConfig,
)

from .errors import (
    MirrorError,
    NodeNotFoundError,
    InvalidOperationError,
    ReconcileIOError,
    SourceError,
)

from .tree import (
    Node,
    NodeKind,
    FileNode,
    DirectoryNode,
    Signal,
    Reconciler,
    ReconcileStats,
)

from .sources import SnapshotSource, SourceResult, get_source
from .mirror import Mirror, UpdateStats
from .integrity import IntegrityResult, verify_tree

__all__ = [
    "__version__",
    "__license__",
    # Configuration
    "DigestAlgorithm",
    "MirrorConfig",
    "RemoteConfig",
    # Errors
    "MirrorError",
    "NodeNotFoundError",
    "InvalidOperationError",
    "ReconcileIOError",
    "SourceError",
    # Tree
    "Node",
    "NodeKind",
    "FileNode",
    "DirectoryNode",
    "Signal",
    "Reconciler",
    "ReconcileStats",
    # Driver
    "SnapshotSource",
    "SourceResult",
    "get_source",
    "Mirror",
    "UpdateStats",
    # Integrity
    "IntegrityResult",
    "verify_tree",
    "open_directory",
]


def open_directory(path, **config_kwargs) -> Mirror:
    """Convenience function: mirror a local directory and run the first pass.

    Args:
        path: Directory to mirror
        **config_kwargs: Extra MirrorConfig fields

    Returns:
        Opened Mirror (background loop not started)

    Example:
        mirror = open_directory("./settings", ignore_patterns=[".git", "*.tmp"])
        print(mirror.root["app.json"].get_string_data())
    """
    mirror = Mirror(MirrorConfig(root_path=path, **config_kwargs))
    mirror.open()
    return mirror
