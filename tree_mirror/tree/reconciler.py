"""Reconciliation of a node tree against the directory it mirrors.

A pass runs in two phases:

1. **Scan** reads the on-disk tree (listings, file bytes, digests) without
   touching any node. Any ``OSError`` aborts the pass here as
   ``ReconcileIOError``, so a failed pass leaves the tree exactly as it was
   and fires nothing.
2. **Apply** walks the known tree alongside the scan, depth-first, and
   classifies each entry as removed, retained or added. It performs no I/O.
   Files compare digests; directories OR their children's verdicts. A
   directory fires ``changed`` only after all of its children are done, so
   notifications propagate leaf to root.

Each directory publishes its new children in a single swap once its
retained and added children are done, and only then detaches the removed
ones. Readers, including subscriber callbacks, see the old listing or the
new one and never a mix of the two.

An entry whose kind flipped between passes (file replaced by a directory of
the same name, or the reverse) is handled as remove-then-add: the new node
is published in place of the old one, then the old one fires ``removed``.
"""

import fnmatch
import logging
import os
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union

from tree_mirror.config import DigestAlgorithm
from tree_mirror.errors import InvalidOperationError, ReconcileIOError
from tree_mirror.tree.events import Signal
from tree_mirror.tree.node import DirectoryNode, FileNode, Node, NodeKind, join_relative
from tree_mirror.utils.hashing import digest_bytes

logger = logging.getLogger(__name__)


@dataclass
class FileScan:
    """On-disk state of one file.

    ``data`` is None when the digest matches the node already in the tree,
    so unchanged files are not held in memory twice.
    """
    digest: str
    data: Optional[bytes] = None


@dataclass
class DirectoryScan:
    """On-disk listing of one directory, recursively scanned."""
    entries: Dict[str, Union[FileScan, "DirectoryScan"]] = field(default_factory=dict)

    @property
    def file_names(self) -> List[str]:
        return [n for n, e in self.entries.items() if isinstance(e, FileScan)]

    @property
    def directory_names(self) -> List[str]:
        return [n for n, e in self.entries.items() if isinstance(e, DirectoryScan)]


def _scan_kind(entry: Union[FileScan, DirectoryScan]) -> NodeKind:
    return NodeKind.FILE if isinstance(entry, FileScan) else NodeKind.DIRECTORY


@dataclass
class ReconcileStats:
    """Counts collected while applying one pass."""
    nodes_added: int = 0
    nodes_removed: int = 0
    files_modified: int = 0
    directories_changed: int = 0
    files_scanned: int = 0
    bytes_read: int = 0
    duration_ms: float = 0.0

    def to_dict(self) -> dict:
        return {
            "nodes_added": self.nodes_added,
            "nodes_removed": self.nodes_removed,
            "files_modified": self.files_modified,
            "directories_changed": self.directories_changed,
            "files_scanned": self.files_scanned,
            "bytes_read": self.bytes_read,
            "duration_ms": self.duration_ms,
        }


class Reconciler:
    """Brings a node tree in line with a directory on disk.

    Attributes:
        root_path: Directory the root node mirrors
        digest_algorithm: Hash used to compare file contents
        ignore_patterns: fnmatch patterns for entry names to skip
        last_stats: Stats of the most recent successful pass
    """

    def __init__(
        self,
        root_path: Path,
        digest_algorithm: DigestAlgorithm = DigestAlgorithm.SHA256,
        ignore_patterns: Optional[List[str]] = None,
        slow_callback_ms: Optional[float] = None,
    ):
        self.root_path = Path(root_path)
        self.digest_algorithm = digest_algorithm
        self.ignore_patterns = list(ignore_patterns or [])
        self.slow_callback_ms = slow_callback_ms
        self.last_stats: Optional[ReconcileStats] = None

        # Fired with the new node before its first read, so subscribers
        # connected here also see its baseline notifications
        self.node_created = Signal("node_created", "", slow_callback_ms)

        # Passes never overlap; readers do not take this lock
        self._pass_lock = threading.Lock()
        self._stats = ReconcileStats()

    def create_root(self) -> DirectoryNode:
        """Create an empty root node for this reconciler's directory."""
        return DirectoryNode("", self.slow_callback_ms)

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def reconcile(self, node: DirectoryNode) -> bool:
        """Run one full pass over ``node``'s subtree.

        A node's own disappearance is only detected by reconciling its
        parent. Reconciling a directory whose folder is gone raises
        ``ReconcileIOError`` and leaves the node in place, as for the root.

        Args:
            node: Directory node to reconcile, normally the root

        Returns:
            True if anything in the subtree changed

        Raises:
            ReconcileIOError: Reading the directory failed (including the
                              directory itself missing); the tree is untouched
            InvalidOperationError: ``node`` is a file or has been removed
        """
        if not isinstance(node, DirectoryNode):
            raise InvalidOperationError(f"Cannot reconcile file '{node.relative_path}'")
        if node.is_removed:
            raise InvalidOperationError(
                f"Cannot reconcile removed directory '{node.relative_path}'"
            )

        with self._pass_lock:
            started = time.perf_counter()
            self._stats = ReconcileStats()

            scan = self.scan(node)
            changed = self._apply_directory(node, scan)

            self._stats.duration_ms = (time.perf_counter() - started) * 1000
            self.last_stats = self._stats
            logger.debug(
                f"Reconciled '{self.root_path}': "
                f"{self._stats.nodes_added} added, "
                f"{self._stats.nodes_removed} removed, "
                f"{self._stats.files_modified} modified "
                f"in {self._stats.duration_ms:.1f}ms"
            )
            return changed

    # ------------------------------------------------------------------
    # Scan phase (I/O only)
    # ------------------------------------------------------------------

    def scan(self, node: DirectoryNode) -> DirectoryScan:
        """Read the on-disk state under ``node`` without mutating anything.

        Raises:
            ReconcileIOError: On any filesystem error, including a missing
                              directory
        """
        path = self.root_path / node.relative_path if node.relative_path else self.root_path
        if not path.is_dir():
            raise ReconcileIOError(f"Mirrored directory does not exist: {path}", str(path))

        try:
            return self._scan_directory(path, node)
        except OSError as e:
            raise ReconcileIOError(
                f"Failed to read {e.filename or path}: {e.strerror or e}",
                e.filename or str(path),
            ) from e

    def _is_ignored(self, name: str) -> bool:
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.ignore_patterns)

    def _scan_directory(self, path: Path, known: Optional[DirectoryNode]) -> DirectoryScan:
        scan = DirectoryScan()
        with os.scandir(path) as it:
            listing = sorted(it, key=lambda e: e.name)

        known_children = known._children if known is not None else {}
        for entry in listing:
            if self._is_ignored(entry.name):
                continue

            known_child = known_children.get(entry.name)
            # Symlinked directories are not followed, so link cycles cannot recurse
            if entry.is_dir(follow_symlinks=False):
                known_dir = known_child if isinstance(known_child, DirectoryNode) else None
                scan.entries[entry.name] = self._scan_directory(Path(entry.path), known_dir)
            elif entry.is_file():
                scan.entries[entry.name] = self._scan_file(Path(entry.path), known_child)
            # sockets, fifos and dangling links are not mirrored

        return scan

    def _scan_file(self, path: Path, known: Optional[Node]) -> FileScan:
        data = path.read_bytes()
        digest = digest_bytes(data, self.digest_algorithm)
        self._stats.files_scanned += 1
        self._stats.bytes_read += len(data)

        if isinstance(known, FileNode) and known.digest == digest:
            return FileScan(digest)
        return FileScan(digest, data)

    # ------------------------------------------------------------------
    # Apply phase (no I/O)
    # ------------------------------------------------------------------

    def _apply(self, node: Node, entry: Union[FileScan, DirectoryScan], created: bool = False) -> bool:
        if isinstance(node, FileNode):
            return self._apply_file(node, entry)
        return self._apply_directory(node, entry, created)

    def _apply_file(self, node: FileNode, scan: FileScan) -> bool:
        if scan.data is None:
            return False

        previous = node._store(scan.data, scan.digest)
        if previous is not None:
            self._stats.files_modified += 1
            logger.debug(f"Modified '{node.relative_path}'",
                         extra={"node_path": node.relative_path})
            node.content_changed.emit(previous, scan.data)
        node.changed.emit()
        return True

    def _apply_directory(self, node: DirectoryNode, scan: DirectoryScan, created: bool = False) -> bool:
        changed = created
        current = node._children

        def matches(name: str, child: Node) -> bool:
            entry = scan.entries.get(name)
            return entry is not None and _scan_kind(entry) == child.kind

        # Removed: gone from disk, or replaced by the other kind. They stay
        # visible until the new children dict is published below.
        gone = [child for name, child in current.items() if not matches(name, child)]

        # Retained: recurse into the existing node
        children: Dict[str, Node] = {}
        for name, child in current.items():
            if matches(name, child):
                changed |= self._apply(child, scan.entries[name])
                children[name] = child

        # Added: new node, baseline established before it becomes visible
        for name, entry in scan.entries.items():
            if name in children:
                continue
            child = self._create(node, name, entry)
            self.node_created.emit(child)
            self._apply(child, entry, created=True)
            children[name] = child
            self._stats.nodes_added += 1
            logger.debug(f"Added {child.kind.value} '{child.relative_path}'",
                         extra={"node_path": child.relative_path})
            changed = True

        node._publish(children)

        for child in gone:
            self._detach(child)
        if gone:
            changed = True

        if changed:
            self._stats.directories_changed += 1
            node.changed.emit()
        return changed

    def _create(self, parent: DirectoryNode, name: str, entry: Union[FileScan, DirectoryScan]) -> Node:
        relative_path = join_relative(parent.relative_path, name)
        if isinstance(entry, FileScan):
            return FileNode(relative_path, self.slow_callback_ms)
        return DirectoryNode(relative_path, self.slow_callback_ms)

    def _detach(self, child: Node) -> None:
        self._stats.nodes_removed += child._remove()
        child.changed.emit()
