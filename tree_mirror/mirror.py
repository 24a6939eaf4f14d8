"""Main Mirror class - keeps a node tree in step with a snapshot source.

The mirror owns one root node for its whole lifetime. Each update refreshes
the source and, when the snapshot changed, runs one reconciliation pass
that mutates the tree in place and fires node notifications.

Example:
    from tree_mirror import Mirror, MirrorConfig, RemoteConfig

    with Mirror(remote=RemoteConfig(url="https://example.com/settings.git")) as mirror:
        settings = mirror.root / "service.json"
        settings.content_changed.connect(lambda old, new: print(new.decode()))
        ...
"""

from __future__ import annotations

import atexit
import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .config import MirrorConfig, RemoteConfig
from .errors import ReconcileIOError, SourceError
from .sources import SnapshotSource, get_source
from .tree.events import Signal
from .tree.node import DirectoryNode, Node
from .tree.reconciler import Reconciler
from .utils.logging import get_logger


logger = logging.getLogger(__name__)


@dataclass
class UpdateStats:
    """Statistics from one update (source refresh + reconciliation pass)."""

    success: bool = True
    changed: bool = False
    reconciled: bool = False
    revision: Optional[str] = None

    # Node counts
    nodes_added: int = 0
    nodes_removed: int = 0
    files_modified: int = 0
    files_scanned: int = 0

    # Timing
    started_at: float = 0.0
    completed_at: float = 0.0
    duration_ms: float = 0.0

    # Errors
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert stats to dictionary."""
        return {
            "success": self.success,
            "changed": self.changed,
            "reconciled": self.reconciled,
            "revision": self.revision,
            "nodes_added": self.nodes_added,
            "nodes_removed": self.nodes_removed,
            "files_modified": self.files_modified,
            "files_scanned": self.files_scanned,
            "duration_ms": self.duration_ms,
            "errors": self.errors,
        }


class Mirror:
    """In-memory mirror of a directory snapshot with change notifications.

    Updates are serialized; reads on the tree can happen from any thread at
    any time. Errors from the source or from reading the directory are
    logged and reported in ``UpdateStats``, never raised out of ``update()``,
    and the tree keeps its last good state until a later pass succeeds.

    Attributes:
        config: Mirror configuration
        source: Snapshot source providing the directory
        pass_count: Number of successful reconciliation passes
        last_stats: Stats of the most recent update
    """

    def __init__(
        self,
        config: Optional[MirrorConfig] = None,
        source: Optional[SnapshotSource] = None,
        remote: Optional[RemoteConfig] = None,
    ):
        """Initialize the mirror. No I/O happens until ``open()``/``update()``.

        Args:
            config: Mirror configuration. Defaults are used if None.
            source: Explicit snapshot source. Built from ``config``/``remote``
                    when omitted.
            remote: Git remote to mirror (ignored when ``source`` is given)

        Raises:
            ValueError: If no source can be built from the arguments
        """
        self.config = config or MirrorConfig()
        self.source = source or get_source(self.config, remote)
        if self.config.root_path is None:
            self.config.root_path = self.source.path

        self._setup_logging()

        self._reconciler = Reconciler(
            self.source.path,
            digest_algorithm=self.config.digest_algorithm,
            ignore_patterns=self.config.ignore_patterns,
            slow_callback_ms=self.config.slow_callback_ms,
        )
        self._root = self._reconciler.create_root()

        self._update_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._prepared = False
        self._needs_pass = True
        self._shutdown_registered = False

        self.pass_count = 0
        self.last_stats: Optional[UpdateStats] = None
        self.last_update: Optional[datetime] = None

    def _setup_logging(self) -> None:
        """Attach a file handler to the package logger if configured."""
        if self.config.log_file:
            get_logger(
                "tree_mirror",
                json_output=self.config.json_logs,
                log_file=self.config.log_file,
                console=False,
            )

    # ------------------------------------------------------------------
    # Tree access
    # ------------------------------------------------------------------

    @property
    def root(self) -> DirectoryNode:
        """Root node. The same object for the lifetime of the mirror."""
        return self._root

    @property
    def node_created(self) -> Signal:
        """Fired with each new node before its baseline notifications."""
        return self._reconciler.node_created

    def resolve(self, path: str) -> Node:
        """Shorthand for ``mirror.root.resolve(path)``."""
        return self._root.resolve(path)

    @property
    def revision(self) -> Optional[str]:
        return self.source.revision

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def open(self) -> UpdateStats:
        """Prepare the source and run the first pass.

        Returns:
            UpdateStats of the initial update
        """
        return self.update()

    def update(self) -> UpdateStats:
        """Refresh the source, then reconcile if the snapshot changed.

        A pass also runs when the previous one failed, even if the source
        reports no change.

        Returns:
            UpdateStats with operation details
        """
        with self._update_lock:
            stats = UpdateStats(started_at=time.time())
            try:
                if not self._prepared:
                    result = self.source.prepare()
                    self._prepared = True
                else:
                    result = self.source.refresh()
                stats.revision = result.revision

                if result.changed or self._needs_pass:
                    self._run_pass(stats)
            except SourceError as e:
                stats.success = False
                stats.errors.append(str(e))
                logger.error(f"Source refresh failed for {self.source.path}: {e}")
            except ReconcileIOError as e:
                stats.success = False
                stats.errors.append(str(e))
                logger.error(f"Reconciliation of {self.source.path} aborted, tree unchanged: {e}")
            except OSError as e:
                stats.success = False
                stats.errors.append(str(e))
                logger.error(f"Source refresh failed for {self.source.path}: {e}")

            return self._finalize_stats(stats)

    def reconcile(self) -> UpdateStats:
        """Run one reconciliation pass without refreshing the source.

        Returns:
            UpdateStats with operation details
        """
        with self._update_lock:
            stats = UpdateStats(started_at=time.time(), revision=self.source.revision)
            try:
                self._run_pass(stats)
            except ReconcileIOError as e:
                stats.success = False
                stats.errors.append(str(e))
                logger.error(f"Reconciliation of {self.source.path} aborted, tree unchanged: {e}")
            return self._finalize_stats(stats)

    def _run_pass(self, stats: UpdateStats) -> None:
        self._needs_pass = True
        stats.changed = self._reconciler.reconcile(self._root)
        stats.reconciled = True
        self._needs_pass = False
        self.pass_count += 1

        pass_stats = self._reconciler.last_stats
        if pass_stats is not None:
            stats.nodes_added = pass_stats.nodes_added
            stats.nodes_removed = pass_stats.nodes_removed
            stats.files_modified = pass_stats.files_modified
            stats.files_scanned = pass_stats.files_scanned

    def _finalize_stats(self, stats: UpdateStats) -> UpdateStats:
        """Finalize stats with timing info and log a summary."""
        stats.completed_at = time.time()
        stats.duration_ms = (stats.completed_at - stats.started_at) * 1000
        self.last_stats = stats
        self.last_update = datetime.now()

        if stats.reconciled:
            logger.info(
                f"Mirror {self.source.path}"
                f"{' @ ' + stats.revision[:10] if stats.revision else ''}: "
                f"{stats.nodes_added} added, "
                f"{stats.nodes_removed} removed, "
                f"{stats.files_modified} modified "
                f"in {stats.duration_ms:.1f}ms"
            )
        return stats

    # ------------------------------------------------------------------
    # Background refresh loop
    # ------------------------------------------------------------------

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """Start refreshing in a background thread.

        Returns:
            True if a loop was started, False if already running or disabled
        """
        if self.running:
            return False
        if not self.config.background_updates:
            logger.debug("Background updates disabled (update_interval_s <= 0)")
            return False

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name=f"tree-mirror-{self.source.path.name}",
            daemon=True,
        )
        self._thread.start()

        if not self._shutdown_registered:
            atexit.register(self.stop)
            self._shutdown_registered = True
        logger.info(f"Refreshing {self.source.path} every {self.config.update_interval_s}s")
        return True

    def _run_loop(self) -> None:
        # The stop flag is only checked between passes
        while not self._stop_event.wait(self.config.update_interval_s):
            try:
                self.update()
            except Exception:
                logger.exception(f"Unexpected error while updating {self.source.path}")

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Signal the loop to stop and wait for an in-flight pass to finish.

        Returns:
            True if the loop is no longer running
        """
        self._stop_event.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        return not self.running

    def close(self) -> None:
        """Stop background updates and release the source."""
        self.stop()
        self.source.close()

    def __enter__(self) -> "Mirror":
        self.open()
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def status(self) -> dict:
        """Get a summary of the mirror's state.

        Returns:
            Dict with paths, revision, counters and the last update's stats
        """
        return {
            "root_path": str(self.source.path),
            "revision": self.source.revision,
            "running": self.running,
            "pass_count": self.pass_count,
            "last_update": self.last_update.isoformat() if self.last_update else None,
            "last_stats": self.last_stats.to_dict() if self.last_stats else None,
            "digest_algorithm": self.config.digest_algorithm.value,
        }
