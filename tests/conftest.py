"""Shared pytest fixtures for Tree Mirror tests.

Provides temp directories laid out like a synchronized snapshot, ready-made
reconcilers and an event recorder that subscribes to every node of a tree.
"""

import json

import pytest

from tree_mirror.config import DigestAlgorithm, MirrorConfig
from tree_mirror.tree.node import FileNode
from tree_mirror.tree.reconciler import Reconciler


class EventRecorder:
    """Collects node notifications in the order they fire.

    Entries are tuples: ("changed", path), ("removed", path) or
    ("content_changed", path, old, new).
    """

    def __init__(self):
        self.events = []
        self._nodes = []

    def attach(self, node):
        self._nodes.append(node)
        path = node.relative_path
        node.changed.connect(lambda: self.events.append(("changed", path)))
        node.removed.connect(lambda: self.events.append(("removed", path)))
        if isinstance(node, FileNode):
            node.content_changed.connect(
                lambda old, new: self.events.append(("content_changed", path, old, new))
            )

    def attach_tree(self, root, reconciler=None):
        """Subscribe to every existing node and, via the reconciler, new ones."""
        for node in root.walk():
            self.attach(node)
        if reconciler is not None:
            reconciler.node_created.connect(self.attach)

    def of(self, kind):
        return [e for e in self.events if e[0] == kind]

    def paths(self, kind):
        return [e[1] for e in self.events if e[0] == kind]

    def clear(self):
        self.events.clear()


@pytest.fixture
def mirror_dir(tmp_path):
    """Empty directory standing in for a synchronized snapshot."""
    path = tmp_path / "snapshot"
    path.mkdir()
    return path


@pytest.fixture
def populated_dir(mirror_dir):
    """Snapshot directory with a small nested tree."""
    (mirror_dir / "a.txt").write_text("hello")
    (mirror_dir / "settings.json").write_text(json.dumps({"debug": True, "level": 3}))
    (mirror_dir / "docs").mkdir()
    (mirror_dir / "docs" / "readme.md").write_text("# readme")
    (mirror_dir / "docs" / "guides").mkdir()
    (mirror_dir / "docs" / "guides" / "setup.md").write_text("setup steps")
    (mirror_dir / "data.bin").write_bytes(b"\x00\x01\x02\x03" * 100)
    return mirror_dir


@pytest.fixture
def reconciler(mirror_dir):
    """Reconciler bound to the snapshot directory."""
    return Reconciler(mirror_dir, ignore_patterns=[".git"])


@pytest.fixture
def root(reconciler):
    """Fresh, never reconciled root node."""
    return reconciler.create_root()


@pytest.fixture
def recorder():
    return EventRecorder()


@pytest.fixture
def mirror_config(mirror_dir):
    """MirrorConfig for the snapshot directory with background updates off."""
    return MirrorConfig(
        root_path=mirror_dir,
        digest_algorithm=DigestAlgorithm.SHA256,
        update_interval_s=0,
    )
