"""Node tree and reconciliation for Tree Mirror.

This module provides:
- Node, FileNode, DirectoryNode: the mirrored tree
- Signal: observer registration for node notifications
- Reconciler: brings a tree in line with the directory on disk
"""

from tree_mirror.tree.events import Signal
from tree_mirror.tree.node import DirectoryNode, FileNode, Node, NodeKind
from tree_mirror.tree.reconciler import Reconciler, ReconcileStats

__all__ = [
    "Signal",
    "Node",
    "NodeKind",
    "FileNode",
    "DirectoryNode",
    "Reconciler",
    "ReconcileStats",
]
