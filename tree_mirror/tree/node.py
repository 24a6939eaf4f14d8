"""In-memory nodes of a mirrored directory tree.

A tree is made of two node variants:

- ``FileNode``: holds the file's bytes and their digest
- ``DirectoryNode``: holds its children keyed by entry name

Every node exposes ``changed`` and ``removed`` signals; files also expose
``content_changed``. Using a file-only operation on a directory (or the
reverse) raises ``InvalidOperationError`` and changes nothing.

Nodes are only mutated by the reconciler. Mutable state is published by
replacing a single attribute (the children dict, or the file's content
record), so concurrent readers always see a complete old or new value.
"""

import json
import logging
from enum import Enum
from typing import Any, Dict, Iterator, List, NamedTuple, Optional, Sequence, Union

from tree_mirror.errors import InvalidOperationError, NodeNotFoundError
from tree_mirror.tree.events import Signal

logger = logging.getLogger(__name__)

PathLike = Union[str, Sequence[str]]


class NodeKind(Enum):
    """Kind of filesystem entry a node mirrors. Fixed for a node's lifetime."""
    FILE = "file"
    DIRECTORY = "directory"


def join_relative(parent: str, name: str) -> str:
    """Join a relative path and a child name with forward slashes."""
    return f"{parent}/{name}" if parent else name


class Node:
    """Base class for mirrored entries.

    Attributes:
        relative_path: Path from the mirror root, "/"-separated ("" for the root)
        name: Final path segment ("" for the root)
        changed: Fired when this node or anything below it changed in a pass
        removed: Fired once, when the entry is first observed missing
    """

    kind: NodeKind

    def __init__(self, relative_path: str = "", slow_callback_ms: Optional[float] = None):
        self.relative_path = relative_path
        self.name = relative_path.rsplit("/", 1)[-1]
        self._slow_callback_ms = slow_callback_ms
        self._removed = False
        self.changed = Signal("changed", relative_path, slow_callback_ms)
        self.removed = Signal("removed", relative_path, slow_callback_ms)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    @property
    def is_removed(self) -> bool:
        """True once the entry has been observed missing. Never reverts."""
        return self._removed

    @property
    def is_file(self) -> bool:
        return self.kind == NodeKind.FILE

    @property
    def is_directory(self) -> bool:
        return self.kind == NodeKind.DIRECTORY

    def __repr__(self) -> str:
        state = " removed" if self._removed else ""
        return f"<{type(self).__name__} '{self.relative_path or '/'}'{state}>"

    # ------------------------------------------------------------------
    # File-only operations
    # ------------------------------------------------------------------

    def _file_only(self, operation: str) -> InvalidOperationError:
        return InvalidOperationError(
            f"Cannot {operation} of directory '{self.relative_path or '/'}'"
        )

    @property
    def content_changed(self) -> Signal:
        raise self._file_only("subscribe to content changes")

    def get_data(self) -> bytes:
        raise self._file_only("access data")

    def get_string_data(self, encoding: str = "utf-8", errors: str = "strict") -> str:
        raise self._file_only("access data")

    def get_hash(self) -> str:
        raise self._file_only("access data")

    def deserialize(self, **kwargs: Any) -> Any:
        raise self._file_only("access data")

    # ------------------------------------------------------------------
    # Directory-only operations
    # ------------------------------------------------------------------

    def _directory_only(self) -> InvalidOperationError:
        return InvalidOperationError(
            f"Cannot access children of file '{self.relative_path}'"
        )

    def get_child(self, name: str) -> "Node":
        raise self._directory_only()

    def get_children(self) -> List["Node"]:
        raise self._directory_only()

    def get_files(self) -> List["FileNode"]:
        raise self._directory_only()

    def get_directories(self) -> List["DirectoryNode"]:
        raise self._directory_only()

    def resolve(self, path: PathLike) -> "Node":
        raise self._directory_only()

    def walk(self) -> Iterator["Node"]:
        raise self._directory_only()

    def __truediv__(self, name: str) -> "Node":
        return self.get_child(name)

    def __getitem__(self, name: str) -> "Node":
        return self.get_child(name)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self, recursive: bool = True) -> Dict[str, Any]:
        """Describe the node (and optionally its subtree) as plain data."""
        return {
            "name": self.name,
            "kind": self.kind.value,
            "path": self.relative_path,
            "removed": self._removed,
        }

    # ------------------------------------------------------------------
    # Removal (reconciler only)
    # ------------------------------------------------------------------

    def _child_nodes(self) -> List["Node"]:
        return []

    def _remove(self) -> int:
        """Mark this node and every live descendant removed, pre-order.

        Returns:
            Number of nodes newly marked removed (0 if already removed)
        """
        if self._removed:
            return 0
        self._removed = True
        logger.debug(f"Removed {self.kind.value} '{self.relative_path}'",
                     extra={"node_path": self.relative_path})
        self.removed.emit()

        count = 1
        for child in self._child_nodes():
            count += child._remove()
        return count


class FileContent(NamedTuple):
    """Bytes of a file together with their digest."""
    data: bytes
    digest: str


class FileNode(Node):
    """A mirrored regular file.

    ``digest`` is None until the reconciler has read the file once; nodes
    are only attached to the tree after that first read.
    """

    kind = NodeKind.FILE

    def __init__(self, relative_path: str, slow_callback_ms: Optional[float] = None):
        super().__init__(relative_path, slow_callback_ms)
        self._content: Optional[FileContent] = None
        self._content_changed = Signal("content_changed", relative_path, slow_callback_ms)

    @property
    def content_changed(self) -> Signal:
        """Fired with ``(old_bytes, new_bytes)`` when the content differs
        from the previous pass. Never fired for the first read."""
        return self._content_changed

    @property
    def digest(self) -> Optional[str]:
        content = self._content
        return content.digest if content is not None else None

    @property
    def size(self) -> int:
        content = self._content
        return len(content.data) if content is not None else 0

    def _current(self) -> FileContent:
        content = self._content
        if content is None:
            raise InvalidOperationError(
                f"File '{self.relative_path}' has not been read yet"
            )
        return content

    def get_data(self) -> bytes:
        """Raw bytes as of the last completed pass."""
        return self._current().data

    def get_string_data(self, encoding: str = "utf-8", errors: str = "strict") -> str:
        return self._current().data.decode(encoding, errors)

    def get_hash(self) -> str:
        """Hex digest of the current bytes."""
        return self._current().digest

    def deserialize(self, **kwargs: Any) -> Any:
        """Parse the content as JSON. Keyword arguments go to ``json.loads``."""
        return json.loads(self._current().data, **kwargs)

    def to_dict(self, recursive: bool = True) -> Dict[str, Any]:
        result = super().to_dict(recursive)
        result["digest"] = self.digest
        result["size"] = self.size
        return result

    def _store(self, data: bytes, digest: str) -> Optional[bytes]:
        """Publish new content. Returns the previous bytes (None on first read)."""
        previous = self._content
        self._content = FileContent(data, digest)
        return previous.data if previous is not None else None


class DirectoryNode(Node):
    """A mirrored directory.

    Children live in one insertion-ordered dict; each child carries its own
    kind, so a name can never be both a file and a directory.
    """

    kind = NodeKind.DIRECTORY

    def __init__(self, relative_path: str = "", slow_callback_ms: Optional[float] = None):
        super().__init__(relative_path, slow_callback_ms)
        self._children: Dict[str, Node] = {}

    def get_child(self, name: str) -> Node:
        """Look up a direct child by name.

        Raises:
            NodeNotFoundError: If no child has that name
        """
        child = self._children.get(name)
        if child is None:
            raise NodeNotFoundError(self.relative_path, name)
        return child

    def get_children(self) -> List[Node]:
        """Subdirectories first, then files."""
        children = list(self._children.values())
        return (
            [c for c in children if c.kind == NodeKind.DIRECTORY]
            + [c for c in children if c.kind == NodeKind.FILE]
        )

    def get_files(self) -> List[FileNode]:
        return [c for c in self._children.values() if c.kind == NodeKind.FILE]

    def get_directories(self) -> List["DirectoryNode"]:
        return [c for c in self._children.values() if c.kind == NodeKind.DIRECTORY]

    def __contains__(self, name: str) -> bool:
        return name in self._children

    def __len__(self) -> int:
        return len(self._children)

    def resolve(self, path: PathLike) -> Node:
        """Resolve a "/"-separated path or a sequence of segments.

        Empty segments resolve to the current node, so "", "/" and "a//b"
        are all accepted.

        Raises:
            NodeNotFoundError: If a segment matches no child
            InvalidOperationError: If the path descends through a file
        """
        segments = path.split("/") if isinstance(path, str) else path

        node: Node = self
        for segment in segments:
            if not segment:
                continue
            node = node.get_child(segment)
        return node

    def walk(self) -> Iterator[Node]:
        """Yield this directory and all descendants, pre-order."""
        yield self
        for child in self.get_children():
            if isinstance(child, DirectoryNode):
                yield from child.walk()
            else:
                yield child

    def to_dict(self, recursive: bool = True) -> Dict[str, Any]:
        result = super().to_dict(recursive)
        if recursive:
            result["children"] = [c.to_dict(recursive=True) for c in self.get_children()]
        return result

    def _child_nodes(self) -> List[Node]:
        return list(self._children.values())

    def _publish(self, children: Dict[str, Node]) -> None:
        """Swap in a fully reconciled children dict."""
        self._children = children
