"""Tests for tree_mirror.tree.node module.

Covers the read accessors of both node variants, navigation, and the
errors raised for operations used on the wrong variant.
"""

import pytest

from tree_mirror.errors import InvalidOperationError, NodeNotFoundError
from tree_mirror.tree.node import DirectoryNode, FileNode, NodeKind, join_relative


@pytest.fixture
def tree(populated_dir, reconciler, root):
    reconciler.reconcile(root)
    return root


class TestJoinRelative:

    def test_root_parent(self):
        assert join_relative("", "a.txt") == "a.txt"

    def test_nested_parent(self):
        assert join_relative("docs/guides", "setup.md") == "docs/guides/setup.md"


class TestFileNode:
    """Content accessors."""

    def test_identity(self, tree):
        node = tree["a.txt"]
        assert isinstance(node, FileNode)
        assert node.kind == NodeKind.FILE
        assert node.is_file and not node.is_directory
        assert node.name == "a.txt"
        assert node.relative_path == "a.txt"

    def test_get_data(self, tree):
        assert tree["data.bin"].get_data() == b"\x00\x01\x02\x03" * 100
        assert tree["data.bin"].size == 400

    def test_get_string_data(self, tree):
        assert tree["a.txt"].get_string_data() == "hello"

    def test_get_string_data_encoding_errors(self, mirror_dir, reconciler, root):
        (mirror_dir / "latin.txt").write_bytes("café".encode("latin-1"))
        reconciler.reconcile(root)
        node = root["latin.txt"]

        assert node.get_string_data("latin-1") == "café"
        with pytest.raises(UnicodeDecodeError):
            node.get_string_data()
        assert node.get_string_data(errors="replace") == "caf�"

    def test_deserialize(self, tree):
        assert tree["settings.json"].deserialize() == {"debug": True, "level": 3}

    def test_deserialize_with_hook(self, tree):
        parsed = tree["settings.json"].deserialize(object_pairs_hook=list)
        assert parsed == [("debug", True), ("level", 3)]

    def test_deserialize_invalid_json(self, tree):
        with pytest.raises(ValueError):
            tree["a.txt"].deserialize()

    def test_unread_file_raises(self):
        node = FileNode("pending.txt")
        assert node.digest is None
        assert node.size == 0
        with pytest.raises(InvalidOperationError):
            node.get_data()

    def test_directory_operations_raise(self, tree):
        node = tree["a.txt"]
        for call in (
            lambda: node.get_child("x"),
            node.get_children,
            node.get_files,
            node.get_directories,
            lambda: node.resolve("x"),
            lambda: list(node.walk()),
            lambda: node / "x",
        ):
            with pytest.raises(InvalidOperationError):
                call()

    def test_store_returns_previous(self):
        node = FileNode("a.txt")
        assert node._store(b"one", "d1") is None
        assert node._store(b"two", "d2") == b"one"
        assert node.get_data() == b"two"
        assert node.get_hash() == "d2"


class TestDirectoryNode:
    """Child access and navigation."""

    def test_identity(self, tree):
        docs = tree["docs"]
        assert isinstance(docs, DirectoryNode)
        assert docs.kind == NodeKind.DIRECTORY
        assert docs.is_directory
        assert tree.name == "" and tree.relative_path == ""

    def test_get_child_missing_raises(self, tree):
        with pytest.raises(NodeNotFoundError) as exc_info:
            tree.get_child("nope")
        assert exc_info.value.segment == "nope"
        assert exc_info.value.path == ""
        assert isinstance(exc_info.value, LookupError)

    def test_get_children_directories_first(self, tree):
        names = [c.name for c in tree.get_children()]
        assert names == ["docs", "a.txt", "data.bin", "settings.json"]

    def test_get_files_and_directories(self, tree):
        assert [f.name for f in tree.get_files()] == ["a.txt", "data.bin", "settings.json"]
        assert [d.name for d in tree.get_directories()] == ["docs"]

    def test_contains_and_len(self, tree):
        assert "docs" in tree
        assert "missing" not in tree
        assert len(tree) == 4

    def test_operators(self, tree):
        assert (tree / "docs" / "guides" / "setup.md").get_string_data() == "setup steps"
        assert tree["docs"]["readme.md"].get_string_data() == "# readme"

    def test_resolve_string(self, tree):
        assert tree.resolve("docs/guides/setup.md").relative_path == "docs/guides/setup.md"

    def test_resolve_segments(self, tree):
        assert tree.resolve(["docs", "readme.md"]) is tree["docs"]["readme.md"]

    def test_resolve_empty_segments(self, tree):
        assert tree.resolve("") is tree
        assert tree.resolve("/") is tree
        assert tree.resolve("docs//readme.md") is tree["docs"]["readme.md"]

    def test_resolve_missing_segment(self, tree):
        with pytest.raises(NodeNotFoundError) as exc_info:
            tree.resolve("docs/missing/setup.md")
        assert exc_info.value.path == "docs"
        assert exc_info.value.segment == "missing"

    def test_resolve_through_file(self, tree):
        with pytest.raises(InvalidOperationError):
            tree.resolve("a.txt/deeper")

    def test_walk_preorder(self, tree):
        paths = [n.relative_path for n in tree.walk()]
        assert paths == [
            "",
            "docs",
            "docs/guides",
            "docs/guides/setup.md",
            "docs/readme.md",
            "a.txt",
            "data.bin",
            "settings.json",
        ]

    def test_file_operations_raise(self, tree):
        docs = tree["docs"]
        for call in (
            docs.get_data,
            docs.get_string_data,
            docs.get_hash,
            docs.deserialize,
            lambda: docs.content_changed,
        ):
            with pytest.raises(InvalidOperationError):
                call()

    def test_invalid_operation_is_type_error(self, tree):
        with pytest.raises(TypeError):
            tree.get_data()


class TestSerialization:

    def test_file_to_dict(self, tree):
        result = tree["a.txt"].to_dict()
        assert result == {
            "name": "a.txt",
            "kind": "file",
            "path": "a.txt",
            "removed": False,
            "digest": tree["a.txt"].get_hash(),
            "size": 5,
        }

    def test_directory_to_dict_recursive(self, tree):
        result = tree.to_dict()
        assert result["kind"] == "directory"
        assert [c["name"] for c in result["children"]] == ["docs", "a.txt", "data.bin", "settings.json"]
        guides = result["children"][0]["children"][0]
        assert guides["children"][0]["path"] == "docs/guides/setup.md"

    def test_directory_to_dict_shallow(self, tree):
        assert "children" not in tree.to_dict(recursive=False)

    def test_repr(self, tree):
        assert repr(tree) == "<DirectoryNode '/'>"
        assert repr(tree["a.txt"]) == "<FileNode 'a.txt'>"
