"""Tests for tree_mirror.integrity module.

Validates that verify_tree spots drift between the published tree and
the directory it mirrors.
"""

from tree_mirror.config import DigestAlgorithm
from tree_mirror.integrity import IntegrityResult, tree_digests, verify_tree


class TestIntegrityResult:

    def test_empty_is_valid(self):
        result = IntegrityResult()
        assert result.is_valid is True
        assert result.total_files == 0

    def test_any_problem_invalidates(self):
        for field_name in ("mismatched_files", "missing_on_disk", "missing_in_tree", "errors"):
            result = IntegrityResult()
            getattr(result, field_name).append("x")
            assert result.is_valid is False

    def test_to_dict(self):
        result = IntegrityResult(verified_count=2, tree_hashes={"a": "1", "b": "2"})
        data = result.to_dict()
        assert data["verified_count"] == 2
        assert data["total_files"] == 2
        assert data["is_valid"] is True


class TestTreeDigests:

    def test_collects_every_file(self, populated_dir, reconciler, root):
        reconciler.reconcile(root)
        digests = tree_digests(root)
        assert sorted(digests) == [
            "a.txt",
            "data.bin",
            "docs/guides/setup.md",
            "docs/readme.md",
            "settings.json",
        ]
        assert digests["a.txt"] == root["a.txt"].get_hash()


class TestVerifyTree:

    def test_fresh_tree_is_valid(self, populated_dir, reconciler, root):
        reconciler.reconcile(root)
        result = verify_tree(root, populated_dir)
        assert result.is_valid is True
        assert result.verified_count == 5

    def test_modified_file_detected(self, populated_dir, reconciler, root):
        reconciler.reconcile(root)
        (populated_dir / "a.txt").write_text("drifted")

        result = verify_tree(root, populated_dir)

        assert result.mismatched_files == ["a.txt"]
        assert result.verified_count == 4
        assert result.is_valid is False

    def test_missing_and_extra_files(self, populated_dir, reconciler, root):
        reconciler.reconcile(root)
        (populated_dir / "docs" / "readme.md").unlink()
        (populated_dir / "extra.txt").write_text("extra")

        result = verify_tree(root, populated_dir)

        assert result.missing_on_disk == ["docs/readme.md"]
        assert result.missing_in_tree == ["extra.txt"]

    def test_ignore_patterns_respected(self, populated_dir, reconciler, root):
        (populated_dir / ".git").mkdir()
        (populated_dir / ".git" / "HEAD").write_text("ref")
        reconciler.reconcile(root)

        assert verify_tree(root, populated_dir).is_valid is True
        assert verify_tree(root, populated_dir, ignore_patterns=[]).missing_in_tree == [".git/HEAD"]

    def test_algorithm_must_match(self, populated_dir, reconciler, root):
        reconciler.reconcile(root)
        result = verify_tree(root, populated_dir, digest_algorithm=DigestAlgorithm.MD5)
        assert len(result.mismatched_files) == 5

    def test_missing_directory(self, tmp_path, root):
        result = verify_tree(root, tmp_path / "missing")
        assert result.is_valid is False
        assert "does not exist" in result.errors[0]
