"""Hash-based verification of a mirrored tree against its directory.

Compares the digests held by the published tree with a fresh hash of the
files on disk to spot drift (the directory changed since the last pass) or
missing entries. Nothing in the tree is modified.
"""

import fnmatch
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from tree_mirror.config import DigestAlgorithm
from tree_mirror.tree.node import DirectoryNode, FileNode
from tree_mirror.utils.hashing import hash_file


@dataclass
class IntegrityResult:
    """Result of integrity verification.

    Attributes:
        verified_count: Number of files whose digests match
        mismatched_files: Files whose on-disk digest differs from the tree
        missing_on_disk: Files in the tree but no longer on disk
        missing_in_tree: Files on disk the tree does not know about
        errors: Files that couldn't be verified due to errors
        tree_hashes: Digest map taken from the tree
        disk_hashes: Digest map of the files on disk
    """
    verified_count: int = 0
    mismatched_files: List[str] = field(default_factory=list)
    missing_on_disk: List[str] = field(default_factory=list)
    missing_in_tree: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    tree_hashes: Dict[str, str] = field(default_factory=dict)
    disk_hashes: Dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        """Check if the tree matches the disk completely."""
        return not (
            self.mismatched_files
            or self.missing_on_disk
            or self.missing_in_tree
            or self.errors
        )

    @property
    def total_files(self) -> int:
        return len(self.tree_hashes)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "verified_count": self.verified_count,
            "total_files": self.total_files,
            "is_valid": self.is_valid,
            "mismatched_files": self.mismatched_files,
            "missing_on_disk": self.missing_on_disk,
            "missing_in_tree": self.missing_in_tree,
            "errors": self.errors,
        }


def tree_digests(root: DirectoryNode) -> Dict[str, str]:
    """Map every file's relative path to its digest."""
    return {
        node.relative_path: node.digest
        for node in root.walk()
        if isinstance(node, FileNode) and node.digest is not None
    }


def _disk_files(root_path: Path, ignore_patterns: List[str]) -> List[str]:
    """Relative paths of regular files under root_path, honoring ignores."""
    found: List[str] = []
    pending = [root_path]
    while pending:
        directory = pending.pop()
        for entry in sorted(directory.iterdir()):
            if any(fnmatch.fnmatch(entry.name, p) for p in ignore_patterns):
                continue
            if entry.is_dir() and not entry.is_symlink():
                pending.append(entry)
            elif entry.is_file():
                found.append(entry.relative_to(root_path).as_posix())
    return sorted(found)


def verify_tree(
    root: DirectoryNode,
    root_path: Path,
    digest_algorithm: DigestAlgorithm = DigestAlgorithm.SHA256,
    ignore_patterns: Optional[List[str]] = None,
) -> IntegrityResult:
    """Verify a mirrored tree against the directory it mirrors.

    Use the same algorithm and ignore patterns the mirror was configured
    with, otherwise every file reports as mismatched or missing.

    Args:
        root: Root node of the mirror
        root_path: Directory the root mirrors
        digest_algorithm: Algorithm the mirror used for its digests
        ignore_patterns: Entry names the mirror skips

    Returns:
        IntegrityResult with verification statistics
    """
    result = IntegrityResult()
    root_path = Path(root_path)
    ignore_patterns = list(ignore_patterns) if ignore_patterns is not None else [".git"]

    if not root_path.is_dir():
        result.errors.append(f"Mirrored directory does not exist: {root_path}")
        return result

    result.tree_hashes = tree_digests(root)

    try:
        on_disk = _disk_files(root_path, ignore_patterns)
    except OSError as e:
        result.errors.append(f"Failed to list {root_path}: {e}")
        return result

    unreadable = set()
    for rel_path in on_disk:
        try:
            result.disk_hashes[rel_path] = hash_file(root_path / rel_path, digest_algorithm)
        except (OSError, ValueError) as e:
            unreadable.add(rel_path)
            result.errors.append(f"{rel_path}: {e}")

    tree_files = set(result.tree_hashes)
    disk_files = set(result.disk_hashes)

    result.missing_on_disk = sorted(tree_files - disk_files - unreadable)
    result.missing_in_tree = sorted(disk_files - tree_files)

    for rel_path in sorted(tree_files & disk_files):
        if result.tree_hashes[rel_path] == result.disk_hashes[rel_path]:
            result.verified_count += 1
        else:
            result.mismatched_files.append(rel_path)

    return result
