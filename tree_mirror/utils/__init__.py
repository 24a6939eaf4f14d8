"""Utility modules for Tree Mirror.

This package provides:
- hashing: Content digests for change detection
- logging: Configured logging with JSON/text output support
"""

from tree_mirror.utils.hashing import digest_bytes, get_hasher, hash_file
from tree_mirror.utils.logging import configure_root_logger, get_logger

__all__ = [
    "digest_bytes",
    "get_hasher",
    "hash_file",
    "get_logger",
    "configure_root_logger",
]
