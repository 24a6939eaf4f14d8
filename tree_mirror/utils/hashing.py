"""Content digest utilities.

Digests are only used to test file contents for equality between passes,
never for security. xxhash is used when requested and installed.
"""

import hashlib
from pathlib import Path
from typing import Union

from tree_mirror.config import DigestAlgorithm

try:
    import xxhash
    XXHASH_AVAILABLE = True
except ImportError:
    XXHASH_AVAILABLE = False

# Buffer size for file reading (64KB is good for most filesystems)
BUFFER_SIZE = 65536


def get_hasher(algorithm: Union[DigestAlgorithm, str] = DigestAlgorithm.SHA256):
    """Create a fresh hasher object for the given algorithm.

    Args:
        algorithm: DigestAlgorithm or its string value.
                   AUTO uses xxhash if available, else md5

    Returns:
        Object with ``update()`` and ``hexdigest()``

    Raises:
        ImportError: If xxhash is requested but not installed
        ValueError: If the algorithm is unknown
    """
    if isinstance(algorithm, str):
        try:
            algorithm = DigestAlgorithm(algorithm.lower())
        except ValueError:
            raise ValueError(f"Unknown algorithm: {algorithm}") from None

    if algorithm == DigestAlgorithm.AUTO:
        return xxhash.xxh64() if XXHASH_AVAILABLE else hashlib.md5()
    if algorithm == DigestAlgorithm.XXHASH:
        if not XXHASH_AVAILABLE:
            raise ImportError("xxhash not installed. Install with: pip install tree-mirror[fast]")
        return xxhash.xxh64()
    if algorithm == DigestAlgorithm.MD5:
        return hashlib.md5()
    return hashlib.sha256()


def digest_bytes(
    data: bytes,
    algorithm: Union[DigestAlgorithm, str] = DigestAlgorithm.SHA256
) -> str:
    """Hex digest of an in-memory payload."""
    hasher = get_hasher(algorithm)
    hasher.update(data)
    return hasher.hexdigest()


def hash_file(
    file_path: Path,
    algorithm: Union[DigestAlgorithm, str] = DigestAlgorithm.SHA256
) -> str:
    """Compute the digest of a file on disk, reading it in chunks.

    Produces the same value as ``digest_bytes(path.read_bytes())``.

    Args:
        file_path: Path to the file to hash
        algorithm: Digest algorithm

    Returns:
        Hex digest of the file contents

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the path is not a regular file
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")

    if not file_path.is_file():
        raise ValueError(f"Not a file: {file_path}")

    hasher = get_hasher(algorithm)
    with open(file_path, "rb") as f:
        while True:
            data = f.read(BUFFER_SIZE)
            if not data:
                break
            hasher.update(data)

    return hasher.hexdigest()
