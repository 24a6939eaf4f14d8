"""Configuration dataclasses for Tree Mirror."""

import hashlib
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional


class DigestAlgorithm(Enum):
    """Hash used to detect file content changes."""
    SHA256 = "sha256"
    MD5 = "md5"
    XXHASH = "xxhash"
    AUTO = "auto"           # xxhash when installed, else md5


@dataclass
class MirrorConfig:
    """Configuration for a single mirrored tree.

    Attributes:
        root_path: Directory whose contents are mirrored (filled in by the
                   git source when mirroring a remote)
        digest_algorithm: Hash used for content equality checks
        ignore_patterns: fnmatch patterns for entry names to leave out
        update_interval_s: Seconds between background refreshes (<= 0 disables)
        slow_callback_ms: Subscriber callbacks slower than this are logged
        log_file: Optional log file for the CLI
        json_logs: Emit JSON lines instead of text
    """
    root_path: Optional[Path] = None
    digest_algorithm: DigestAlgorithm = DigestAlgorithm.SHA256
    ignore_patterns: List[str] = field(default_factory=lambda: [".git"])
    update_interval_s: float = 30.0
    slow_callback_ms: float = 100.0
    log_file: Optional[Path] = None
    json_logs: bool = False

    def __post_init__(self):
        """Ensure paths are Path objects and the algorithm is an enum."""
        if isinstance(self.root_path, str):
            self.root_path = Path(self.root_path)
        if isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)
        if isinstance(self.digest_algorithm, str):
            self.digest_algorithm = DigestAlgorithm(self.digest_algorithm.lower())

    @property
    def background_updates(self) -> bool:
        """True when the refresh loop should run."""
        return self.update_interval_s > 0


@dataclass
class RemoteConfig:
    """Configuration for a git remote backing the mirror.

    Attributes:
        url: Remote repository URL
        branch: Branch to track
        access_token: Token sent as HTTP basic auth username (None for public repos)
        cache_root: Directory the checkout is created under
        git_executable: git binary to invoke
        timeout_s: Timeout for each git command
    """
    url: str
    branch: str = "main"
    access_token: Optional[str] = None
    cache_root: Path = field(default_factory=Path.cwd)
    git_executable: str = "git"
    timeout_s: float = 300.0

    def __post_init__(self):
        """Ensure paths are Path objects."""
        if isinstance(self.cache_root, str):
            self.cache_root = Path(self.cache_root)

    def checkout_dir_name(self) -> str:
        """Stable directory name for this url/branch pair."""
        url_hash = hashlib.sha256(self.url.encode("utf-8")).hexdigest().upper()
        safe_branch = re.sub(r"[^A-Za-z0-9._-]", "_", self.branch)
        return f".mirror-{url_hash[:10]}-{safe_branch}"

    @property
    def checkout_path(self) -> Path:
        """Where the working copy lives."""
        return self.cache_root / self.checkout_dir_name()
