"""Git-backed snapshot source.

Keeps a working copy of one branch of a remote repository by invoking the
``git`` executable:

- first use: ``git clone --branch <branch> --recurse-submodules``
- refresh: ``git fetch --prune``, ``git reset --hard origin/<branch>``,
  ``git clean -fd``

The reset and clean complete before ``refresh()`` returns, so the working
copy is a consistent snapshot whenever the mirror reconciles it. A refresh
reports ``changed`` only when HEAD moved to a different commit.
"""

import base64
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

from .base import SnapshotSource, SourceResult
from ..config import RemoteConfig
from ..errors import SourceError


class GitSource(SnapshotSource):
    """Working copy of a remote branch.

    Attributes:
        remote: Remote repository configuration
    """

    def __init__(self, remote: RemoteConfig):
        super().__init__()
        self.remote = remote
        self._commit: Optional[str] = None

    @property
    def path(self) -> Path:
        return self.remote.checkout_path

    @property
    def revision(self) -> Optional[str]:
        """Commit sha of the current snapshot."""
        return self._commit

    @property
    def commit(self) -> Optional[str]:
        """Alias of ``revision``: the sha HEAD points at after the last refresh."""
        return self._commit

    def _auth_args(self) -> List[str]:
        """Per-command config carrying the access token, never written to disk."""
        if not self.remote.access_token:
            return []
        credentials = base64.b64encode(
            f"{self.remote.access_token}:".encode("utf-8")
        ).decode("ascii")
        return ["-c", f"http.extraHeader=Authorization: Basic {credentials}"]

    def _run_git(self, args: List[str], cwd: Optional[Path] = None) -> Tuple[int, str, str]:
        """Run a git command and return results.

        Args:
            args: git subcommand and its arguments
            cwd: Working directory (defaults to the checkout)

        Returns:
            Tuple of (return_code, stdout, stderr)
        """
        cmd = [self.remote.git_executable, *self._auth_args(), *args]
        self.logger.debug(f"Running command: git {' '.join(args)}")
        try:
            result = subprocess.run(
                cmd,
                cwd=str(cwd or self.path),
                capture_output=True,
                text=True,
                timeout=self.remote.timeout_s,
            )
            return result.returncode, result.stdout, result.stderr
        except subprocess.TimeoutExpired:
            return -1, "", f"git {args[0]} timed out after {self.remote.timeout_s}s"
        except FileNotFoundError:
            return -1, "", f"Command not found: {self.remote.git_executable}"

    def _git(self, *args: str, cwd: Optional[Path] = None) -> str:
        """Run a git command, raising SourceError on failure."""
        code, stdout, stderr = self._run_git(list(args), cwd)
        if code != 0:
            raise SourceError(f"git {args[0]} failed ({code}): {stderr.strip()}")
        return stdout.strip()

    def is_cloned(self) -> bool:
        return (self.path / ".git").exists()

    def prepare(self) -> SourceResult:
        """Clone the repository if needed, then bring it up to date."""
        if not self.is_cloned():
            try:
                self.remote.cache_root.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise SourceError(f"Cannot create cache directory {self.remote.cache_root}: {e}") from e
            self.logger.info(f"Cloning {self.remote.url} ({self.remote.branch}) into {self.path}")
            self._git(
                "clone",
                "--branch", self.remote.branch,
                "--recurse-submodules",
                self.remote.url,
                str(self.path),
                cwd=self.remote.cache_root,
            )
        return self.refresh()

    def refresh(self) -> SourceResult:
        """Fetch the branch and hard-reset the working copy to it."""
        if not self.is_cloned():
            raise SourceError(f"No working copy at {self.path}; call prepare() first")

        self._git("fetch", "--prune", "origin")
        self._git("reset", "--hard", f"origin/{self.remote.branch}")
        self._git("clean", "-fd")
        commit = self._git("rev-parse", "HEAD")

        changed = commit != self._commit
        previous = self._commit
        self._commit = commit

        if changed:
            self.logger.info(
                f"{self.remote.url}@{self.remote.branch}: "
                f"{previous[:10] if previous else 'none'} -> {commit[:10]}"
            )
        return SourceResult(
            success=True,
            changed=changed,
            message="Updated" if changed else "Up to date",
            revision=commit,
        )
