"""Git operations for fetching skill sources."""

from __future__ import annotations

import logging
import shutil
import tempfile
import time
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from contextlib import contextmanager
from pathlib import Path
from typing import Callable

from git import Git
from git.exc import GitCommandError, GitCommandNotFound

from skillport.errors import (
    GitAuthFailed,
    GitCloneFailed,
    GitNetworkError,
    GitOpsError,
    GitRefNotFound,
    GitRepoNotFound,
    GitTimeout,
)
from skillport.events import emit
from skillport.types import CloneProgress

logger = logging.getLogger(__name__)

DEFAULT_CLONE_TIMEOUT_SECS = 120

# Credential prompts would block until the timeout kills the clone.
GIT_ENV = {
    "GIT_TERMINAL_PROMPT": "0",
    "GCM_INTERACTIVE": "never",
}

_AUTH_MARKERS = ("authentication failed", "could not read username", "permission denied")
_DNS_MARKERS = ("could not resolve host", "unable to resolve", "name or service not known")
_CONNECTION_MARKERS = (
    "connection timed out",
    "connection refused",
    "network is unreachable",
    "no route to host",
)
_TLS_MARKERS = ("ssl certificate", "certificate verify failed", "ssl_error")
_REF_MARKERS = ("remote branch", "did not match any", "not a valid ref")
_REPO_MARKERS = ("repository not found", "does not exist")


def classify_git_error(stderr: str, url: str) -> GitOpsError:
    """Map git's stderr to a specific error with suggestions.

    Args:
        stderr: Error output from git.
        url: Remote being cloned.

    Returns:
        The most specific matching error.
    """
    text = stderr.lower()

    if any(marker in text for marker in _AUTH_MARKERS):
        return GitAuthFailed(
            f"Authentication failed for {url}",
            [
                "Make sure you have access to this repository",
                "For SSH remotes, check your keys with: ssh -T git@github.com",
                "For GitHub over HTTPS, run: gh auth login",
            ],
        )
    if any(marker in text for marker in _DNS_MARKERS):
        return GitNetworkError(
            f"Could not resolve the host for {url}",
            ["Check your internet connection", "Check DNS or proxy settings"],
        )
    if any(marker in text for marker in _CONNECTION_MARKERS):
        return GitNetworkError(
            f"Could not connect to the remote for {url}",
            ["Check your internet connection", "Check firewall or proxy settings"],
        )
    if any(marker in text for marker in _TLS_MARKERS):
        return GitNetworkError(
            f"TLS certificate error talking to {url}",
            ["Check the system certificate store", "Check for an intercepting proxy"],
        )
    if any(marker in text for marker in _REF_MARKERS) or ("not found" in text and "branch" in text):
        return GitRefNotFound(
            f"Branch or tag not found in {url}",
            ["Check the branch or tag name", "Omit the ref to use the default branch"],
        )
    if any(marker in text for marker in _REPO_MARKERS):
        return GitRepoNotFound(
            f"Repository not found: {url}",
            ["Check the owner and repository name", "Private repositories need credentials"],
        )
    return GitCloneFailed(f"Failed to clone {url}: {stderr.strip()}")


class GitOps:
    """Shallow clones of skill sources into temporary directories."""

    def __init__(
        self,
        timeout_secs: int = DEFAULT_CLONE_TIMEOUT_SECS,
        temp_root: Path | None = None,
    ) -> None:
        """Initialize git operations manager.

        Args:
            timeout_secs: Seconds before a clone is killed.
            temp_root: Parent directory for temporary clones. Defaults to the
                system temp directory.

        Note:
            Prefer using factory methods `create()` or `create_default()` for construction.
        """
        self.timeout_secs = timeout_secs
        self.temp_root = temp_root

    @classmethod
    def create(cls, timeout_secs: int, temp_root: Path | None = None) -> GitOps:
        """Create a git operations manager with a custom timeout.

        Args:
            timeout_secs: Seconds before a clone is killed.
            temp_root: Parent directory for temporary clones.

        Returns:
            Configured GitOps instance.
        """
        return cls(timeout_secs=timeout_secs, temp_root=temp_root)

    @classmethod
    def create_default(cls) -> GitOps:
        """Create a git operations manager with the default 120 second timeout.

        Returns:
            GitOps configured with defaults.
        """
        return cls()

    @contextmanager
    def clone(
        self,
        url: str,
        ref: str | None = None,
        on_progress: Callable[[CloneProgress], None] | None = None,
    ) -> Iterator[Path]:
        """Shallow-clone a repository and yield its path.

        The clone is deleted when the context exits.

        Args:
            url: Remote URL.
            ref: Branch or tag. Defaults to the remote's default branch.
            on_progress: Listener for clone progress events.

        Yields:
            Path to the working tree.

        Raises:
            GitOpsError: A classified clone failure.
        """
        temp_dir = Path(tempfile.mkdtemp(prefix="skillport-", dir=self.temp_root))
        repo_path = temp_dir / "repo"
        try:
            self._clone(url, ref, repo_path, on_progress)
            yield repo_path
        finally:
            shutil.rmtree(temp_dir, ignore_errors=True)

    def _clone(
        self,
        url: str,
        ref: str | None,
        path: Path,
        on_progress: Callable[[CloneProgress], None] | None,
    ) -> None:
        emit(on_progress, CloneProgress("connecting", 0, self.timeout_secs, f"Connecting to {url}"))
        start = time.monotonic()

        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="skillport-clone") as pool:
            future = pool.submit(self._run_git_clone, url, ref, path)
            while True:
                try:
                    future.result(timeout=1)
                    break
                except FutureTimeout:
                    elapsed = int(time.monotonic() - start)
                    emit(on_progress, CloneProgress("cloning", elapsed, self.timeout_secs))
                except GitCommandNotFound as e:
                    error = GitCloneFailed(
                        "git executable not found",
                        ["Install git and make sure it is on PATH"],
                    )
                    self._report_error(on_progress, start, error)
                    raise error from e
                except GitCommandError as e:
                    elapsed = int(time.monotonic() - start)
                    stderr = str(e.stderr or e)
                    if elapsed >= self.timeout_secs or "did not complete" in stderr:
                        error = GitTimeout(url, self.timeout_secs)
                    else:
                        error = classify_git_error(stderr, url)
                    logger.debug("Clone of %s failed: %s", url, stderr)
                    self._report_error(on_progress, start, error)
                    raise error from e

        elapsed = int(time.monotonic() - start)
        emit(on_progress, CloneProgress("done", elapsed, self.timeout_secs))
        logger.debug("Cloned %s in %ss", url, elapsed)

    def _run_git_clone(self, url: str, ref: str | None, path: Path) -> None:
        args = ["--depth", "1"]
        if ref:
            args += ["--branch", ref]
        Git().clone(
            *args,
            "--",
            url,
            str(path),
            env=GIT_ENV,
            kill_after_timeout=self.timeout_secs,
        )

    def _report_error(
        self,
        on_progress: Callable[[CloneProgress], None] | None,
        start: float,
        error: GitOpsError,
    ) -> None:
        elapsed = int(time.monotonic() - start)
        emit(on_progress, CloneProgress("error", elapsed, self.timeout_secs, error.message))
