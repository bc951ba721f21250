"""Exception hierarchy for skillport.

Resolution and discovery errors abort an operation before anything is
written. Per-item install failures are collected into results instead of
raised. Lock write failures are always fatal.
"""

from __future__ import annotations


class SkillPortError(Exception):
    """Base class for all skillport errors.

    Attributes:
        suggestions: Human-readable hints shown alongside the message.
    """

    def __init__(self, message: str, suggestions: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.suggestions = suggestions or []


class InvalidSource(SkillPortError):
    """The source string could not be parsed."""


class NoSkillsFound(SkillPortError):
    """A source contained no installable skills."""


class PathNotFound(SkillPortError):
    """A local source path or subpath does not exist."""


class InvalidAgent(SkillPortError):
    """An agent identifier is unknown or not allowed for the operation."""


class InstallFailed(SkillPortError):
    """Installing one skill for one agent failed."""


class SkillNotInstalled(SkillPortError):
    """No lock entry exists for the named skill."""


class ManifestError(SkillPortError):
    """A SKILL.md or plugin manifest could not be read or parsed."""


class ConfigError(SkillPortError):
    """Settings could not be read, validated or written."""


class LockWriteError(SkillPortError):
    """The lock file could not be written."""


class GitOpsError(SkillPortError):
    """Error during git operations."""


class GitTimeout(GitOpsError):
    """The clone did not finish within the allotted time."""

    def __init__(self, url: str, timeout_secs: int) -> None:
        super().__init__(
            f"Clone of {url} timed out after {timeout_secs}s",
            [
                "Check your network connection",
                "Large repositories may need a longer cloneTimeoutSecs setting",
            ],
        )
        self.url = url
        self.timeout_secs = timeout_secs


class GitNetworkError(GitOpsError):
    """DNS, connection or TLS failure talking to the remote."""


class GitAuthFailed(GitOpsError):
    """The remote rejected our credentials or asked for them."""


class GitRepoNotFound(GitOpsError):
    """The remote repository does not exist or is not visible."""


class GitRefNotFound(GitOpsError):
    """The requested branch or tag does not exist."""


class GitCloneFailed(GitOpsError):
    """Any other clone failure."""
