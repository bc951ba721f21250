"""Protocol definitions for core abstractions.

This module defines abstract interfaces (Protocols) for the core services.
Designing to interfaces enables:
- Loose coupling between components
- Easy substitution of test doubles
- Clear contracts for implementations

All concrete implementations satisfy these protocols structurally (duck typing).
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Protocol, runtime_checkable

from skillport.types import (
    CloneProgress,
    InstallProgress,
    InstallResults,
    RemoveResult,
    Scope,
    SkillAgentDetails,
    SkillUpdateInfo,
)

if TYPE_CHECKING:
    from skillport.audit import SkillAuditData
    from skillport.discovery import FetchResult, SourceCheckout
    from skillport.install import InstallRequest
    from skillport.lockfile import SkillLockEntry
    from skillport.source import ResolvedSource
    from skillport.uninstall import RemoveRequest


@runtime_checkable
class FileSystem(Protocol):
    """Protocol for the filesystem operations installs and removals need."""

    def exists(self, path: Path) -> bool: ...

    def lexists(self, path: Path) -> bool:
        """Check if a path exists without following symlinks."""
        ...

    def is_symlink(self, path: Path) -> bool: ...

    def mkdir(self, path: Path, parents: bool = False, exist_ok: bool = False) -> None: ...

    def symlink(self, target: Path, link: Path) -> None:
        """Create a symlink at ``link`` pointing to ``target``.

        Raises:
            OSError: If the platform or filesystem refuses the link.
        """
        ...

    def copytree(self, src: Path, dst: Path) -> None: ...

    def replace(self, src: Path, dst: Path) -> None: ...

    def remove(self, path: Path) -> None:
        """Remove a file, symlink or tree without following links."""
        ...


@runtime_checkable
class SkillSourceFetcher(Protocol):
    """Protocol for fetching sources and listing their skills."""

    def resolve(self, source: str | ResolvedSource) -> ResolvedSource: ...

    def fetch(
        self,
        source: str | ResolvedSource,
        on_progress: Callable[[CloneProgress], None] | None = None,
    ) -> FetchResult:
        """List the skills available from a source.

        Args:
            source: Source string or resolved source.
            on_progress: Listener for clone progress events.

        Returns:
            The resolved source and its skills.
        """
        ...

    def checkout(
        self,
        source: str | ResolvedSource,
        on_progress: Callable[[CloneProgress], None] | None = None,
        include_internal: bool = False,
    ) -> AbstractContextManager[SourceCheckout]: ...


@runtime_checkable
class SkillInstaller(Protocol):
    """Protocol for installing skills."""

    def check_overwrites(
        self,
        skills: list[str],
        agents: list[str],
        scope: Scope,
        project_path: Path | None = None,
    ) -> dict[str, list[str]]: ...

    def install(
        self,
        request: InstallRequest,
        on_progress: Callable[[InstallProgress], None] | None = None,
        on_clone_progress: Callable[[CloneProgress], None] | None = None,
    ) -> InstallResults:
        """Install skills for agents.

        Args:
            request: What to install.
            on_progress: Listener for install progress events.
            on_clone_progress: Listener for clone progress events.

        Returns:
            Aggregate results with successes, failures and fallback agents.
        """
        ...


@runtime_checkable
class SkillRemover(Protocol):
    """Protocol for removing skills."""

    def get_skill_agent_details(
        self, scope: Scope, name: str, project_path: Path | None = None
    ) -> SkillAgentDetails: ...

    def remove(self, request: RemoveRequest) -> RemoveResult: ...


@runtime_checkable
class SkillLockRepository(Protocol):
    """Protocol for lock file access."""

    def get_entry(
        self, scope: Scope, name: str, project_path: Path | None = None
    ) -> SkillLockEntry | None: ...

    def list_entries(self, scope: Scope, project_path: Path | None = None) -> list[SkillLockEntry]: ...

    def remove_entry(self, scope: Scope, name: str, project_path: Path | None = None) -> bool: ...

    def find_conflicts(self, project_path: Path | None = None) -> list[str]: ...

    def get_last_selected_agents(self) -> list[str]: ...


@runtime_checkable
class UpdateService(Protocol):
    """Protocol for update detection and application."""

    def check_updates(self, scope: Scope, project_path: Path | None = None) -> list[SkillUpdateInfo]: ...

    def update_skill(self, scope: Scope, name: str, project_path: Path | None = None) -> InstallResults: ...


@runtime_checkable
class AuditService(Protocol):
    """Protocol for advisory risk lookups."""

    def check_skill_audit(
        self, source: str, skill_names: list[str]
    ) -> dict[str, SkillAuditData] | None: ...


__all__ = [
    "AuditService",
    "FileSystem",
    "SkillInstaller",
    "SkillLockRepository",
    "SkillRemover",
    "SkillSourceFetcher",
    "UpdateService",
]
