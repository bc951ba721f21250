"""Application context for dependency injection.

This module separates object creation from object use, enabling testability
and reducing coupling in CLI commands.

Dependencies are typed using Protocols (abstract interfaces) rather than
concrete implementations, so test doubles can be injected without
inheritance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from skillport.protocols import (
    AuditService,
    FileSystem,
    SkillInstaller,
    SkillLockRepository,
    SkillRemover,
    SkillSourceFetcher,
    UpdateService,
)

if TYPE_CHECKING:
    from skillport.config import Settings, SettingsManager


def _default_filesystem() -> FileSystem:
    """Create the default filesystem implementation."""
    from skillport.filesystem import RealFileSystem

    return RealFileSystem()


@dataclass
class AppContext:
    """Container for application dependencies.

    Provides a single injection point for all services used by CLI commands.
    """

    settings: Settings
    settings_manager: SettingsManager
    lockstore: SkillLockRepository
    discoverer: SkillSourceFetcher
    installer: SkillInstaller
    uninstaller: SkillRemover
    updater: UpdateService
    audit: AuditService | None = None
    filesystem: FileSystem = field(default_factory=_default_filesystem)


def create_context(
    settings_dir: Path | None = None,
    lock_dir: Path | None = None,
) -> AppContext:
    """Factory for application dependencies.

    Creates all services with proper wiring. Use this in production code.
    For tests, construct AppContext directly with test doubles.

    Args:
        settings_dir: Override settings directory (for testing).
        lock_dir: Override global lock directory (for testing).

    Returns:
        Configured AppContext with all dependencies.

    Raises:
        ConfigError: If the settings file is invalid.
    """
    from skillport.audit import AuditClient
    from skillport.config import SettingsManager
    from skillport.discovery import Discoverer
    from skillport.filesystem import RealFileSystem
    from skillport.gitops import GitOps
    from skillport.install import Installer
    from skillport.lockfile import LockStore
    from skillport.uninstall import Uninstaller
    from skillport.updates import UpdateChecker

    settings_manager = (
        SettingsManager.create(settings_dir) if settings_dir else SettingsManager.create_default()
    )
    settings = settings_manager.load()

    lockstore = LockStore.create(lock_dir) if lock_dir else LockStore.create_default()
    filesystem = RealFileSystem()
    discoverer = Discoverer.create(
        gitops=GitOps.create(settings.clone_timeout_secs),
        aliases=settings_manager.merged_aliases(settings),
    )
    installer = Installer.create(lockstore=lockstore, discoverer=discoverer, filesystem=filesystem)

    return AppContext(
        settings=settings,
        settings_manager=settings_manager,
        lockstore=lockstore,
        discoverer=discoverer,
        installer=installer,
        uninstaller=Uninstaller.create(lockstore=lockstore, filesystem=filesystem),
        updater=UpdateChecker.create(lockstore=lockstore, discoverer=discoverer, installer=installer),
        audit=AuditClient.create(settings.audit_timeout_secs) if settings.audit_enabled else None,
        filesystem=filesystem,
    )
