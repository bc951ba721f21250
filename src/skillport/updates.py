"""Update detection for installed skills."""

from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import Path
from typing import Callable

from skillport.discovery import Discoverer
from skillport.errors import InstallFailed, SkillNotInstalled, SkillPortError
from skillport.install import Installer, InstallRequest
from skillport.lockfile import LockStore, SkillLockEntry, compute_content_hash
from skillport.paths import canonical_skills_dir, sanitize_name
from skillport.types import CloneProgress, InstallProgress, InstallResults, Scope, SkillUpdateInfo

logger = logging.getLogger(__name__)


class UpdateChecker:
    """Compares installed skills against their sources.

    Follows Separate Use from Creation: constructor requires all dependencies.
    Use factory method `create()` for production instantiation with defaults.
    """

    def __init__(self, lockstore: LockStore, discoverer: Discoverer, installer: Installer) -> None:
        """Initialize update checker with required dependencies.

        Args:
            lockstore: Lock file store (required).
            discoverer: Source fetcher (required).
            installer: Installer used to apply updates (required).
        """
        self.lockstore = lockstore
        self.discoverer = discoverer
        self.installer = installer

    @classmethod
    def create(
        cls,
        lockstore: LockStore | None = None,
        discoverer: Discoverer | None = None,
        installer: Installer | None = None,
    ) -> UpdateChecker:
        """Factory method for production instantiation.

        Args:
            lockstore: Optional lock store (created if not provided).
            discoverer: Optional source fetcher (created if not provided).
            installer: Optional installer (created if not provided).

        Returns:
            Configured UpdateChecker instance.
        """
        lockstore = lockstore or LockStore.create_default()
        discoverer = discoverer or Discoverer.create()
        return cls(
            lockstore=lockstore,
            discoverer=discoverer,
            installer=installer or Installer.create(lockstore=lockstore, discoverer=discoverer),
        )

    def check_updates(self, scope: Scope, project_path: Path | None = None) -> list[SkillUpdateInfo]:
        """Check every installed skill in a scope for upstream changes.

        Each source is fetched once. A skill has an update when the hash of
        its upstream directory differs from the recorded hash. An entry
        without a recorded hash is first baselined from its installed copy.
        Skills whose source cannot be fetched or read are left out and
        logged.

        Args:
            scope: Installation scope.
            project_path: Project root for project scope.

        Returns:
            Update status per reachable skill, in lock order.
        """
        by_source: dict[str, list[SkillLockEntry]] = defaultdict(list)
        for entry in self.lockstore.list_entries(scope, project_path):
            by_source[entry.source].append(entry)

        updates: list[SkillUpdateInfo] = []
        for source, entries in by_source.items():
            try:
                updates.extend(self._check_source(scope, source, entries, project_path))
            except (SkillPortError, OSError) as e:
                logger.warning("Could not check %s for updates: %s", source, e)
        return updates

    def _check_source(
        self,
        scope: Scope,
        source: str,
        entries: list[SkillLockEntry],
        project_path: Path | None,
    ) -> list[SkillUpdateInfo]:
        with self.discoverer.checkout(source, include_internal=True) as checkout:
            upstream = {skill.name: skill for skill in checkout.skills}
            infos = []
            for entry in entries:
                skill = upstream.get(entry.name)
                recorded = entry.content_hash or self._baseline(scope, entry, project_path)
                if skill is None:
                    logger.info("Skill %s no longer exists in %s", entry.name, source)
                    has_update = False
                elif not recorded:
                    logger.info("No content hash known for %s, not checked", entry.name)
                    has_update = False
                else:
                    has_update = compute_content_hash(skill.path) != recorded
                infos.append(SkillUpdateInfo(name=entry.name, source=source, has_update=has_update))
            return infos

    def _baseline(self, scope: Scope, entry: SkillLockEntry, project_path: Path | None) -> str:
        """Record the hash of an installed copy whose lock entry has none.

        Returns:
            The recorded hash, or an empty string if there is no copy to hash.
        """
        if entry.canonical_path:
            canonical = Path(entry.canonical_path)
        else:
            canonical = canonical_skills_dir(scope, project_path) / sanitize_name(entry.name)
        if not canonical.is_dir():
            return ""

        content_hash = compute_content_hash(canonical)
        with self.lockstore.transaction(scope, project_path) as lock:
            stored = lock.skills.get(entry.name)
            if stored is not None and not stored.content_hash:
                stored.content_hash = content_hash
        logger.debug("Baselined content hash of %s from %s", entry.name, canonical)
        return content_hash

    def update_skill(
        self,
        scope: Scope,
        name: str,
        project_path: Path | None = None,
        on_progress: Callable[[InstallProgress], None] | None = None,
        on_clone_progress: Callable[[CloneProgress], None] | None = None,
    ) -> InstallResults:
        """Reinstall a skill from its recorded source for its recorded agents.

        Args:
            scope: Installation scope.
            name: Skill name.
            project_path: Project root for project scope.
            on_progress: Listener for install progress events.
            on_clone_progress: Listener for clone progress events.

        Returns:
            Install results.

        Raises:
            SkillNotInstalled: If the skill has no lock entry.
            InstallFailed: If no agent could be updated.
        """
        entry = self.lockstore.get_entry(scope, name, project_path)
        if entry is None:
            raise SkillNotInstalled(
                f"Skill '{name}' is not installed",
                ["Run 'skillport list' to see installed skills"],
            )

        request = InstallRequest(
            source=entry.source,
            skills=[entry.name],
            agents=entry.agents,
            scope=scope,
            project_path=project_path,
            mode=entry.install_mode,
        )
        results = self.installer.install(request, on_progress, on_clone_progress)
        if results.failed and not results.successful:
            errors = "; ".join(f"{r.agent}: {r.error}" for r in results.failed)
            raise InstallFailed(f"Update of '{name}' failed: {errors}")
        return results
