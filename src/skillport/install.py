"""Installation of skills into canonical storage and agent directories."""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from skillport.agents import AgentDescriptor, projection_path, validate_agents
from skillport.discovery import Discoverer
from skillport.errors import NoSkillsFound
from skillport.events import emit
from skillport.filesystem import RealFileSystem
from skillport.lockfile import LockStore, Projection, SkillLockEntry, compute_content_hash
from skillport.paths import canonical_skills_dir, sanitize_name
from skillport.protocols import FileSystem
from skillport.source import ResolvedSource
from skillport.types import (
    AvailableSkill,
    CloneProgress,
    Copied,
    InstallMode,
    InstallProgress,
    InstallResult,
    InstallResults,
    ProjectionOutcome,
    Scope,
    Symlinked,
)

logger = logging.getLogger(__name__)


@dataclass
class InstallRequest:
    """What to install, where, and how.

    Attributes:
        source: Source string or resolved source.
        skills: Names of the skills to install.
        agents: Agent identifiers to install for.
        scope: Installation scope.
        project_path: Project root for project scope. Defaults to cwd.
        mode: Symlink (with copy fallback) or copy.
    """

    source: str | ResolvedSource
    skills: list[str]
    agents: list[str]
    scope: Scope = Scope.PROJECT
    project_path: Path | None = None
    mode: InstallMode = InstallMode.SYMLINK


class Installer:
    """Materializes skills once per scope and projects them into agents.

    Follows Separate Use from Creation: constructor requires all dependencies.
    Use factory method `create()` for production instantiation with defaults.
    """

    def __init__(
        self,
        lockstore: LockStore,
        discoverer: Discoverer,
        filesystem: FileSystem,
    ) -> None:
        """Initialize installer with required dependencies.

        Args:
            lockstore: Lock file store (required).
            discoverer: Source fetcher (required).
            filesystem: Filesystem abstraction (required).

        Note:
            Use factory method `create()` for production code.
            Direct construction is for testing with explicit dependencies.
        """
        self.lockstore = lockstore
        self.discoverer = discoverer
        self.fs = filesystem

    @classmethod
    def create(
        cls,
        lockstore: LockStore | None = None,
        discoverer: Discoverer | None = None,
        filesystem: FileSystem | None = None,
    ) -> Installer:
        """Factory method for production instantiation.

        Args:
            lockstore: Optional lock store (created if not provided).
            discoverer: Optional source fetcher (created if not provided).
            filesystem: Optional filesystem abstraction (created if not provided).

        Returns:
            Configured Installer instance.
        """
        return cls(
            lockstore=lockstore or LockStore.create_default(),
            discoverer=discoverer or Discoverer.create(),
            filesystem=filesystem or RealFileSystem(),
        )

    def check_overwrites(
        self,
        skills: list[str],
        agents: list[str],
        scope: Scope,
        project_path: Path | None = None,
    ) -> dict[str, list[str]]:
        """Find agents that already have each skill.

        Pure read: nothing is created or removed.

        Args:
            skills: Skill names.
            agents: Agent identifiers.
            scope: Installation scope.
            project_path: Project root for project scope.

        Returns:
            Dict of skill name to the agents whose projection path exists.
            Skills without existing projections are omitted.

        Raises:
            InvalidAgent: If an agent is not supported.
        """
        validate_agents(agents)
        overwrites: dict[str, list[str]] = {}
        for skill in skills:
            existing = [
                agent_id
                for agent_id in agents
                if self.fs.lexists(projection_path(agent_id, scope, skill, project_path))
            ]
            if existing:
                overwrites[skill] = existing
        return overwrites

    def install(
        self,
        request: InstallRequest,
        on_progress: Callable[[InstallProgress], None] | None = None,
        on_clone_progress: Callable[[CloneProgress], None] | None = None,
    ) -> InstallResults:
        """Install skills for agents.

        Per-(skill, agent) failures are collected into ``failed`` and the
        batch continues.

        Args:
            request: What to install.
            on_progress: Listener for install progress events.
            on_clone_progress: Listener for clone progress events.

        Returns:
            Aggregate results.

        Raises:
            InvalidAgent: If an agent is not supported.
            InvalidSource: If the source cannot be parsed.
            GitOpsError: If the source cannot be cloned.
            NoSkillsFound: If none of the requested skills exist.
            LockWriteError: If the lock file cannot be written.
        """
        agents = validate_agents(request.agents)

        with self.discoverer.checkout(
            request.source, on_clone_progress, include_internal=True
        ) as checkout:
            selected = self._select(checkout.skills, request.skills, checkout.resolved.source)
            results = InstallResults()
            fallback_agents: dict[str, None] = {}
            entries: list[SkillLockEntry] = []
            total = len(selected)

            for index, skill in enumerate(selected):
                emit(on_progress, InstallProgress("installing", skill.name, index, total))
                entry = self._install_skill(
                    skill, agents, request, checkout.resolved, results, fallback_agents
                )
                if entry is not None:
                    entries.append(entry)

        emit(on_progress, InstallProgress("writing_lock", "", total, total))
        for entry in entries:
            self.lockstore.upsert_entry(request.scope, entry, request.project_path)
        self.lockstore.save_selected_agents(request.agents)

        results.symlink_fallback_agents = list(fallback_agents)
        return results

    def _select(
        self, available: list[AvailableSkill], names: list[str], source: str
    ) -> list[AvailableSkill]:
        wanted = {name.lower() for name in names}
        selected = [skill for skill in available if skill.name.lower() in wanted]
        missing = wanted - {skill.name.lower() for skill in selected}
        for name in sorted(missing):
            logger.warning("Skill %s not found in %s", name, source)
        if not selected:
            raise NoSkillsFound(
                f"None of the requested skills were found in {source}",
                [f"Available skills: {', '.join(s.name for s in available)}"],
            )
        return selected

    def _install_skill(
        self,
        skill: AvailableSkill,
        agents: list[AgentDescriptor],
        request: InstallRequest,
        resolved: ResolvedSource,
        results: InstallResults,
        fallback_agents: dict[str, None],
    ) -> SkillLockEntry | None:
        """Materialize one skill and project it into every agent."""
        try:
            canonical = self._materialize(skill, request.scope, request.project_path)
            content_hash = compute_content_hash(canonical)
        except OSError as e:
            logger.exception("Failed to materialize %s", skill.name)
            for agent in agents:
                results.failed.append(
                    InstallResult(skill.name, agent.id, success=False, error=f"{e}")
                )
            return None

        projections: list[Projection] = []
        universal: list[str] = []

        for agent in agents:
            if agent.is_universal:
                universal.append(agent.id)
                results.successful.append(
                    InstallResult(
                        skill.name, agent.id, success=True, path=canonical, canonical_path=canonical
                    )
                )
                continue

            target = projection_path(agent.id, request.scope, skill.name, request.project_path)
            try:
                outcome = self._project(canonical, target, request.mode)
            except OSError as e:
                logger.exception("Installation failed for %s on %s", skill.name, agent.id)
                results.failed.append(
                    InstallResult(skill.name, agent.id, success=False, error=str(e))
                )
                continue

            result = InstallResult(
                skill.name,
                agent.id,
                success=True,
                path=target,
                canonical_path=canonical,
                outcome=outcome,
            )
            if result.symlink_failed:
                fallback_agents.setdefault(agent.id, None)
            results.successful.append(result)
            is_symlink = isinstance(outcome, Symlinked)
            projections.append(
                Projection(
                    agent_id=agent.id,
                    path=str(target),
                    mode=InstallMode.SYMLINK if is_symlink else InstallMode.COPY,
                    is_symlink=is_symlink,
                )
            )

        if not projections and not universal:
            return None

        descriptor = resolved.descriptor
        skill_path = "SKILL.md" if skill.relative_path == "." else f"{skill.relative_path}/SKILL.md"
        return SkillLockEntry(
            name=skill.name,
            canonical_path=str(canonical),
            source=resolved.source,
            source_type=descriptor.kind,
            source_url=descriptor.clone_url or descriptor.identity,
            skill_path=skill_path,
            content_hash=content_hash,
            plugin_name=skill.plugin_name,
            install_mode=request.mode,
            universal_agents=universal,
            projections=projections,
        )

    def _materialize(self, skill: AvailableSkill, scope: Scope, project_path: Path | None) -> Path:
        """Copy a skill into canonical storage, replacing any previous copy.

        The copy is staged in a hidden sibling directory and renamed into
        place, so a failed copy leaves the previous copy untouched.
        """
        canonical = canonical_skills_dir(scope, project_path) / sanitize_name(skill.name)
        if skill.path.resolve() == canonical.resolve():
            return canonical
        self.fs.mkdir(canonical.parent, parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(dir=canonical.parent, prefix=f".{canonical.name}."))
        staged, previous = staging / "new", staging / "old"
        try:
            self.fs.copytree(skill.path, staged)
            if self.fs.lexists(canonical):
                self.fs.replace(canonical, previous)
            try:
                self.fs.replace(staged, canonical)
            except OSError:
                if self.fs.lexists(previous):
                    self.fs.replace(previous, canonical)
                raise
        finally:
            self.fs.remove(staging)
        logger.debug("Materialized %s at %s", skill.name, canonical)
        return canonical

    def _project(self, canonical: Path, target: Path, mode: InstallMode) -> ProjectionOutcome:
        """Make a skill visible at an agent's path.

        Symlink mode links relative to the target's directory and falls
        back to a copy when the link cannot be created.
        """
        self.fs.mkdir(target.parent, parents=True, exist_ok=True)
        if target.parent.resolve() / target.name == canonical.resolve():
            return Symlinked()

        self.fs.remove(target)
        if mode == InstallMode.COPY:
            self.fs.copytree(canonical, target)
            return Copied(reason="copy mode")

        link_target = Path(os.path.relpath(canonical.resolve(), target.parent.resolve()))
        try:
            self.fs.symlink(link_target, target)
            return Symlinked()
        except OSError as e:
            logger.warning("Symlink failed for %s, copying instead: %s", target, e)
            self.fs.remove(target)
            self.fs.copytree(canonical, target)
            return Copied(reason=str(e), fallback=True)
