"""Removal of installed skills.

The canonical copy is shared by every universal agent and by every
symlinked projection, so only a full removal may delete it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from skillport.agents import (
    get_agent,
    independent_agents,
    projection_path,
    universal_agents,
    validate_agents,
)
from skillport.errors import InvalidAgent
from skillport.filesystem import RealFileSystem
from skillport.lockfile import LockStore, SkillLockEntry, utc_now
from skillport.paths import canonical_skills_dir, sanitize_name
from skillport.protocols import FileSystem
from skillport.types import IndependentAgentInfo, RemoveResult, Scope, SkillAgentDetails

logger = logging.getLogger(__name__)


@dataclass
class RemoveRequest:
    """What to remove.

    Attributes:
        scope: Installation scope.
        name: Skill name.
        project_path: Project root for project scope. Defaults to cwd.
        full_removal: Remove everything, or only the named agents' projections.
        agents: Independent agents to detach for a partial removal.
    """

    scope: Scope
    name: str
    project_path: Path | None = None
    full_removal: bool = True
    agents: list[str] = field(default_factory=list)


class Uninstaller:
    """Removes projections, canonical copies and lock entries."""

    def __init__(self, lockstore: LockStore, filesystem: FileSystem) -> None:
        """Initialize uninstaller with required dependencies.

        Args:
            lockstore: Lock file store (required).
            filesystem: Filesystem abstraction (required).
        """
        self.lockstore = lockstore
        self.fs = filesystem

    @classmethod
    def create(
        cls,
        lockstore: LockStore | None = None,
        filesystem: FileSystem | None = None,
    ) -> Uninstaller:
        """Factory method for production instantiation.

        Args:
            lockstore: Optional lock store (created if not provided).
            filesystem: Optional filesystem abstraction (created if not provided).

        Returns:
            Configured Uninstaller instance.
        """
        return cls(
            lockstore=lockstore or LockStore.create_default(),
            filesystem=filesystem or RealFileSystem(),
        )

    def _canonical_path(
        self, scope: Scope, name: str, project_path: Path | None, entry: SkillLockEntry | None
    ) -> Path:
        if entry is not None and entry.canonical_path:
            return Path(entry.canonical_path)
        return canonical_skills_dir(scope, project_path) / sanitize_name(name)

    def get_skill_agent_details(
        self, scope: Scope, name: str, project_path: Path | None = None
    ) -> SkillAgentDetails:
        """Find which agents currently consume a skill.

        Universal consumers come from the lock entry; without one, every
        listed universal agent counts when the canonical copy exists.
        Independent agents are found by checking each agent's projection
        path without following symlinks.

        Args:
            scope: Installation scope.
            name: Skill name.
            project_path: Project root for project scope.

        Returns:
            The consumers partitioned into universal and independent agents.
        """
        entry = self.lockstore.get_entry(scope, name, project_path)
        canonical = self._canonical_path(scope, name, project_path, entry)
        details = SkillAgentDetails(skill_name=name, scope=scope, canonical_path=canonical)

        if entry is not None:
            for agent_id in entry.universal_agents:
                try:
                    agent = get_agent(agent_id)
                except InvalidAgent:
                    logger.debug("Lock entry %s names unknown agent %s", name, agent_id)
                    continue
                details.universal_agents.append((agent.id, agent.display_name))
        elif self.fs.exists(canonical):
            details.universal_agents = [(a.id, a.display_name) for a in universal_agents()]

        for agent in independent_agents():
            path = projection_path(agent.id, scope, name, project_path)
            if self.fs.lexists(path):
                details.independent_agents.append(
                    IndependentAgentInfo(
                        agent_id=agent.id,
                        display_name=agent.display_name,
                        path=path,
                        is_symlink=self.fs.is_symlink(path),
                    )
                )
        return details

    def remove(self, request: RemoveRequest) -> RemoveResult:
        """Remove a skill from some or all agents.

        A partial removal that would leave no projections and no universal
        consumers is carried out as a full removal. Agents sharing a removed
        directory with a named agent lose the skill too and are reported in
        ``shared_agents``.

        Args:
            request: What to remove.

        Returns:
            What was removed and any per-path errors.

        Raises:
            InvalidAgent: If a partial removal names no agents, an unknown
                agent, or a universal agent.
            LockWriteError: If the lock file cannot be written.
        """
        entry = self.lockstore.get_entry(request.scope, request.name, request.project_path)
        details = self.get_skill_agent_details(request.scope, request.name, request.project_path)
        result = RemoveResult(
            skill_name=request.name,
            source=entry.source if entry else None,
            source_type=entry.source_type if entry else None,
        )

        if request.full_removal:
            self._remove_fully(request, entry, details, result)
            return result

        agents = self._partial_agents(request.agents)
        targets = list(
            dict.fromkeys(
                projection_path(agent_id, request.scope, request.name, request.project_path)
                for agent_id in agents
            )
        )
        remaining: set[str] = set()
        for info in details.independent_agents:
            if info.agent_id in agents:
                continue
            if info.path in targets:
                # Another agent reads the same directory and loses the skill too.
                result.shared_agents.append(info.agent_id)
            else:
                remaining.add(info.agent_id)
        if result.shared_agents:
            logger.warning(
                "Removing %s also detaches %s, which share its directory",
                request.name,
                ", ".join(result.shared_agents),
            )

        if not remaining and not details.universal_agents:
            logger.debug("Removing %s entirely: no consumers would remain", request.name)
            result.promoted_to_full = True
            self._remove_fully(request, entry, details, result)
            return result

        for path in targets:
            if self.fs.lexists(path):
                self._remove_path(path, result)

        if entry is not None:
            with self.lockstore.transaction(request.scope, request.project_path) as lock:
                stored = lock.skills.get(request.name)
                if stored is not None:
                    stored.projections = [
                        p
                        for p in stored.projections
                        if p.agent_id not in agents and Path(p.path) not in targets
                    ]
                    stored.updated_at = utc_now()
        return result

    def _partial_agents(self, agent_ids: list[str]) -> list[str]:
        if not agent_ids:
            raise InvalidAgent(
                "Partial removal needs at least one agent",
                ["Name agents with --agent, or remove the skill entirely"],
            )
        universal = [agent.id for agent in validate_agents(agent_ids) if agent.is_universal]
        if universal:
            raise InvalidAgent(
                f"Universal agents share the canonical copy and cannot be detached: {', '.join(universal)}",
                ["Remove the skill entirely to stop universal agents from using it"],
            )
        return list(dict.fromkeys(agent_ids))

    def _remove_fully(
        self,
        request: RemoveRequest,
        entry: SkillLockEntry | None,
        details: SkillAgentDetails,
        result: RemoveResult,
    ) -> None:
        paths = [info.path for info in details.independent_agents]
        if entry is not None:
            paths += [Path(p.path) for p in entry.projections]

        for path in dict.fromkeys(paths):
            if self.fs.lexists(path):
                self._remove_path(path, result)

        if self.fs.lexists(details.canonical_path):
            self._remove_path(details.canonical_path, result)

        result.lock_entry_removed = self.lockstore.remove_entry(
            request.scope, request.name, request.project_path
        )
        result.full_removal = True

    def _remove_path(self, path: Path, result: RemoveResult) -> None:
        try:
            self.fs.remove(path)
        except OSError as e:
            logger.warning("Failed to remove %s: %s", path, e)
            result.errors.append(f"{path}: {e}")
        else:
            result.removed_paths.append(path)
