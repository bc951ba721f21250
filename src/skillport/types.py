"""Shared data types for skillport."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

__all__ = [
    "AvailableSkill",
    "CloneProgress",
    "Copied",
    "IndependentAgentInfo",
    "InstallMode",
    "InstallProgress",
    "InstallResult",
    "InstallResults",
    "ProjectionOutcome",
    "RemoveResult",
    "Scope",
    "SkillAgentDetails",
    "SkillUpdateInfo",
    "Symlinked",
]


class Scope(str, Enum):
    """Where a skill is installed."""

    GLOBAL = "global"
    PROJECT = "project"


class InstallMode(str, Enum):
    """How a skill is projected into an agent's directory."""

    SYMLINK = "symlink"
    COPY = "copy"


@dataclass
class AvailableSkill:
    """A skill found in a source during discovery.

    Attributes:
        name: Skill name from SKILL.md frontmatter.
        description: Skill description from SKILL.md frontmatter.
        relative_path: Posix path of the skill directory within the source.
        path: Absolute path, only valid while the checkout exists.
        plugin_name: Plugin grouping declared by a manifest, if any.
        is_internal: True if the skill is marked metadata.internal.
    """

    name: str
    description: str
    relative_path: str
    path: Path
    plugin_name: str | None = None
    is_internal: bool = False


@dataclass(frozen=True)
class CloneProgress:
    """Progress of a clone operation."""

    phase: str  # connecting, cloning, done, error
    elapsed_secs: int
    timeout_secs: int
    message: str | None = None


@dataclass(frozen=True)
class InstallProgress:
    """Progress of an install batch."""

    phase: str  # installing, writing_lock
    current_skill: str
    completed: int
    total: int


@dataclass(frozen=True)
class Symlinked:
    """The projection is a symlink to the canonical copy."""


@dataclass(frozen=True)
class Copied:
    """The projection is an independent copy.

    Attributes:
        reason: Why a copy was made.
        fallback: True when a symlink was attempted and failed.
    """

    reason: str
    fallback: bool = False


ProjectionOutcome = Symlinked | Copied


@dataclass
class InstallResult:
    """Result of installing one skill for one agent.

    Attributes:
        skill_name: Name of the skill.
        agent: Agent identifier.
        success: True if installation succeeded.
        path: Path where the agent sees the skill (None on failure).
        canonical_path: Canonical copy backing this install.
        outcome: How the projection was made (None for universal agents).
        error: Error message (None on success).
    """

    skill_name: str
    agent: str
    success: bool
    path: Path | None = None
    canonical_path: Path | None = None
    outcome: ProjectionOutcome | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.success and self.error is not None:
            raise ValueError("success=True but error is set")
        if not self.success and self.error is None:
            raise ValueError("success=False requires error message")
        if not self.skill_name:
            raise ValueError("skill_name cannot be empty")

    @property
    def symlink_failed(self) -> bool:
        """True if a symlink was attempted and a copy was made instead."""
        return isinstance(self.outcome, Copied) and self.outcome.fallback


@dataclass
class InstallResults:
    """Aggregate result of an install batch."""

    successful: list[InstallResult] = field(default_factory=list)
    failed: list[InstallResult] = field(default_factory=list)
    symlink_fallback_agents: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class IndependentAgentInfo:
    """An agent holding its own projection of a skill."""

    agent_id: str
    display_name: str
    path: Path
    is_symlink: bool


@dataclass
class SkillAgentDetails:
    """Which agents consume an installed skill."""

    skill_name: str
    scope: Scope
    canonical_path: Path
    universal_agents: list[tuple[str, str]] = field(default_factory=list)
    independent_agents: list[IndependentAgentInfo] = field(default_factory=list)


@dataclass
class RemoveResult:
    """Result of removing a skill from some or all agents.

    Attributes:
        skill_name: Name of the skill.
        removed_paths: Paths that were deleted.
        source: Source recorded in the lock entry, if any.
        source_type: Source type recorded in the lock entry, if any.
        full_removal: True if the canonical copy and lock entry were removed.
        lock_entry_removed: True if the lock entry was deleted.
        promoted_to_full: True if a partial removal became a full one.
        errors: Per-path removal failures.
        shared_agents: Agents not named in a partial removal that lost the
            skill because they share a removed directory.
    """

    skill_name: str
    removed_paths: list[Path] = field(default_factory=list)
    source: str | None = None
    source_type: str | None = None
    full_removal: bool = False
    lock_entry_removed: bool = False
    promoted_to_full: bool = False
    errors: list[str] = field(default_factory=list)
    shared_agents: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class SkillUpdateInfo:
    """Update status of one installed skill."""

    name: str
    source: str
    has_update: bool
