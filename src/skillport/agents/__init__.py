"""Registry of AI coding tools skills can be installed into."""

from __future__ import annotations

from pathlib import Path

from skillport.agents.base import AgentDescriptor
from skillport.agents.catalog import AGENTS
from skillport.errors import InvalidAgent
from skillport.paths import PathContext, canonical_skills_dir, sanitize_name
from skillport.types import Scope

__all__ = [
    "AGENTS",
    "AgentDescriptor",
    "all_agents",
    "detect",
    "detect_installed",
    "get_agent",
    "independent_agents",
    "projection_path",
    "resolve_path",
    "universal_agents",
    "validate_agents",
]


_BY_ID: dict[str, AgentDescriptor] = {agent.id: agent for agent in AGENTS}


def get_agent(agent_id: str) -> AgentDescriptor:
    """Get an agent descriptor by id.

    Args:
        agent_id: Agent identifier (e.g. "claude-code").

    Returns:
        The agent descriptor.

    Raises:
        InvalidAgent: If the agent is not supported.
    """
    try:
        return _BY_ID[agent_id]
    except KeyError:
        raise InvalidAgent(
            f"Unknown agent: {agent_id}",
            ["Run 'skillport agents' to list supported agents"],
        ) from None


def validate_agents(agent_ids: list[str]) -> list[AgentDescriptor]:
    """Resolve a list of agent ids, failing on the first unknown one."""
    return [get_agent(agent_id) for agent_id in agent_ids]


def all_agents() -> list[AgentDescriptor]:
    """List every supported agent in catalog order."""
    return list(AGENTS)


def universal_agents() -> list[AgentDescriptor]:
    """List agents that read the shared skills directory and are shown as such."""
    return [a for a in AGENTS if a.is_universal and a.show_in_universal_list]


def independent_agents() -> list[AgentDescriptor]:
    """List agents that need their own projection of each skill."""
    return [a for a in AGENTS if not a.is_universal]


def detect(agent_id: str, scope: Scope, project_path: Path | None = None) -> bool:
    """Check whether an agent appears to be installed.

    Args:
        agent_id: Agent identifier.
        scope: Global checks home and config markers; project checks the
            project's configuration directories.
        project_path: Project root. Defaults to cwd.

    Returns:
        True if the agent was detected.

    Raises:
        InvalidAgent: If the agent is not supported.
    """
    agent = get_agent(agent_id)
    project = project_path or Path.cwd()
    if scope == Scope.PROJECT:
        return agent.is_detected_in_project(project)
    return agent.is_detected(project)


def detect_installed(scope: Scope, project_path: Path | None = None) -> list[AgentDescriptor]:
    """List every agent detected for the scope."""
    return [a for a in AGENTS if detect(a.id, scope, project_path)]


def resolve_path(agent_id: str, scope: Scope, project_path: Path | None = None) -> Path:
    """Get an agent's skills directory for a scope.

    Universal agents resolve to the canonical shared directory.

    Args:
        agent_id: Agent identifier.
        scope: Installation scope.
        project_path: Project root for project scope. Defaults to cwd.

    Returns:
        Absolute path to the skills directory.

    Raises:
        InvalidAgent: If the agent is not supported.
    """
    agent = get_agent(agent_id)
    if agent.is_universal:
        return canonical_skills_dir(scope, project_path)
    if scope == Scope.GLOBAL:
        return agent.global_skills_dir(PathContext.current())
    return agent.project_skills_dir(project_path or Path.cwd())


def projection_path(
    agent_id: str, scope: Scope, skill_name: str, project_path: Path | None = None
) -> Path:
    """Get the path where an agent sees a skill."""
    return resolve_path(agent_id, scope, project_path) / sanitize_name(skill_name)
