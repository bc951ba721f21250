"""Filesystem locations shared across skillport."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path

from skillport.types import Scope

CANONICAL_SKILLS_DIR = Path(".agents") / "skills"
MAX_NAME_LENGTH = 255


@dataclass(frozen=True)
class PathContext:
    """Base directories agent paths are templated against.

    Computed on demand so environment overrides and a patched home
    directory take effect without reloading modules.
    """

    home: Path
    config: Path
    codex: Path
    claude: Path

    @classmethod
    def current(cls) -> PathContext:
        """Build a path context from the current environment."""
        home = Path.home()
        xdg = os.environ.get("XDG_CONFIG_HOME", "").strip()
        codex = os.environ.get("CODEX_HOME", "").strip()
        claude = os.environ.get("CLAUDE_CONFIG_DIR", "").strip()
        return cls(
            home=home,
            config=Path(xdg) if xdg else home / ".config",
            codex=Path(codex) if codex else home / ".codex",
            claude=Path(claude) if claude else home / ".claude",
        )

    def expand(self, template: str, cwd: Path | None = None) -> Path:
        """Expand a path template such as ``{home}/.cursor/skills``.

        Args:
            template: Template with ``{home}``, ``{config}``, ``{codex}``,
                ``{claude}`` or ``{cwd}`` placeholders.
            cwd: Directory substituted for ``{cwd}``. Defaults to the
                current working directory.

        Returns:
            The expanded path.
        """
        return Path(
            template.format(
                home=self.home,
                config=self.config,
                codex=self.codex,
                claude=self.claude,
                cwd=cwd or Path.cwd(),
            )
        )


def canonical_skills_dir(scope: Scope, project_path: Path | None = None) -> Path:
    """Get the directory holding canonical skill copies for a scope.

    Args:
        scope: Installation scope.
        project_path: Project root for project scope. Defaults to cwd.

    Returns:
        ``~/.agents/skills`` or ``<project>/.agents/skills``.
    """
    if scope == Scope.GLOBAL:
        return Path.home() / CANONICAL_SKILLS_DIR
    return (project_path or Path.cwd()) / CANONICAL_SKILLS_DIR


def sanitize_name(name: str) -> str:
    """Turn a skill name into a safe directory name.

    Lowercases, replaces anything outside ``[a-z0-9._]`` with ``-``,
    collapses dash runs and trims leading/trailing dots and dashes.

    Args:
        name: Raw skill name.

    Returns:
        A non-empty name of at most 255 characters.
    """
    cleaned = re.sub(r"[^a-z0-9._]+", "-", name.lower())
    cleaned = re.sub(r"-{2,}", "-", cleaned).strip(".-")
    return cleaned[:MAX_NAME_LENGTH] or "unnamed-skill"
