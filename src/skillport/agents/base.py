"""Agent descriptor shared by every catalog entry.

Agents differ only in data (directories and detection markers), so each
one is a frozen descriptor rather than a subclass.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from skillport.paths import CANONICAL_SKILLS_DIR, PathContext

UNIVERSAL_SKILLS_DIR = CANONICAL_SKILLS_DIR.as_posix()


@dataclass(frozen=True)
class AgentDescriptor:
    """Static description of one supported AI coding tool.

    Attributes:
        id: Stable identifier used on the command line and in lock files.
        display_name: Human-readable name.
        skills_dir: Project-relative skills directory.
        global_skills_dirs: Candidate global skills directories as path
            templates. The first whose parent exists wins; the last one
            is used when none exist.
        markers: Path templates whose existence means the tool is present.
            ``{cwd}`` templates are resolved against the project root.
        show_in_universal_list: False hides a universal agent from the
            list of shared-directory consumers.
    """

    id: str
    display_name: str
    skills_dir: str
    global_skills_dirs: tuple[str, ...]
    markers: tuple[str, ...]
    show_in_universal_list: bool = True

    @property
    def is_universal(self) -> bool:
        """True if the agent reads skills straight from the shared directory."""
        return self.skills_dir == UNIVERSAL_SKILLS_DIR

    def global_skills_dir(self, paths: PathContext | None = None) -> Path:
        """Resolve the global skills directory.

        Args:
            paths: Base directories. Defaults to the current environment.

        Returns:
            Absolute path to the agent's global skills directory.
        """
        paths = paths or PathContext.current()
        candidates = [paths.expand(t) for t in self.global_skills_dirs]
        for candidate in candidates:
            if candidate.parent.exists():
                return candidate
        return candidates[-1]

    def project_skills_dir(self, project_path: Path) -> Path:
        """Resolve the project skills directory under a project root."""
        return project_path / self.skills_dir

    def is_detected(self, project_path: Path, paths: PathContext | None = None) -> bool:
        """Check whether any detection marker exists."""
        paths = paths or PathContext.current()
        return any(paths.expand(m, cwd=project_path).exists() for m in self.markers)

    def is_detected_in_project(self, project_path: Path) -> bool:
        """Check whether the project carries this agent's configuration directory."""
        top = Path(self.skills_dir).parts[0]
        if (project_path / top).exists():
            return True
        project_markers = [m for m in self.markers if m.startswith("{cwd}")]
        paths = PathContext.current()
        return any(paths.expand(m, cwd=project_path).exists() for m in project_markers)
