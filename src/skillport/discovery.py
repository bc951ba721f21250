"""Discovery of skills in source repositories."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from skillport.errors import ManifestError, NoSkillsFound, PathNotFound
from skillport.gitops import GitOps
from skillport.plugins import get_plugin_groupings
from skillport.source import LocalPath, ResolvedSource, resolve
from skillport.types import AvailableSkill, CloneProgress
from skillport.validation import SKILL_FILE, load_skill_manifest

logger = logging.getLogger(__name__)

INTERNAL_SKILLS_ENV = "INSTALL_INTERNAL_SKILLS"


def install_internal_skills() -> bool:
    """Check the environment switch that reveals internal skills."""
    return os.environ.get(INTERNAL_SKILLS_ENV, "").strip().lower() in ("1", "true")


class Discovery:
    """Enumerates skills in a directory tree."""

    # Directories to skip during recursive discovery
    SKIP_DIRS = {"node_modules", ".git", "dist", "build", "__pycache__"}
    MAX_DEPTH = 5
    # Conventional skill locations, searched before falling back to a full walk
    PRIORITY_DIRS = (
        "",
        "skills",
        "skills/.curated",
        "skills/.experimental",
        "skills/.system",
        ".agent/skills",
        ".agents/skills",
        ".claude/skills",
        ".cline/skills",
        ".codebuddy/skills",
        ".codex/skills",
        ".commandcode/skills",
        ".continue/skills",
        ".cursor/skills",
        ".github/skills",
        ".goose/skills",
        ".iflow/skills",
        ".junie/skills",
        ".kilocode/skills",
        ".kiro/skills",
        ".mux/skills",
        ".neovate/skills",
        ".opencode/skills",
        ".openhands/skills",
        ".pi/skills",
        ".qoder/skills",
        ".roo/skills",
        ".trae/skills",
        ".windsurf/skills",
        ".zencoder/skills",
    )

    def __init__(self) -> None:
        """Initialize discovery.

        Note:
            Prefer using factory method `create()` for construction.
        """
        pass

    @classmethod
    def create(cls) -> Discovery:
        """Create a discovery instance.

        Returns:
            Configured Discovery instance.
        """
        return cls()

    def discover_skills(
        self,
        root: Path,
        subpath: str | None = None,
        include_internal: bool = False,
        full_depth: bool = False,
    ) -> list[AvailableSkill]:
        """Find skills below a source root.

        A search path holding its own SKILL.md is a single skill unless
        ``full_depth`` is set. Otherwise conventional skill directories are
        scanned, then the tree is walked if they held nothing.

        Args:
            root: Source root.
            subpath: Directory within the root to search.
            include_internal: Include skills marked metadata.internal.
            full_depth: Keep searching below a root-level skill.

        Returns:
            Skills in discovery order, unique by name, with plugin grouping.

        Raises:
            PathNotFound: If the search path does not exist.
        """
        search_path = root / subpath if subpath else root
        if not search_path.is_dir():
            raise PathNotFound(
                f"Path not found: {search_path}",
                ["Check the subpath in the source URL"] if subpath else [],
            )

        include_internal = include_internal or install_internal_skills()
        skills: list[AvailableSkill] = []
        seen: set[str] = set()

        def add(skill_dir: Path) -> None:
            skill = self._parse_skill_dir(skill_dir, root, include_internal)
            if skill and skill.name not in seen:
                seen.add(skill.name)
                skills.append(skill)

        if (search_path / SKILL_FILE).is_file():
            add(search_path)
            if skills and not full_depth:
                return self._assign_plugins(root, skills)

        for relative in self.PRIORITY_DIRS:
            directory = search_path / relative if relative else search_path
            if directory.is_dir():
                for child in sorted(directory.iterdir()):
                    if child.is_dir() and (child / SKILL_FILE).is_file():
                        add(child)

        if not skills or full_depth:
            for skill_dir in self._walk(search_path):
                add(skill_dir)

        return self._assign_plugins(root, skills)

    def _walk(self, directory: Path, depth: int = 0) -> Iterator[Path]:
        """Yield directories containing SKILL.md, depth-limited."""
        if (directory / SKILL_FILE).is_file():
            yield directory
        if depth >= self.MAX_DEPTH:
            return
        try:
            children = sorted(directory.iterdir())
        except OSError as e:
            logger.debug("Cannot list %s: %s", directory, e)
            return
        for child in children:
            if child.is_dir() and child.name not in self.SKIP_DIRS:
                yield from self._walk(child, depth + 1)

    def _parse_skill_dir(
        self, skill_dir: Path, root: Path, include_internal: bool
    ) -> AvailableSkill | None:
        try:
            manifest = load_skill_manifest(skill_dir)
        except ManifestError as e:
            logger.debug("Skipping skill: %s", e)
            return None

        if manifest.internal and not include_internal:
            logger.debug("Skipping internal skill %s", manifest.name)
            return None

        try:
            relative_path = skill_dir.relative_to(root).as_posix()
        except ValueError:
            relative_path = skill_dir.name

        return AvailableSkill(
            name=manifest.name,
            description=manifest.description,
            relative_path=relative_path,
            path=skill_dir,
            is_internal=manifest.internal,
        )

    def _assign_plugins(self, root: Path, skills: list[AvailableSkill]) -> list[AvailableSkill]:
        groupings = get_plugin_groupings(root)
        if groupings:
            for skill in skills:
                skill.plugin_name = groupings.get(skill.path.resolve())
        return skills


@dataclass
class SourceCheckout:
    """A fetched source and the skills found in it.

    Attributes:
        resolved: The resolved source.
        root: Source root on disk, valid while the checkout is open.
        skills: Discovered skills.
    """

    resolved: ResolvedSource
    root: Path
    skills: list[AvailableSkill] = field(default_factory=list)


@dataclass
class FetchResult:
    """Skills available from a source."""

    resolved: ResolvedSource
    skills: list[AvailableSkill]


class Discoverer:
    """Fetches sources and enumerates their skills.

    Follows Separate Use from Creation: constructor requires all dependencies.
    Use factory method `create()` for production instantiation with defaults.
    """

    def __init__(
        self,
        gitops: GitOps,
        discovery: Discovery,
        aliases: dict[str, str] | None = None,
    ) -> None:
        """Initialize discoverer with required dependencies.

        Args:
            gitops: Git operations instance (required).
            discovery: Skill enumeration instance (required).
            aliases: Source alias table. Defaults to the built-in aliases.
        """
        self.gitops = gitops
        self.discovery = discovery
        self.aliases = aliases

    @classmethod
    def create(
        cls,
        gitops: GitOps | None = None,
        discovery: Discovery | None = None,
        aliases: dict[str, str] | None = None,
    ) -> Discoverer:
        """Factory method for production instantiation.

        Args:
            gitops: Optional git operations (created if not provided).
            discovery: Optional skill enumeration (created if not provided).
            aliases: Optional source alias table.

        Returns:
            Configured Discoverer instance.
        """
        return cls(
            gitops=gitops or GitOps.create_default(),
            discovery=discovery or Discovery.create(),
            aliases=aliases,
        )

    def resolve(self, source: str | ResolvedSource) -> ResolvedSource:
        """Resolve user input with this discoverer's alias table."""
        if isinstance(source, ResolvedSource):
            return source
        return resolve(source, self.aliases)

    @contextmanager
    def checkout(
        self,
        source: str | ResolvedSource,
        on_progress: Callable[[CloneProgress], None] | None = None,
        include_internal: bool = False,
    ) -> Iterator[SourceCheckout]:
        """Fetch a source and keep it on disk for the duration of the context.

        Args:
            source: Source string or already resolved source.
            on_progress: Listener for clone progress events.
            include_internal: Include skills marked internal. Implied by an
                ``@skill`` filter.

        Yields:
            The checkout with its discovered skills.

        Raises:
            InvalidSource: If the source cannot be parsed.
            GitOpsError: If cloning fails.
            PathNotFound: If a local path or subpath is missing.
            NoSkillsFound: If the source holds no skills.
        """
        resolved = self.resolve(source)
        descriptor = resolved.descriptor
        include_internal = include_internal or resolved.skill_filter is not None

        target = getattr(descriptor, "target", descriptor)
        if isinstance(target, LocalPath):
            root = target.path.resolve()
            if not root.is_dir():
                raise PathNotFound(f"Local path not found: {target.path}")
            yield self._enumerate(resolved, root, include_internal)
            return

        with self.gitops.clone(descriptor.clone_url, descriptor.ref, on_progress) as root:
            yield self._enumerate(resolved, root, include_internal)

    def fetch(
        self,
        source: str | ResolvedSource,
        on_progress: Callable[[CloneProgress], None] | None = None,
    ) -> FetchResult:
        """List the skills available from a source.

        Args:
            source: Source string or already resolved source.
            on_progress: Listener for clone progress events.

        Returns:
            The resolved source and its skills.
        """
        with self.checkout(source, on_progress) as checkout:
            return FetchResult(resolved=checkout.resolved, skills=checkout.skills)

    def _enumerate(self, resolved: ResolvedSource, root: Path, include_internal: bool) -> SourceCheckout:
        skills = self.discovery.discover_skills(
            root, resolved.descriptor.subpath, include_internal=include_internal
        )
        if not skills:
            raise NoSkillsFound(
                f"No skills found in {resolved.source}",
                ["Skills are directories containing a SKILL.md with name and description"],
            )
        return SourceCheckout(resolved=resolved, root=root, skills=skills)
