"""SKILL.md manifest parsing and validation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from skillport.errors import ManifestError

SKILL_FILE = "SKILL.md"


class FrontmatterResult:
    """Result of parsing frontmatter from content."""

    __slots__ = ("data", "errors", "success")

    def __init__(self, data: dict[str, Any] | None = None, errors: list[str] | None = None) -> None:
        """Initialize frontmatter result.

        Args:
            data: The parsed frontmatter mapping.
            errors: List of parsing errors encountered.
        """
        self.data = data or {}
        self.errors = errors or []
        self.success = len(self.errors) == 0


def parse_frontmatter(content: str) -> FrontmatterResult:
    """Parse YAML frontmatter from markdown content.

    Extracts the block between the opening and closing '---' delimiters
    and loads it with ``yaml.safe_load``.

    Args:
        content: The full markdown content with optional frontmatter.

    Returns:
        FrontmatterResult with the parsed mapping and any errors.

    Example:
        >>> result = parse_frontmatter("---\\nname: test\\n---\\nBody")
        >>> result.success
        True
        >>> result.data
        {'name': 'test'}
    """
    content = content.lstrip("\ufeff")
    if not content.startswith("---"):
        return FrontmatterResult(errors=["Content must have YAML frontmatter"])

    end_idx = content.find("\n---", 3)
    if end_idx == -1:
        return FrontmatterResult(errors=["Invalid frontmatter: missing closing ---"])

    try:
        data = yaml.safe_load(content[3:end_idx])
    except yaml.YAMLError as e:
        return FrontmatterResult(errors=[f"Invalid YAML in frontmatter: {e}"])

    if data is None:
        data = {}
    if not isinstance(data, dict):
        return FrontmatterResult(errors=["Frontmatter must be a mapping"])
    return FrontmatterResult(data=data)


@dataclass(frozen=True)
class SkillManifest:
    """Validated SKILL.md frontmatter."""

    name: str
    description: str
    internal: bool = False


def load_skill_manifest(skill_dir: Path) -> SkillManifest:
    """Read and validate a skill directory's SKILL.md.

    Args:
        skill_dir: Directory containing SKILL.md.

    Returns:
        The validated manifest.

    Raises:
        ManifestError: If the file is unreadable or missing required fields.
    """
    skill_file = skill_dir / SKILL_FILE
    try:
        content = skill_file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"Cannot read {skill_file}: {e}") from e

    result = parse_frontmatter(content)
    if not result.success:
        raise ManifestError(f"{skill_file}: {'; '.join(result.errors)}")

    name = result.data.get("name")
    description = result.data.get("description")
    if not isinstance(name, str) or not name.strip():
        raise ManifestError(f"{skill_file}: missing required field 'name'")
    if not isinstance(description, str) or not description.strip():
        raise ManifestError(f"{skill_file}: missing required field 'description'")

    metadata = result.data.get("metadata")
    internal = isinstance(metadata, dict) and metadata.get("internal") is True
    return SkillManifest(name=name.strip(), description=description.strip(), internal=internal)
