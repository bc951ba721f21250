"""Plugin grouping from .claude-plugin manifests.

A source may declare which skills belong to which plugin through
``.claude-plugin/marketplace.json`` and/or ``.claude-plugin/plugin.json``.
Every declared path must be ``./``-relative and resolve inside the source
root; anything else is ignored and the skill stays ungrouped.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from skillport.errors import ManifestError

logger = logging.getLogger(__name__)

MANIFEST_DIR = ".claude-plugin"
MARKETPLACE_FILE = "marketplace.json"
PLUGIN_FILE = "plugin.json"


class MarketplaceMetadata(BaseModel):
    """Metadata for a marketplace."""

    model_config = ConfigDict(populate_by_name=True)

    plugin_root: str | None = Field(default=None, alias="pluginRoot")


class MarketplacePlugin(BaseModel):
    """A plugin within a marketplace."""

    name: str | None = None
    # Object-shaped sources point at remote plugins and are skipped.
    source: str | dict[str, Any] | None = None
    skills: list[str] = Field(default_factory=list)


class MarketplaceManifest(BaseModel):
    """Marketplace manifest from .claude-plugin/marketplace.json."""

    metadata: MarketplaceMetadata | None = None
    plugins: list[MarketplacePlugin] = Field(default_factory=list)


class PluginManifest(BaseModel):
    """Single plugin manifest from .claude-plugin/plugin.json."""

    name: str | None = None
    skills: list[str] = Field(default_factory=list)


def _load(path: Path, model: type[BaseModel]) -> BaseModel | None:
    """Load a manifest file if present.

    Raises:
        ManifestError: If the file exists but cannot be read or validated.
    """
    if not path.is_file():
        return None
    try:
        return model.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"Cannot read {path}: {e}") from e
    except (json.JSONDecodeError, ValidationError) as e:
        raise ManifestError(f"Invalid manifest {path}: {e}") from e


def is_valid_relative_path(value: str) -> bool:
    """Manifest paths must be explicitly relative."""
    return value.startswith("./")


def is_contained_in(child: Path, root: Path) -> bool:
    """Check that ``child`` resolves inside ``root``."""
    return child.resolve().is_relative_to(root.resolve())


def _marketplace_groupings(root: Path, manifest: MarketplaceManifest) -> dict[Path, str]:
    groupings: dict[Path, str] = {}
    plugin_root = manifest.metadata.plugin_root if manifest.metadata else None
    if plugin_root is not None and not is_valid_relative_path(plugin_root):
        logger.debug("Ignoring marketplace with pluginRoot %r", plugin_root)
        return groupings

    for plugin in manifest.plugins:
        if not plugin.name:
            continue
        if isinstance(plugin.source, dict):
            continue
        if plugin.source is not None and not is_valid_relative_path(plugin.source):
            logger.debug("Ignoring plugin %s with source %r", plugin.name, plugin.source)
            continue

        base = root
        if plugin_root:
            base = base / plugin_root
        if plugin.source:
            base = base / plugin.source
        if not is_contained_in(base, root):
            logger.debug("Plugin %s escapes the source root", plugin.name)
            continue

        for skill_path in plugin.skills:
            if not is_valid_relative_path(skill_path):
                logger.debug("Ignoring skill path %r in plugin %s", skill_path, plugin.name)
                continue
            skill_dir = base / skill_path
            if is_contained_in(skill_dir, root):
                groupings[skill_dir.resolve()] = plugin.name
            else:
                logger.debug("Skill path %r in plugin %s escapes the source root", skill_path, plugin.name)
    return groupings


def _plugin_groupings(root: Path, manifest: PluginManifest) -> dict[Path, str]:
    groupings: dict[Path, str] = {}
    if not manifest.name:
        return groupings
    for skill_path in manifest.skills:
        if not is_valid_relative_path(skill_path):
            continue
        skill_dir = root / skill_path
        if is_contained_in(skill_dir, root):
            groupings[skill_dir.resolve()] = manifest.name
    return groupings


def get_plugin_groupings(root: Path) -> dict[Path, str]:
    """Map resolved skill directories to the plugin that declares them.

    Malformed manifests are logged and contribute no groupings.

    Args:
        root: Source root.

    Returns:
        Dict of resolved skill directory to plugin name.
    """
    groupings: dict[Path, str] = {}
    manifest_dir = root / MANIFEST_DIR

    try:
        marketplace = _load(manifest_dir / MARKETPLACE_FILE, MarketplaceManifest)
        if isinstance(marketplace, MarketplaceManifest):
            groupings.update(_marketplace_groupings(root, marketplace))
    except ManifestError as e:
        logger.debug("Skipping marketplace manifest: %s", e)

    try:
        plugin = _load(manifest_dir / PLUGIN_FILE, PluginManifest)
        if isinstance(plugin, PluginManifest):
            groupings.update(_plugin_groupings(root, plugin))
    except ManifestError as e:
        logger.debug("Skipping plugin manifest: %s", e)

    return groupings
