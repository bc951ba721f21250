"""Tests for plugin manifest grouping."""

from __future__ import annotations

import json
from pathlib import Path

from skillport.plugins import get_plugin_groupings, is_contained_in, is_valid_relative_path


def _write_manifest(root: Path, name: str, data: dict) -> None:
    manifest_dir = root / ".claude-plugin"
    manifest_dir.mkdir(parents=True, exist_ok=True)
    (manifest_dir / name).write_text(json.dumps(data))


class TestPathRules:
    """Tests for manifest path validation."""

    def test_relative_paths(self) -> None:
        """Test only ./-prefixed paths are accepted."""
        assert is_valid_relative_path("./skills/alpha")
        assert not is_valid_relative_path("skills/alpha")
        assert not is_valid_relative_path("/etc/passwd")
        assert not is_valid_relative_path("../outside")

    def test_containment(self, tmp_path: Path) -> None:
        """Test paths escaping the root are detected."""
        assert is_contained_in(tmp_path / "a" / "b", tmp_path)
        assert not is_contained_in(tmp_path / "a" / ".." / "..", tmp_path)


class TestGetPluginGroupings:
    """Tests for get_plugin_groupings function."""

    def test_no_manifests(self, tmp_path: Path) -> None:
        """Test a source without manifests has no groupings."""
        assert get_plugin_groupings(tmp_path) == {}

    def test_marketplace(self, tmp_path: Path) -> None:
        """Test marketplace plugins group their skills."""
        # Arrange
        (tmp_path / "plugins" / "docs" / "skills" / "writer").mkdir(parents=True)
        _write_manifest(
            tmp_path,
            "marketplace.json",
            {
                "metadata": {"pluginRoot": "./plugins"},
                "plugins": [
                    {"name": "docs", "source": "./docs", "skills": ["./skills/writer"]},
                    {"name": "remote", "source": {"github": "a/b"}, "skills": ["./x"]},
                ],
            },
        )

        # Act
        groupings = get_plugin_groupings(tmp_path)

        # Assert
        assert groupings == {(tmp_path / "plugins" / "docs" / "skills" / "writer").resolve(): "docs"}

    def test_traversal_is_ignored(self, tmp_path: Path) -> None:
        """Test skill paths escaping the source root are dropped."""
        _write_manifest(
            tmp_path,
            "plugin.json",
            {"name": "evil", "skills": ["./../../etc/passwd", "../../etc/passwd", "./ok"]},
        )

        groupings = get_plugin_groupings(tmp_path)

        assert groupings == {(tmp_path / "ok").resolve(): "evil"}

    def test_invalid_plugin_root(self, tmp_path: Path) -> None:
        """Test a marketplace with a non-relative pluginRoot contributes nothing."""
        _write_manifest(
            tmp_path,
            "marketplace.json",
            {"metadata": {"pluginRoot": "/abs"}, "plugins": [{"name": "p", "skills": ["./s"]}]},
        )

        assert get_plugin_groupings(tmp_path) == {}

    def test_malformed_manifest(self, tmp_path: Path) -> None:
        """Test unparseable manifests are skipped."""
        manifest_dir = tmp_path / ".claude-plugin"
        manifest_dir.mkdir()
        (manifest_dir / "marketplace.json").write_text("{not json")
        _write_manifest(tmp_path, "plugin.json", {"name": "solo", "skills": ["./skills/a"]})

        assert get_plugin_groupings(tmp_path) == {(tmp_path / "skills" / "a").resolve(): "solo"}
