"""Tests for the agent registry and path helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from skillport.agents import (
    AGENTS,
    detect,
    get_agent,
    independent_agents,
    projection_path,
    resolve_path,
    universal_agents,
    validate_agents,
)
from skillport.errors import InvalidAgent
from skillport.paths import PathContext, canonical_skills_dir, sanitize_name
from skillport.types import Scope


class TestCatalog:
    """Tests for the static agent catalog."""

    def test_ids_are_unique(self) -> None:
        """Test no two agents share an id."""
        ids = [agent.id for agent in AGENTS]

        assert len(ids) == len(set(ids)) == 39

    def test_universal_partition(self) -> None:
        """Test agents using .agents/skills are universal, others independent."""
        universal_ids = {agent.id for agent in universal_agents()}
        independent_ids = {agent.id for agent in independent_agents()}

        assert {"amp", "codex", "gemini-cli", "github-copilot"} <= universal_ids
        assert {"claude-code", "cursor", "windsurf"} <= independent_ids
        assert not universal_ids & independent_ids

    def test_hidden_universal_agent(self) -> None:
        """Test replit is universal but not listed as a shared consumer."""
        replit = get_agent("replit")

        assert replit.is_universal
        assert replit not in universal_agents()

    def test_unknown_agent(self) -> None:
        """Test an unknown id raises with a suggestion."""
        with pytest.raises(InvalidAgent) as exc_info:
            get_agent("not-an-agent")

        assert "not-an-agent" in exc_info.value.message
        assert exc_info.value.suggestions

    def test_validate_agents_fails_on_first_unknown(self) -> None:
        """Test a list with one unknown id is rejected."""
        with pytest.raises(InvalidAgent):
            validate_agents(["cursor", "bogus"])


class TestPaths:
    """Tests for scope-dependent paths."""

    def test_universal_agent_uses_canonical_dir(self, temp_home: Path, project_dir: Path) -> None:
        """Test universal agents resolve to the shared directory in both scopes."""
        assert resolve_path("codex", Scope.PROJECT, project_dir) == project_dir / ".agents" / "skills"
        assert resolve_path("codex", Scope.GLOBAL) == temp_home / ".agents" / "skills"

    def test_project_path(self, project_dir: Path) -> None:
        """Test independent agents use their project skills directory."""
        assert resolve_path("claude-code", Scope.PROJECT, project_dir) == project_dir / ".claude" / "skills"

    def test_global_path_honors_env(
        self, temp_home: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test CLAUDE_CONFIG_DIR relocates Claude Code's global directory."""
        # Arrange
        config = tmp_path / "claude-config"
        monkeypatch.setenv("CLAUDE_CONFIG_DIR", str(config))

        # Act
        path = resolve_path("claude-code", Scope.GLOBAL)

        # Assert
        assert path == config / "skills"

    def test_global_path_default(self, temp_home: Path) -> None:
        """Test the home-relative default without overrides."""
        assert resolve_path("cursor", Scope.GLOBAL) == temp_home / ".cursor" / "skills"

    def test_global_candidates_prefer_existing_parent(self, temp_home: Path) -> None:
        """Test the first candidate whose parent exists wins, else the last."""
        agent = get_agent("openclaw")

        assert agent.global_skills_dir() == temp_home / ".moltbot" / "skills"

        (temp_home / ".clawdbot").mkdir()
        assert agent.global_skills_dir() == temp_home / ".clawdbot" / "skills"

    def test_projection_path_sanitizes_name(self, project_dir: Path) -> None:
        """Test the skill name is sanitized in projection paths."""
        path = projection_path("cursor", Scope.PROJECT, "My Skill!", project_dir)

        assert path == project_dir / ".cursor" / "skills" / "my-skill"

    def test_canonical_dir(self, temp_home: Path, project_dir: Path) -> None:
        """Test canonical storage per scope."""
        assert canonical_skills_dir(Scope.GLOBAL) == temp_home / ".agents" / "skills"
        assert canonical_skills_dir(Scope.PROJECT, project_dir) == project_dir / ".agents" / "skills"

    def test_path_context_expand(self, tmp_path: Path) -> None:
        """Test template placeholders are substituted."""
        paths = PathContext(
            home=tmp_path / "h", config=tmp_path / "c", codex=tmp_path / "x", claude=tmp_path / "cl"
        )

        assert paths.expand("{config}/amp", cwd=tmp_path) == tmp_path / "c" / "amp"
        assert paths.expand("{cwd}/.agent", cwd=tmp_path) == tmp_path / ".agent"


class TestDetection:
    """Tests for agent detection."""

    def test_global_detection_by_marker(self, temp_home: Path, project_dir: Path) -> None:
        """Test an agent is detected when its config directory exists."""
        assert detect("cursor", Scope.GLOBAL, project_dir) is False

        (temp_home / ".cursor").mkdir()

        assert detect("cursor", Scope.GLOBAL, project_dir) is True

    def test_project_detection(self, temp_home: Path, project_dir: Path) -> None:
        """Test project detection looks at the project's config directory."""
        assert detect("claude-code", Scope.PROJECT, project_dir) is False

        (project_dir / ".claude").mkdir()

        assert detect("claude-code", Scope.PROJECT, project_dir) is True


class TestSanitizeName:
    """Tests for skill directory names."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("frontend-design", "frontend-design"),
            ("Frontend Design", "frontend-design"),
            ("a  --  b", "a-b"),
            ("../../etc", "etc"),
            ("v1.2_beta", "v1.2_beta"),
            ("-.hidden.-", "hidden"),
            ("", "unnamed-skill"),
            ("!!!", "unnamed-skill"),
        ],
    )
    def test_sanitize(self, raw: str, expected: str) -> None:
        """Test names are lowercased and reduced to safe characters."""
        assert sanitize_name(raw) == expected

    def test_truncates_long_names(self) -> None:
        """Test names are capped at 255 characters."""
        assert len(sanitize_name("a" * 300)) == 255
