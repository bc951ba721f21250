"""Tests for install module."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from skillport.discovery import Discoverer
from skillport.errors import InvalidAgent, NoSkillsFound
from skillport.filesystem import RealFileSystem
from skillport.install import Installer, InstallRequest
from skillport.lockfile import LockStore, compute_content_hash
from skillport.types import Copied, InstallMode, InstallProgress, Scope, Symlinked


def _request(source: Path, project: Path, skills: list[str], agents: list[str], **kwargs) -> InstallRequest:
    return InstallRequest(
        source=str(source),
        skills=skills,
        agents=agents,
        scope=Scope.PROJECT,
        project_path=project,
        **kwargs,
    )


class TestInstall:
    """Tests for Installer.install."""

    def test_symlink_install(self, installer: Installer, source_repo: Path, project_dir: Path) -> None:
        """Test a skill is materialized once and linked into an independent agent."""
        # Act
        results = installer.install(_request(source_repo, project_dir, ["alpha"], ["claude-code"]))

        # Assert
        canonical = project_dir / ".agents" / "skills" / "alpha"
        projection = project_dir / ".claude" / "skills" / "alpha"
        assert (canonical / "SKILL.md").is_file()
        assert (canonical / "reference.md").is_file()
        assert projection.is_symlink()
        assert not os.path.isabs(os.readlink(projection))
        assert projection.resolve() == canonical.resolve()
        assert results.failed == []
        assert results.successful[0].outcome == Symlinked()
        assert results.successful[0].path == projection

    def test_universal_agent_uses_canonical(
        self, installer: Installer, source_repo: Path, project_dir: Path
    ) -> None:
        """Test universal agents get no projection of their own."""
        results = installer.install(_request(source_repo, project_dir, ["alpha"], ["codex"]))

        canonical = project_dir / ".agents" / "skills" / "alpha"
        assert results.successful[0].path == canonical
        assert results.successful[0].outcome is None
        assert canonical.is_dir() and not canonical.is_symlink()

    def test_lock_entry(
        self, installer: Installer, lockstore: LockStore, source_repo: Path, project_dir: Path
    ) -> None:
        """Test the lock entry records source, hash and consumers."""
        installer.install(_request(source_repo, project_dir, ["alpha"], ["codex", "cursor"]))

        entry = lockstore.get_entry(Scope.PROJECT, "alpha", project_dir)
        assert entry is not None
        assert entry.source == str(source_repo)
        assert entry.source_type == "local"
        assert entry.skill_path == "skills/alpha/SKILL.md"
        assert entry.content_hash == compute_content_hash(source_repo / "skills" / "alpha")
        assert entry.universal_agents == ["codex"]
        assert [p.agent_id for p in entry.projections] == ["cursor"]
        assert entry.projections[0].is_symlink is True
        assert lockstore.get_last_selected_agents() == ["codex", "cursor"]

    def test_copy_mode(self, installer: Installer, source_repo: Path, project_dir: Path) -> None:
        """Test copy mode writes independent copies."""
        results = installer.install(
            _request(source_repo, project_dir, ["alpha"], ["cursor"], mode=InstallMode.COPY)
        )

        projection = project_dir / ".cursor" / "skills" / "alpha"
        assert projection.is_dir() and not projection.is_symlink()
        assert (projection / "reference.md").read_text() == "Reference notes\n"
        assert results.successful[0].outcome == Copied(reason="copy mode")
        assert results.successful[0].symlink_failed is False
        assert results.symlink_fallback_agents == []

    def test_idempotent(
        self, installer: Installer, lockstore: LockStore, source_repo: Path, project_dir: Path
    ) -> None:
        """Test installing twice gives the same hash, projections and single entry."""
        request = _request(source_repo, project_dir, ["alpha"], ["claude-code", "codex"])
        installer.install(request)
        first = lockstore.get_entry(Scope.PROJECT, "alpha", project_dir)

        results = installer.install(request)

        second = lockstore.get_entry(Scope.PROJECT, "alpha", project_dir)
        assert results.failed == []
        assert second.content_hash == first.content_hash
        assert second.projections == first.projections
        assert second.universal_agents == first.universal_agents
        assert second.installed_at == first.installed_at
        assert len(lockstore.list_entries(Scope.PROJECT, project_dir)) == 1

    def test_excluded_files_not_materialized(
        self, installer: Installer, source_repo: Path, project_dir: Path
    ) -> None:
        """Test metadata.json, .git and underscore entries stay behind."""
        skill = source_repo / "skills" / "alpha"
        (skill / "metadata.json").write_text("{}")
        (skill / "_scratch").mkdir()
        (skill / "_scratch" / "notes.md").write_text("x")

        installer.install(_request(source_repo, project_dir, ["alpha"], ["codex"]))

        canonical = project_dir / ".agents" / "skills" / "alpha"
        assert not (canonical / "metadata.json").exists()
        assert not (canonical / "_scratch").exists()
        assert compute_content_hash(canonical) == compute_content_hash(skill)

    def test_case_insensitive_selection(
        self, installer: Installer, source_repo: Path, project_dir: Path
    ) -> None:
        """Test requested names match regardless of case; missing ones are skipped."""
        results = installer.install(
            _request(source_repo, project_dir, ["ALPHA", "missing"], ["codex"])
        )

        assert [r.skill_name for r in results.successful] == ["alpha"]

    def test_no_matching_skills(self, installer: Installer, source_repo: Path, project_dir: Path) -> None:
        """Test a request matching nothing raises and lists what exists."""
        with pytest.raises(NoSkillsFound) as exc_info:
            installer.install(_request(source_repo, project_dir, ["missing"], ["codex"]))

        assert "alpha" in exc_info.value.suggestions[0]
        assert not (project_dir / ".agents").exists()

    def test_invalid_agent_rejected_first(
        self, installer: Installer, source_repo: Path, project_dir: Path
    ) -> None:
        """Test unknown agents fail before anything is written."""
        with pytest.raises(InvalidAgent):
            installer.install(_request(source_repo, project_dir, ["alpha"], ["nope"]))

        assert list(project_dir.iterdir()) == []

    def test_progress_events(self, installer: Installer, source_repo: Path, project_dir: Path) -> None:
        """Test progress is reported per skill and before the lock write."""
        events: list[InstallProgress] = []

        installer.install(
            _request(source_repo, project_dir, ["alpha", "beta"], ["codex"]), on_progress=events.append
        )

        assert [(e.phase, e.current_skill, e.completed) for e in events] == [
            ("installing", "alpha", 0),
            ("installing", "beta", 1),
            ("writing_lock", "", 2),
        ]

    def test_global_scope(self, installer: Installer, source_repo: Path, temp_home: Path) -> None:
        """Test global installs land under the home directory."""
        installer.install(
            InstallRequest(source=str(source_repo), skills=["beta"], agents=["cursor"], scope=Scope.GLOBAL)
        )

        assert (temp_home / ".agents" / "skills" / "beta" / "SKILL.md").is_file()
        assert (temp_home / ".cursor" / "skills" / "beta").is_symlink()
        assert (temp_home / ".agents" / ".skill-lock.json").is_file()


class TestSymlinkFallback:
    """Tests for copying when symlinks cannot be created."""

    def test_fallback_copies_and_reports_once(
        self,
        lockstore: LockStore,
        discoverer: Discoverer,
        failing_symlink_fs,
        source_repo: Path,
        project_dir: Path,
    ) -> None:
        """Test each failing agent is listed once per batch and content is copied."""
        # Arrange
        installer = Installer(lockstore=lockstore, discoverer=discoverer, filesystem=failing_symlink_fs)

        # Act
        results = installer.install(
            _request(source_repo, project_dir, ["alpha", "beta"], ["claude-code", "cursor"])
        )

        # Assert
        assert failing_symlink_fs.symlink_attempts == 4
        assert results.failed == []
        assert all(r.symlink_failed for r in results.successful)
        assert results.symlink_fallback_agents == ["claude-code", "cursor"]
        copy = project_dir / ".claude" / "skills" / "beta"
        assert (copy / "SKILL.md").is_file() and not copy.is_symlink()
        entry = lockstore.get_entry(Scope.PROJECT, "beta", project_dir)
        assert entry.projections[0].mode == InstallMode.COPY
        assert entry.projections[0].is_symlink is False


class FailingCopyFileSystem(RealFileSystem):
    """Filesystem whose tree copies fail once ``fail`` is set."""

    def __init__(self) -> None:
        self.fail = False

    def copytree(self, src: Path, dst: Path) -> None:
        if self.fail:
            raise OSError("No space left on device")
        super().copytree(src, dst)


class TestMaterialize:
    """Tests for replacing the canonical copy."""

    def test_failed_copy_keeps_previous(
        self, lockstore: LockStore, discoverer: Discoverer, source_repo: Path, project_dir: Path
    ) -> None:
        """Test a reinstall whose copy fails leaves the old copy and its links working."""
        # Arrange
        fs = FailingCopyFileSystem()
        installer = Installer(lockstore=lockstore, discoverer=discoverer, filesystem=fs)
        request = _request(source_repo, project_dir, ["alpha"], ["cursor"])
        installer.install(request)
        before = lockstore.get_entry(Scope.PROJECT, "alpha", project_dir).content_hash
        (source_repo / "skills" / "alpha" / "reference.md").write_text("Changed\n")
        fs.fail = True

        # Act
        results = installer.install(request)

        # Assert
        canonical = project_dir / ".agents" / "skills" / "alpha"
        assert [r.agent for r in results.failed] == ["cursor"]
        assert results.successful == []
        assert (canonical / "reference.md").read_text() == "Reference notes\n"
        assert (project_dir / ".cursor" / "skills" / "alpha" / "SKILL.md").is_file()
        assert [p.name for p in canonical.parent.iterdir()] == ["alpha"]
        assert lockstore.get_entry(Scope.PROJECT, "alpha", project_dir).content_hash == before

    def test_reinstall_replaces_content(
        self, installer: Installer, source_repo: Path, project_dir: Path
    ) -> None:
        """Test a reinstall swaps in new content and drops removed files."""
        installer.install(_request(source_repo, project_dir, ["alpha"], ["cursor"]))
        (source_repo / "skills" / "alpha" / "reference.md").unlink()
        (source_repo / "skills" / "alpha" / "guide.md").write_text("Guide\n")

        installer.install(_request(source_repo, project_dir, ["alpha"], ["cursor"]))

        linked = project_dir / ".cursor" / "skills" / "alpha"
        assert sorted(p.name for p in linked.iterdir()) == ["SKILL.md", "guide.md"]
        assert [p.name for p in (project_dir / ".agents" / "skills").iterdir()] == ["alpha"]


class TestCheckOverwrites:
    """Tests for Installer.check_overwrites."""

    def test_reports_existing_projections(
        self, installer: Installer, source_repo: Path, project_dir: Path
    ) -> None:
        """Test exactly the agents with an existing projection are reported."""
        # Arrange
        assert installer.check_overwrites(["alpha"], ["cursor"], Scope.PROJECT, project_dir) == {}
        installer.install(_request(source_repo, project_dir, ["alpha"], ["cursor"]))

        # Act
        overwrites = installer.check_overwrites(
            ["alpha", "beta"], ["claude-code", "cursor"], Scope.PROJECT, project_dir
        )

        # Assert
        assert overwrites == {"alpha": ["cursor"]}

    def test_universal_agents_see_canonical(
        self, installer: Installer, source_repo: Path, project_dir: Path
    ) -> None:
        """Test a universal agent is reported once the canonical copy exists."""
        installer.install(_request(source_repo, project_dir, ["alpha"], ["cursor"]))

        overwrites = installer.check_overwrites(["alpha"], ["codex"], Scope.PROJECT, project_dir)

        assert overwrites == {"alpha": ["codex"]}

    def test_dangling_symlink_counts(self, installer: Installer, project_dir: Path) -> None:
        """Test a broken link at the target path is an overwrite."""
        target = project_dir / ".cursor" / "skills" / "alpha"
        target.parent.mkdir(parents=True)
        target.symlink_to(project_dir / "gone")

        assert installer.check_overwrites(["alpha"], ["cursor"], Scope.PROJECT, project_dir) == {
            "alpha": ["cursor"]
        }

    def test_is_read_only(self, installer: Installer, project_dir: Path) -> None:
        """Test the check creates nothing."""
        installer.check_overwrites(["alpha"], ["cursor", "codex"], Scope.PROJECT, project_dir)

        assert list(project_dir.iterdir()) == []

    def test_invalid_agent(self, installer: Installer, project_dir: Path) -> None:
        """Test unknown agents are rejected."""
        with pytest.raises(InvalidAgent):
            installer.check_overwrites(["alpha"], ["nope"], Scope.PROJECT, project_dir)
