"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from skillport.discovery import Discoverer
from skillport.filesystem import RealFileSystem
from skillport.install import Installer
from skillport.lockfile import LockStore
from skillport.uninstall import Uninstaller

SkillFactory = Callable[..., Path]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove environment overrides that change agent paths or discovery."""
    for name in ("CODEX_HOME", "CLAUDE_CONFIG_DIR", "XDG_CONFIG_HOME", "INSTALL_INTERNAL_SKILLS"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Override home directory for testing."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setattr(Path, "home", lambda: home)
    return home


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Create an empty project directory."""
    project = tmp_path / "project"
    project.mkdir()
    return project


@pytest.fixture
def make_skill() -> SkillFactory:
    """Factory writing a skill directory with a SKILL.md."""

    def _make(
        directory: Path,
        name: str,
        description: str = "A test skill",
        body: str = "# Instructions\n",
        internal: bool = False,
    ) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        metadata = "metadata:\n  internal: true\n" if internal else ""
        (directory / "SKILL.md").write_text(
            f"---\nname: {name}\ndescription: {description}\n{metadata}---\n\n{body}"
        )
        return directory

    return _make


@pytest.fixture
def source_repo(tmp_path: Path, make_skill: SkillFactory) -> Path:
    """A local source with two skills under skills/."""
    root = tmp_path / "source"
    make_skill(root / "skills" / "alpha", "alpha", "First skill")
    make_skill(root / "skills" / "beta", "beta", "Second skill")
    (root / "skills" / "alpha" / "reference.md").write_text("Reference notes\n")
    return root


class FailingSymlinkFileSystem(RealFileSystem):
    """Filesystem whose symlink creation always fails."""

    def __init__(self) -> None:
        self.symlink_attempts = 0

    def symlink(self, target: Path, link: Path) -> None:
        self.symlink_attempts += 1
        raise OSError("symbolic links are not supported")


@pytest.fixture
def failing_symlink_fs() -> FailingSymlinkFileSystem:
    """Filesystem that simulates a platform without symlink support."""
    return FailingSymlinkFileSystem()


@pytest.fixture
def lockstore(temp_home: Path) -> LockStore:
    """Lock store with the global lock under the temporary home."""
    return LockStore.create(temp_home / ".agents")


@pytest.fixture
def discoverer() -> Discoverer:
    """Discoverer without aliases."""
    return Discoverer.create(aliases={})


@pytest.fixture
def installer(lockstore: LockStore, discoverer: Discoverer) -> Installer:
    """Installer using the real filesystem."""
    return Installer.create(lockstore=lockstore, discoverer=discoverer, filesystem=RealFileSystem())


@pytest.fixture
def uninstaller(lockstore: LockStore) -> Uninstaller:
    """Uninstaller using the real filesystem."""
    return Uninstaller.create(lockstore=lockstore, filesystem=RealFileSystem())
