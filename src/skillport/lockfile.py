"""Lock files recording installed skills.

Two independent stores exist: the global lock at
``~/.agents/.skill-lock.json`` and one ``skills-lock.json`` per project.
Both map skill name to a :class:`SkillLockEntry`. A name present in both
is a conflict that is reported, never merged.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, model_validator

from skillport.errors import LockWriteError
from skillport.filesystem import is_excluded
from skillport.types import InstallMode, Scope

logger = logging.getLogger(__name__)

GLOBAL_LOCK_VERSION = 3
PROJECT_LOCK_VERSION = 1
GLOBAL_LOCK_NAME = ".skill-lock.json"
PROJECT_LOCK_NAME = "skills-lock.json"
LEGACY_PROJECT_LOCK = Path(".agents") / GLOBAL_LOCK_NAME

HASH_SKIP_DIRS = frozenset({".git", "node_modules"})


def utc_now() -> datetime:
    """Current time, second precision, UTC."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def compute_content_hash(skill_dir: Path) -> str:
    """Hash the files a skill materializes to.

    Files are visited in order of their posix relative path; each
    contributes its relative path then its bytes. Entries left out of
    canonical storage are left out of the hash, and linked directories are
    followed the way a copy dereferences them, so a source directory and
    its canonical copy hash the same.

    Args:
        skill_dir: Skill directory.

    Returns:
        Hex SHA-256 digest.
    """
    files: list[tuple[str, Path]] = []
    for current, dirnames, filenames in os.walk(skill_dir, followlinks=True):
        dirnames[:] = [
            d for d in dirnames if d not in HASH_SKIP_DIRS and not is_excluded(d, is_dir=True)
        ]
        for filename in filenames:
            if is_excluded(filename):
                continue
            path = Path(current) / filename
            files.append((path.relative_to(skill_dir).as_posix(), path))

    hasher = hashlib.sha256()
    for relative, path in sorted(files):
        hasher.update(relative.encode("utf-8"))
        hasher.update(path.read_bytes())
    return hasher.hexdigest()


class Projection(BaseModel):
    """One agent's view of a canonical skill copy."""

    model_config = ConfigDict(populate_by_name=True)

    agent_id: str = Field(alias="agentId")
    path: str
    mode: InstallMode
    is_symlink: bool = Field(alias="isSymlink")


class SkillLockEntry(BaseModel):
    """An installed skill.

    ``content_hash`` is the SHA-256 from :func:`compute_content_hash`; an
    empty value means it is not known yet. ``remote_hash`` is the upstream
    folder hash other installers record as ``skillFolderHash`` and is kept
    as-is. Fields skillport does not know are preserved on rewrite.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    name: str = ""
    canonical_path: str = Field(default="", alias="canonicalPath")
    source: str
    source_type: str = Field(alias="sourceType")
    source_url: str = Field(default="", alias="sourceUrl")
    skill_path: str | None = Field(default=None, alias="skillPath")
    content_hash: str = Field(
        default="",
        validation_alias=AliasChoices("computedHash", "contentHash", "content_hash"),
        serialization_alias="computedHash",
    )
    remote_hash: str | None = Field(
        default=None,
        validation_alias=AliasChoices("skillFolderHash", "remoteHash", "remote_hash"),
        serialization_alias="skillFolderHash",
    )
    plugin_name: str | None = Field(default=None, alias="pluginName")
    install_mode: InstallMode = Field(default=InstallMode.SYMLINK, alias="installMode")
    installed_at: datetime = Field(default_factory=utc_now, alias="installedAt")
    updated_at: datetime = Field(default_factory=utc_now, alias="updatedAt")
    universal_agents: list[str] = Field(default_factory=list, alias="universalAgents")
    projections: list[Projection] = Field(default_factory=list)

    def projection_for(self, agent_id: str) -> Projection | None:
        """Get the projection recorded for an agent."""
        for projection in self.projections:
            if projection.agent_id == agent_id:
                return projection
        return None

    @property
    def agents(self) -> list[str]:
        """Every agent consuming this skill."""
        return [*self.universal_agents, *(p.agent_id for p in self.projections)]


class LockFile(BaseModel):
    """Contents of one lock file.

    Entries are keyed by skill name; an entry without a ``name`` field
    takes it from its key.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    version: int
    skills: dict[str, SkillLockEntry] = Field(default_factory=dict)
    last_selected_agents: list[str] | None = Field(default=None, alias="lastSelectedAgents")

    @model_validator(mode="before")
    @classmethod
    def _name_from_key(cls, data: Any) -> Any:
        if not isinstance(data, dict) or not isinstance(data.get("skills"), dict):
            return data
        skills = {
            key: {**value, "name": key} if isinstance(value, dict) and not value.get("name") else value
            for key, value in data["skills"].items()
        }
        return {**data, "skills": skills}


class LockStore:
    """Reads and writes global and project lock files.

    Read-modify-write cycles go through :meth:`transaction`, which holds an
    in-process lock per lock file path.
    """

    _mutexes: dict[Path, threading.RLock] = {}
    _mutexes_guard = threading.Lock()

    def __init__(self, global_dir: Path | None = None) -> None:
        """Initialize the lock store.

        Args:
            global_dir: Directory of the global lock file. Defaults to ~/.agents.

        Note:
            Prefer using factory methods `create()` or `create_default()` for construction.
        """
        self._global_dir = global_dir

    @classmethod
    def create(cls, global_dir: Path) -> LockStore:
        """Create a lock store with a custom global directory.

        Args:
            global_dir: Directory holding the global lock file.

        Returns:
            Configured LockStore instance.
        """
        return cls(global_dir=global_dir)

    @classmethod
    def create_default(cls) -> LockStore:
        """Create a lock store using ~/.agents for the global lock.

        Returns:
            LockStore configured with default paths.
        """
        return cls()

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    @property
    def global_dir(self) -> Path:
        return self._global_dir or Path.home() / ".agents"

    def lock_path(self, scope: Scope, project_path: Path | None = None) -> Path:
        """Get the lock file path for a scope.

        Args:
            scope: Installation scope.
            project_path: Project root for project scope. Defaults to cwd.

        Returns:
            Path to the lock file.
        """
        if scope == Scope.GLOBAL:
            return self.global_dir / GLOBAL_LOCK_NAME
        return (project_path or Path.cwd()) / PROJECT_LOCK_NAME

    def _version(self, scope: Scope) -> int:
        return GLOBAL_LOCK_VERSION if scope == Scope.GLOBAL else PROJECT_LOCK_VERSION

    def _mutex(self, path: Path) -> threading.RLock:
        key = path.absolute()
        with self._mutexes_guard:
            if key not in self._mutexes:
                self._mutexes[key] = threading.RLock()
            return self._mutexes[key]

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    def load(self, scope: Scope, project_path: Path | None = None, strict: bool = False) -> LockFile:
        """Load a lock file.

        Missing or outdated files load as empty, and so do unreadable ones
        unless ``strict`` is set. A project without ``skills-lock.json``
        falls back to the legacy ``.agents/.skill-lock.json``.

        Args:
            scope: Installation scope.
            project_path: Project root for project scope.
            strict: Raise instead of ignoring a file that exists but cannot
                be parsed. Used before rewriting the file.

        Returns:
            The lock file contents.

        Raises:
            LockWriteError: If ``strict`` and the file cannot be parsed.
        """
        path = self.lock_path(scope, project_path)
        empty = LockFile(version=self._version(scope))

        if not path.exists() and scope == Scope.PROJECT:
            legacy = (project_path or Path.cwd()) / LEGACY_PROJECT_LOCK
            if legacy.exists():
                return self._load_legacy(legacy, empty)
        if not path.exists():
            return empty

        lock = self._read(path, strict)
        if lock is None:
            return empty
        if scope == Scope.GLOBAL and lock.version < GLOBAL_LOCK_VERSION:
            logger.warning("Ignoring outdated lock file %s (version %s)", path, lock.version)
            return empty
        return lock

    def _read(self, path: Path, strict: bool = False) -> LockFile | None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return LockFile.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            if strict:
                raise LockWriteError(
                    f"Refusing to overwrite unreadable lock file {path}: {e}",
                    ["Fix the file or move it aside, then retry"],
                ) from e
            logger.warning("Ignoring unreadable lock file %s: %s", path, e)
            return None

    def _load_legacy(self, legacy: Path, empty: LockFile) -> LockFile:
        lock = self._read(legacy)
        if lock is None:
            return empty
        logger.debug("Read legacy project lock %s", legacy)
        return LockFile(version=PROJECT_LOCK_VERSION, skills=lock.skills)

    def save(self, scope: Scope, lock: LockFile, project_path: Path | None = None) -> None:
        """Write a lock file atomically.

        Args:
            scope: Installation scope.
            lock: Contents to write.
            project_path: Project root for project scope.

        Raises:
            LockWriteError: If the file cannot be written.
        """
        path = self.lock_path(scope, project_path)
        lock.version = self._version(scope)
        data = lock.model_dump(mode="json", by_alias=True, exclude_none=True)
        if scope == Scope.PROJECT:
            data["skills"] = dict(sorted(data["skills"].items()))
            data.pop("lastSelectedAgents", None)
            for entry in data["skills"].values():
                if "skillFolderHash" in entry:
                    entry["remoteHash"] = entry.pop("skillFolderHash")
        else:
            for entry in data["skills"].values():
                entry.setdefault("skillFolderHash", "")
        content = json.dumps(data, indent=2) + "\n"

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(content)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise LockWriteError(
                f"Failed to write lock file {path}: {e}",
                ["Check permissions on the lock file directory"],
            ) from e

    @contextmanager
    def transaction(self, scope: Scope, project_path: Path | None = None) -> Iterator[LockFile]:
        """Serialize a read-modify-write cycle on one lock file.

        The lock is saved when the block exits without an exception. A file
        that exists but cannot be parsed is never replaced.

        Args:
            scope: Installation scope.
            project_path: Project root for project scope.

        Yields:
            The loaded lock file, to be mutated in place.

        Raises:
            LockWriteError: If the file cannot be parsed or written.
        """
        with self._mutex(self.lock_path(scope, project_path)):
            lock = self.load(scope, project_path, strict=True)
            yield lock
            self.save(scope, lock, project_path)

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def get_entry(
        self, scope: Scope, name: str, project_path: Path | None = None
    ) -> SkillLockEntry | None:
        """Get a skill's lock entry."""
        return self.load(scope, project_path).skills.get(name)

    def list_entries(self, scope: Scope, project_path: Path | None = None) -> list[SkillLockEntry]:
        """List every entry in a scope's lock file."""
        return list(self.load(scope, project_path).skills.values())

    def upsert_entry(
        self, scope: Scope, entry: SkillLockEntry, project_path: Path | None = None
    ) -> SkillLockEntry:
        """Insert or update an entry.

        ``installedAt`` and unknown fields survive updates. Projections are
        merged by agent and universal consumers are unioned.

        Args:
            scope: Installation scope.
            entry: Entry to write.
            project_path: Project root for project scope.

        Returns:
            The stored entry.

        Raises:
            LockWriteError: If the file cannot be written.
        """
        with self.transaction(scope, project_path) as lock:
            existing = lock.skills.get(entry.name)
            if existing is not None:
                entry.installed_at = existing.installed_at
                merged = {p.agent_id: p for p in existing.projections}
                merged.update({p.agent_id: p for p in entry.projections})
                entry.projections = list(merged.values())
                entry.universal_agents = list(
                    dict.fromkeys([*existing.universal_agents, *entry.universal_agents])
                )
                for key, value in existing.model_extra.items():
                    if key not in entry.model_extra:
                        setattr(entry, key, value)
            entry.updated_at = utc_now()
            lock.skills[entry.name] = entry
        return entry

    def remove_entry(self, scope: Scope, name: str, project_path: Path | None = None) -> bool:
        """Delete an entry.

        Returns:
            True if removed, False if not found.
        """
        with self.transaction(scope, project_path) as lock:
            return lock.skills.pop(name, None) is not None

    def save_selected_agents(self, agents: list[str]) -> None:
        """Remember the agents chosen for the last install."""
        with self.transaction(Scope.GLOBAL) as lock:
            lock.last_selected_agents = list(agents)

    def get_last_selected_agents(self) -> list[str]:
        """Agents chosen for the last install."""
        return self.load(Scope.GLOBAL).last_selected_agents or []

    def find_conflicts(self, project_path: Path | None = None) -> list[str]:
        """Names installed both globally and in the project."""
        global_names = set(self.load(Scope.GLOBAL).skills)
        project_names = self.load(Scope.PROJECT, project_path).skills
        return sorted(name for name in project_names if name in global_names)
