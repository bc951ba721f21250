"""Normalization of user-supplied source strings.

Accepts GitHub shorthand (``owner/repo``), repository URLs, local paths,
configured aliases, and pasted install command lines such as
``npx skills add owner/repo --skill name -a claude-code``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from skillport.errors import InvalidSource

COMMAND_PREFIX = re.compile(
    r"^(?:(?:npx(?:\s+-y)?|bunx|pnpx|pnpm\s+dlx|yarn\s+dlx)\s+)?skills\s+(?:add|install|a|i)\s+",
    re.IGNORECASE,
)

BOOLEAN_FLAGS = frozenset({"-g", "--global", "-y", "--yes", "--all", "-l", "--list"})
SKILL_FLAGS = frozenset({"-s", "--skill"})
AGENT_FLAGS = frozenset({"-a", "--agent"})
WILDCARD = "*"

DEFAULT_ALIASES: dict[str, str] = {
    "anthropic": "anthropics/skills",
    "vercel": "vercel-labs/agent-skills",
}

_WINDOWS_DRIVE = re.compile(r"^[A-Za-z]:[\\/]")
_GITHUB_HOSTS = {"github.com", "www.github.com"}


# ============================================================================
# Source descriptors
# ============================================================================


@dataclass(frozen=True)
class GithubShorthand:
    """``owner/repo[/subpath][#ref]`` on github.com."""

    owner: str
    repo: str
    ref: str | None = None
    subpath: str | None = None

    kind = "github"

    @property
    def clone_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}"

    @property
    def identity(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class GithubUrl:
    """A full github.com URL, optionally pointing into a tree."""

    url: str
    owner: str
    repo: str
    ref: str | None = None
    subpath: str | None = None

    kind = "github"

    @property
    def clone_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.repo}"

    @property
    def identity(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True)
class GitLabUrl:
    """A GitLab repository URL, optionally pointing into a tree."""

    url: str
    ref: str | None = None
    subpath: str | None = None

    kind = "gitlab"

    @property
    def clone_url(self) -> str:
        return self.url

    @property
    def identity(self) -> str:
        path = urlparse(self.url).path.strip("/")
        return path.removesuffix(".git")


@dataclass(frozen=True)
class GitUrl:
    """Any other git remote (ssh or http)."""

    url: str

    kind = "git"
    ref = None
    subpath = None

    @property
    def clone_url(self) -> str:
        return self.url

    @property
    def identity(self) -> str:
        return self.url


@dataclass(frozen=True)
class LocalPath:
    """A directory on the local filesystem."""

    path: Path

    kind = "local"
    ref = None
    subpath = None
    clone_url = None

    @property
    def identity(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class Aliased:
    """A configured alias rewritten to its canonical repository."""

    alias: str
    resolved_to: str
    target: GithubShorthand | GithubUrl | GitLabUrl | GitUrl | LocalPath

    @property
    def kind(self) -> str:
        return self.target.kind

    @property
    def clone_url(self) -> str | None:
        return self.target.clone_url

    @property
    def ref(self) -> str | None:
        return self.target.ref

    @property
    def subpath(self) -> str | None:
        return self.target.subpath

    @property
    def identity(self) -> str:
        return self.target.identity


SkillSource = GithubShorthand | GithubUrl | GitLabUrl | GitUrl | LocalPath | Aliased


@dataclass(frozen=True)
class ResolvedSource:
    """Outcome of resolving user input.

    Attributes:
        source: Canonical source string.
        descriptor: Parsed source descriptor.
        skill_filter: Skill named with the ``@name`` shorthand, if any.
        pre_selected_skills: Skills requested up front.
        pre_selected_agents: Agents requested up front.
        is_command: True if the input was an install command line.
    """

    source: str
    descriptor: SkillSource
    skill_filter: str | None = None
    pre_selected_skills: list[str] = field(default_factory=list)
    pre_selected_agents: list[str] = field(default_factory=list)
    is_command: bool = False


# ============================================================================
# Install command parsing
# ============================================================================


def tokenize(text: str) -> list[str]:
    """Split a command line on whitespace, honoring single and double quotes.

    Args:
        text: Argument text.

    Returns:
        Tokens with surrounding quotes removed.
    """
    tokens: list[str] = []
    current: list[str] = []
    quote: str | None = None
    in_token = False

    for char in text:
        if quote:
            if char == quote:
                quote = None
            else:
                current.append(char)
        elif char in ("'", '"'):
            quote = char
            in_token = True
        elif char.isspace():
            if in_token:
                tokens.append("".join(current))
                current = []
                in_token = False
        else:
            current.append(char)
            in_token = True

    if in_token:
        tokens.append("".join(current))
    return tokens


def parse_install_command(text: str) -> tuple[str | None, list[str], list[str]] | None:
    """Parse a pasted ``skills add`` command line.

    Args:
        text: Raw input.

    Returns:
        ``(source, skills, agents)`` or None if the input is not
        command-shaped. ``source`` is None when no positional was given.
    """
    match = COMMAND_PREFIX.match(text.strip())
    if not match:
        return None

    source: str | None = None
    skills: list[str] = []
    agents: list[str] = []

    tokens = tokenize(text.strip()[match.end():])
    i = 0
    while i < len(tokens):
        token = tokens[i]
        if token in BOOLEAN_FLAGS:
            i += 1
            continue
        if token in SKILL_FLAGS or token in AGENT_FLAGS:
            if i + 1 < len(tokens):
                value = tokens[i + 1]
                if value != WILDCARD:
                    (skills if token in SKILL_FLAGS else agents).append(value)
                i += 2
            else:
                i += 1
            continue
        if source is None and not token.startswith("-"):
            source = token
        i += 1

    return source, skills, agents


# ============================================================================
# Descriptor parsing
# ============================================================================


def is_local_path(value: str) -> bool:
    """Check whether a source string names a local directory."""
    return (
        value.startswith(("/", "./", "../", "~/"))
        or value in (".", "..", "~")
        or bool(_WINDOWS_DRIVE.match(value))
    )


def split_skill_filter(value: str) -> tuple[str, str | None]:
    """Strip a trailing ``@skill`` filter from shorthand.

    The ``@`` must come after the last ``/`` and the filter must be
    non-empty without ``/``. URLs, ssh remotes and local paths are
    returned unchanged.
    """
    if is_local_path(value) or "://" in value or value.startswith("git@"):
        return value, None
    at = value.rfind("@")
    if at == -1 or at < value.rfind("/"):
        return value, None
    name = value[at + 1:]
    if not name or "/" in name:
        return value, None
    return value[:at], name


def parse_source(value: str) -> SkillSource:
    """Parse a source string into a descriptor.

    Args:
        value: Source string with any ``@skill`` filter already removed.

    Returns:
        The source descriptor.

    Raises:
        InvalidSource: If the string cannot be interpreted.
    """
    value = value.strip()
    if not value:
        raise InvalidSource("Empty source")

    if is_local_path(value):
        return LocalPath(Path(value).expanduser().resolve())
    if value.startswith(("http://", "https://")):
        return _parse_url(value)
    if value.startswith("git@"):
        return GitUrl(value)
    return _parse_shorthand(value)


def _parse_url(value: str) -> SkillSource:
    parsed = urlparse(value)
    host = (parsed.hostname or "").lower()
    path = parsed.path.strip("/")

    if host in _GITHUB_HOSTS:
        parts = path.split("/")
        if len(parts) < 2 or not parts[0] or not parts[1]:
            raise InvalidSource(
                f"Invalid GitHub URL: {value}",
                ["Expected https://github.com/<owner>/<repo>"],
            )
        owner, repo = parts[0], parts[1].removesuffix(".git")
        ref = subpath = None
        if len(parts) > 3 and parts[2] in ("tree", "blob"):
            ref = parts[3]
            subpath = "/".join(parts[4:]) or None
        return GithubUrl(url=value, owner=owner, repo=repo, ref=ref, subpath=subpath)

    if "gitlab" in host:
        marker = "/-/tree/"
        full = "/" + path
        if marker in full:
            repo_path, _, rest = full.partition(marker)
            parts = rest.split("/")
            return GitLabUrl(
                url=f"{parsed.scheme}://{parsed.netloc}{repo_path}",
                ref=parts[0] or None,
                subpath="/".join(parts[1:]) or None,
            )
        return GitLabUrl(url=value)

    return GitUrl(value)


def _parse_shorthand(value: str) -> GithubShorthand:
    ref = None
    if "#" in value:
        value, _, ref = value.partition("#")
        ref = ref or None
    value = value.removesuffix(".git")
    parts = [p for p in value.split("/") if p]
    if len(parts) < 2:
        raise InvalidSource(
            f"Invalid source format: {value}. Expected owner/repo",
            [
                "Use GitHub shorthand like 'owner/repo'",
                "Or pass a full repository URL or a local path",
            ],
        )
    return GithubShorthand(
        owner=parts[0],
        repo=parts[1],
        ref=ref,
        subpath="/".join(parts[2:]) or None,
    )


# ============================================================================
# Entry point
# ============================================================================


def resolve(value: str, aliases: dict[str, str] | None = None) -> ResolvedSource:
    """Resolve user input into a source descriptor and preselections.

    Args:
        value: Source string or pasted install command.
        aliases: Alias table. Defaults to the built-in aliases.

    Returns:
        The resolved source.

    Raises:
        InvalidSource: If no usable source remains after parsing.
    """
    text = value.strip()
    skills: list[str] = []
    agents: list[str] = []
    is_command = False

    command = parse_install_command(text)
    if command is not None:
        is_command = True
        raw_source, skills, agents = command
        text = (raw_source or "").strip()

    if not text:
        raise InvalidSource(
            "No source given",
            ["Pass a repository such as 'owner/repo', a URL or a local path"],
        )

    source, skill_filter = split_skill_filter(text)
    if skill_filter and skill_filter not in skills:
        skills.append(skill_filter)

    table = {k.lower(): v for k, v in (DEFAULT_ALIASES if aliases is None else aliases).items()}
    target = table.get(source.lower())
    if target:
        descriptor: SkillSource = Aliased(
            alias=source, resolved_to=target, target=parse_source(target)
        )
        source = target
    else:
        descriptor = parse_source(source)
    if isinstance(descriptor, LocalPath):
        # Recorded sources must not depend on the working directory.
        source = descriptor.identity

    return ResolvedSource(
        source=source,
        descriptor=descriptor,
        skill_filter=skill_filter,
        pre_selected_skills=skills,
        pre_selected_agents=agents,
        is_command=is_command,
    )
