"""CLI commands using Typer."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

if TYPE_CHECKING:
    from skillport.context import AppContext
    from skillport.discovery import FetchResult
    from skillport.source import ResolvedSource
    from skillport.types import AvailableSkill, InstallResults

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn

from skillport import __version__
from skillport.agents import all_agents, detect_installed, validate_agents
from skillport.confirm import prepare_confirmation
from skillport.console import TUI
from skillport.context import create_context
from skillport.errors import InvalidAgent, NoSkillsFound, SkillPortError
from skillport.install import InstallRequest
from skillport.source import WILDCARD
from skillport.types import CloneProgress, InstallMode, InstallProgress, Scope
from skillport.uninstall import RemoveRequest

app = typer.Typer(
    name="skillport",
    help="Install agent skills from git repositories into AI coding agents",
    no_args_is_help=True,
)

config_app = typer.Typer(help="Configuration commands")

app.add_typer(config_app, name="config")

console = Console()
tui = TUI(console)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        console.print(f"skillport v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Show debug logging")] = False,
) -> None:
    """Install agent skills from git repositories into AI coding agents."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def _scope(global_: bool) -> Scope:
    return Scope.GLOBAL if global_ else Scope.PROJECT


def _progress() -> Progress:
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    )


# ============================================================================
# Add
# ============================================================================


def _fetch(ctx: AppContext, resolved: ResolvedSource) -> FetchResult:
    """Clone or read a source and list its skills."""
    with _progress() as progress:
        task = progress.add_task(f"Fetching {resolved.source}...", total=None)

        def on_clone(event: CloneProgress) -> None:
            if event.phase == "cloning":
                progress.update(
                    task, description=f"Cloning {resolved.source} ({event.elapsed_secs:.0f}s)..."
                )

        return ctx.discoverer.fetch(resolved, on_clone)


def _choose_skills(
    resolved: ResolvedSource,
    available: list[AvailableSkill],
    requested: list[str] | None,
    all_skills: bool,
    yes: bool,
) -> list[str]:
    """Decide which skills to install.

    Raises:
        NoSkillsFound: If nothing was selected.
    """
    names = requested or resolved.pre_selected_skills
    if all_skills or WILDCARD in names:
        return [skill.name for skill in available]
    if names:
        return names
    if len(available) == 1 or yes:
        return [skill.name for skill in available]

    selected = tui.select_skills(available)
    if not selected:
        raise NoSkillsFound("No skills selected")
    return selected


def _choose_agents(
    ctx: AppContext,
    resolved: ResolvedSource,
    requested: list[str] | None,
    scope: Scope,
    project_path: Path | None,
) -> list[str]:
    """Decide which agents to install for.

    Explicit agents win, then agents from a pasted command, then the agents
    chosen last time, then the agents detected on this machine.

    Raises:
        InvalidAgent: If no agent could be determined or one is unknown.
    """
    ids = requested or resolved.pre_selected_agents
    if WILDCARD in ids:
        return [agent.id for agent in all_agents()]
    if ids:
        return [agent.id for agent in validate_agents(ids)]

    last = ctx.lockstore.get_last_selected_agents()
    if last:
        tui.show_info(f"Using agents from last install: {', '.join(last)}")
        return last

    detected = [agent.id for agent in detect_installed(scope, project_path)]
    if not detected:
        raise InvalidAgent(
            "No agents detected",
            ["Choose agents with --agent, e.g. --agent claude-code", "Run 'skillport agents' to list agents"],
        )
    tui.show_info(f"Detected agents: {', '.join(detected)}")
    return detected


def _install(ctx: AppContext, request: InstallRequest) -> InstallResults:
    """Run the installer with a progress display."""
    with _progress() as progress:
        task = progress.add_task("Installing...", total=None)

        def on_install(event: InstallProgress) -> None:
            if event.phase == "installing":
                progress.update(
                    task,
                    description=f"Installing {event.current_skill} ({event.completed + 1}/{event.total})...",
                )
            else:
                progress.update(task, description="Writing lock file...")

        return ctx.installer.install(request, on_install)


@app.command()
def add(
    source: Annotated[
        str, typer.Argument(help="owner/repo, URL, local path or a pasted 'skills add' command")
    ],
    skill: Annotated[
        list[str] | None, typer.Option("--skill", "-s", help="Skill to install (repeatable, '*' for all)")
    ] = None,
    agent: Annotated[
        list[str] | None, typer.Option("--agent", "-a", help="Agent to install for (repeatable, '*' for all)")
    ] = None,
    global_: Annotated[bool, typer.Option("--global", "-g", help="Install for the user instead of the project")] = False,
    project: Annotated[Path | None, typer.Option("--project", help="Project root (default: cwd)")] = None,
    copy: Annotated[bool, typer.Option("--copy", help="Copy files instead of symlinking")] = False,
    all_skills: Annotated[bool, typer.Option("--all", help="Install every skill in the source")] = False,
    list_only: Annotated[bool, typer.Option("--list", "-l", help="List skills without installing")] = False,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
    _context=None,
) -> None:
    """Install skills from a source."""
    ctx = _context or create_context()
    scope = _scope(global_)

    try:
        resolved = ctx.discoverer.resolve(source)
        fetched = _fetch(ctx, resolved)
        if list_only:
            tui.show_skills(fetched.skills, resolved.source)
            return

        skill_names = _choose_skills(resolved, fetched.skills, skill, all_skills, yes)
        agent_ids = _choose_agents(ctx, resolved, agent, scope, project)

        confirmation = prepare_confirmation(
            ctx.installer, ctx.audit, resolved.source, skill_names, agent_ids, scope, project
        )
        tui.show_confirmation(confirmation)
        if not yes and not tui.confirm(
            f"Install {len(skill_names)} skill(s) for {len(agent_ids)} agent(s)?"
        ):
            tui.show_info("Cancelled")
            return

        mode = InstallMode.COPY if copy else ctx.settings.default_mode
        request = InstallRequest(
            source=resolved,
            skills=skill_names,
            agents=agent_ids,
            scope=scope,
            project_path=project,
            mode=mode,
        )
        results = _install(ctx, request)
    except SkillPortError as e:
        tui.show_exception(e)
        raise typer.Exit(1) from e

    tui.show_results(results)
    if results.failed:
        raise typer.Exit(1)


# ============================================================================
# List / Agents
# ============================================================================


@app.command("list")
def list_skills(
    global_: Annotated[bool, typer.Option("--global", "-g", help="List global skills")] = False,
    project: Annotated[Path | None, typer.Option("--project", help="Project root (default: cwd)")] = None,
    _context=None,
) -> None:
    """Show installed skills."""
    ctx = _context or create_context()
    scope = _scope(global_)

    entries = ctx.lockstore.list_entries(scope, project)
    tui.show_installed(entries, "Global Skills" if global_ else "Project Skills")

    if scope == Scope.PROJECT:
        for name in ctx.lockstore.find_conflicts(project):
            tui.show_warning(f"{name} is installed both globally and in this project")


@app.command("agents")
def list_agents(
    global_: Annotated[bool, typer.Option("--global", "-g", help="Detect agents globally")] = False,
    project: Annotated[Path | None, typer.Option("--project", help="Project root (default: cwd)")] = None,
) -> None:
    """Show supported agents and which are detected."""
    detected = {agent.id for agent in detect_installed(_scope(global_), project)}
    tui.show_agents(all_agents(), detected)


# ============================================================================
# Remove
# ============================================================================


@app.command()
def remove(
    name: Annotated[str, typer.Argument(help="Skill name")],
    agent: Annotated[
        list[str] | None,
        typer.Option("--agent", "-a", help="Only detach these agents (repeatable)"),
    ] = None,
    global_: Annotated[bool, typer.Option("--global", "-g", help="Remove a global skill")] = False,
    project: Annotated[Path | None, typer.Option("--project", help="Project root (default: cwd)")] = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
    _context=None,
) -> None:
    """Remove a skill from some or all agents."""
    ctx = _context or create_context()
    scope = _scope(global_)

    try:
        details = ctx.uninstaller.get_skill_agent_details(scope, name, project)
        installed = ctx.lockstore.get_entry(scope, name, project) is not None
        if not installed and not details.universal_agents and not details.independent_agents:
            tui.show_error(f"Skill '{name}' is not installed")
            raise typer.Exit(1)

        tui.show_agent_details(details)
        target = ", ".join(agent) if agent else "all agents"
        if not yes and not tui.confirm(f"Remove {name} from {target}?", default=False):
            tui.show_info("Cancelled")
            return

        request = RemoveRequest(
            scope=scope,
            name=name,
            project_path=project,
            full_removal=not agent,
            agents=agent or [],
        )
        result = ctx.uninstaller.remove(request)
    except SkillPortError as e:
        tui.show_exception(e)
        raise typer.Exit(1) from e

    tui.show_remove_result(result)
    if result.errors:
        raise typer.Exit(1)


# ============================================================================
# Updates
# ============================================================================


@app.command()
def check(
    global_: Annotated[bool, typer.Option("--global", "-g", help="Check global skills")] = False,
    project: Annotated[Path | None, typer.Option("--project", help="Project root (default: cwd)")] = None,
    _context=None,
) -> None:
    """Check installed skills for upstream changes."""
    ctx = _context or create_context()

    with _progress() as progress:
        progress.add_task("Checking for updates...", total=None)
        updates = ctx.updater.check_updates(_scope(global_), project)

    tui.show_updates(updates)
    pending = [info.name for info in updates if info.has_update]
    if pending:
        tui.show_info(f"Run 'skillport update' to update {len(pending)} skill(s)")


@app.command()
def update(
    name: Annotated[str | None, typer.Argument(help="Skill to update (all with updates if omitted)")] = None,
    global_: Annotated[bool, typer.Option("--global", "-g", help="Update global skills")] = False,
    project: Annotated[Path | None, typer.Option("--project", help="Project root (default: cwd)")] = None,
    _context=None,
) -> None:
    """Reinstall skills from their recorded sources."""
    ctx = _context or create_context()
    scope = _scope(global_)

    if name:
        names = [name]
    else:
        names = [info.name for info in ctx.updater.check_updates(scope, project) if info.has_update]
        if not names:
            tui.show_success("All skills are up to date")
            return

    failed = False
    for skill_name in names:
        try:
            results = ctx.updater.update_skill(scope, skill_name, project)
        except SkillPortError as e:
            tui.show_exception(e)
            failed = True
            continue
        tui.show_success(f"Updated {skill_name}")
        if results.failed:
            tui.show_results(results)
            failed = True

    if failed:
        raise typer.Exit(1)


# ============================================================================
# Config Commands
# ============================================================================


@config_app.command("show")
def config_show(
    _context=None,
) -> None:
    """Show current configuration."""
    ctx = _context or create_context()
    console.print(f"\n[bold]Settings file:[/bold] {ctx.settings_manager.settings_file}")
    tui.show_settings(ctx.settings)


@config_app.command("set")
def config_set(
    key: Annotated[str, typer.Argument(help="Setting key, or alias.<name>")],
    value: Annotated[str, typer.Argument(help="Setting value (empty removes an alias)")],
    _context=None,
) -> None:
    """Set a configuration value."""
    ctx = _context or create_context()

    try:
        ctx.settings_manager.set_value(key, value)
    except SkillPortError as e:
        tui.show_exception(e)
        raise typer.Exit(1) from e
    tui.show_success(f"Set {key} to {value}")


if __name__ == "__main__":
    app()
