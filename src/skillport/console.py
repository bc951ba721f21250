"""Rich console output for the skillport CLI."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

if TYPE_CHECKING:
    from skillport.agents import AgentDescriptor
    from skillport.config import Settings
    from skillport.confirm import Confirmation
    from skillport.errors import SkillPortError
    from skillport.lockfile import SkillLockEntry
    from skillport.types import (
        AvailableSkill,
        InstallResults,
        RemoveResult,
        SkillAgentDetails,
        SkillUpdateInfo,
    )

RISK_STYLES = {
    "safe": "green",
    "low": "green",
    "medium": "yellow",
    "high": "red",
    "critical": "bold red",
    "unknown": "dim",
}


class TUI:
    """Text output and prompts for skillport commands."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize TUI.

        Args:
            console: Console to print to. Defaults to stdout.
        """
        self.console = console or Console()

    def show_success(self, message: str) -> None:
        """Show success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def show_error(self, message: str) -> None:
        """Show error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def show_warning(self, message: str) -> None:
        """Show warning message."""
        self.console.print(f"[yellow]![/yellow] {message}")

    def show_info(self, message: str) -> None:
        """Show info message."""
        self.console.print(f"[blue]i[/blue] {message}")

    def show_exception(self, error: SkillPortError) -> None:
        """Show an error with its suggestions.

        Args:
            error: The error to show.
        """
        self.show_error(error.message)
        for suggestion in error.suggestions:
            self.console.print(f"  [dim]→ {suggestion}[/dim]")

    def confirm(self, message: str, default: bool = True) -> bool:
        """Show confirmation prompt.

        Args:
            message: Confirmation message.
            default: Default response.

        Returns:
            User's response.
        """
        return Confirm.ask(message, default=default)

    def select_skills(self, skills: list[AvailableSkill]) -> list[str]:
        """Prompt for skills to install.

        Args:
            skills: Skills to choose from.

        Returns:
            Names of the chosen skills. Empty if the input was not understood.
        """
        for i, skill in enumerate(skills, 1):
            self.console.print(f"  [{i}] {skill.name}")

        choice = Prompt.ask("Select skills (comma-separated numbers, or 'all')", default="all")
        if choice.strip().lower() == "all":
            return [skill.name for skill in skills]

        names = []
        for part in choice.split(","):
            try:
                idx = int(part.strip())
            except ValueError:
                return []
            if 1 <= idx <= len(skills):
                names.append(skills[idx - 1].name)
        return names

    def show_skills(self, skills: list[AvailableSkill], source: str) -> None:
        """Display skills available from a source, grouped by plugin."""
        self.console.print(f"\n[bold]Source: {source}[/bold]")

        groups: dict[str | None, list[AvailableSkill]] = {}
        for skill in skills:
            groups.setdefault(skill.plugin_name, []).append(skill)

        for plugin, members in groups.items():
            if plugin:
                self.console.print(f"\n[bold]{plugin}[/bold]")
            for skill in members:
                internal = " [dim](internal)[/dim]" if skill.is_internal else ""
                self.console.print(f"  [cyan]{skill.name}[/cyan]{internal} - {skill.description}")

    def show_confirmation(self, confirmation: Confirmation) -> None:
        """Display overwrites and audit data before an install."""
        for skill, agents in confirmation.overwrites.items():
            self.show_warning(f"{skill} already installed for: {', '.join(agents)}")

        if not confirmation.audit:
            return

        table = Table(title="Security Audit")
        table.add_column("Skill", style="cyan")
        table.add_column("Risk")
        table.add_column("Alerts")
        table.add_column("Score")
        for name, data in confirmation.audit.items():
            style = RISK_STYLES.get(data.risk.value, "")
            table.add_row(
                name,
                f"[{style}]{data.risk.value}[/{style}]" if style else data.risk.value,
                "" if data.alerts is None else str(data.alerts),
                "" if data.score is None else f"{data.score:g}",
            )
        self.console.print(table)

    def show_results(self, results: InstallResults) -> None:
        """Display install results."""
        for result in results.successful:
            self.show_success(f"{result.skill_name} → {result.agent} ({result.path})")
        for result in results.failed:
            self.show_error(f"{result.skill_name} → {result.agent}: {result.error}")
        if results.symlink_fallback_agents:
            self.show_warning(
                "Symlinks failed, files were copied for: "
                + ", ".join(results.symlink_fallback_agents)
            )

    def show_installed(self, entries: list[SkillLockEntry], title: str) -> None:
        """Display installed skills table."""
        if not entries:
            self.console.print("[yellow]No skills installed[/yellow]")
            return

        table = Table(title=title)
        table.add_column("Name", style="cyan")
        table.add_column("Source")
        table.add_column("Agents")
        table.add_column("Mode")
        table.add_column("Updated")

        for entry in sorted(entries, key=lambda e: e.name):
            table.add_row(
                entry.name,
                entry.source,
                ", ".join(entry.agents),
                entry.install_mode.value,
                entry.updated_at.strftime("%Y-%m-%d %H:%M"),
            )

        self.console.print(table)

    def show_agents(self, agents: list[AgentDescriptor], detected: set[str]) -> None:
        """Display supported agents and whether each was detected."""
        table = Table(title="Supported Agents")
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        table.add_column("Skills Directory")
        table.add_column("Type")
        table.add_column("Detected")

        for agent in agents:
            table.add_row(
                agent.id,
                agent.display_name,
                agent.skills_dir,
                "universal" if agent.is_universal else "independent",
                "[green]✓[/green]" if agent.id in detected else "",
            )

        self.console.print(table)

    def show_agent_details(self, details: SkillAgentDetails) -> None:
        """Display which agents consume a skill."""
        lines = [f"Canonical: {details.canonical_path}"]
        if details.universal_agents:
            lines.append("Universal: " + ", ".join(name for _, name in details.universal_agents))
        for info in details.independent_agents:
            kind = "symlink" if info.is_symlink else "copy"
            lines.append(f"{info.display_name}: {info.path} ({kind})")
        self.console.print(Panel("\n".join(lines), title=details.skill_name, border_style="blue"))

    def show_remove_result(self, result: RemoveResult) -> None:
        """Display what a removal did."""
        for path in result.removed_paths:
            self.show_success(f"Removed {path}")
        for error in result.errors:
            self.show_error(error)
        if result.shared_agents:
            self.show_warning(
                f"Also removed for {', '.join(result.shared_agents)}, which share the same skills directory"
            )
        if result.promoted_to_full:
            self.show_info(f"No agents use {result.skill_name} anymore, removed it entirely")

    def show_updates(self, updates: list[SkillUpdateInfo]) -> None:
        """Display update status per skill."""
        if not updates:
            self.console.print("[yellow]No skills to check[/yellow]")
            return

        table = Table(title="Updates")
        table.add_column("Name", style="cyan")
        table.add_column("Source")
        table.add_column("Status")

        for info in updates:
            status = "[yellow]update available[/yellow]" if info.has_update else "[green]up to date[/green]"
            table.add_row(info.name, info.source, status)

        self.console.print(table)

    def show_settings(self, settings: Settings) -> None:
        """Display current settings."""
        table = Table(title="Settings")
        table.add_column("Key", style="cyan")
        table.add_column("Value")

        data = settings.model_dump(mode="json", by_alias=True)
        aliases = data.pop("aliases")
        for key, value in data.items():
            table.add_row(key, str(value))
        for name, target in sorted(aliases.items()):
            table.add_row(f"alias.{name}", target)

        self.console.print(table)
