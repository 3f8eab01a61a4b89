"""Display and formatting service for relay records and workflow results"""

import os
from typing import Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from relay_cli.config import RelayConfig
from relay_cli.constants import SYMBOL_FAILURE, SYMBOL_SUCCESS
from relay_cli.exceptions import RelayError
from relay_cli.formatters import format_date, format_mask, format_presence, format_priority
from relay_cli.models.issue import IssueDraft, Team, TrackerContext
from relay_cli.models.repository import Repository
from relay_cli.models.worktree import WorktreeWithRepo
from relay_cli.utils.logging import get_logger

logger = get_logger(__name__)


class DisplayService:
    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def display_repositories(self, repos: List[Repository], worktree_counts: Dict[int, int]) -> None:
        """Display a table of registered repositories."""
        if not repos:
            self.console.print("No repositories registered. Run [bold]relay repo add[/bold] first.")
            return

        table = Table(title="Repositories")
        table.add_column("Name", style="cyan")
        table.add_column("Path")
        table.add_column("Worktree Base")
        table.add_column("Editor")
        table.add_column("Worktrees", justify="right")
        table.add_column("Added")

        for repo in repos:
            table.add_row(
                repo.name,
                repo.path,
                repo.worktree_base,
                repo.editor or "[dim]default[/dim]",
                str(worktree_counts.get(repo.id, 0)),
                format_date(repo.created_at),
            )
        self.console.print(table)

    def display_worktrees(self, worktrees: List[WorktreeWithRepo]) -> None:
        """Display catalogued worktrees, marking rows whose directory is gone."""
        if not worktrees:
            self.console.print("No worktrees. Create one with [bold]relay <task>[/bold].")
            return

        table = Table(title="Worktrees")
        table.add_column("Issue", style="cyan")
        table.add_column("Title")
        table.add_column("Repository")
        table.add_column("Branch")
        table.add_column("Path")
        table.add_column("Status")
        table.add_column("Created")

        missing = 0
        for wt in worktrees:
            exists = os.path.isdir(wt.path)
            if not exists:
                missing += 1
            table.add_row(
                wt.issue_identifier,
                wt.issue_title or "",
                wt.repo_name,
                wt.branch_name,
                wt.path,
                format_presence(exists),
                format_date(wt.created_at),
            )
        self.console.print(table)

        if missing:
            self.console.print(
                f"\n[yellow]{missing} worktree(s) missing on disk.[/yellow] "
                "Run [bold]relay cleanup[/bold] or [bold]relay prune[/bold]."
            )

    def display_issue_preview(self, draft: IssueDraft, context: TrackerContext, team: Team) -> None:
        """Show the drafted issue before it is created."""
        lines = [f"[bold]{escape(draft.title)}[/bold]", ""]
        lines.append(f"Team: {team.name} ({team.key})")
        project_name = context.project_name(draft.project_id)
        if project_name:
            lines.append(f"Project: {project_name}")
        label_names = context.label_names(draft.label_ids)
        if label_names:
            lines.append(f"Labels: {', '.join(label_names)}")
        lines.append(f"Priority: {format_priority(draft.priority)}")
        if draft.description:
            lines.extend(["", escape(draft.description)])

        self.console.print(Panel("\n".join(lines), title="Issue Preview", border_style="cyan"))

    def display_commit_preview(
        self, message: str, issue_identifier: Optional[str], co_authors: List[str]
    ) -> None:
        lines = [escape(message)]
        if issue_identifier:
            lines.extend(["", f"[dim]Linear: {issue_identifier}[/dim]"])
        if co_authors:
            lines.append("")
            lines.extend(f"[dim]Co-authored-by: {author}[/dim]" for author in co_authors)
        self.console.print(
            Panel("\n".join(lines), title="Generated Commit Message", border_style="cyan")
        )

    def display_pr_preview(self, title: str, body: str, base_branch: str, head_branch: str) -> None:
        self.console.print(
            Panel(
                f"[bold]{escape(title)}[/bold]\n[dim]{head_branch} -> {base_branch}[/dim]\n\n{escape(body)}",
                title="Pull Request",
                border_style="cyan",
            )
        )

    def display_success(self, headline: str, details: Dict[str, str]) -> None:
        """Print the short multi-line summary after a successful workflow."""
        self.console.print(f"[green bold]{SYMBOL_SUCCESS} {headline}[/green bold]")
        for label, value in details.items():
            if value:
                self.console.print(f"  [dim]{label}:[/dim] {escape(str(value))}")

    def display_error(self, error: RelayError) -> None:
        self.console.print(f"[red]{SYMBOL_FAILURE} Error: {escape(error.message)}[/red]")
        if error.hint:
            self.console.print(f"[dim]  Try: {escape(error.hint)}[/dim]")

    def display_settings(self, settings: Dict[str, str], config: Optional[RelayConfig]) -> None:
        """Show stored keys (masked), preferences and the discovered project config."""
        table = Table(title="Settings", show_header=False)
        table.add_column("Key", style="cyan")
        table.add_column("Value")
        table.add_row("Linear API key", format_mask(settings.get("linear_key")))
        table.add_row("OpenRouter API key", format_mask(settings.get("openrouter_key")))
        table.add_row("GitHub token", format_mask(settings.get("github_token")))
        table.add_row("Default editor", settings.get("default_editor") or "[dim]cursor[/dim]")
        table.add_row("Default team", settings.get("default_team_id") or "[dim]first team[/dim]")
        self.console.print(table)

        if config is None:
            self.console.print("[dim]No project config found (.relay/relay-config.json).[/dim]")
            return

        config_table = Table(title=f"Project config ({config.source})", show_header=False)
        config_table.add_column("Key", style="cyan")
        config_table.add_column("Value")
        for key, value in config.to_dict().items():
            if isinstance(value, list):
                value = ", ".join(value)
            config_table.add_row(key, str(value))
        self.console.print(config_table)
