"""glf history / glf record commands."""

from __future__ import annotations

import click
import questionary
from rich.table import Table

from glfind.cli.utils import cli_errors, echo_json, get_app
from glfind.core.progress import get_console, pluralize, status


@click.command()
@click.argument("project_path")
@click.option("--query", "-q", default=None, help="Query the project was picked for")
@click.pass_context
def record_command(ctx: click.Context, project_path: str, query: str | None) -> None:
    """Record that PROJECT_PATH was selected (for external launchers)."""
    app = get_app(ctx)
    with cli_errors():
        app.record(project_path, query)
    status(f"Recorded {project_path}", style="success")


@click.group()
def history_group() -> None:
    """Inspect or clear selection history."""


@history_group.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--limit", type=int, default=20, help="Max entries (0 = all)")
@click.pass_context
def history_show(ctx: click.Context, as_json: bool, limit: int) -> None:
    """Show the most frequently selected projects."""
    history = get_app(ctx).wait_for_history()
    entries = history.entries()
    total, unique = history.stats()
    if limit > 0:
        entries = entries[:limit]

    if as_json:
        echo_json(
            {
                "total_selections": total,
                "unique_projects": unique,
                "entries": [
                    {
                        "path": e.path,
                        "count": e.count,
                        "last_used": e.last_used.isoformat(),
                        "score": e.score,
                    }
                    for e in entries
                ],
            }
        )
        return

    if not entries:
        status("No history yet", style="info")
        return
    table = Table(show_header=True, header_style="bold")
    table.add_column("Project")
    table.add_column("Picks", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Last used")
    for e in entries:
        table.add_row(e.path, str(e.count), str(e.score), e.last_used.strftime("%Y-%m-%d %H:%M"))
    console = get_console()
    console.print(table)
    status(
        f"{pluralize(total, 'selection')} across {pluralize(unique, 'project')}",
        style="none",
    )


@history_group.command("clear")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def history_clear(ctx: click.Context, yes: bool) -> None:
    """Forget every recorded selection."""
    history = get_app(ctx).wait_for_history()
    total, _ = history.stats()
    if total == 0:
        status("History is already empty", style="info")
        return
    if not yes:
        answer = questionary.confirm(
            f"Delete {pluralize(total, 'selection')}? This cannot be undone.", default=False
        ).ask()
        if not answer:
            status("[dim]Cancelled[/dim]", style="none")
            return
    with cli_errors():
        history.clear()
        history.save()
    status("History cleared", style="success")
