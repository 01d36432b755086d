"""glf search / glf go commands."""

from __future__ import annotations

from pathlib import Path

import click
import structlog

from glfind.cli.utils import cli_errors, echo_json, ensure_index_ready, get_app
from glfind.core.errors import ConfigError
from glfind.projects.checkout import origin_url, project_url_for_remote
from glfind.search.models import CombinedMatch, SearchOptions
from glfind.sync.controller import refresh_in_background

logger = structlog.get_logger()


def _render(matches: list[CombinedMatch], *, show_scores: bool, is_excluded) -> None:
    for match in matches:
        line = match.project.display_string()
        tags = []
        if match.project.starred:
            tags.append("★")
        if match.project.archived:
            tags.append("archived")
        if is_excluded(match.project.path):
            tags.append("excluded")
        if tags:
            line += "  " + " ".join(tags)
        if show_scores:
            line += (
                f"  [total={match.total_score:.2f} search={match.search_score:.2f}"
                f" history={match.affinity_score} star={match.starred_bonus}]"
            )
        click.echo(line)


@click.command()
@click.argument("query", nargs=-1)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON (includes hidden projects)")
@click.option("--limit", type=int, default=None, help="Max results (0 = unlimited)")
@click.option("--scores", is_flag=True, help="Show score breakdown")
@click.option("--show-hidden", is_flag=True, help="Include excluded and archived projects")
@click.option("--mine", is_flag=True, help="Only projects you are a member of")
@click.pass_context
def search_command(
    ctx: click.Context,
    query: tuple[str, ...],
    as_json: bool,
    limit: int | None,
    scores: bool,
    show_hidden: bool,
    mine: bool,
) -> None:
    """Search cached projects. An empty QUERY lists by history and stars."""
    text = " ".join(query)
    app = get_app(ctx)
    options = SearchOptions(
        limit=app.config.search.default_limit if limit is None else limit,
        include_archived=show_hidden or as_json,
        include_excluded=show_hidden or as_json,
        member_only=mine,
        show_scores=scores,
    )
    with cli_errors(as_json=as_json):
        ensure_index_ready(app, quiet=as_json)
        matches = app.search(text, options)

    if as_json:
        base_url = app.config.gitlab.url
        echo_json(
            {
                "query": text,
                "results": [
                    m.to_dict(
                        include_score=options.show_scores,
                        base_url=base_url,
                        excluded=app.config.is_excluded(m.project.path),
                    )
                    for m in matches
                ],
                "total": len(matches),
                "limit": options.limit,
            }
        )
        return
    if not matches:
        click.echo("No matching projects", err=True)
        return
    _render(matches, show_scores=options.show_scores, is_excluded=app.config.is_excluded)


@click.command()
@click.argument("query", nargs=-1)
@click.option("--no-open", is_flag=True, help="Print the URL without opening a browser")
@click.pass_context
def go_command(ctx: click.Context, query: tuple[str, ...], no_open: bool) -> None:
    """Open the best match for QUERY and record the pick.

    A sync runs in the background; glf waits for it at most
    sync.background_budget_sec before exiting. `glf go .` opens the project
    of the git checkout in the current directory instead.
    """
    text = " ".join(query)
    app = get_app(ctx)
    if text == ".":
        with cli_errors():
            url = project_url_for_remote(origin_url(Path.cwd()), app.config.gitlab.url)
        _open(url, no_open=no_open)
        return

    with cli_errors():
        ensure_index_ready(app)
        matches = app.search(text, SearchOptions(limit=1))
        if not matches:
            raise click.ClickException(f"No project matches '{text}'")
        project = matches[0].project
        app.record(project.path, text or None)

    url = project.web_url(app.config.gitlab.url) if app.config.gitlab.url else project.path
    _open(url, no_open=no_open)

    try:
        controller = app.controller()
    except ConfigError as e:
        logger.debug("background_sync_skipped", reason=e.message)
        return
    refresh_in_background(controller, app.config.sync.background_budget_sec)


def _open(url: str, *, no_open: bool) -> None:
    click.echo(url)
    if not no_open:
        click.launch(url)
