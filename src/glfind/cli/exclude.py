"""glf exclude commands - manage hidden project patterns."""

import click

from glfind.cli.utils import cli_errors
from glfind.config.loader import add_exclusion, remove_exclusion
from glfind.core.progress import status


@click.group()
def exclude_group() -> None:
    """Manage excluded project patterns.

    A pattern ending in '/*' hides everything under that path; anything else
    is a shell-style wildcard matched against the full project path.
    """


@exclude_group.command("add")
@click.argument("pattern")
@click.pass_obj
def exclude_add(obj: dict, pattern: str) -> None:
    with cli_errors():
        changed = add_exclusion(obj["config"], pattern, obj.get("config_path"))
    if changed:
        status(f"Excluding {pattern}", style="success")
    else:
        status(f"Already excluded: {pattern}", style="info")


@exclude_group.command("remove")
@click.argument("pattern")
@click.pass_obj
def exclude_remove(obj: dict, pattern: str) -> None:
    with cli_errors():
        changed = remove_exclusion(obj["config"], pattern, obj.get("config_path"))
    if not changed:
        raise click.ClickException(f"Pattern not in excluded_paths: {pattern}")
    status(f"No longer excluding {pattern}", style="success")


@exclude_group.command("list")
@click.pass_obj
def exclude_list(obj: dict) -> None:
    for pattern in obj["config"].excluded_paths:
        click.echo(pattern)
