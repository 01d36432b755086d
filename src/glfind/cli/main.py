"""glf CLI - fuzzy finder for GitLab projects."""

from pathlib import Path

import click

from glfind import __version__
from glfind.cli.exclude import exclude_group
from glfind.cli.history import history_group, record_command
from glfind.cli.search import go_command, search_command
from glfind.cli.sync import sync_command
from glfind.config.loader import load_config
from glfind.core.errors import ConfigError
from glfind.core.logging import configure_logging


@click.group()
@click.version_option(version=__version__, prog_name="glf")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: ~/.config/glf/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None) -> None:
    """glf - Fast fuzzy search across your GitLab projects."""
    ctx.ensure_object(dict)
    try:
        config = load_config(config_path)
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    if verbose:
        config.logging.level = "DEBUG"
    configure_logging(config=config.logging)
    ctx.obj["verbose"] = verbose
    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path


cli.add_command(search_command, name="search")
cli.add_command(go_command, name="go")
cli.add_command(sync_command, name="sync")
cli.add_command(record_command, name="record")
cli.add_command(history_group, name="history")
cli.add_command(exclude_group, name="exclude")


if __name__ == "__main__":
    cli()
