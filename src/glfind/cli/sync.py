"""glf sync command."""

import click
import structlog

from glfind.cli.utils import cli_errors, get_app
from glfind.core.progress import pluralize, spinner, status

logger = structlog.get_logger()


@click.command()
@click.option("--full", "force_full", is_flag=True, help="Force a full sync")
@click.pass_context
def sync_command(ctx: click.Context, force_full: bool) -> None:
    """Synchronize the local cache with GitLab.

    Incremental by default; a full sync also removes projects deleted on
    the server and runs automatically once the last one is too old. The
    connection is checked before anything is fetched.
    """
    app = get_app(ctx)
    with cli_errors():
        controller = app.controller()
        username = app.remote().current_username()
        logger.debug("remote_connected", username=username)
        status(f"Connected as {username}", style="info")
        force_full = force_full or app.needs_full_sync()
        with spinner("Synchronizing projects"):
            result = controller.sync(force_full=force_full)

    if result.skipped:
        status("Full sync returned no projects; cache left unchanged", style="warning")
        return
    status(
        f"{result.mode.value.capitalize()} sync: {pluralize(result.indexed, 'project')} indexed",
        style="success",
    )
