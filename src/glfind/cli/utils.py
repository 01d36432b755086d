"""CLI utilities."""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import click

from glfind.context import AppContext
from glfind.core.errors import GlfError
from glfind.core.progress import pluralize, spinner, status


def get_app(ctx: click.Context) -> AppContext:
    """Build the AppContext for this invocation on first use.

    Tests may pre-seed ``ctx.obj["app"]`` or ``ctx.obj["remote"]``.
    """
    root = ctx.find_root()
    obj = root.ensure_object(dict)
    app = obj.get("app")
    if app is None:
        app = AppContext(obj["config"], config_path=obj.get("config_path"), remote=obj.get("remote"))
        obj["app"] = app
        root.call_on_close(app.close)
    return app


def echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


@contextmanager
def cli_errors(*, as_json: bool = False) -> Iterator[None]:
    """Turn GlfError into a non-zero exit, as JSON when requested."""
    try:
        yield
    except GlfError as e:
        if as_json:
            echo_json(e.to_dict())
            raise SystemExit(1) from e
        raise click.ClickException(str(e)) from e


def ensure_index_ready(app: AppContext, *, quiet: bool = False) -> None:
    """Run a forced Full sync when the index is new, rebuilt or empty."""
    if not app.needs_full_sync():
        return
    if app.opened_index().rebuilt and not quiet:
        status("Index format changed, rebuilding", style="warning")
    with spinner("Building project index") if not quiet else _noop():
        result = app.controller().sync(force_full=True)
    if not quiet:
        status(f"Indexed {pluralize(result.indexed, 'project')}", style="success")


@contextmanager
def _noop() -> Iterator[None]:
    yield
