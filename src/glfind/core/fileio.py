"""Crash-safe file writes.

Every persisted file goes through :func:`atomic_write_bytes`: the payload is
written and fsynced to a sibling temp file, then renamed over the destination
with ``os.replace``. A crash at any point leaves either the old file or the
new one, never a truncated mix.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path

from glfind.core.errors import PersistenceError


def atomic_write_bytes(path: Path, data: bytes) -> None:
    """Atomically replace ``path`` with ``data``.

    Raises:
        PersistenceError: If the directory cannot be created or the temp file
            cannot be written or renamed. The temp file is removed on failure.
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise PersistenceError.write_failed(str(path), str(e)) from e

    tmp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="wb",
            delete=False,
            dir=str(path.parent),
            prefix=path.name + ".tmp.",
        ) as f:
            tmp_path = Path(f.name)
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)
    except OSError as e:
        if tmp_path is not None:
            with contextlib.suppress(OSError):
                tmp_path.unlink()
        raise PersistenceError.write_failed(str(path), str(e)) from e


def atomic_write_text(path: Path, text: str) -> None:
    """Atomically replace ``path`` with UTF-8 ``text``."""
    atomic_write_bytes(path, text.encode("utf-8"))
