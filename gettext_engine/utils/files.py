"""Locked, atomic catalog file access."""

from __future__ import annotations

import os
import stat
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from filelock import FileLock, Timeout

from gettext_engine.services.exceptions import CatalogIOError


@contextmanager
def locked(path: Path, timeout: float = -1) -> Iterator[None]:
    """Hold the inter-process lock (``<path>.lock``) guarding writes to ``path``."""

    lock = FileLock(f"{path}.lock", timeout=timeout)
    try:
        lock.acquire()
    except Timeout as exc:
        raise CatalogIOError(f"Timed out waiting for the lock on '{path}'.") from exc
    try:
        yield
    finally:
        lock.release()


def read_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise CatalogIOError(f"Cannot read catalog '{path}': {exc}") from exc


def _target_mode(path: Path) -> int:
    """Mode the replaced file should end up with: the current one, else what ``open()`` would give."""

    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def write_atomic(path: Path, payload: bytes) -> None:
    """Replace ``path`` with ``payload``.

    The payload goes to a temporary file in the same directory first, so
    readers see either the old or the new catalog, never a partial one.
    Callers serialize writers with :func:`locked`.
    """

    try:
        with tempfile.NamedTemporaryFile(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
        ) as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
        try:
            os.chmod(handle.name, _target_mode(path))
            os.replace(handle.name, path)
        except OSError:
            os.unlink(handle.name)
            raise
    except OSError as exc:
        raise CatalogIOError(f"Cannot write catalog '{path}': {exc}") from exc


__all__ = ["locked", "read_bytes", "write_atomic"]
