# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/core/file_ops.py
"""
Atomic file operation utilities.

Writes go to a temporary file in the target's directory, get their final
permission bits, are fsync'ed and then renamed over the target, so a reader
never observes a half-written configuration file.
"""

from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional


@contextmanager
def atomic_write(
    target_path: Path,
    *,
    suffix: str = ".part",
    dir: Optional[Path] = None,
) -> Generator[Path, None, None]:
    """
    Context manager for atomic file writes using temporary file + rename.

    Yields the temporary path; on success it replaces target_path, on failure
    the temporary file is removed and the exception propagates.

    Example:
        with atomic_write(Path("/etc/netplan/99-dhcp2static.yaml")) as tmp:
            tmp.write_bytes(data)
    """
    target_path = Path(target_path)
    temp_dir = Path(dir) if dir else target_path.parent

    fd, temp_name = tempfile.mkstemp(
        suffix=suffix,
        prefix=f".{target_path.name}.",
        dir=str(temp_dir),
    )
    temp_path = Path(temp_name)

    try:
        os.close(fd)
        yield temp_path
        os.replace(temp_path, target_path)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise


def atomic_write_bytes(path: Path, data: bytes, *, mode: Optional[int] = None) -> None:
    """
    Crash-safer atomic write of `data` to `path`.

    The permission bits are applied to the temporary file before the rename,
    so the target never exists with wider permissions than requested.
    """
    path = Path(path)
    with atomic_write(path, suffix=".tmp") as tmp:
        with open(tmp, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            os.chmod(tmp, mode & 0o7777)

    fsync_dir(path.parent)


def fsync_dir(directory: Path) -> None:
    """Best-effort fsync of a directory entry (persists renames)."""
    try:
        dirfd = os.open(str(directory), os.O_DIRECTORY)
    except OSError:
        return
    try:
        os.fsync(dirfd)
    except OSError:
        pass
    finally:
        os.close(dirfd)
