# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/transition/backup.py
"""
Backup Manager: snapshot configuration paths before any mutation and put
them back on rollback.

Backups live next to the original (`path + suffix`) and are kept after a
successful transition. A backup left by an earlier run that would be
overwritten with different content or mode is first kept once as
`path + suffix + ".orig"`, so the state before the first transition survives
repeated runs.
"""
from __future__ import annotations

import hashlib
import logging
from typing import Iterable, List, Optional, Sequence

from ..core.exceptions import BackupError, RollbackError
from ..core.utils import U
from ..host.store import ConfigFileStore
from .model import Backup, Snapshot

DEFAULT_BACKUP_SUFFIX = ".bak"
DIR_WORLD_BITS = 0o007
FIRST_BACKUP_SUFFIX = ".orig"


def _sha256(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _unique(paths: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for p in paths:
        if p not in seen:
            seen.append(p)
    return seen


class BackupManager:
    def __init__(self, store: ConfigFileStore, logger: logging.Logger, *, suffix: str = DEFAULT_BACKUP_SUFFIX):
        if not suffix:
            raise ValueError("backup suffix must not be empty")
        self.store = store
        self.logger = logger
        self.suffix = suffix

    def backup_path(self, path: str) -> str:
        return f"{path}{self.suffix}"

    def _keep_first_backup(self, bpath: str, content: bytes, mode: int) -> None:
        if not self.store.exists(bpath):
            return
        first = f"{bpath}{FIRST_BACKUP_SUFFIX}"
        if self.store.exists(first):
            return
        previous, previous_mode = self.store.read(bpath), self.store.mode(bpath)
        if (previous, previous_mode) == (content, mode):
            return
        self.store.write(first, previous, previous_mode)
        self.logger.info("Kept earlier backup %s as %s", bpath, first)

    def snapshot(self, paths: Sequence[str], directory: Optional[str] = None) -> Snapshot:
        """
        Save content + mode of every path. Paths that do not exist yet are
        recorded with existed=False so restore can remove them again.

        All-or-nothing: any read/write failure raises BackupError and no
        Snapshot is returned.
        """
        directory = directory or self.store.directory
        try:
            dir_mode: Optional[int] = self.store.mode(directory)
        except OSError as e:
            raise BackupError(msg=f"cannot stat config directory {directory}: {e}", cause=e).with_context(
                path=directory
            ) from e

        backups: List[Backup] = []
        for path in _unique(paths):
            try:
                if not self.store.exists(path):
                    backups.append(Backup(original_path=path, backup_path=None, mode=None, existed=False))
                    continue
                content = self.store.read(path)
                mode = self.store.mode(path)
                bpath = self.backup_path(path)
                self._keep_first_backup(bpath, content, mode)
                self.store.write(bpath, content, mode)
            except OSError as e:
                raise BackupError(msg=f"cannot back up {path}: {e}", cause=e).with_context(
                    path=path, saved=len(backups)
                ) from e

            backups.append(Backup(original_path=path, backup_path=bpath, mode=mode, existed=True, sha256=_sha256(content)))
            self.logger.debug("Backup %s -> %s (mode=%s)", path, bpath, U.oct_mode(mode))

        self.logger.info(
            "Snapshot of %s: %d backup(s), %d new path(s)",
            directory,
            sum(1 for b in backups if b.existed),
            sum(1 for b in backups if not b.existed),
        )
        return Snapshot(directory=directory, directory_mode=dir_mode, backups=tuple(backups))

    def _restore_one(self, b: Backup) -> None:
        if not b.existed:
            self.store.remove(b.original_path)
            return
        assert b.backup_path is not None and b.mode is not None
        content = self.store.read(b.backup_path)
        if b.sha256 and _sha256(content) != b.sha256:
            raise OSError(f"backup {b.backup_path} changed since snapshot (checksum mismatch)")
        self.store.write(b.original_path, content, b.mode)
        # write may be subject to umask on some stores; make the mode exact
        self.store.chmod(b.original_path, b.mode)

    def _restore_entries(self, backups: Sequence[Backup]) -> List[str]:
        unrestored: List[str] = []
        for b in backups:
            try:
                self._restore_one(b)
                self.logger.debug("Restored %s", b.original_path)
            except OSError as e:
                self.logger.error("Restore of %s failed: %s", b.original_path, e)
                unrestored.append(b.original_path)
        return unrestored

    def restore(self, snapshot: Snapshot) -> None:
        """
        Put every snapshotted path back (content + mode), then the directory
        mode without its world bits: a rolled-back directory stays closed.
        Every entry is attempted; failures are collected, not retried.
        """
        unrestored = self._restore_entries(snapshot.backups)
        if snapshot.directory_mode is not None:
            try:
                self.store.chmod(snapshot.directory, snapshot.directory_mode & ~DIR_WORLD_BITS)
            except OSError as e:
                self.logger.error("Restoring mode of %s failed: %s", snapshot.directory, e)
                unrestored.append(snapshot.directory)

        if unrestored:
            raise RollbackError(
                msg=f"restore incomplete: {len(unrestored)} path(s) not restored: {', '.join(unrestored)}",
                context={"unrestored": unrestored},
            )
        self.logger.info("Restored %d path(s) from snapshot", len(snapshot.backups))

    def discard(self, snapshot: Snapshot, paths: Sequence[str]) -> None:
        """Restore only the named paths (no directory mode, no reapply)."""
        entries = [b for b in snapshot.backups if b.original_path in set(paths)]
        missing = [p for p in paths if p not in snapshot]
        if missing:
            raise RollbackError(
                msg=f"not in snapshot: {', '.join(missing)}",
                context={"unrestored": missing},
            )
        unrestored = self._restore_entries(entries)
        if unrestored:
            raise RollbackError(
                msg=f"discard incomplete: {', '.join(unrestored)}",
                context={"unrestored": unrestored},
            )
