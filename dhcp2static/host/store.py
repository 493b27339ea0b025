# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/host/store.py
"""
Config File Store: typed access to the configuration files of one host.

Two implementations share one small capability surface:

- LocalFileStore   operates on this machine's filesystem (atomic writes)
- RemoteFileStore  operates over SSH with the same semantics

All failures surface as OSError (FileNotFoundError, PermissionError or
StoreError for remote failures); pipeline components wrap them into their
own error types.
"""
from __future__ import annotations

import base64
import logging
import os
import posixpath
import subprocess
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from ..core.file_ops import atomic_write_bytes, fsync_dir
from ..ssh.ssh_client import SSHClient
from .runner import DEFAULT_TIMEOUT_S

DEFAULT_PATTERNS = ("*.yaml", "*.yml")


class StoreError(OSError):
    """A remote file operation failed."""


class ConfigFileStore(Protocol):
    directory: str

    def path(self, name: str) -> str: ...

    def list(self, patterns: Sequence[str] = DEFAULT_PATTERNS) -> List[str]: ...

    def exists(self, path: str) -> bool: ...

    def read(self, path: str) -> bytes: ...

    def mode(self, path: str) -> int: ...

    def write(self, path: str, data: bytes, mode: int) -> None: ...

    def copy(self, src: str, dst: str) -> None: ...

    def chmod(self, path: str, mode: int) -> None: ...

    def rename(self, src: str, dst: str) -> None: ...

    def remove(self, path: str) -> None: ...


def read_text(store: ConfigFileStore, path: str) -> str:
    return store.read(path).decode("utf-8", errors="replace")


class LocalFileStore:
    def __init__(self, directory: str, logger: Optional[logging.Logger] = None):
        self.directory = str(directory)
        self.logger = logger or logging.getLogger("dhcp2static")

    def path(self, name: str) -> str:
        return os.path.join(self.directory, name)

    def list(self, patterns: Sequence[str] = DEFAULT_PATTERNS) -> List[str]:
        root = Path(self.directory)
        if not root.is_dir():
            return []
        found = {str(p) for pat in patterns for p in root.glob(pat) if p.is_file()}
        return sorted(found)

    def exists(self, path: str) -> bool:
        return os.path.lexists(path)

    def read(self, path: str) -> bytes:
        return Path(path).read_bytes()

    def mode(self, path: str) -> int:
        return os.stat(path).st_mode & 0o7777

    def write(self, path: str, data: bytes, mode: int) -> None:
        atomic_write_bytes(Path(path), data, mode=mode)
        self.logger.debug("Wrote %s (%d bytes, mode=%o)", path, len(data), mode)

    def copy(self, src: str, dst: str) -> None:
        self.write(dst, self.read(src), self.mode(src))

    def chmod(self, path: str, mode: int) -> None:
        os.chmod(path, mode & 0o7777)

    def rename(self, src: str, dst: str) -> None:
        os.replace(src, dst)
        fsync_dir(Path(dst).parent)

    def remove(self, path: str) -> None:
        Path(path).unlink(missing_ok=True)


class RemoteFileStore:
    """
    File store over SSH.

    Content travels base64-encoded on stdin; writes go through mktemp in the
    target directory + chmod + mv, so the target is replaced atomically.
    """

    _WRITE_SCRIPT = (
        'set -e; tmp=$(mktemp "$(dirname "$1")/.dhcp2static.XXXXXX"); '
        'trap \'rm -f "$tmp"\' EXIT; '
        'base64 -d > "$tmp"; chmod "$2" "$tmp"; mv -f "$tmp" "$1"; sync || true'
    )
    _LIST_SCRIPT = (
        'cd "$1" 2>/dev/null || exit 0; shift; '
        'for pat in "$@"; do for p in $pat; do [ -f "$p" ] && printf "%s\\n" "$p"; done; done; true'
    )

    def __init__(self, sshc: SSHClient, directory: str, *, timeout: float = DEFAULT_TIMEOUT_S):
        self.sshc = sshc
        self.directory = str(directory)
        self.timeout = timeout

    def path(self, name: str) -> str:
        return posixpath.join(self.directory, name)

    def _exec(self, payload: str, *args: str, input_text: Optional[str] = None, what: str = ""):
        try:
            return self.sshc.run(SSHClient.script(payload, *args), input_text=input_text, timeout=self.timeout, check=False)
        except subprocess.TimeoutExpired as e:
            raise StoreError(f"{what or 'remote file operation'} timed out on {self.sshc.cfg.host} after {self.timeout:.0f}s") from e

    def _sh(self, payload: str, *args: str, input_text: Optional[str] = None, what: str = "") -> str:
        res = self._exec(payload, *args, input_text=input_text, what=what)
        if res.rc != 0:
            detail = (res.stderr or res.stdout or "").strip()
            raise StoreError(f"{what or 'remote file operation'} failed on {self.sshc.cfg.host} (rc={res.rc}): {detail}")
        return res.stdout

    def list(self, patterns: Sequence[str] = DEFAULT_PATTERNS) -> List[str]:
        out = self._sh(self._LIST_SCRIPT, self.directory, *patterns, what="list")
        names = {ln.strip() for ln in out.splitlines() if ln.strip()}
        return sorted(self.path(n) for n in names)

    def exists(self, path: str) -> bool:
        res = self._exec('[ -e "$1" ] || [ -L "$1" ]', path, what=f"exists {path}")
        if res.rc not in (0, 1):
            raise StoreError(f"exists {path} failed on {self.sshc.cfg.host} (rc={res.rc}): {res.stderr.strip()}")
        return res.rc == 0

    def read(self, path: str) -> bytes:
        out = self._sh('base64 < "$1"', path, what=f"read {path}")
        return base64.b64decode("".join(out.split()))

    def mode(self, path: str) -> int:
        out = self._sh('stat -c %a -- "$1"', path, what=f"stat {path}")
        return int(out.strip(), 8)

    def write(self, path: str, data: bytes, mode: int) -> None:
        payload = base64.b64encode(data).decode("ascii")
        self._sh(self._WRITE_SCRIPT, path, f"{mode & 0o7777:o}", input_text=payload, what=f"write {path}")

    def copy(self, src: str, dst: str) -> None:
        self._sh('cp -p -- "$1" "$2"', src, dst, what=f"copy {src}")

    def chmod(self, path: str, mode: int) -> None:
        self._sh('chmod "$2" -- "$1"', path, f"{mode & 0o7777:o}", what=f"chmod {path}")

    def rename(self, src: str, dst: str) -> None:
        self._sh('mv -f -- "$1" "$2"', src, dst, what=f"rename {src}")

    def remove(self, path: str) -> None:
        self._sh('rm -f -- "$1"', path, what=f"remove {path}")
