# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/host/runner.py
"""
Command execution capability for one target host.

Runners never raise for a failing, hanging or missing command: every
abnormal completion is folded into a CommandResult with a non-zero
return code, so callers branch on results instead of exceptions.
"""
from __future__ import annotations

import logging
import subprocess
import time
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

from ..core.utils import U
from ..ssh.ssh_client import SSHClient

DEFAULT_TIMEOUT_S = 120.0

# Shell conventions (coreutils `timeout`, sh "command not found")
RC_TIMEOUT = 124
RC_NOT_FOUND = 127


@dataclass(frozen=True)
class CommandResult:
    argv: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    seconds: float = 0.0
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined diagnostic text (stdout then stderr), stripped."""
        parts = [p.strip() for p in (self.stdout, self.stderr) if p and p.strip()]
        return "\n".join(parts)


class CommandRunner(Protocol):
    """What the pipeline needs from a host: run an argv, get a result back."""

    description: str

    def run(self, argv: Sequence[str], *, timeout: Optional[float] = None) -> CommandResult: ...


@dataclass
class LocalRunner:
    logger: logging.Logger
    default_timeout: float = DEFAULT_TIMEOUT_S
    description: str = field(default="localhost")

    def run(self, argv: Sequence[str], *, timeout: Optional[float] = None) -> CommandResult:
        argv = list(argv)
        limit = self.default_timeout if timeout is None else timeout
        t0 = time.monotonic()
        try:
            cp = U.run_cmd(self.logger, argv, check=False, capture=True, timeout=limit)
        except subprocess.TimeoutExpired:
            return CommandResult(
                argv=argv,
                returncode=RC_TIMEOUT,
                stderr=f"timed out after {limit:.0f}s: {U.pretty_cmd(argv)}",
                seconds=time.monotonic() - t0,
                timed_out=True,
            )
        except OSError as e:
            return CommandResult(
                argv=argv,
                returncode=RC_NOT_FOUND,
                stderr=f"cannot execute {argv[0]!r}: {e}",
                seconds=time.monotonic() - t0,
            )
        return CommandResult(
            argv=argv,
            returncode=int(cp.returncode),
            stdout=cp.stdout or "",
            stderr=cp.stderr or "",
            seconds=time.monotonic() - t0,
        )


class SSHRunner:
    """
    Runs commands on a remote host through SSHClient.

    Transport retries are off by default: a command such as `netplan apply`
    can drop the session it runs in and must still run only once. Pass
    retries=None to use the SSH config value for read-only commands.
    """

    def __init__(self, sshc: SSHClient, *, default_timeout: float = DEFAULT_TIMEOUT_S, retries: Optional[int] = 0):
        self.sshc = sshc
        self.default_timeout = default_timeout
        self.retries = retries
        self.description = sshc.cfg.describe()

    def run(self, argv: Sequence[str], *, timeout: Optional[float] = None) -> CommandResult:
        argv = list(argv)
        limit = self.default_timeout if timeout is None else timeout
        t0 = time.monotonic()
        try:
            res = self.sshc.run(argv, timeout=limit, check=False, retries=self.retries)
        except subprocess.TimeoutExpired:
            return CommandResult(
                argv=argv,
                returncode=RC_TIMEOUT,
                stderr=f"timed out after {limit:.0f}s on {self.sshc.cfg.host}: {U.pretty_cmd(argv)}",
                seconds=time.monotonic() - t0,
                timed_out=True,
            )
        except OSError as e:
            # local ssh binary missing
            return CommandResult(argv=argv, returncode=RC_NOT_FOUND, stderr=str(e), seconds=time.monotonic() - t0)
        return CommandResult(
            argv=argv,
            returncode=res.rc,
            stdout=res.stdout,
            stderr=res.stderr,
            seconds=res.seconds,
        )
