# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import logging
import shlex
import subprocess
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..core.utils import U
from .ssh_config import SSHConfig


@dataclass(frozen=True)
class SSHResult:
    rc: int
    stdout: str
    stderr: str
    argv: List[str]
    seconds: float


class SSHClient:
    """
    Minimal, production-safe SSH helper.

    Every remote command runs as one `sh -c` payload with positional
    arguments, so file paths are never interpolated into shell text.
    """

    _TRANSIENT_MARKERS = (
        "connection timed out",
        "connection refused",
        "no route to host",
        "network is unreachable",
        "could not resolve hostname",
        "temporary failure in name resolution",
        "kex_exchange_identification",
        "connection reset by peer",
        "broken pipe",
        "connection closed",
    )

    def __init__(self, logger: logging.Logger, cfg: SSHConfig):
        self.logger = logger
        self.cfg = cfg

    # ----------------------------
    # command helpers
    # ----------------------------

    @staticmethod
    def script(payload: str, *args: str) -> List[str]:
        """argv for `sh -c PAYLOAD sh ARG...` ($1.. are the args)."""
        return ["sh", "-c", payload, "sh", *args]

    def _argv(self, remote_argv: Sequence[str]) -> List[str]:
        # ssh joins remote argv with spaces; quote each element for the remote shell.
        quoted = [shlex.quote(a) for a in remote_argv]
        return self.cfg.remote_cmd(quoted)

    def _run_local(
        self,
        argv: Sequence[str],
        *,
        input_text: Optional[str],
        timeout: Optional[float],
    ) -> SSHResult:
        """
        Execute a local ssh command. Never raises on rc!=0.
        TimeoutExpired still propagates to the caller.
        """
        t0 = time.monotonic()
        cp = U.run_cmd(self.logger, list(argv), check=False, capture=True, timeout=timeout, input_text=input_text)
        return SSHResult(
            rc=int(cp.returncode),
            stdout=cp.stdout or "",
            stderr=cp.stderr or "",
            argv=list(argv),
            seconds=time.monotonic() - t0,
        )

    def _looks_transient_ssh(self, res: Optional[SSHResult], exc: Optional[BaseException]) -> bool:
        """
        Retry only on connection/transport failures (ssh exit 255 or common
        transport errors), never on normal remote command failures.
        """
        if isinstance(exc, subprocess.TimeoutExpired):
            return True
        if res is None:
            return False
        if res.rc == 255:
            return True
        s = (res.stderr or "").lower()
        return any(m in s for m in self._TRANSIENT_MARKERS)

    def _raise_on_failure(self, res: SSHResult, desc: str) -> None:
        if res.rc == 0:
            return
        msg = (
            f"{desc} failed (rc={res.rc}, {res.seconds:.2f}s)\n"
            f"argv: {res.argv}\n"
            f"stderr: {(res.stderr or '').strip()}"
        ).strip()
        raise subprocess.CalledProcessError(res.rc, res.argv, output=res.stdout, stderr=msg)

    # ----------------------------
    # public API
    # ----------------------------

    def run(
        self,
        remote_argv: Sequence[str],
        *,
        input_text: Optional[str] = None,
        timeout: Optional[float] = None,
        check: bool = True,
        retries: Optional[int] = None,
    ) -> SSHResult:
        """
        Run an argv on the remote host.

        - Optional retries (cfg.retries, or `retries` for this call) ONLY for
          transient/transport failures; pass retries=0 for commands that must
          not run twice
        - Returns SSHResult with rc/stdout/stderr/duration
        - If check=True, raises CalledProcessError on rc!=0
        """
        argv = self._argv(remote_argv)
        attempts = 1 + (self.cfg.retries if retries is None else max(0, int(retries)))
        last_res: Optional[SSHResult] = None

        for attempt in range(1, attempts + 1):
            try:
                res = self._run_local(argv, input_text=input_text, timeout=timeout)
            except subprocess.TimeoutExpired as e:
                if attempt < attempts and self._looks_transient_ssh(None, e):
                    self.logger.warning(
                        "SSH timeout (attempt %d/%d); retrying in %.1fs", attempt, attempts, self.cfg.retry_sleep
                    )
                    time.sleep(self.cfg.retry_sleep)
                    continue
                raise

            last_res = res
            if attempt < attempts and self._looks_transient_ssh(res, None):
                self.logger.warning(
                    "SSH transport issue (attempt %d/%d, rc=%d); retrying in %.1fs",
                    attempt,
                    attempts,
                    res.rc,
                    self.cfg.retry_sleep,
                )
                time.sleep(self.cfg.retry_sleep)
                continue

            if check:
                self._raise_on_failure(res, "ssh")
            return res

        assert last_res is not None
        if check:
            self._raise_on_failure(last_res, "ssh")
        return last_res
