# SPDX-License-Identifier: LGPL-3.0-or-later
# dhcp2static/transition/apply.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from ..core.exceptions import ApplyError
from ..host.runner import CommandRunner

DEFAULT_APPLY_CMD = ("netplan", "apply")


@dataclass(frozen=True)
class ApplyOutcome:
    ok: bool
    returncode: int
    output: str = ""
    seconds: float = 0.0
    timed_out: bool = False

    def describe(self) -> str:
        if self.ok:
            return f"applied in {self.seconds:.1f}s"
        what = "timed out" if self.timed_out else f"failed (rc={self.returncode})"
        return f"apply {what}" + (f": {self.output}" if self.output else "")

    def raise_for_status(self) -> None:
        if self.ok:
            return
        raise ApplyError(
            msg=self.describe(),
            context={"returncode": self.returncode, "timed_out": self.timed_out},
        )


class ApplyEngine:
    """The only component that makes configuration live."""

    def __init__(
        self,
        runner: CommandRunner,
        logger: logging.Logger,
        *,
        command: Sequence[str] = DEFAULT_APPLY_CMD,
        timeout: Optional[float] = None,
    ):
        self.runner = runner
        self.logger = logger
        self.command = list(command)
        self.timeout = timeout

    def apply(self) -> ApplyOutcome:
        res = self.runner.run(self.command, timeout=self.timeout)
        outcome = ApplyOutcome(
            ok=res.ok,
            returncode=res.returncode,
            output=res.output,
            seconds=res.seconds,
            timed_out=res.timed_out,
        )
        if outcome.ok:
            self.logger.info("%s succeeded on %s", " ".join(self.command), self.runner.description)
        else:
            self.logger.error("%s on %s: %s", " ".join(self.command), self.runner.description, outcome.describe())
        return outcome
