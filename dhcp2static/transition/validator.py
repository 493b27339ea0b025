# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/transition/validator.py
"""
Config Validator.

Two layers, in order:
  1) in-process: every active file re-parsed with the structured checks
  2) external: the syntax checker (default `netplan generate`)

Nothing here mutates configuration files.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..core.exceptions import ValidationError
from ..host.runner import CommandRunner
from ..host.store import ConfigFileStore, read_text
from . import schema

DEFAULT_VALIDATE_CMD = ("netplan", "generate")


@dataclass(frozen=True)
class ValidationOutcome:
    passed: bool
    diagnostics: List[str] = field(default_factory=list)
    returncode: Optional[int] = None
    external_ran: bool = False

    def raise_for_status(self) -> None:
        if self.passed:
            return
        raise ValidationError(
            msg="configuration rejected: " + ("; ".join(self.diagnostics) or "no diagnostics"),
            context={"diagnostics": list(self.diagnostics), "returncode": self.returncode},
        )


class ConfigValidator:
    def __init__(
        self,
        runner: CommandRunner,
        store: ConfigFileStore,
        logger: logging.Logger,
        *,
        command: Sequence[str] = DEFAULT_VALIDATE_CMD,
        timeout: Optional[float] = None,
    ):
        self.runner = runner
        self.store = store
        self.logger = logger
        self.command = list(command)
        self.timeout = timeout

    def check_document(self, text: str, name: str = "<generated>") -> ValidationOutcome:
        problems = [f"{name}: {p}" for p in schema.check_text(text)]
        return ValidationOutcome(passed=not problems, diagnostics=problems)

    def check_files(self, paths: Sequence[str]) -> ValidationOutcome:
        problems: List[str] = []
        for path in paths:
            try:
                text = read_text(self.store, path)
            except OSError as e:
                problems.append(f"{path}: unreadable: {e}")
                continue
            problems.extend(f"{path}: {p}" for p in schema.check_text(text))
        return ValidationOutcome(passed=not problems, diagnostics=problems)

    def run_checker(self) -> ValidationOutcome:
        res = self.runner.run(self.command, timeout=self.timeout)
        diags = [res.output] if res.output else []
        if not res.ok:
            diags = diags or [f"{self.command[0]} exited with rc={res.returncode}"]
            self.logger.error("Syntax check failed (rc=%d): %s", res.returncode, res.output or "-")
        return ValidationOutcome(passed=res.ok, diagnostics=diags, returncode=res.returncode, external_ran=True)

    def validate(self, active_paths: Sequence[str]) -> ValidationOutcome:
        local = self.check_files(active_paths)
        if not local.passed:
            self.logger.error("In-process check rejected %d problem(s)", len(local.diagnostics))
            return local
        return self.run_checker()
