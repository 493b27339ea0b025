# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/transition/rollback.py
"""
Rollback Controller: restore the snapshot, then re-apply once.

No retries. A failed restore or a failed re-apply is unrecoverable and
needs an operator.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from ..core.exceptions import RollbackError
from .apply import ApplyEngine, ApplyOutcome
from .backup import BackupManager
from .model import Snapshot, TransitionState, TransitionStatus


@dataclass(frozen=True)
class RollbackOutcome:
    status: TransitionStatus
    cause: str
    restored: bool
    reapply: Optional[ApplyOutcome] = None
    unrestored: List[str] = field(default_factory=list)
    error: Optional[RollbackError] = None

    @property
    def final_state(self) -> TransitionState:
        if self.status == TransitionStatus.ROLLED_BACK:
            return TransitionState.ROLLED_BACK
        return TransitionState.UNRECOVERABLE

    @property
    def diagnostic(self) -> str:
        if self.status == TransitionStatus.ROLLED_BACK:
            return f"rolled back after: {self.cause}"
        if not self.restored:
            return f"restore failed, unrestored: {', '.join(self.unrestored)} (after: {self.cause})"
        return f"re-apply failed: {self.reapply.describe() if self.reapply else '-'} (after: {self.cause})"


class RollbackController:
    def __init__(self, backups: BackupManager, applier: ApplyEngine, logger: logging.Logger):
        self.backups = backups
        self.applier = applier
        self.logger = logger

    def rollback(self, snapshot: Snapshot, cause: ApplyOutcome) -> RollbackOutcome:
        why = cause.describe()
        self.logger.warning("Rolling back %d path(s): %s", len(snapshot.backups), why)

        try:
            self.backups.restore(snapshot)
        except RollbackError as e:
            unrestored = list((e.context or {}).get("unrestored") or [])
            self.logger.critical("Restore failed; manual intervention required: %s", ", ".join(unrestored))
            return RollbackOutcome(
                status=TransitionStatus.UNRECOVERABLE,
                cause=why,
                restored=False,
                unrestored=unrestored,
                error=e,
            )

        reapply = self.applier.apply()
        if not reapply.ok:
            err = RollbackError(
                msg=f"re-apply of restored configuration failed: {reapply.describe()}",
                context={"returncode": reapply.returncode, "unrestored": []},
            )
            self.logger.critical("%s", err)
            return RollbackOutcome(
                status=TransitionStatus.UNRECOVERABLE,
                cause=why,
                restored=True,
                reapply=reapply,
                error=err,
            )

        self.logger.warning("Rolled back to the previous configuration")
        return RollbackOutcome(status=TransitionStatus.ROLLED_BACK, cause=why, restored=True, reapply=reapply)
