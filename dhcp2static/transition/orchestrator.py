# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/transition/orchestrator.py
"""
Transition Orchestrator: sequences the pipeline for one host.

  init -> facts_gathered -> snapshotted -> quarantined -> permissions_fixed
       -> generated -> validated -> applying -> applied
                                            -> rolling_back -> rolled_back | unrecoverable

Every pre-apply state may end in `aborted` (no rollback; the generated file,
if already written, is discarded). Each step returns a StepResult and the
orchestrator branches on it; component exceptions never cross a step.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Generic, List, Optional, Sequence, Tuple, TypeVar

from ..core.exceptions import EXIT_ABORTED, ApplyError, BackupError, Dhcp2StaticError, RollbackError
from ..core.logger import Log
from ..core.logging_utils import log_step
from ..core.utils import U
from ..host.facts import FactProvider
from ..host.runner import CommandRunner
from ..host.store import DEFAULT_PATTERNS, ConfigFileStore
from .apply import DEFAULT_APPLY_CMD, ApplyEngine, ApplyOutcome
from .backup import DEFAULT_BACKUP_SUFFIX, DIR_WORLD_BITS, BackupManager
from .generator import DEFAULT_FALLBACK_DNS, GENERATED_MODE, render_static_config
from .model import (
    NetworkFact,
    Snapshot,
    StateOrderViolation,
    StepOutcome,
    TransitionResult,
    TransitionState,
    TransitionStatus,
    can_transition,
)
from .quarantine import DEFAULT_QUARANTINE_SUFFIX, MalformedConfigDetector
from .rollback import RollbackController
from .validator import DEFAULT_VALIDATE_CMD, ConfigValidator, ValidationOutcome

DEFAULT_GENERATED_NAME = "99-dhcp2static.yaml"
ACTIVE_FILE_MODE = 0o600

T = TypeVar("T")


@dataclass(frozen=True)
class TransitionOptions:
    dns: Tuple[str, ...] = ()
    fallback_dns: Optional[str] = DEFAULT_FALLBACK_DNS
    generated_name: str = DEFAULT_GENERATED_NAME
    backup_suffix: str = DEFAULT_BACKUP_SUFFIX
    quarantine_suffix: str = DEFAULT_QUARANTINE_SUFFIX
    renderer: Optional[str] = None
    patterns: Tuple[str, ...] = DEFAULT_PATTERNS
    validate_cmd: Tuple[str, ...] = DEFAULT_VALIDATE_CMD
    apply_cmd: Tuple[str, ...] = DEFAULT_APPLY_CMD
    timeout: Optional[float] = None
    dry_run: bool = False


@dataclass(frozen=True)
class StepResult(Generic[T]):
    ok: bool
    value: Optional[T] = None
    output: str = ""
    error: Optional[Dhcp2StaticError] = None

    @classmethod
    def success(cls, value: Optional[T] = None, output: str = "") -> "StepResult[T]":
        return cls(ok=True, value=value, output=output)

    @classmethod
    def failure(cls, error: Dhcp2StaticError) -> "StepResult[T]":
        return cls(ok=False, error=error, output=error.user_message(include_context=True))


class TransitionOrchestrator:
    """
    Single-host DHCP -> static transition.

    One instance per host; run() may be called again for a fresh attempt
    (new facts, new snapshot).
    """

    def __init__(
        self,
        host: str,
        facts: FactProvider,
        store: ConfigFileStore,
        runner: CommandRunner,
        logger: logging.Logger,
        options: Optional[TransitionOptions] = None,
    ):
        self.host = host
        self.options = options or TransitionOptions()
        self.logger = Log.bind(logger, host=host)
        self.facts = facts
        self.store = store

        opts = self.options
        self.backups = BackupManager(store, self.logger, suffix=opts.backup_suffix)
        self.detector = MalformedConfigDetector(store, self.logger, suffix=opts.quarantine_suffix)
        self.validator = ConfigValidator(runner, store, self.logger, command=opts.validate_cmd, timeout=opts.timeout)
        self.applier = ApplyEngine(runner, self.logger, command=opts.apply_cmd, timeout=opts.timeout)
        self.rollbacks = RollbackController(self.backups, self.applier, self.logger)

        self.state = TransitionState.INIT
        self._generated_written = False

    @property
    def generated_path(self) -> str:
        return self.store.path(self.options.generated_name)

    # ------------------------------------------------------------------
    # state machine
    # ------------------------------------------------------------------

    def _advance(self, result: TransitionResult, dst: TransitionState) -> None:
        if not can_transition(self.state, dst):
            raise StateOrderViolation(self.state, dst)
        Log.trace(self.logger, "state %s -> %s", self.state.value, dst.value)
        self.state = dst
        result.final_state = dst

    def _abort(self, result: TransitionResult, step: str, error: Optional[Dhcp2StaticError]) -> TransitionResult:
        err = error or Dhcp2StaticError(code=EXIT_ABORTED, msg=f"{step} failed")
        result.record(step, StepOutcome.FAILED, err.user_message(include_context=True), error=err.to_dict())

        if self._generated_written and result.snapshot is not None:
            try:
                self.backups.discard(result.snapshot, [self.generated_path])
                self._generated_written = False
                result.record("discard", StepOutcome.OK, f"removed unapplied {self.generated_path}")
            except RollbackError as e:
                self.logger.critical("Could not discard %s: %s", self.generated_path, e)
                result.record("discard", StepOutcome.FAILED, str(e), unrestored=(e.context or {}).get("unrestored", []))

        self._advance(result, TransitionState.ABORTED)
        result.status = TransitionStatus.ABORTED
        Log.fail(self.logger, f"Transition aborted at {step}: {err}")
        return result

    # ------------------------------------------------------------------
    # steps
    # ------------------------------------------------------------------

    def _gather_facts(self) -> StepResult[NetworkFact]:
        try:
            with log_step(self.logger, "facts"):
                fact = self.facts.gather()
        except Dhcp2StaticError as e:
            return StepResult.failure(e)
        return StepResult.success(fact, f"{fact.interface} {fact.cidr} via {fact.gateway}")

    def _take_snapshot(self) -> StepResult[Tuple[List[str], Optional[Snapshot]]]:
        gp = self.generated_path
        try:
            candidates = [p for p in self.store.list(self.options.patterns) if p != gp]
        except OSError as e:
            return StepResult.failure(BackupError(msg=f"cannot list {self.store.directory}: {e}", cause=e))

        paths = candidates + [gp] + [self.detector.quarantine_path(p) for p in candidates]
        if self.options.dry_run:
            return StepResult.success((candidates, None), f"dry-run: would back up {len(paths)} path(s)")

        try:
            with log_step(self.logger, "snapshot"):
                snap = self.backups.snapshot(paths, self.store.directory)
        except BackupError as e:
            return StepResult.failure(e)
        saved = sum(1 for b in snap.backups if b.existed)
        return StepResult.success((candidates, snap), f"{saved} backup(s) with suffix {self.backups.suffix}")

    def _quarantine(self, candidates: Sequence[str]) -> StepResult[Tuple[List[str], List[str]]]:
        try:
            with log_step(self.logger, "quarantine"):
                report = self.detector.scan(candidates)
                if self.options.dry_run:
                    active = list(report.clean)
                else:
                    active = self.detector.quarantine(report)
        except Dhcp2StaticError as e:
            return StepResult.failure(e)

        moved = [self.detector.quarantine_path(p) for p in report.malformed_paths]
        if not report.malformed:
            out = "no malformed configuration"
        elif self.options.dry_run:
            out = "dry-run: would quarantine " + ", ".join(report.malformed_paths)
        else:
            out = "quarantined " + ", ".join(moved)
        return StepResult.success((active, [] if self.options.dry_run else moved), out)

    def _fix_permissions(self, active: Sequence[str]) -> StepResult[List[str]]:
        changed: List[str] = []
        directory = self.store.directory
        try:
            mode = self.store.mode(directory)
            if mode & DIR_WORLD_BITS:
                self.store.chmod(directory, mode & ~DIR_WORLD_BITS)
                changed.append(directory)
            for path in active:
                if self.store.mode(path) != ACTIVE_FILE_MODE:
                    self.store.chmod(path, ACTIVE_FILE_MODE)
                    changed.append(path)
        except OSError as e:
            return StepResult.failure(
                Dhcp2StaticError(code=EXIT_ABORTED, msg=f"cannot fix permissions: {e}", cause=e, context={"changed": changed})
            )
        for p in changed:
            self.logger.debug("Tightened permissions on %s", p)
        return StepResult.success(changed, f"tightened {len(changed)} path(s)" if changed else "already strict")

    def _generate(self, fact: NetworkFact) -> StepResult[str]:
        opts = self.options
        try:
            doc = render_static_config(fact, opts.dns, fallback_dns=opts.fallback_dns, renderer=opts.renderer)
        except ValueError as e:
            return StepResult.failure(Dhcp2StaticError(code=EXIT_ABORTED, msg=f"cannot render configuration: {e}", cause=e))

        if opts.dry_run:
            return StepResult.success(doc, f"dry-run: rendered {self.generated_path} (not written)")

        gp = self.generated_path
        try:
            # marked first: a partially failed remote write still gets discarded
            self._generated_written = True
            self.store.write(gp, doc.encode("utf-8"), GENERATED_MODE)
        except OSError as e:
            return StepResult.failure(Dhcp2StaticError(code=EXIT_ABORTED, msg=f"cannot write {gp}: {e}", cause=e))
        return StepResult.success(doc, f"wrote {gp} (mode {U.oct_mode(GENERATED_MODE)})")

    def _validate(self, active: Sequence[str], doc: str) -> StepResult[ValidationOutcome]:
        try:
            with log_step(self.logger, "validate"):
                if self.options.dry_run:
                    outcome = self.validator.check_files(active)
                    if outcome.passed:
                        outcome = self.validator.check_document(doc, self.generated_path)
                else:
                    outcome = self.validator.validate(list(active) + [self.generated_path])
                outcome.raise_for_status()
        except Dhcp2StaticError as e:
            return StepResult.failure(e)
        return StepResult.success(outcome, "\n".join(outcome.diagnostics))

    # ------------------------------------------------------------------
    # entry point
    # ------------------------------------------------------------------

    def run(self) -> TransitionResult:
        opts = self.options
        self.state = TransitionState.INIT
        self._generated_written = False
        result = TransitionResult(host=self.host, final_state=self.state)
        Log.step(self.logger, f"DHCP -> static on {self.host}" + (" (dry-run)" if opts.dry_run else ""))

        r_facts = self._gather_facts()
        if not r_facts.ok:
            return self._abort(result, "facts", r_facts.error)
        fact = r_facts.value
        assert fact is not None
        result.facts = fact
        result.record("facts", StepOutcome.OK, r_facts.output)
        self._advance(result, TransitionState.FACTS_GATHERED)

        r_snap = self._take_snapshot()
        if not r_snap.ok:
            return self._abort(result, "snapshot", r_snap.error)
        candidates, snapshot = r_snap.value or ([], None)
        result.snapshot = snapshot
        result.record("snapshot", StepOutcome.SKIPPED if opts.dry_run else StepOutcome.OK, r_snap.output)
        self._advance(result, TransitionState.SNAPSHOTTED)

        r_q = self._quarantine(candidates)
        if not r_q.ok:
            return self._abort(result, "quarantine", r_q.error)
        active, moved = r_q.value or ([], [])
        result.quarantined = list(moved)
        result.record("quarantine", StepOutcome.OK, r_q.output)
        self._advance(result, TransitionState.QUARANTINED)

        if opts.dry_run:
            result.record("permissions", StepOutcome.SKIPPED, "dry-run: no changes")
        else:
            r_perm = self._fix_permissions(active)
            if not r_perm.ok:
                return self._abort(result, "permissions", r_perm.error)
            result.record("permissions", StepOutcome.OK, r_perm.output)
        self._advance(result, TransitionState.PERMISSIONS_FIXED)

        r_gen = self._generate(fact)
        if not r_gen.ok:
            return self._abort(result, "generate", r_gen.error)
        doc = r_gen.value or ""
        result.document = doc
        if not opts.dry_run:
            result.generated_path = self.generated_path
        result.record("generate", StepOutcome.OK, r_gen.output)
        self._advance(result, TransitionState.GENERATED)

        r_val = self._validate(active, doc)
        if not r_val.ok:
            return self._abort(result, "validate", r_val.error)
        result.record("validate", StepOutcome.OK, r_val.output)
        if opts.dry_run:
            result.record("validate-external", StepOutcome.SKIPPED, "dry-run: external syntax check needs written files")
        self._advance(result, TransitionState.VALIDATED)

        if opts.dry_run:
            result.status = TransitionStatus.DRY_RUN
            Log.ok(self.logger, "Dry-run complete; nothing was changed")
            return result

        return self._apply_or_rollback(result)

    def _apply_or_rollback(self, result: TransitionResult) -> TransitionResult:
        assert result.snapshot is not None
        self._advance(result, TransitionState.APPLYING)

        try:
            with log_step(self.logger, "apply"):
                outcome = self.applier.apply()
                outcome.raise_for_status()
        except ApplyError:
            return self._roll_back(result, outcome)

        result.record("apply", StepOutcome.OK, outcome.output)
        self._advance(result, TransitionState.APPLIED)
        result.status = TransitionStatus.APPLIED
        Log.ok(self.logger, f"Static configuration active ({self.generated_path})")
        return result

    def _roll_back(self, result: TransitionResult, outcome: ApplyOutcome) -> TransitionResult:
        assert result.snapshot is not None
        result.record(
            "apply",
            StepOutcome.FAILED,
            outcome.output or outcome.describe(),
            returncode=outcome.returncode,
            timed_out=outcome.timed_out,
        )
        self._advance(result, TransitionState.ROLLING_BACK)

        rb = self.rollbacks.rollback(result.snapshot, outcome)
        if rb.restored:
            result.record("restore", StepOutcome.OK, f"restored {len(result.snapshot.backups)} path(s)")
        else:
            result.record("restore", StepOutcome.FAILED, rb.diagnostic, unrestored=list(rb.unrestored))
        if rb.reapply is not None:
            result.record(
                "reapply",
                StepOutcome.OK if rb.reapply.ok else StepOutcome.FAILED,
                rb.reapply.output,
                returncode=rb.reapply.returncode,
            )
        else:
            result.record("reapply", StepOutcome.SKIPPED, "restore incomplete")

        result.record(
            "rollback",
            StepOutcome.OK if rb.status == TransitionStatus.ROLLED_BACK else StepOutcome.FAILED,
            rb.diagnostic,
        )
        self._advance(result, rb.final_state)
        result.status = rb.status
        if rb.status == TransitionStatus.ROLLED_BACK:
            Log.warn(self.logger, "Apply failed; previous configuration restored")
        else:
            Log.fail(self.logger, f"UNRECOVERABLE: {rb.diagnostic}")
        return result
