# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/transition/fleet.py
"""
Run independent per-host transitions in parallel.

Hosts share nothing: each job builds its own runner, store and logger
binding. The fleet exit code is the highest per-host exit code.
"""

from __future__ import annotations

import concurrent.futures
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from rich.progress import (
    BarColumn,
    Progress,
    TextColumn,
    TimeElapsedColumn,
)

from ..core.exceptions import EXIT_APPLIED
from ..core.logger import Log
from .model import StepOutcome, TransitionResult, TransitionStatus

Job = Tuple[str, Callable[[], TransitionResult]]


@dataclass
class FleetReport:
    results: List[TransitionResult] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        return max((r.exit_code for r in self.results), default=EXIT_APPLIED)

    def counts(self) -> Dict[str, int]:
        return dict(Counter(r.status.value for r in self.results))


class FleetRunner:
    def __init__(self, logger: logging.Logger, *, parallel: int = 1, progress: bool = False):
        self.logger = logger
        self.parallel = max(1, int(parallel))
        self.progress = progress

    def _crashed(self, host: str, exc: BaseException) -> TransitionResult:
        # A bug escaped the pipeline; the host state is unknown.
        result = TransitionResult(host=host, status=TransitionStatus.UNRECOVERABLE)
        result.record("internal", StepOutcome.FAILED, f"{type(exc).__name__}: {exc}")
        return result

    def _run_one(self, host: str, fn: Callable[[], TransitionResult]) -> TransitionResult:
        try:
            return fn()
        except Exception as e:
            self.logger.error("💥 %s: unexpected error: %s", host, e)
            Log.trace(self.logger, "💥 fleet job exception: host=%s", host, exc_info=True)
            return self._crashed(host, e)

    def run(self, jobs: Sequence[Job]) -> FleetReport:
        if not jobs:
            return FleetReport()

        workers = min(self.parallel, len(jobs))
        self.logger.info("🧵 %d host(s), %d worker(s)", len(jobs), workers)
        results: List[Optional[TransitionResult]] = [None] * len(jobs)

        progress = Progress(
            TextColumn("{task.description}"),
            BarColumn(),
            TextColumn("{task.completed}/{task.total}"),
            TimeElapsedColumn(),
            disable=not self.progress,
        )
        with progress:
            task = progress.add_task("Transitioning hosts", total=len(jobs))
            with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
                futures = {
                    executor.submit(self._run_one, host, fn): idx for idx, (host, fn) in enumerate(jobs)
                }
                for future in concurrent.futures.as_completed(futures):
                    idx = futures[future]
                    res = future.result()
                    results[idx] = res
                    self.logger.info("%s: %s (exit %d)", res.host, res.status.value, res.exit_code)
                    progress.update(task, advance=1)

        return FleetReport(results=[r for r in results if r is not None])
