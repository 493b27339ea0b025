# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import threading

import pytest

from dhcp2static.transition.fleet import FleetReport, FleetRunner
from dhcp2static.transition.model import StepOutcome, TransitionResult, TransitionStatus


def _job(host, status):
    def fn():
        return TransitionResult(host=host, status=status)

    return host, fn


@pytest.mark.unit
class TestFleetRunner:
    def test_results_keep_job_order(self, logger):
        jobs = [
            _job("a", TransitionStatus.APPLIED),
            _job("b", TransitionStatus.ROLLED_BACK),
            _job("c", TransitionStatus.ABORTED),
        ]
        report = FleetRunner(logger, parallel=3).run(jobs)

        assert [r.host for r in report.results] == ["a", "b", "c"]
        assert report.exit_code == 2
        assert report.counts() == {"applied": 1, "rolled_back": 1, "aborted": 1}
        assert report.results[1].status == TransitionStatus.ROLLED_BACK

    def test_crash_is_isolated(self, logger):
        def boom():
            raise KeyError("missing")

        report = FleetRunner(logger, parallel=2).run([("bad", boom), _job("good", TransitionStatus.APPLIED)])

        bad, good = report.results
        assert bad.status == TransitionStatus.UNRECOVERABLE
        assert bad.diagnostics[0].step == "internal"
        assert bad.diagnostics[0].outcome == StepOutcome.FAILED
        assert good.status == TransitionStatus.APPLIED
        assert report.exit_code == 3

    def test_runs_in_parallel(self, logger):
        barrier = threading.Barrier(2, timeout=5)

        def waiter(host):
            def fn():
                barrier.wait()
                return TransitionResult(host=host, status=TransitionStatus.APPLIED)

            return host, fn

        report = FleetRunner(logger, parallel=2).run([waiter("a"), waiter("b")])
        assert report.exit_code == 0

    def test_empty(self, logger):
        report = FleetRunner(logger).run([])
        assert report.results == []
        assert report.exit_code == 0


@pytest.mark.unit
def test_dry_run_exit_code():
    report = FleetReport([TransitionResult(host="a", status=TransitionStatus.DRY_RUN)])
    assert report.exit_code == 0
