# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import json
import os
import stat
from pathlib import Path

import pytest

from dhcp2static.transition.fleet import FleetReport
from dhcp2static.transition.model import NetworkFact, StepOutcome, TransitionResult, TransitionStatus
from dhcp2static.transition.report_writer import SCHEMA, _json_safe, build_report, write_report


@pytest.fixture
def fleet():
    ok = TransitionResult(host="web01", status=TransitionStatus.APPLIED)
    ok.facts = NetworkFact(interface="eth0", address="10.0.0.5", prefix=24, gateway="10.0.0.1")
    ok.record("apply", StepOutcome.OK)
    bad = TransitionResult(host="web02", status=TransitionStatus.ROLLED_BACK, quarantined=["/etc/netplan/a.yaml.disabled"])
    bad.record("apply", StepOutcome.FAILED, "eth0:\n carrier lost", returncode=1)
    return FleetReport([ok, bad])


@pytest.mark.unit
class TestBuildReport:
    def test_summary(self, fleet):
        report = build_report(fleet, dry_run=False)
        assert report["schema"] == SCHEMA
        assert report["summary"] == {"hosts": 2, "exit_code": 2, "counts": {"applied": 1, "rolled_back": 1}}
        assert report["hosts"][0]["facts"]["address"] == "10.0.0.5/24"
        assert report["hosts"][1]["diagnostics"][0]["returncode"] == 1
        json.dumps(report)

    def test_json_safe(self):
        assert _json_safe(Path("/x")) == "/x"
        assert _json_safe(TransitionStatus.APPLIED) == "applied"
        assert _json_safe(b"\x00\x01")["len"] == 2
        assert _json_safe({1: (2, 3)}) == {"1": [2, 3]}


@pytest.mark.unit
class TestWriteReport:
    def test_json_only(self, fleet, tmp_path):
        written = write_report(tmp_path / "run.json", fleet)
        assert written == [tmp_path / "run.json"]
        data = json.loads((tmp_path / "run.json").read_text())
        assert [h["host"] for h in data["hosts"]] == ["web01", "web02"]

    @pytest.mark.security
    def test_markdown_and_sidecar(self, fleet, tmp_path):
        written = write_report(tmp_path / "reports" / "run.md", fleet, dry_run=True)
        md = tmp_path / "reports" / "run.md"
        assert written == [tmp_path / "reports" / "run.json", md]

        text = md.read_text()
        assert "| web02 | rolled_back | init | 2 |" in text
        assert "**apply** failed: eth0: carrier lost" in text
        assert "`/etc/netplan/a.yaml.disabled`" in text
        for p in written:
            assert stat.S_IMODE(os.stat(p).st_mode) == 0o600

    def test_no_suffix(self, fleet, tmp_path):
        written = write_report(tmp_path / "run", fleet)
        assert written == [tmp_path / "run.json", tmp_path / "run.md"]
