# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import pytest

from dhcp2static.core.exceptions import DiscoveryError
from dhcp2static.transition.model import (
    ALLOWED_TRANSITIONS,
    Backup,
    NetworkFact,
    Snapshot,
    StepOutcome,
    TransitionResult,
    TransitionState,
    TransitionStatus,
    can_transition,
)

S = TransitionState


@pytest.mark.unit
class TestNetworkFact:
    def test_normalizes(self):
        fact = NetworkFact(interface=" eth0 ", address="10.0.0.5", prefix="24", gateway="10.0.0.1", dns_servers=["1.1.1.1", " "])
        assert fact.interface == "eth0"
        assert fact.prefix == 24
        assert fact.dns_servers == ("1.1.1.1",)
        assert fact.cidr == "10.0.0.5/24"

    @pytest.mark.parametrize(
        "kwargs",
        [
            dict(interface="", address="10.0.0.5", prefix=24, gateway="10.0.0.1"),
            dict(interface="eth0", address="10.0.0.300", prefix=24, gateway="10.0.0.1"),
            dict(interface="eth0", address="10.0.0.5", prefix=33, gateway="10.0.0.1"),
            dict(interface="eth0", address="10.0.0.5", prefix=24, gateway="fe80::1"),
            dict(interface="eth0", address="10.0.0.5", prefix=24, gateway="10.0.0.1", dns_servers=("dns.example",)),
        ],
    )
    def test_rejects_inconsistent_facts(self, kwargs):
        with pytest.raises(DiscoveryError):
            NetworkFact(**kwargs)

    def test_from_netmask(self):
        fact = NetworkFact.from_netmask("eth0", "192.168.1.20", "255.255.255.0", "192.168.1.1")
        assert fact.prefix == 24

    def test_from_mapping_variants(self):
        base = {"interface": "eth0", "gateway": "10.0.0.1"}
        assert NetworkFact.from_mapping({**base, "address": "10.0.0.5", "prefix": 24}).cidr == "10.0.0.5/24"
        assert NetworkFact.from_mapping({**base, "address": "10.0.0.5/16"}).prefix == 16
        fact = NetworkFact.from_mapping({**base, "address": "10.0.0.5/24", "dns_servers": ["9.9.9.9"]})
        assert fact.dns_servers == ("9.9.9.9",)

    def test_from_mapping_missing_keys(self):
        with pytest.raises(DiscoveryError, match="gateway"):
            NetworkFact.from_mapping({"interface": "eth0", "address": "10.0.0.5/24"})
        with pytest.raises(DiscoveryError, match="prefix"):
            NetworkFact.from_mapping({"interface": "eth0", "address": "10.0.0.5", "gateway": "10.0.0.1"})


@pytest.mark.unit
class TestStateMachine:
    HAPPY = [
        S.INIT,
        S.FACTS_GATHERED,
        S.SNAPSHOTTED,
        S.QUARANTINED,
        S.PERMISSIONS_FIXED,
        S.GENERATED,
        S.VALIDATED,
        S.APPLYING,
        S.APPLIED,
    ]

    def test_happy_path_is_a_chain(self):
        for src, dst in zip(self.HAPPY, self.HAPPY[1:]):
            assert can_transition(src, dst)

    def test_no_skipping(self):
        assert not can_transition(S.FACTS_GATHERED, S.QUARANTINED)
        assert not can_transition(S.SNAPSHOTTED, S.GENERATED)
        assert not can_transition(S.GENERATED, S.APPLYING)

    def test_abort_only_before_apply(self):
        for st in self.HAPPY[:7]:
            assert can_transition(st, S.ABORTED)
        for st in (S.APPLYING, S.ROLLING_BACK, S.APPLIED, S.ROLLED_BACK, S.UNRECOVERABLE, S.ABORTED):
            assert not can_transition(st, S.ABORTED)

    def test_rollback_edges(self):
        assert can_transition(S.APPLYING, S.ROLLING_BACK)
        assert can_transition(S.ROLLING_BACK, S.ROLLED_BACK)
        assert can_transition(S.ROLLING_BACK, S.UNRECOVERABLE)
        assert not can_transition(S.ROLLED_BACK, S.APPLYING)

    def test_terminal_states(self):
        for st in (S.APPLIED, S.ROLLED_BACK, S.UNRECOVERABLE, S.ABORTED):
            assert ALLOWED_TRANSITIONS[st] == frozenset()


@pytest.mark.unit
class TestResult:
    def test_exit_codes(self):
        assert TransitionStatus.APPLIED.exit_code == 0
        assert TransitionStatus.DRY_RUN.exit_code == 0
        assert TransitionStatus.ABORTED.exit_code == 1
        assert TransitionStatus.ROLLED_BACK.exit_code == 2
        assert TransitionStatus.UNRECOVERABLE.exit_code == 3

    def test_record_and_to_dict(self):
        res = TransitionResult(host="web01")
        res.record("facts", StepOutcome.OK)
        res.record("apply", StepOutcome.FAILED, "boom", returncode=1)
        res.snapshot = Snapshot(
            directory="/etc/netplan",
            directory_mode=0o755,
            backups=(Backup("/etc/netplan/a.yaml", "/etc/netplan/a.yaml.bak", 0o600, sha256="abc"),),
        )

        d = res.to_dict()
        assert [f.step for f in res.failures()] == ["apply"]
        assert d["status"] == "aborted"
        assert d["exit_code"] == 1
        assert d["diagnostics"][1] == {"step": "apply", "outcome": "failed", "output": "boom", "returncode": 1}
        assert d["backups"][0]["path"] == "/etc/netplan/a.yaml"

    def test_snapshot_lookup(self):
        snap = Snapshot("/etc/netplan", 0o755, (Backup("/etc/netplan/x.yaml", None, None, existed=False),))
        assert "/etc/netplan/x.yaml" in snap
        assert snap.get("/etc/netplan/x.yaml").existed is False
        assert snap.get("/etc/netplan/y.yaml") is None
