# SPDX-License-Identifier: LGPL-3.0-or-later
# dhcp2static/transition/model.py
"""
Data model for one DHCP -> static transition attempt.

- NetworkFact: immutable facts captured once at the start of an attempt
- Backup / Snapshot: what was saved before any mutation
- TransitionState: the ordered state machine + its allowed transitions
- TransitionResult: final status plus the ordered diagnostic log
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from ..core.exceptions import (
    EXIT_ABORTED,
    EXIT_APPLIED,
    EXIT_ROLLED_BACK,
    EXIT_UNRECOVERABLE,
    DiscoveryError,
)


# Facts


@dataclass(frozen=True)
class NetworkFact:
    """Current addressing of the host's primary interface."""

    interface: str
    address: str
    prefix: int
    gateway: str
    dns_servers: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        iface = (self.interface or "").strip()
        if not iface:
            raise DiscoveryError(msg="interface name is empty")
        object.__setattr__(self, "interface", iface)
        object.__setattr__(self, "dns_servers", tuple(str(s).strip() for s in self.dns_servers if str(s).strip()))

        try:
            addr = ipaddress.ip_address(str(self.address).strip())
            gw = ipaddress.ip_address(str(self.gateway).strip())
            prefix = int(self.prefix)
            for s in self.dns_servers:
                ipaddress.ip_address(s)
        except ValueError as e:
            raise DiscoveryError(msg=f"invalid network facts for {iface}: {e}", cause=e) from e

        if addr.version != gw.version:
            raise DiscoveryError(msg=f"address {addr} and gateway {gw} are different IP families")
        if not 0 <= prefix <= addr.max_prefixlen:
            raise DiscoveryError(msg=f"prefix /{prefix} out of range for {addr}")

        object.__setattr__(self, "address", str(addr))
        object.__setattr__(self, "gateway", str(gw))
        object.__setattr__(self, "prefix", prefix)

    @classmethod
    def from_netmask(
        cls,
        interface: str,
        address: str,
        netmask: str,
        gateway: str,
        dns_servers: Sequence[str] = (),
    ) -> "NetworkFact":
        try:
            prefix = ipaddress.ip_network(f"{address}/{netmask}", strict=False).prefixlen
        except ValueError as e:
            raise DiscoveryError(msg=f"invalid netmask {netmask!r} for {address}", cause=e) from e
        return cls(interface=interface, address=address, prefix=prefix, gateway=gateway, dns_servers=tuple(dns_servers))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "NetworkFact":
        """Build facts from a config mapping ({interface, address, prefix|netmask, gateway, dns})."""
        try:
            iface = data["interface"]
            address = data["address"]
            gateway = data["gateway"]
        except KeyError as e:
            raise DiscoveryError(msg=f"static facts missing key {e.args[0]!r}") from e
        dns = data.get("dns") or data.get("dns_servers") or ()
        if isinstance(dns, str):
            dns = [dns]
        if "prefix" in data:
            return cls(interface=iface, address=address, prefix=data["prefix"], gateway=gateway, dns_servers=tuple(dns))
        if "netmask" in data:
            return cls.from_netmask(iface, address, data["netmask"], gateway, dns)
        # "10.0.0.5/24" style
        if "/" in str(address):
            a, p = str(address).split("/", 1)
            return cls(interface=iface, address=a, prefix=int(p), gateway=gateway, dns_servers=tuple(dns))
        raise DiscoveryError(msg="static facts need one of prefix, netmask or address/prefix")

    @property
    def cidr(self) -> str:
        return f"{self.address}/{self.prefix}"


# Files + backups


@dataclass(frozen=True)
class ConfigFile:
    path: str
    content: bytes
    mode: int


@dataclass(frozen=True)
class Backup:
    """
    One saved path. existed=False means the path was absent at snapshot
    time: restoring the entry removes whatever was created there since.
    """

    original_path: str
    backup_path: Optional[str]
    mode: Optional[int]
    existed: bool = True
    sha256: str = ""


@dataclass(frozen=True)
class Snapshot:
    directory: str
    directory_mode: Optional[int]
    backups: Tuple[Backup, ...] = ()

    def paths(self) -> List[str]:
        return [b.original_path for b in self.backups]

    def get(self, path: str) -> Optional[Backup]:
        for b in self.backups:
            if b.original_path == path:
                return b
        return None

    def __contains__(self, path: object) -> bool:
        return any(b.original_path == path for b in self.backups)


# State machine


class TransitionState(Enum):
    INIT = "init"
    FACTS_GATHERED = "facts_gathered"
    SNAPSHOTTED = "snapshotted"
    QUARANTINED = "quarantined"
    PERMISSIONS_FIXED = "permissions_fixed"
    GENERATED = "generated"
    VALIDATED = "validated"
    APPLYING = "applying"
    APPLIED = "applied"
    ROLLING_BACK = "rolling_back"
    ROLLED_BACK = "rolled_back"
    UNRECOVERABLE = "unrecoverable"
    ABORTED = "aborted"


_PRE_APPLY = (
    TransitionState.INIT,
    TransitionState.FACTS_GATHERED,
    TransitionState.SNAPSHOTTED,
    TransitionState.QUARANTINED,
    TransitionState.PERMISSIONS_FIXED,
    TransitionState.GENERATED,
    TransitionState.VALIDATED,
)

ALLOWED_TRANSITIONS: Dict[TransitionState, FrozenSet[TransitionState]] = {
    TransitionState.INIT: frozenset({TransitionState.FACTS_GATHERED}),
    TransitionState.FACTS_GATHERED: frozenset({TransitionState.SNAPSHOTTED}),
    TransitionState.SNAPSHOTTED: frozenset({TransitionState.QUARANTINED}),
    TransitionState.QUARANTINED: frozenset({TransitionState.PERMISSIONS_FIXED}),
    TransitionState.PERMISSIONS_FIXED: frozenset({TransitionState.GENERATED}),
    TransitionState.GENERATED: frozenset({TransitionState.VALIDATED}),
    TransitionState.VALIDATED: frozenset({TransitionState.APPLYING}),
    TransitionState.APPLYING: frozenset({TransitionState.APPLIED, TransitionState.ROLLING_BACK}),
    TransitionState.ROLLING_BACK: frozenset({TransitionState.ROLLED_BACK, TransitionState.UNRECOVERABLE}),
    TransitionState.APPLIED: frozenset(),
    TransitionState.ROLLED_BACK: frozenset(),
    TransitionState.UNRECOVERABLE: frozenset(),
    TransitionState.ABORTED: frozenset(),
}
# Any failure before Applying aborts.
for _st in _PRE_APPLY:
    ALLOWED_TRANSITIONS[_st] = ALLOWED_TRANSITIONS[_st] | {TransitionState.ABORTED}


class StateOrderViolation(RuntimeError):
    """A step tried to move the state machine along an edge it does not have."""

    def __init__(self, src: TransitionState, dst: TransitionState):
        super().__init__(f"illegal transition {src.value} -> {dst.value}")
        self.src = src
        self.dst = dst


def can_transition(src: TransitionState, dst: TransitionState) -> bool:
    return dst in ALLOWED_TRANSITIONS.get(src, frozenset())


# Results


class TransitionStatus(Enum):
    APPLIED = "applied"
    ROLLED_BACK = "rolled_back"
    UNRECOVERABLE = "unrecoverable"
    ABORTED = "aborted"
    DRY_RUN = "dry_run"

    @property
    def exit_code(self) -> int:
        return _EXIT_CODES[self]


_EXIT_CODES = {
    TransitionStatus.APPLIED: EXIT_APPLIED,
    TransitionStatus.DRY_RUN: EXIT_APPLIED,
    TransitionStatus.ABORTED: EXIT_ABORTED,
    TransitionStatus.ROLLED_BACK: EXIT_ROLLED_BACK,
    TransitionStatus.UNRECOVERABLE: EXIT_UNRECOVERABLE,
}


class StepOutcome(Enum):
    OK = "ok"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class DiagnosticEntry:
    step: str
    outcome: StepOutcome
    output: str = ""
    detail: Dict[str, Any] = field(default_factory=dict)


@dataclass
class TransitionResult:
    host: str
    status: TransitionStatus = TransitionStatus.ABORTED
    final_state: TransitionState = TransitionState.INIT
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    facts: Optional[NetworkFact] = None
    document: Optional[str] = None
    generated_path: Optional[str] = None
    quarantined: List[str] = field(default_factory=list)
    snapshot: Optional[Snapshot] = None

    @property
    def exit_code(self) -> int:
        return self.status.exit_code

    def record(self, step: str, outcome: StepOutcome, output: str = "", **detail: Any) -> DiagnosticEntry:
        entry = DiagnosticEntry(step=step, outcome=outcome, output=output or "", detail=dict(detail))
        self.diagnostics.append(entry)
        return entry

    def failures(self) -> List[DiagnosticEntry]:
        return [d for d in self.diagnostics if d.outcome == StepOutcome.FAILED]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "status": self.status.value,
            "exit_code": self.exit_code,
            "final_state": self.final_state.value,
            "generated_path": self.generated_path,
            "quarantined": list(self.quarantined),
            "facts": None
            if self.facts is None
            else {
                "interface": self.facts.interface,
                "address": self.facts.cidr,
                "gateway": self.facts.gateway,
                "dns_servers": list(self.facts.dns_servers),
            },
            "backups": []
            if self.snapshot is None
            else [
                {"path": b.original_path, "backup": b.backup_path, "existed": b.existed, "sha256": b.sha256}
                for b in self.snapshot.backups
            ],
            "diagnostics": [
                {"step": d.step, "outcome": d.outcome.value, "output": d.output, **d.detail} for d in self.diagnostics
            ],
        }
