# dhcp2static/transition/__init__.py
from .model import (
    Backup,
    NetworkFact,
    Snapshot,
    StateOrderViolation,
    TransitionResult,
    TransitionState,
    TransitionStatus,
)

__all__ = [
    "Backup",
    "NetworkFact",
    "Snapshot",
    "StateOrderViolation",
    "TransitionResult",
    "TransitionState",
    "TransitionStatus",
]
