# dhcp2static/core/__init__.py
from .exceptions import (
    ApplyError,
    BackupError,
    Dhcp2StaticError,
    DiscoveryError,
    Fatal,
    MalformedConfigError,
    RollbackError,
    ValidationError,
)

__all__ = [
    "Dhcp2StaticError",
    "Fatal",
    "DiscoveryError",
    "BackupError",
    "MalformedConfigError",
    "ValidationError",
    "ApplyError",
    "RollbackError",
]
