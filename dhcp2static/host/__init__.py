# dhcp2static/host/__init__.py
from .facts import FactProvider, IpRouteFactProvider, StaticFactProvider
from .runner import CommandResult, CommandRunner, LocalRunner, SSHRunner
from .store import ConfigFileStore, LocalFileStore, RemoteFileStore, StoreError

__all__ = [
    "CommandResult",
    "CommandRunner",
    "ConfigFileStore",
    "FactProvider",
    "IpRouteFactProvider",
    "LocalFileStore",
    "LocalRunner",
    "RemoteFileStore",
    "SSHRunner",
    "StaticFactProvider",
    "StoreError",
]
