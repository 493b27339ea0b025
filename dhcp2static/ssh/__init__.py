# dhcp2static/ssh/__init__.py
from .ssh_client import SSHClient, SSHResult
from .ssh_config import SSHConfig

__all__ = ["SSHClient", "SSHConfig", "SSHResult"]
