# dhcp2static/config/__init__.py
from .config_loader import Config

__all__ = ["Config"]
