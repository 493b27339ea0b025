# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/ssh/ssh_config.py
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence


def _is_probably_ipv6(host: str) -> bool:
    return ":" in (host or "")


def _scp_host(host: str) -> str:
    h = (host or "").strip()
    if _is_probably_ipv6(h) and not (h.startswith("[") and h.endswith("]")):
        return f"[{h}]"
    return h


def _clean_opt(opt: str) -> str:
    # Keep it one-line and strip; reject embedded newlines.
    o = (opt or "").strip()
    o = o.replace("\r", " ").replace("\n", " ")
    return " ".join(o.split())


@dataclass(frozen=True)
class SSHConfig:
    """
    Canonical SSH connection configuration for one target host.

    Non-interactive by default (BatchMode), so a fleet run never blocks on a
    password or host-key prompt.
    """
    host: str
    user: str = "root"
    port: int = 22
    identity: Optional[Path] = None
    ssh_opts: List[str] = field(default_factory=list)

    # behavior
    sudo: bool = False
    connect_timeout: int = 10
    keepalive_interval: int = 30
    keepalive_count: int = 3

    # advanced
    jump_host: Optional[str] = None          # ProxyJump
    strict_host_key_checking: bool = False
    known_hosts_file: Optional[Path] = None
    batch_mode: bool = True

    # transient transport failures only (ssh rc=255, timeouts)
    retries: int = 0
    retry_sleep: float = 1.0

    def __post_init__(self) -> None:
        host = (self.host or "").strip()
        if not host:
            raise ValueError("SSHConfig.host must not be empty")
        object.__setattr__(self, "host", host)

        user = (self.user or "").strip()
        if not user:
            raise ValueError("SSHConfig.user must not be empty")
        object.__setattr__(self, "user", user)

        if self.identity is not None:
            object.__setattr__(self, "identity", Path(self.identity).expanduser())

        if self.known_hosts_file is not None:
            object.__setattr__(self, "known_hosts_file", Path(self.known_hosts_file).expanduser())

        if self.jump_host is not None:
            j = (self.jump_host or "").strip()
            object.__setattr__(self, "jump_host", j or None)

        if self.ssh_opts:
            cleaned: List[str] = []
            for opt in self.ssh_opts:
                o = _clean_opt(opt)
                if o and o not in cleaned:
                    cleaned.append(o)
            object.__setattr__(self, "ssh_opts", cleaned)

        if self.port <= 0 or self.port > 65535:
            raise ValueError(f"Invalid SSH port: {self.port}")

        for name, v in (
            ("connect_timeout", self.connect_timeout),
            ("keepalive_interval", self.keepalive_interval),
            ("keepalive_count", self.keepalive_count),
            ("retries", self.retries),
        ):
            if v < 0:
                raise ValueError(f"{name} must be >= 0 (got {v})")

    @classmethod
    def from_selector(cls, selector: str, **defaults: Any) -> "SSHConfig":
        """
        Build a config from a host selector: `host`, `user@host`, `user@host:port`,
        or `user@[v6addr]:port`. Selector parts win over `defaults`.
        """
        s = (selector or "").strip()
        opts = dict(defaults)
        if "@" in s:
            user, s = s.split("@", 1)
            opts["user"] = user
        if s.startswith("["):
            end = s.find("]")
            if end < 0:
                raise ValueError(f"Unbalanced brackets in host selector: {selector!r}")
            host, rest = s[1:end], s[end + 1:]
            if rest.startswith(":"):
                opts["port"] = int(rest[1:])
        elif s.count(":") == 1:
            host, port = s.split(":", 1)
            opts["port"] = int(port)
        else:
            host = s
        opts = {k: v for k, v in opts.items() if v is not None}
        return cls(host=host, **opts)

    # Rendering helpers

    def target(self) -> str:
        return f"{self.user}@{self.host}"

    def _append_hostkey_policy(self, cmd: List[str]) -> None:
        if self.strict_host_key_checking:
            cmd += ["-o", "StrictHostKeyChecking=yes"]
        else:
            cmd += ["-o", "StrictHostKeyChecking=no"]

        if self.known_hosts_file is not None:
            cmd += ["-o", f"UserKnownHostsFile={self.known_hosts_file}"]
        elif not self.strict_host_key_checking:
            cmd += ["-o", "UserKnownHostsFile=/dev/null"]

    def base_cmd(self) -> List[str]:
        cmd: List[str] = [
            "ssh",
            "-p", str(self.port),
            "-o", f"ConnectTimeout={self.connect_timeout}",
            "-o", f"ServerAliveInterval={self.keepalive_interval}",
            "-o", f"ServerAliveCountMax={self.keepalive_count}",
        ]

        if self.batch_mode:
            cmd += ["-o", "BatchMode=yes"]

        self._append_hostkey_policy(cmd)

        if self.identity:
            cmd += ["-i", str(self.identity)]
        if self.jump_host:
            cmd += ["-J", self.jump_host]

        for opt in self.ssh_opts:
            cmd += ["-o", opt]

        cmd.append(self.target())
        return cmd

    def remote_cmd(self, argv: Sequence[str]) -> List[str]:
        args = list(argv)
        if self.sudo:
            args = ["sudo", "-n", "--"] + args
        return self.base_cmd() + ["--"] + args

    def describe(self) -> str:
        parts = [f"{self.user}@{_scp_host(self.host)}:{self.port}"]
        if self.identity:
            parts.append(f"key={self.identity}")
        if self.jump_host:
            parts.append(f"via={self.jump_host}")
        if self.sudo:
            parts.append("sudo")
        if self.batch_mode:
            parts.append("batch")
        parts.append("hostkey=strict" if self.strict_host_key_checking else "hostkey=off")
        return " ".join(parts)
