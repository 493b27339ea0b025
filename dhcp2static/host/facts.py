# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/host/facts.py
"""
Fact providers: where a transition learns the host's current addressing.

- IpRouteFactProvider reads the live kernel state through a CommandRunner
  (`ip -j route`, `ip -j addr`, resolvectl or /etc/resolv.conf)
- StaticFactProvider returns facts supplied by configuration
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Protocol

from ..core.exceptions import DiscoveryError
from ..transition.model import NetworkFact
from .runner import CommandRunner

# systemd-resolved stub listener; never a useful upstream for a static config
_STUB_RESOLVERS = frozenset({"127.0.0.53", "127.0.0.54"})

_IP_RE = re.compile(r"^[0-9A-Fa-f:.]+(%\S+)?$")


class FactProvider(Protocol):
    def gather(self) -> NetworkFact: ...


class StaticFactProvider:
    def __init__(self, data: Mapping[str, Any]):
        self.data = dict(data)

    def gather(self) -> NetworkFact:
        return NetworkFact.from_mapping(self.data)


def _load_json(text: str, what: str) -> Any:
    try:
        return json.loads(text or "[]")
    except json.JSONDecodeError as e:
        raise DiscoveryError(msg=f"cannot parse {what} output as JSON: {e}", cause=e) from e


def parse_default_route(text: str, interface: Optional[str] = None) -> Dict[str, Any]:
    """Pick the default route from `ip -j route show default` (lowest metric wins)."""
    routes = [r for r in _load_json(text, "ip route") if isinstance(r, dict) and r.get("gateway")]
    if interface:
        routes = [r for r in routes if r.get("dev") == interface]
    if not routes:
        where = f" via {interface}" if interface else ""
        raise DiscoveryError(msg=f"no default route{where}")
    routes.sort(key=lambda r: int(r.get("metric", 0) or 0))
    return routes[0]


def parse_interface_address(text: str, interface: str, family: str = "inet") -> Dict[str, Any]:
    """Primary global address of `interface` from `ip -j addr show dev IFACE`."""
    for link in _load_json(text, "ip addr"):
        if not isinstance(link, dict) or link.get("ifname") != interface:
            continue
        for info in link.get("addr_info") or []:
            if info.get("family") == family and info.get("scope", "global") == "global" and info.get("local"):
                return info
    raise DiscoveryError(msg=f"no {family} global address on {interface}")


def parse_resolvectl(text: str) -> List[str]:
    """`resolvectl dns IFACE` prints 'Link 2 (eth0): 1.1.1.1 9.9.9.9'."""
    servers: List[str] = []
    for line in (text or "").splitlines():
        _, sep, rest = line.partition(":")
        if not sep or not line.lstrip().startswith(("Link", "Global")):
            continue
        servers.extend(tok for tok in rest.split() if _IP_RE.match(tok))
    return _usable(servers)


def parse_resolv_conf(text: str) -> List[str]:
    servers = []
    for line in (text or "").splitlines():
        parts = line.split("#", 1)[0].split()
        if len(parts) >= 2 and parts[0] == "nameserver":
            servers.append(parts[1])
    return _usable(servers)


def _usable(servers: List[str]) -> List[str]:
    out: List[str] = []
    for s in servers:
        s = s.split("%", 1)[0]
        if s in _STUB_RESOLVERS or s in out:
            continue
        out.append(s)
    return out


class IpRouteFactProvider:
    """
    Discover facts on a live host.

    The interface is the one carrying the default route unless pinned.
    DNS comes from resolvectl for that link; when resolvectl is missing or
    has nothing for the link, /etc/resolv.conf is used (stub resolver
    entries are ignored). Missing DNS is not an error.
    """

    def __init__(
        self,
        runner: CommandRunner,
        logger: logging.Logger,
        *,
        interface: Optional[str] = None,
        timeout: Optional[float] = None,
        resolv_conf: str = "/etc/resolv.conf",
    ):
        self.runner = runner
        self.logger = logger
        self.interface = interface
        self.timeout = timeout
        self.resolv_conf = resolv_conf

    def _run(self, argv: List[str], what: str) -> str:
        res = self.runner.run(argv, timeout=self.timeout)
        if not res.ok:
            raise DiscoveryError(
                msg=f"{what} failed on {self.runner.description} (rc={res.returncode})",
                context={"argv": argv, "output": res.output},
            )
        return res.stdout

    def _dns(self, iface: str) -> List[str]:
        res = self.runner.run(["resolvectl", "dns", iface], timeout=self.timeout)
        if res.ok:
            servers = parse_resolvectl(res.stdout)
            if servers:
                return servers
        else:
            self.logger.debug("resolvectl unavailable on %s (rc=%d)", self.runner.description, res.returncode)

        res = self.runner.run(["cat", self.resolv_conf], timeout=self.timeout)
        if not res.ok:
            self.logger.warning("Cannot read %s on %s; no DNS discovered", self.resolv_conf, self.runner.description)
            return []
        return parse_resolv_conf(res.stdout)

    def gather(self) -> NetworkFact:
        route = parse_default_route(self._run(["ip", "-j", "route", "show", "default"], "ip route"), self.interface)
        iface = self.interface or str(route.get("dev") or "")
        if not iface:
            raise DiscoveryError(msg="default route has no device")

        addr = parse_interface_address(self._run(["ip", "-j", "addr", "show", "dev", iface], "ip addr"), iface)
        fact = NetworkFact(
            interface=iface,
            address=str(addr["local"]),
            prefix=int(addr.get("prefixlen", 32)),
            gateway=str(route["gateway"]),
            dns_servers=tuple(self._dns(iface)),
        )
        self.logger.info(
            "Facts on %s: %s %s via %s dns=%s",
            self.runner.description,
            fact.interface,
            fact.cidr,
            fact.gateway,
            ",".join(fact.dns_servers) or "-",
        )
        return fact
