# SPDX-License-Identifier: LGPL-3.0-or-later
# dhcp2static/transition/generator.py
"""
Config Generator: render the static netplan document for one NetworkFact.

Pure and deterministic: the same facts and DNS input always produce the
same bytes.
"""
from __future__ import annotations

import ipaddress
from typing import Any, Dict, Iterable, List, Optional, Sequence

import yaml

from .model import NetworkFact

DEFAULT_FALLBACK_DNS = "8.8.8.8"
GENERATED_MODE = 0o600

HEADER = "# Generated by dhcp2static. Changes will be overwritten on the next run.\n"


def resolve_nameservers(
    fact: NetworkFact,
    dns: Optional[Sequence[str]] = None,
    fallback_dns: Optional[str] = DEFAULT_FALLBACK_DNS,
) -> List[str]:
    """
    Caller-supplied DNS wins over discovered DNS; the fallback resolver is
    always appended. Duplicates dropped, first occurrence kept.
    """
    chosen: Iterable[str] = dns if dns else fact.dns_servers
    out: List[str] = []
    for s in list(chosen) + ([fallback_dns] if fallback_dns else []):
        s = str(s).strip()
        if not s:
            continue
        ipaddress.ip_address(s)  # ValueError on junk
        if s not in out:
            out.append(s)
    return out


def build_static_config(
    fact: NetworkFact,
    dns: Optional[Sequence[str]] = None,
    *,
    fallback_dns: Optional[str] = DEFAULT_FALLBACK_DNS,
    renderer: Optional[str] = None,
) -> Dict[str, Any]:
    iface: Dict[str, Any] = {
        "dhcp4": False,
        "dhcp6": False,
        "addresses": [fact.cidr],
        "routes": [{"to": "default", "via": fact.gateway}],
    }
    nameservers = resolve_nameservers(fact, dns, fallback_dns)
    if nameservers:
        iface["nameservers"] = {"addresses": nameservers}

    network: Dict[str, Any] = {"version": 2}
    if renderer:
        network["renderer"] = renderer
    network["ethernets"] = {fact.interface: iface}
    return {"network": network}


def render_static_config(
    fact: NetworkFact,
    dns: Optional[Sequence[str]] = None,
    *,
    fallback_dns: Optional[str] = DEFAULT_FALLBACK_DNS,
    renderer: Optional[str] = None,
) -> str:
    data = build_static_config(fact, dns, fallback_dns=fallback_dns, renderer=renderer)
    return HEADER + yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
