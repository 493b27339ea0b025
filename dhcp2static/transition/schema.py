# SPDX-License-Identifier: LGPL-3.0-or-later
# dhcp2static/transition/schema.py
"""
Structured netplan checks shared by the malformed-config detector and the
in-process half of the validator.

A document is acceptable when it parses as YAML, carries a `network`
mapping and declares interface addresses the netplan v2 way (a list of
"address/prefix" strings or single-key address mappings). Legacy
ifupdown-style keys (`address`, `netmask`) inside an interface stanza are
rejected.
"""
from __future__ import annotations

import ipaddress
from typing import Any, List

import yaml

DEVICE_SECTIONS = (
    "ethernets",
    "wifis",
    "bonds",
    "bridges",
    "vlans",
    "tunnels",
    "vrfs",
    "modems",
    "dummy-devices",
    "virtual-ethernets",
)

LEGACY_KEYS = ("address", "netmask")


def _check_address_item(item: Any) -> str:
    if isinstance(item, dict):
        # netplan allows {"10.0.0.5/24": {lifetime: 0, label: ...}}
        if len(item) != 1:
            return f"address mapping must have exactly one key, got {len(item)}"
        key, opts = next(iter(item.items()))
        if opts is not None and not isinstance(opts, dict):
            return f"options for {key!r} must be a mapping"
        item = key
    if not isinstance(item, str) or "/" not in item:
        return f"address {item!r} is not in address/prefix form"
    try:
        ipaddress.ip_interface(item)
    except ValueError as e:
        return f"address {item!r} is invalid: {e}"
    return ""


def _check_interface(section: str, name: str, cfg: Any) -> List[str]:
    where = f"{section}.{name}"
    if cfg is None:
        return []
    if not isinstance(cfg, dict):
        return [f"{where}: stanza must be a mapping"]

    problems: List[str] = []
    for key in LEGACY_KEYS:
        if key in cfg:
            problems.append(f"{where}: legacy key '{key}' (use addresses: [address/prefix])")

    if "addresses" in cfg:
        addrs = cfg["addresses"]
        if not isinstance(addrs, list):
            problems.append(f"{where}: addresses must be a list, got {type(addrs).__name__}")
        else:
            for item in addrs:
                err = _check_address_item(item)
                if err:
                    problems.append(f"{where}: {err}")

    ns = cfg.get("nameservers")
    if ns is not None:
        if not isinstance(ns, dict):
            problems.append(f"{where}: nameservers must be a mapping")
        elif "addresses" in ns and not isinstance(ns["addresses"], list):
            problems.append(f"{where}: nameservers.addresses must be a list")

    routes = cfg.get("routes")
    if routes is not None and not isinstance(routes, list):
        problems.append(f"{where}: routes must be a list")
    return problems


def check_data(data: Any) -> List[str]:
    """Problems in an already-parsed document (empty list = acceptable)."""
    if not isinstance(data, dict):
        return ["top level is not a mapping" if data is not None else "document is empty"]
    nw = data.get("network")
    if not isinstance(nw, dict):
        return ["missing 'network:' mapping"]

    problems: List[str] = []
    version = nw.get("version", 2)
    if version != 2:
        problems.append(f"unsupported network.version {version!r}")

    for section in DEVICE_SECTIONS:
        devs = nw.get(section)
        if devs is None:
            continue
        if not isinstance(devs, dict):
            problems.append(f"{section}: must be a mapping of interface name to settings")
            continue
        for name, cfg in devs.items():
            problems.extend(_check_interface(section, str(name), cfg))
    return problems


def check_text(text: str) -> List[str]:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        return [f"invalid YAML: {' '.join(str(e).split())}"]
    return check_data(data)
