# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse
import ipaddress
import os
from typing import Any, Dict

from ...core.exceptions import Dhcp2StaticError
from ...ssh.ssh_config import SSHConfig
from ...transition.model import NetworkFact
from .helpers import _require

LOCAL_SELECTORS = ("localhost", "local")


def _validate_ip(value: str, flag: str) -> None:
    try:
        ipaddress.ip_address(str(value).strip())
    except ValueError:
        raise SystemExit(f"{flag}: not an IP address: {value!r}")


def _validate_dns(args: argparse.Namespace) -> None:
    for s in args.dns:
        _validate_ip(s, "--dns")
    if _require(args.fallback_dns):
        _validate_ip(args.fallback_dns, "--fallback-dns")


def _validate_hosts(args: argparse.Namespace) -> None:
    seen = set()
    for sel in args.host:
        if sel in seen:
            raise SystemExit(f"--host given twice: {sel}")
        seen.add(sel)
        if sel in LOCAL_SELECTORS:
            continue
        try:
            SSHConfig.from_selector(sel, user=args.ssh_user, port=args.ssh_port)
        except ValueError as e:
            raise SystemExit(f"--host {sel!r}: {e}")


def _validate_facts(args: argparse.Namespace) -> None:
    if not isinstance(args.facts, dict):
        raise SystemExit("config key 'facts' must map host -> facts")
    for host, data in args.facts.items():
        if not isinstance(data, dict):
            raise SystemExit(f"facts for {host!r} must be a mapping")
        try:
            NetworkFact.from_mapping(data)
        except Dhcp2StaticError as e:
            raise SystemExit(f"facts for {host!r}: {e}")


def _validate_files(args: argparse.Namespace) -> None:
    name = str(args.generated_name or "")
    if not name or os.sep in name or name in (".", ".."):
        raise SystemExit(f"--generated-name must be a plain file name, got {name!r}")
    if not name.endswith((".yaml", ".yml")):
        raise SystemExit(f"--generated-name must end in .yaml or .yml (netplan ignores anything else): {name!r}")
    if not os.path.isabs(str(args.config_dir)):
        raise SystemExit(f"--config-dir must be absolute: {args.config_dir!r}")
    for flag, suffix in (("--backup-suffix", args.backup_suffix), ("--quarantine-suffix", args.quarantine_suffix)):
        s = str(suffix or "")
        if not s or os.sep in s or s.endswith((".yaml", ".yml")):
            raise SystemExit(f"{flag} must be non-empty, contain no '/', and not end in .yaml/.yml: {s!r}")
    if args.backup_suffix == args.quarantine_suffix:
        raise SystemExit("--backup-suffix and --quarantine-suffix must differ")


def validate_args(args: argparse.Namespace, conf: Dict[str, Any]) -> None:
    if args.timeout is None or float(args.timeout) <= 0:
        raise SystemExit(f"--timeout must be > 0 (got {args.timeout})")
    if int(args.parallel) < 1:
        raise SystemExit(f"--parallel must be >= 1 (got {args.parallel})")
    if int(args.ssh_retries) < 0:
        raise SystemExit(f"--ssh-retries must be >= 0 (got {args.ssh_retries})")
    if not args.validate_cmd or not args.apply_cmd:
        raise SystemExit("--validate-cmd and --apply-cmd must not be empty")

    _validate_dns(args)
    _validate_hosts(args)
    _validate_facts(args)
    _validate_files(args)
