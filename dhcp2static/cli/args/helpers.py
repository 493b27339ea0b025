# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/cli/args/helpers.py
from __future__ import annotations

import argparse
import shlex
from typing import Any, Dict, List, Sequence, Union


def _require(v: Any) -> bool:
    """True if v is meaningfully present (treats empty/whitespace-only strings as missing)."""
    if v is None:
        return False
    if isinstance(v, str):
        return v.strip() != ""
    return True


def _merged_get(args: argparse.Namespace, conf: Dict[str, Any], key: str) -> Any:
    """Prefer CLI override if present (non-empty), else config."""
    v = getattr(args, key, None)
    if _require(v):
        return v
    return conf.get(key)


def _as_list(v: Any) -> List[str]:
    if v is None:
        return []
    if isinstance(v, str):
        return [x for x in (s.strip() for s in v.split(",")) if x]
    return [str(x).strip() for x in v if str(x).strip()]


def _merged_list(args: argparse.Namespace, conf: Dict[str, Any], key: str) -> List[str]:
    """
    Append-style options: CLI values replace config values entirely.
    Config may hold a list or a comma-separated string.
    """
    cli = getattr(args, key, None)
    if cli:
        return _as_list(cli)
    return _as_list(conf.get(key))


def _split_cmd(v: Union[str, Sequence[str]]) -> List[str]:
    if isinstance(v, str):
        return shlex.split(v)
    return [str(x) for x in v]


def _materialize_lists(args: argparse.Namespace, conf: Dict[str, Any]) -> None:
    """Resolve append-style options against config into plain lists on args."""
    args.host = _merged_list(args, conf, "host") or ["localhost"]
    args.dns = _merged_list(args, conf, "dns")
    args.ssh_opt = _merged_list(args, conf, "ssh_opt")
    args.validate_cmd = _split_cmd(args.validate_cmd)
    args.apply_cmd = _split_cmd(args.apply_cmd)
    args.facts = dict(conf.get("facts") or {})
