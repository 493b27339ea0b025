# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/config/config_loader.py
"""
YAML/JSON configuration loading.

Configs are merged in order (later wins; mappings merge recursively, lists
and scalars are replaced) and then applied as argparse defaults so CLI
flags always override config values.
"""
from __future__ import annotations

import argparse
import glob
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

import yaml

from ..core.utils import U

CONFIG_SUFFIXES = (".yaml", ".yml", ".json")

# config key -> argparse dest
KEY_ALIASES = {
    "hosts": "host",
    "nameservers": "dns",
    "netplan_dir": "config_dir",
}

# keys consumed directly from the merged config, never argparse defaults
CONFIG_ONLY_KEYS = frozenset({"facts"})


def _deep_merge(base: Dict[str, Any], over: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in over.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _normalize_key(k: Any) -> str:
    key = str(k).strip().replace("-", "_")
    return KEY_ALIASES.get(key, key)


class Config:
    @staticmethod
    def expand_configs(logger: logging.Logger, paths: Sequence[str]) -> List[Path]:
        """
        Expand ~, globs and directories (a directory contributes its
        *.yaml/*.yml/*.json files in name order).
        """
        out: List[Path] = []
        for raw in paths:
            s = str(Path(str(raw)).expanduser())
            matches = sorted(glob.glob(s)) if any(ch in s for ch in "*?[") else [s]
            if not matches:
                U.die(logger, f"Config glob matched nothing: {raw}", 1)
            for m in matches:
                p = Path(m)
                if p.is_dir():
                    out.extend(sorted(x for x in p.iterdir() if x.is_file() and x.suffix.lower() in CONFIG_SUFFIXES))
                elif p.is_file():
                    out.append(p)
                else:
                    U.die(logger, f"Config file not found: {p}", 1)
        logger.debug("Config files: %s", [str(p) for p in out])
        return out

    @staticmethod
    def load_file(logger: logging.Logger, path: Path) -> Dict[str, Any]:
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            U.die(logger, f"Cannot read config {path}: {e}", 1)
        try:
            if Path(path).suffix.lower() == ".json":
                data = json.loads(text or "{}")
            else:
                data = yaml.safe_load(text)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            U.die(logger, f"Invalid config {path}: {' '.join(str(e).split())}", 1)
        if data is None:
            return {}
        if not isinstance(data, dict):
            U.die(logger, f"Config {path}: top level must be a mapping, got {type(data).__name__}", 1)
        return {_normalize_key(k): v for k, v in data.items()}

    @staticmethod
    def load_many(logger: logging.Logger, paths: Sequence[Path]) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for p in paths:
            merged = _deep_merge(merged, Config.load_file(logger, p))
            logger.debug("Loaded config %s", p)
        return merged

    @staticmethod
    def apply_as_defaults(logger: logging.Logger, parser: argparse.ArgumentParser, conf: Dict[str, Any]) -> None:
        """
        Set known config keys as parser defaults.

        Append-style options (--host, --dns, ...) are skipped: argparse would
        append CLI values to a config default instead of replacing it. Those
        are merged after parsing (cli.args.helpers._merged_list).
        """
        actions = {a.dest: a for a in parser._actions if a.dest and a.dest != argparse.SUPPRESS}
        defaults: Dict[str, Any] = {}
        for k, v in conf.items():
            a = actions.get(k)
            if a is None:
                if k not in CONFIG_ONLY_KEYS:
                    logger.warning("Ignoring unknown config key: %s", k)
                continue
            if isinstance(a, argparse._AppendAction):
                continue
            defaults[k] = v
        if defaults:
            parser.set_defaults(**defaults)
            logger.debug("Config defaults: %s", sorted(defaults))
