# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/cli/args/__init__.py
"""
Argument parser modules for the dhcp2static CLI.
"""
from __future__ import annotations

from .builder import ArgumentParser, HelpFormatter, _build_epilog
from .groups import (
    _add_fleet_report,
    _add_global_config_logging,
    _add_ssh_knobs,
    _add_target_selection,
    _add_transition_knobs,
)
from .helpers import _as_list, _materialize_lists, _merged_get, _merged_list, _require, _split_cmd
from .parser import _build_preparser, _load_merged_config, build_parser, parse_args_with_config
from .validators import LOCAL_SELECTORS, validate_args

__all__ = [
    "ArgumentParser",
    "HelpFormatter",
    "LOCAL_SELECTORS",
    "_add_fleet_report",
    "_add_global_config_logging",
    "_add_ssh_knobs",
    "_add_target_selection",
    "_add_transition_knobs",
    "_as_list",
    "_build_epilog",
    "_build_preparser",
    "_load_merged_config",
    "_materialize_lists",
    "_merged_get",
    "_merged_list",
    "_require",
    "_split_cmd",
    "build_parser",
    "parse_args_with_config",
    "validate_args",
]
