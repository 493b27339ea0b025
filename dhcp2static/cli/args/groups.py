# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse

from ...host.runner import DEFAULT_TIMEOUT_S
from ...transition.backup import DEFAULT_BACKUP_SUFFIX
from ...transition.generator import DEFAULT_FALLBACK_DNS
from ...transition.orchestrator import DEFAULT_GENERATED_NAME
from ...transition.quarantine import DEFAULT_QUARANTINE_SUFFIX


def _add_global_config_logging(p: argparse.ArgumentParser) -> None:
    # ------------------------------------------------------------------
    # Global config/logging (two-phase parse relies on these)
    # ------------------------------------------------------------------
    from ... import __version__

    p.add_argument(
        "--config",
        action="append",
        default=[],
        help="YAML/JSON config file, glob or directory (repeatable; later overrides earlier).",
    )
    p.add_argument("--dump-config", action="store_true", help="Print merged config and exit.")
    p.add_argument("--dump-args", action="store_true", help="Print final parsed args and exit.")
    p.add_argument("--version", action="version", version=__version__)
    p.add_argument("-v", "--verbose", action="count", default=0, help="Verbosity: -v, -vv, -vvv (trace)")
    p.add_argument("-q", "--quiet", action="count", default=0, help="Less output: -q warnings, -qq errors only")
    p.add_argument("--log-file", dest="log_file", default=None, help="Also write logs to this file.")
    p.add_argument("--json-logs", dest="json_logs", action="store_true", help="Emit logs as NDJSON.")


def _add_target_selection(p: argparse.ArgumentParser) -> None:
    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------
    p.add_argument(
        "--host",
        action="append",
        default=None,
        help="Target host (repeatable): localhost/local for this machine, otherwise [user@]host[:port] over SSH. "
        "Default: localhost.",
    )
    p.add_argument(
        "--interface",
        default=None,
        help="Interface to convert (default: the one carrying the default route).",
    )


def _add_transition_knobs(p: argparse.ArgumentParser) -> None:
    # ------------------------------------------------------------------
    # Transition behavior
    # ------------------------------------------------------------------
    p.add_argument("--dry-run", dest="dry_run", action="store_true", help="Discover, scan, render, validate; change nothing.")
    p.add_argument(
        "--dns",
        action="append",
        default=None,
        help="Nameserver to configure (repeatable). Replaces discovered DNS.",
    )
    p.add_argument(
        "--fallback-dns",
        dest="fallback_dns",
        default=DEFAULT_FALLBACK_DNS,
        help="Resolver always appended after the configured DNS. Empty string disables it.",
    )
    p.add_argument("--config-dir", dest="config_dir", default="/etc/netplan", help="Netplan configuration directory.")
    p.add_argument(
        "--generated-name",
        dest="generated_name",
        default=DEFAULT_GENERATED_NAME,
        help="File name of the generated static configuration inside --config-dir.",
    )
    p.add_argument("--backup-suffix", dest="backup_suffix", default=DEFAULT_BACKUP_SUFFIX, help="Suffix for backups.")
    p.add_argument(
        "--quarantine-suffix",
        dest="quarantine_suffix",
        default=DEFAULT_QUARANTINE_SUFFIX,
        help="Suffix appended to malformed configuration files.",
    )
    p.add_argument("--renderer", default=None, choices=["networkd", "NetworkManager"], help="netplan renderer to pin.")
    p.add_argument("--validate-cmd", dest="validate_cmd", default="netplan generate", help="External syntax checker.")
    p.add_argument("--apply-cmd", dest="apply_cmd", default="netplan apply", help="External applier.")
    p.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT_S,
        help="Timeout in seconds for every external command.",
    )


def _add_fleet_report(p: argparse.ArgumentParser) -> None:
    # ------------------------------------------------------------------
    # Fleet + report
    # ------------------------------------------------------------------
    p.add_argument("--parallel", type=int, default=1, help="Hosts transitioned concurrently.")
    p.add_argument(
        "--report",
        default=None,
        help="Write a report: *.json for JSON only, any other name for Markdown + JSON sidecar.",
    )
    p.add_argument("--no-progress", dest="no_progress", action="store_true", help="Disable the progress bar.")


def _add_ssh_knobs(p: argparse.ArgumentParser) -> None:
    # ------------------------------------------------------------------
    # SSH (remote hosts)
    # ------------------------------------------------------------------
    p.add_argument("--ssh-user", dest="ssh_user", default="root", help="SSH user when the selector has none.")
    p.add_argument("--ssh-port", dest="ssh_port", type=int, default=22, help="SSH port when the selector has none.")
    p.add_argument("--ssh-identity", dest="ssh_identity", default=None, help="SSH private key.")
    p.add_argument(
        "--ssh-opt",
        dest="ssh_opt",
        action="append",
        default=None,
        help="Extra ssh -o option (repeatable), e.g. ProxyCommand=...",
    )
    p.add_argument("--ssh-retries", dest="ssh_retries", type=int, default=1, help="Retries on SSH transport failures.")
    p.add_argument("--sudo", action="store_true", help="Run remote commands through sudo -n.")
