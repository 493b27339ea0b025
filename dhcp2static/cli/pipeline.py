# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/cli/pipeline.py
"""
CLI pipeline: turn parsed args into per-host transitions, run them as a
fleet, print a summary, write the report and return the exit code.
"""
from __future__ import annotations

import argparse
import datetime as _dt
import logging
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.logger import Log, is_tty
from ..core.utils import U
from ..host.facts import FactProvider, IpRouteFactProvider, StaticFactProvider
from ..host.runner import CommandRunner, LocalRunner, SSHRunner
from ..host.store import ConfigFileStore, LocalFileStore, RemoteFileStore
from ..ssh.ssh_client import SSHClient
from ..ssh.ssh_config import SSHConfig
from ..transition.fleet import FleetReport, FleetRunner, Job
from ..transition.model import TransitionResult, TransitionStatus
from ..transition.orchestrator import TransitionOptions, TransitionOrchestrator
from ..transition.report_writer import write_report
from .args.validators import LOCAL_SELECTORS

_STATUS_STYLE = {
    TransitionStatus.APPLIED: "green",
    TransitionStatus.DRY_RUN: "cyan",
    TransitionStatus.ABORTED: "yellow",
    TransitionStatus.ROLLED_BACK: "magenta",
    TransitionStatus.UNRECOVERABLE: "bold red",
}


@dataclass(frozen=True)
class HostTarget:
    selector: str
    ssh: Optional[SSHConfig] = None

    @property
    def name(self) -> str:
        return "localhost" if self.ssh is None else self.ssh.host


def parse_target(selector: str, args: argparse.Namespace) -> HostTarget:
    if selector in LOCAL_SELECTORS:
        return HostTarget(selector=selector)
    cfg = SSHConfig.from_selector(
        selector,
        user=args.ssh_user,
        port=args.ssh_port,
        identity=args.ssh_identity,
        ssh_opts=list(args.ssh_opt or []),
        sudo=bool(args.sudo),
        retries=int(args.ssh_retries),
    )
    return HostTarget(selector=selector, ssh=cfg)


def facts_for(target: HostTarget, facts: Mapping[str, Any]) -> Optional[Dict[str, Any]]:
    """Static facts keyed by the exact selector, then by host name."""
    for key in (target.selector, target.name):
        if key in facts:
            return dict(facts[key])
    return None


def options_from_args(args: argparse.Namespace) -> TransitionOptions:
    return TransitionOptions(
        dns=tuple(args.dns),
        fallback_dns=args.fallback_dns or None,
        generated_name=args.generated_name,
        backup_suffix=args.backup_suffix,
        quarantine_suffix=args.quarantine_suffix,
        renderer=args.renderer,
        validate_cmd=tuple(args.validate_cmd),
        apply_cmd=tuple(args.apply_cmd),
        timeout=float(args.timeout),
        dry_run=bool(args.dry_run),
    )


class Pipeline:
    def __init__(self, logger: logging.Logger, args: argparse.Namespace):
        self.logger = logger
        self.args = args
        self.options = options_from_args(args)

    def _capabilities(self, target: HostTarget, log: logging.Logger):
        timeout = float(self.args.timeout)
        runner: CommandRunner
        discovery_runner: CommandRunner
        store: ConfigFileStore
        if target.ssh is None:
            runner = discovery_runner = LocalRunner(log, default_timeout=timeout)
            store = LocalFileStore(self.args.config_dir, log)
        else:
            sshc = SSHClient(log, target.ssh)
            # checker and applier run once per attempt; discovery is read-only
            runner = SSHRunner(sshc, default_timeout=timeout)
            discovery_runner = SSHRunner(sshc, default_timeout=timeout, retries=None)
            store = RemoteFileStore(sshc, self.args.config_dir, timeout=timeout)

        static = facts_for(target, self.args.facts)
        provider: FactProvider
        if static is not None:
            provider = StaticFactProvider(static)
        else:
            provider = IpRouteFactProvider(discovery_runner, log, interface=self.args.interface, timeout=timeout)
        return runner, store, provider

    def build_orchestrator(self, target: HostTarget) -> TransitionOrchestrator:
        runner, store, provider = self._capabilities(target, self.logger)
        return TransitionOrchestrator(target.selector, provider, store, runner, self.logger, self.options)

    def _job(self, target: HostTarget) -> Job:
        def run() -> TransitionResult:
            return self.build_orchestrator(target).run()

        return (target.selector, run)

    def _summary(self, fleet: FleetReport) -> None:
        if self.args.quiet:
            return
        table = Table(title="dhcp2static" + (" (dry-run)" if self.args.dry_run else ""))
        table.add_column("host")
        table.add_column("status")
        table.add_column("state")
        table.add_column("exit", justify="right")
        table.add_column("detail")
        for r in fleet.results:
            failed = r.failures()
            detail = failed[-1].output if failed else (r.generated_path or "")
            table.add_row(
                escape(r.host),
                f"[{_STATUS_STYLE[r.status]}]{r.status.value}[/]",
                r.final_state.value,
                str(r.exit_code),
                escape(" ".join(detail.split())[:160]),
            )
        Console(stderr=True).print(table)

    def run(self) -> int:
        started = _dt.datetime.now(_dt.timezone.utc)
        targets = [parse_target(sel, self.args) for sel in self.args.host]
        U.banner(self.logger, f"dhcp2static: {len(targets)} host(s)" + (" [dry-run]" if self.args.dry_run else ""))

        runner = FleetRunner(
            self.logger,
            parallel=int(self.args.parallel),
            progress=bool(len(targets) > 1 and not self.args.no_progress and not self.args.quiet and is_tty()),
        )
        fleet = runner.run([self._job(t) for t in targets])
        self._summary(fleet)

        if self.args.report:
            written = write_report(self.args.report, fleet, dry_run=bool(self.args.dry_run), started_at=started)
            for p in written:
                self.logger.info("📝 Report: %s", p)

        for r in fleet.results:
            if r.status == TransitionStatus.UNRECOVERABLE:
                Log.fail(self.logger, f"{r.host}: manual intervention required (backups: *{self.options.backup_suffix})")
        return fleet.exit_code
