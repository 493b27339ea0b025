# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/transition/quarantine.py
"""
Malformed-Config Detector.

scan() reads candidates and classifies them with the structured checks in
schema.py; quarantine() renames malformed files out of the active set
(`path + suffix`) without touching their content.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from ..core.exceptions import MalformedConfigError
from ..host.store import ConfigFileStore, read_text
from . import schema

DEFAULT_QUARANTINE_SUFFIX = ".disabled"


@dataclass(frozen=True)
class Finding:
    path: str
    problems: Tuple[str, ...]


@dataclass
class ScanReport:
    clean: List[str] = field(default_factory=list)
    malformed: List[Finding] = field(default_factory=list)

    @property
    def malformed_paths(self) -> List[str]:
        return [f.path for f in self.malformed]


class MalformedConfigDetector:
    def __init__(self, store: ConfigFileStore, logger: logging.Logger, *, suffix: str = DEFAULT_QUARANTINE_SUFFIX):
        if not suffix:
            raise ValueError("quarantine suffix must not be empty")
        self.store = store
        self.logger = logger
        self.suffix = suffix

    def quarantine_path(self, path: str) -> str:
        return f"{path}{self.suffix}"

    def scan(self, paths: Sequence[str]) -> ScanReport:
        report = ScanReport()
        for path in paths:
            try:
                text = read_text(self.store, path)
            except OSError as e:
                raise MalformedConfigError(msg=f"cannot read {path}: {e}", cause=e).with_context(path=path) from e
            problems = schema.check_text(text)
            if problems:
                self.logger.warning("Malformed config %s: %s", path, "; ".join(problems))
                report.malformed.append(Finding(path=path, problems=tuple(problems)))
            else:
                report.clean.append(path)
        return report

    def quarantine(self, report: ScanReport) -> List[str]:
        """Rename every malformed file; return the remaining active set."""
        for finding in report.malformed:
            dst = self.quarantine_path(finding.path)
            try:
                self.store.rename(finding.path, dst)
            except OSError as e:
                raise MalformedConfigError(msg=f"cannot quarantine {finding.path}: {e}", cause=e).with_context(
                    path=finding.path, target=dst
                ) from e
            self.logger.info("Quarantined %s -> %s", finding.path, dst)
        return list(report.clean)
