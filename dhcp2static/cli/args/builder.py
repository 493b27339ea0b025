# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/cli/args/builder.py
from __future__ import annotations

import argparse
import sys

from ...core.exceptions import EXIT_ABORTED
from ...core.logger import c
from ..help_texts import EXIT_CODES, YAML_EXAMPLE


class HelpFormatter(argparse.RawDescriptionHelpFormatter, argparse.ArgumentDefaultsHelpFormatter):
    """Combines raw description formatting with default value display in help."""


class ArgumentParser(argparse.ArgumentParser):
    """Usage errors exit 1 (nothing changed); argparse's 2 means 'rolled back' here."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(EXIT_ABORTED, f"{self.prog}: error: {message}\n")


def _build_epilog() -> str:
    return (
        c("YAML example:\n", "cyan", ["bold"])
        + c(YAML_EXAMPLE, "cyan")
        + "\n"
        + c("Exit codes:\n", "cyan", ["bold"])
        + c(EXIT_CODES, "cyan")
    )
