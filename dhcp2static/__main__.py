# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/__main__.py
from __future__ import annotations

import sys
import traceback
from typing import Optional, Sequence

from .cli.args.parser import parse_args_with_config
from .cli.pipeline import Pipeline
from .core.exceptions import EXIT_ABORTED, Fatal, format_exception_for_cli


def _print_stderr(msg: str) -> None:
    print(msg, file=sys.stderr)


def _safe_log(logger, level: str, msg: str) -> None:
    """
    Best-effort logging without assuming logger exists or has a given method.
    """
    if logger is None:
        _print_stderr(msg)
        return

    fn = getattr(logger, level, None)
    if callable(fn):
        fn(msg)
    else:
        _print_stderr(msg)


def run(argv: Optional[Sequence[str]] = None) -> int:
    logger: Optional[object] = None

    # Phase 1: parse (Fatal can happen here)
    try:
        args, _conf, logger = parse_args_with_config(argv)
    except Fatal as e:
        # already logged by U.die(logger, ...)
        return getattr(e, "code", EXIT_ABORTED)
    except KeyboardInterrupt:
        _print_stderr("Interrupted by user (Ctrl+C).")
        return 130

    verbose = int(getattr(args, "verbose", 0) or 0)

    # Phase 2: run transitions
    try:
        return Pipeline(logger, args).run()
    except Fatal as e:
        _safe_log(logger, "error", format_exception_for_cli(e, verbose=verbose))
        return getattr(e, "code", EXIT_ABORTED)
    except KeyboardInterrupt:
        _safe_log(logger, "warning", "Interrupted by user (Ctrl+C).")
        return 130
    except Exception as e:
        # Hard guardrail: unexpected exceptions should not fail silently.
        _safe_log(logger, "error", f"💥 UNHANDLED {format_exception_for_cli(e, verbose=max(verbose, 2))}")
        _safe_log(logger, "debug", traceback.format_exc())
        return EXIT_ABORTED


def main() -> None:
    raise SystemExit(run())


if __name__ == "__main__":
    main()
