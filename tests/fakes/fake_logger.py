# SPDX-License-Identifier: LGPL-3.0-or-later
import logging


class FakeLogger:
    """Records (level, message) pairs; usable directly or behind a LoggerAdapter."""

    def __init__(self):
        self.records = []
        self.name = "fake"

    def _log(self, level, msg, *a):
        try:
            text = str(msg) % a if a else str(msg)
        except (TypeError, ValueError):
            text = str(msg)
        self.records.append((level, text))

    def log(self, level, msg, *a, **k):
        self._log(logging.getLevelName(level).lower(), msg, *a)

    def info(self, msg, *a, **k): self._log("info", msg, *a)
    def warning(self, msg, *a, **k): self._log("warning", msg, *a)
    def error(self, msg, *a, **k): self._log("error", msg, *a)
    def critical(self, msg, *a, **k): self._log("critical", msg, *a)
    def debug(self, msg, *a, **k): self._log("debug", msg, *a)

    def isEnabledFor(self, _lvl):
        return True

    def messages(self, level=None):
        return [m for (lv, m) in self.records if level is None or lv == level]
