# SPDX-License-Identifier: LGPL-3.0-or-later
from dhcp2static.host.runner import CommandResult


class ScriptedRunner:
    """
    CommandRunner returning scripted results.

    script: {tuple(argv): CommandResult | [CommandResult, ...] | callable(argv)}.
    A list is consumed one result per call (the last one repeats).
    Unscripted commands succeed with empty output.
    """

    description = "fake-host"

    def __init__(self, script=None):
        self.script = dict(script or {})
        self.calls = []

    def run(self, argv, *, timeout=None):
        argv = list(argv)
        self.calls.append((argv, timeout))
        entry = self.script.get(tuple(argv))
        if entry is None:
            return CommandResult(argv=argv, returncode=0)
        if callable(entry):
            return entry(argv)
        if isinstance(entry, list):
            return entry.pop(0) if len(entry) > 1 else entry[0]
        return entry

    def count(self, argv):
        return sum(1 for a, _ in self.calls if a == list(argv))


def ok(stdout="", argv=()):
    return CommandResult(argv=list(argv), returncode=0, stdout=stdout)


def fail(rc=1, stderr="boom", argv=(), timed_out=False):
    return CommandResult(argv=list(argv), returncode=rc, stderr=stderr, timed_out=timed_out)
