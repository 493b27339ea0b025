# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import pytest

from dhcp2static.core.exceptions import ValidationError
from dhcp2static.transition.validator import ConfigValidator
from fakes.fake_runner import ScriptedRunner, fail, ok
from fakes.fake_store import MemoryFileStore

GOOD = "/etc/netplan/99-dhcp2static.yaml"
BAD = "/etc/netplan/50-bad.yaml"


@pytest.fixture
def store():
    return MemoryFileStore(
        files={
            GOOD: "network:\n  version: 2\n  ethernets:\n    eth0:\n      addresses: [10.0.0.5/24]\n",
            BAD: "network:\n  ethernets:\n    eth0:\n      address: 10.0.0.5\n",
        }
    )


@pytest.mark.unit
class TestConfigValidator:
    def test_passes_when_both_layers_pass(self, store, logger):
        runner = ScriptedRunner()
        outcome = ConfigValidator(runner, store, logger).validate([GOOD])
        assert outcome.passed
        assert outcome.external_ran
        assert runner.count(["netplan", "generate"]) == 1
        outcome.raise_for_status()

    def test_in_process_failure_skips_external(self, store, logger):
        runner = ScriptedRunner()
        outcome = ConfigValidator(runner, store, logger).validate([GOOD, BAD])
        assert not outcome.passed
        assert not outcome.external_ran
        assert runner.calls == []
        assert outcome.diagnostics[0].startswith(BAD)

    def test_external_rejection_carries_output(self, store, logger):
        runner = ScriptedRunner({("netplan", "generate"): fail(rc=1, stderr="Error in network definition: eth0")})
        outcome = ConfigValidator(runner, store, logger).validate([GOOD])
        assert not outcome.passed
        assert outcome.returncode == 1
        assert "Error in network definition" in outcome.diagnostics[0]
        with pytest.raises(ValidationError) as ei:
            outcome.raise_for_status()
        assert ei.value.context["returncode"] == 1

    def test_silent_failure_still_has_diagnostic(self, store, logger):
        runner = ScriptedRunner({("netplan", "generate"): fail(rc=2, stderr="")})
        outcome = ConfigValidator(runner, store, logger).run_checker()
        assert outcome.diagnostics == ["netplan exited with rc=2"]

    def test_custom_command_and_timeout(self, store, logger):
        runner = ScriptedRunner({("true",): ok()})
        ConfigValidator(runner, store, logger, command=["true"], timeout=9).run_checker()
        assert runner.calls == [(["true"], 9)]

    def test_check_document_names_source(self, store, logger):
        outcome = ConfigValidator(ScriptedRunner(), store, logger).check_document("network: [\n", "99.yaml")
        assert not outcome.passed
        assert outcome.diagnostics[0].startswith("99.yaml: invalid YAML")

    def test_unreadable_file(self, store, logger):
        store.fail_read.add(GOOD)
        outcome = ConfigValidator(ScriptedRunner(), store, logger).check_files([GOOD])
        assert "unreadable" in outcome.diagnostics[0]
