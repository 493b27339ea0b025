# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import subprocess
from unittest.mock import patch

import pytest

from dhcp2static.ssh.ssh_client import SSHClient
from dhcp2static.ssh.ssh_config import SSHConfig


def _cp(rc=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=["ssh"], returncode=rc, stdout=stdout, stderr=stderr)


@pytest.mark.unit
class TestSSHClient:
    def test_remote_argv_is_quoted(self, logger):
        client = SSHClient(logger, SSHConfig(host="web01"))
        with patch("dhcp2static.ssh.ssh_client.U.run_cmd", return_value=_cp(stdout="ok")) as run:
            res = client.run(["cat", "/etc/netplan/my file.yaml"], check=False)
        argv = run.call_args.args[1]
        assert argv[-1] == "'/etc/netplan/my file.yaml'"
        assert res.rc == 0
        assert res.stdout == "ok"

    def test_check_raises_on_failure(self, logger):
        client = SSHClient(logger, SSHConfig(host="web01"))
        with patch("dhcp2static.ssh.ssh_client.U.run_cmd", return_value=_cp(rc=1, stderr="denied")):
            with pytest.raises(subprocess.CalledProcessError):
                client.run(["true"])

    def test_retries_transport_failures_only(self, logger):
        cfg = SSHConfig(host="web01", retries=2, retry_sleep=0)
        client = SSHClient(logger, cfg)
        results = [_cp(rc=255, stderr="Connection refused"), _cp(stdout="done")]
        with patch("dhcp2static.ssh.ssh_client.U.run_cmd", side_effect=results) as run:
            res = client.run(["true"])
        assert run.call_count == 2
        assert res.stdout == "done"

    def test_remote_failure_is_not_retried(self, logger):
        cfg = SSHConfig(host="web01", retries=3, retry_sleep=0)
        client = SSHClient(logger, cfg)
        with patch("dhcp2static.ssh.ssh_client.U.run_cmd", return_value=_cp(rc=1, stderr="No such file")) as run:
            res = client.run(["cat", "/nope"], check=False)
        assert run.call_count == 1
        assert res.rc == 1

    def test_timeout_propagates_after_retries(self, logger):
        cfg = SSHConfig(host="web01", retries=1, retry_sleep=0)
        client = SSHClient(logger, cfg)
        exc = subprocess.TimeoutExpired(cmd=["ssh"], timeout=1)
        with patch("dhcp2static.ssh.ssh_client.U.run_cmd", side_effect=exc) as run:
            with pytest.raises(subprocess.TimeoutExpired):
                client.run(["true"], timeout=1)
        assert run.call_count == 2

    def test_per_call_retries_override(self, logger):
        client = SSHClient(logger, SSHConfig(host="web01", retries=3, retry_sleep=0))
        with patch("dhcp2static.ssh.ssh_client.U.run_cmd", return_value=_cp(rc=255, stderr="broken pipe")) as run:
            res = client.run(["netplan", "apply"], check=False, retries=0)
        assert run.call_count == 1
        assert res.rc == 255

    def test_script_uses_positional_args(self):
        assert SSHClient.script('cat "$1"', "/etc/x") == ["sh", "-c", 'cat "$1"', "sh", "/etc/x"]
