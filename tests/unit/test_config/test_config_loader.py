# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import argparse

import pytest

from dhcp2static.config.config_loader import Config, _deep_merge
from dhcp2static.core.exceptions import Fatal


@pytest.mark.unit
class TestLoad:
    def test_yaml_keys_normalized(self, tmp_path, logger):
        p = tmp_path / "site.yaml"
        p.write_text("fallback-dns: 9.9.9.9\nhosts: [web01]\nnetplan_dir: /srv/netplan\n")
        assert Config.load_file(logger, p) == {
            "fallback_dns": "9.9.9.9",
            "host": ["web01"],
            "config_dir": "/srv/netplan",
        }

    def test_json(self, tmp_path, logger):
        p = tmp_path / "site.json"
        p.write_text('{"dry_run": true}')
        assert Config.load_file(logger, p) == {"dry_run": True}

    def test_empty_file(self, tmp_path, logger):
        p = tmp_path / "empty.yaml"
        p.write_text("")
        assert Config.load_file(logger, p) == {}

    @pytest.mark.parametrize("text", ["- a\n- b\n", "key: [\n"])
    def test_invalid(self, tmp_path, logger, text):
        p = tmp_path / "bad.yaml"
        p.write_text(text)
        with pytest.raises(Fatal):
            Config.load_file(logger, p)

    def test_merge_order(self, tmp_path, logger):
        a = tmp_path / "10-base.yaml"
        b = tmp_path / "20-site.yaml"
        a.write_text("timeout: 60\nfacts:\n  web01: {interface: eth0}\n  web02: {interface: ens3}\n")
        b.write_text("timeout: 30\nfacts:\n  web01: {gateway: 10.0.0.1}\n")
        merged = Config.load_many(logger, Config.expand_configs(logger, [str(tmp_path)]))
        assert merged["timeout"] == 30
        assert merged["facts"]["web01"] == {"interface": "eth0", "gateway": "10.0.0.1"}
        assert merged["facts"]["web02"] == {"interface": "ens3"}

    def test_lists_are_replaced(self):
        assert _deep_merge({"dns": ["1.1.1.1"]}, {"dns": ["9.9.9.9"]}) == {"dns": ["9.9.9.9"]}


@pytest.mark.unit
class TestExpand:
    def test_glob(self, tmp_path, logger):
        (tmp_path / "a.yaml").write_text("{}")
        (tmp_path / "b.yml").write_text("{}")
        (tmp_path / "notes.txt").write_text("")
        paths = Config.expand_configs(logger, [str(tmp_path / "*.y*ml")])
        assert [p.name for p in paths] == ["a.yaml", "b.yml"]

    def test_missing(self, tmp_path, logger):
        with pytest.raises(Fatal):
            Config.expand_configs(logger, [str(tmp_path / "absent.yaml")])
        with pytest.raises(Fatal):
            Config.expand_configs(logger, [str(tmp_path / "*.nothing")])


@pytest.mark.unit
class TestApplyAsDefaults:
    def _parser(self):
        p = argparse.ArgumentParser()
        p.add_argument("--timeout", type=float, default=120.0)
        p.add_argument("--host", action="append", default=None)
        p.add_argument("--dry-run", action="store_true")
        return p

    def test_config_becomes_default_cli_wins(self, logger):
        p = self._parser()
        Config.apply_as_defaults(logger, p, {"timeout": 30, "dry_run": True})
        assert p.parse_args([]).timeout == 30
        assert p.parse_args([]).dry_run is True
        assert p.parse_args(["--timeout", "5"]).timeout == 5.0

    def test_append_actions_skipped(self, logger):
        p = self._parser()
        Config.apply_as_defaults(logger, p, {"host": ["web01"]})
        assert p.parse_args(["--host", "web02"]).host == ["web02"]

    def test_unknown_keys_warn(self, logger, caplog):
        p = self._parser()
        with caplog.at_level("WARNING", logger="tests.dhcp2static"):
            Config.apply_as_defaults(logger, p, {"bogus": 1, "facts": {}})
        messages = [r.getMessage() for r in caplog.records]
        assert "Ignoring unknown config key: bogus" in messages
        assert not any("facts" in m for m in messages)
