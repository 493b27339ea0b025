# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import pytest

from dhcp2static.transition.schema import check_text

GOOD = """\
network:
  version: 2
  ethernets:
    eth0:
      dhcp4: false
      addresses:
        - 10.0.0.5/24
        - "fd00::5/64": {lifetime: 0}
      routes:
        - to: default
          via: 10.0.0.1
      nameservers:
        addresses: [1.1.1.1]
"""

LEGACY = """\
network:
  version: 2
  ethernets:
    eth0:
      address: 10.0.0.5
      netmask: 255.255.255.0
"""


@pytest.mark.unit
def test_good_document():
    assert check_text(GOOD) == []


@pytest.mark.unit
def test_dhcp_only_document():
    assert check_text("network:\n  version: 2\n  ethernets:\n    eth0:\n      dhcp4: true\n") == []


@pytest.mark.unit
def test_legacy_keys():
    problems = check_text(LEGACY)
    assert len(problems) == 2
    assert all("legacy key" in p for p in problems)


@pytest.mark.unit
@pytest.mark.parametrize(
    "text, fragment",
    [
        ("", "empty"),
        ("- a\n- b\n", "not a mapping"),
        ("foo: bar\n", "network"),
        ("network:\n  version: 1\n", "version"),
        ("network:\n  ethernets: [eth0]\n", "ethernets"),
        ("network:\n  ethernets:\n    eth0: yes\n", "stanza"),
        ("network:\n  ethernets:\n    eth0:\n      addresses: 10.0.0.5/24\n", "must be a list"),
        ("network:\n  ethernets:\n    eth0:\n      addresses: [10.0.0.5]\n", "address/prefix"),
        ("network:\n  ethernets:\n    eth0:\n      addresses: [10.0.0.500/24]\n", "invalid"),
        ("network:\n  ethernets:\n    eth0:\n      nameservers: [1.1.1.1]\n", "nameservers"),
        ("network:\n  ethernets:\n    eth0:\n      routes: {to: default}\n", "routes"),
        ("network: [\n", "invalid YAML"),
    ],
)
def test_problems(text, fragment):
    problems = check_text(text)
    assert problems
    assert any(fragment in p for p in problems), problems
