# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/cli/help_texts.py
from __future__ import annotations

# Pure help text used by the argparse epilog. Keep it copy/paste runnable.

YAML_EXAMPLE = r"""# dhcp2static configuration example (YAML)
#
# Run:
#   sudo dhcp2static --config fleet.yaml
#   dhcp2static --config base.yaml --config overrides.yaml --dry-run
#
# Later configs override earlier ones; CLI flags override both.
#
hosts:
  - localhost
  - admin@web01.example.net
  - admin@[2001:db8::10]:2222
dns: [1.1.1.1, 9.9.9.9]        # replaces discovered DNS
fallback_dns: 8.8.8.8           # always appended (de-duplicated)
config_dir: /etc/netplan
generated_name: 99-dhcp2static.yaml
timeout: 120                    # seconds, per external command
parallel: 4
report: ./dhcp2static-report.json
ssh_user: admin
ssh_identity: ~/.ssh/fleet_ed25519
sudo: true

# Skip discovery for a host and use these facts instead:
facts:
  web01.example.net:
    interface: ens3
    address: 10.0.0.5
    prefix: 24                  # or netmask: 255.255.255.0
    gateway: 10.0.0.1
    dns: [10.0.0.2]
"""

EXIT_CODES = r"""  0  applied (or dry-run finished cleanly)
  1  aborted before apply; configuration untouched apart from backups/quarantine
  2  apply failed; previous configuration restored and re-applied
  3  UNRECOVERABLE; restore or re-apply failed, operator action required
"""
