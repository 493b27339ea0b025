# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# dhcp2static/__init__.py
"""
dhcp2static - safe DHCP -> static netplan transitions

Moves a host's primary interface from DHCP to static addressing so that
any failure leaves the host on its previous, known-working configuration.

Usage as a library:

    from dhcp2static.host import LocalFileStore, LocalRunner, StaticFactProvider
    from dhcp2static.transition.orchestrator import TransitionOptions, TransitionOrchestrator

    runner = LocalRunner(logger)
    store = LocalFileStore("/etc/netplan", logger)
    facts = StaticFactProvider({"interface": "eth0", "address": "10.0.0.5", "prefix": 24, "gateway": "10.0.0.1"})
    result = TransitionOrchestrator("localhost", facts, store, runner, logger,
                                    TransitionOptions(dns=("1.1.1.1",))).run()
    raise SystemExit(result.exit_code)
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
