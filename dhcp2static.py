#!/usr/bin/env python3
# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
from __future__ import annotations

from dhcp2static.__main__ import main

if __name__ == "__main__":
    main()
