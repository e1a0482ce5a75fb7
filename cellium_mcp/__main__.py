# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/__main__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Allow ``python -m cellium_mcp``.
"""

# Standard
import sys

# First-Party
from cellium_mcp.cli import main

if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
