# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Cellium MCP Client - a stdio MCP server that proxies every call to a remote
Cellium processor over JSON-RPC/HTTP.
"""

__author__ = "Cellium contributors"
__copyright__ = "Copyright 2025"
__license__ = "Apache 2.0"
__version__ = "1.1.1"
__description__ = "MCP client for connecting to a remote Cellium processor server"
__packages__ = ["cellium_mcp"]

# Export main components for easier imports
__all__ = [
    "__version__",
    "__author__",
    "__license__",
    "client",
    "cli",
]
