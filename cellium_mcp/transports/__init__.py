# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/transports/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Local Transport Package.
- stdio: newline-delimited JSON-RPC over standard input/output

Examples:
    >>> from cellium_mcp.transports import Transport, StdioTransport
    >>> issubclass(StdioTransport, Transport)
    True
"""

from cellium_mcp.transports.base import Transport
from cellium_mcp.transports.stdio_transport import StdioTransport

__all__ = ["Transport", "StdioTransport"]
