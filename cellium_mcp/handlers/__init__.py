# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/handlers/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Local request handling: the protocol adapter and the error boundary that
wraps every forwarded handler.
"""

# First-Party
from cellium_mcp.handlers.error_boundary import ErrorBoundary, fallback_for
from cellium_mcp.handlers.protocol import LocalProtocolAdapter

__all__ = ["ErrorBoundary", "LocalProtocolAdapter", "fallback_for"]
