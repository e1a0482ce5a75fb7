# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/services/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Services Package.
Exposes the remote-facing services:
- Remote transcoder (JSON-RPC over HTTP)
- Connection state tracker
- Logging setup
"""

from cellium_mcp.services.connection_service import ConnectionTracker
from cellium_mcp.services.logging_service import LoggingService
from cellium_mcp.services.remote_client import RemoteClient

__all__ = [
    "RemoteClient",
    "ConnectionTracker",
    "LoggingService",
]
