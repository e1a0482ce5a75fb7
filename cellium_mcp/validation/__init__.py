# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/validation/__init__.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Validation Package.
Provides JSON-RPC request validation and response envelope helpers.
"""

from cellium_mcp.validation.jsonrpc import JSONRPCError, make_error, make_result, validate_request

__all__ = ["validate_request", "make_error", "make_result", "JSONRPCError"]
