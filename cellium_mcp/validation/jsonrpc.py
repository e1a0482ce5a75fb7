# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/validation/jsonrpc.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

JSON-RPC Validation.
This module provides validation for inbound JSON-RPC 2.0 requests from the
local side, plus helpers that build response and error envelopes.
See https://www.jsonrpc.org/specification.

Examples:
    >>> from cellium_mcp.validation.jsonrpc import JSONRPCError, validate_request
    >>> error = JSONRPCError(-32600, "Invalid Request")
    >>> error.code
    -32600
    >>> validate_request({'jsonrpc': '2.0', 'method': 'ping', 'id': 1})
    >>> validate_request({'jsonrpc': '2.0', 'method': 'notifications/initialized'})
    >>> try:
    ...     validate_request({'method': 'ping'})  # missing jsonrpc
    ... except JSONRPCError as e:
    ...     e.code
    -32600
"""

# Standard
from typing import Any, Dict, Optional, Union

RequestId = Union[str, int, None]

# Standard JSON-RPC error codes
PARSE_ERROR = -32700  # Invalid JSON
INVALID_REQUEST = -32600  # Invalid Request object
METHOD_NOT_FOUND = -32601  # Method not found
INVALID_PARAMS = -32602  # Invalid method parameters
INTERNAL_ERROR = -32603  # Internal JSON-RPC error


class JSONRPCError(Exception):
    """JSON-RPC protocol error."""

    def __init__(
        self,
        code: int,
        message: str,
        data: Optional[Any] = None,
        request_id: RequestId = None,
    ):
        """Initialize JSON-RPC error.

        Args:
            code: Error code
            message: Error message
            data: Optional error data
            request_id: Optional request ID
        """
        self.code = code
        self.message = message
        self.data = data
        self.request_id = request_id
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to JSON-RPC error response dict.

        Returns:
            Error response dictionary

        Examples:
            >>> JSONRPCError(-32601, "Method not found", request_id=7).to_dict()
            {'jsonrpc': '2.0', 'id': 7, 'error': {'code': -32601, 'message': 'Method not found'}}
            >>> JSONRPCError(-32700, "Parse error", data="{bad").to_dict()
            {'jsonrpc': '2.0', 'id': None, 'error': {'code': -32700, 'message': 'Parse error', 'data': '{bad'}}
        """
        return make_error(self.message, code=self.code, data=self.data, request_id=self.request_id)


def make_error(message: str, code: int = INTERNAL_ERROR, data: Any = None, request_id: RequestId = None) -> Dict[str, Any]:
    """Construct a JSON-RPC error response.

    Args:
        message: Error message.
        code: JSON-RPC error code (default -32603).
        data: Optional extra error data.
        request_id: Id of the request being answered, ``None`` when unknown.

    Returns:
        dict: JSON-RPC error object.

    Examples:
        >>> make_error("Invalid input", code=-32600, request_id="a1")
        {'jsonrpc': '2.0', 'id': 'a1', 'error': {'code': -32600, 'message': 'Invalid input'}}
        >>> make_error("Oops", data={"info": 1})["error"]["data"]
        {'info': 1}
    """
    err: Dict[str, Any] = {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": {"code": code, "message": message},
    }
    if data is not None:
        err["error"]["data"] = data
    return err


def make_result(result: Any, request_id: RequestId) -> Dict[str, Any]:
    """Construct a JSON-RPC success response.

    Args:
        result: Method result.
        request_id: Id of the request being answered.

    Returns:
        dict: JSON-RPC response object.

    Examples:
        >>> make_result({}, 3)
        {'jsonrpc': '2.0', 'id': 3, 'result': {}}
    """
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def is_notification(message: Dict[str, Any]) -> bool:
    """Tell whether a request is a notification (carries no id).

    Args:
        message: Inbound message.

    Returns:
        bool: True if no response is expected.

    Examples:
        >>> is_notification({"jsonrpc": "2.0", "method": "notifications/initialized"})
        True
        >>> is_notification({"jsonrpc": "2.0", "method": "ping", "id": 0})
        False
    """
    return "id" not in message


def validate_request(request: Dict[str, Any]) -> None:
    """Validate JSON-RPC request.

    Args:
        request: Request dictionary to validate

    Raises:
        JSONRPCError: If request is invalid

    Examples:
        Valid request with params:
        >>> validate_request({"jsonrpc": "2.0", "method": "tools/call", "params": {"name": "x"}, "id": 1})

        Invalid version:
        >>> validate_request({"jsonrpc": "1.0", "method": "ping", "id": 1})  # doctest: +ELLIPSIS
        Traceback (most recent call last):
            ...
        cellium_mcp.validation.jsonrpc.JSONRPCError: Invalid JSON-RPC version

        Empty method:
        >>> validate_request({"jsonrpc": "2.0", "method": "", "id": 1})  # doctest: +ELLIPSIS
        Traceback (most recent call last):
            ...
        cellium_mcp.validation.jsonrpc.JSONRPCError: Invalid or missing method

        Invalid params type:
        >>> validate_request({"jsonrpc": "2.0", "method": "test", "params": "invalid", "id": 1})  # doctest: +ELLIPSIS
        Traceback (most recent call last):
            ...
        cellium_mcp.validation.jsonrpc.JSONRPCError: Invalid params type

        Invalid ID type:
        >>> validate_request({"jsonrpc": "2.0", "method": "test", "id": True})  # doctest: +ELLIPSIS
        Traceback (most recent call last):
            ...
        cellium_mcp.validation.jsonrpc.JSONRPCError: Invalid request ID type
    """
    if request.get("jsonrpc") != "2.0":
        raise JSONRPCError(INVALID_REQUEST, "Invalid JSON-RPC version", request_id=safe_id(request))

    method = request.get("method")
    if not isinstance(method, str) or not method:
        raise JSONRPCError(INVALID_REQUEST, "Invalid or missing method", request_id=safe_id(request))

    # Check ID for requests (not notifications)
    if "id" in request:
        request_id = request["id"]
        if not isinstance(request_id, (str, int)) or isinstance(request_id, bool):
            raise JSONRPCError(INVALID_REQUEST, "Invalid request ID type", request_id=None)

    params = request.get("params")
    if params is not None and not isinstance(params, (dict, list)):
        raise JSONRPCError(INVALID_REQUEST, "Invalid params type", request_id=safe_id(request))


def safe_id(message: Dict[str, Any]) -> RequestId:
    """Return the message id if it is usable in a response.

    Args:
        message: Inbound message.

    Returns:
        The id, or ``None`` when absent or of an invalid type.

    Examples:
        >>> safe_id({"id": "x"}), safe_id({"id": [1]}), safe_id({})
        ('x', None, None)
    """
    request_id = message.get("id")
    if isinstance(request_id, (str, int)) and not isinstance(request_id, bool):
        return request_id
    return None
