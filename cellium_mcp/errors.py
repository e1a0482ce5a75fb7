# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/errors.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Error taxonomy for the client.

Remote failures are reported as :class:`RemoteCallError` tagged with a
:class:`RemoteErrorKind`. Local-side failures have their own classes.
"""

# Standard
from enum import Enum
from typing import Optional


class RemoteErrorKind(str, Enum):
    """Kinds of remote call failure.

    Attributes:
        CONNECTION_UNAVAILABLE: Liveness check or network transport failed.
        HTTP_STATUS: Remote answered with a non-2xx status.
        PROTOCOL_ERROR: Remote answered with a JSON-RPC error object.
        MALFORMED_RESPONSE: Remote answered 2xx with an unusable body.
    """

    CONNECTION_UNAVAILABLE = "connection_unavailable"
    HTTP_STATUS = "http_status"
    PROTOCOL_ERROR = "protocol_error"
    MALFORMED_RESPONSE = "malformed_response"


class RemoteCallError(Exception):
    """A call to the remote Cellium server failed.

    Attributes:
        kind (RemoteErrorKind): what went wrong.
        message (str): human readable description.
        status_code (Optional[int]): HTTP status for ``HTTP_STATUS`` failures.
        code (Optional[int]): JSON-RPC error code for ``PROTOCOL_ERROR`` failures.

    Examples:
        >>> err = RemoteCallError(RemoteErrorKind.PROTOCOL_ERROR, "Remote server error: boom", code=-32000)
        >>> str(err)
        'Remote server error: boom'
        >>> err.kind.value
        'protocol_error'
    """

    def __init__(self, kind: RemoteErrorKind, message: str, status_code: Optional[int] = None, code: Optional[int] = None):
        """Initialize a remote call error.

        Args:
            kind: Failure category.
            message: Human readable description.
            status_code: HTTP status, when relevant.
            code: JSON-RPC error code, when relevant.
        """
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class ReconnectExhaustedError(Exception):
    """All reconnect attempts to the remote server failed."""

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None):
        """Initialize the exhaustion error.

        Args:
            attempts: Number of scheduled retries that were made.
            last_error: The failure of the final attempt.
        """
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Failed to connect to remote server after {attempts} retries: {last_error}")


class TransportClosedError(Exception):
    """The local stdio channel has ended."""


class RequestParseError(Exception):
    """An inbound request did not match its method's parameter shape.

    Attributes:
        method (str): the method that failed to parse.
    """

    def __init__(self, method: str, message: str):
        """Initialize a parse error.

        Args:
            method: The inbound method name.
            message: Validation details.
        """
        self.method = method
        self.message = message
        super().__init__(f"Invalid params for {method}: {message}")
