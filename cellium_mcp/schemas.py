# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/schemas.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Request and envelope schemas.

Inbound local requests are parsed once, up front, into one typed model per
method (a union discriminated on ``method``); handlers then work with the
typed value. Outbound and remote envelopes are modelled here as well.

Examples:
    >>> req = parse_local_request({"jsonrpc": "2.0", "id": 1, "method": "tools/call", "params": {"name": "echo"}})
    >>> type(req).__name__, req.params.name
    ('CallToolRequest', 'echo')
    >>> try:
    ...     parse_local_request({"jsonrpc": "2.0", "id": 2, "method": "resources/read", "params": {}})
    ... except RequestParseError as e:
    ...     e.method
    'resources/read'
"""

# Standard
from typing import Annotated, Any, Dict, Literal, Optional, Union

# Third-Party
from pydantic import BaseModel, ConfigDict, Field, model_validator, TypeAdapter, ValidationError

# First-Party
from cellium_mcp.errors import RequestParseError


class ParamsModel(BaseModel):
    """Base for inbound params; unknown keys (e.g. ``_meta``) are kept."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_params(self) -> Dict[str, Any]:
        """Dump params back to their wire shape for forwarding.

        Returns:
            Dict[str, Any]: Wire-named params with unset optionals dropped.
        """
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------------------------------------------------------------------------
# Inbound (local) requests
# ---------------------------------------------------------------------------
class InitializeParams(ParamsModel):
    """Params of ``initialize``; every field is optional for lenient negotiation."""

    protocol_version: Optional[str] = Field(default=None, alias="protocolVersion")
    capabilities: Dict[str, Any] = Field(default_factory=dict)
    client_info: Optional[Dict[str, Any]] = Field(default=None, alias="clientInfo")


class CallToolParams(ParamsModel):
    """Params of ``tools/call``."""

    name: str
    arguments: Optional[Dict[str, Any]] = None


class ReadResourceParams(ParamsModel):
    """Params of ``resources/read``."""

    uri: str


class EmptyParams(ParamsModel):
    """Params of methods that take none (pagination cursors pass through)."""


class InitializeRequest(BaseModel):
    """``initialize`` request."""

    method: Literal["initialize"]
    params: InitializeParams = Field(default_factory=InitializeParams)


class ListToolsRequest(BaseModel):
    """``tools/list`` request."""

    method: Literal["tools/list"]
    params: EmptyParams = Field(default_factory=EmptyParams)


class CallToolRequest(BaseModel):
    """``tools/call`` request."""

    method: Literal["tools/call"]
    params: CallToolParams


class ListResourcesRequest(BaseModel):
    """``resources/list`` request."""

    method: Literal["resources/list"]
    params: EmptyParams = Field(default_factory=EmptyParams)


class ReadResourceRequest(BaseModel):
    """``resources/read`` request."""

    method: Literal["resources/read"]
    params: ReadResourceParams


class PingRequest(BaseModel):
    """``ping`` request."""

    method: Literal["ping"]
    params: EmptyParams = Field(default_factory=EmptyParams)


class InitializedNotification(BaseModel):
    """``notifications/initialized`` one-way notification."""

    method: Literal["notifications/initialized"]
    params: EmptyParams = Field(default_factory=EmptyParams)


LocalRequest = Annotated[
    Union[
        InitializeRequest,
        ListToolsRequest,
        CallToolRequest,
        ListResourcesRequest,
        ReadResourceRequest,
        PingRequest,
        InitializedNotification,
    ],
    Field(discriminator="method"),
]

_local_request_adapter: TypeAdapter = TypeAdapter(LocalRequest)

SUPPORTED_METHODS = frozenset(
    {
        "initialize",
        "tools/list",
        "tools/call",
        "resources/list",
        "resources/read",
        "ping",
        "notifications/initialized",
    }
)


def parse_local_request(message: Dict[str, Any]) -> Any:
    """Parse an envelope-valid inbound message into its typed request model.

    Args:
        message: Inbound JSON-RPC message with a supported ``method``.

    Returns:
        One of the request models of :data:`LocalRequest`.

    Raises:
        RequestParseError: If the params do not match the method's shape.

    Examples:
        >>> parse_local_request({"jsonrpc": "2.0", "id": 1, "method": "ping"}).params.to_params()
        {}
        >>> parse_local_request({"jsonrpc": "2.0", "id": 1, "method": "resources/read", "params": {"uri": "file:///a"}}).params.uri
        'file:///a'
    """
    method = message.get("method", "")
    params = message.get("params")
    try:
        return _local_request_adapter.validate_python({"method": method, "params": params if params is not None else {}})
    except ValidationError as e:
        details = "; ".join(f"{'.'.join(str(p) for p in err['loc'][1:]) or 'params'}: {err['msg']}" for err in e.errors())
        raise RequestParseError(method, details) from e


# ---------------------------------------------------------------------------
# Remote envelopes
# ---------------------------------------------------------------------------
class RemoteEnvelope(BaseModel):
    """Outbound JSON-RPC request sent to the remote server.

    Examples:
        >>> RemoteEnvelope(id="abc", method="ping").model_dump()
        {'jsonrpc': '2.0', 'id': 'abc', 'method': 'ping', 'params': {}}
    """

    jsonrpc: Literal["2.0"] = "2.0"
    id: str
    method: str
    params: Dict[str, Any] = Field(default_factory=dict)


class RemoteErrorObject(BaseModel):
    """JSON-RPC error object returned by the remote server."""

    model_config = ConfigDict(extra="allow")

    code: int
    message: str
    data: Optional[Any] = None


class RemoteResponse(BaseModel):
    """JSON-RPC response body returned by the remote server.

    Exactly one of ``result`` and ``error`` is present. ``jsonrpc`` and
    ``id`` are tolerated when missing.

    Examples:
        >>> RemoteResponse.model_validate({"result": {"tools": []}}).result
        {'tools': []}
        >>> RemoteResponse.model_validate({"jsonrpc": "2.0", "id": "1", "error": {"code": -1, "message": "x"}}).error.message
        'x'
        >>> try:
        ...     RemoteResponse.model_validate({"jsonrpc": "2.0", "id": "1"})
        ... except ValidationError:
        ...     print('malformed')
        malformed
    """

    model_config = ConfigDict(extra="ignore")

    jsonrpc: Optional[str] = None
    id: Optional[Union[str, int]] = None
    result: Any = None
    error: Optional[RemoteErrorObject] = None

    @model_validator(mode="after")
    def _result_xor_error(self) -> "RemoteResponse":
        """Enforce that exactly one of result and error is present.

        Returns:
            RemoteResponse: self

        Raises:
            ValueError: If both or neither are present.
        """
        has_result = "result" in self.model_fields_set and self.result is not None
        has_error = self.error is not None
        if has_result and has_error:
            raise ValueError("Response cannot contain both result and error")
        if not has_error and "result" not in self.model_fields_set:
            raise ValueError("Response must contain either result or error")
        return self
