# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/types.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

MCP Protocol Result Types.
Pydantic models for the result shapes this client produces locally: the
``initialize`` handshake and the fallback payloads returned when a remote
call fails. Results relayed from the remote server are passed through
untouched and never go through these models.

Every model dumps to its wire shape with :func:`to_wire`.
"""

# Standard
from typing import Any, Dict, List, Literal, Optional

# Third-Party
from pydantic import BaseModel, ConfigDict, Field


def to_wire(model: BaseModel) -> Dict[str, Any]:
    """Dump a result model to its JSON wire shape.

    Args:
        model: The result model.

    Returns:
        Dict[str, Any]: camelCase keys, ``None`` fields omitted.

    Examples:
        >>> to_wire(CallToolResult(content=[TextContent(text="hi")], is_error=True))
        {'content': [{'type': 'text', 'text': 'hi'}], 'isError': True}
    """
    return model.model_dump(mode="json", by_alias=True, exclude_none=True)


class WireModel(BaseModel):
    """Base for result models whose wire names are camelCase."""

    model_config = ConfigDict(populate_by_name=True)


# Base content types
class TextContent(WireModel):
    """Text content for messages.

    Attributes:
        type (Literal["text"]): The fixed content type identifier for text.
        text (str): The actual text message.
    """

    type: Literal["text"] = "text"
    text: str


class TextResourceContents(WireModel):
    """Text body of a resource.

    Attributes:
        uri (str): The resource URI, possibly empty when unknown.
        mime_type (Optional[str]): The MIME type of the text.
        text (str): The resource text.
    """

    uri: str = ""
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    text: str


class Implementation(WireModel):
    """MCP implementation information.

    Attributes:
        name (str): The name of the implementation.
        version (str): The version of the implementation.
    """

    name: str
    version: str


# Capability types
class ServerCapabilities(WireModel):
    """Capabilities that a server may support.

    Attributes:
        resources (Optional[Dict[str, Any]]): Capability for resource support.
        tools (Optional[Dict[str, Any]]): Capability for tool support.
    """

    tools: Optional[Dict[str, Any]] = None
    resources: Optional[Dict[str, Any]] = None


class InitializeResult(WireModel):
    """Server's response to the initialization request.

    Attributes:
        protocol_version (str): The protocol version used.
        capabilities (ServerCapabilities): The server's capabilities.
        server_info (Implementation): The server's implementation information.
    """

    protocol_version: str = Field(..., alias="protocolVersion")
    capabilities: ServerCapabilities
    server_info: Implementation = Field(..., alias="serverInfo")


# List results
class ListToolsResult(WireModel):
    """Result of ``tools/list``."""

    tools: List[Dict[str, Any]] = Field(default_factory=list)


class ListResourcesResult(WireModel):
    """Result of ``resources/list``."""

    resources: List[Dict[str, Any]] = Field(default_factory=list)


class CallToolResult(WireModel):
    """Result of a tool invocation.

    Attributes:
        content (List[TextContent]): Content items returned by the tool.
        is_error (Optional[bool]): Flag indicating if the tool call resulted in an error.
    """

    content: List[TextContent]
    is_error: Optional[bool] = Field(default=None, alias="isError")


class ReadResourceResult(WireModel):
    """Result of ``resources/read``."""

    contents: List[TextResourceContents]


class EmptyResult(WireModel):
    """Result of ``ping``: an empty object."""
