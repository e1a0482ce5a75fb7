# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/config.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Cellium MCP Client Configuration.
This module defines configuration settings for the client using Pydantic.
It loads configuration from environment variables with sensible defaults.
Instances are frozen: the configuration record never changes once built.

Environment variables:
- CELLIUM_MCP_TOKEN: Authentication token, format ``user:<name>:<hex>`` (required)
- CELLIUM_MCP_ENDPOINT: Remote endpoint URL (default: "http://localhost:3000/mcp")
- CELLIUM_MCP_RETRY_ATTEMPTS: Reconnect attempts on startup failure (default: 3)
- CELLIUM_MCP_RETRY_DELAY: Delay between reconnect attempts in ms (default: 1000)
- CELLIUM_MCP_LOG_LEVEL: Logging level, or OFF to disable (default: "INFO")
- CELLIUM_MCP_CONNECT_TIMEOUT: HTTP connect timeout in seconds (default: 15)
- CELLIUM_MCP_RESPONSE_TIMEOUT: HTTP read/write timeout in seconds (default: 60)
- CELLIUM_MCP_KEEPALIVE_INTERVAL: Keep-alive tick in seconds (default: 60)
- CELLIUM_MCP_STALE_REQUEST_THRESHOLD: Age in seconds after which an in-flight
  request is reported as stale (default: 30)

Examples:
    >>> from cellium_mcp.config import Settings
    >>> s = Settings(token="user:alice:abc123", endpoint="http://cellium.local/sse")
    >>> s.rpc_endpoint
    'http://cellium.local/mcp'
    >>> s.retry_delay_seconds
    1.0
    >>> s.validate_token()  # no error
    >>> try:
    ...     Settings(token="nope").validate_token()
    ... except ValueError:
    ...     print('error')
    error
"""

# Standard
import re
from urllib.parse import urlparse, urlunparse

# Third-Party
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# First-Party
from cellium_mcp import __version__

TOKEN_PATTERN = re.compile(r"^user:[^:]+:[a-f0-9]+$")


def convert_url(url: str) -> str:
    """Rewrite an event-stream endpoint to the plain JSON-RPC endpoint.

    Only a path ending in ``/sse`` is rewritten, to ``/mcp``. The query
    string is kept and anything else is left as is.

    Args:
        url: The configured endpoint URL.

    Returns:
        str: The URL requests are POSTed to.

    Examples:
        >>> convert_url("http://localhost:3000/sse")
        'http://localhost:3000/mcp'
        >>> convert_url("http://localhost:3000/mcp")
        'http://localhost:3000/mcp'
        >>> convert_url("https://cellium.example.com/api/sse?x=1")
        'https://cellium.example.com/api/mcp?x=1'
        >>> convert_url("https://cellium.example.com/sse/events")
        'https://cellium.example.com/sse/events'
    """
    parsed = urlparse(url)
    if parsed.path.endswith("/sse"):
        return urlunparse(parsed._replace(path=parsed.path[: -len("/sse")] + "/mcp"))
    return url


class Settings(BaseSettings):
    """
    Cellium MCP Client configuration settings.

    Examples:
        >>> s = Settings(token="user:bob:deadbeef")
        >>> s.endpoint
        'http://localhost:3000/mcp'
        >>> s.retry_attempts, s.retry_delay
        (3, 1000)
        >>> s.user_agent
        'cellium-mcp-client/1.1.1'
        >>> try:
        ...     s.retry_attempts = 5
        ... except Exception:
        ...     print('frozen')
        frozen
    """

    model_config = SettingsConfigDict(env_prefix="CELLIUM_MCP_", env_file=".env", env_file_encoding="utf-8", extra="ignore", frozen=True)

    # Remote connection
    token: str = ""
    endpoint: str = "http://localhost:3000/mcp"
    retry_attempts: int = Field(default=3, ge=0, description="Reconnect attempts before giving up")
    retry_delay: int = Field(default=1000, ge=0, description="Fixed delay between reconnect attempts (ms)")

    # HTTP timeouts (seconds)
    connect_timeout: float = Field(default=15.0, ge=0)
    response_timeout: float = Field(default=60.0, ge=0)

    # Local session
    log_level: str = "INFO"
    keepalive_interval: float = Field(default=60.0, gt=0, description="Keep-alive tick (seconds)")
    stale_request_threshold: float = Field(default=30.0, ge=0, description="Age after which an in-flight request is reported")

    # Identity
    client_name: str = "cellium-mcp-client"
    protocol_version: str = "2025-03-26"

    @field_validator("endpoint")
    @classmethod
    def _validate_endpoint(cls, v: str) -> str:
        """Require an absolute http(s) URL.

        Args:
            v: Endpoint value.

        Returns:
            str: The stripped endpoint.

        Raises:
            ValueError: If the value is not an http(s) URL.

        Examples:
            >>> Settings(endpoint=" https://x.io/mcp ").endpoint
            'https://x.io/mcp'
            >>> try:
            ...     Settings(endpoint="ftp://x.io")
            ... except ValueError:
            ...     print('error')
            error
        """
        v = v.strip()
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Endpoint must be an http(s) URL: {v!r}")
        return v

    @property
    def rpc_endpoint(self) -> str:
        """URL that JSON-RPC requests are POSTed to.

        Returns:
            str: The endpoint with ``/sse`` rewritten to ``/mcp``.
        """
        return convert_url(self.endpoint)

    @property
    def retry_delay_seconds(self) -> float:
        """Retry delay converted to seconds.

        Returns:
            float: ``retry_delay / 1000``.
        """
        return self.retry_delay / 1000.0

    @property
    def user_agent(self) -> str:
        """User-Agent header value sent to the remote server.

        Returns:
            str: ``<client_name>/<version>``.
        """
        return f"{self.client_name}/{__version__}"

    def validate_token(self) -> None:
        """
        Validate the authentication token.

        Raises:
            ValueError: If the token is missing or not ``user:<name>:<hex>``.

        Examples:
            >>> Settings(token="user:carol:0f0f").validate_token()
            >>> try:
            ...     Settings(token="").validate_token()
            ... except ValueError as e:
            ...     print(str(e).split('.')[0])
            Authentication token required
        """
        if not self.token:
            raise ValueError("Authentication token required. Use --token option or CELLIUM_MCP_TOKEN environment variable")
        if not TOKEN_PATTERN.match(self.token):
            raise ValueError("Invalid token format. Expected: user:username:hash")
