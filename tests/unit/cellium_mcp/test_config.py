# -*- coding: utf-8 -*-
"""Location: ./tests/unit/cellium_mcp/test_config.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Unit tests for the configuration module.
"""

# Third-Party
from pydantic import ValidationError
import pytest

# First-Party
from cellium_mcp.config import convert_url, Settings


# --------------------------------------------------------------------------- #
# convert_url                                                                  #
# --------------------------------------------------------------------------- #
@pytest.mark.parametrize(
    "url,expected",
    [
        ("http://localhost:3000/sse", "http://localhost:3000/mcp"),
        ("https://cellium.example.com/sse", "https://cellium.example.com/mcp"),
        ("http://localhost:3000/mcp", "http://localhost:3000/mcp"),
        ("http://localhost:3000/api", "http://localhost:3000/api"),
        ("https://h.example.com/tenants/sse-lab/sse", "https://h.example.com/tenants/sse-lab/mcp"),
        ("https://h.example.com/sse/events", "https://h.example.com/sse/events"),
        ("https://h.example.com/a/sse?region=eu", "https://h.example.com/a/mcp?region=eu"),
        ("https://h.example.com/mcp?next=/sse", "https://h.example.com/mcp?next=/sse"),
    ],
)
def test_convert_url(url, expected):
    assert convert_url(url) == expected


# --------------------------------------------------------------------------- #
# Settings                                                                     #
# --------------------------------------------------------------------------- #
def test_defaults():
    s = Settings()
    assert s.endpoint == "http://localhost:3000/mcp"
    assert s.retry_attempts == 3
    assert s.retry_delay == 1000
    assert s.retry_delay_seconds == 1.0
    assert s.log_level == "INFO"
    assert s.protocol_version == "2025-03-26"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("CELLIUM_MCP_TOKEN", "user:env:abc")
    monkeypatch.setenv("CELLIUM_MCP_ENDPOINT", "https://remote.example/sse")
    monkeypatch.setenv("CELLIUM_MCP_RETRY_ATTEMPTS", "5")
    monkeypatch.setenv("CELLIUM_MCP_RETRY_DELAY", "250")

    s = Settings()
    assert s.token == "user:env:abc"
    assert s.rpc_endpoint == "https://remote.example/mcp"
    assert s.retry_attempts == 5
    assert s.retry_delay_seconds == 0.25


def test_dotenv_file(tmp_path):
    (tmp_path / ".env").write_text("CELLIUM_MCP_TOKEN=user:dot:ff\n")
    assert Settings().token == "user:dot:ff"


def test_settings_are_frozen():
    s = Settings(token="user:a:1")
    with pytest.raises(ValidationError):
        s.retry_attempts = 10


@pytest.mark.parametrize("field,value", [("retry_attempts", -1), ("retry_delay", -5), ("keepalive_interval", 0)])
def test_numeric_bounds(field, value):
    with pytest.raises(ValidationError):
        Settings(**{field: value})


@pytest.mark.parametrize("endpoint", ["ftp://host/mcp", "localhost:3000", "not a url"])
def test_endpoint_must_be_http(endpoint):
    with pytest.raises(ValidationError):
        Settings(endpoint=endpoint)


def test_user_agent():
    assert Settings().user_agent == "cellium-mcp-client/1.1.1"


# --------------------------------------------------------------------------- #
# Token validation                                                             #
# --------------------------------------------------------------------------- #
@pytest.mark.parametrize("token", ["user:alice:0123abcdef", "user:bob.smith@x:ff"])
def test_valid_tokens(token):
    Settings(token=token).validate_token()


def test_missing_token():
    with pytest.raises(ValueError, match="Authentication token required"):
        Settings().validate_token()


@pytest.mark.parametrize("token", ["alice:abc", "user:alice", "user:alice:XYZ", "user::abc", "admin:alice:abc"])
def test_malformed_token(token):
    with pytest.raises(ValueError, match="Invalid token format"):
        Settings(token=token).validate_token()
