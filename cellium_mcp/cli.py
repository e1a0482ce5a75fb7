# -*- coding: utf-8 -*-
"""Location: ./cellium_mcp/cli.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
Authors: Cellium contributors

Cellium MCP Client command line.

Starts a stdio MCP server that forwards every call to a remote Cellium
processor. Configuration comes from flags, then ``CELLIUM_MCP_*``
environment variables (or a ``.env`` file), then defaults.

Usage:
    cellium-mcp-client --token user:alice:0123abcd --endpoint https://cellium.example.com/sse

Exit status:
    0  local host closed the session, or SIGINT/SIGTERM was received
    1  bad configuration, or the remote server stayed unreachable
"""

# Standard
import argparse
import asyncio
from contextlib import suppress
import logging
import signal
import sys
from typing import Any, Callable, Dict, List, Optional

# Third-Party
from pydantic import ValidationError

# First-Party
from cellium_mcp import __version__
from cellium_mcp.client import CelliumClient
from cellium_mcp.config import Settings
from cellium_mcp.errors import ReconnectExhaustedError
from cellium_mcp.services.logging_service import LoggingService

logger = logging.getLogger("cellium_mcp.cli")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line flags.

    Unset flags stay ``None`` so that environment values apply.

    Args:
        argv: Arguments, ``sys.argv[1:]`` when omitted.

    Returns:
        argparse.Namespace: Parsed flags.

    Examples:
        >>> args = parse_args(["-t", "user:a:1f", "-r", "5", "--retry-delay", "250", "-v"])
        >>> args.token, args.retry_attempts, args.retry_delay, args.verbose
        ('user:a:1f', 5, 250, True)
        >>> parse_args([]).endpoint is None
        True
    """
    parser = argparse.ArgumentParser(prog="cellium-mcp-client", description="MCP client for connecting to a remote Cellium processor server")
    parser.add_argument("-t", "--token", default=None, help="Authentication token (env: CELLIUM_MCP_TOKEN)")
    parser.add_argument("-e", "--endpoint", default=None, help="Remote server endpoint URL (env: CELLIUM_MCP_ENDPOINT)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("-r", "--retry-attempts", type=int, default=None, help="Reconnect attempts on startup failure (default: 3)")
    parser.add_argument("--retry-delay", type=int, default=None, help="Delay between reconnect attempts in ms (default: 1000)")
    parser.add_argument("--log-level", default=None, help="Log level, or OFF to disable (env: CELLIUM_MCP_LOG_LEVEL)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    """Merge flags over environment configuration.

    Args:
        args: Parsed flags.

    Returns:
        Settings: Frozen configuration.

    Raises:
        ValidationError: If a value is out of range or malformed.

    Examples:
        >>> s = build_settings(parse_args(["--token", "user:a:1f", "--endpoint", "http://h/sse"]))
        >>> s.token, s.rpc_endpoint
        ('user:a:1f', 'http://h/mcp')
    """
    overrides: Dict[str, Any] = {
        "token": args.token,
        "endpoint": args.endpoint,
        "retry_attempts": args.retry_attempts,
        "retry_delay": args.retry_delay,
        "log_level": args.log_level,
    }
    return Settings(**{key: value for key, value in overrides.items() if value is not None})


def _install_signal_handlers(loop: asyncio.AbstractEventLoop, callback: Callable[[], None]) -> None:
    """Install SIGINT/SIGTERM handlers that trigger graceful shutdown.

    Args:
        loop: The asyncio event loop to attach handlers to.
        callback: Called when a signal arrives.

    Examples:
        >>> import asyncio
        >>> loop = asyncio.new_event_loop()
        >>> _install_signal_handlers(loop, lambda: None)  # doctest: +ELLIPSIS
        >>> loop.close()
    """
    for sig in (getattr(signal, "SIGINT", None), getattr(signal, "SIGTERM", None)):
        if sig is None:
            continue
        with suppress(NotImplementedError):
            loop.add_signal_handler(sig, callback)


async def main_async(settings: Settings, verbose: bool = False, client: Optional[CelliumClient] = None, logging_service: Optional[LoggingService] = None) -> int:
    """Run one client session.

    Args:
        settings: Client configuration.
        verbose: Force debug logging.
        client: Session to run; built from ``settings`` when omitted.
        logging_service: Logging setup; a stderr one is created when omitted.

    Returns:
        int: Process exit status.
    """
    logging_service = logging_service or LoggingService()
    await logging_service.initialize(settings.log_level, verbose=verbose)

    try:
        settings.validate_token()
    except ValueError as e:
        logger.error(str(e))
        await logging_service.shutdown()
        return 1

    client = client or CelliumClient(settings)
    stop = asyncio.Event()
    _install_signal_handlers(asyncio.get_running_loop(), stop.set)

    logger.info(f"Starting Cellium MCP client v{__version__}")
    try:
        await client.connect()
        serve_task = asyncio.create_task(client.serve())
        stop_task = asyncio.create_task(stop.wait())
        done, _ = await asyncio.wait({serve_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        if serve_task in done:
            stop_task.cancel()
            serve_task.result()
        else:
            logger.info("Received shutdown signal")
            serve_task.cancel()
            with suppress(asyncio.CancelledError):
                await serve_task
        return 0
    except ReconnectExhaustedError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1
    finally:
        await client.disconnect()
        logger.info("Shutdown complete.")
        await logging_service.shutdown()


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the ``cellium-mcp-client`` command.

    Args:
        argv: Arguments, ``sys.argv[1:]`` when omitted.

    Returns:
        int: Process exit status.
    """
    args = parse_args(argv)
    try:
        settings = build_settings(args)
    except ValidationError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1
    return asyncio.run(main_async(settings, verbose=args.verbose))


if __name__ == "__main__":
    sys.exit(main())
