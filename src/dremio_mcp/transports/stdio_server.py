# Dremio MCP Lite
# File: transports/stdio_server.py
# Version: v2

"""STDIO entrypoint for the Dremio MCP Lite server.

This is the script behind the ``dremio-mcp`` console command.

It:

- loads a ``.env`` file if one is present,
- configures logging on stderr (stdout carries the MCP stream),
- refuses to start unless DREMIO_URL and DREMIO_PAT are set,
- creates a FastMCP server with the Dremio tools, and
- runs the built-in stdio transport.
"""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP

from .. import __version__
from ..config import DremioConfig
from ..errors import ConfigError
from ..tools import register_tools

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    log_level = os.getenv("DREMIO_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def build_server() -> FastMCP:
    mcp = FastMCP("dremio-mcp-lite")
    register_tools(mcp)
    return mcp


def main() -> None:
    """Synchronous entrypoint for console_scripts."""
    load_dotenv()
    _configure_logging()

    try:
        cfg = DremioConfig.from_env().require()
    except ConfigError as exc:
        logger.error("Error: %s", exc)
        sys.exit(1)

    logger.info(
        "Starting Dremio MCP Lite %s for %s (TLS verification %s)",
        __version__,
        cfg.base_url,
        "on" if cfg.verify_tls else "off",
    )

    mcp = build_server()

    # Let FastMCP handle stdio + event loop setup.
    mcp.run()


if __name__ == "__main__":
    main()
