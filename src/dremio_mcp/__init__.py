# Dremio MCP Lite
# File: __init__.py
# Version: v1

"""Top-level package for the Dremio MCP Lite server."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

__all__ = ["__version__"]


def _resolve_version() -> str:
    """Resolve installed distribution version.

    Falls back to the source version when running from a checkout without
    installed package metadata.
    """
    try:
        return version("dremio-mcp-lite")
    except PackageNotFoundError:
        return "1.0.0"


__version__ = _resolve_version()
