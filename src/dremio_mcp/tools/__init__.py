# Dremio MCP Lite
# File: tools/__init__.py
# Version: v1

"""MCP tool definitions for the Dremio MCP Lite server."""

from __future__ import annotations

from .tasks import register_tools

__all__ = ["register_tools"]
