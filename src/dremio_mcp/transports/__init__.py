"""Transports for the Dremio MCP Lite server."""
