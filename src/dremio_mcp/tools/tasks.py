# Dremio MCP Lite
# File: tools/tasks.py
# Version: v2
#
# NOTE: This module is the single place where we define "business logic"
# that is exposed as MCP tools.  The stdio transport simply calls
# `register_tools(server)` to wire these up.

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from ..client import DremioClient
from ..config import DREMIO_RESULT_PAGE_CAP, DremioConfig
from ..errors import NotSelectQueryError, ValidationError
from ..sql import is_select_query

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers (shared client, argument checks, JSON output)
# ---------------------------------------------------------------------------


_CLIENT: DremioClient | None = None


async def _make_client() -> DremioClient:
    """Return the process-wide DremioClient, building it from the environment.

    The client is rebuilt when the environment-derived configuration
    changes; the previous one is closed first so its connection pool is
    released. Tests replace this function with an async factory returning
    a fake client.
    """
    global _CLIENT

    cfg = DremioConfig.from_env()
    if _CLIENT is not None and _CLIENT.config != cfg:
        logger.info("Dremio configuration changed; replacing the HTTP client")
        await _CLIENT.aclose()
        _CLIENT = None
    if _CLIENT is None:
        _CLIENT = DremioClient(config=cfg)
    return _CLIENT


def _require_text(name: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} is required")
    return value


def _require_nonempty(name: str, value: Any) -> str:
    # Whitespace is a legitimate search needle; only "" is rejected.
    if not isinstance(value, str) or value == "":
        raise ValidationError(f"{name} is required")
    return value


def _require_path(name: str, value: Any) -> List[str]:
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{name} is required and must be an array")
    return list(value)


def _to_json(payload: Any) -> str:
    return json.dumps(payload, indent=2, default=str)


# ---------------------------------------------------------------------------
# Core async tasks (library-style)
# ---------------------------------------------------------------------------


async def browse_catalog(path: Optional[List[str]] = None) -> Any:
    if path is not None:
        path = _require_path("path", path)

    client = await _make_client()
    return await client.get_catalog(path or None)


async def get_schema(table_path: List[str]) -> List[Dict[str, Any]]:
    table_path = _require_path("table_path", table_path)

    client = await _make_client()
    schema = await client.get_table_schema(table_path)
    return [f.to_dict() for f in schema]


async def run_query(sql: str, max_rows: int = DREMIO_RESULT_PAGE_CAP) -> Dict[str, Any]:
    sql = _require_text("sql", sql)
    if not is_select_query(sql):
        raise NotSelectQueryError("Only SELECT queries are allowed")

    client = await _make_client()
    result = await client.execute_query(sql, max_rows=max_rows)
    return result.to_dict()


async def preview_table(table_path: List[str]) -> Dict[str, Any]:
    table_path = _require_path("table_path", table_path)

    client = await _make_client()
    result = await client.preview_table(table_path)
    return result.to_dict()


async def search_catalog(search_term: str) -> List[Dict[str, Any]]:
    search_term = _require_nonempty("search_term", search_term)

    client = await _make_client()
    entities = await client.search_catalog(search_term)
    return [e.to_output() for e in entities]


async def explain_query(sql: str) -> str:
    sql = _require_text("sql", sql)

    client = await _make_client()
    result = await client.explain_query(sql)
    return result.text


# ---------------------------------------------------------------------------
# MCP tool registration
# ---------------------------------------------------------------------------


def register_tools(server: Any) -> None:
    """Register MCP tools on an MCP Server-like instance.

    Tools raise on failure; FastMCP turns the exception into an ``isError``
    tool result so the server keeps running.
    """
    if server is None or not hasattr(server, "tool"):
        raise ValueError(
            "register_tools(server) expects an MCP Server-like object that exposes a .tool() decorator."
        )

    @server.tool(
        name="catalog_browse",
        description=(
            "Browse Dremio catalog to list sources, spaces, folders, and tables. "
            "Optionally provide a path to browse a specific location."
        ),
    )
    async def mcp_catalog_browse(path: Optional[List[str]] = None) -> str:
        return _to_json(await browse_catalog(path=path))

    @server.tool(name="schema_get", description="Get the schema of a specific table in Dremio")
    async def mcp_schema_get(table_path: List[str]) -> str:
        return _to_json(await get_schema(table_path=table_path))

    @server.tool(
        name="sql_query",
        description=(
            f"Execute a SELECT query on Dremio. Returns up to {DREMIO_RESULT_PAGE_CAP} rows. "
            "Read-only queries only."
        ),
    )
    async def mcp_sql_query(sql: str, max_rows: int = DREMIO_RESULT_PAGE_CAP) -> str:
        return _to_json(await run_query(sql=sql, max_rows=max_rows))

    @server.tool(name="table_preview", description="Preview the first 10 rows of a table")
    async def mcp_table_preview(table_path: List[str]) -> str:
        return _to_json(await preview_table(table_path=table_path))

    @server.tool(
        name="search_catalog",
        description="Search for tables and datasets in the Dremio catalog by name",
    )
    async def mcp_search_catalog(search_term: str) -> str:
        return _to_json(await search_catalog(search_term=search_term))

    @server.tool(name="explain_query", description="Get the execution plan for a SQL query")
    async def mcp_explain_query(sql: str) -> str:
        return await explain_query(sql=sql)

    logger.debug("Registered Dremio MCP tools")
