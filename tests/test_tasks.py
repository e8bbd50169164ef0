# Dremio MCP Lite
# File: tests/test_tasks.py
# Version: v2

"""Tests for the MCP tool layer in tools.tasks.

These tests patch `_make_client` so that we never talk to a real Dremio
coordinator. All behaviour is verified against simple fake clients.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List

import pytest

from dremio_mcp.client import DremioClient
from dremio_mcp.errors import NotSelectQueryError, QueryTimeoutError, ValidationError
from dremio_mcp.models import CatalogEntity, ExplainResult, QueryResult, SchemaField
from dremio_mcp.tools import tasks


class DummyServer:
    """Minimal duck-typed MCP server that records registered tools."""

    def __init__(self) -> None:
        self.tools: Dict[str, Any] = {}

    def tool(self, *args, **kwargs):
        def decorator(fn):
            self.tools[kwargs["name"]] = fn
            return fn

        return decorator


class _FakeClient:
    """Fake client recording calls and returning canned results."""

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []

    async def get_catalog(self, path=None):
        self.calls.append({"op": "get_catalog", "path": path})
        return {"id": "c1", "path": path or [], "children": []}

    async def get_table_schema(self, table_path):
        self.calls.append({"op": "get_table_schema", "table_path": table_path})
        return [SchemaField("id", "INTEGER"), SchemaField("name", "VARCHAR")]

    async def execute_query(self, sql, max_rows=500):
        self.calls.append({"op": "execute_query", "sql": sql, "max_rows": max_rows})
        return QueryResult(
            row_count=1,
            schema=[SchemaField("one", "INTEGER")],
            rows=[{"one": 1}],
        )

    async def preview_table(self, table_path):
        self.calls.append({"op": "preview_table", "table_path": table_path})
        return QueryResult(row_count=1, schema=[SchemaField("x", "VARCHAR")], rows=[{"x": "a"}])

    async def search_catalog(self, search_term):
        self.calls.append({"op": "search_catalog", "search_term": search_term})
        return [
            CatalogEntity(
                id="d1",
                path=["Samples", "taxi"],
                tag="t",
                type="DATASET",
                raw={
                    "id": "d1",
                    "path": ["Samples", "taxi"],
                    "tag": "t",
                    "type": "DATASET",
                    "datasetType": "PROMOTED",
                    "createdAt": "2024-01-01T00:00:00Z",
                },
            ),
            CatalogEntity(id="d2", path=["Samples", "taxi_zones"], tag="u", type="DATASET"),
        ]

    async def explain_query(self, sql):
        self.calls.append({"op": "explain_query", "sql": sql})
        return ExplainResult(text="00-00 Screen\n00-01 Project")


async def _no_client():
    raise AssertionError("the client must not be created for invalid input")


@pytest.fixture
def fake_client(monkeypatch) -> _FakeClient:
    client = _FakeClient()
    async def _factory():
        return client

    monkeypatch.setattr(tasks, "_make_client", _factory)
    return client


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def test_register_tools_exposes_six_tools() -> None:
    server = DummyServer()
    tasks.register_tools(server)

    assert set(server.tools) == {
        "catalog_browse",
        "schema_get",
        "sql_query",
        "table_preview",
        "search_catalog",
        "explain_query",
    }


def test_register_tools_rejects_non_server() -> None:
    with pytest.raises(ValueError):
        tasks.register_tools(object())


# ---------------------------------------------------------------------------
# Tool outputs
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_sql_query_tool_returns_json(fake_client) -> None:
    server = DummyServer()
    tasks.register_tools(server)

    out = await server.tools["sql_query"](sql="SELECT 1 AS one", max_rows=20)

    assert json.loads(out) == {
        "rowCount": 1,
        "schema": [{"name": "one", "type": "INTEGER"}],
        "rows": [{"one": 1}],
    }
    assert fake_client.calls == [{"op": "execute_query", "sql": "SELECT 1 AS one", "max_rows": 20}]


@pytest.mark.asyncio
async def test_schema_and_preview_tools(fake_client) -> None:
    server = DummyServer()
    tasks.register_tools(server)

    schema = json.loads(await server.tools["schema_get"](table_path=["s", "t"]))
    preview = json.loads(await server.tools["table_preview"](table_path=["s", "t"]))

    assert schema == [{"name": "id", "type": "INTEGER"}, {"name": "name", "type": "VARCHAR"}]
    assert preview["rows"] == [{"x": "a"}]
    assert [c["op"] for c in fake_client.calls] == ["get_table_schema", "preview_table"]


@pytest.mark.asyncio
async def test_catalog_browse_tool(fake_client) -> None:
    server = DummyServer()
    tasks.register_tools(server)

    root = json.loads(await server.tools["catalog_browse"]())
    nested = json.loads(await server.tools["catalog_browse"](path=["Samples", "a/b"]))

    assert root["path"] == []
    assert nested["path"] == ["Samples", "a/b"]
    assert fake_client.calls[0]["path"] is None
    assert fake_client.calls[1]["path"] == ["Samples", "a/b"]


@pytest.mark.asyncio
async def test_search_catalog_tool(fake_client) -> None:
    server = DummyServer()
    tasks.register_tools(server)

    out = json.loads(await server.tools["search_catalog"](search_term="taxi"))

    # Backend payloads pass through untouched, extra fields included.
    assert out[0] == {
        "id": "d1",
        "path": ["Samples", "taxi"],
        "tag": "t",
        "type": "DATASET",
        "datasetType": "PROMOTED",
        "createdAt": "2024-01-01T00:00:00Z",
    }
    # Entities without a payload fall back to the modelled fields.
    assert out[1] == {"id": "d2", "path": ["Samples", "taxi_zones"], "tag": "u", "type": "DATASET"}


@pytest.mark.asyncio
async def test_search_catalog_accepts_whitespace_term(fake_client) -> None:
    await tasks.search_catalog(" ")

    assert fake_client.calls == [{"op": "search_catalog", "search_term": " "}]


@pytest.mark.asyncio
async def test_explain_tool_returns_plain_text(fake_client) -> None:
    server = DummyServer()
    tasks.register_tools(server)

    out = await server.tools["explain_query"](sql="SELECT 1")

    assert out == "00-00 Screen\n00-01 Project"


# ---------------------------------------------------------------------------
# Validation happens before any client is created
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_sql_query_rejects_writes(monkeypatch) -> None:
    monkeypatch.setattr(tasks, "_make_client", _no_client)

    with pytest.raises(NotSelectQueryError):
        await tasks.run_query("DROP TABLE t")

    with pytest.raises(NotSelectQueryError):
        await tasks.run_query("/* SELECT */ DELETE FROM t")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "call",
    [
        lambda: tasks.run_query(""),
        lambda: tasks.explain_query("   "),
        lambda: tasks.search_catalog(""),
        lambda: tasks.get_schema("Samples.t"),
        lambda: tasks.preview_table(None),
        lambda: tasks.browse_catalog("Samples"),
    ],
)
async def test_missing_or_malformed_arguments(monkeypatch, call) -> None:
    monkeypatch.setattr(tasks, "_make_client", _no_client)

    with pytest.raises(ValidationError):
        await call()


@pytest.mark.asyncio
async def test_backend_errors_propagate_to_the_tool_boundary(monkeypatch) -> None:
    class _StuckClient:
        async def execute_query(self, sql, max_rows=500):
            raise QueryTimeoutError("job-1", 30)

    async def _factory():
        return _StuckClient()

    monkeypatch.setattr(tasks, "_make_client", _factory)
    server = DummyServer()
    tasks.register_tools(server)

    with pytest.raises(QueryTimeoutError):
        await server.tools["sql_query"](sql="SELECT 1")


# ---------------------------------------------------------------------------
# Shared client
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_make_client_is_reused_until_config_changes(monkeypatch) -> None:
    monkeypatch.setattr(tasks, "_CLIENT", None)
    monkeypatch.setenv("DREMIO_URL", "https://dremio-a.test")
    monkeypatch.setenv("DREMIO_PAT", "tok")

    first = await tasks._make_client()
    assert isinstance(first, DremioClient)
    assert await tasks._make_client() is first

    session = first._get_http()
    assert not session.is_closed

    monkeypatch.setenv("DREMIO_URL", "https://dremio-b.test")
    second = await tasks._make_client()
    assert second is not first
    assert second.config.url == "https://dremio-b.test"

    # The replaced client released its connection pool.
    assert session.is_closed
    assert first._http is None

    await second.aclose()
