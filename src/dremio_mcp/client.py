# Dremio MCP Lite
# File: client.py
# Version: v2
"""High-level client for the Dremio REST API (v3).

Implements:

- get_catalog() via the Catalog API (root or by path)
- execute_query() via the SQL + Job APIs (submit, poll, fetch results)
- get_table_schema() / preview_table() on top of execute_query()
- search_catalog() as a depth-first walk over the root catalog
- explain_query() via ``EXPLAIN PLAN FOR``

One ``httpx.AsyncClient`` is created lazily and reused for every call; it
carries only the base URL, the bearer token and the TLS setting.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import httpx
from httpx import HTTPStatusError, RequestError

from . import __version__
from .config import DREMIO_RESULT_PAGE_CAP, DremioConfig
from .errors import (
    DremioConnectionError,
    DremioError,
    DremioHTTPError,
    NotSelectQueryError,
    QueryFailedError,
    QueryTimeoutError,
    ValidationError,
)
from .models import (
    CatalogEntity,
    ExplainResult,
    QueryResult,
    SchemaField,
    catalog_roots,
    parse_catalog_response,
    walk_catalog,
)
from .sql import build_table_reference, encode_catalog_path, is_select_query

logger = logging.getLogger(__name__)

CATALOG_ENDPOINT = "/api/v3/catalog"
SQL_ENDPOINT = "/api/v3/sql"
JOB_ENDPOINT = "/api/v3/job"

# Job states that mean "not finished yet, ask again".
IN_FLIGHT_STATES = frozenset(
    {
        "NOT_SUBMITTED",
        "STARTING",
        "RUNNING",
        "ENQUEUED",
        "PLANNING",
        "PENDING",
        "METADATA_RETRIEVAL",
        "QUEUED",
        "ENGINE_START",
        "EXECUTION_PLANNING",
    }
)
FAILED_STATES = frozenset({"FAILED", "CANCELED", "CANCELLED"})
COMPLETED_STATE = "COMPLETED"

PREVIEW_ROWS = 10


def _clamp_rows(value: Any, cap: int) -> int:
    """Clamp a requested row count to [1, cap]."""
    try:
        v = int(value)
    except (TypeError, ValueError):
        v = cap
    return max(1, min(v, cap))


def _detail_text(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


@dataclass
class DremioClient:
    """Wrapper around the Dremio catalog, SQL and job APIs."""

    config: DremioConfig

    # Optional transport override (tests use httpx.MockTransport).
    transport: Optional[httpx.AsyncBaseTransport] = None

    _http: Optional[httpx.AsyncClient] = field(default=None, init=False, repr=False)

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def _get_http(self) -> httpx.AsyncClient:
        if self._http is None:
            self.config.require()
            self._http = httpx.AsyncClient(
                base_url=self.config.base_url,
                headers={
                    "Authorization": f"Bearer {self.config.pat}",
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    "User-Agent": f"dremio-mcp-lite/{__version__}",
                },
                verify=self.config.verify_tls,
                timeout=self.config.http_timeout_seconds,
                transport=self.transport,
            )
            if not self.config.verify_tls:
                logger.warning(
                    "TLS certificate verification is disabled for %s", self.config.base_url
                )
        return self._http

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> "DremioClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """Send one request and return the decoded JSON body."""
        http_client = self._get_http()
        logger.debug("Dremio request: %s %s", method, url)

        try:
            response = await http_client.request(method, url, **kwargs)
        except RequestError as exc:
            raise DremioConnectionError(
                f"Error calling Dremio API at '{url}': {exc}"
            ) from exc

        try:
            response.raise_for_status()
        except HTTPStatusError as exc:
            status = response.status_code
            body_preview = response.text[:500]
            raise DremioHTTPError(
                f"Dremio request {method} '{url}' failed (HTTP {status}). "
                f"Response snippet: {body_preview}",
                status_code=status,
                url=url,
                body=body_preview,
            ) from exc

        if not response.content:
            return {}

        try:
            return response.json()
        except ValueError as exc:
            raise DremioError(
                f"Dremio returned a non-JSON response for {method} '{url}' "
                f"(HTTP {response.status_code})."
            ) from exc

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def get_catalog(self, path: Optional[Sequence[str]] = None) -> Any:
        """Return the raw catalog payload for the root or for *path*.

        The root answers with a ``{"data": [...]}`` listing; a path lookup
        answers with a single entity, including its ``children`` when it is
        a container.
        """
        url = CATALOG_ENDPOINT
        if path:
            url = f"{CATALOG_ENDPOINT}/{encode_catalog_path(path)}"
        return await self._request("GET", url)

    async def search_catalog(self, search_term: str) -> List[CatalogEntity]:
        """Find catalog entities whose name contains *search_term*.

        Matching is a case-insensitive substring test on the last path
        segment. Results keep depth-first traversal order.
        """
        if not isinstance(search_term, str):
            raise ValidationError("search_term must be a string")

        root = parse_catalog_response(await self.get_catalog())
        needle = search_term.lower()

        results: List[CatalogEntity] = []
        for entity in walk_catalog(catalog_roots(root)):
            name = entity.name
            if name is None:
                continue
            if needle in name.lower():
                results.append(entity)

        logger.info("Catalog search for %r matched %d entities", search_term, len(results))
        return results

    # ------------------------------------------------------------------
    # SQL jobs
    # ------------------------------------------------------------------

    async def _submit_job(self, sql: str) -> str:
        data = await self._request("POST", SQL_ENDPOINT, json={"sql": sql})
        job_id = data.get("id") if isinstance(data, dict) else None
        if not job_id:
            raise DremioError("Dremio did not return a job id for the submitted query.")
        logger.info("Submitted Dremio job %s", job_id)
        return str(job_id)

    async def _wait_for_job(self, job_id: str) -> Dict[str, Any]:
        """Poll the job until it leaves the in-flight states."""
        job: Dict[str, Any] = {}
        state = ""

        for attempt in range(1, self.config.max_poll_attempts + 1):
            await asyncio.sleep(self.config.poll_interval_seconds)
            data = await self._request("GET", f"{JOB_ENDPOINT}/{job_id}")
            job = data if isinstance(data, dict) else {}
            state = str(job.get("jobState") or "").upper()
            logger.debug("Job %s state after %d checks: %s", job_id, attempt, state)
            if state not in IN_FLIGHT_STATES:
                break
        else:
            logger.warning(
                "Job %s still %s after %d checks", job_id, state, self.config.max_poll_attempts
            )
            raise QueryTimeoutError(job_id, self.config.max_poll_attempts)

        if state in FAILED_STATES:
            details = _detail_text(job.get("queryError")) or _detail_text(
                job.get("cancellationReason")
            )
            logger.warning("Job %s ended in state %s", job_id, state)
            raise QueryFailedError(
                job_id,
                state,
                error_message=job.get("errorMessage") or "Unknown error",
                details=details,
            )

        if state != COMPLETED_STATE:
            raise QueryFailedError(job_id, state or "UNKNOWN")

        return job

    async def execute_query(
        self, sql: str, max_rows: int = DREMIO_RESULT_PAGE_CAP
    ) -> QueryResult:
        """Run *sql* as a Dremio job and return its first page of results.

        The page size is *max_rows* clamped to the configured result cap.
        Raises QueryTimeoutError when the job is still running after
        ``max_poll_attempts`` checks and QueryFailedError when it fails or
        is cancelled.
        """
        limit = _clamp_rows(max_rows, self.config.max_result_rows)

        job_id = await self._submit_job(sql)
        await self._wait_for_job(job_id)

        data = await self._request(
            "GET",
            f"{JOB_ENDPOINT}/{job_id}/results",
            params={"offset": 0, "limit": limit},
        )
        if not isinstance(data, dict):
            data = {}

        raw_schema = data.get("schema")
        schema: List[SchemaField] = []
        if isinstance(raw_schema, list):
            schema = [SchemaField.from_payload(f) for f in raw_schema if isinstance(f, dict)]

        raw_rows = data.get("rows")
        rows: List[Dict[str, Any]] = list(raw_rows[:limit]) if isinstance(raw_rows, list) else []

        try:
            row_count = int(data.get("rowCount") or 0)
        except (TypeError, ValueError):
            row_count = 0

        logger.info("Job %s completed: %d rows reported, %d returned", job_id, row_count, len(rows))

        return QueryResult(
            row_count=row_count,
            schema=schema,
            rows=rows,
            meta={
                "job_id": job_id,
                "requested_max_rows": max_rows,
                "effective_max_rows": limit,
                "truncated": row_count > len(rows),
            },
        )

    # ------------------------------------------------------------------
    # Helpers built on execute_query
    # ------------------------------------------------------------------

    async def get_table_schema(self, table_path: Sequence[str]) -> List[SchemaField]:
        """Column names and types of a table, via a zero-row query."""
        table_ref = build_table_reference(table_path)
        result = await self.execute_query(f"SELECT * FROM {table_ref} LIMIT 0")
        return result.schema

    async def preview_table(self, table_path: Sequence[str]) -> QueryResult:
        table_ref = build_table_reference(table_path)
        return await self.execute_query(
            f"SELECT * FROM {table_ref} LIMIT {PREVIEW_ROWS}", max_rows=PREVIEW_ROWS
        )

    async def explain_query(self, sql: str) -> ExplainResult:
        """Return the execution plan of a SELECT statement as one text block."""
        if not is_select_query(sql):
            raise NotSelectQueryError("Only SELECT queries can be explained")

        result = await self.execute_query(f"EXPLAIN PLAN FOR {sql}")
        lines = []
        for row in result.rows:
            values = row.values() if isinstance(row, dict) else [row]
            lines.append(" ".join("" if v is None else str(v) for v in values))
        return ExplainResult(text="\n".join(lines))
