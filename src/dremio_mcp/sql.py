# Dremio MCP Lite
# File: sql.py
# Version: v1

"""SQL text helpers: read-only validation and identifier / path quoting.

Everything here is pure and runs before a request is built, so invalid
input never reaches Dremio.
"""

from __future__ import annotations

import re
from typing import Any, Sequence
from urllib.parse import quote

from .errors import InvalidTablePathError, ValidationError

# Line comments and (non-nested) block comments, matched left to right so a
# "--" inside a block comment, or "/*" inside a line comment, is not
# mistaken for the start of another comment.
_SQL_COMMENT_RE = re.compile(r"--[^\n]*|/\*.*?\*/", re.DOTALL)
_SELECT_RE = re.compile(r"^SELECT\s", re.IGNORECASE)


def strip_sql_comments(sql: str) -> str:
    """Remove ``--`` and ``/* */`` comments and trim the result."""
    return _SQL_COMMENT_RE.sub(" ", sql).strip()


def is_select_query(sql: Any) -> bool:
    """Return True if *sql* is a SELECT statement once comments are removed.

    The keyword check is case-insensitive and requires whitespace after
    ``SELECT``, so ``SELECTX`` is rejected. Empty, comment-only and
    non-string input is never a SELECT.
    """
    if not isinstance(sql, str):
        return False
    cleaned = strip_sql_comments(sql)
    return bool(_SELECT_RE.match(cleaned))


def escape_identifier(identifier: str) -> str:
    """Quote an identifier for Dremio SQL, doubling embedded double quotes."""
    return '"' + identifier.replace('"', '""') + '"'


def build_table_reference(table_path: Sequence[str]) -> str:
    """Build a fully qualified table name such as ``"space"."folder"."t"``."""
    if isinstance(table_path, str) or not table_path:
        raise InvalidTablePathError("Table path cannot be empty")

    for component in table_path:
        if not isinstance(component, str) or not component:
            raise InvalidTablePathError(
                f"Invalid table path component: {component!r}"
            )

    return ".".join(escape_identifier(part) for part in table_path)


def encode_catalog_path(path: Sequence[str]) -> str:
    """Percent-encode each catalog path segment, then join with ``/``.

    Encoding happens per segment so a ``/`` inside a name becomes ``%2F``
    instead of an extra path level.
    """
    if isinstance(path, str):
        raise ValidationError("Catalog path must be a list of names, not a string")

    encoded = []
    for segment in path:
        if not isinstance(segment, str) or not segment:
            raise ValidationError(f"Invalid catalog path component: {segment!r}")
        encoded.append(quote(segment, safe=""))

    return "/".join(encoded)
