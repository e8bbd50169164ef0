# Dremio MCP Lite
# File: errors.py
# Version: v1

"""Exception types raised by the Dremio client and the MCP tools.

Backend-side problems derive from ``DremioError`` (a ``RuntimeError``, the
same base the rest of the server raises for remote failures). Problems with
caller input derive from ``ValidationError`` (a ``ValueError``) and are always
raised before anything is sent over the network.
"""

from __future__ import annotations

from typing import Optional


class DremioError(RuntimeError):
    """Base class for failures talking to the Dremio REST API."""


class DremioConnectionError(DremioError):
    """The HTTP request could not be sent or no response was received."""


class DremioHTTPError(DremioError):
    """Dremio answered with a non-success HTTP status."""

    def __init__(self, message: str, status_code: int, url: str, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url
        self.body = body


class QueryTimeoutError(DremioError):
    """A job was still in flight after the maximum number of status polls."""

    def __init__(self, job_id: str, attempts: int) -> None:
        super().__init__(
            f"Query timeout: job '{job_id}' did not finish after {attempts} status checks."
        )
        self.job_id = job_id
        self.attempts = attempts


class QueryFailedError(DremioError):
    """A job reached a terminal state other than COMPLETED."""

    def __init__(
        self,
        job_id: str,
        state: str,
        error_message: Optional[str] = None,
        details: Optional[str] = None,
    ) -> None:
        message = f"Query failed with state: {state}."
        if error_message:
            message += f" Error: {error_message}"
        if details:
            message += f". Details: {details}"
        super().__init__(message)
        self.job_id = job_id
        self.state = state
        self.error_message = error_message
        self.details = details


class ValidationError(ValueError):
    """Caller input was rejected before any request was made."""


class InvalidTablePathError(ValidationError):
    """A table path was empty or contained an empty / non-string segment."""


class NotSelectQueryError(ValidationError):
    """SQL text was not a SELECT statement."""


class ConfigError(ValueError):
    """Required configuration is missing or unusable."""
