# Dremio MCP Lite
# File: config.py
# Version: v1

"""Configuration loading for the Dremio MCP Lite server."""

from __future__ import annotations

from dataclasses import dataclass, field
import os

from .errors import ConfigError

# Largest result page the Dremio job results endpoint will serve.
DREMIO_RESULT_PAGE_CAP = 500


def _parse_bool_env(name: str, default: bool = False) -> bool:
    """Parse a boolean-like environment variable.

    Accepts 1/0, true/false, yes/no, on/off (case-insensitive).
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _parse_int_env(
    name: str,
    default: int,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int:
    """Parse an int environment variable with clamping and safe fallback."""
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        value = int(default)
    else:
        try:
            value = int(str(raw).strip())
        except ValueError:
            value = int(default)

    if min_value is not None and value < min_value:
        value = min_value
    if max_value is not None and value > max_value:
        value = max_value

    return value


def _parse_float_env(
    name: str,
    default: float,
    min_value: float | None = None,
    max_value: float | None = None,
) -> float:
    """Float twin of _parse_int_env."""
    raw = os.getenv(name)
    if raw is None or not str(raw).strip():
        value = float(default)
    else:
        try:
            value = float(str(raw).strip())
        except ValueError:
            value = float(default)

    if min_value is not None and value < min_value:
        value = min_value
    if max_value is not None and value > max_value:
        value = max_value

    return value


def _parse_verify_tls() -> bool:
    # DREMIO_REJECT_UNAUTHORIZED=false is the older spelling of
    # DREMIO_VERIFY_TLS=false and still wins when set.
    legacy = os.getenv("DREMIO_REJECT_UNAUTHORIZED")
    if legacy is not None and legacy.strip():
        return legacy.strip().lower() != "false"
    return _parse_bool_env("DREMIO_VERIFY_TLS", default=True)


@dataclass(frozen=True)
class DremioConfig:
    """Configuration values required to talk to a Dremio coordinator.

    Instances are immutable; build a new one (``from_env`` or the
    constructor) to change settings.
    """

    url: str | None
    pat: str | None = field(repr=False)
    verify_tls: bool = True

    # Guardrails
    max_result_rows: int = DREMIO_RESULT_PAGE_CAP
    poll_interval_seconds: float = 1.0
    max_poll_attempts: int = 30
    http_timeout_seconds: float = 30.0

    @classmethod
    def from_env(cls) -> "DremioConfig":
        """Create configuration from environment variables."""
        url = os.getenv("DREMIO_URL") or None
        pat = os.getenv("DREMIO_PAT") or None

        max_result_rows = _parse_int_env(
            "DREMIO_MAX_RESULT_ROWS",
            default=DREMIO_RESULT_PAGE_CAP,
            min_value=1,
            max_value=DREMIO_RESULT_PAGE_CAP,
        )
        poll_interval_seconds = _parse_float_env(
            "DREMIO_POLL_INTERVAL_SECONDS", default=1.0, min_value=0.0, max_value=60.0
        )
        max_poll_attempts = _parse_int_env(
            "DREMIO_MAX_POLL_ATTEMPTS", default=30, min_value=1, max_value=3600
        )
        http_timeout_seconds = _parse_float_env(
            "DREMIO_HTTP_TIMEOUT_SECONDS", default=30.0, min_value=1.0, max_value=600.0
        )

        return cls(
            url=url.strip() if url else None,
            pat=pat.strip() if pat else None,
            verify_tls=_parse_verify_tls(),
            max_result_rows=max_result_rows,
            poll_interval_seconds=poll_interval_seconds,
            max_poll_attempts=max_poll_attempts,
            http_timeout_seconds=http_timeout_seconds,
        )

    def require(self) -> "DremioConfig":
        """Fail with a ConfigError naming every missing required variable."""
        missing = []
        if not self.url:
            missing.append("DREMIO_URL")
        if not self.pat:
            missing.append("DREMIO_PAT")

        if missing:
            raise ConfigError(
                f"{' and '.join(missing)} must be set "
                "(in the environment or a .env file) before starting the server."
            )
        return self

    @property
    def base_url(self) -> str:
        return (self.url or "").rstrip("/")
