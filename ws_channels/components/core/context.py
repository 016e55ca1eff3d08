"""
Connection Context for audit logging.

Encapsulates connection metadata (URL, masked token, extra parameters) so
lifecycle events are logged consistently, and sanitizes server-provided text
before it reaches the logs.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlencode, urlsplit, urlunsplit, parse_qsl

# Pattern to remove control characters from log data
_CONTROL_CHAR_PATTERN = re.compile(
    r'[\x00-\x1f\x7f-\x9f'  # ASCII control characters
    r'\u200b-\u200f'  # Zero-width and direction marks
    r'\u202a-\u202e'  # Bidirectional text formatting (RTL override, etc.)
    r'\u2066-\u2069'  # Isolate formatting characters
    r'\ufeff]'  # BOM / Zero-width no-break space
)


def sanitize_log_data(data: str, max_length: int = 100) -> str:
    """
    Sanitize server-provided data before logging.

    Truncates first so escape sequences are never cut in half, then strips
    control and direction-override characters and escapes JSON-dangerous
    characters.

    Args:
        data: Raw text (e.g. an inbound frame that failed to decode).
        max_length: Maximum length to include in logs.

    Returns:
        Sanitized, truncated string safe for structured logging.
    """
    truncated = data[:max_length] if len(data) > max_length else data
    was_truncated = len(data) > max_length

    # Remove control characters and direction overrides
    sanitized = _CONTROL_CHAR_PATTERN.sub('', truncated)

    # Replace backslashes first to avoid double-escaping
    sanitized = sanitized.replace('\\', '\\\\')
    sanitized = sanitized.replace('"', '\\"')

    if was_truncated:
        return sanitized + "..."
    return sanitized


def build_url(base_url: str, params: dict[str, Any] | None) -> str:
    """
    Embed connection-time parameters into the transport URL's query string.

    Existing query parameters on base_url are kept; params override them.
    None values are skipped.
    """
    if not params:
        return base_url

    parts = urlsplit(base_url)
    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    for key, value in params.items():
        if value is None:
            continue
        query[key] = str(value)

    return urlunsplit(parts._replace(query=urlencode(query)))


@dataclass
class ConnectionContext:
    """
    Context object for connection metadata.

    Usage:
        ctx = ConnectionContext.from_params(url, {"token": token}, "token")
        ctx.audit("CONNECT")
        # ... later
        ctx.audit("DISCONNECT", code=1000, reason="")
    """

    url: str
    token: str | None = None
    params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_params(
        cls,
        url: str,
        params: dict[str, Any] | None,
        token_param: str,
    ) -> "ConnectionContext":
        """
        Split the token out of the connection parameters.

        The token is kept separately so it can be masked; the remaining
        parameters are logged as-is.
        """
        params = dict(params or {})
        token = params.pop(token_param, None)
        return cls(
            url=url,
            token=None if token is None else str(token),
            params=params,
        )

    def to_audit_dict(self, event_type: str, **extra: Any) -> dict[str, Any]:
        """
        Convert to dictionary for audit logging.

        Only includes non-empty fields to reduce log noise.
        """
        result: dict[str, Any] = {
            "event_type": event_type,
            "url": self.url,
        }

        if self.token:
            result["token"] = self.token
        if self.params:
            result["params"] = self.params

        result.update(extra)

        return result

    def audit(
        self,
        event_type: str,
        logger_func: Any = None,
        **extra: Any,
    ) -> None:
        """
        Log an audit event.

        Args:
            event_type: The audit event type (CONNECT, DISCONNECT, CONNECT_FAILED).
            logger_func: Optional custom logger function (default: shared.config.logging.audit_ws_connection).
            **extra: Additional fields to log.
        """
        if logger_func is None:
            from shared.config.logging import audit_ws_connection
            logger_func = audit_ws_connection

        audit_dict = self.to_audit_dict(event_type, **extra)
        logger_func(**audit_dict)
