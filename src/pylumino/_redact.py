"""Helpers for safe debug logging.

Application state routinely carries the signed-in user and free-form meta
values, both of which may hold credentials. Values are passed through
:func:`redact_for_log` before they reach a DEBUG log line.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "passwd",
        "secret",
        "token",
        "accesstoken",
        "access_token",
        "refreshtoken",
        "refresh_token",
        "idtoken",
        "apikey",
        "api_key",
        "authorization",
        "cookie",
        "session",
    }
)


def redact_for_log(value: Any, *, max_string: int = 256, _depth: int = 0) -> Any:
    """Return a copy of *value* with credential-like keys masked."""
    if _depth > 10:
        return "<max-depth>"

    if value is None or isinstance(value, (bool, int, float)):
        return value

    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"

    if isinstance(value, Mapping):
        return {
            str(key): "<redacted>"
            if str(key).lower() in _SENSITIVE_KEYS
            else redact_for_log(item, max_string=max_string, _depth=_depth + 1)
            for key, item in value.items()
        }

    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]

    # Objects such as pydantic models are logged by type only.
    return f"<{type(value).__name__}>"
