"""Expiry and identity rules shared by the stores and the cache.

Kept free of any locking or notification so the rules can be tested
in isolation.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from pylumino.exceptions import LuminoConfigError, LuminoMissingIdError, LuminoStoreError

_MISSING = object()


def utcnow() -> datetime:
    return datetime.now(UTC)


def is_expired(now: datetime, expires_at: datetime) -> bool:
    return now >= expires_at


def normalize_ttl(ttl: float | timedelta) -> timedelta:
    """Convert a TTL given in seconds or as a ``timedelta``.

    Zero is valid and means "already expired"; negative values are rejected.
    """
    if isinstance(ttl, timedelta):
        delta = ttl
    elif isinstance(ttl, bool) or not isinstance(ttl, (int, float)):
        raise LuminoConfigError(f"ttl must be seconds or a timedelta, got {type(ttl).__name__}")
    else:
        delta = timedelta(seconds=ttl)
    if delta < timedelta(0):
        raise LuminoConfigError(f"ttl must be >= 0, got {delta.total_seconds()}s")
    return delta


def item_id(item: Any, id_field: str, *, store: str = "") -> Any:
    """Read the identifier of *item*.

    Mappings are read by key, anything else by attribute, so both plain
    dicts and pydantic models/dataclasses can live in a collection.
    """
    if isinstance(item, Mapping):
        value = item.get(id_field, _MISSING)
    else:
        value = getattr(item, id_field, _MISSING)
    if value is _MISSING:
        raise LuminoMissingIdError(
            f"item of type {type(item).__name__} has no {id_field!r} field",
            store=store,
            id_field=id_field,
        )
    return check_id(value, store=store)


def check_id(value: Any, *, store: str = "") -> Any:
    """Return *value* if it can key a collection, else raise ``LuminoStoreError``."""
    try:
        hash(value)
    except TypeError as exc:
        raise LuminoStoreError(
            f"id {value!r} of type {type(value).__name__} is not hashable",
            store=store,
        ) from exc
    return value
