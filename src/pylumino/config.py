"""State manager configuration for pylumino."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pylumino.exceptions import LuminoConfigError

#: Default cache entry time-to-live in seconds (5 minutes).
DEFAULT_CACHE_TTL: float = 5 * 60


def _env_float(name: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise LuminoConfigError(f"{name} must be a number, got {value!r}") from exc


def _env_optional_int(name: str, value: str) -> int | None:
    normalized = value.strip().lower()
    if normalized in {"", "none", "unbounded"}:
        return None
    try:
        return int(normalized)
    except ValueError as exc:
        raise LuminoConfigError(f"{name} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class StateConfig:
    """State manager configuration.

    Parameters
    ----------
    cache_default_ttl : float
        Seconds a cached value stays readable when ``set_cached`` is called
        without an explicit ``ttl``.  Defaults to 5 minutes.
    cache_max_entries : int or None
        Upper bound on stored cache entries.  ``None`` keeps the cache
        unbounded, so only lazy expiry on read reclaims memory. The
        ``LUMINO_CACHE_MAX_ENTRIES`` variable spells this as ``none`` or
        ``unbounded``; zero is rejected just like the field value.
    """

    cache_default_ttl: float = DEFAULT_CACHE_TTL
    cache_max_entries: int | None = None

    def __post_init__(self) -> None:
        if self.cache_default_ttl < 0:
            raise LuminoConfigError("cache_default_ttl must be >= 0")
        if self.cache_max_entries is not None and self.cache_max_entries <= 0:
            raise LuminoConfigError("cache_max_entries must be positive or None")

    @classmethod
    def from_env(cls, **overrides: Any) -> StateConfig:
        """Create configuration from environment variables.

        Reads ``LUMINO_CACHE_DEFAULT_TTL`` and ``LUMINO_CACHE_MAX_ENTRIES``.
        Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        StateConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        ttl_env = env.get("LUMINO_CACHE_DEFAULT_TTL")
        if ttl_env is not None and "cache_default_ttl" not in overrides:
            config_kwargs["cache_default_ttl"] = _env_float("LUMINO_CACHE_DEFAULT_TTL", ttl_env)

        max_env = env.get("LUMINO_CACHE_MAX_ENTRIES")
        if max_env is not None and "cache_max_entries" not in overrides:
            config_kwargs["cache_max_entries"] = _env_optional_int("LUMINO_CACHE_MAX_ENTRIES", max_env)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
