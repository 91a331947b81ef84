from __future__ import annotations

import pytest

from pylumino.config import DEFAULT_CACHE_TTL, StateConfig
from pylumino.exceptions import LuminoConfigError


def test_defaults() -> None:
    config = StateConfig()
    assert config.cache_default_ttl == DEFAULT_CACHE_TTL == 300
    assert config.cache_max_entries is None


def test_from_env_reads_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LUMINO_CACHE_DEFAULT_TTL", "30")
    monkeypatch.setenv("LUMINO_CACHE_MAX_ENTRIES", "100")

    config = StateConfig.from_env()

    assert config.cache_default_ttl == 30.0
    assert config.cache_max_entries == 100


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LUMINO_CACHE_DEFAULT_TTL", "30")
    monkeypatch.setenv("LUMINO_CACHE_MAX_ENTRIES", "unbounded")

    config = StateConfig.from_env(cache_default_ttl=5.0)

    assert config.cache_default_ttl == 5.0
    assert config.cache_max_entries is None


def test_from_env_rejects_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LUMINO_CACHE_DEFAULT_TTL", "soon")
    with pytest.raises(LuminoConfigError):
        StateConfig.from_env()


def test_negative_values_rejected() -> None:
    with pytest.raises(LuminoConfigError):
        StateConfig(cache_default_ttl=-1)
    with pytest.raises(LuminoConfigError):
        StateConfig(cache_max_entries=0)


def test_from_env_rejects_zero_max_entries(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LUMINO_CACHE_MAX_ENTRIES", "0")
    with pytest.raises(LuminoConfigError):
        StateConfig.from_env()


def test_from_env_none_means_unbounded(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LUMINO_CACHE_MAX_ENTRIES", "none")
    assert StateConfig.from_env().cache_max_entries is None
