"""Immutable state snapshots.

Every mutation produces a new snapshot object, so a listener can keep the
``previous`` value it was handed without it changing underneath it. The
containers inside a snapshot are never mutated in place by pylumino;
callers must treat them as read-only too.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class EntityState(BaseModel, Generic[T]):
    """State of a single-record store."""

    model_config = ConfigDict(frozen=True)

    data: T | None = None
    loading: bool = False
    error: Any | None = None
    last_updated: datetime | None = None


class CollectionState(BaseModel, Generic[T]):
    """Normalized view of a collection store.

    ``ids`` is the iteration order and always holds exactly the keys of
    ``by_id``.
    """

    model_config = ConfigDict(frozen=True)

    by_id: dict[Any, T] = Field(default_factory=dict)
    ids: list[Any] = Field(default_factory=list)
    loading: bool = False
    error: Any | None = None
    last_updated: datetime | None = None

    @property
    def count(self) -> int:
        return len(self.ids)


class LoadingState(BaseModel):
    """Loading flags, globally and per api/form/page id."""

    model_config = ConfigDict(frozen=True)

    global_loading: bool = False
    apis: dict[str, bool] = Field(default_factory=dict)
    forms: dict[str, bool] = Field(default_factory=dict)
    pages: dict[str, bool] = Field(default_factory=dict)


class AppState(BaseModel):
    """Cross-cutting application state owned by the state manager."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    loading: LoadingState = Field(default_factory=LoadingState)
    locale: str = "en"
    theme: str = "light"
    user: Any | None = None
    meta: dict[str, Any] = Field(default_factory=dict)


class CacheEntry(BaseModel):
    """A cached value and the moment it stops being readable."""

    model_config = ConfigDict(frozen=True)

    key: str
    value: Any = None
    expires_at: datetime
