"""pylumino - reactive state core for UI applications."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pylumino")
except PackageNotFoundError:
    __version__ = "0+local"
from pylumino.cache import TTLCache
from pylumino.config import StateConfig
from pylumino.exceptions import (
    LuminoConfigError,
    LuminoError,
    LuminoMissingIdError,
    LuminoStoreError,
    LuminoStoreMismatchError,
)
from pylumino.manager import StateManager
from pylumino.state.collection import CollectionStore
from pylumino.state.entity import EntityStore
from pylumino.state.events import StateEvent
from pylumino.state.models import AppState, CacheEntry, CollectionState, EntityState, LoadingState
from pylumino.state.notifier import Notifier, Subscription

__all__ = [
    "__version__",
    "AppState",
    "CacheEntry",
    "CollectionState",
    "CollectionStore",
    "EntityState",
    "EntityStore",
    "LoadingState",
    "LuminoConfigError",
    "LuminoError",
    "LuminoMissingIdError",
    "LuminoStoreError",
    "LuminoStoreMismatchError",
    "Notifier",
    "StateConfig",
    "StateEvent",
    "StateManager",
    "Subscription",
    "TTLCache",
]
