"""Custom exception hierarchy for pylumino."""

from __future__ import annotations


class LuminoError(Exception):
    """Base exception for all pylumino errors."""


class LuminoConfigError(LuminoError):
    """Invalid configuration value (including cache TTLs)."""


class LuminoStoreError(LuminoError):
    """A store was used in a way it cannot support."""

    def __init__(self, message: str, *, store: str = "") -> None:
        self.store = store
        super().__init__(message)


class LuminoMissingIdError(LuminoStoreError, KeyError):
    """An item handed to a collection store has no value for its id field."""

    def __init__(self, message: str, *, store: str = "", id_field: str = "") -> None:
        self.id_field = id_field
        super().__init__(message, store=store)

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message.
        return str(self.args[0]) if self.args else ""


class LuminoStoreMismatchError(LuminoStoreError):
    """A store name was re-registered with an incompatible shape.

    Raised when ``create_*_store`` finds an existing store under the same
    name whose model tag or id field differs from the requested one.
    """
