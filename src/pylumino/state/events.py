"""Application events emitted by the state manager.

These mirror the UI-level events the rest of the framework listens for.
The manager hands them to an optional ``on_event`` hook; it does not run
an event bus of its own.
"""

from __future__ import annotations

from enum import StrEnum


class StateEvent(StrEnum):
    LOADER_SHOW = "ui:loader:show"
    LOADER_HIDE = "ui:loader:hide"
    LOCALE_CHANGE = "app:locale:change"
