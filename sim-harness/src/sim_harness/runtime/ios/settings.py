from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class SettingsUpdater(Protocol):
    """Writes simulator preference files on behalf of a handle.

    The handle passes itself and the caller's arguments through untouched;
    what gets written (and where) is entirely up to the implementation.
    """

    def update_location_settings(self, sim: Any, bundle_id: str, authorized: bool) -> Any: ...
