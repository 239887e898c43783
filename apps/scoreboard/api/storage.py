"""Access to the storage backend selected for this app instance."""

from fastapi import Request

from scoreboard.services.storage_service import build_storage


def get_storage(request: Request):
    """Return the app's storage backend, building it on first use."""
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        storage = build_storage()
        request.app.state.storage = storage
    return storage
