"""Storage layer for practice session snapshots.

Provides the SessionProgressStore interface with a local SQLite backend
(guest mode, capacity-bounded) and a remote backend over the history
service (authenticated mode).
"""

from .base import SessionProgressStore
from .connection import get_connection, init_schema
from .remote import RemoteSessionProgressStore
from .sqlite import MAX_GUEST_HISTORY, SQLiteSessionProgressStore
from config import Settings
from models import StoreMode
from services.http import ApiClient

__all__ = [
    "SessionProgressStore",
    "SQLiteSessionProgressStore",
    "RemoteSessionProgressStore",
    "MAX_GUEST_HISTORY",
    "get_connection",
    "init_schema",
    "get_progress_store",
]


def get_progress_store(
    settings: Settings, client: ApiClient | None = None
) -> SessionProgressStore:
    """Get the progress store for the configured mode.

    Args:
        settings: Application settings.
        client: API client for the remote backend; built from settings if
            omitted.
    """
    if settings.mode == StoreMode.AUTHENTICATED:
        if client is None:
            client = ApiClient(
                settings.api_base_url,
                token=settings.auth_token,
                timeout=settings.request_timeout_seconds,
            )
        return RemoteSessionProgressStore(client)
    return SQLiteSessionProgressStore(settings.db_path, settings.max_guest_history)
