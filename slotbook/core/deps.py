"""FastAPI dependencies for store and notifier access."""

from functools import lru_cache

from slotbook.core.config import settings
from slotbook.services.notifier import Notifier, build_notifier
from slotbook.stores import BookingStore, build_store


@lru_cache
def get_store() -> BookingStore:
    """
    Process-wide booking store.

    The backend is chosen once from STORE_BACKEND; every request shares it so
    the memory store's lock and the database engine's pool are process-wide.
    """
    return build_store(settings.STORE_BACKEND)


@lru_cache
def get_notifier() -> Notifier:
    return build_notifier(settings)
