"""Booking stores (in-memory and transactional database)."""

from slotbook.stores.base import BookingStore, UnitOfWork
from slotbook.stores.database import DatabaseStore
from slotbook.stores.memory import MemoryStore


def build_store(backend: str, engine=None) -> BookingStore:
    """Create the store selected by configuration at process start."""
    if backend == "memory":
        return MemoryStore()
    if backend == "database":
        if engine is None:
            from slotbook.db.session import engine
        return DatabaseStore(engine)
    raise ValueError(f"Unknown store backend: {backend}")


__all__ = ["BookingStore", "DatabaseStore", "MemoryStore", "UnitOfWork", "build_store"]
