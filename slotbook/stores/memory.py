"""In-memory store for development, demos and tests.

Writers are serialized by one process-wide lock. Reads hand out copies and
writes are staged on the unit of work, so a failed transaction leaves the
committed state untouched.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import TypeVar
from uuid import UUID

from sqlalchemy import inspect as sa_inspect

from slotbook.db.base import Base
from slotbook.db.enums import ACTIVE_APPOINTMENT_STATUSES
from slotbook.db.models import Appointment, Contact, Service
from slotbook.stores.base import BookingStore, UnitOfWork

ModelT = TypeVar("ModelT", bound=Base)


def _clone(obj: ModelT) -> ModelT:
    """Detached copy of a mapped object's column values."""
    mapper = sa_inspect(type(obj))
    return type(obj)(**{attr.key: getattr(obj, attr.key) for attr in mapper.column_attrs})


def _apply_defaults(obj: Base) -> None:
    """Fill unset columns from their Python-side defaults, as a flush would."""
    for column in sa_inspect(type(obj)).columns:
        if getattr(obj, column.key) is not None or column.default is None:
            continue
        default = column.default
        value = default.arg(None) if default.is_callable else default.arg
        setattr(obj, column.key, value)


class _MemoryUnitOfWork(UnitOfWork):
    def __init__(self, store: "MemoryStore"):
        self._store = store
        self._staged: dict[type, dict[UUID, Base]] = {
            Service: {},
            Contact: {},
            Appointment: {},
        }

    def _get(self, model: type[ModelT], obj_id: UUID) -> ModelT | None:
        obj = self._staged[model].get(obj_id) or self._store._tables[model].get(obj_id)
        return _clone(obj) if obj is not None else None

    def _all(self, model: type[ModelT]) -> list[ModelT]:
        merged = dict(self._store._tables[model])
        merged.update(self._staged[model])
        return [_clone(obj) for obj in merged.values()]

    def _stage(self, obj: ModelT, *, touch: bool = False) -> ModelT:
        _apply_defaults(obj)
        if touch:
            obj.updated_at = datetime.now(timezone.utc)
        self._staged[type(obj)][obj.id] = obj
        return obj

    def commit(self) -> None:
        for model, staged in self._staged.items():
            self._store._tables[model].update(
                {obj_id: _clone(obj) for obj_id, obj in staged.items()}
            )
            staged.clear()

    # Services

    def get_service(self, service_id: UUID, *, lock: bool = False) -> Service | None:
        return self._get(Service, service_id)

    def add_service(self, service: Service) -> Service:
        return self._stage(service)

    # Contacts

    def get_contact(self, contact_id: UUID) -> Contact | None:
        return self._get(Contact, contact_id)

    def find_contact_by_email(self, tenant_id: UUID, email: str) -> Contact | None:
        matches = [
            c for c in self._all(Contact)
            if c.tenant_id == tenant_id and c.email == email
        ]
        matches.sort(key=lambda c: c.created_at)
        return matches[0] if matches else None

    def add_contact(self, contact: Contact) -> Contact:
        return self._stage(contact)

    def save_contact(self, contact: Contact) -> Contact:
        return self._stage(contact, touch=True)

    # Appointments

    def get_appointment(self, appointment_id: UUID, *, lock: bool = False) -> Appointment | None:
        return self._get(Appointment, appointment_id)

    def list_active_appointments(
        self,
        service_id: UUID,
        window_start: datetime,
        window_end: datetime,
    ) -> list[Appointment]:
        found = [
            a for a in self._all(Appointment)
            if a.service_id == service_id
            and a.status in ACTIVE_APPOINTMENT_STATUSES
            and a.start_time < window_end
            and a.end_time > window_start
        ]
        return sorted(found, key=lambda a: a.start_time)

    def add_appointment(self, appointment: Appointment) -> Appointment:
        return self._stage(appointment)

    def save_appointment(self, appointment: Appointment) -> Appointment:
        return self._stage(appointment, touch=True)


class MemoryStore(BookingStore):
    """Process-local store backed by dicts."""

    backend = "memory"

    def __init__(self):
        self._tables: dict[type, dict[UUID, Base]] = {
            Service: {},
            Contact: {},
            Appointment: {},
        }
        self._write_lock = threading.Lock()

    @contextmanager
    def begin(self) -> Iterator[UnitOfWork]:
        with self._write_lock:
            uow = _MemoryUnitOfWork(self)
            yield uow
            uow.commit()

    @contextmanager
    def read(self) -> Iterator[UnitOfWork]:
        yield _MemoryUnitOfWork(self)
