"""Store interface used by the booking engine.

A store hands out units of work. `begin()` is the atomic, writer-serialized
unit used by bookings and status changes: it commits when the block exits
normally and discards every change when it raises. `read()` is lock-free
and never persists anything.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from uuid import UUID

from slotbook.db.models import Appointment, Contact, Service


class UnitOfWork(ABC):
    """Repository operations available inside one store transaction."""

    # Services ---------------------------------------------------------------

    @abstractmethod
    def get_service(self, service_id: UUID, *, lock: bool = False) -> Service | None:
        """Load a service; `lock=True` serializes concurrent writers on it."""

    @abstractmethod
    def add_service(self, service: Service) -> Service:
        ...

    # Contacts ---------------------------------------------------------------

    @abstractmethod
    def get_contact(self, contact_id: UUID) -> Contact | None:
        ...

    @abstractmethod
    def find_contact_by_email(self, tenant_id: UUID, email: str) -> Contact | None:
        ...

    @abstractmethod
    def add_contact(self, contact: Contact) -> Contact:
        ...

    @abstractmethod
    def save_contact(self, contact: Contact) -> Contact:
        ...

    # Appointments -----------------------------------------------------------

    @abstractmethod
    def get_appointment(self, appointment_id: UUID, *, lock: bool = False) -> Appointment | None:
        ...

    @abstractmethod
    def list_active_appointments(
        self,
        service_id: UUID,
        window_start: datetime,
        window_end: datetime,
    ) -> list[Appointment]:
        """Active appointments of a service intersecting [window_start, window_end)."""

    @abstractmethod
    def add_appointment(self, appointment: Appointment) -> Appointment:
        ...

    @abstractmethod
    def save_appointment(self, appointment: Appointment) -> Appointment:
        ...


class BookingStore(ABC):
    """Factory for units of work over one backing store."""

    backend: str = "abstract"

    @abstractmethod
    def begin(self) -> AbstractContextManager[UnitOfWork]:
        """Atomic unit of work; commits on success, rolls back on error."""

    @abstractmethod
    def read(self) -> AbstractContextManager[UnitOfWork]:
        """Lock-free read-only unit of work."""
