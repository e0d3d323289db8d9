"""Transactional SQLAlchemy store.

`begin()` runs one database transaction. Booking and status changes load the
service or appointment row with `SELECT ... FOR UPDATE`, so concurrent
writers for the same service queue behind the first one until it commits
(PostgreSQL). On SQLite the engine opens every transaction with
BEGIN IMMEDIATE instead, see `slotbook.db.session.build_engine`.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from slotbook.db.enums import ACTIVE_APPOINTMENT_STATUSES
from slotbook.db.models import Appointment, Contact, Service
from slotbook.stores.base import BookingStore, UnitOfWork


class _SqlUnitOfWork(UnitOfWork):
    def __init__(self, session: Session):
        self.session = session

    def _add(self, obj):
        self.session.add(obj)
        self.session.flush()
        return obj

    # Services

    def get_service(self, service_id: UUID, *, lock: bool = False) -> Service | None:
        query = select(Service).where(Service.id == service_id)
        if lock:
            query = query.with_for_update()
        return self.session.execute(query).scalar_one_or_none()

    def add_service(self, service: Service) -> Service:
        return self._add(service)

    # Contacts

    def get_contact(self, contact_id: UUID) -> Contact | None:
        return self.session.get(Contact, contact_id)

    def find_contact_by_email(self, tenant_id: UUID, email: str) -> Contact | None:
        return self.session.execute(
            select(Contact)
            .where(Contact.tenant_id == tenant_id, Contact.email == email)
            .order_by(Contact.created_at)
            .limit(1)
        ).scalar_one_or_none()

    def add_contact(self, contact: Contact) -> Contact:
        return self._add(contact)

    def save_contact(self, contact: Contact) -> Contact:
        return self._add(contact)

    # Appointments

    def get_appointment(self, appointment_id: UUID, *, lock: bool = False) -> Appointment | None:
        query = select(Appointment).where(Appointment.id == appointment_id)
        if lock:
            query = query.with_for_update()
        return self.session.execute(query).scalar_one_or_none()

    def list_active_appointments(
        self,
        service_id: UUID,
        window_start: datetime,
        window_end: datetime,
    ) -> list[Appointment]:
        return list(
            self.session.execute(
                select(Appointment)
                .where(
                    Appointment.service_id == service_id,
                    Appointment.status.in_(ACTIVE_APPOINTMENT_STATUSES),
                    Appointment.start_time < window_end,
                    Appointment.end_time > window_start,
                )
                .order_by(Appointment.start_time)
            ).scalars().all()
        )

    def add_appointment(self, appointment: Appointment) -> Appointment:
        return self._add(appointment)

    def save_appointment(self, appointment: Appointment) -> Appointment:
        return self._add(appointment)


class DatabaseStore(BookingStore):
    """Store backed by a relational database through SQLAlchemy."""

    backend = "database"

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine, autoflush=False, expire_on_commit=False
        )

    @contextmanager
    def begin(self) -> Iterator[UnitOfWork]:
        with self._session_factory() as session:
            with session.begin():
                yield _SqlUnitOfWork(session)

    @contextmanager
    def read(self) -> Iterator[UnitOfWork]:
        # close() ends the implicit transaction without expiring loaded rows
        with self._session_factory() as session:
            yield _SqlUnitOfWork(session)
