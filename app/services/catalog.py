"""
Resource Catalog — repository interface and SQLAlchemy implementation.

The operation wizard and lifecycle manager never touch the session directly;
they receive a ResourceCatalog and call whole-record reads and writes by
identity. All records cross this boundary as plain dicts.

Functions:
    - ResourceCatalog:     abstract interface (reads + appointment/equipment writes)
    - SqlAlchemyCatalog:   Flask-SQLAlchemy backed implementation
    - get_catalog:         default catalog instance used by blueprints
"""

import logging
from abc import ABC, abstractmethod
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from app.core.exceptions import CollaboratorError, NotFoundError
from app.models import db
from app.models.catalog import Company, Equipment, HealthTest, Staff, new_id
from app.models.operation import Appointment
from app.utils.helpers import parse_date

logger = logging.getLogger(__name__)


class ResourceCatalog(ABC):
    """Externally owned store of companies, staff, tests, equipment and operations."""

    # ── Reads ────────────────────────────────────────────────────────────

    @abstractmethod
    def list_companies(self) -> list[dict]:
        """Return all companies."""

    @abstractmethod
    def list_staff(self) -> list[dict]:
        """Return all staff records."""

    @abstractmethod
    def list_tests(self) -> list[dict]:
        """Return the health test pool."""

    @abstractmethod
    def list_equipment(self, equipment_type: str | None = None) -> list[dict]:
        """Return equipment, optionally restricted to one subtype."""

    @abstractmethod
    def get_company(self, company_id: str) -> dict | None:
        """Return one company or None."""

    @abstractmethod
    def get_appointment(self, appointment_id: str) -> dict | None:
        """Return one appointment or None."""

    @abstractmethod
    def list_appointments(self, **filters) -> list[dict]:
        """Return appointments matching status/company_id/date filters."""

    # ── Writes ───────────────────────────────────────────────────────────

    @abstractmethod
    def create_appointment(self, record: dict) -> dict:
        """Persist a new appointment."""

    @abstractmethod
    def update_appointment(self, record: dict) -> dict:
        """Overwrite an existing appointment (whole record, keyed by id)."""

    @abstractmethod
    def delete_appointment(self, appointment_id: str) -> None:
        """Delete an appointment; dependent data is the store's concern."""

    @abstractmethod
    def create_equipment(self, record: dict) -> dict:
        """Persist a new equipment/vehicle record."""


# ── Column mapping ──────────────────────────────────────────────────────────

_APPOINTMENT_COLUMNS = (
    "company_id", "title", "date", "start_time", "end_time",
    "duration_minutes", "type", "status",
    "staff_ids", "test_ids", "equipment_ids",
)


def _apply_appointment_fields(appointment: Appointment, record: dict) -> None:
    for column in _APPOINTMENT_COLUMNS:
        value = record.get(column)
        if column == "date":
            value = parse_date(value)
        elif column in ("staff_ids", "test_ids", "equipment_ids"):
            value = list(value or [])
        setattr(appointment, column, value)


class SqlAlchemyCatalog(ResourceCatalog):
    """Catalog backed by the application database."""

    def __init__(self, session=None) -> None:
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    # ── Reads ────────────────────────────────────────────────────────────

    def list_companies(self) -> list[dict]:
        rows = self.session.execute(select(Company).order_by(Company.name)).scalars().all()
        return [c.to_dict() for c in rows]

    def list_staff(self) -> list[dict]:
        rows = self.session.execute(select(Staff).order_by(Staff.name)).scalars().all()
        return [s.to_dict() for s in rows]

    def list_tests(self) -> list[dict]:
        rows = self.session.execute(select(HealthTest).order_by(HealthTest.name)).scalars().all()
        return [t.to_dict() for t in rows]

    def list_equipment(self, equipment_type: str | None = None) -> list[dict]:
        stmt = select(Equipment)
        if equipment_type:
            stmt = stmt.where(Equipment.equipment_type == equipment_type)
        rows = self.session.execute(stmt.order_by(Equipment.name)).scalars().all()
        return [e.to_dict() for e in rows]

    def get_company(self, company_id: str) -> dict | None:
        if not company_id:
            return None
        company = self.session.get(Company, company_id)
        return company.to_dict() if company else None

    def get_appointment(self, appointment_id: str) -> dict | None:
        appointment = self.session.get(Appointment, appointment_id)
        return appointment.to_dict() if appointment else None

    def list_appointments(
        self,
        status: str | None = None,
        company_id: str | None = None,
        on_date: date | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> list[dict]:
        stmt = select(Appointment)
        if status:
            stmt = stmt.where(Appointment.status == status)
        if company_id:
            stmt = stmt.where(Appointment.company_id == company_id)
        if on_date:
            stmt = stmt.where(Appointment.date == on_date)
        if date_from:
            stmt = stmt.where(Appointment.date >= date_from)
        if date_to:
            stmt = stmt.where(Appointment.date <= date_to)
        stmt = stmt.order_by(Appointment.date.desc(), Appointment.start_time)
        return [a.to_dict() for a in self.session.execute(stmt).scalars().all()]

    # ── Writes ───────────────────────────────────────────────────────────

    def _commit(self, action: str, entity_id: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Catalog %s failed for id=%s", action, entity_id)
            raise CollaboratorError("catalog", f"{action} failed") from exc

    def create_appointment(self, record: dict) -> dict:
        appointment = Appointment(id=record.get("id") or new_id())
        _apply_appointment_fields(appointment, record)
        self.session.add(appointment)
        self._commit("create_appointment", appointment.id)
        return appointment.to_dict()

    def update_appointment(self, record: dict) -> dict:
        appointment = self.session.get(Appointment, record.get("id"))
        if not appointment:
            raise NotFoundError(resource="Appointment", resource_id=record.get("id"))
        _apply_appointment_fields(appointment, record)
        self._commit("update_appointment", appointment.id)
        return appointment.to_dict()

    def delete_appointment(self, appointment_id: str) -> None:
        appointment = self.session.get(Appointment, appointment_id)
        if not appointment:
            raise NotFoundError(resource="Appointment", resource_id=appointment_id)
        self.session.delete(appointment)
        self._commit("delete_appointment", appointment_id)

    def create_equipment(self, record: dict) -> dict:
        item = Equipment(
            id=record.get("id") or new_id(),
            name=record["name"],
            serial_number=record["serial_number"],
            equipment_type=record.get("equipment_type", "Device"),
            status=record.get("status", "Active"),
        )
        self.session.add(item)
        self._commit("create_equipment", item.id)
        return item.to_dict()


def get_catalog() -> ResourceCatalog:
    """Return the catalog bound to the current app's database session."""
    return SqlAlchemyCatalog()
