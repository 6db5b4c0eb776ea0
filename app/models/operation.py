"""
Field Screening Operations Platform
Screening Operation (Appointment) domain model.

Models:
    - Appointment: time-boxed company visit bundling tests, staff and
                   equipment/vehicles

Architecture:
    Company ──1:N──▶ Appointment            (company_id, not FK-enforced)
    Appointment ──▶ staff_ids / test_ids / equipment_ids  (Selection Sets)

Lifecycle states:
    Appointment:  Planned ⇄ Completed ⇄ Cancelled  (unguarded)
"""

from datetime import datetime, timezone

from app.models import db


# ── Constants ────────────────────────────────────────────────────────────────

APPOINTMENT_TYPES = {"Screening", "Training", "Consultation", "Vehicle"}

APPOINTMENT_STATUSES = {"Planned", "Completed", "Cancelled"}

DEFAULT_STATUS = "Planned"

SELECTION_FIELDS = ("staff_ids", "test_ids", "equipment_ids")

TYPE_LABELS = {
    "Screening": "Mobil Tarama (Araçlı)",
    "Consultation": "Yerinde Hizmet",
    "Training": "Eğitim",
    "Vehicle": "Araç Bakım",
}

STATUS_LABELS = {
    "Planned": "Planlandı",
    "Completed": "Tamamlandı",
    "Cancelled": "İptal Edildi",
}


class Appointment(db.Model):
    """
    Screening operation record.

    company_id is a plain identity string; the catalog is trusted for it.
    Selection Sets are stored as JSON lists of identities.
    """

    __tablename__ = "appointments"

    id = db.Column(db.String(32), primary_key=True)
    company_id = db.Column(db.String(32), nullable=False, index=True)
    title = db.Column(db.String(300), nullable=False)
    date = db.Column(db.Date, nullable=False, index=True)
    start_time = db.Column(db.String(5), nullable=True, comment="HH:MM")
    end_time = db.Column(db.String(5), nullable=True, comment="HH:MM")
    duration_minutes = db.Column(db.Integer, default=0)
    type = db.Column(db.String(20), default="Screening",
                     comment="Screening, Training, Consultation, Vehicle")
    status = db.Column(db.String(20), default=DEFAULT_STATUS,
                       comment="Planned, Completed, Cancelled")

    staff_ids = db.Column(db.JSON, default=list)
    test_ids = db.Column(db.JSON, default=list)
    equipment_ids = db.Column(db.JSON, default=list)

    created_at = db.Column(db.DateTime(timezone=True),
                           default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True),
                           default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "id": self.id,
            "company_id": self.company_id,
            "title": self.title,
            "date": self.date.isoformat() if self.date else None,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration_minutes": self.duration_minutes or 0,
            "type": self.type,
            "status": self.status,
            "staff_ids": list(self.staff_ids or []),
            "test_ids": list(self.test_ids or []),
            "equipment_ids": list(self.equipment_ids or []),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Appointment {self.id}: {self.title[:40]} [{self.status}]>"
