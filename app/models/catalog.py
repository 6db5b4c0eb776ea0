"""
Field Screening Operations Platform
Resource Catalog domain models.

Models:
    - Company:     client company visited by a screening operation
    - Staff:       field personnel (doctors, nurses, technicians, drivers)
    - HealthTest:  screening test offered to companies
    - Equipment:   medical device or vehicle (one identity space, two subtypes)

Operations reference these records by identity only; nothing is embedded
into the Appointment row.
"""

import uuid
from datetime import datetime, timezone

from app.models import db


# ── Constants ────────────────────────────────────────────────────────────────

COMPANY_STATUSES = {"Active", "Inactive", "Pending"}
RISK_LEVELS = {"Low", "Medium", "High", "Critical"}

STAFF_ROLES = {"Doctor", "Nurse", "Lab", "Audio", "Radiology", "Staff"}
STAFF_STATUSES = {"Active", "OnLeave", "Inactive"}

EQUIPMENT_TYPES = {"Device", "Vehicle"}
EQUIPMENT_STATUSES = {"Active", "Maintenance", "Broken"}

# Effective skill tags for staff records that carry no explicit skills.
ROLE_DEFAULT_SKILLS = {
    "Doctor": ["Muayene", "Reçete", "EKG Yorum"],
    "Nurse": ["Kan Alma", "Aşı", "Pansuman"],
    "Lab": ["Kan Analizi", "Numune Alma"],
    "Audio": ["Odyometri", "SFT"],
    "Radiology": ["Röntgen", "Görüntüleme"],
    "Staff": ["Kayıt", "Saha Destek", "Sürücü"],
}


def new_id() -> str:
    """Generate an opaque record identity."""
    return uuid.uuid4().hex


def _utcnow():
    return datetime.now(timezone.utc)


# ═════════════════════════════════════════════════════════════════════════════
# 1. Company
# ═════════════════════════════════════════════════════════════════════════════


class Company(db.Model):
    """Client company. Owned by the catalog, referenced by id."""

    __tablename__ = "companies"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    name = db.Column(db.String(200), nullable=False, index=True)
    authorized_person = db.Column(db.String(150), default="")
    email = db.Column(db.String(255), default="")
    phone = db.Column(db.String(50), default="")
    address = db.Column(db.Text, default="")
    tax_info = db.Column(db.String(100), default="")
    sector = db.Column(db.String(100), nullable=True)
    risk_level = db.Column(db.String(20), default="Low",
                           comment="Low, Medium, High, Critical")
    status = db.Column(db.String(20), default="Active",
                       comment="Active, Inactive, Pending")

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "authorized_person": self.authorized_person,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "tax_info": self.tax_info,
            "sector": self.sector,
            "risk_level": self.risk_level,
            "status": self.status,
        }

    def __repr__(self):
        return f"<Company {self.id}: {self.name}>"


# ═════════════════════════════════════════════════════════════════════════════
# 2. Staff
# ═════════════════════════════════════════════════════════════════════════════


class Staff(db.Model):
    """Field personnel record."""

    __tablename__ = "staff"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    name = db.Column(db.String(150), nullable=False, index=True)
    title = db.Column(db.String(150), default="")
    role = db.Column(db.String(20), default="Staff",
                     comment="Doctor, Nurse, Lab, Audio, Radiology, Staff")
    phone = db.Column(db.String(50), default="")
    email = db.Column(db.String(255), nullable=True)
    status = db.Column(db.String(20), default="Active",
                       comment="Active, OnLeave, Inactive")
    skills = db.Column(db.JSON, nullable=True, comment="Ordered capability tags")
    blood_type = db.Column(db.String(10), nullable=True)
    hourly_rate = db.Column(db.Float, nullable=True)
    base_salary = db.Column(db.Float, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    @property
    def effective_skills(self):
        """Stored skills, or the role's default tags when none are stored."""
        if self.skills:
            return list(self.skills)
        return list(ROLE_DEFAULT_SKILLS.get(self.role, ROLE_DEFAULT_SKILLS["Staff"]))

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "title": self.title,
            "role": self.role,
            "phone": self.phone,
            "email": self.email,
            "status": self.status,
            "skills": self.effective_skills,
            "blood_type": self.blood_type,
            "hourly_rate": self.hourly_rate,
            "base_salary": self.base_salary,
        }

    def __repr__(self):
        return f"<Staff {self.id}: {self.name} ({self.role})>"


# ═════════════════════════════════════════════════════════════════════════════
# 3. HealthTest
# ═════════════════════════════════════════════════════════════════════════════


class HealthTest(db.Model):
    """Screening test from the test pool."""

    __tablename__ = "health_tests"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    name = db.Column(db.String(200), nullable=False, index=True)
    category = db.Column(db.String(100), default="")
    price = db.Column(db.Float, nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price": self.price,
        }

    def __repr__(self):
        return f"<HealthTest {self.id}: {self.name}>"


# ═════════════════════════════════════════════════════════════════════════════
# 4. Equipment
# ═════════════════════════════════════════════════════════════════════════════


class Equipment(db.Model):
    """
    Medical device or vehicle.

    Both subtypes live in one identity space; equipment_type only
    partitions browsing.
    """

    __tablename__ = "equipment"

    id = db.Column(db.String(32), primary_key=True, default=new_id)
    name = db.Column(db.String(200), nullable=False)
    serial_number = db.Column(db.String(100), nullable=False,
                              comment="Serial number or licence plate")
    equipment_type = db.Column(db.String(20), default="Device",
                               comment="Device, Vehicle")
    status = db.Column(db.String(20), default="Active",
                       comment="Active, Maintenance, Broken")

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    @property
    def is_available(self):
        return self.status == "Active"

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "serial_number": self.serial_number,
            "equipment_type": self.equipment_type,
            "status": self.status,
        }

    def __repr__(self):
        return f"<Equipment {self.id}: {self.name} [{self.equipment_type}]>"
