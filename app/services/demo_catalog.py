"""
Demo catalog seed for local development.

    flask seed-demo-catalog

Creates a handful of companies, staff, health tests, devices and vehicles.
Idempotent: records are keyed by name (serial number for equipment) and
existing ones are left untouched.
"""

import logging

from sqlalchemy import select

from app.models import db
from app.models.catalog import Company, Equipment, HealthTest, Staff

logger = logging.getLogger(__name__)

DEMO_COMPANIES = [
    {"name": "Global Lojistik A.Ş.", "authorized_person": "Ayşe Demir",
     "phone": "0212 555 10 10", "email": "ik@globallojistik.example",
     "address": "Tuzla OSB, İstanbul", "sector": "Lojistik", "risk_level": "High"},
    {"name": "Tekno Market Ltd.", "authorized_person": "Mehmet Yılmaz",
     "phone": "0216 555 20 20", "email": "info@teknomarket.example",
     "address": "Ataşehir, İstanbul", "sector": "Perakende", "risk_level": "Low"},
    {"name": "Sanayi Devleri A.Ş.", "authorized_person": "Zeynep Kaya",
     "phone": "0262 555 30 30", "email": "isg@sanayidevleri.example",
     "address": "Gebze, Kocaeli", "sector": "Metal", "risk_level": "Critical"},
]

DEMO_STAFF = [
    {"name": "Dr. Selin Kaya", "title": "İşyeri Hekimi", "role": "Doctor", "phone": "0532 111 22 33"},
    {"name": "Elif Şahin", "title": "Hemşire", "role": "Nurse", "phone": "0533 222 33 44"},
    {"name": "Burak Çelik", "title": "Laborant", "role": "Lab", "phone": "0534 333 44 55"},
    {"name": "Deniz Aydın", "title": "Odyometrist", "role": "Audio", "phone": "0535 444 55 66"},
    {"name": "Can Öztürk", "title": "Röntgen Teknisyeni", "role": "Radiology", "phone": ""},
    {"name": "Hakan Arslan", "title": "Şoför", "role": "Staff", "phone": "0536 555 66 77"},
]

DEMO_TESTS = [
    {"name": "Hemogram", "category": "Laboratuvar", "price": 150},
    {"name": "Akciğer Grafisi", "category": "Radyoloji", "price": 300},
    {"name": "Odyometri", "category": "İşitme", "price": 200},
    {"name": "Solunum Fonksiyon Testi", "category": "Solunum", "price": 200},
    {"name": "EKG", "category": "Kardiyoloji", "price": 180},
    {"name": "Göz Muayenesi", "category": "Diğer İşlemler", "price": 120},
]

DEMO_EQUIPMENT = [
    {"name": "Odyometri Cihazı", "serial_number": "OD-2024-001", "equipment_type": "Device"},
    {"name": "Spirometre", "serial_number": "SP-2023-114", "equipment_type": "Device"},
    {"name": "EKG Cihazı", "serial_number": "EK-2022-031", "equipment_type": "Device",
     "status": "Maintenance"},
    {"name": "Mobil Röntgen Aracı", "serial_number": "34 ABC 123", "equipment_type": "Vehicle"},
    {"name": "Mobil Tarama Aracı", "serial_number": "34 XYZ 789", "equipment_type": "Vehicle"},
]


def _seed(model, rows, key):
    created = 0
    for row in rows:
        exists = db.session.execute(
            select(model).where(getattr(model, key) == row[key])
        ).scalar_one_or_none()
        if exists:
            continue
        db.session.add(model(**row))
        created += 1
    return created


def seed_demo_catalog():
    """Insert missing demo records and return how many were created."""
    created = (
        _seed(Company, DEMO_COMPANIES, "name")
        + _seed(Staff, DEMO_STAFF, "name")
        + _seed(HealthTest, DEMO_TESTS, "name")
        + _seed(Equipment, DEMO_EQUIPMENT, "serial_number")
    )
    db.session.commit()
    logger.info("Demo catalog seeded", extra={"event_type": "seed_demo_catalog"})
    return created
