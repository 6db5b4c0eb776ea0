"""
Shared pytest fixtures for the Field Screening Operations test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - catalog: SqlAlchemyCatalog bound to the test database
    - demo: small committed catalog (company, staff, tests, equipment)
"""

import pytest

from app import create_app
from app.models import db as _db
from app.models.catalog import Company, Equipment, HealthTest, Staff
from app.services.catalog import SqlAlchemyCatalog


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    application = create_app("testing")
    return application


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def catalog():
    return SqlAlchemyCatalog()


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def demo():
    """Commit a small catalog and return the records keyed by short name."""
    records = {
        "acme": Company(id="c-acme", name="Acme", authorized_person="Ali Veli",
                        phone="0212 000 00 00", address="Kadıköy, İstanbul",
                        sector="Gıda"),
        "beta": Company(id="c-beta", name="Beta Lojistik", sector="Lojistik"),
        "doctor": Staff(id="s-doc", name="Dr. Selin Kaya", title="İşyeri Hekimi",
                        role="Doctor", phone="0532 111 22 33"),
        "nurse": Staff(id="s-nurse", name="Elif Şahin", title="Hemşire",
                       role="Nurse", phone="+90 533 222 33 44"),
        "driver": Staff(id="s-driver", name="Hakan Arslan", title="Şoför",
                        role="Staff", phone=""),
        "hemogram": HealthTest(id="t-hemo", name="Hemogram", category="Laboratuvar"),
        "audio": HealthTest(id="t-audio", name="Odyometri", category="İşitme"),
        "xray": HealthTest(id="t-xray", name="Akciğer Grafisi", category="Radyoloji"),
        "spiro": Equipment(id="e-spiro", name="Spirometre", serial_number="SP-001",
                           equipment_type="Device", status="Active"),
        "ekg": Equipment(id="e-ekg", name="EKG Cihazı", serial_number="EK-002",
                         equipment_type="Device", status="Maintenance"),
        "van": Equipment(id="e-van", name="Mobil Tarama Aracı", serial_number="34 ABC 123",
                         equipment_type="Vehicle", status="Active"),
    }
    _db.session.add_all(records.values())
    _db.session.commit()
    return records
