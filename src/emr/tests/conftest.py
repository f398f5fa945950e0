"""Shared fixtures: an in-memory database per test, a Storage facade on top of
it, and an API client whose requests use the same database."""

import sys
from datetime import date, time
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Adjust path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from emr import schemas, security
from emr.database import Base, get_db, make_engine
from emr.main import app
from emr.storage import Storage


@pytest.fixture
def engine():
    test_engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def storage(db):
    return Storage(db)


@pytest.fixture
def doctor(storage):
    return storage.upsert_user(schemas.UserUpsert(
        id="doc-1",
        email="house@ppth.org",
        first_name="Gregory",
        last_name="House",
        specialty="Diagnostics",
    ))


@pytest.fixture
def admin(storage):
    return storage.upsert_user(schemas.UserUpsert(
        id="admin-1",
        email="cuddy@ppth.org",
        first_name="Lisa",
        last_name="Cuddy",
        role="admin",
    ))


@pytest.fixture
def patient(storage):
    return storage.create_patient(schemas.PatientCreate(
        first_name="Ada",
        last_name="Lovelace",
        email="ada@example.com",
        status="active",
    ))


@pytest.fixture
def make_appointment(storage, patient, doctor):
    def _make(**overrides):
        fields = {
            "patient_id": patient.id,
            "doctor_id": doctor.id,
            "date": date(2024, 6, 1),
            "time": time(9, 0),
            "type": "consultation",
        }
        fields.update(overrides)
        return storage.create_appointment(schemas.AppointmentCreate(**fields))

    return _make


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user) -> dict:
    token = security.create_access_token(subject=user.id, role=user.role)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def doctor_headers(doctor):
    return auth_headers(doctor)


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)
