import os

# Must be set before any application module reads config.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_TIMEZONE"] = "UTC"
os.environ.pop("FIREBASE_SERVICE_ACCOUNT", None)

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from database import Base, get_db
from main import app
from models.family_contact import FamilyContact
from models.medication import Medication
from models.user import User
from routers.auth import create_access_token
from services.security import hash_password

test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

NOW = datetime(2026, 10, 19, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=test_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def client(db):
    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def make_user(db, username="alice", name="Alice", **kwargs) -> User:
    user = User(
        username=username,
        password_hash=hash_password("secret123"),
        name=name,
        email=f"{username}@example.com",
        role=kwargs.pop("role", "user"),
        **kwargs,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_medication(db, user, **kwargs) -> Medication:
    fields = dict(
        name="Aspirin",
        dosage="1 tablet",
        frequency="3 times a day",
        times_per_day=3,
        total_quantity=30,
        remaining_quantity=30,
        dosage_per_time=1,
        start_date=NOW,
        is_active=True,
    )
    reminder_times = kwargs.pop("reminder_times", ["08:00", "12:00", "18:00"])
    fields.update(kwargs)
    med = Medication(user_id=user.id, **fields)
    med.reminder_time_list = reminder_times
    db.add(med)
    db.commit()
    db.refresh(med)
    return med


def make_contact(db, user, **kwargs) -> FamilyContact:
    fields = dict(
        contact_name="Bob",
        contact_email="bob@example.com",
        relationship="son",
        notify_on_low_stock=True,
        notify_on_missed_dose=False,
        is_active=True,
    )
    fields.update(kwargs)
    contact = FamilyContact(user_id=user.id, **fields)
    db.add(contact)
    db.commit()
    db.refresh(contact)
    return contact


def auth_headers(user) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


@pytest.fixture
def user(db):
    return make_user(db)


@pytest.fixture
def headers(user):
    return auth_headers(user)


class FakeSMTP:
    """Stands in for smtplib.SMTP_SSL / smtplib.SMTP and records what was sent."""

    sent = []
    calls = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def ehlo(self):
        FakeSMTP.calls.append("ehlo")

    def has_extn(self, name):
        return name == "starttls"

    def starttls(self):
        FakeSMTP.calls.append("starttls")

    def login(self, user, password):
        FakeSMTP.calls.append("login")

    def send_message(self, msg):
        FakeSMTP.sent.append(msg)


@pytest.fixture
def fake_smtp(monkeypatch):
    FakeSMTP.sent = []
    FakeSMTP.calls = []
    monkeypatch.setattr("smtplib.SMTP_SSL", FakeSMTP)
    monkeypatch.setattr("smtplib.SMTP", FakeSMTP)
    return FakeSMTP
