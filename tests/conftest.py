"""
Pytest fixtures for the auth and audit service tests.

Both apps share one in-memory SQLite database; the schema is recreated for
every test. Notification delivery is replaced with recorders.
"""

import os

# Settings are read at import time
os.environ["JWT_SECRET"] = "test-secret"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SMTP_HOST"] = ""
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["TWILIO_AUTH_TOKEN"] = ""
os.environ["TWILIO_WHATSAPP_FROM"] = ""

import pytest
from fastapi.testclient import TestClient

from audit_service.app.helpers import notification_helper
from audit_service.app.main import app as audit_app
from audit_service.app.models.reference_inventory import ReferenceInventory
from auth_service.app.main import app as auth_app
from shared.core.auth import create_user_token
from shared.core.database import Base, SessionLocal, engine
from shared.models.users import Users
from shared.utils.enums import UserRole

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-pass"
STAFF_PIN = "1234"
CLIENT_PIN = "1111"


# =============================================================================
# DATABASE
# =============================================================================

@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# NOTIFICATIONS
# =============================================================================

@pytest.fixture(autouse=True)
def notifications(monkeypatch) -> dict:
    """Record queued notifications instead of delivering them."""
    sent = {"client": [], "staff": []}

    def record_client(background_tasks, entry, client, staff_name):
        sent["client"].append({"entry_id": entry.id, "client": client.name, "staff_name": staff_name})

    def record_staff(background_tasks, entry, staff, client_name):
        sent["staff"].append({"entry_id": entry.id, "decision": entry.client_action, "client_name": client_name})

    monkeypatch.setattr(notification_helper, "notify_client", record_client)
    monkeypatch.setattr(notification_helper, "notify_staff", record_staff)
    return sent


# =============================================================================
# IDENTITIES
# =============================================================================

def make_user(db, **fields) -> Users:
    pin = fields.pop("login_pin", None)
    password = fields.pop("password", None)
    fields.setdefault("locations", [])
    user = Users(**fields)
    if pin:
        user.set_login_pin(pin)
    if password:
        user.set_password(password)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_user(db) -> Users:
    return make_user(db, name="Admin", role=UserRole.ADMIN.value,
                     email=ADMIN_EMAIL, password=ADMIN_PASSWORD)


@pytest.fixture
def staff_user(db) -> Users:
    return make_user(db, name="Sam Staff", role=UserRole.STAFF.value,
                     unique_code="S001", login_pin=STAFF_PIN,
                     locations=["Aisle 1", "Aisle 2"], email="sam@example.com")


@pytest.fixture
def client_user(db) -> Users:
    return make_user(db, name="Alpha Client", role=UserRole.CLIENT.value,
                     unique_code="C001", login_pin=CLIENT_PIN, locations=["Aisle 1"])


@pytest.fixture
def other_client(db) -> Users:
    return make_user(db, name="Beta Client", role=UserRole.CLIENT.value,
                     unique_code="C002", login_pin=CLIENT_PIN, locations=["Aisle 2"])


@pytest.fixture
def catalog_item(db) -> ReferenceInventory:
    item = ReferenceInventory(sku_id="12", name="Widget", picking_location="P-01",
                              bulk_location="B-07", system_quantity=10, blocked_quantity=2)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def auth_headers(user: Users) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


@pytest.fixture
def admin_headers(admin_user) -> dict:
    return auth_headers(admin_user)


@pytest.fixture
def staff_headers(staff_user) -> dict:
    return auth_headers(staff_user)


@pytest.fixture
def client_headers(client_user) -> dict:
    return auth_headers(client_user)


@pytest.fixture
def other_client_headers(other_client) -> dict:
    return auth_headers(other_client)


# =============================================================================
# CLIENTS
# =============================================================================

@pytest.fixture
def audit_client() -> TestClient:
    return TestClient(audit_app)


@pytest.fixture
def auth_client() -> TestClient:
    return TestClient(auth_app)


@pytest.fixture
def headers_for():
    return auth_headers


@pytest.fixture
def user_factory(db):
    return lambda **fields: make_user(db, **fields)
