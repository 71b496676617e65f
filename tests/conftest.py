import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from fieldkiosk import config, models_local, models_notifications, models_stats  # noqa: F401
from fieldkiosk.database import Base, get_db
from fieldkiosk.integrations.salesforce import SalesforceClient, clear_token_cache
from fieldkiosk.local_database import LocalBase, get_local_db
from fieldkiosk.main import app
from fieldkiosk.models import Employee, generate_id

API_KEY = "test-kiosk-key"
SYNC_SECRET = "test-sync-secret"
SALESFORCE_URL = "https://example.my.salesforce.com"


def _memory_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def db():
    engine = _memory_engine()
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def local_db():
    engine = _memory_engine()
    LocalBase.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture(autouse=True)
def test_config(monkeypatch):
    monkeypatch.setattr(config, "KIOSK_API_KEY", API_KEY)
    monkeypatch.setattr(config, "SYNC_SECRET", SYNC_SECRET)
    for name in (
        "TWILIO_ACCOUNT_SID",
        "TWILIO_AUTH_TOKEN",
        "TWILIO_PHONE_NUMBER",
        "SENDGRID_API_KEY",
        "RESEND_API_KEY",
        "ZAPIER_WEBHOOK_URL",
    ):
        monkeypatch.setattr(config, name, None)
    clear_token_cache()
    yield
    clear_token_cache()


@pytest.fixture
def client(db, local_db):
    def override_get_db():
        yield db

    def override_get_local_db():
        yield local_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_local_db] = override_get_local_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def api_headers():
    return {"X-API-Key": API_KEY}


@pytest.fixture
def secret_headers():
    return {"Authorization": f"Bearer {SYNC_SECRET}"}


@pytest.fixture
def make_employee(db):
    def _make(**overrides):
        values = {
            "id": generate_id(),
            "email": f"{generate_id()[:8]}@example.com",
            "first_name": "John",
            "last_name": "Smith",
            "role": "surveyor",
            "status": "active",
        }
        values.update(overrides)
        employee = Employee(**values)
        db.add(employee)
        db.commit()
        db.refresh(employee)
        return employee

    return _make


@pytest.fixture
def survey_payload():
    def _payload(employee_id, **overrides):
        payload = {
            "id": generate_id(),
            "employee_id": employee_id,
            "store": "lowes",
            "category": "survey",
            "answers": {
                "buys_bottled_water": "Yes",
                "is_homeowner": "Yes",
                "tastes_odors": "No",
                "water_source": "City",
                "contact_info": {
                    "firstName": "Jane",
                    "lastName": "Doe",
                    "phone": "8505551234",
                    "address": "1 Main St",
                    "city": "Pensacola",
                    "state": "Florida",
                    "zipCode": "32501",
                },
            },
        }
        payload.update(overrides)
        return payload

    return _payload


@pytest.fixture
def make_salesforce():
    """SalesforceClient whose HTTP calls go to ``handler``; the OAuth token call is answered here"""

    def _make(handler, **kwargs):
        def route(request):
            if request.url.path == "/services/oauth2/token":
                return httpx.Response(200, json={"access_token": "sf-token"})
            return handler(request)

        return SalesforceClient(
            instance_url=SALESFORCE_URL,
            client_id="client-id",
            client_secret="client-secret",
            username="api@example.com",
            password="password",
            security_token="token",
            api_version="v57.0",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(route)),
            **kwargs,
        )

    return _make
