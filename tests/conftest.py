# tests/conftest.py
import hashlib
import hmac
from unittest.mock import MagicMock

import mongomock
import pytest
from fastapi.testclient import TestClient

import config
from database import ensure_indexes, get_db
from gateway import PaymentGateway, get_gateway
from main import app
from schemas import Property as PropertySchema

KEY_SECRET = "rzp_test_secret"


def sign(order_id: str, payment_id: str, secret: str = KEY_SECRET) -> str:
    """What Razorpay's checkout widget hands back for a genuine payment."""
    return hmac.new(secret.encode("utf-8"), f"{order_id}|{payment_id}".encode("utf-8"), hashlib.sha256).hexdigest()


@pytest.fixture(autouse=True)
def no_outgoing_mail(monkeypatch):
    monkeypatch.setattr(config, "EMAIL_USER", "")


@pytest.fixture
def db():
    database = mongomock.MongoClient()["perundurai_rentals_test"]
    ensure_indexes(database)
    return database


@pytest.fixture
def razorpay_client():
    """Stands in for razorpay.Client; order.create echoes the request like the real API."""
    client = MagicMock()
    counter = {"n": 0}

    def create(data):
        counter["n"] += 1
        return {
            "id": f"order_test{counter['n']:04d}",
            "entity": "order",
            "amount": data["amount"],
            "currency": data["currency"],
            "receipt": data["receipt"],
            "status": "created",
        }

    client.order.create.side_effect = create
    return client


@pytest.fixture
def gateway(razorpay_client):
    return PaymentGateway("rzp_test_key", KEY_SECRET, client=razorpay_client)


@pytest.fixture
def client(db, gateway):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def register_user(client):
    """
    Usage:
      token, user = register_user()
      token2, user2 = register_user(email="bob@example.com")
    """
    def make_user(*, name="Alice", email="alice@example.com", password="pass12345", phone="9876500000"):
        resp = client.post(
            "/auth/register",
            json={"name": name, "email": email, "password": password, "phone": phone},
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return body["token"], body["user"]

    return make_user


@pytest.fixture
def auth_headers(register_user):
    token, _ = register_user()
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def property_factory(db):
    """
    Usage:
      pid = property_factory()
      pid2 = property_factory(title="Villa", price=50000, lat=11.33, lng=77.58)
    """
    def make_property(*, title="Test flat", price=15000, lat=11.2750, lng=77.5800, bedrooms=2, **overrides):
        doc = PropertySchema(
            title=title,
            description=overrides.pop("description", "A test listing"),
            price=price,
            location=overrides.pop("location", "Perundurai"),
            coordinates={"lat": lat, "lng": lng},
            bedrooms=bedrooms,
            bathrooms=overrides.pop("bathrooms", 1),
            area=overrides.pop("area", 900),
            owner="Owner",
            owner_phone="9876543210",
            **overrides,
        ).model_dump()
        return str(db["property"].insert_one(doc).inserted_id)

    return make_property
