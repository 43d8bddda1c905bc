"""
Shared fixtures: an in-memory database and request payload builders.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date, timedelta
import uuid

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from autoquote.db import engine, initialize_database
from autoquote.main import app

initialize_database()

VALID_CARD = "4242424242424242"


def birth_date_for_age(age: int) -> date:
    """A birth date that rates as ``age`` whatever today's date is."""
    return date.today() - timedelta(days=int((age + 0.5) * 365.25))


def vehicle_year_for_age(age: int) -> int:
    return date.today().year - age


def unique_email(prefix: str = "driver") -> str:
    return f"{prefix}.{uuid.uuid4().hex[:8]}@example.com"


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def session():
    with Session(engine) as db_session:
        yield db_session


@pytest.fixture
def driver_payload():
    def build(age: int = 35, email: str = None, **overrides):
        payload = {
            "firstName": "Jordan",
            "lastName": "Reyes",
            "birthDate": birth_date_for_age(age).isoformat(),
            "email": email or unique_email(),
            "phone": "555-0100",
            "yearsLicensed": 12,
            "licenseNumber": "D1234567",
            "licenseState": "CA",
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def vehicle_payload():
    def build(age: int = 6, **overrides):
        payload = {
            "year": vehicle_year_for_age(age),
            "make": "Honda",
            "model": "Accord",
            "vin": "1HGCV1F30LA000001",
            "annualMileage": 12000,
        }
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def address_payload():
    return {
        "addressLine1": "100 Market St",
        "city": "San Francisco",
        "state": "CA",
        "zipCode": "94105",
    }


@pytest.fixture
def coverage_payload():
    """Coverages rated at 1.5: 100/300 BI, 50000 PD, collision at $500."""
    return {
        "bodilyInjuryLimit": "100/300",
        "propertyDamageLimit": "50000",
        "collision": True,
        "collisionDeductible": 500,
    }


@pytest.fixture
def quote_payload(driver_payload, vehicle_payload, address_payload, coverage_payload):
    def build(complete: bool = True, vehicles=None, **overrides):
        payload = {
            "driver": driver_payload(),
            "address": address_payload,
            "vehicles": vehicles if vehicles is not None else [vehicle_payload()],
        }
        if complete:
            payload["coverages"] = coverage_payload
        payload.update(overrides)
        return payload
    return build


@pytest.fixture
def create_quote(client, quote_payload):
    """Create a quote through the API and return the response body."""
    def create(complete: bool = True, **overrides):
        response = client.post("/api/v1/quotes", json=quote_payload(complete=complete, **overrides))
        assert response.status_code == 201, response.text
        return response.json()
    return create


@pytest.fixture
def bind_quote(client):
    def bind(quote_number: str, card_number: str = VALID_CARD, headers=None):
        return client.post(
            "/api/v1/policies/bind",
            json={
                "quoteNumber": quote_number,
                "paymentMethod": "credit_card",
                "cardNumber": card_number,
                "cardExpiry": "12/30",
                "cardCvv": "123",
            },
            headers=headers or {}
        )
    return bind


@pytest.fixture
def bound_policy(create_quote, bind_quote):
    quote = create_quote()
    response = bind_quote(quote["quote_number"])
    assert response.status_code == 200, response.text
    return response.json()
