import asyncio

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from rentalcrm import database
from rentalcrm.main import app
from rentalcrm.models.agents import Agent, create_agent
from rentalcrm.utils.auth_utils import create_access_token

AGENT_ID = "65f1c0ffee0000000000a001"
AGENT_NAME = "Sam Agent"


def make_booking_payload(**overrides):
    payload = {
        "fullName": "John Doe",
        "email": "John.Doe@Travelers.io",
        "phoneNumber": "555-0100",
        "rentalCompany": "Hertz",
        "confirmationNumber": "HZ-12345",
        "cardLast4": "4242",
        "expiration": "12/27",
        "billingAddress": "1 Main St, Springfield",
        "pickupDate": "2025-05-01",
        "dropoffDate": "2025-05-05",
        "pickupTime": "09:00",
        "dropoffTime": "17:30",
        "pickupLocation": "LAX",
        "dropoffLocation": "SFO",
        "total": "100",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def mock_db(monkeypatch):
    db = AsyncMongoMockClient()["rental_crm_test"]
    monkeypatch.setattr(database, "db", db)
    return db


@pytest.fixture
def client(mock_db) -> TestClient:
    return TestClient(app)


@pytest.fixture
def agent_headers() -> dict:
    token = create_access_token({"id": AGENT_ID, "email": "sam@bookfly.io", "name": AGENT_NAME})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def seeded_agent(mock_db) -> str:
    agent = Agent(name=AGENT_NAME, email="sam@bookfly.io", password="S3cret!pass")
    return asyncio.run(create_agent(agent))


@pytest.fixture
def sent_emails(monkeypatch) -> list:
    """Capture outgoing mail instead of talking to SMTP."""
    sent = []

    def fake_send(to_email, subject, html):
        sent.append({"to": to_email, "subject": subject, "html": html})

    monkeypatch.setattr("rentalcrm.services.auth.send_email", fake_send)
    monkeypatch.setattr("rentalcrm.routes.email.send_email", fake_send)
    return sent


@pytest.fixture
def booking(client, agent_headers) -> dict:
    response = client.post("/api/bookings/", json=make_booking_payload(), headers=agent_headers)
    assert response.status_code == 201
    return response.json()["data"]["booking"]
