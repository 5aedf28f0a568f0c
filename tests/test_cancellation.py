from conftest import make_booking_payload

from rentalcrm.services.bookings import cancellation_update

CANCELLATION = {
    "fullName": "Rita Moreno",
    "phoneNumber": "555-0199",
    "rentalCompany": "Avis",
    "confirmationNumber": "AV-778",
    "pickupDate": "2025-07-01",
    "dropoffDate": "2025-07-03",
    "pickupLocation": "JFK",
    "dropoffLocation": "JFK",
    "cardLast4": "1111",
    "expiration": "01/28",
    "billingAddress": "9 Elm St",
    "dateOfBirth": "1985-02-14",
    "salesAgent": "Sam Agent",
}


def test_cancel_existing_booking(client, agent_headers, booking):
    response = client.post(
        "/api/bookings/cancel",
        json={
            "customerType": "existing",
            "bookingId": booking["_id"],
            "mco": "35",
            "refundAmount": "120",
            "salesAgent": "Sam Agent",
        },
        headers=agent_headers,
    )

    assert response.status_code == 200
    cancelled = response.json()["data"]["booking"]
    assert cancelled["status"] == "CANCELLED"
    assert cancelled["mco"] == 35
    assert cancelled["refundAmount"] == 120
    entry = cancelled["timeline"][-1]
    assert entry["message"] == "Cancellation processed by Sam Agent"
    assert [change["text"] for change in entry["changes"]] == [
        "MCO changed from $0 to $35",
        "Refund amount set to $120",
    ]


def test_cancel_unknown_booking(client, agent_headers):
    response = client.post(
        "/api/bookings/cancel",
        json={"customerType": "existing", "bookingId": "65f1c0ffee0000000000ffff"},
        headers=agent_headers,
    )
    assert response.status_code == 404


def test_new_cancellation_requires_fields(client, agent_headers):
    response = client.post("/api/bookings/cancel", json={"fullName": "Rita Moreno"}, headers=agent_headers)

    assert response.status_code == 400
    missing = response.json()["error"]["details"]["missingFields"]
    assert "salesAgent" in missing
    assert "fullName" not in missing


def test_new_cancellation_creates_cancelled_booking(client, agent_headers):
    response = client.post(
        "/api/bookings/cancel",
        json={**CANCELLATION, "mco": "25", "refundAmount": "75"},
        headers=agent_headers,
    )

    assert response.status_code == 200
    created = response.json()["data"]["booking"]
    assert created["status"] == "CANCELLED"
    assert created["salesAgent"] == "Sam Agent"
    assert len(created["timeline"]) == 1
    assert created["timeline"][0]["message"] == "Cancellation requested"
    assert [change["text"] for change in created["timeline"][0]["changes"]] == [
        "Reservation cancelled",
        "Cancellation fee applied: $25",
        "Refund amount: $75",
    ]


def test_cancellation_update_without_money_changes():
    existing = {**make_booking_payload(), "mco": 10, "refundAmount": 0}

    update = cancellation_update(existing, {"mco": "10"}, {"id": "abc"})

    assert update["$set"]["status"] == "CANCELLED"
    assert update["$set"]["mco"] == 10
    assert "refundAmount" not in update["$set"]
    entry = update["$push"]["timeline"]
    assert entry["message"] == "Cancellation processed by System"
    assert entry["changes"] == []
