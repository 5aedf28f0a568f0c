import copy
import math
from datetime import datetime, timezone

import pytest
from bson import ObjectId

from rentalcrm.services.change_tracker import (
    TRACKED_FIELDS,
    build_update_document,
    compute_update,
    format_time,
    is_empty,
    to_number,
)

NOW = datetime(2025, 4, 2, 15, 30, 0, tzinfo=timezone.utc)


@pytest.fixture
def existing() -> dict:
    return {
        "_id": ObjectId(),
        "fullName": "John Doe",
        "email": "john@travelers.io",
        "phoneNumber": "555-0100",
        "rentalCompany": "Hertz",
        "confirmationNumber": "HZ-12345",
        "vehicleImage": "",
        "total": 100,
        "mco": 0,
        "payableAtPickup": 0,
        "pickupDate": "2025-05-01",
        "dropoffDate": "2025-05-05",
        "pickupTime": "09:00",
        "dropoffTime": "17:30",
        "pickupLocation": "LAX",
        "dropoffLocation": "SFO",
        "cardLast4": "4242",
        "expiration": "12/27",
        "billingAddress": "1 Main St",
        "status": "BOOKED",
        "dateOfBirth": "",
        "modificationFee": [],
        "timeline": [],
        "notes": [],
    }


def test_tracked_field_table_is_fixed():
    fields = [spec.field for spec in TRACKED_FIELDS]
    assert len(fields) == len(set(fields))
    assert fields.index("fullName") < fields.index("total") < fields.index("status")
    assert {"total", "mco", "payableAtPickup", "pickupTime", "dropoffTime", "dateOfBirth"} <= set(fields)


def test_unchanged_values_produce_no_timeline_entry(existing):
    incoming = {
        "fullName": "John Doe",
        "total": "100.00",
        "pickupTime": "09:00",
        "pickupDate": "2025-05-01",
        "status": "BOOKED",
    }

    update = compute_update(existing, incoming, "Sam Agent")

    assert update.change_descriptions == ()
    assert dict(update.field_updates) == {}
    assert update.timeline_entry is None
    assert build_update_document(update) is None


def test_missing_keys_are_never_compared(existing):
    update = compute_update(existing, {}, "Sam Agent")
    assert update.timeline_entry is None


def test_blank_total_coerces_to_zero(existing):
    existing["total"] = "12.50"

    update = compute_update(existing, {"total": ""}, "Sam Agent")

    assert update.change_descriptions == ('Change in Total: from "12.5" to "0"',)
    assert update.field_updates["total"] == 0


@pytest.mark.parametrize("raw", ["abc", "Infinity", "NaN", None])
def test_numeric_fields_always_stage_finite_numbers(existing, raw):
    update = compute_update(existing, {"mco": "40", "total": raw}, "Sam Agent")

    assert update.field_updates["mco"] == 40
    assert math.isfinite(update.field_updates["total"])
    assert 'Change in Total: from "100" to "0"' in update.change_descriptions


def test_time_formatting_is_idempotent():
    assert format_time("08:15") == "8:15"
    assert format_time(format_time("08:15")) == "8:15"
    assert format_time("00:05") == "12:05"
    assert format_time("12:30") == "12:30"
    assert format_time("13:00") == "1:00"
    assert format_time("") == ""


def test_same_time_is_not_a_change(existing):
    existing["pickupTime"] = "23:30"
    update = compute_update(existing, {"pickupTime": "23:30"}, "Sam Agent")
    assert update.timeline_entry is None


def test_time_change_is_described_in_twelve_hour_form(existing):
    existing["dropoffTime"] = ""

    update = compute_update(existing, {"pickupTime": "14:45", "dropoffTime": "08:00"}, "Sam Agent")

    assert update.change_descriptions == (
        'Change in Pickup Time: from "9:00" to "2:45"',
        'Change in Dropoff Time: to "8:00"',
    )
    assert update.field_updates["pickupTime"] == "14:45"


def test_date_from_empty_has_no_from_clause(existing):
    existing["pickupDate"] = ""

    update = compute_update(existing, {"pickupDate": "2025-05-01"}, "Sam Agent")

    assert update.change_descriptions == ('Change in Pickup Date: to "2025-05-01"',)
    assert update.field_updates["pickupDate"] == "2025-05-01"


def test_clearing_a_date_stages_none(existing):
    update = compute_update(existing, {"dropoffDate": ""}, "Sam Agent")

    assert update.change_descriptions == ('Change in Dropoff Date: from "2025-05-05" to "null"',)
    assert update.field_updates["dropoffDate"] is None


def test_plain_field_treats_null_string_as_empty(existing):
    existing["dateOfBirth"] = "null"

    update = compute_update(existing, {"dateOfBirth": "1990-01-01"}, "Sam Agent")

    assert update.change_descriptions == ('Change in Date of Birth: to "1990-01-01"',)


def test_modification_fee_records_last_charge(existing):
    fees = [{"charge": "25.00"}]

    update = compute_update(existing, {"modificationFee": fees}, "Sam Agent")

    assert update.change_descriptions == ("Modification fee added: $25.00",)
    assert update.field_updates["modificationFee"] == [{"charge": "25.00"}]


def test_modification_fee_stages_whole_list(existing):
    existing["modificationFee"] = [{"charge": "25.00"}]
    fees = [{"charge": "25.00"}, {"charge": "40.00"}]

    update = compute_update(existing, {"modificationFee": fees, "fullName": "Jane Doe"}, "Sam Agent")

    assert update.change_descriptions[0] == "Modification fee added: $40.00"
    assert update.field_updates["modificationFee"] == fees
    assert update.timeline_entry["message"] == "Updated 2 field(s)"


@pytest.mark.parametrize("fees", [[], [{"charge": "25.00"}]])
def test_unchanged_or_empty_fee_list_is_ignored(existing, fees):
    existing["modificationFee"] = [{"charge": "25.00"}]
    update = compute_update(existing, {"modificationFee": fees}, "Sam Agent")
    assert update.timeline_entry is None


def test_one_entry_per_update_in_table_order(existing):
    incoming = {"total": "20", "pickupDate": "2025-06-01", "email": "jd@travelers.io"}

    update = compute_update(existing, incoming, "Sam Agent", now=NOW)

    entry = update.timeline_entry
    assert entry["message"] == "Updated 3 field(s)"
    assert entry["agentName"] == "Sam Agent"
    assert entry["date"] == "2025-04-02T15:30:00.000Z"
    assert [change["text"] for change in entry["changes"]] == [
        'Change in Pickup Date: from "2025-05-01" to "2025-06-01"',
        'Change in Email: from "john@travelers.io" to "jd@travelers.io"',
        'Change in Total: from "100" to "20"',
    ]


def test_name_and_total_scenario():
    existing = {"fullName": "John Doe", "total": "100", "pickupTime": "09:00"}

    update = compute_update(existing, {"fullName": "Jane Doe", "total": "150.5"}, "Sam Agent")

    assert list(update.change_descriptions) == [
        'Change in Full Name: from "John Doe" to "Jane Doe"',
        'Change in Total: from "100" to "150.5"',
    ]
    assert "pickupTime" not in update.field_updates
    assert update.field_updates["total"] == 150.5


def test_status_is_a_plain_field(existing):
    update = compute_update(existing, {"status": "CANCELLED"}, "Sam Agent")
    assert update.change_descriptions == ('Change in Status: from "BOOKED" to "CANCELLED"',)


def test_missing_agent_name_becomes_empty_string(existing):
    update = compute_update(existing, {"fullName": "Jane Doe"}, None)
    assert update.timeline_entry["agentName"] == ""


def test_existing_booking_is_not_mutated(existing):
    snapshot = copy.deepcopy(existing)

    compute_update(existing, {"fullName": "Jane Doe", "modificationFee": [{"charge": "5"}]}, "Sam Agent")

    assert existing == snapshot


def test_result_is_read_only(existing):
    update = compute_update(existing, {"fullName": "Jane Doe"}, "Sam Agent")
    with pytest.raises(TypeError):
        update.field_updates["fullName"] = "Someone Else"


def test_update_document_sets_fields_and_pushes_entry(existing):
    update = compute_update(existing, {"fullName": "Jane Doe"}, "Sam Agent", now=NOW)

    document = build_update_document(update, now=NOW)

    assert document["$set"] == {"fullName": "Jane Doe", "updatedAt": NOW}
    assert document["$push"] == {"timeline": update.timeline_entry}


@pytest.mark.parametrize("value, expected", [(None, True), ("", True), ("null", True), ("0", False), (0, False)])
def test_is_empty(value, expected):
    assert is_empty(value) is expected


def test_to_number():
    assert to_number("12.50") == 12.5
    assert to_number("100") == 100
    assert to_number("") == 0
    assert to_number("1e400") == 0


def test_seconds_in_time_are_ignored(existing):
    existing["pickupTime"] = "08:15"

    update = compute_update(existing, {"pickupTime": "08:15:00"}, "Sam Agent")

    assert format_time("08:15:00") == "8:15"
    assert update.timeline_entry is None


def test_plain_field_compares_literal_values(existing):
    existing["status"] = 1

    update = compute_update(existing, {"status": True}, "Sam Agent")

    assert update.change_descriptions == ('Change in Status: from "1" to "true"',)
    assert update.field_updates["status"] is True
