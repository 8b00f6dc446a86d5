from __future__ import annotations

import uuid
from datetime import datetime, timezone

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from eventease.db import get_db
from eventease.main import app
from tests.test_auth import bearer, signup

EVENT = {
    "title": "Python Meetup",
    "description": "Talks and pizza",
    "date": "2030-06-02",
    "startTime": "10:00",
    "endTime": "11:00",
}


def _create(client: TestClient, headers: dict, **overrides):
    return client.post("/api/v1/events/create", json={**EVENT, **overrides}, headers=headers)


def test_event_lifecycle_over_http(client: TestClient, mailer, clock):
    organizer = bearer(signup(client, "org@example.com", role="organizer", first_name="Olive"))
    alice = bearer(signup(client, "alice@example.com"))
    bob = bearer(signup(client, "bob@example.com", first_name="Bob"))

    created = _create(client, organizer)
    assert created.status_code == 201
    event = created.json()["event"]
    event_id = event["id"]
    assert event["computed_status"] == "upcoming"
    assert event["meeting_link"].startswith("https://meet.jit.si/")
    assert event["organizer"]["first_name"] == "Olive"

    hidden = client.get(f"/api/v1/events/details/{event_id}", headers=bob).json()
    assert hidden["meeting_link"] == "To get the link, you need to RSVP first."
    assert hidden["is_registered"] is False

    rsvp = client.post(f"/api/v1/rsvp/{event_id}", headers=alice)
    assert rsvp.status_code == 201
    assert rsvp.json()["message"] == "RSVP successful."
    assert rsvp.json()["rsvp"]["status"] == "active"
    assert mailer.sent_to("alice@example.com")[-1].subject == "RSVP Confirmation: Python Meetup"

    again = client.post(f"/api/v1/rsvp/{event_id}", headers=alice)
    assert again.status_code == 409
    assert again.json()["code"] == "ALREADY_REGISTERED"

    count = client.get(f"/api/v1/rsvp/{event_id}/count", headers=bob).json()
    assert count == {"event_id": event_id, "participant_count": 1}

    visible = client.get(f"/api/v1/events/details/{event_id}", headers=alice).json()
    assert visible["meeting_link"] == event["meeting_link"]
    assert visible["registration_count"] == 1

    owner_attendees = client.get(f"/api/v1/rsvp/{event_id}/attendees", headers=organizer).json()["attendees"]
    assert [a["email"] for a in owner_attendees] == ["alice@example.com"]
    assert client.get(f"/api/v1/rsvp/{event_id}/attendees", headers=bob).status_code == 403

    listing = client.get("/api/v1/events/organizer/upcoming", headers=organizer).json()
    assert listing["items"][0]["registration_count"] == 1
    assert listing["pagination"] == {"total_items": 1, "total_pages": 1, "current_page": 1, "items_per_page": 10}

    mine = client.get("/api/v1/events/participant/my-events", headers=alice).json()
    assert [e["id"] for e in mine["upcoming"]] == [event_id]

    canceled = client.post(f"/api/v1/rsvp/{event_id}/cancel", headers=alice)
    assert canceled.status_code == 200
    assert canceled.json()["rsvp"]["status"] == "canceled"
    assert client.get(f"/api/v1/rsvp/{event_id}/count", headers=bob).json()["participant_count"] == 0

    not_registered = client.post(f"/api/v1/rsvp/{event_id}/cancel", headers=alice)
    assert not_registered.status_code == 400
    assert not_registered.json()["code"] == "NOT_REGISTERED"

    clock.set(datetime(2030, 6, 2, 10, 30, tzinfo=timezone.utc))
    late = client.post(f"/api/v1/rsvp/{event_id}", headers=bob)
    assert late.status_code == 409
    assert late.json()["code"] == "EVENT_ALREADY_STARTED"

    live = client.get("/api/v1/events/participant/live", headers=bob).json()
    assert [e["computed_status"] for e in live["items"]] == ["live"]
    assert "meeting_link" not in live["items"][0]

    deleted = client.delete(f"/api/v1/events/{event_id}", headers=organizer)
    assert deleted.status_code == 200
    gone = client.get(f"/api/v1/events/details/{event_id}", headers=alice)
    assert gone.status_code == 404
    assert gone.json()["code"] == "EVENT_NOT_FOUND"


def test_schedule_conflict_error_body(client: TestClient):
    organizer = bearer(signup(client, "org@example.com", role="organizer"))
    first = _create(client, organizer, startTime="09:00", endTime="10:00", title="Standup").json()["event"]

    resp = _create(client, organizer, startTime="09:30", endTime="10:30")

    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == "SCHEDULE_CONFLICT"
    assert body["conflicting_event_id"] == first["id"]
    assert "Standup" in body["message"]


def test_request_validation_errors_are_400(client: TestClient):
    organizer = bearer(signup(client, "org@example.com", role="organizer"))

    missing = client.post("/api/v1/events/create", json={"title": "No times"}, headers=organizer)
    assert missing.status_code == 400
    assert missing.json()["code"] == "VALIDATION_ERROR"

    backwards = _create(client, organizer, startTime="11:00", endTime="10:00")
    assert backwards.status_code == 400
    assert backwards.json()["message"] == "end_time must be after start_time"

    bad_id = client.get("/api/v1/events/details/not-a-uuid", headers=organizer)
    assert bad_id.status_code == 400

    assert client.get("/api/v1/events/organizer/someday", headers=organizer).status_code == 400


def test_participant_all_window_rejected(client: TestClient):
    alice = bearer(signup(client, "alice@example.com"))
    assert client.get("/api/v1/events/participant/all", headers=alice).status_code == 400


def test_update_and_cancel_over_http(client: TestClient, mailer):
    organizer = bearer(signup(client, "org@example.com", role="organizer"))
    alice = bearer(signup(client, "alice@example.com"))
    event_id = _create(client, organizer).json()["event"]["id"]
    client.post(f"/api/v1/rsvp/{event_id}", headers=alice)

    moved = client.patch(f"/api/v1/events/{event_id}", json={"startTime": "12:00", "endTime": "13:00"}, headers=organizer)
    assert moved.status_code == 200
    assert moved.json()["event"]["start_time"] == "12:00"
    assert mailer.sent_to("alice@example.com")[-1].subject == "Event Updated: Python Meetup"

    canceled = client.patch(f"/api/v1/events/{event_id}/cancel", headers=organizer)
    assert canceled.status_code == 200
    assert canceled.json()["event"]["status"] == "canceled"
    assert canceled.json()["event"]["computed_status"] == "canceled"

    twice = client.patch(f"/api/v1/events/{event_id}/cancel", headers=organizer)
    assert twice.status_code == 409
    assert twice.json()["code"] == "EVENT_CANCELED"

    rsvp = client.post(f"/api/v1/rsvp/{event_id}", headers=bearer(signup(client, "bob@example.com")))
    assert rsvp.status_code == 409
    assert rsvp.json()["code"] == "EVENT_CANCELED"

    other = bearer(signup(client, "other@example.com", role="organizer"))
    assert client.delete(f"/api/v1/events/{event_id}", headers=other).status_code == 403


def test_feedback_upsert_and_listing(client: TestClient):
    organizer = bearer(signup(client, "org@example.com", role="organizer"))
    alice = bearer(signup(client, "alice@example.com"))
    event_id = _create(client, organizer).json()["event"]["id"]

    first = client.post(f"/api/v1/events/feedback/{event_id}", json={"rating": 4, "comment": "Good"}, headers=alice)
    assert first.status_code == 201
    second = client.post(
        f"/api/v1/events/feedback/{event_id}", json={"rating": 5, "comment": "  Great  "}, headers=alice
    )
    assert second.json()["id"] == first.json()["id"]

    listed = client.get(f"/api/v1/events/feedback/{event_id}", headers=organizer).json()
    assert [(f["rating"], f["comment"], f["participant_name"]) for f in listed] == [(5, "Great", "Alice Jones")]

    assert client.post(
        f"/api/v1/events/feedback/{event_id}", json={"rating": 6, "comment": "x"}, headers=alice
    ).status_code == 400
    assert client.post(
        f"/api/v1/events/feedback/{event_id}", json={"rating": 3, "comment": "   "}, headers=alice
    ).status_code == 400
    assert client.post(
        f"/api/v1/events/feedback/{event_id}", json={"rating": 3, "comment": "x"}, headers=organizer
    ).status_code == 403
    assert client.get(f"/api/v1/events/feedback/{uuid.uuid4()}", headers=alice).status_code == 404


def test_search_is_public(client: TestClient):
    organizer = bearer(signup(client, "org@example.com", role="organizer"))
    _create(client, organizer, title="Intro to Python")
    _create(client, organizer, title="Rust", startTime="12:00", endTime="13:00")

    resp = client.get("/api/v1/events/search", params={"q": "PYTHON"})

    assert resp.status_code == 200
    assert [e["title"] for e in resp.json()] == ["Intro to Python"]
    assert "meeting_link" not in resp.json()[0]


def test_pagination_over_http(client: TestClient):
    organizer = bearer(signup(client, "org@example.com", role="organizer"))
    for hour in range(12, 17):
        _create(client, organizer, title=f"E{hour}", startTime=f"{hour}:00", endTime=f"{hour}:30")

    resp = client.get("/api/v1/events/organizer/all", params={"page": 3, "limit": 2}, headers=organizer).json()

    assert [e["title"] for e in resp["items"]] == ["E16"]
    assert resp["pagination"]["total_pages"] == 3


def test_health_and_unknown_route(client: TestClient):
    assert client.get("/health").status_code == 200

    resp = client.get("/api/v1/nope")
    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"


def test_database_outage_is_503(client: TestClient):
    def unavailable():
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))

    app.dependency_overrides[get_db] = unavailable

    resp = client.get("/api/v1/events/search")

    assert resp.status_code == 503
    assert resp.json()["code"] == "SERVICE_UNAVAILABLE"
