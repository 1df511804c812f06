"""HTTP tests for /events, including auth guards and error translation"""

from datetime import datetime, timedelta, timezone

from eventhub.models.user import Role
from tests.config import test_config
from tests.helpers import bearer, future_window


def _event_payload(company_id, **overrides):
    start, end = future_window()
    payload = {
        "title": "Async Python",
        "description": "Event loops in depth",
        "mode": "ONLINE",
        "join_link": "https://meet.example.com/async",
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "company_id": company_id,
        "total_seats": 1,
        "attachments": [{"url": "https://cdn.example.com/async.png"}],
    }
    payload.update(overrides)
    return payload


def test_create_and_list_events(client, organizer):
    organizer_user, company_id = organizer

    resp = client.post(
        "/events", json=_event_payload(company_id), headers=bearer(organizer_user)
    )
    assert resp.status_code == 201, resp.text
    created = resp.json()
    assert created["company"]["id"] == company_id

    listing = client.get("/events", params={"limit": 500})
    assert listing.status_code == 200
    body = listing.json()
    assert [e["id"] for e in body["events"]] == [created["id"]]
    assert body["pagination"] == {"page": 1, "limit": 50, "total": 1, "total_pages": 1}

    detail = client.get(f"/events/{created['id']}")
    assert detail.json()["confirmed_participants"] == 0


def test_create_event_validation_error_shape(client, organizer):
    organizer_user, company_id = organizer

    resp = client.post(
        "/events",
        json=_event_payload(company_id, attachments=[]),
        headers=bearer(organizer_user),
    )

    assert resp.status_code == 400
    assert resp.json()["error"] == "VALIDATION_ERROR"


def test_create_event_requires_auth_and_role(client, organizer, make_user):
    _, company_id = organizer

    assert client.post("/events", json=_event_payload(company_id)).status_code == 401
    assert (
        client.post(
            "/events",
            json=_event_payload(company_id),
            headers={"Authorization": "Bearer garbage"},
        ).status_code
        == 401
    )

    participant = make_user(Role.PARTICIPANT)
    resp = client.post(
        "/events", json=_event_payload(company_id), headers=bearer(participant)
    )
    assert resp.status_code == 403


def test_unknown_event_is_404(client):
    resp = client.get("/events/424242")

    assert resp.status_code == 404
    assert resp.json() == {"error": "NOT_FOUND", "detail": "Event not found"}


def test_join_flow_and_seat_limit(client, make_event, make_user):
    event = make_event(total_seats=1)
    first = make_user(Role.PARTICIPANT)
    second = make_user(Role.PARTICIPANT)

    resp = client.post(f"/events/{event['id']}/join", headers=bearer(first))
    assert resp.status_code == 201, resp.text
    assert resp.json()["participant"]["status"] == "CONFIRMED"

    again = client.post(f"/events/{event['id']}/join", headers=bearer(first))
    assert again.status_code == 409
    assert again.json() == {"error": "ALREADY_JOINED", "detail": "Already joined"}

    full = client.post(
        f"/events/{event['id']}/join",
        json={"answers": {"why": "curious"}},
        headers=bearer(second),
    )
    assert full.status_code == 400
    assert full.json() == {"error": "SEATS_FULL", "detail": "No seats available"}


def test_join_ended_event(client, make_event, make_user):
    now = datetime.now(timezone.utc)
    event = make_event(start_date=now - timedelta(days=2), end_date=now - timedelta(days=1))

    resp = client.post(
        f"/events/{event['id']}/join", headers=bearer(make_user(Role.PARTICIPANT))
    )

    assert resp.status_code == 400
    assert resp.json()["error"] == "EVENT_ENDED"


def test_approval_flow_over_http(client, make_event, make_user, organizer, sent_emails):
    organizer_user, _ = organizer
    event = make_event(requires_approval=True)
    participant = make_user(Role.PARTICIPANT, email="http@example.com")

    joined = client.post(f"/events/{event['id']}/join", headers=bearer(participant))
    record_id = joined.json()["participant"]["id"]
    assert joined.json()["participant"]["status"] == "PENDING"

    participants = client.get(
        f"/events/{event['id']}/participants", headers=bearer(organizer_user)
    )
    assert participants.status_code == 200
    assert participants.json()["participants"][0]["participant"]["user"]["email"] == (
        "http@example.com"
    )

    url = f"/events/{event['id']}/participants/{record_id}/approve"
    approved = client.post(url, headers=bearer(organizer_user))
    assert approved.status_code == 200, approved.text
    assert approved.json()["email_sent"] is True
    assert approved.json()["participant"]["status"] == "CONFIRMED"

    again = client.post(url, headers=bearer(organizer_user))
    assert again.status_code == 200
    assert again.json()["message"] == "Participant already confirmed"
    assert again.json()["email_sent"] is False
    assert len(sent_emails) == 1


def test_update_and_delete_event(authenticated_client, make_event):
    client, _ = authenticated_client
    event = make_event()

    resp = client.patch(f"/events/{event['id']}", json={"status": "CANCELLED"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "CANCELLED"

    bad = client.patch(f"/events/{event['id']}", json={"status": "COMPLETED"})
    assert bad.status_code == 400

    deleted = client.delete(f"/events/{event['id']}")
    assert deleted.status_code == 200
    assert client.get(f"/events/{event['id']}").status_code == 404


def test_mark_expired_requires_admin_key(client, make_event):
    now = datetime.now(timezone.utc)
    make_event(start_date=now - timedelta(days=2), end_date=now - timedelta(days=1))

    assert client.patch("/events/mark-expired").status_code == 422
    assert (
        client.patch("/events/mark-expired", headers={"X-Admin-Key": "wrong"}).status_code
        == 401
    )

    admin_headers = {"X-Admin-Key": test_config["admin_api_key"]}
    resp = client.patch("/events/mark-expired", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["count"] == 1

    again = client.patch("/events/mark-expired", headers=admin_headers)
    assert again.json()["count"] == 0


def test_list_events_past_filter(client, make_event, lifecycle_service):
    now = datetime.now(timezone.utc)
    past = make_event(start_date=now - timedelta(days=2), end_date=now - timedelta(days=1))
    make_event()
    lifecycle_service.sweep_expired()

    resp = client.get("/events", params={"status": "past"})

    assert [e["id"] for e in resp.json()["events"]] == [past["id"]]
