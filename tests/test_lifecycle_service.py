"""Tests for the expired-event sweep"""

from datetime import datetime, timedelta, timezone

from eventhub.models.event import Event, EventStatus
from eventhub.services.event_service import EventUpdate


def _status(event_service, event_id):
    event = event_service.db.get(Event, event_id)
    event_service.db.refresh(event)
    return event.status


def test_sweep_completes_ended_active_events_only(
    lifecycle_service, event_service, make_event, organizer
):
    now = datetime.now(timezone.utc)
    ended = make_event(
        title="Ended", start_date=now - timedelta(days=3), end_date=now - timedelta(days=2)
    )
    cancelled = make_event(
        title="Cancelled",
        start_date=now - timedelta(days=3),
        end_date=now - timedelta(days=2),
    )
    event_service.update_event(
        cancelled["id"], EventUpdate(status=EventStatus.CANCELLED), organizer[0]
    )
    upcoming = make_event(title="Upcoming")

    assert lifecycle_service.sweep_expired() == 1

    assert _status(event_service, ended["id"]) == EventStatus.COMPLETED
    assert _status(event_service, cancelled["id"]) == EventStatus.CANCELLED
    assert _status(event_service, upcoming["id"]) == EventStatus.ACTIVE


def test_sweep_is_idempotent(lifecycle_service, make_event):
    now = datetime.now(timezone.utc)
    for i in range(2):
        make_event(
            title=f"Past {i}",
            start_date=now - timedelta(days=5),
            end_date=now - timedelta(days=4),
        )

    assert lifecycle_service.sweep_expired() == 2
    assert lifecycle_service.sweep_expired() == 0


def test_sweep_uses_given_cutoff(lifecycle_service, event_service, make_event):
    event = make_event()
    later = datetime.now(timezone.utc) + timedelta(days=30)

    assert lifecycle_service.sweep_expired(now=later) == 1
    assert _status(event_service, event["id"]) == EventStatus.COMPLETED


def test_sweep_with_nothing_to_do(lifecycle_service):
    assert lifecycle_service.sweep_expired() == 0
