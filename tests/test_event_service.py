"""Tests for EventService: creation rules, listing, updates and deletion"""

from datetime import datetime, timedelta, timezone

import pytest
from sqlmodel import select

from eventhub.errors import ForbiddenError, NotFoundError, ValidationError
from eventhub.models.event import Attachment, EventMode, EventStatus, MediaType
from eventhub.models.participation import ParticipationRecord
from eventhub.models.user import OrganizerProfile, Role
from eventhub.services.event_service import (
    AttachmentIn,
    EventCreate,
    EventUpdate,
    clamp_pagination,
    resolve_status_filter,
)
from tests.helpers import future_window


def test_create_event_returns_summaries(make_event):
    event = make_event(total_seats=10)

    assert event["id"] is not None
    assert event["status"] == EventStatus.ACTIVE
    assert event["confirmed_participants"] == 0
    assert event["organizer"]["name"] == "Olivia Organizer"
    assert event["company"]["name"] == "Acme Events"
    assert [a["url"] for a in event["attachments"]] == [
        "https://cdn.example.com/poster.png"
    ]


@pytest.mark.parametrize("missing", ["title", "description", "mode", "start_date"])
def test_create_event_requires_core_fields(make_event, missing):
    with pytest.raises(ValidationError) as exc:
        make_event(**{missing: None})
    assert missing in exc.value.message


def test_create_event_requires_attachment(make_event):
    with pytest.raises(ValidationError):
        make_event(attachments=[])


def test_create_event_rejects_inverted_schedule(make_event):
    start, end = future_window()
    with pytest.raises(ValidationError):
        make_event(start_date=end, end_date=start)


def test_create_event_rejects_negative_seats(make_event):
    with pytest.raises(ValidationError):
        make_event(total_seats=-1)


def test_create_event_unknown_company(make_event):
    with pytest.raises(NotFoundError):
        make_event(company_id=424242)


def test_create_event_in_foreign_company_is_forbidden(
    event_service, company_service, make_user
):
    stranger = make_user(Role.ORGANIZER)
    other_owner = make_user(Role.ORGANIZER)
    other_company = company_service.create_company("Other Co", None, other_owner)
    start, end = future_window()

    with pytest.raises(ForbiddenError):
        event_service.create_event(
            EventCreate(
                title="Sneaky",
                description="Not my company",
                mode=EventMode.ONLINE,
                start_date=start,
                end_date=end,
                company_id=other_company["id"],
                attachments=[AttachmentIn(url="https://cdn.example.com/a.png")],
            ),
            stranger,
        )


def test_admin_creates_event_for_named_organizer(
    event_service, organizer, make_user, _db_session
):
    admin = make_user(Role.ADMIN)
    organizer_user, company_id = organizer
    profile = _db_session.exec(
        select(OrganizerProfile).where(OrganizerProfile.user_id == organizer_user.id)
    ).first()
    start, end = future_window()

    event = event_service.create_event(
        EventCreate(
            title="Admin made",
            description="On behalf of an organizer",
            mode=EventMode.ONLINE,
            start_date=start,
            end_date=end,
            company_id=company_id,
            organizer_id=profile.id,
            attachments=[AttachmentIn(url="https://cdn.example.com/b.png")],
        ),
        admin,
    )

    assert event["organizer"]["id"] == profile.id


def test_naive_datetimes_are_taken_as_utc(make_event):
    start = datetime(2031, 5, 1, 18, 0)
    event = make_event(start_date=start, end_date=start + timedelta(hours=3))

    assert event["start_date"] == datetime(2031, 5, 1, 18, 0, tzinfo=timezone.utc)


def test_list_events_status_filters(event_service, make_event, organizer, lifecycle_service):
    now = datetime.now(timezone.utc)
    active = make_event(title="Active one")
    past = make_event(
        title="Past one", start_date=now - timedelta(days=2), end_date=now - timedelta(days=1)
    )
    cancelled = make_event(title="Cancelled one")
    event_service.update_event(
        cancelled["id"], EventUpdate(status=EventStatus.CANCELLED), organizer[0]
    )
    lifecycle_service.sweep_expired()

    def ids(status):
        return {e["id"] for e in event_service.list_events(status=status).items}

    assert ids("active") == {active["id"]}
    assert ids("completed") == {past["id"]}
    assert ids("past") == {past["id"]}
    assert ids("cancelled") == {cancelled["id"]}
    assert ids("all") == {active["id"], past["id"], cancelled["id"]}
    assert ids("ALL") == ids("all")
    assert ids("bogus") == {active["id"]}
    assert ids(None) == {active["id"]}


def test_list_events_search_and_order(event_service, make_event):
    later_start, later_end = future_window(days=20)
    make_event(title="Rust night", description="Borrow checker")
    make_event(title="Data Science Day", start_date=later_start, end_date=later_end)
    make_event(title="Pandas workshop", description="Data wrangling 100%")

    result = event_service.list_events(search="data")
    assert [e["title"] for e in result.items] == ["Pandas workshop", "Data Science Day"]
    assert result.total == 2

    assert event_service.list_events(search="100%").total == 1
    assert event_service.list_events(search="   ").total == 3


def test_list_events_pagination(event_service, make_event):
    for day in range(1, 6):
        start, end = future_window(days=day)
        make_event(title=f"Event {day}", start_date=start, end_date=end)

    page = event_service.list_events(page=2, page_size=2)
    assert [e["title"] for e in page.items] == ["Event 3", "Event 4"]
    assert page.total == 5

    clamped = event_service.list_events(page=0, page_size=500)
    assert clamped.page == 1
    assert clamped.page_size == 50
    assert len(clamped.items) == 5


def test_list_events_carries_confirmed_counts(
    event_service, participation_service, make_event, make_user
):
    event = make_event()
    participation_service.join(event["id"], make_user(Role.PARTICIPANT))
    participation_service.join(event["id"], make_user(Role.PARTICIPANT))

    [item] = event_service.list_events().items
    assert item["confirmed_participants"] == 2


def test_pagination_helpers():
    assert clamp_pagination(-3, 0) == (1, 1)
    assert clamp_pagination(4, 51) == (4, 50)
    assert resolve_status_filter(" Past ") == (EventStatus.COMPLETED,)


def test_get_event_not_found(event_service):
    with pytest.raises(NotFoundError):
        event_service.get_event_details(999999)


def test_update_event_is_partial(event_service, make_event, organizer):
    event = make_event(total_seats=5, category="Meetup")

    updated = event_service.update_event(
        event["id"], EventUpdate(title="Renamed"), organizer[0]
    )

    assert updated["title"] == "Renamed"
    assert updated["total_seats"] == 5
    assert updated["category"] == "Meetup"
    assert len(updated["attachments"]) == 1


def test_update_event_replaces_attachments_with_union(
    event_service, make_event, organizer, _db_session
):
    event = make_event()
    kept = AttachmentIn(**event["attachments"][0])

    updated = event_service.update_event(
        event["id"],
        EventUpdate(
            existing_attachments=[kept],
            attachments=[
                AttachmentIn(
                    url="https://cdn.example.com/teaser.mp4", media_type=MediaType.VIDEO
                )
            ],
        ),
        organizer[0],
    )

    assert [a["url"] for a in updated["attachments"]] == [
        "https://cdn.example.com/poster.png",
        "https://cdn.example.com/teaser.mp4",
    ]
    stored = _db_session.exec(
        select(Attachment).where(Attachment.event_id == event["id"])
    ).all()
    assert len(stored) == 2


def test_update_event_null_attachments_keep_the_set(
    event_service, make_event, organizer
):
    event = make_event()

    updated = event_service.update_event(
        event["id"],
        EventUpdate.model_validate({"title": "Renamed", "attachments": None}),
        organizer[0],
    )

    assert updated["title"] == "Renamed"
    assert [a["url"] for a in updated["attachments"]] == [
        "https://cdn.example.com/poster.png"
    ]


def test_update_event_cannot_drop_every_attachment(
    event_service, make_event, organizer
):
    event = make_event()

    with pytest.raises(ValidationError):
        event_service.update_event(
            event["id"],
            EventUpdate(existing_attachments=[], attachments=[], title="Renamed"),
            organizer[0],
        )

    # Rejected updates leave the event untouched
    assert event_service.get_event_details(event["id"])["title"] == event["title"]
    assert len(event_service.get_event_details(event["id"])["attachments"]) == 1


def test_update_event_seats_not_below_confirmed(
    event_service, participation_service, make_event, make_user, organizer
):
    event = make_event(total_seats=2)
    for _ in range(2):
        participation_service.join(event["id"], make_user(Role.PARTICIPANT))

    with pytest.raises(ValidationError):
        event_service.update_event(event["id"], EventUpdate(total_seats=1), organizer[0])
    assert event_service.get_event(event["id"]).total_seats == 2

    # Down to exactly the confirmed count, or unlimited, is allowed
    assert (
        event_service.update_event(
            event["id"], EventUpdate(total_seats=2), organizer[0]
        )["total_seats"]
        == 2
    )
    assert (
        event_service.update_event(
            event["id"], EventUpdate(total_seats=None), organizer[0]
        )["total_seats"]
        is None
    )


def test_update_event_seats_ignore_pending_records(
    event_service, participation_service, make_event, make_user, organizer
):
    event = make_event(total_seats=3, requires_approval=True)
    for _ in range(2):
        participation_service.join(event["id"], make_user(Role.PARTICIPANT))

    updated = event_service.update_event(
        event["id"], EventUpdate(total_seats=0), organizer[0]
    )

    assert updated["total_seats"] == 0


def test_update_event_status_only_to_cancelled(event_service, make_event, organizer):
    event = make_event()

    with pytest.raises(ValidationError):
        event_service.update_event(
            event["id"], EventUpdate(status=EventStatus.COMPLETED), organizer[0]
        )

    # Unchanged status is accepted
    event_service.update_event(
        event["id"], EventUpdate(status=EventStatus.ACTIVE), organizer[0]
    )
    cancelled = event_service.update_event(
        event["id"], EventUpdate(status=EventStatus.CANCELLED), organizer[0]
    )
    assert cancelled["status"] == EventStatus.CANCELLED


def test_update_event_checks_schedule_against_stored_dates(
    event_service, make_event, organizer
):
    event = make_event()

    with pytest.raises(ValidationError):
        event_service.update_event(
            event["id"],
            EventUpdate(end_date=event["start_date"] - timedelta(hours=1)),
            organizer[0],
        )


def test_update_event_rejects_clearing_required_field(event_service, make_event, organizer):
    event = make_event()

    with pytest.raises(ValidationError):
        event_service.update_event(event["id"], EventUpdate(title=None), organizer[0])


def test_organizer_of_other_company_cannot_manage(event_service, make_event, make_user):
    event = make_event()
    outsider = make_user(Role.ORGANIZER)

    with pytest.raises(ForbiddenError):
        event_service.update_event(event["id"], EventUpdate(title="Mine"), outsider)
    with pytest.raises(ForbiddenError):
        event_service.delete_event(event["id"], outsider)


def test_delete_event_removes_children(
    event_service, participation_service, make_event, make_user, organizer, _db_session
):
    event = make_event()
    participation_service.join(event["id"], make_user(Role.PARTICIPANT))

    event_service.delete_event(event["id"], organizer[0])

    with pytest.raises(NotFoundError):
        event_service.get_event(event["id"])
    assert (
        _db_session.exec(
            select(ParticipationRecord).where(ParticipationRecord.event_id == event["id"])
        ).all()
        == []
    )
    assert (
        _db_session.exec(
            select(Attachment).where(Attachment.event_id == event["id"])
        ).all()
        == []
    )
