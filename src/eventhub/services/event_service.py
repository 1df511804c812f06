"""Event service: event CRUD, listing and management guards.

Notes
- All timestamps are normalized to UTC before they are stored or compared.
- Confirmed participant counts are always aggregated from the
  participation table, never stored on the event row.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel, Field
from sqlalchemy import func, or_
from sqlmodel import Session, select

from eventhub.auth.models import AuthUser
from eventhub.errors import ForbiddenError, NotFoundError, ValidationError
from eventhub.models.company import Company, CompanyOrganizer
from eventhub.models.event import Attachment, Event, EventMode, EventStatus, MediaType
from eventhub.models.participation import ParticipationRecord, ParticipationStatus
from eventhub.models.user import OrganizerProfile, Role
from eventhub.utils.time_utils import as_utc

logger = logging.getLogger(__name__)


MAX_PAGE_SIZE = 50

# Status category accepted by list_events -> statuses it matches
STATUS_FILTERS = {
    "active": (EventStatus.ACTIVE,),
    "completed": (EventStatus.COMPLETED,),
    "cancelled": (EventStatus.CANCELLED,),
    "past": (EventStatus.COMPLETED,),
    "all": (EventStatus.ACTIVE, EventStatus.COMPLETED, EventStatus.CANCELLED),
}

REQUIRED_EVENT_FIELDS = ("title", "description", "mode", "start_date", "end_date")


class AttachmentIn(BaseModel):
    """Pre-uploaded media descriptor supplied by the client."""

    url: str = Field(min_length=1)
    public_id: Optional[str] = None
    media_type: MediaType = MediaType.IMAGE


class EventCreate(BaseModel):
    """Payload for creating an event.

    Required fields are checked by the service so that missing values are
    reported as a validation error rather than a schema error.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    mode: Optional[EventMode] = None
    venue: Optional[str] = None
    join_link: Optional[str] = None
    contact_info: Optional[str] = None
    total_seats: Optional[int] = None
    requires_approval: bool = False
    join_questions: Optional[List[Any]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    company_id: Optional[int] = None
    organizer_id: Optional[int] = None
    attachments: List[AttachmentIn] = Field(default_factory=list)


class EventUpdate(BaseModel):
    """Partial update; only fields present in the payload are applied.

    When ``existing_attachments`` or ``attachments`` is present the event's
    attachment set is replaced by the union of both lists.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    mode: Optional[EventMode] = None
    venue: Optional[str] = None
    join_link: Optional[str] = None
    contact_info: Optional[str] = None
    total_seats: Optional[int] = None
    requires_approval: Optional[bool] = None
    join_questions: Optional[List[Any]] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    status: Optional[EventStatus] = None
    existing_attachments: Optional[List[AttachmentIn]] = None
    attachments: Optional[List[AttachmentIn]] = None


@dataclass
class EventPage:
    items: List[Dict[str, Any]]
    total: int
    page: int
    page_size: int


def clamp_pagination(page: int, page_size: int) -> tuple[int, int]:
    return max(1, page), min(MAX_PAGE_SIZE, max(1, page_size))


def resolve_status_filter(status: Optional[str]) -> tuple[EventStatus, ...]:
    """Map a status category to the statuses it matches; unknown -> active."""
    key = (status or "active").strip().lower()
    return STATUS_FILTERS.get(key, STATUS_FILTERS["active"])


class EventService:
    """Service for event records and their attachments."""

    def __init__(self, db_session: Session):
        self.db = db_session

    # Reads
    def get_event(self, event_id: int) -> Event:
        event = self.db.get(Event, event_id)
        if not event:
            raise NotFoundError("Event not found")
        return event

    def get_event_details(self, event_id: int) -> Dict[str, Any]:
        event = self.get_event(event_id)
        return self._serialize_many([event])[0]

    def confirmed_count(self, event_id: int) -> int:
        return self.db.exec(
            select(func.count(ParticipationRecord.id)).where(
                ParticipationRecord.event_id == event_id,
                ParticipationRecord.status == ParticipationStatus.CONFIRMED,
            )
        ).one()

    def list_events(
        self,
        status: Optional[str] = "active",
        page: int = 1,
        page_size: int = 10,
        search: Optional[str] = None,
    ) -> EventPage:
        """Return one page of events matching a status category and search text.

        - Status categories: active (default), completed, cancelled, past, all
        - Search is case-insensitive over title and description
        - Ordered by start_date ascending
        """
        page, page_size = clamp_pagination(page, page_size)

        conditions = [Event.status.in_(resolve_status_filter(status))]
        term = (search or "").strip()
        if term:
            conditions.append(
                or_(
                    Event.title.icontains(term, autoescape=True),
                    Event.description.icontains(term, autoescape=True),
                )
            )

        total = self.db.exec(select(func.count(Event.id)).where(*conditions)).one()

        stmt = (
            select(Event)
            .where(*conditions)
            .order_by(Event.start_date.asc(), Event.id.asc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        events = list(self.db.exec(stmt).all())

        return EventPage(
            items=self._serialize_many(events),
            total=total,
            page=page,
            page_size=page_size,
        )

    # Writes
    def create_event(self, data: EventCreate, current_user: AuthUser) -> Dict[str, Any]:
        """
        Create an event with its attachments.

        Args:
            data: Event payload
            current_user: Authenticated ADMIN or ORGANIZER

        Returns:
            Serialized event

        Raises:
            ValidationError: Missing fields, no attachments, bad schedule or seats
            NotFoundError: Company or organizer does not exist
            ForbiddenError: Organizer does not belong to the company
        """
        missing = [f for f in REQUIRED_EVENT_FIELDS if not getattr(data, f)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
        if not data.attachments:
            raise ValidationError("At least one attachment is required")
        _validate_seats(data.total_seats)

        start_date = as_utc(data.start_date)
        end_date = as_utc(data.end_date)
        _validate_schedule(start_date, end_date)

        organizer = self._resolve_organizer(data.organizer_id, current_user)
        company_id = data.company_id or self._default_company_id(organizer.id)
        if company_id is None:
            raise ValidationError("company_id is required")
        if not self.db.get(Company, company_id):
            raise NotFoundError("Company not found")
        if current_user.role != Role.ADMIN and not self._is_member(
            company_id, organizer.id
        ):
            raise ForbiddenError("Organizer does not belong to this company")

        event = Event(
            title=data.title,
            description=data.description,
            category=data.category,
            mode=data.mode,
            venue=data.venue,
            join_link=data.join_link,
            contact_info=data.contact_info,
            total_seats=data.total_seats,
            requires_approval=data.requires_approval,
            join_questions=data.join_questions,
            start_date=start_date,
            end_date=end_date,
            company_id=company_id,
            organizer_id=organizer.id,
        )
        try:
            self.db.add(event)
            self.db.flush()
            self._replace_attachments(event.id, data.attachments)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(event)

        logger.info(f"Created event {event.id} in company {company_id}")
        return self._serialize_many([event])[0]

    def update_event(
        self, event_id: int, data: EventUpdate, current_user: AuthUser
    ) -> Dict[str, Any]:
        """Apply a partial update; replaces attachments when any are supplied.

        The event row stays locked for the whole update, so a seat reduction
        cannot race a join or an approval for the last seats.

        Raises:
            NotFoundError: Event does not exist
            ForbiddenError: Caller cannot manage the event
            ValidationError: Cleared required field, bad schedule, seats below
                the confirmed count, disallowed status or no attachments left
        """
        fields = data.model_dump(exclude_unset=True)
        new_status = fields.pop("status", None)
        existing = fields.pop("existing_attachments", None)
        uploaded = fields.pop("attachments", None)
        # An explicit null for both lists is not a replacement
        replace_attachments = existing is not None or uploaded is not None

        try:
            event = self.db.exec(
                select(Event).where(Event.id == event_id).with_for_update()
            ).first()
            if not event:
                raise NotFoundError("Event not found")
            self.ensure_can_manage(event, current_user)

            for name in REQUIRED_EVENT_FIELDS:
                if name in fields and not fields[name]:
                    raise ValidationError(f"{name} cannot be empty")
            if "total_seats" in fields:
                seats = fields["total_seats"]
                _validate_seats(seats)
                confirmed = self.confirmed_count(event_id)
                if seats is not None and confirmed > seats:
                    raise ValidationError(
                        f"total_seats cannot be lower than the {confirmed} "
                        "confirmed participants"
                    )
            if "requires_approval" in fields and fields["requires_approval"] is None:
                fields["requires_approval"] = False

            start_date = as_utc(fields.get("start_date", event.start_date))
            end_date = as_utc(fields.get("end_date", event.end_date))
            _validate_schedule(start_date, end_date)
            if "start_date" in fields:
                fields["start_date"] = start_date
            if "end_date" in fields:
                fields["end_date"] = end_date

            if new_status is not None and new_status != event.status:
                if new_status != EventStatus.CANCELLED:
                    raise ValidationError(
                        "Event status can only be changed to CANCELLED"
                    )
                logger.info(f"Cancelling event {event.id}")

            merged = [*(data.existing_attachments or []), *(data.attachments or [])]
            if replace_attachments and not merged:
                raise ValidationError("At least one attachment is required")

            for name, value in fields.items():
                setattr(event, name, value)
            if new_status is not None:
                event.status = new_status
            event.updated_at = datetime.now(timezone.utc)
            self.db.add(event)

            if replace_attachments:
                self._replace_attachments(event.id, merged)

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(event)

        logger.info(f"Updated event {event.id}")
        return self._serialize_many([event])[0]

    def delete_event(self, event_id: int, current_user: AuthUser) -> None:
        """Delete an event together with its attachments and participation records."""
        event = self.get_event(event_id)
        self.ensure_can_manage(event, current_user)

        try:
            for record in self.db.exec(
                select(ParticipationRecord).where(
                    ParticipationRecord.event_id == event_id
                )
            ).all():
                self.db.delete(record)
            for attachment in self.db.exec(
                select(Attachment).where(Attachment.event_id == event_id)
            ).all():
                self.db.delete(attachment)
            self.db.flush()
            self.db.delete(event)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Deleted event {event_id}")

    # Guards
    def ensure_can_manage(self, event: Event, current_user: AuthUser) -> None:
        """Admins manage every event; organizers only those of their companies."""
        if current_user.role == Role.ADMIN:
            return
        if current_user.role == Role.ORGANIZER:
            organizer = self._organizer_for_user(current_user.id)
            if organizer and self._is_member(event.company_id, organizer.id):
                return
        raise ForbiddenError("You cannot manage this event")

    # Helpers
    def _replace_attachments(
        self, event_id: int, attachments: Iterable[AttachmentIn]
    ) -> None:
        for existing in self.db.exec(
            select(Attachment).where(Attachment.event_id == event_id)
        ).all():
            self.db.delete(existing)
        self.db.flush()
        for item in attachments:
            self.db.add(
                Attachment(
                    event_id=event_id,
                    url=item.url,
                    public_id=item.public_id,
                    media_type=item.media_type,
                )
            )

    def _organizer_for_user(self, user_id: int) -> Optional[OrganizerProfile]:
        return self.db.exec(
            select(OrganizerProfile).where(OrganizerProfile.user_id == user_id)
        ).first()

    def _resolve_organizer(
        self, organizer_id: Optional[int], current_user: AuthUser
    ) -> OrganizerProfile:
        if organizer_id is not None and current_user.role == Role.ADMIN:
            organizer = self.db.get(OrganizerProfile, organizer_id)
            if not organizer:
                raise NotFoundError("Organizer not found")
            return organizer

        organizer = self._organizer_for_user(current_user.id)
        if not organizer:
            raise ValidationError("Organizer profile required")
        return organizer

    def _default_company_id(self, organizer_id: int) -> Optional[int]:
        return self.db.exec(
            select(CompanyOrganizer.company_id)
            .where(CompanyOrganizer.organizer_id == organizer_id)
            .order_by(CompanyOrganizer.company_id.asc())
        ).first()

    def _is_member(self, company_id: int, organizer_id: int) -> bool:
        return (
            self.db.get(CompanyOrganizer, (company_id, organizer_id)) is not None
        )

    def _serialize_many(self, events: List[Event]) -> List[Dict[str, Any]]:
        """Serialize events with organizer, company, attachments and confirmed counts."""
        if not events:
            return []

        event_ids = [e.id for e in events]
        counts = dict(
            self.db.exec(
                select(ParticipationRecord.event_id, func.count(ParticipationRecord.id))
                .where(
                    ParticipationRecord.event_id.in_(event_ids),
                    ParticipationRecord.status == ParticipationStatus.CONFIRMED,
                )
                .group_by(ParticipationRecord.event_id)
            ).all()
        )
        organizers = {
            o.id: o
            for o in self.db.exec(
                select(OrganizerProfile).where(
                    OrganizerProfile.id.in_({e.organizer_id for e in events})
                )
            ).all()
        }
        companies = {
            c.id: c
            for c in self.db.exec(
                select(Company).where(Company.id.in_({e.company_id for e in events}))
            ).all()
        }
        attachments: Dict[int, List[Dict[str, Any]]] = {}
        for a in self.db.exec(
            select(Attachment)
            .where(Attachment.event_id.in_(event_ids))
            .order_by(Attachment.id.asc())
        ).all():
            attachments.setdefault(a.event_id, []).append(a.model_dump())

        items = []
        for event in events:
            item = event.model_dump()
            item["start_date"] = as_utc(event.start_date)
            item["end_date"] = as_utc(event.end_date)
            organizer = organizers.get(event.organizer_id)
            company = companies.get(event.company_id)
            item["organizer"] = (
                {"id": organizer.id, "name": organizer.name} if organizer else None
            )
            item["company"] = {"id": company.id, "name": company.name} if company else None
            item["attachments"] = attachments.get(event.id, [])
            item["confirmed_participants"] = counts.get(event.id, 0)
            items.append(item)
        return items


def _validate_schedule(start_date: datetime, end_date: datetime) -> None:
    if start_date >= end_date:
        raise ValidationError("start_date must be before end_date")


def _validate_seats(total_seats: Optional[int]) -> None:
    if total_seats is not None and total_seats < 0:
        raise ValidationError("total_seats cannot be negative")
