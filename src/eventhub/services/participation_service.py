"""Participation service: joining events and approving join requests.

Notes
- The event row is locked (SELECT ... FOR UPDATE) for the duration of a join
  or an approval, so the seat check and the write happen against a stable
  confirmed count.
- The unique (event_id, participant_id) constraint is the last line against
  duplicate joins; an IntegrityError is reported as AlreadyJoined.
- Approval emails are sent after commit. A failed send is logged and never
  undoes the confirmation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from eventhub.auth.models import AuthUser
from eventhub.errors import (
    AlreadyJoinedError,
    EventEndedError,
    EventHubError,
    NotAuthorizedError,
    NotFoundError,
    SeatsFullError,
)
from eventhub.models.company import Company
from eventhub.models.event import Event, EventStatus
from eventhub.models.participation import (
    ParticipationRecord,
    ParticipationStatus,
    initial_status,
)
from eventhub.models.user import OrganizerProfile, ParticipantProfile, Role, User
from eventhub.services.email_service import EmailService
from eventhub.services.event_service import EventService
from eventhub.utils.time_utils import as_utc, utcnow

logger = logging.getLogger(__name__)


@dataclass
class ApprovalResult:
    record: ParticipationRecord
    already_confirmed: bool
    email_sent: bool


class ParticipationService:
    """Service for participation records of events."""

    def __init__(
        self, db_session: Session, email_service: Optional[EmailService] = None
    ):
        self.db = db_session
        self.email_service = email_service
        self.event_service = EventService(db_session)

    def join(
        self,
        event_id: int,
        current_user: AuthUser,
        answers: Optional[Dict[str, Any]] = None,
    ) -> ParticipationRecord:
        """Create a participation record for the caller.

        - Events that require approval start PENDING and skip the seat check
        - Otherwise the record starts CONFIRMED if a seat is free

        Raises:
            NotAuthorizedError: Caller is not currently a participant
            NotFoundError: Event does not exist
            EventEndedError: Event is over, cancelled or completed
            AlreadyJoinedError: A record already exists for this pair
            SeatsFullError: No seat left for an auto-confirmed join
        """
        participant = self._participant_for_user(current_user.id)
        if not participant:
            raise NotAuthorizedError("Only participants can join events")

        try:
            event = self.db.exec(
                select(Event).where(Event.id == event_id).with_for_update()
            ).first()
            if not event:
                raise NotFoundError("Event not found")

            if event.status != EventStatus.ACTIVE or as_utc(event.end_date) < utcnow():
                raise EventEndedError()

            if self._find_record(event_id, participant.id):
                raise AlreadyJoinedError()

            status = initial_status(event.requires_approval)
            if status == ParticipationStatus.CONFIRMED and event.total_seats is not None:
                if self._confirmed_count(event_id) >= event.total_seats:
                    raise SeatsFullError()

            record = ParticipationRecord(
                event_id=event_id,
                participant_id=participant.id,
                status=status,
                answers=answers,
            )
            self.db.add(record)
            self.db.commit()
        except IntegrityError:
            # A concurrent join for the same pair won the insert
            self.db.rollback()
            raise AlreadyJoinedError()
        except EventHubError:
            self.db.rollback()
            raise

        self.db.refresh(record)
        logger.info(
            f"Participant {participant.id} joined event {event_id} as {record.status.value}"
        )
        return record

    def list_participants(
        self, event_id: int, current_user: Optional[AuthUser] = None
    ) -> List[Dict[str, Any]]:
        """List participation records of an event with participant identity."""
        event = self.event_service.get_event(event_id)
        if current_user is not None:
            self.event_service.ensure_can_manage(event, current_user)

        rows = self.db.exec(
            select(ParticipationRecord, ParticipantProfile, User)
            .join(
                ParticipantProfile,
                ParticipantProfile.id == ParticipationRecord.participant_id,
            )
            .join(User, User.id == ParticipantProfile.user_id)
            .where(ParticipationRecord.event_id == event_id)
            .order_by(ParticipationRecord.id.asc())
        ).all()

        return [
            {
                **record.model_dump(),
                "participant": {
                    "id": profile.id,
                    "name": profile.name,
                    "user": {"id": user.id, "email": user.email},
                },
            }
            for record, profile, user in rows
        ]

    async def approve_participant(
        self,
        event_id: int,
        record_id: int,
        current_user: Optional[AuthUser] = None,
    ) -> ApprovalResult:
        """
        Confirm a PENDING participation record.

        Approving a record that is already CONFIRMED changes nothing and sends
        no email.

        Args:
            event_id: Event the record belongs to
            record_id: Participation record ID
            current_user: Caller; when given, must be able to manage the event

        Returns:
            ApprovalResult with the record and whether the email went out

        Raises:
            NotFoundError: Event or record does not exist
            ForbiddenError: Caller cannot manage the event
            SeatsFullError: Confirming would exceed total_seats
        """
        try:
            event = self.db.exec(
                select(Event).where(Event.id == event_id).with_for_update()
            ).first()
            if not event:
                raise NotFoundError("Event not found")
            if current_user is not None:
                self.event_service.ensure_can_manage(event, current_user)

            record = self.db.get(ParticipationRecord, record_id)
            if not record or record.event_id != event_id:
                raise NotFoundError("Participant not found")

            if record.status == ParticipationStatus.CONFIRMED:
                self.db.rollback()
                self.db.refresh(record)
                logger.info(f"Participation {record_id} already confirmed")
                return ApprovalResult(record=record, already_confirmed=True, email_sent=False)

            if (
                event.total_seats is not None
                and self._confirmed_count(event_id) >= event.total_seats
            ):
                raise SeatsFullError()

            record.confirm()
            self.db.add(record)
            self.db.commit()
        except EventHubError:
            self.db.rollback()
            raise

        self.db.refresh(record)
        logger.info(f"Confirmed participation {record.id} for event {event_id}")

        email_sent = await self._notify_approved(event_id, record)
        return ApprovalResult(record=record, already_confirmed=False, email_sent=email_sent)

    async def _notify_approved(self, event_id: int, record: ParticipationRecord) -> bool:
        if self.email_service is None:
            logger.warning("No email service configured; skipping approval email")
            return False

        try:
            event = self.db.get(Event, event_id)
            profile = self.db.get(ParticipantProfile, record.participant_id)
            user = self.db.get(User, profile.user_id)
            organizer = self.db.get(OrganizerProfile, event.organizer_id)
            company = self.db.get(Company, event.company_id)

            sent = await self.email_service.notify_participation_approved(
                event=event,
                recipient_email=user.email,
                recipient_name=profile.name,
                organizer_name=organizer.name if organizer else "",
                company_name=company.name if company else "",
            )
        except Exception as e:
            logger.error(f"Approval email for participation {record.id} failed: {e}")
            return False

        if not sent:
            logger.warning(f"Approval email for participation {record.id} was not sent")
        return sent

    def _participant_for_user(self, user_id: int) -> Optional[ParticipantProfile]:
        # Profiles outlive role changes, so the stored role decides
        return self.db.exec(
            select(ParticipantProfile)
            .join(User, User.id == ParticipantProfile.user_id)
            .where(
                ParticipantProfile.user_id == user_id,
                User.role == Role.PARTICIPANT,
            )
        ).first()

    def _find_record(
        self, event_id: int, participant_id: int
    ) -> Optional[ParticipationRecord]:
        return self.db.exec(
            select(ParticipationRecord).where(
                ParticipationRecord.event_id == event_id,
                ParticipationRecord.participant_id == participant_id,
            )
        ).first()

    def _confirmed_count(self, event_id: int) -> int:
        return self.db.exec(
            select(func.count(ParticipationRecord.id)).where(
                ParticipationRecord.event_id == event_id,
                ParticipationRecord.status == ParticipationStatus.CONFIRMED,
            )
        ).one()
