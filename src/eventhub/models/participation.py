"""SQLModel ParticipationRecord model and its status state machine"""

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, Column
from sqlalchemy import Enum as SAEnum
from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class ParticipationStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"


# The only legal move is PENDING -> CONFIRMED
ALLOWED_TRANSITIONS = {
    ParticipationStatus.PENDING: {ParticipationStatus.CONFIRMED},
    ParticipationStatus.CONFIRMED: set(),
}


class InvalidTransitionError(ValueError):
    """Raised when a participation status change is not allowed"""


def initial_status(requires_approval: bool) -> ParticipationStatus:
    """Status a new record starts in, given the event's approval policy."""
    if requires_approval:
        return ParticipationStatus.PENDING
    return ParticipationStatus.CONFIRMED


def transition(
    current: ParticipationStatus, target: ParticipationStatus
) -> ParticipationStatus:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Cannot move participation from {current.value} to {target.value}"
        )
    return target


class ParticipationRecord(SQLModel, table=True):
    """One join attempt per (event, participant) pair"""

    __tablename__ = "event_participants"

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="events.id", ondelete="CASCADE", index=True)
    participant_id: int = Field(foreign_key="participant_profiles.id", index=True)
    status: ParticipationStatus = Field(
        default=ParticipationStatus.PENDING,
        sa_column=Column(
            SAEnum(
                ParticipationStatus,
                name="participation_status",
                native_enum=True,
                values_callable=lambda enum: [e.value for e in enum],
            ),
            nullable=False,
            server_default=ParticipationStatus.PENDING.value,
        ),
    )
    answers: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        UniqueConstraint(
            "event_id",
            "participant_id",
            name="uq_event_participants_event_participant",
        ),
    )

    def confirm(self) -> None:
        self.status = transition(self.status, ParticipationStatus.CONFIRMED)
        self.updated_at = datetime.now(timezone.utc)
