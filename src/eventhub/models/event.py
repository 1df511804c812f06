"""SQLModel Event and Attachment models"""

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import JSON, CheckConstraint, Column, DateTime, Index, Text
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel


class EventStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class EventMode(str, enum.Enum):
    ONLINE = "ONLINE"
    ONSITE = "ONSITE"


class MediaType(str, enum.Enum):
    IMAGE = "IMAGE"
    VIDEO = "VIDEO"


def _enum_column(enum_cls, name: str, **kwargs) -> Column:
    return Column(
        SAEnum(
            enum_cls,
            name=name,
            native_enum=True,
            values_callable=lambda enum: [e.value for e in enum],
        ),
        **kwargs,
    )


class Event(SQLModel, table=True):
    """Event owned by an organizer within a company.

    All timestamps are stored in UTC. ``total_seats`` bounds the number of
    CONFIRMED participation records; ``None`` means unlimited.
    """

    __tablename__ = "events"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: str = Field(sa_column=Column(Text, nullable=False))
    category: Optional[str] = None
    mode: EventMode = Field(
        sa_column=_enum_column(EventMode, "event_mode", nullable=False)
    )
    venue: Optional[str] = None
    join_link: Optional[str] = None
    contact_info: Optional[str] = None
    total_seats: Optional[int] = None
    requires_approval: bool = Field(default=False)
    join_questions: Optional[list] = Field(default=None, sa_column=Column(JSON))

    start_date: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    end_date: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True)
    )
    status: EventStatus = Field(
        default=EventStatus.ACTIVE,
        sa_column=_enum_column(
            EventStatus,
            "event_status",
            nullable=False,
            server_default=EventStatus.ACTIVE.value,
            index=True,
        ),
    )

    company_id: int = Field(foreign_key="companies.id", index=True)
    organizer_id: int = Field(foreign_key="organizer_profiles.id", index=True)

    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        CheckConstraint("start_date < end_date", name="ck_events_start_before_end"),
        CheckConstraint(
            "total_seats IS NULL OR total_seats >= 0",
            name="ck_events_total_seats_ge_0",
        ),
        Index("idx_events_status_start", "status", "start_date"),
    )


class Attachment(SQLModel, table=True):
    """Uploaded media descriptor attached to an event"""

    __tablename__ = "event_attachments"

    id: Optional[int] = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="events.id", ondelete="CASCADE", index=True)
    url: str
    public_id: Optional[str] = None
    media_type: MediaType = Field(
        default=MediaType.IMAGE,
        sa_column=_enum_column(MediaType, "attachment_media_type", nullable=False),
    )
