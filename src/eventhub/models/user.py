"""SQLModel user and role-profile models"""

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    ORGANIZER = "ORGANIZER"
    PARTICIPANT = "PARTICIPANT"


def role_column(name: str) -> Column:
    return Column(
        SAEnum(
            Role,
            name=name,
            native_enum=True,
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        server_default=Role.PARTICIPANT.value,
    )


class User(SQLModel, table=True):
    """Account holder. The role decides which profile row backs the user."""

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    name: Optional[str] = None
    # Null for accounts created through OTP signup
    password_hash: Optional[str] = None
    role: Role = Field(default=Role.PARTICIPANT, sa_column=role_column("user_role"))
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class OrganizerProfile(SQLModel, table=True):
    """Profile backing ADMIN and ORGANIZER users"""

    __tablename__ = "organizer_profiles"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    name: str
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class ParticipantProfile(SQLModel, table=True):
    """Profile backing PARTICIPANT users"""

    __tablename__ = "participant_profiles"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", unique=True, index=True)
    name: str
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


# Which profile table a role is backed by
ORGANIZER_ROLES = (Role.ADMIN, Role.ORGANIZER)
