"""Short-lived credential staging records: pending signups, OTPs, reset tokens"""

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel

from eventhub.models.user import Role, role_column


class OtpPurpose(str, enum.Enum):
    LOGIN = "LOGIN"
    SIGNUP = "SIGNUP"
    RESET = "RESET"


class UnverifiedUser(SQLModel, table=True):
    """Signup waiting for its email verification link to be followed"""

    __tablename__ = "unverified_users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True)
    name: str
    password_hash: str
    role: Role = Field(
        default=Role.PARTICIPANT, sa_column=role_column("unverified_user_role")
    )
    token: str = Field(unique=True, index=True)
    expires_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class OTP(SQLModel, table=True):
    """Single-use numeric code sent by email"""

    __tablename__ = "otps"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True)
    code: str
    purpose: OtpPurpose = Field(
        sa_column=Column(
            SAEnum(
                OtpPurpose,
                name="otp_purpose",
                native_enum=True,
                values_callable=lambda enum: [e.value for e in enum],
            ),
            nullable=False,
        )
    )
    expires_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    consumed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )


class PasswordResetToken(SQLModel, table=True):
    __tablename__ = "password_reset_tokens"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", ondelete="CASCADE", index=True)
    token: str = Field(unique=True, index=True)
    expires_at: datetime = Field(
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
    used_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
