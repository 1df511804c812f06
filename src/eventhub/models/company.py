"""SQLModel company and membership models"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel


class Company(SQLModel, table=True):
    """Tenant that groups organizers and their events"""

    __tablename__ = "companies"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = Field(default=None, sa_column=Column(Text))
    owner_id: int = Field(foreign_key="organizer_profiles.id", index=True)
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    updated_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )


class CompanyOrganizer(SQLModel, table=True):
    """Join table connecting organizer profiles to the companies they work for."""

    __tablename__ = "company_organizers"

    company_id: int = Field(
        foreign_key="companies.id", primary_key=True, ondelete="CASCADE"
    )
    organizer_id: int = Field(
        foreign_key="organizer_profiles.id", primary_key=True, ondelete="CASCADE"
    )
    joined_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
