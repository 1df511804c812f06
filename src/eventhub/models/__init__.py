"""Database models for EventHub"""

from eventhub.models.company import Company, CompanyOrganizer
from eventhub.models.credentials import OTP, OtpPurpose, PasswordResetToken, UnverifiedUser
from eventhub.models.event import Attachment, Event, EventMode, EventStatus, MediaType
from eventhub.models.participation import ParticipationRecord, ParticipationStatus
from eventhub.models.user import OrganizerProfile, ParticipantProfile, Role, User

__all__ = [
    "User",
    "Role",
    "OrganizerProfile",
    "ParticipantProfile",
    "Company",
    "CompanyOrganizer",
    "Event",
    "EventMode",
    "EventStatus",
    "MediaType",
    "Attachment",
    "ParticipationRecord",
    "ParticipationStatus",
    "UnverifiedUser",
    "OTP",
    "OtpPurpose",
    "PasswordResetToken",
]
