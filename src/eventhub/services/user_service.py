"""User service: account directory, roles and role-backed profiles"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from eventhub.auth.models import AuthUser
from eventhub.auth.passwords import hash_password, verify_password
from eventhub.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from eventhub.models.company import Company, CompanyOrganizer
from eventhub.models.credentials import PasswordResetToken
from eventhub.models.event import Event
from eventhub.models.participation import ParticipationRecord
from eventhub.models.user import (
    ORGANIZER_ROLES,
    OrganizerProfile,
    ParticipantProfile,
    Role,
    User,
)

logger = logging.getLogger(__name__)


def _display_name(user: User) -> str:
    return user.name or user.email.split("@")[0]


def ensure_profile(db: Session, user: User):
    """Return the profile backing ``user.role``, creating it if missing.

    ADMIN and ORGANIZER users are backed by an OrganizerProfile, PARTICIPANT
    users by a ParticipantProfile. Does not commit.
    """
    if user.role in ORGANIZER_ROLES:
        profile_cls = OrganizerProfile
    else:
        profile_cls = ParticipantProfile

    profile = db.exec(select(profile_cls).where(profile_cls.user_id == user.id)).first()
    if not profile:
        profile = profile_cls(user_id=user.id, name=_display_name(user))
        db.add(profile)
        db.flush()
        logger.info(f"Created {profile_cls.__name__} for user {user.id}")
    return profile


def create_user_with_profile(
    db: Session,
    email: str,
    name: Optional[str],
    role: Role,
    password_hash: Optional[str] = None,
) -> User:
    """Add a user and its matching profile to the session. Does not commit."""
    user = User(email=email, name=name, role=role, password_hash=password_hash)
    db.add(user)
    db.flush()
    ensure_profile(db, user)
    return user


def build_user_summary(db: Session, user: User) -> Dict[str, Any]:
    """User fields returned by login and profile endpoints.

    Organizers carry their profile and first company; participants carry
    their profile and participation records.
    """
    summary: Dict[str, Any] = {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role,
        "profile_id": None,
    }

    if user.role in ORGANIZER_ROLES:
        profile = db.exec(
            select(OrganizerProfile).where(OrganizerProfile.user_id == user.id)
        ).first()
        summary["company_id"] = None
        if profile:
            summary["profile_id"] = profile.id
            summary["company_id"] = db.exec(
                select(CompanyOrganizer.company_id)
                .where(CompanyOrganizer.organizer_id == profile.id)
                .order_by(CompanyOrganizer.company_id.asc())
            ).first()
    else:
        profile = db.exec(
            select(ParticipantProfile).where(ParticipantProfile.user_id == user.id)
        ).first()
        summary["participations"] = []
        if profile:
            summary["profile_id"] = profile.id
            summary["participations"] = [
                {"event_id": r.event_id, "status": r.status}
                for r in db.exec(
                    select(ParticipationRecord)
                    .where(ParticipationRecord.participant_id == profile.id)
                    .order_by(ParticipationRecord.id.asc())
                ).all()
            ]

    return summary


class UserService:
    """Service for user accounts"""

    def __init__(self, db_session: Session):
        self.db = db_session

    def get_user(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.exec(select(User).where(User.email == email.strip().lower())).first()

    def list_users(self) -> List[Dict[str, Any]]:
        users = self.db.exec(select(User).order_by(User.id.asc())).all()
        return [
            {
                "id": u.id,
                "email": u.email,
                "name": u.name,
                "role": u.role,
                "created_at": u.created_at,
            }
            for u in users
        ]

    def update_role(self, user_id: int, role: Role) -> Dict[str, Any]:
        """Change a user's role, creating the profile the new role needs.

        The previous profile is kept: events and participation records still
        point at it. Only the profile matching the current role is active,
        so a former participant can no longer join events.
        """
        user = self.get_user(user_id)
        previous = user.role

        try:
            user.role = role
            user.updated_at = datetime.now(timezone.utc)
            self.db.add(user)
            self.db.flush()
            ensure_profile(self.db, user)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)

        logger.info(f"User {user.id} role changed {previous.value} -> {role.value}")
        return build_user_summary(self.db, user)

    def delete_user(self, user_id: int, current_user: AuthUser) -> None:
        """
        Delete a user with its profiles, memberships and participations.

        Raises:
            ForbiddenError: Caller is neither ADMIN nor the user
            NotFoundError: User does not exist
            ConflictError: User still owns companies or organizes events
        """
        if current_user.role != Role.ADMIN and current_user.id != user_id:
            raise ForbiddenError("You can only delete your own account")

        user = self.get_user(user_id)
        organizer = self.db.exec(
            select(OrganizerProfile).where(OrganizerProfile.user_id == user_id)
        ).first()
        participant = self.db.exec(
            select(ParticipantProfile).where(ParticipantProfile.user_id == user_id)
        ).first()

        if organizer:
            owns_company = self.db.exec(
                select(Company.id).where(Company.owner_id == organizer.id)
            ).first()
            organizes_event = self.db.exec(
                select(Event.id).where(Event.organizer_id == organizer.id)
            ).first()
            if owns_company is not None or organizes_event is not None:
                raise ConflictError(
                    "User still owns companies or events; reassign or delete them first"
                )

        try:
            if participant:
                for record in self.db.exec(
                    select(ParticipationRecord).where(
                        ParticipationRecord.participant_id == participant.id
                    )
                ).all():
                    self.db.delete(record)
                self.db.flush()
                self.db.delete(participant)
            if organizer:
                for membership in self.db.exec(
                    select(CompanyOrganizer).where(
                        CompanyOrganizer.organizer_id == organizer.id
                    )
                ).all():
                    self.db.delete(membership)
                self.db.flush()
                self.db.delete(organizer)
            for reset in self.db.exec(
                select(PasswordResetToken).where(PasswordResetToken.user_id == user_id)
            ).all():
                self.db.delete(reset)
            self.db.flush()
            self.db.delete(user)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Deleted user {user_id}")

    def update_me(self, current_user: AuthUser, name: Optional[str]) -> Dict[str, Any]:
        if not name or not name.strip():
            raise ValidationError("Name is required")

        user = self.get_user(current_user.id)
        user.name = name.strip()
        user.updated_at = datetime.now(timezone.utc)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return build_user_summary(self.db, user)

    def change_password(
        self, current_user: AuthUser, old_password: str, new_password: str
    ) -> None:
        if not old_password or not new_password:
            raise ValidationError("Both old and new passwords are required")

        user = self.get_user(current_user.id)
        if not user.password_hash or not verify_password(old_password, user.password_hash):
            raise ValidationError("Old password is incorrect")
        if old_password == new_password:
            raise ValidationError("New password must differ from the old one")

        user.password_hash = hash_password(new_password)
        user.updated_at = datetime.now(timezone.utc)
        self.db.add(user)
        self.db.commit()
        logger.info(f"User {user.id} changed password")
