"""Company service: tenants, their organizers and organizer invitations"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlmodel import Session, select

from eventhub.auth.models import AuthUser
from eventhub.auth.passwords import hash_password
from eventhub.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    TransientDependencyError,
    ValidationError,
)
from eventhub.models.company import Company, CompanyOrganizer
from eventhub.models.event import Event
from eventhub.models.user import OrganizerProfile, Role, User
from eventhub.services.email_service import EmailService
from eventhub.services.user_service import create_user_with_profile, ensure_profile
from eventhub.utils.time_utils import as_utc
from eventhub.utils.tokens import generate_password

logger = logging.getLogger(__name__)


class CompanyService:
    """Service for companies and their organizer memberships"""

    def __init__(
        self, db_session: Session, email_service: Optional[EmailService] = None
    ):
        self.db = db_session
        self.email_service = email_service

    def create_company(
        self,
        name: str,
        description: Optional[str],
        current_user: AuthUser,
        owner_id: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Create a company; its owner becomes its first organizer.

        Args:
            name: Company name
            description: Optional free text
            current_user: ADMIN or ORGANIZER creating the company
            owner_id: Organizer profile to own it (ADMIN only; defaults to caller)
        """
        if not name or not name.strip():
            raise ValidationError("Company name is required")

        if owner_id is not None and current_user.role == Role.ADMIN:
            owner = self.db.get(OrganizerProfile, owner_id)
            if not owner:
                raise NotFoundError("Organizer not found")
        else:
            user = self.db.get(User, current_user.id)
            if not user:
                raise NotFoundError("User not found")
            owner = ensure_profile(self.db, user)

        try:
            company = Company(name=name.strip(), description=description, owner_id=owner.id)
            self.db.add(company)
            self.db.flush()
            self.db.add(CompanyOrganizer(company_id=company.id, organizer_id=owner.id))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(company)

        logger.info(f"Created company {company.id} owned by organizer {owner.id}")
        return self._summary(company)

    def list_companies(self) -> List[Dict[str, Any]]:
        companies = self.db.exec(select(Company).order_by(Company.id.asc())).all()
        return [self._summary(c) for c in companies]

    def get_company(self, company_id: int) -> Dict[str, Any]:
        """Company with its organizers and events"""
        company = self._get(company_id)

        organizers = self.db.exec(
            select(OrganizerProfile, User)
            .join(CompanyOrganizer, CompanyOrganizer.organizer_id == OrganizerProfile.id)
            .join(User, User.id == OrganizerProfile.user_id)
            .where(CompanyOrganizer.company_id == company_id)
            .order_by(OrganizerProfile.id.asc())
        ).all()
        events = self.db.exec(
            select(Event)
            .where(Event.company_id == company_id)
            .order_by(Event.start_date.asc())
        ).all()

        details = self._summary(company)
        details["organizers"] = [
            {"id": profile.id, "name": profile.name, "email": user.email}
            for profile, user in organizers
        ]
        details["events"] = [
            {
                "id": e.id,
                "title": e.title,
                "status": e.status,
                "start_date": as_utc(e.start_date),
                "end_date": as_utc(e.end_date),
            }
            for e in events
        ]
        return details

    def update_company(
        self,
        company_id: int,
        current_user: AuthUser,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Dict[str, Any]:
        company = self._get(company_id)
        self._ensure_can_manage(company, current_user)

        if name is not None:
            if not name.strip():
                raise ValidationError("Company name cannot be empty")
            company.name = name.strip()
        if description is not None:
            company.description = description
        company.updated_at = datetime.now(timezone.utc)

        self.db.add(company)
        self.db.commit()
        self.db.refresh(company)
        logger.info(f"Updated company {company.id}")
        return self._summary(company)

    def delete_company(self, company_id: int) -> None:
        company = self._get(company_id)

        has_events = self.db.exec(
            select(Event.id).where(Event.company_id == company_id)
        ).first()
        if has_events is not None:
            raise ConflictError("Company still has events; delete them first")

        try:
            for membership in self.db.exec(
                select(CompanyOrganizer).where(CompanyOrganizer.company_id == company_id)
            ).all():
                self.db.delete(membership)
            self.db.flush()
            self.db.delete(company)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Deleted company {company_id}")

    async def invite_organizer(
        self, company_id: int, email: str, current_user: AuthUser
    ) -> Dict[str, Any]:
        """
        Create an organizer account for ``email`` and add it to the company.

        The generated password is emailed to the invitee; if the email cannot
        be sent the account is not created.

        Raises:
            NotFoundError: Company does not exist
            ForbiddenError: Caller is not ADMIN or a member of the company
            ConflictError: An account already exists for the email
            TransientDependencyError: Invitation email could not be sent
        """
        email = (email or "").strip().lower()
        if not email:
            raise ValidationError("Email is required")

        company = self._get(company_id)
        if current_user.role != Role.ADMIN and not self._is_member(
            company_id, current_user.id
        ):
            raise ForbiddenError("You cannot invite organizers to this company")

        if self.db.exec(select(User).where(User.email == email)).first():
            raise ConflictError("User already exists")

        if self.email_service is None:
            raise TransientDependencyError("Email service is not configured")

        password = generate_password()
        try:
            user = create_user_with_profile(
                self.db,
                email=email,
                name=email.split("@")[0],
                role=Role.ORGANIZER,
                password_hash=hash_password(password),
            )
            profile = ensure_profile(self.db, user)
            self.db.add(CompanyOrganizer(company_id=company_id, organizer_id=profile.id))
            self.db.flush()
        except Exception:
            self.db.rollback()
            raise

        sent = await self.email_service.send_organizer_invitation(
            email, password, company.name
        )
        if not sent:
            self.db.rollback()
            logger.warning(f"Invitation email to {email} failed; invite discarded")
            raise TransientDependencyError("Could not send invitation email")

        self.db.commit()
        logger.info(f"Invited organizer {profile.id} to company {company_id}")
        return {"message": "Organizer invited", "organizer_id": profile.id}

    # Helpers
    def _get(self, company_id: int) -> Company:
        company = self.db.get(Company, company_id)
        if not company:
            raise NotFoundError("Company not found")
        return company

    def _is_member(self, company_id: int, user_id: int) -> bool:
        return (
            self.db.exec(
                select(CompanyOrganizer)
                .join(
                    OrganizerProfile,
                    OrganizerProfile.id == CompanyOrganizer.organizer_id,
                )
                .where(
                    CompanyOrganizer.company_id == company_id,
                    OrganizerProfile.user_id == user_id,
                )
            ).first()
            is not None
        )

    def _ensure_can_manage(self, company: Company, current_user: AuthUser) -> None:
        if current_user.role == Role.ADMIN:
            return
        if current_user.role == Role.ORGANIZER and self._is_member(
            company.id, current_user.id
        ):
            return
        raise ForbiddenError("You cannot manage this company")

    def _summary(self, company: Company) -> Dict[str, Any]:
        owner = self.db.get(OrganizerProfile, company.owner_id)
        return {
            "id": company.id,
            "name": company.name,
            "description": company.description,
            "owner": {"id": owner.id, "name": owner.name} if owner else None,
            "created_at": company.created_at,
            "updated_at": company.updated_at,
        }
