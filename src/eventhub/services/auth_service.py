"""Authentication service: signup, email verification, login, OTP and password reset.

Flows that hand the user a secret by email stage their rows, send the email
and only then commit; if the email cannot be sent nothing is persisted and a
TransientDependencyError is raised.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, Optional

from sqlmodel import Session, select

from eventhub.auth.jwt_utils import JWTUtils, jwt_utils
from eventhub.auth.passwords import hash_password, verify_password
from eventhub.config import config
from eventhub.errors import (
    ConflictError,
    NotAuthorizedError,
    NotFoundError,
    TokenExpiredError,
    TransientDependencyError,
    ValidationError,
)
from eventhub.models.credentials import OTP, OtpPurpose, PasswordResetToken, UnverifiedUser
from eventhub.models.user import Role, User
from eventhub.services.email_service import EmailService
from eventhub.services.user_service import build_user_summary, create_user_with_profile
from eventhub.utils.time_utils import as_utc, utcnow
from eventhub.utils.tokens import generate_otp, generate_token

logger = logging.getLogger(__name__)

# Roles a user may pick for themselves
SELF_SERVICE_ROLES = (Role.ORGANIZER, Role.PARTICIPANT)


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def _check_self_service_role(role: Optional[Role]) -> Role:
    role = role or Role.PARTICIPANT
    if role not in SELF_SERVICE_ROLES:
        raise ValidationError("Role must be ORGANIZER or PARTICIPANT")
    return role


class AuthService:
    """Service for account creation and credential exchange"""

    def __init__(
        self,
        db_session: Session,
        email_service: Optional[EmailService] = None,
        jwt: Optional[JWTUtils] = None,
    ):
        self.db = db_session
        self.email_service = email_service
        self.jwt = jwt or jwt_utils

    # Signup with email verification link
    async def signup(
        self, email: str, password: str, name: str, role: Optional[Role] = None
    ) -> Dict[str, str]:
        email = _normalize_email(email)
        if not email or not password or not name:
            raise ValidationError("Email, password and name are required")
        role = _check_self_service_role(role)

        if self._find_user(email):
            raise ConflictError("User already exists")

        for stale in self.db.exec(
            select(UnverifiedUser).where(UnverifiedUser.email == email)
        ).all():
            self.db.delete(stale)

        token = generate_token()
        ttl = config.get("verify_ttl_minutes", 60)
        self.db.add(
            UnverifiedUser(
                email=email,
                name=name,
                password_hash=hash_password(password),
                role=role,
                token=token,
                expires_at=utcnow() + timedelta(minutes=ttl),
            )
        )
        self.db.flush()

        await self._send_or_abort(
            self._email().send_verification_email(email, name, token),
            "Could not send verification email",
        )
        self.db.commit()

        logger.info(f"Pending signup stored for {email} as {role.value}")
        return {"message": "Verification email sent"}

    def verify_email(self, token: str) -> Dict[str, Any]:
        """Turn a pending signup into a user with its profile"""
        pending = self.db.exec(
            select(UnverifiedUser).where(UnverifiedUser.token == token)
        ).first()
        if not pending:
            raise NotFoundError("Invalid verification token")
        if as_utc(pending.expires_at) < utcnow():
            raise TokenExpiredError("Verification link has expired")
        if self._find_user(pending.email):
            raise ConflictError("User already exists")

        try:
            user = create_user_with_profile(
                self.db,
                email=pending.email,
                name=pending.name,
                role=pending.role,
                password_hash=pending.password_hash,
            )
            self.db.delete(pending)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)

        logger.info(f"Verified user {user.id} ({user.role.value})")
        return self._session_payload(user)

    def login(self, email: str, password: str) -> Dict[str, Any]:
        user = self._find_user(_normalize_email(email))
        if (
            not user
            or not user.password_hash
            or not verify_password(password or "", user.password_hash)
        ):
            raise NotAuthorizedError("Invalid credentials")

        logger.info(f"User {user.id} logged in")
        return self._session_payload(user)

    # One-time passcodes
    async def send_otp(self, email: str, purpose: OtpPurpose) -> Dict[str, str]:
        """
        Email a fresh 6-digit code, replacing any earlier codes for the email.

        Raises:
            ConflictError: SIGNUP for an email that already has an account
            NotFoundError: LOGIN for an unknown email
            TransientDependencyError: The code could not be emailed
        """
        email = _normalize_email(email)
        if not email:
            raise ValidationError("Email is required")

        user = self._find_user(email)
        if purpose == OtpPurpose.SIGNUP and user:
            raise ConflictError("User already exists")
        if purpose == OtpPurpose.LOGIN and not user:
            raise NotFoundError("User not found")
        if purpose == OtpPurpose.RESET and not user:
            # Do not reveal whether the account exists
            return {"message": "If the account exists, an OTP has been sent"}

        for old in self.db.exec(select(OTP).where(OTP.email == email)).all():
            self.db.delete(old)

        ttl = config.get("otp_ttl_minutes", 10)
        code = generate_otp()
        self.db.add(
            OTP(
                email=email,
                code=code,
                purpose=purpose,
                expires_at=utcnow() + timedelta(minutes=ttl),
            )
        )
        self.db.flush()

        await self._send_or_abort(
            self._email().send_otp_email(email, code, purpose, ttl),
            "Could not send OTP email",
        )
        self.db.commit()

        logger.info(f"OTP issued for {email} ({purpose.value})")
        return {"message": "OTP sent"}

    def verify_otp(
        self,
        email: str,
        code: str,
        purpose: Optional[OtpPurpose] = None,
        name: Optional[str] = None,
        role: Optional[Role] = None,
    ) -> Dict[str, Any]:
        """
        Consume a code and act on its purpose.

        SIGNUP creates the account, LOGIN signs in and RESET issues a password
        reset token.

        Returns:
            Token and user summary for SIGNUP/LOGIN, ``reset_token`` for RESET
        """
        email = _normalize_email(email)
        stmt = select(OTP).where(
            OTP.email == email, OTP.code == code, OTP.consumed_at.is_(None)
        )
        if purpose is not None:
            stmt = stmt.where(OTP.purpose == purpose)
        otp = self.db.exec(stmt.order_by(OTP.id.desc())).first()

        now = utcnow()
        if not otp or as_utc(otp.expires_at) < now:
            raise ValidationError("Invalid or expired OTP")

        user = self._find_user(email)
        reset_token = None
        try:
            if otp.purpose == OtpPurpose.SIGNUP:
                if user:
                    raise ConflictError("User already exists")
                user = create_user_with_profile(
                    self.db,
                    email=email,
                    name=name or email.split("@")[0],
                    role=_check_self_service_role(role),
                )
            elif not user:
                raise NotFoundError("User not found")
            elif otp.purpose == OtpPurpose.RESET:
                reset_token = self._stage_reset_token(user)

            otp.consumed_at = now
            self.db.add(otp)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"OTP verified for {email} ({otp.purpose.value})")
        if reset_token:
            return {"reset_token": reset_token}
        self.db.refresh(user)
        return self._session_payload(user)

    # Password reset
    async def request_password_reset(self, email: str) -> Dict[str, str]:
        user = self._find_user(_normalize_email(email))
        if not user:
            raise NotFoundError("User not found")

        token = self._stage_reset_token(user)
        await self._send_or_abort(
            self._email().send_password_reset_email(user.email, token),
            "Could not send password reset email",
        )
        self.db.commit()

        logger.info(f"Password reset requested for user {user.id}")
        return {"message": "Password reset email sent"}

    def reset_password(self, token: str, new_password: str) -> Dict[str, str]:
        if not new_password:
            raise ValidationError("New password is required")

        reset = self.db.exec(
            select(PasswordResetToken).where(PasswordResetToken.token == token)
        ).first()
        if not reset or reset.used_at is not None or as_utc(reset.expires_at) < utcnow():
            raise ValidationError("Invalid or expired reset token")

        user = self.db.get(User, reset.user_id)
        if not user:
            raise ValidationError("Invalid or expired reset token")
        if user.password_hash and verify_password(new_password, user.password_hash):
            raise ValidationError("New password must differ from the old one")

        try:
            user.password_hash = hash_password(new_password)
            user.updated_at = utcnow()
            reset.used_at = utcnow()
            self.db.add(user)
            self.db.add(reset)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Password reset for user {user.id}")
        return {"message": "Password updated"}

    # Helpers
    def _find_user(self, email: str) -> Optional[User]:
        return self.db.exec(select(User).where(User.email == email)).first()

    def _stage_reset_token(self, user: User) -> str:
        token = generate_token()
        ttl = config.get("reset_ttl_minutes", 60)
        self.db.add(
            PasswordResetToken(
                user_id=user.id,
                token=token,
                expires_at=utcnow() + timedelta(minutes=ttl),
            )
        )
        self.db.flush()
        return token

    def _session_payload(self, user: User) -> Dict[str, Any]:
        token = self.jwt.create_access_token(user.id, user.email, user.role.value)
        return {"token": token, "user": build_user_summary(self.db, user)}

    def _email(self) -> EmailService:
        if self.email_service is None:
            self.db.rollback()
            raise TransientDependencyError("Email service is not configured")
        return self.email_service

    async def _send_or_abort(self, send, message: str) -> None:
        """Await an email send; roll back staged rows if it did not go out."""
        sent = await send
        if not sent:
            self.db.rollback()
            logger.warning(message)
            raise TransientDependencyError(message)
