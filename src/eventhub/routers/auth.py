"""Authentication endpoints: signup, verification, login, OTP and password reset"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from eventhub.auth.dependencies import get_current_user
from eventhub.auth.models import AuthUser
from eventhub.models.credentials import OtpPurpose
from eventhub.models.database import get_db
from eventhub.models.user import Role
from eventhub.services.auth_service import AuthService
from eventhub.services.email_service import EmailService, get_email_service

router = APIRouter(prefix="/auth", tags=["Auth"])


class SignupRequest(BaseModel):
    email: str
    password: str
    name: str
    role: Optional[Role] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class OtpSendRequest(BaseModel):
    email: str
    purpose: OtpPurpose = Field(default=OtpPurpose.LOGIN)


class OtpVerifyRequest(BaseModel):
    email: str
    otp: str = Field(..., description="6-digit code received by email")
    purpose: Optional[OtpPurpose] = None
    name: Optional[str] = None
    role: Optional[Role] = None


class ResetRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    token: str
    new_password: str


def get_auth_service(
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
) -> AuthService:
    return AuthService(db, email_service)


@router.get("/verify")
async def verify_email(
    token: str = Query(..., description="Verification token from the signup email"),
    service: AuthService = Depends(get_auth_service),
):
    """Complete a signup from the emailed verification link"""
    return service.verify_email(token)


@router.get("/me")
async def whoami(current_user: AuthUser = Depends(get_current_user)):
    """Identity carried by the caller's token"""
    return current_user


@router.post("/signup", status_code=201)
async def signup(
    request: SignupRequest, service: AuthService = Depends(get_auth_service)
):
    return await service.signup(
        request.email, request.password, request.name, request.role
    )


@router.post("/login")
async def login(request: LoginRequest, service: AuthService = Depends(get_auth_service)):
    return service.login(request.email, request.password)


@router.post("/otp/send")
async def send_otp(
    request: OtpSendRequest, service: AuthService = Depends(get_auth_service)
):
    return await service.send_otp(request.email, request.purpose)


@router.post("/otp/verify")
async def verify_otp(
    request: OtpVerifyRequest, service: AuthService = Depends(get_auth_service)
):
    return service.verify_otp(
        request.email,
        request.otp,
        purpose=request.purpose,
        name=request.name,
        role=request.role,
    )


@router.post("/password/request-reset")
async def request_password_reset(
    request: ResetRequest, service: AuthService = Depends(get_auth_service)
):
    return await service.request_password_reset(request.email)


@router.post("/password/reset")
async def reset_password(
    request: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)
):
    return service.reset_password(request.token, request.new_password)
