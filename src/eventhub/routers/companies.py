"""Company endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from eventhub.auth.dependencies import get_current_user, require_roles
from eventhub.auth.models import AuthUser
from eventhub.models.database import get_db
from eventhub.models.user import Role
from eventhub.services.company_service import CompanyService
from eventhub.services.email_service import EmailService, get_email_service

router = APIRouter(prefix="/company", tags=["Companies"])

require_organizer = require_roles(Role.ADMIN, Role.ORGANIZER)


class CompanyCreateRequest(BaseModel):
    name: str
    description: Optional[str] = None
    owner_id: Optional[int] = None


class CompanyUpdateRequest(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class InviteOrganizerRequest(BaseModel):
    company_id: int
    email: str


@router.get("")
async def list_companies(
    db: Session = Depends(get_db),
    _: AuthUser = Depends(get_current_user),
):
    return {"companies": CompanyService(db).list_companies()}


@router.post("/invite-organizer", status_code=201)
async def invite_organizer(
    request: InviteOrganizerRequest,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    current_user: AuthUser = Depends(require_organizer),
):
    service = CompanyService(db, email_service)
    return await service.invite_organizer(
        request.company_id, request.email, current_user
    )


@router.get("/{company_id}")
async def get_company(
    company_id: int,
    db: Session = Depends(get_db),
    _: AuthUser = Depends(get_current_user),
):
    return CompanyService(db).get_company(company_id)


@router.post("", status_code=201)
async def create_company(
    request: CompanyCreateRequest,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(require_organizer),
):
    return CompanyService(db).create_company(
        request.name, request.description, current_user, owner_id=request.owner_id
    )


@router.put("/{company_id}")
async def update_company(
    company_id: int,
    request: CompanyUpdateRequest,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(require_organizer),
):
    return CompanyService(db).update_company(
        company_id, current_user, name=request.name, description=request.description
    )


@router.delete("/{company_id}")
async def delete_company(
    company_id: int,
    db: Session = Depends(get_db),
    _: AuthUser = Depends(require_roles(Role.ADMIN)),
):
    CompanyService(db).delete_company(company_id)
    return {"message": "Company deleted"}
