"""Event endpoints: catalog, management, participation and lifecycle sweep"""

import math
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlmodel import Session

from eventhub.auth.dependencies import get_current_user, require_admin_key, require_roles
from eventhub.auth.models import AuthUser
from eventhub.models.database import get_db
from eventhub.models.user import Role
from eventhub.services.email_service import EmailService, get_email_service
from eventhub.services.event_service import EventCreate, EventService, EventUpdate
from eventhub.services.lifecycle_service import LifecycleService
from eventhub.services.participation_service import ParticipationService

router = APIRouter(prefix="/events", tags=["Events"])

require_organizer = require_roles(Role.ADMIN, Role.ORGANIZER)


class JoinRequest(BaseModel):
    answers: Optional[Dict[str, Any]] = None


@router.get("")
async def list_events(
    status: Optional[str] = Query("active", description="active, completed, cancelled, past or all"),
    page: int = Query(1),
    limit: int = Query(10, description="Page size, clamped to 1..50"),
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    result = EventService(db).list_events(
        status=status, page=page, page_size=limit, search=search
    )
    return {
        "events": result.items,
        "pagination": {
            "page": result.page,
            "limit": result.page_size,
            "total": result.total,
            "total_pages": math.ceil(result.total / result.page_size),
        },
    }


@router.patch("/mark-expired")
async def mark_expired(
    db: Session = Depends(get_db),
    _: None = Depends(require_admin_key),
):
    """Complete every active event whose end date has passed"""
    count = LifecycleService(db).sweep_expired()
    return {"message": f"{count} events marked as completed", "count": count}


@router.get("/{event_id}")
async def get_event(event_id: int, db: Session = Depends(get_db)):
    return EventService(db).get_event_details(event_id)


@router.post("", status_code=201)
async def create_event(
    request: EventCreate,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(require_organizer),
):
    return EventService(db).create_event(request, current_user)


@router.patch("/{event_id}")
async def update_event(
    event_id: int,
    request: EventUpdate,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(require_organizer),
):
    return EventService(db).update_event(event_id, request, current_user)


@router.delete("/{event_id}")
async def delete_event(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(require_organizer),
):
    EventService(db).delete_event(event_id, current_user)
    return {"message": "Event deleted"}


@router.get("/{event_id}/participants")
async def list_participants(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(require_organizer),
):
    participants = ParticipationService(db).list_participants(event_id, current_user)
    return {"participants": participants}


@router.post("/{event_id}/participants/{participant_id}/approve")
async def approve_participant(
    event_id: int,
    participant_id: int,
    db: Session = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    current_user: AuthUser = Depends(require_organizer),
):
    service = ParticipationService(db, email_service)
    result = await service.approve_participant(event_id, participant_id, current_user)
    if result.already_confirmed:
        message = "Participant already confirmed"
    else:
        message = "Participant approved"
    return {
        "message": message,
        "participant": result.record,
        "email_sent": result.email_sent,
    }


@router.post("/{event_id}/join", status_code=201)
async def join_event(
    event_id: int,
    request: Optional[JoinRequest] = None,
    db: Session = Depends(get_db),
    current_user: AuthUser = Depends(get_current_user),
):
    answers = request.answers if request else None
    record = ParticipationService(db).join(event_id, current_user, answers)
    return {"message": "Joined event", "participant": record}
