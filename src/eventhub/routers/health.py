from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlmodel import Session, select, text

from eventhub.config import config
from eventhub.models.database import get_db
from eventhub.models.event import Event, EventStatus
from eventhub.utils.time_utils import utcnow

health = APIRouter()

REQUIRED_SETTINGS = ("database_url", "jwt_secret", "admin_api_key")
EMAIL_SETTINGS = ("mailgun_api_key", "mailgun_domain", "sender_email")


def _base_status() -> dict:
    return {
        "status": "healthy",
        "service": "eventhub",
        "timestamp": utcnow().isoformat(),
        "environment": config.get("environment") or "development",
    }


@health.get("/health")
async def health_check():
    """Liveness probe"""
    return _base_status()


@health.get("/health/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    """Readiness probe: database, required settings and email delivery.

    Missing email settings are reported but do not fail the check, since
    browsing and joining events keep working without outbound mail.
    """
    status = _base_status()
    checks = status["checks"] = {}

    try:
        db.exec(text("SELECT 1")).first()
        checks["database"] = "healthy"
        # Active events past their end that the sweep has not picked up yet
        checks["events_awaiting_sweep"] = db.exec(
            select(func.count(Event.id)).where(
                Event.status == EventStatus.ACTIVE, Event.end_date < utcnow()
            )
        ).one()
    except Exception as e:
        checks["database"] = f"unhealthy: {e}"
        status["status"] = "unhealthy"

    missing = [key.upper() for key in REQUIRED_SETTINGS if not config.get(key)]
    if missing:
        checks["settings"] = f"missing: {', '.join(missing)}"
        status["status"] = "unhealthy"
    else:
        checks["settings"] = "healthy"

    email_ready = all(config.get(key) for key in EMAIL_SETTINGS)
    checks["email"] = "configured" if email_ready else "not configured"

    if status["status"] == "unhealthy":
        raise HTTPException(status_code=503, detail=status)

    return status
