"""Small helpers shared by test modules"""

from datetime import datetime, timedelta, timezone

from eventhub.auth.jwt_utils import jwt_utils
from eventhub.auth.models import AuthUser


def future_window(days: int = 7, hours: int = 2):
    start = datetime.now(timezone.utc) + timedelta(days=days)
    return start, start + timedelta(hours=hours)


def bearer(user: AuthUser) -> dict:
    """Authorization header carrying a real token for ``user``"""
    token = jwt_utils.create_access_token(user.id, user.email, user.role.value)
    return {"Authorization": f"Bearer {token}"}
