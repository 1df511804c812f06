"""Lifecycle sweep that completes events whose end date has passed"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import update
from sqlmodel import Session

from eventhub.models.event import Event, EventStatus
from eventhub.utils.time_utils import as_utc, utcnow

logger = logging.getLogger(__name__)


class LifecycleService:
    def __init__(self, db_session: Session):
        self.db = db_session

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """
        Move every ACTIVE event with end_date before ``now`` to COMPLETED.

        Cancelled events are left alone and running the sweep twice changes
        nothing the second time.

        Returns:
            Number of events that were completed
        """
        cutoff = as_utc(now) if now else utcnow()

        stmt = (
            update(Event)
            .where(Event.status == EventStatus.ACTIVE, Event.end_date < cutoff)
            .values(status=EventStatus.COMPLETED, updated_at=cutoff)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.exec(stmt)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        count = result.rowcount or 0
        logger.info(f"Marked {count} expired events as COMPLETED")
        return count
