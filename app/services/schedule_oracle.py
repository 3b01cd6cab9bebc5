from typing import List, Protocol

from sqlalchemy.orm import Session

from app.models.offer import OfferSchedule
from app.schemas.recurring_promotion import ScheduleSegment


class ScheduleOracle(Protocol):
    """Read-only view of when an offer is open."""

    def list_active_segments(self, offer_id: str) -> List[ScheduleSegment]:
        ...


class SqlScheduleOracle:
    """Reads the catalogue's `offer_schedules` table."""

    def __init__(self, db: Session):
        self.db = db

    def list_active_segments(self, offer_id: str) -> List[ScheduleSegment]:
        rows = (
            self.db.query(OfferSchedule)
            .filter(
                OfferSchedule.offer_id == offer_id,
                OfferSchedule.is_active.is_(True),
            )
            .order_by(OfferSchedule.start_time.asc(), OfferSchedule.id.asc())
            .all()
        )
        return [
            ScheduleSegment(
                days_of_week=list(row.days_of_week or []),
                start_time=row.start_time,
                end_time=row.end_time,
            )
            for row in rows
        ]
