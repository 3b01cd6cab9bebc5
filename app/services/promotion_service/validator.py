import logging
from datetime import time
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from app.core.errors import (
    DayNotAvailableError,
    NoScheduleConfiguredError,
    PricingEngineError,
    PromotionConflictError,
    PromotionValidationError,
    WindowOutsideScheduleError,
    format_time,
)
from app.models.recurring_promotion import RecurringPromotion
from app.schemas.recurring_promotion import (
    PromotionCheckResult,
    RecurringPromotionCreate,
    ScheduleSegment,
)
from app.services.schedule_oracle import ScheduleOracle

logger = logging.getLogger(__name__)


# ---------- INPUT CHECKS ----------

def normalize_promotion_request(data: RecurringPromotionCreate) -> List[int]:
    """
    Local checks that need no I/O. Returns the requested days, deduplicated
    and sorted; raises PromotionValidationError listing every problem.
    """
    errors = []

    if not data.offer_id:
        errors.append("offer_id: is required")
    if not data.days_of_week:
        errors.append("days_of_week: select at least one day")
    for day in data.days_of_week or []:
        if not 0 <= day <= 6:
            errors.append(f"days_of_week: day {day} is not in 0..6")
    if data.start_time is None or data.end_time is None:
        errors.append("start_time/end_time: are required")
    elif data.start_time >= data.end_time:
        errors.append("start_time: must be before end_time")
    if data.discount_percentage is None or not 1 <= data.discount_percentage <= 100:
        errors.append("discount_percentage: must be between 1 and 100")

    if errors:
        raise PromotionValidationError("Invalid recurring promotion", errors=errors)

    return sorted(set(data.days_of_week))


# ---------- SCHEDULE CONTAINMENT ----------

def _segment_contains(segment: ScheduleSegment, start: time, end: time) -> bool:
    return segment.start_time <= start and end <= segment.end_time


def _example_segment(segment: ScheduleSegment) -> dict:
    return {
        "days_of_week": sorted(segment.days_of_week),
        "start_time": format_time(segment.start_time),
        "end_time": format_time(segment.end_time),
    }


def ensure_within_schedule(
    oracle: ScheduleOracle,
    offer_id: str,
    days: List[int],
    start: time,
    end: time,
) -> None:
    """
    Every requested day must resolve independently against at least one
    active segment of that day that fully contains [start, end]. Stops at
    the first failing day.
    """
    segments = sorted(
        oracle.list_active_segments(offer_id),
        key=lambda s: (s.start_time, s.end_time),
    )
    if not segments:
        raise NoScheduleConfiguredError(offer_id)

    for day in days:
        day_segments = [s for s in segments if day in s.days_of_week]
        if not day_segments:
            raise DayNotAvailableError(day)

        if not any(_segment_contains(s, start, end) for s in day_segments):
            raise WindowOutsideScheduleError(day, _example_segment(day_segments[0]))


# ---------- OVERLAP WITH EXISTING PROMOTIONS ----------

def find_conflicting_row(
    db: Session,
    business_user_id: str,
    offer_id: str,
    days: List[int],
    start: time,
    end: time,
    exclude_ids: Sequence[int] = (),
) -> Optional[tuple]:
    """Return (day, row_id) of the first active row overlapping the window, if any."""
    query = db.query(RecurringPromotion).filter(
        RecurringPromotion.business_user_id == business_user_id,
        RecurringPromotion.offer_id == offer_id,
        RecurringPromotion.is_active.is_(True),
        RecurringPromotion.start_time < end,
        RecurringPromotion.end_time > start,
    )
    if exclude_ids:
        query = query.filter(RecurringPromotion.id.notin_(list(exclude_ids)))
    rows = query.order_by(RecurringPromotion.id.asc()).all()
    for day in days:
        for row in rows:
            if day in (row.days_of_week or []):
                return day, row.id
    return None


def validate_recurring_promotion(
    db: Session,
    oracle: ScheduleOracle,
    business_user_id: str,
    data: RecurringPromotionCreate,
    reject_overlaps: bool = True,
) -> List[int]:
    days = normalize_promotion_request(data)
    ensure_within_schedule(oracle, data.offer_id, days, data.start_time, data.end_time)

    if reject_overlaps:
        conflict = find_conflicting_row(
            db, business_user_id, data.offer_id, days, data.start_time, data.end_time
        )
        if conflict:
            raise PromotionConflictError(*conflict)

    return days


def check_recurring_promotion(
    db: Session,
    oracle: ScheduleOracle,
    business_user_id: str,
    data: RecurringPromotionCreate,
    reject_overlaps: bool = True,
) -> PromotionCheckResult:
    """Non-raising form of `validate_recurring_promotion`, used for dry runs."""
    try:
        validate_recurring_promotion(db, oracle, business_user_id, data, reject_overlaps)
    except PricingEngineError as e:
        logger.debug("Promotion check for offer %s rejected: %s", data.offer_id, e.code)
        return PromotionCheckResult(
            allowed=False,
            code=e.code,
            message=e.message,
            day=e.fields.get("day"),
            day_name=e.fields.get("day_name"),
            example_segment=e.fields.get("example_segment"),
            conflicting_row_id=e.fields.get("conflicting_row_id"),
            errors=e.fields.get("errors") or [],
        )
    return PromotionCheckResult(allowed=True)
