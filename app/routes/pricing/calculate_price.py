import logging
from datetime import date, time
from typing import Optional
from time import perf_counter

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database.connection import get_db
from app.schemas.rule_conditions import BookingContext
from app.services.pricing_service.calculate_price import calculate_offer_price
from app.dependencies.auth import require_business

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pricing & Calculation"])


@router.get("/offers/{offer_id}/calculate-price")
def calculate_price(
    offer_id: str,
    base_price: float = Query(ge=0),
    participants: int = 1,
    booking_date: Optional[date] = None,
    booking_time: Optional[time] = None,
    duration_minutes: Optional[int] = None,
    db: Session = Depends(get_db),
    business_user_id: str = Depends(require_business),
):
    """
    Preview what a booking would cost with the business's current rules and
    recurring promotions applied.
    """

    if participants <= 0:
        raise HTTPException(status_code=400, detail="Participants must be positive")
    if duration_minutes is not None and duration_minutes <= 0:
        raise HTTPException(status_code=400, detail="Duration must be positive")

    ctx = BookingContext(
        participants=participants,
        booking_date=booking_date,
        booking_time=booking_time,
        duration_minutes=duration_minutes,
    )

    # ---- measure calculation time ----
    start = perf_counter()
    result = calculate_offer_price(
        db=db,
        business_user_id=business_user_id,
        offer_id=offer_id,
        base_price=base_price,
        ctx=ctx,
    )
    duration_ms = (perf_counter() - start) * 1000.0

    if duration_ms > 30.0:
        logger.warning(
            "Price calculation for offer %s took %.2f ms (participants=%d)",
            offer_id, duration_ms, participants,
        )

    return {
        "offer_id": offer_id,
        **result,
        "calculated_in_ms": duration_ms,
    }
