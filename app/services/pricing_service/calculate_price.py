import logging
from typing import Optional, List, Tuple, Dict, Any
from sqlalchemy.orm import Session

from app.core.errors import RuleValidationError
from app.enums.weekdays import weekday_of
from app.models.pricing_rule import PricingRule
from app.models.recurring_promotion import RecurringPromotion
from app.schemas.rule_conditions import BookingContext, parse_conditions
from app.services.pricing_service.pricing_service import get_pricing_rules

logger = logging.getLogger(__name__)


def calculate_offer_price(
    db: Session,
    business_user_id: str,
    offer_id: str,
    base_price: float,
    ctx: BookingContext,
) -> Dict[str, Any]:
    """
    Quote a booking of `offer_id`.

    Combination policy:
    - Start from base_price * participants.
    - Matching active rules (offer rules and business-wide rules) are applied
      in ascending priority, ties by id. Fixed modifiers add, percentage
      modifiers multiply by (1 + modifier / 100). Duration rules are scaled
      by duration / base_duration_minutes.
    - The largest matching active recurring promotion discount is applied
      once, after every rule.
    - The result never goes below zero.
    """

    subtotal = float(base_price) * ctx.participants
    price = subtotal
    breakdown: List[Dict[str, Any]] = [
        {"description": f"Base price ({ctx.participants} participants)", "amount": subtotal}
    ]

    # ---- 1) Pricing rules ----
    applied_rules: List[Dict[str, Any]] = []
    for rule, factor in _matching_rules(db, business_user_id, offer_id, ctx):
        before = price
        price = _apply_modifier(price, rule.price_modifier, rule.is_percentage, factor)
        amount = price - before

        applied_rules.append(
            {
                "rule_id": rule.id,
                "rule_name": rule.rule_name,
                "rule_type": rule.rule_type,
                "price_modifier": rule.price_modifier,
                "is_percentage": rule.is_percentage,
                "amount": amount,
            }
        )
        breakdown.append({"description": rule.rule_name, "amount": amount})

    # ---- 2) Recurring promotion ----
    promotion_info: Optional[Dict[str, Any]] = None
    promotion = _best_promotion(db, business_user_id, offer_id, ctx)
    if promotion is not None:
        before = price
        price = price * (1.0 - promotion.discount_percentage / 100.0)
        amount = price - before
        promotion_info = {
            "row_id": promotion.id,
            "discount_percentage": promotion.discount_percentage,
            "amount": amount,
        }
        breakdown.append(
            {"description": f"Promotion -{promotion.discount_percentage}%", "amount": amount}
        )

    # ---- 3) Clamp ----
    final_price = max(price, 0.0)

    return {
        "base_price": float(base_price),
        "participants": ctx.participants,
        "subtotal": subtotal,
        "final_price": final_price,
        "total_savings": max(subtotal - final_price, 0.0),
        "applied_rules": applied_rules,
        "promotion": promotion_info,
        "breakdown": breakdown,
    }


def _matching_rules(
    db: Session,
    business_user_id: str,
    offer_id: str,
    ctx: BookingContext,
) -> List[Tuple[PricingRule, float]]:
    rules = get_pricing_rules(db, business_user_id, offer_id=offer_id, is_active=True)
    ordered = sorted(rules, key=lambda r: (r.priority, r.id))

    matching = []
    for rule in ordered:
        try:
            conditions = parse_conditions(rule.rule_type, rule.conditions)
        except RuleValidationError as e:
            # rows written before validation existed; never applied
            logger.warning("Skipping pricing rule %s with invalid conditions: %s", rule.id, e.errors)
            continue

        if conditions.matches(ctx):
            matching.append((rule, conditions.scale_factor(ctx)))
    return matching


def _best_promotion(
    db: Session,
    business_user_id: str,
    offer_id: str,
    ctx: BookingContext,
) -> Optional[RecurringPromotion]:
    if ctx.booking_date is None or ctx.booking_time is None:
        return None

    day = weekday_of(ctx.booking_date)
    rows = (
        db.query(RecurringPromotion)
        .filter(
            RecurringPromotion.business_user_id == business_user_id,
            RecurringPromotion.offer_id == offer_id,
            RecurringPromotion.is_active.is_(True),
            RecurringPromotion.start_time <= ctx.booking_time,
            RecurringPromotion.end_time >= ctx.booking_time,
        )
        .all()
    )
    candidates = [row for row in rows if day in (row.days_of_week or [])]
    if not candidates:
        return None
    return max(candidates, key=lambda r: (r.discount_percentage, -r.id))


def _apply_modifier(price: float, modifier: float, is_percentage: bool, factor: float = 1.0) -> float:
    """
    price=100, modifier=-10, percentage -> 90
    price=100, modifier=15, fixed -> 115
    """
    if is_percentage:
        return price * (1.0 + (modifier * factor) / 100.0)
    return price + modifier * factor
