import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError, RuleValidationError
from app.models.pricing_rule import PricingRule
from app.schemas.pricing_rule import PricingRuleCreate, PricingRuleUpdate
from app.schemas.rule_conditions import validate_conditions

logger = logging.getLogger(__name__)


def _check_required_fields(rule_name: Optional[str], price_modifier: Optional[float]):
    errors = []
    if not rule_name or not rule_name.strip():
        errors.append("rule_name: must not be empty")
    if price_modifier is None:
        errors.append("price_modifier: is required")
    if errors:
        raise RuleValidationError("Missing required rule fields", errors=errors)


def create_pricing_rule(db: Session, business_user_id: str, rule: PricingRuleCreate) -> PricingRule:
    _check_required_fields(rule.rule_name, rule.price_modifier)
    conditions = validate_conditions(rule.rule_type.value, rule.conditions)

    db_rule = PricingRule(
        business_user_id=business_user_id,
        offer_id=rule.offer_id,
        rule_type=rule.rule_type.value,
        rule_name=rule.rule_name.strip(),
        conditions=conditions,
        price_modifier=rule.price_modifier,
        is_percentage=rule.is_percentage,
        priority=rule.priority,
        is_active=rule.is_active,
    )
    db.add(db_rule)
    db.commit()
    db.refresh(db_rule)
    logger.info(
        "Created pricing rule %s (%s) for business %s",
        db_rule.id, db_rule.rule_type, business_user_id,
    )
    return db_rule


def get_pricing_rules(
    db: Session,
    business_user_id: str,
    offer_id: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> List[PricingRule]:
    """
    Rules owned by the business. With `offer_id`, only the rules of that
    offer plus the business-wide ones (no offer) are returned.
    """
    query = db.query(PricingRule).filter(PricingRule.business_user_id == business_user_id)
    if offer_id:
        query = query.filter(or_(PricingRule.offer_id == offer_id, PricingRule.offer_id.is_(None)))
    if is_active is not None:
        query = query.filter(PricingRule.is_active.is_(is_active))
    return query.order_by(PricingRule.priority.desc(), PricingRule.id.asc()).all()


def get_pricing_rule(db: Session, business_user_id: str, rule_id: int) -> Optional[PricingRule]:
    return (
        db.query(PricingRule)
        .filter(PricingRule.id == rule_id, PricingRule.business_user_id == business_user_id)
        .first()
    )


def _get_or_raise(db: Session, business_user_id: str, rule_id: int) -> PricingRule:
    db_rule = get_pricing_rule(db, business_user_id, rule_id)
    if not db_rule:
        raise NotFoundError("Pricing rule", [rule_id])
    return db_rule


def update_pricing_rule(
    db: Session,
    business_user_id: str,
    rule_id: int,
    rule_update: PricingRuleUpdate,
) -> PricingRule:
    db_rule = _get_or_raise(db, business_user_id, rule_id)
    changes = rule_update.model_dump(exclude_unset=True)

    if "rule_type" in changes and changes["rule_type"] is not None:
        changes["rule_type"] = changes["rule_type"].value
    else:
        changes.pop("rule_type", None)

    new_type = changes.get("rule_type", db_rule.rule_type)
    type_changed = new_type != db_rule.rule_type

    # a new rule type never inherits the previous type's condition fields
    if type_changed and changes.get("conditions") is None:
        changes["conditions"] = {}

    nulls = [key for key in ("priority", "is_active", "is_percentage") if key in changes and changes[key] is None]
    if nulls:
        raise RuleValidationError(
            "Rule fields cannot be cleared",
            errors=[f"{key}: must not be null" for key in nulls],
        )

    if type_changed or "conditions" in changes:
        changes["conditions"] = validate_conditions(new_type, changes.get("conditions"))

    _check_required_fields(
        changes.get("rule_name", db_rule.rule_name),
        changes["price_modifier"] if "price_modifier" in changes else db_rule.price_modifier,
    )
    if "rule_name" in changes:
        changes["rule_name"] = changes["rule_name"].strip()

    for key, value in changes.items():
        setattr(db_rule, key, value)

    db.commit()
    db.refresh(db_rule)
    logger.info("Updated pricing rule %s fields=%s", rule_id, sorted(changes))
    return db_rule


def delete_pricing_rule(db: Session, business_user_id: str, rule_id: int) -> None:
    db_rule = _get_or_raise(db, business_user_id, rule_id)
    db.delete(db_rule)
    db.commit()
    logger.info("Deleted pricing rule %s for business %s", rule_id, business_user_id)


def deactivate_pricing_rule(db: Session, business_user_id: str, rule_id: int) -> PricingRule:
    db_rule = _get_or_raise(db, business_user_id, rule_id)
    db_rule.is_active = False
    db.commit()
    db.refresh(db_rule)
    return db_rule


def activate_pricing_rule(db: Session, business_user_id: str, rule_id: int) -> PricingRule:
    db_rule = _get_or_raise(db, business_user_id, rule_id)
    db_rule.is_active = True
    db.commit()
    db.refresh(db_rule)
    return db_rule
