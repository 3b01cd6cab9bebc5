from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.database.connection import get_db
from app.schemas.pricing_rule import PricingRuleCreate, PricingRuleUpdate, PricingRuleResponse
from app.services.pricing_service.pricing_service import (
    create_pricing_rule, get_pricing_rules, get_pricing_rule, update_pricing_rule,
    delete_pricing_rule, deactivate_pricing_rule, activate_pricing_rule
)
from app.dependencies.auth import require_business


router = APIRouter(prefix="/pricing-rules", tags=["Pricing Rules"])

@router.post("/", response_model=PricingRuleResponse, status_code=201)
def create_rule(
    rule: PricingRuleCreate,
    db: Session = Depends(get_db),
    business_user_id: str = Depends(require_business),
):
    return create_pricing_rule(db, business_user_id, rule)

@router.get("/", response_model=list[PricingRuleResponse])
def list_rules(
    offer_id: Optional[str] = None,
    is_active: Optional[bool] = None,
    db: Session = Depends(get_db),
    business_user_id: str = Depends(require_business),
):
    return get_pricing_rules(db, business_user_id, offer_id=offer_id, is_active=is_active)

@router.get("/{rule_id}", response_model=PricingRuleResponse)
def get_rule(
    rule_id: int,
    db: Session = Depends(get_db),
    business_user_id: str = Depends(require_business),
):
    rule = get_pricing_rule(db, business_user_id, rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Rule not found")
    return rule

@router.patch("/{rule_id}", response_model=PricingRuleResponse)
def update_rule(
    rule_id: int,
    rule: PricingRuleUpdate,
    db: Session = Depends(get_db),
    business_user_id: str = Depends(require_business),
):
    return update_pricing_rule(db, business_user_id, rule_id, rule)

@router.delete("/{rule_id}")
def delete_rule(
    rule_id: int,
    db: Session = Depends(get_db),
    business_user_id: str = Depends(require_business),
):
    delete_pricing_rule(db, business_user_id, rule_id)
    return {"message": "Rule deleted", "id": rule_id}

@router.post("/{rule_id}/deactivate", response_model=PricingRuleResponse)
def deactivate_rule(
    rule_id: int,
    db: Session = Depends(get_db),
    business_user_id: str = Depends(require_business),
):
    return deactivate_pricing_rule(db, business_user_id, rule_id)

@router.post("/{rule_id}/activate", response_model=PricingRuleResponse)
def activate_rule(
    rule_id: int,
    db: Session = Depends(get_db),
    business_user_id: str = Depends(require_business),
):
    return activate_pricing_rule(db, business_user_id, rule_id)
