from pydantic import BaseModel
from typing import Any, Dict, Optional
from datetime import datetime

from app.enums.rule_types import RuleType


class PricingRuleBase(BaseModel):
    offer_id: Optional[str] = None
    rule_type: RuleType
    rule_name: str
    conditions: Dict[str, Any] = {}
    price_modifier: float
    is_percentage: bool = False
    priority: int = 0
    is_active: bool = True

class PricingRuleCreate(PricingRuleBase):
    pass

class PricingRuleUpdate(BaseModel):
    offer_id: Optional[str] = None
    rule_type: Optional[RuleType] = None
    rule_name: Optional[str] = None
    conditions: Optional[Dict[str, Any]] = None
    price_modifier: Optional[float] = None
    is_percentage: Optional[bool] = None
    priority: Optional[int] = None
    is_active: Optional[bool] = None

class PricingRuleResponse(PricingRuleBase):
    id: int
    business_user_id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
