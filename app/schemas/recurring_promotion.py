from datetime import time
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ---------- Create / validate ----------

class RecurringPromotionCreate(BaseModel):
    offer_id: str
    days_of_week: List[int]
    start_time: time
    end_time: time
    discount_percentage: int


class ScheduleSegment(BaseModel):
    days_of_week: List[int]
    start_time: time
    end_time: time


class PromotionCheckResult(BaseModel):
    allowed: bool
    code: Optional[str] = None
    message: Optional[str] = None
    day: Optional[int] = None
    day_name: Optional[str] = None
    example_segment: Optional[Dict[str, Any]] = None
    conflicting_row_id: Optional[int] = None
    errors: List[str] = []


class RecurringPromotionCreated(BaseModel):
    offer_id: str
    row_ids: List[int]
    days_of_week: List[int]


# ---------- Rows and groups ----------

class RecurringPromotionRow(BaseModel):
    id: int
    offer_id: str
    business_user_id: str
    days_of_week: List[int]
    start_time: time
    end_time: time
    discount_percentage: int
    is_active: bool

    class Config:
        from_attributes = True


class GroupedPromotion(BaseModel):
    offer_id: str
    offer_title: str
    start_time: time
    end_time: time
    discount_percentage: int
    days_of_week: List[int]
    day_names: List[str]
    member_row_ids: List[int]
    is_active: bool

    @property
    def identity_key(self):
        return (self.offer_id, self.start_time, self.end_time, self.discount_percentage)


# ---------- Group operations ----------

class PromotionGroupToggleRequest(BaseModel):
    member_row_ids: List[int] = Field(min_length=1)
    current_group_is_active: bool


class PromotionGroupRequest(BaseModel):
    member_row_ids: List[int] = Field(min_length=1)


class PromotionGroupResult(BaseModel):
    member_row_ids: List[int]
    affected: int
    is_active: Optional[bool] = None
