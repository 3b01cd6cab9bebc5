from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.core.errors import PricingEngineError
from app.database.connection import get_db
from app.dependencies.auth import require_business
from app.middleware.metrics import increment
from app.schemas.recurring_promotion import (
    GroupedPromotion,
    PromotionCheckResult,
    PromotionGroupRequest,
    PromotionGroupResult,
    PromotionGroupToggleRequest,
    RecurringPromotionCreate,
    RecurringPromotionCreated,
)
from app.services.promotion_service.promotion_service import (
    check_promotion,
    create_recurring_promotion,
    delete_promotion_group,
    list_grouped_promotions,
    set_promotion_group_active,
    toggle_promotion_group,
)

router = APIRouter(prefix="/recurring-promotions", tags=["Recurring Promotions"])


# ---------- CREATE ----------

@router.post("/", response_model=RecurringPromotionCreated, status_code=201)
def create_recurring_promotion_route(
    body: RecurringPromotionCreate,
    request: Request,
    db: Session = Depends(get_db),
    business_user_id: str = Depends(require_business),
):
    try:
        created = create_recurring_promotion(db, business_user_id, body)
    except PricingEngineError:
        increment(request, "promotions_rejected")
        raise
    increment(request, "promotions_created")
    return created


@router.post("/validate", response_model=PromotionCheckResult)
def validate_recurring_promotion_route(
    body: RecurringPromotionCreate,
    db: Session = Depends(get_db),
    business_user_id: str = Depends(require_business),
):
    """
    Dry run: reports whether the promotion fits the offer's opening hours
    without saving anything.
    """
    return check_promotion(db, business_user_id, body)


# ---------- GROUPED VIEW ----------

@router.get("/groups", response_model=List[GroupedPromotion])
def list_groups_route(
    db: Session = Depends(get_db),
    business_user_id: str = Depends(require_business),
):
    return list_grouped_promotions(db, business_user_id)


# ---------- GROUP OPERATIONS ----------

@router.post("/groups/toggle", response_model=PromotionGroupResult)
def toggle_group_route(
    body: PromotionGroupToggleRequest,
    db: Session = Depends(get_db),
    business_user_id: str = Depends(require_business),
):
    return toggle_promotion_group(
        db, business_user_id, body.member_row_ids, body.current_group_is_active
    )


@router.post("/groups/activate", response_model=PromotionGroupResult)
def activate_group_route(
    body: PromotionGroupRequest,
    db: Session = Depends(get_db),
    business_user_id: str = Depends(require_business),
):
    return set_promotion_group_active(
        db, business_user_id, body.member_row_ids, True, operation="activate"
    )


@router.post("/groups/deactivate", response_model=PromotionGroupResult)
def deactivate_group_route(
    body: PromotionGroupRequest,
    db: Session = Depends(get_db),
    business_user_id: str = Depends(require_business),
):
    return set_promotion_group_active(
        db, business_user_id, body.member_row_ids, False, operation="deactivate"
    )


@router.post("/groups/delete", response_model=PromotionGroupResult)
def delete_group_route(
    body: PromotionGroupRequest,
    db: Session = Depends(get_db),
    business_user_id: str = Depends(require_business),
):
    return delete_promotion_group(db, business_user_id, body.member_row_ids)
