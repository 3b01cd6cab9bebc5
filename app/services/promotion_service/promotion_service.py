import logging
from typing import List, Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import NotFoundError, PartialFailureError, PromotionConflictError, StorageError
from app.models.offer import Offer
from app.models.recurring_promotion import RecurringPromotion
from app.schemas.recurring_promotion import (
    GroupedPromotion,
    PromotionCheckResult,
    PromotionGroupResult,
    RecurringPromotionCreate,
    RecurringPromotionCreated,
)
from app.services.promotion_service.grouping import decompose_promotion, group_promotion_rows
from app.services.promotion_service.validator import (
    check_recurring_promotion,
    find_conflicting_row,
    validate_recurring_promotion,
)
from app.services.schedule_oracle import ScheduleOracle, SqlScheduleOracle

logger = logging.getLogger(__name__)


def _ensure_offer_access(db: Session, business_user_id: str, offer_id: str) -> None:
    offer = db.get(Offer, offer_id)
    if offer is not None and offer.business_user_id != business_user_id:
        raise NotFoundError("Offer", [offer_id])


# ---------- CREATE ----------

def check_promotion(
    db: Session,
    business_user_id: str,
    data: RecurringPromotionCreate,
    oracle: Optional[ScheduleOracle] = None,
) -> PromotionCheckResult:
    _ensure_offer_access(db, business_user_id, data.offer_id)
    return check_recurring_promotion(
        db,
        oracle or SqlScheduleOracle(db),
        business_user_id,
        data,
        reject_overlaps=settings.REJECT_OVERLAPPING_PROMOTIONS,
    )


def create_recurring_promotion(
    db: Session,
    business_user_id: str,
    data: RecurringPromotionCreate,
    oracle: Optional[ScheduleOracle] = None,
) -> RecurringPromotionCreated:
    _ensure_offer_access(db, business_user_id, data.offer_id)
    days = validate_recurring_promotion(
        db,
        oracle or SqlScheduleOracle(db),
        business_user_id,
        data,
        reject_overlaps=settings.REJECT_OVERLAPPING_PROMOTIONS,
    )

    rows = decompose_promotion(business_user_id, data, days)
    inserted_ids: List[int] = []
    try:
        for row in rows:
            db.add(row)
            db.flush()
            inserted_ids.append(row.id)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            "Inserting promotion rows for offer %s failed after %d of %d rows: %s",
            data.offer_id, len(inserted_ids), len(rows), e,
        )
        _remove_rows(db, business_user_id, inserted_ids)
        raise StorageError("create the recurring promotion") from e

    logger.info(
        "Created recurring promotion for offer %s on days %s (rows %s)",
        data.offer_id, days, inserted_ids,
    )
    return RecurringPromotionCreated(offer_id=data.offer_id, row_ids=inserted_ids, days_of_week=days)


def _remove_rows(db: Session, business_user_id: str, row_ids: Sequence[int]) -> None:
    """
    Compensating cleanup for rows a failed batch may have left behind.

    The rollback already discards uncommitted rows. This covers rows that were
    durably written before the failure was reported, e.g. a commit whose
    acknowledgement was lost.
    """
    if not row_ids:
        return
    try:
        db.execute(
            delete(RecurringPromotion)
            .where(
                RecurringPromotion.id.in_(row_ids),
                RecurringPromotion.business_user_id == business_user_id,
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Compensating cleanup failed for promotion rows %s", list(row_ids))


# ---------- READ ----------

def list_promotion_rows(db: Session, business_user_id: str) -> List[RecurringPromotion]:
    return (
        db.query(RecurringPromotion)
        .filter(RecurringPromotion.business_user_id == business_user_id)
        .order_by(RecurringPromotion.id.asc())
        .all()
    )


def list_grouped_promotions(db: Session, business_user_id: str) -> List[GroupedPromotion]:
    rows = list_promotion_rows(db, business_user_id)
    offer_ids = {row.offer_id for row in rows}

    titles = {}
    if offer_ids:
        titles = {
            offer.id: offer.title
            for offer in db.query(Offer).filter(
                Offer.id.in_(offer_ids),
                Offer.business_user_id == business_user_id,
            )
        }

    return group_promotion_rows(rows, titles, settings.UNKNOWN_OFFER_LABEL)


# ---------- GROUP OPERATIONS ----------

def _existing_member_ids(db: Session, business_user_id: str, ids: List[int]) -> set:
    return set(
        db.execute(
            select(RecurringPromotion.id).where(
                RecurringPromotion.id.in_(ids),
                RecurringPromotion.business_user_id == business_user_id,
            )
        ).scalars()
    )


def _check_members(db: Session, business_user_id: str, ids: List[int], operation: str) -> None:
    found = _existing_member_ids(db, business_user_id, ids)
    if not found:
        raise NotFoundError("Recurring promotion", ids)
    missing = [i for i in ids if i not in found]
    if missing:
        raise PartialFailureError(operation, missing)


def _unique(ids: Sequence[int]) -> List[int]:
    return list(dict.fromkeys(ids))


def _ensure_no_overlap(db: Session, business_user_id: str, ids: List[int]) -> None:
    """Re-activating a group must not overlap another active promotion."""
    members = (
        db.query(RecurringPromotion)
        .filter(
            RecurringPromotion.id.in_(ids),
            RecurringPromotion.business_user_id == business_user_id,
        )
        .order_by(RecurringPromotion.id.asc())
        .all()
    )
    for row in members:
        conflict = find_conflicting_row(
            db, business_user_id, row.offer_id, row.days_of_week or [],
            row.start_time, row.end_time, exclude_ids=ids,
        )
        if conflict:
            raise PromotionConflictError(*conflict)


def set_promotion_group_active(
    db: Session,
    business_user_id: str,
    member_row_ids: Sequence[int],
    is_active: bool,
    operation: str = "update",
) -> PromotionGroupResult:
    """
    Overwrite `is_active` on every member row in one statement. Either all
    members are updated or none are.
    """
    ids = _unique(member_row_ids)
    _check_members(db, business_user_id, ids, operation)
    if is_active and settings.REJECT_OVERLAPPING_PROMOTIONS:
        _ensure_no_overlap(db, business_user_id, ids)

    result = db.execute(
        update(RecurringPromotion)
        .where(
            RecurringPromotion.id.in_(ids),
            RecurringPromotion.business_user_id == business_user_id,
        )
        .values(is_active=is_active)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != len(ids):
        db.rollback()
        missing = [i for i in ids if i not in _existing_member_ids(db, business_user_id, ids)]
        logger.warning("Group %s rolled back, rows changed concurrently: %s", operation, missing)
        raise PartialFailureError(operation, missing or ids)

    db.commit()
    logger.info("Set is_active=%s on promotion rows %s", is_active, ids)
    return PromotionGroupResult(member_row_ids=ids, affected=len(ids), is_active=is_active)


def toggle_promotion_group(
    db: Session,
    business_user_id: str,
    member_row_ids: Sequence[int],
    current_group_is_active: bool,
) -> PromotionGroupResult:
    # partially active groups become uniformly active or inactive
    return set_promotion_group_active(
        db, business_user_id, member_row_ids, not current_group_is_active, operation="toggle"
    )


def delete_promotion_group(
    db: Session,
    business_user_id: str,
    member_row_ids: Sequence[int],
) -> PromotionGroupResult:
    ids = _unique(member_row_ids)
    _check_members(db, business_user_id, ids, "delete")

    result = db.execute(
        delete(RecurringPromotion)
        .where(
            RecurringPromotion.id.in_(ids),
            RecurringPromotion.business_user_id == business_user_id,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != len(ids):
        db.rollback()
        missing = [i for i in ids if i not in _existing_member_ids(db, business_user_id, ids)]
        logger.warning("Group delete rolled back, rows changed concurrently: %s", missing)
        raise PartialFailureError("delete", missing or ids)

    db.commit()
    logger.info("Deleted promotion rows %s for business %s", ids, business_user_id)
    return PromotionGroupResult(member_row_ids=ids, affected=len(ids))
