from datetime import time

import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import NotFoundError, PartialFailureError, PromotionConflictError, StorageError
from app.models.recurring_promotion import RecurringPromotion
from app.schemas.recurring_promotion import RecurringPromotionCreate
from app.services.promotion_service.promotion_service import (
    create_recurring_promotion,
    delete_promotion_group,
    list_grouped_promotions,
    set_promotion_group_active,
    toggle_promotion_group,
)
from conftest import BUSINESS_ID, OTHER_BUSINESS_ID, create_offer


def _create_group(db, business_user_id=BUSINESS_ID, offer_id="OFFER_1", days=(1, 3, 5)):
    return create_recurring_promotion(
        db,
        business_user_id,
        RecurringPromotionCreate(
            offer_id=offer_id,
            days_of_week=list(days),
            start_time=time(10, 0),
            end_time=time(12, 0),
            discount_percentage=20,
        ),
    ).row_ids


def _active_flags(db, ids):
    db.expire_all()
    rows = db.query(RecurringPromotion).filter(RecurringPromotion.id.in_(ids)).all()
    return {row.id: row.is_active for row in rows}


def test_toggle_deactivates_every_member(db, offer):
    ids = _create_group(db)

    result = toggle_promotion_group(db, BUSINESS_ID, ids, current_group_is_active=True)

    assert result.is_active is False
    assert result.affected == 3
    assert set(_active_flags(db, ids).values()) == {False}
    assert list_grouped_promotions(db, BUSINESS_ID)[0].is_active is False


def test_toggle_of_partially_active_group_makes_it_uniform(db, offer):
    ids = _create_group(db)
    set_promotion_group_active(db, BUSINESS_ID, ids[:1], False)

    # shown as active because one member still is
    group = list_grouped_promotions(db, BUSINESS_ID)[0]
    assert group.is_active is True

    toggle_promotion_group(db, BUSINESS_ID, group.member_row_ids, group.is_active)
    assert set(_active_flags(db, ids).values()) == {False}

    toggle_promotion_group(db, BUSINESS_ID, ids, current_group_is_active=False)
    assert set(_active_flags(db, ids).values()) == {True}


def test_missing_member_changes_nothing(db, offer):
    ids = _create_group(db)

    with pytest.raises(PartialFailureError) as exc:
        set_promotion_group_active(db, BUSINESS_ID, ids + [9999], False)

    assert exc.value.missing_ids == [9999]
    assert set(_active_flags(db, ids).values()) == {True}


def test_group_of_unknown_rows_is_not_found(db, offer):
    with pytest.raises(NotFoundError):
        toggle_promotion_group(db, BUSINESS_ID, [9998, 9999], current_group_is_active=True)


def test_rows_of_another_business_are_untouched(db, offer):
    create_offer(db, offer_id="OFFER_2", business_user_id=OTHER_BUSINESS_ID,
                 schedules=[([1, 3, 5], time(9, 0), time(17, 0))])
    mine = _create_group(db)
    theirs = _create_group(db, business_user_id=OTHER_BUSINESS_ID, offer_id="OFFER_2")

    with pytest.raises(NotFoundError):
        delete_promotion_group(db, BUSINESS_ID, theirs)
    with pytest.raises(PartialFailureError):
        set_promotion_group_active(db, BUSINESS_ID, mine + theirs[:1], False)

    assert set(_active_flags(db, mine).values()) == {True}
    assert set(_active_flags(db, theirs).values()) == {True}
    assert db.query(RecurringPromotion).count() == 6


def test_delete_removes_every_member(db, offer):
    ids = _create_group(db)
    other = _create_group(db, days=(2,))

    result = delete_promotion_group(db, BUSINESS_ID, ids)

    assert result.affected == 3
    remaining = [r.id for r in db.query(RecurringPromotion).all()]
    assert remaining == other
    assert len(list_grouped_promotions(db, BUSINESS_ID)) == 1


def test_delete_with_missing_member_deletes_nothing(db, offer):
    ids = _create_group(db)

    with pytest.raises(PartialFailureError):
        delete_promotion_group(db, BUSINESS_ID, ids[:2] + [12345])

    assert db.query(RecurringPromotion).count() == 3


def test_duplicate_ids_are_collapsed(db, offer):
    ids = _create_group(db)

    result = set_promotion_group_active(db, BUSINESS_ID, ids + ids[:1], False)

    assert result.member_row_ids == ids
    assert result.affected == 3


def test_failed_insert_leaves_no_rows(db, offer, monkeypatch):
    real_flush = db.flush
    calls = {"n": 0}

    def flaky_flush(*args, **kwargs):
        calls["n"] += 1
        if calls["n"] == 2:
            raise OperationalError("INSERT INTO recurring_promotions", {}, Exception("disk I/O error"))
        return real_flush(*args, **kwargs)

    monkeypatch.setattr(db, "flush", flaky_flush)

    with pytest.raises(StorageError):
        _create_group(db)

    monkeypatch.undo()
    assert db.query(RecurringPromotion).count() == 0


def _create_window(db, start, end, days=(1,)):
    return create_recurring_promotion(
        db,
        BUSINESS_ID,
        RecurringPromotionCreate(
            offer_id="OFFER_1",
            days_of_week=list(days),
            start_time=start,
            end_time=end,
            discount_percentage=15,
        ),
    ).row_ids


def test_reactivating_a_group_cannot_overlap_an_active_one(db, offer):
    first = _create_window(db, time(10, 0), time(12, 0))
    set_promotion_group_active(db, BUSINESS_ID, first, False)
    second = _create_window(db, time(11, 0), time(13, 0))

    with pytest.raises(PromotionConflictError) as exc:
        toggle_promotion_group(db, BUSINESS_ID, first, current_group_is_active=False)
    assert exc.value.conflicting_row_id == second[0]

    with pytest.raises(PromotionConflictError):
        set_promotion_group_active(db, BUSINESS_ID, first, True, operation="activate")

    assert _active_flags(db, first) == {first[0]: False}
    assert _active_flags(db, second) == {second[0]: True}


def test_reactivating_without_overlap_is_allowed(db, offer):
    first = _create_window(db, time(10, 0), time(12, 0))
    set_promotion_group_active(db, BUSINESS_ID, first, False)
    _create_window(db, time(12, 0), time(14, 0))

    result = toggle_promotion_group(db, BUSINESS_ID, first, current_group_is_active=False)

    assert result.is_active is True


def test_rows_committed_before_a_failure_are_cleaned_up(db, offer, monkeypatch):
    real_commit = db.commit
    calls = {"n": 0}

    def commit_then_fail():
        calls["n"] += 1
        real_commit()
        if calls["n"] == 1:
            raise OperationalError("COMMIT", {}, Exception("connection lost after commit"))

    monkeypatch.setattr(db, "commit", commit_then_fail)

    with pytest.raises(StorageError):
        _create_group(db)

    monkeypatch.undo()
    db.expire_all()
    assert db.query(RecurringPromotion).count() == 0
