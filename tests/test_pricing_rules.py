import pytest

from app.core.errors import NotFoundError, RuleValidationError
from app.models.pricing_rule import PricingRule
from app.schemas.pricing_rule import PricingRuleCreate, PricingRuleUpdate
from app.services.pricing_service.pricing_service import (
    activate_pricing_rule,
    create_pricing_rule,
    deactivate_pricing_rule,
    delete_pricing_rule,
    get_pricing_rule,
    get_pricing_rules,
    update_pricing_rule,
)
from conftest import BUSINESS_ID, OTHER_BUSINESS_ID


def _create_rule(db, business_user_id=BUSINESS_ID, **overrides):
    payload = {
        "offer_id": "OFFER_1",
        "rule_type": "participant_tiers",
        "rule_name": "Group discount",
        "conditions": {"min_participants": 4, "max_participants": 10},
        "price_modifier": -10.0,
        "is_percentage": True,
        "priority": 5,
    }
    payload.update(overrides)
    return create_pricing_rule(db, business_user_id, PricingRuleCreate(**payload))


def test_create_rule_stores_normalized_conditions(db):
    rule = _create_rule(
        db,
        rule_type="day_of_week",
        rule_name="  Weekend surcharge ",
        conditions={"days": [6, 0, 6]},
        price_modifier=15.0,
        is_percentage=False,
    )

    saved = db.query(PricingRule).filter(PricingRule.id == rule.id).first()
    assert saved.business_user_id == BUSINESS_ID
    assert saved.rule_name == "Weekend surcharge"
    assert saved.conditions == {"days": [0, 6]}
    assert saved.is_active is True


def test_create_rule_with_invalid_conditions_writes_nothing(db):
    with pytest.raises(RuleValidationError):
        _create_rule(db, conditions={"min_participants": 8, "max_participants": 2})

    assert db.query(PricingRule).count() == 0


def test_create_rule_requires_a_name(db):
    with pytest.raises(RuleValidationError) as exc:
        _create_rule(db, rule_name="   ")
    assert any("rule_name" in e for e in exc.value.errors)


def test_list_rules_is_scoped_and_includes_business_wide_rules(db):
    offer_rule = _create_rule(db, priority=1)
    wide_rule = _create_rule(db, offer_id=None, rule_name="Everything", priority=9)
    _create_rule(db, offer_id="OFFER_2", rule_name="Other offer")
    _create_rule(db, business_user_id=OTHER_BUSINESS_ID, rule_name="Not mine")

    rules = get_pricing_rules(db, BUSINESS_ID, offer_id="OFFER_1")

    # priority descending
    assert [r.id for r in rules] == [wide_rule.id, offer_rule.id]
    assert len(get_pricing_rules(db, BUSINESS_ID)) == 3
    assert get_pricing_rule(db, OTHER_BUSINESS_ID, offer_rule.id) is None


def test_list_rules_filters_on_active_flag(db):
    active = _create_rule(db)
    inactive = _create_rule(db, rule_name="Paused", is_active=False)

    assert [r.id for r in get_pricing_rules(db, BUSINESS_ID, is_active=True)] == [active.id]
    assert [r.id for r in get_pricing_rules(db, BUSINESS_ID, is_active=False)] == [inactive.id]


def test_update_changes_only_given_fields(db):
    rule = _create_rule(db)

    updated = update_pricing_rule(
        db, BUSINESS_ID, rule.id, PricingRuleUpdate(price_modifier=-20.0)
    )

    assert updated.price_modifier == -20.0
    assert updated.rule_name == "Group discount"
    assert updated.conditions == {"min_participants": 4, "max_participants": 10}


def test_changing_rule_type_requires_new_conditions(db):
    rule = _create_rule(db)

    # previous type's conditions are not carried over
    with pytest.raises(RuleValidationError):
        update_pricing_rule(db, BUSINESS_ID, rule.id, PricingRuleUpdate(rule_type="time_slots"))

    updated = update_pricing_rule(
        db,
        BUSINESS_ID,
        rule.id,
        PricingRuleUpdate(
            rule_type="time_slots",
            conditions={"start_time": "08:00", "end_time": "10:00"},
        ),
    )
    assert updated.rule_type == "time_slots"
    assert updated.conditions == {"start_time": "08:00:00", "end_time": "10:00:00"}


def test_update_with_invalid_conditions_keeps_stored_rule(db):
    rule = _create_rule(db)

    with pytest.raises(RuleValidationError):
        update_pricing_rule(
            db, BUSINESS_ID, rule.id,
            PricingRuleUpdate(conditions={"min_participants": 0, "max_participants": 3}),
        )

    db.expire_all()
    saved = get_pricing_rule(db, BUSINESS_ID, rule.id)
    assert saved.conditions == {"min_participants": 4, "max_participants": 10}


def test_rules_of_another_business_are_not_found(db):
    rule = _create_rule(db)

    with pytest.raises(NotFoundError):
        update_pricing_rule(db, OTHER_BUSINESS_ID, rule.id, PricingRuleUpdate(priority=1))
    with pytest.raises(NotFoundError):
        delete_pricing_rule(db, OTHER_BUSINESS_ID, rule.id)
    with pytest.raises(NotFoundError):
        deactivate_pricing_rule(db, OTHER_BUSINESS_ID, rule.id)

    assert get_pricing_rule(db, BUSINESS_ID, rule.id) is not None


def test_deactivate_activate_and_delete(db):
    rule = _create_rule(db)

    assert deactivate_pricing_rule(db, BUSINESS_ID, rule.id).is_active is False
    assert activate_pricing_rule(db, BUSINESS_ID, rule.id).is_active is True

    delete_pricing_rule(db, BUSINESS_ID, rule.id)
    assert get_pricing_rule(db, BUSINESS_ID, rule.id) is None
    with pytest.raises(NotFoundError):
        delete_pricing_rule(db, BUSINESS_ID, rule.id)


@pytest.mark.parametrize("field", ["priority", "is_active", "is_percentage"])
def test_update_cannot_null_required_fields(db, field):
    rule = _create_rule(db)

    with pytest.raises(RuleValidationError) as exc:
        update_pricing_rule(db, BUSINESS_ID, rule.id, PricingRuleUpdate(**{field: None}))
    assert exc.value.errors == [f"{field}: must not be null"]

    db.expire_all()
    saved = get_pricing_rule(db, BUSINESS_ID, rule.id)
    assert saved.priority == 5
    assert saved.is_active is True
    assert saved.is_percentage is True
