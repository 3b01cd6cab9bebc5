from datetime import date, time
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from app.core.errors import RuleValidationError
from app.enums.rule_types import RuleType
from app.enums.weekdays import weekday_of


class BookingContext(BaseModel):
    """Attributes of a booking request that rule conditions are matched against."""

    participants: int = Field(ge=1)
    booking_date: Optional[date] = None
    booking_time: Optional[time] = None
    duration_minutes: Optional[int] = Field(default=None, gt=0)


# ---------- Condition payloads, one per rule type ----------

class RuleConditions(BaseModel):
    class Config:
        extra = "forbid"

    def matches(self, ctx: BookingContext) -> bool:
        raise NotImplementedError

    def scale_factor(self, ctx: BookingContext) -> float:
        return 1.0


class ParticipantTiersConditions(RuleConditions):
    min_participants: int = Field(ge=1)
    max_participants: int = Field(ge=1)

    @model_validator(mode="after")
    def check_bounds(self):
        if self.min_participants > self.max_participants:
            raise ValueError("min_participants must not exceed max_participants")
        return self

    def matches(self, ctx: BookingContext) -> bool:
        return self.min_participants <= ctx.participants <= self.max_participants


class TimeSlotsConditions(RuleConditions):
    start_time: time
    end_time: time

    @model_validator(mode="after")
    def check_window(self):
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self

    def matches(self, ctx: BookingContext) -> bool:
        if ctx.booking_time is None:
            return False
        return self.start_time <= ctx.booking_time <= self.end_time


class DayOfWeekConditions(RuleConditions):
    days: List[int] = Field(min_length=1)

    @field_validator("days")
    @classmethod
    def normalize_days(cls, value: List[int]) -> List[int]:
        for day in value:
            if not 0 <= day <= 6:
                raise ValueError(f"day {day} is not in 0..6")
        return sorted(set(value))

    def matches(self, ctx: BookingContext) -> bool:
        if ctx.booking_date is None:
            return False
        return weekday_of(ctx.booking_date) in self.days


class SeasonalConditions(RuleConditions):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_range(self):
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self

    def matches(self, ctx: BookingContext) -> bool:
        if ctx.booking_date is None:
            return False
        return self.start_date <= ctx.booking_date <= self.end_date


class DurationMultiplierConditions(RuleConditions):
    """The modifier is applied once per `base_duration_minutes` of booked time."""

    base_duration_minutes: int = Field(gt=0)

    def matches(self, ctx: BookingContext) -> bool:
        return ctx.duration_minutes is not None

    def scale_factor(self, ctx: BookingContext) -> float:
        return ctx.duration_minutes / self.base_duration_minutes


CONDITION_MODELS: Dict[RuleType, Type[RuleConditions]] = {
    RuleType.participant_tiers: ParticipantTiersConditions,
    RuleType.time_slots: TimeSlotsConditions,
    RuleType.day_of_week: DayOfWeekConditions,
    RuleType.seasonal: SeasonalConditions,
    RuleType.duration_multiplier: DurationMultiplierConditions,
}


def parse_conditions(rule_type: str, conditions: Optional[Dict[str, Any]]) -> RuleConditions:
    try:
        model = CONDITION_MODELS[RuleType(rule_type)]
    except ValueError:
        raise RuleValidationError(f"Unknown rule type '{rule_type}'")

    try:
        return model.model_validate(conditions or {})
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc']) or 'conditions'}: {err['msg']}"
            for err in e.errors()
        ]
        raise RuleValidationError(
            f"Invalid conditions for rule type '{rule_type}'", errors=errors
        ) from e


def validate_conditions(rule_type: str, conditions: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Central write-time check of a rule's condition payload.

    Returns the normalized payload ready for the JSON column, or raises
    RuleValidationError listing every offending field.
    """
    return parse_conditions(rule_type, conditions).model_dump(mode="json")
