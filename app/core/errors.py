# app/core/errors.py
from datetime import time
from typing import Any, Dict, List, Optional, Sequence

from fastapi import Request
from fastapi.responses import JSONResponse

from app.enums.weekdays import day_name


def format_time(value: time) -> str:
    return value.strftime("%H:%M")


class PricingEngineError(Exception):
    """
    Base class for every failure the pricing engine reports to its caller.

    Each error carries a machine-readable `code`, an HTTP status used by the
    API layer, a human message and optional structured fields.
    """

    status_code: int = 400
    code: str = "pricing_error"

    def __init__(self, message: str, **fields: Any):
        super().__init__(message)
        self.message = message
        self.fields = fields

    def to_detail(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, **self.fields}


# ---------- Validation ----------

class RuleValidationError(PricingEngineError):
    status_code = 422
    code = "validation_error"

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message, errors=errors or [message])

    @property
    def errors(self) -> List[str]:
        return self.fields["errors"]


class PromotionValidationError(RuleValidationError):
    pass


# ---------- Schedule containment ----------

class NoScheduleConfiguredError(PricingEngineError):
    status_code = 409
    code = "no_schedule_configured"

    def __init__(self, offer_id: str):
        super().__init__(
            "This offer has no opening hours configured. "
            "Configure the offer schedule before creating a promotion.",
            offer_id=offer_id,
        )
        self.offer_id = offer_id


class DayNotAvailableError(PricingEngineError):
    status_code = 409
    code = "day_not_available"

    def __init__(self, day: int):
        name = day_name(day)
        super().__init__(
            f"The offer is not open on {name}.",
            day=day,
            day_name=name,
        )
        self.day = day


class WindowOutsideScheduleError(PricingEngineError):
    status_code = 409
    code = "window_outside_schedule"

    def __init__(self, day: int, example_segment: Dict[str, Any]):
        name = day_name(day)
        super().__init__(
            f"The promotion window is outside the opening hours on {name} "
            f"(open {example_segment['start_time']}-{example_segment['end_time']}).",
            day=day,
            day_name=name,
            example_segment=example_segment,
        )
        self.day = day
        self.example_segment = example_segment


class PromotionConflictError(PricingEngineError):
    status_code = 409
    code = "promotion_conflict"

    def __init__(self, day: int, conflicting_row_id: int):
        name = day_name(day)
        super().__init__(
            f"An active promotion already covers part of this window on {name}.",
            day=day,
            day_name=name,
            conflicting_row_id=conflicting_row_id,
        )
        self.day = day
        self.conflicting_row_id = conflicting_row_id


# ---------- Lookups / bulk operations ----------

class NotFoundError(PricingEngineError):
    status_code = 404
    code = "not_found"

    def __init__(self, resource: str, ids: Sequence[Any]):
        super().__init__(f"{resource} not found", resource=resource, ids=list(ids))
        self.ids = list(ids)


class PartialFailureError(PricingEngineError):
    status_code = 409
    code = "partial_failure"

    def __init__(self, operation: str, missing_ids: Sequence[int]):
        super().__init__(
            f"Could not {operation} every promotion of the group; nothing was changed. "
            "Reload the promotions and try again.",
            operation=operation,
            missing_ids=list(missing_ids),
        )
        self.missing_ids = list(missing_ids)


class StorageError(PricingEngineError):
    status_code = 503
    code = "storage_error"

    def __init__(self, operation: str):
        super().__init__(f"Could not {operation}; nothing was saved.", operation=operation)


async def pricing_engine_error_handler(request: Request, exc: PricingEngineError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})
