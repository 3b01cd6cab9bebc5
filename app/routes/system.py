import logging
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from sqlalchemy import func, text
from sqlalchemy.exc import SQLAlchemyError
from datetime import datetime

from app.database.connection import get_db
from app.dependencies.auth import require_admin
from app.schemas.system import HealthCheckResponse, SystemMetricsResponse
from app.models.pricing_rule import PricingRule
from app.models.recurring_promotion import RecurringPromotion

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System"])


def _uptime(request: Request, now: datetime) -> float:
    start_time = getattr(request.app.state, "start_time", now)
    return (now - start_time).total_seconds()


@router.get("/health", response_model=HealthCheckResponse)
def health_check(request: Request, db: Session = Depends(get_db)):
    """
    Lightweight public health check.
    Returns ok + DB connectivity check (SELECT 1).
    """
    now = datetime.utcnow()

    db_ok = True
    extra = {}
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Health check database probe failed: %s", e)
        db_ok = False
        extra["db_error"] = str(e)

    return HealthCheckResponse(
        status="ok" if db_ok else "degraded",
        now=now,
        uptime_seconds=_uptime(request, now),
        db_ok=db_ok,
        extra=extra or None,
    )


@router.get("/metrics", response_model=SystemMetricsResponse, dependencies=[Depends(require_admin)])
def system_metrics(request: Request, db: Session = Depends(get_db)):
    """
    Admin-only system metrics in JSON form.
    Uses in-process counters stored on app.state.metrics and DB-derived counts.
    """
    now = datetime.utcnow()

    metrics = getattr(request.app.state, "metrics", None) or {}
    requests_count = int(metrics.get("requests", 0))
    total_response_ms = float(metrics.get("total_response_ms", 0.0))
    avg_response_ms = (total_response_ms / requests_count) if requests_count > 0 else None

    active_pricing_rules = (
        db.query(func.count(PricingRule.id))
        .filter(PricingRule.is_active.is_(True))
        .scalar()
    ) or 0
    active_promotion_rows = (
        db.query(func.count(RecurringPromotion.id))
        .filter(RecurringPromotion.is_active.is_(True))
        .scalar()
    ) or 0
    total_promotion_rows = db.query(func.count(RecurringPromotion.id)).scalar() or 0

    return SystemMetricsResponse(
        uptime_seconds=_uptime(request, now),
        now=now,
        requests_count=requests_count,
        avg_response_ms=avg_response_ms,
        client_errors=int(metrics.get("client_errors", 0)),
        server_errors=int(metrics.get("server_errors", 0)),
        promotions_created=int(metrics.get("promotions_created", 0)),
        promotions_rejected=int(metrics.get("promotions_rejected", 0)),
        active_pricing_rules=int(active_pricing_rules),
        active_promotion_rows=int(active_promotion_rows),
        total_promotion_rows=int(total_promotion_rows),
    )
