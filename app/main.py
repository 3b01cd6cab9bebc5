import logging
from fastapi import FastAPI
from datetime import datetime
from app.core.config import settings
from app.core.errors import PricingEngineError, pricing_engine_error_handler
from app.middleware.metrics import MetricsMiddleware, new_metrics
from app.routes import system
from app.database.connection import Base, engine
from app.routes.pricing.pricing_route import router as pricing_router
from app.routes.pricing.calculate_price import router as calculate_price_router
from app.routes.recurring_promotions import router as recurring_promotions_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(title="Offer Pricing Rules & Recurring Promotions")

app.add_middleware(MetricsMiddleware)
app.add_exception_handler(PricingEngineError, pricing_engine_error_handler)


app.include_router(pricing_router)
app.include_router(calculate_price_router)
app.include_router(recurring_promotions_router)
app.include_router(system.router)

@app.on_event("startup")
async def startup_event():
    Base.metadata.create_all(bind=engine)
    app.state.start_time = datetime.utcnow()
    app.state.metrics = new_metrics()
