from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Time, JSON

from app.database.connection import Base


class RecurringPromotion(Base):
    __tablename__ = "recurring_promotions"

    id = Column(Integer, primary_key=True, index=True)
    business_user_id = Column(String, nullable=False, index=True)
    offer_id = Column(String, nullable=False, index=True)
    # rows written by the engine hold exactly one day, e.g. [3]
    days_of_week = Column(JSON, nullable=False, default=list)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    discount_percentage = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
