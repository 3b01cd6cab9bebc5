from sqlalchemy import Column, Integer, String, Float, JSON, Boolean, DateTime
import datetime
from app.database.connection import Base


class PricingRule(Base):
    __tablename__ = "pricing_rules"

    id = Column(Integer, primary_key=True, index=True)
    business_user_id = Column(String, nullable=False, index=True)
    offer_id = Column(String, nullable=True, index=True)  # null = business-wide
    rule_type = Column(String, nullable=False)
    rule_name = Column(String, nullable=False)
    conditions = Column(JSON, default=dict)
    price_modifier = Column(Float, nullable=False)
    is_percentage = Column(Boolean, default=False, nullable=False)
    priority = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)
