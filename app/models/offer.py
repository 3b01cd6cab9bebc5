from sqlalchemy import Column, String, Integer, Boolean, Time, JSON, ForeignKey
from sqlalchemy.orm import relationship

from app.database.connection import Base


# Offers and their opening hours are owned by the catalogue service.
# The pricing engine only reads them.

class Offer(Base):
    __tablename__ = "offers"

    id = Column(String, primary_key=True, index=True)
    business_user_id = Column(String, nullable=False, index=True)
    title = Column(String, nullable=False)

    schedules = relationship("OfferSchedule", back_populates="offer")


class OfferSchedule(Base):
    __tablename__ = "offer_schedules"

    id = Column(Integer, primary_key=True, index=True)
    offer_id = Column(String, ForeignKey("offers.id"), nullable=False, index=True)
    days_of_week = Column(JSON, nullable=False, default=list)  # 0 = Sunday
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    offer = relationship("Offer", back_populates="schedules")
