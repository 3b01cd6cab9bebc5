from datetime import time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.security import create_access_token
from app.database.connection import Base, get_db
from app.main import app
from app.models.offer import Offer, OfferSchedule

TEST_DB_URL = "sqlite://"

BUSINESS_ID = "biz_1"
OTHER_BUSINESS_ID = "biz_2"


# Services roll back on failure, so every test gets its own in-memory database
# instead of an outer transaction.
@pytest.fixture()
def engine():
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def create_offer(db, offer_id="OFFER_1", title="Kayak Tour", business_user_id=BUSINESS_ID, schedules=None):
    """
    schedules: list of (days, start, end) or (days, start, end, is_active).
    """
    offer = Offer(id=offer_id, business_user_id=business_user_id, title=title)
    db.add(offer)
    for entry in schedules or []:
        days, start, end = entry[:3]
        is_active = entry[3] if len(entry) > 3 else True
        db.add(
            OfferSchedule(
                offer_id=offer_id,
                days_of_week=list(days),
                start_time=start,
                end_time=end,
                is_active=is_active,
            )
        )
    db.commit()
    return offer


@pytest.fixture()
def offer(db):
    # Mon-Fri 09:00-17:00, Saturday 10:00-14:00
    return create_offer(
        db,
        schedules=[
            ([1, 2, 3, 4, 5], time(9, 0), time(17, 0)),
            ([6], time(10, 0), time(14, 0)),
        ],
    )


@pytest.fixture()
def client(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    # no `with`: the startup hook would create tables on the configured database
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth_headers(user_id=BUSINESS_ID, role="business"):
    token = create_access_token({"sub": user_id, "role": role})
    return {"Authorization": f"Bearer {token}"}
