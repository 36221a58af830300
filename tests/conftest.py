"""
Shared fixtures.

Every test gets its own in-memory SQLite database (one shared connection via
StaticPool), so tests never see each other's rows.
"""

import pytest
from fastapi.testclient import TestClient

from glowbridge.database import Base, Database
from glowbridge.main import create_app
from glowbridge.models import Salon, SalonStaff, Service, StaffAvailability, User


@pytest.fixture
def database():
    db = Database("sqlite://", log_slow_queries=False).init()
    db.create_all()
    yield db
    Base.metadata.drop_all(bind=db.engine)
    db.dispose()


@pytest.fixture
def db_session(database):
    session = database.session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(database):
    app = create_app(database)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def salon(db_session):
    salon = Salon(name="Glow Studio", email="hello@glowstudio.test", contact_number="555-0100")
    db_session.add(salon)
    db_session.commit()
    return salon


@pytest.fixture
def make_staff(db_session, salon):
    """Factory: make_staff(name=..., salon_obj=..., user=...)"""

    def _make(name="Alice Smith", salon_obj=None, user=None, email=None):
        staff = SalonStaff(
            name=name,
            email=email,
            salon_id=(salon_obj or salon).id,
            user_id=user.id if user else None,
        )
        db_session.add(staff)
        db_session.commit()
        return staff

    return _make


@pytest.fixture
def staff(make_staff):
    return make_staff()


@pytest.fixture
def make_slot(db_session):
    """Factory that writes a slot directly, bypassing the service"""

    def _make(staff_obj, day_of_week, start_time, end_time, is_available=True):
        slot = StaffAvailability(
            salon_staff_id=staff_obj.id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            is_available=is_available,
        )
        db_session.add(slot)
        db_session.commit()
        return slot

    return _make


@pytest.fixture
def customer(db_session):
    user = User(first_name="Nina", last_name="Perera", email="nina@example.test")
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def haircut(db_session, salon):
    service = Service(salon_id=salon.id, name="Haircut", duration_minutes=60, price=45.0)
    db_session.add(service)
    db_session.commit()
    return service
