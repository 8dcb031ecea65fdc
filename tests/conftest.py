from datetime import date, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel

from barbershop.auth import create_access_token
from barbershop.db import build_engine, create_db_and_tables, get_session
from barbershop.main import app
from barbershop.models import Barber, Booking, Service, TimeOff, User, WorkingHours

# 2030-01-07 is a Monday (day_of_week 1)
MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)
SUNDAY = date(2030, 1, 6)


@pytest.fixture
def engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    create_db_and_tables(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def client(session):
    def override_get_session():
        yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(session):
    counter = {"n": 0}

    def _make(role="customer", email=None):
        counter["n"] += 1
        user = User(
            email=email or f"{role}{counter['n']}@example.com",
            password_hash="not-a-real-hash",
            role=role,
        )
        session.add(user)
        session.commit()
        session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_barber(session, make_user):
    def _make(name="Marco"):
        user = make_user("barber")
        barber = Barber(user_id=user.id, name=name)
        session.add(barber)
        session.commit()
        session.refresh(barber)
        return barber

    return _make


@pytest.fixture
def make_service(session):
    def _make(name="Haircut", price=30.0, duration=30, is_active=True):
        service = Service(name=name, price=price, duration_minutes=duration, is_active=is_active)
        session.add(service)
        session.commit()
        session.refresh(service)
        return service

    return _make


@pytest.fixture
def set_hours(session):
    def _set(barber, day_of_week=1, start="09:00", end="17:00", is_available=True):
        row = WorkingHours(
            barber_id=barber.id,
            day_of_week=day_of_week,
            start_time=time.fromisoformat(start),
            end_time=time.fromisoformat(end),
            is_available=is_available,
        )
        session.add(row)
        session.commit()
        session.refresh(row)
        return row

    return _set


@pytest.fixture
def add_time_off(session):
    def _add(barber, start_date, end_date, reason="holiday"):
        row = TimeOff(barber_id=barber.id, start_date=start_date, end_date=end_date, reason=reason)
        session.add(row)
        session.commit()
        session.refresh(row)
        return row

    return _add


@pytest.fixture
def make_booking(session, make_user):
    def _make(barber, service, at="10:00", on=MONDAY, status="confirmed", user=None):
        user = user or make_user("customer")
        booking = Booking(
            user_id=user.id,
            barber_id=barber.id,
            service_id=service.id,
            booking_date=on,
            booking_time=time.fromisoformat(at),
            status=status,
            total_price=service.price,
            confirmation_code="ABCD1234",
        )
        session.add(booking)
        session.commit()
        session.refresh(booking)
        return booking

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user):
        token = create_access_token({"sub": user.email})
        return {"Authorization": f"Bearer {token}"}

    return _headers
