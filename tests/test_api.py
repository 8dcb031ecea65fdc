import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from barbershop import main, stores
from barbershop.data import DEFAULT_SERVICES
from barbershop.db import create_db_and_tables
from barbershop.errors import StoreUnavailableError
from barbershop.auth import hash_password
from barbershop.models import Service, User

from conftest import MONDAY


@pytest.fixture
def setup(make_user, make_barber, make_service, set_hours, session):
    barber = make_barber()
    set_hours(barber, day_of_week=1)
    barber_user = session.get(User, barber.user_id)
    return {
        "barber": barber,
        "barber_user": barber_user,
        "haircut": make_service("Haircut", 30.0, 30),
        "alice": make_user("customer"),
        "bob": make_user("customer"),
        "admin": make_user("admin"),
    }


def booking_payload(setup, at="14:00"):
    return {
        "barber_id": setup["barber"].id,
        "service_id": setup["haircut"].id,
        "booking_date": MONDAY.isoformat(),
        "booking_time": at,
        "notes": "first visit",
    }


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_sign_up_and_login(client):
    res = client.post("/users", json={"email": "new@example.com", "password": "supersecret"})
    assert res.status_code == 201
    assert res.json()["role"] == "customer"

    dup = client.post("/users", json={"email": "new@example.com", "password": "supersecret"})
    assert dup.status_code == 409

    login = client.post("/auth/login", data={"username": "new@example.com", "password": "supersecret"})
    assert login.status_code == 200
    token = login.json()["access_token"]

    me = client.get("/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["email"] == "new@example.com"


def test_bad_password(client, session):
    session.add(User(email="carl@example.com", password_hash=hash_password("correct-horse"), role="customer"))
    session.commit()

    res = client.post("/auth/login", data={"username": "carl@example.com", "password": "wrong-horse"})
    assert res.status_code == 401


def test_slots_endpoint(client, setup):
    res = client.get(
        f"/barbers/{setup['barber'].id}/slots",
        params={"date": MONDAY.isoformat(), "service_id": setup["haircut"].id},
    )
    assert res.status_code == 200
    body = res.json()
    assert body["duration_minutes"] == 30
    assert body["slots"][0] == {"time": "09:00", "available": True}
    assert body["slots"][-1]["time"] == "16:30"


def test_slots_for_unknown_barber(client, setup):
    res = client.get("/barbers/999/slots", params={"date": MONDAY.isoformat(), "service_id": setup["haircut"].id})
    assert res.status_code == 404


def test_available_dates_endpoint(client, setup):
    res = client.get(
        f"/barbers/{setup['barber'].id}/available-dates",
        params={"start": "2030-01-06", "end": "2030-01-15"},
    )
    assert res.json()["dates"] == ["2030-01-07", "2030-01-14"]


def test_book_then_second_customer_conflicts(client, setup, auth_headers):
    first = client.post("/bookings", json=booking_payload(setup), headers=auth_headers(setup["alice"]))
    assert first.status_code == 201
    body = first.json()
    assert body["status"] == "confirmed"
    assert body["booking_time"] == "14:00"
    assert body["total_price"] == 30.0

    second = client.post("/bookings", json=booking_payload(setup), headers=auth_headers(setup["bob"]))
    assert second.status_code == 409

    slots = client.get(
        f"/barbers/{setup['barber'].id}/slots",
        params={"date": MONDAY.isoformat(), "service_id": setup["haircut"].id},
    ).json()["slots"]
    assert {"time": "14:00", "available": False} in slots


def test_booking_outside_hours_is_422(client, setup, auth_headers):
    res = client.post("/bookings", json=booking_payload(setup, at="18:00"), headers=auth_headers(setup["alice"]))
    assert res.status_code == 422


def test_only_customers_book(client, setup, auth_headers):
    res = client.post("/bookings", json=booking_payload(setup), headers=auth_headers(setup["barber_user"]))
    assert res.status_code == 403


def test_requires_token(client, setup):
    assert client.post("/bookings", json=booking_payload(setup)).status_code == 401


def test_cancel_frees_the_slot(client, setup, auth_headers):
    booking = client.post("/bookings", json=booking_payload(setup), headers=auth_headers(setup["alice"])).json()

    denied = client.patch(f"/bookings/{booking['id']}/cancel", headers=auth_headers(setup["bob"]))
    assert denied.status_code == 403

    res = client.patch(f"/bookings/{booking['id']}/cancel", headers=auth_headers(setup["alice"]))
    assert res.status_code == 200
    assert res.json()["status"] == "cancelled"

    again = client.patch(f"/bookings/{booking['id']}/cancel", headers=auth_headers(setup["alice"]))
    assert again.status_code == 422

    rebook = client.post("/bookings", json=booking_payload(setup), headers=auth_headers(setup["bob"]))
    assert rebook.status_code == 201


def test_my_bookings_and_detail(client, setup, auth_headers):
    booking = client.post("/bookings", json=booking_payload(setup), headers=auth_headers(setup["alice"])).json()

    mine = client.get("/bookings/me", headers=auth_headers(setup["alice"])).json()
    assert [b["id"] for b in mine] == [booking["id"]]

    assert client.get(f"/bookings/{booking['id']}", headers=auth_headers(setup["alice"])).status_code == 200
    assert client.get(f"/bookings/{booking['id']}", headers=auth_headers(setup["bob"])).status_code == 403
    assert client.get("/bookings/999", headers=auth_headers(setup["alice"])).status_code == 404


def test_reschedule(client, setup, auth_headers):
    booking = client.post("/bookings", json=booking_payload(setup), headers=auth_headers(setup["alice"])).json()

    res = client.patch(
        f"/bookings/{booking['id']}/reschedule",
        json={"booking_date": MONDAY.isoformat(), "booking_time": "15:30"},
        headers=auth_headers(setup["alice"]),
    )
    assert res.status_code == 200
    assert res.json()["booking_time"] == "15:30"


def test_barber_schedule_and_appointments(client, setup, auth_headers):
    headers = auth_headers(setup["barber_user"])

    res = client.put(
        "/barbers/me/working-hours/2",
        json={"start_time": "10:00", "end_time": "18:00"},
        headers=headers,
    )
    assert res.status_code == 200
    assert res.json() == {"day_of_week": 2, "start_time": "10:00", "end_time": "18:00", "is_available": True}

    bad = client.put("/barbers/me/working-hours/7", json={"start_time": "10:00", "end_time": "18:00"}, headers=headers)
    assert bad.status_code == 422

    days = [wh["day_of_week"] for wh in client.get("/barbers/me/working-hours", headers=headers).json()]
    assert days == [1, 2]

    assert client.delete("/barbers/me/working-hours/2", headers=headers).status_code == 204
    assert client.delete("/barbers/me/working-hours/2", headers=headers).status_code == 404

    off = client.post(
        "/barbers/me/time-off",
        json={"start_date": "2030-02-01", "end_date": "2030-02-03", "reason": "vacation"},
        headers=headers,
    )
    assert off.status_code == 201
    assert len(client.get("/barbers/me/time-off", headers=headers).json()) == 1
    assert client.delete(f"/barbers/me/time-off/{off.json()['id']}", headers=headers).status_code == 204


def test_barber_advances_status(client, setup, auth_headers):
    booking = client.post("/bookings", json=booking_payload(setup), headers=auth_headers(setup["alice"])).json()
    headers = auth_headers(setup["barber_user"])

    done = client.patch(
        f"/barbers/me/appointments/{booking['id']}/status", json={"status": "completed"}, headers=headers
    )
    assert done.status_code == 200
    assert done.json()["status"] == "completed"

    back = client.patch(
        f"/barbers/me/appointments/{booking['id']}/status", json={"status": "confirmed"}, headers=headers
    )
    assert back.status_code == 422


def test_customer_cannot_use_barber_routes(client, setup, auth_headers):
    assert client.get("/barbers/me/appointments", headers=auth_headers(setup["alice"])).status_code == 403


def test_admin_flows(client, setup, auth_headers):
    headers = auth_headers(setup["admin"])

    barber = client.post(
        "/admin/barbers",
        json={"email": "luis@example.com", "password": "clippers123", "name": "Luis"},
        headers=headers,
    )
    assert barber.status_code == 201
    assert barber.json()["name"] == "Luis"

    pending = client.post(
        "/admin/bookings",
        json={**booking_payload(setup), "user_id": setup["alice"].id},
        headers=headers,
    )
    assert pending.status_code == 201
    assert pending.json()["status"] == "pending"

    override = client.put(
        f"/admin/bookings/{pending.json()['id']}/status", json={"status": "no_show"}, headers=headers
    )
    assert override.json()["status"] == "no_show"

    as_customer = client.post(
        "/admin/barbers",
        json={"email": "eve@example.com", "password": "clippers123", "name": "Eve"},
        headers=auth_headers(setup["alice"]),
    )
    assert as_customer.status_code == 403


def test_store_outage_is_503(client, setup, monkeypatch):
    def broken(*args, **kwargs):
        raise StoreUnavailableError("get_working_hours", OperationalError("SELECT", {}, Exception("down")))

    monkeypatch.setattr(stores, "get_working_hours", broken)

    res = client.get(
        f"/barbers/{setup['barber'].id}/slots",
        params={"date": MONDAY.isoformat(), "service_id": setup["haircut"].id},
    )
    assert res.status_code == 503


def test_inactive_barber_offers_no_slots(client, setup, session):
    barber = setup["barber"]
    barber.is_active = False
    session.add(barber)
    session.commit()

    slots = client.get(
        f"/barbers/{barber.id}/slots",
        params={"date": MONDAY.isoformat(), "service_id": setup["haircut"].id},
    )
    dates = client.get(
        f"/barbers/{barber.id}/available-dates",
        params={"start": "2030-01-06", "end": "2030-01-15"},
    )
    assert slots.status_code == 404
    assert dates.status_code == 404


def test_barber_override_resets_a_no_show(client, setup, auth_headers):
    booking = client.post("/bookings", json=booking_payload(setup), headers=auth_headers(setup["alice"])).json()
    headers = auth_headers(setup["barber_user"])
    url = f"/barbers/me/appointments/{booking['id']}/status"

    assert client.patch(url, json={"status": "no_show"}, headers=headers).status_code == 200
    assert client.patch(url, json={"status": "confirmed"}, headers=headers).status_code == 422

    res = client.put(url, json={"status": "confirmed"}, headers=headers)
    assert res.status_code == 200
    assert res.json()["status"] == "confirmed"


def test_barber_sees_only_own_bookings(client, setup, auth_headers, make_barber, session):
    booking = client.post("/bookings", json=booking_payload(setup), headers=auth_headers(setup["alice"])).json()
    other = make_barber("Luis")
    other_user = session.get(User, other.user_id)

    own = client.get(f"/bookings/{booking['id']}", headers=auth_headers(setup["barber_user"]))
    foreign = client.get(f"/bookings/{booking['id']}", headers=auth_headers(other_user))
    assert own.status_code == 200
    assert foreign.status_code == 403

    override = client.put(
        f"/barbers/me/appointments/{booking['id']}/status", json={"status": "cancelled"},
        headers=auth_headers(other_user),
    )
    assert override.status_code == 403


def test_startup_creates_tables_and_seeds_services(engine, session, monkeypatch):
    monkeypatch.setattr(main, "engine", engine)
    monkeypatch.setattr(main, "create_db_and_tables", lambda: create_db_and_tables(engine))

    with TestClient(main.app) as client:
        assert client.get("/health").status_code == 200

    names = {service.name for service in session.exec(select(Service)).all()}
    assert names == set(DEFAULT_SERVICES)
