# tests/conftest.py
import os

# Settings are read at import time, so the environment goes first
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ["SMTP_EMAIL"] = ""
os.environ["SMTP_PASSWORD"] = ""

from datetime import date, time
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from hall_booking import auth, models
from hall_booking.database import Database
from hall_booking.lifecycle import BookingLifecycle
from hall_booking.main import create_app
from hall_booking.notifications import NotificationDispatcher
from hall_booking.permissions import Actor, Role

BOOKING_DAY = date(2030, 3, 14)


class RecordingSender:
    def __init__(self):
        self.sent = []

    def send(self, to, subject, body):
        self.sent.append(SimpleNamespace(to=to, subject=subject, body=body))
        return True


class FailingSender:
    def __init__(self):
        self.calls = 0

    def send(self, to, subject, body):
        self.calls += 1
        raise ConnectionError("SMTP server unavailable")


@pytest.fixture(scope="session")
def password_hash():
    return auth.get_password_hash("secret123")


@pytest.fixture
def database():
    database = Database("sqlite://").open()
    database.create_all()
    yield database
    database.close()


@pytest.fixture
def db(database):
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def world(db, password_hash):
    """Two institutions, their halls and one user per role."""
    inst_a = models.Institution(name="Hindusthan College of Engineering", short_name="HCE")
    inst_b = models.Institution(name="Hindusthan College of Arts", short_name="HCA")
    db.add_all([inst_a, inst_b])
    db.flush()

    cse = models.Department(name="Computer Science", short_name="CSE", institution_id=inst_a.id)
    admin_dept = models.Department(name="Administration", short_name="ADMIN", institution_id=inst_a.id)
    english = models.Department(name="English", short_name="ENG", institution_id=inst_b.id)
    db.add_all([cse, admin_dept, english])
    db.flush()

    auditorium = models.Hall(name="Main Auditorium", seating_capacity=500, institution_id=inst_a.id)
    seminar = models.Hall(name="Seminar Hall", seating_capacity=120, institution_id=inst_a.id)
    closed = models.Hall(name="Old Block Hall", is_active=False, institution_id=inst_a.id)
    arts_hall = models.Hall(name="Arts Hall", seating_capacity=200, institution_id=inst_b.id)
    db.add_all([auditorium, seminar, closed, arts_hall])

    def user(email, role, institution=None, department=None):
        u = models.User(
            email=email,
            password_hash=password_hash,
            full_name=email.split("@")[0].replace(".", " ").title(),
            role=role.value,
            institution_id=institution.id if institution else None,
            department_id=department.id if department else None,
        )
        db.add(u)
        return u

    users = SimpleNamespace(
        admin=user("admin@example.com", Role.SUPER_ADMIN),
        principal_a=user("principal.a@example.com", Role.PRINCIPAL, inst_a),
        principal_b=user("principal.b@example.com", Role.PRINCIPAL, inst_b),
        dept_user=user("cse.staff@example.com", Role.DEPARTMENT_USER, inst_a, cse),
        other_dept_user=user("cse.other@example.com", Role.DEPARTMENT_USER, inst_a, cse),
        arts_user=user("eng.staff@example.com", Role.DEPARTMENT_USER, inst_b, english),
        designer=user("design@example.com", Role.DESIGNING_TEAM),
        photographer=user("photo@example.com", Role.PHOTOGRAPHY_TEAM),
        press=user("press@example.com", Role.PRESS_RELEASE_TEAM),
    )
    db.commit()

    return SimpleNamespace(
        inst_a=inst_a,
        inst_b=inst_b,
        cse=cse,
        admin_dept=admin_dept,
        english=english,
        auditorium=auditorium,
        seminar=seminar,
        closed=closed,
        arts_hall=arts_hall,
        users=users,
    )


@pytest.fixture
def actors(world):
    return SimpleNamespace(**{name: Actor.from_user(u) for name, u in vars(world.users).items()})


@pytest.fixture
def lifecycle(db):
    return BookingLifecycle(db)


@pytest.fixture
def make_booking(db, world):
    """Insert a booking row directly, bypassing the lifecycle checks."""

    def _make(start=time(10, 0), end=time(12, 0), status="approved", hall=None, user=None, day=BOOKING_DAY, **extra):
        hall = hall or world.auditorium
        user = user or world.users.dept_user
        booking = models.Booking(
            hall_id=hall.id,
            department_id=user.department_id or world.admin_dept.id,
            user_id=user.id,
            booking_date=day,
            start_time=start,
            end_time=end,
            status=status,
            event_title=extra.pop("event_title", "Tech Symposium"),
            **extra,
        )
        db.add(booking)
        db.commit()
        return booking

    return _make


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def client(database, world, sender):
    dispatcher = NotificationDispatcher(sender=sender, max_attempts=1, retry_delay=0)
    app = create_app(database=database, dispatcher=dispatcher)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def headers(world):
    def _headers(user):
        token = auth.create_access_token(user.id, user.role)
        return {"Authorization": f"Bearer {token}"}

    return _headers
