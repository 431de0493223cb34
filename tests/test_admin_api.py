# tests/test_admin_api.py
from datetime import timedelta

from hall_booking import auth, models


def test_root(client):
    assert client.get("/").json() == {"message": "Welcome to the Hall Booking System"}


def test_login_and_me(client, world):
    response = client.post("/users/login", json={"email": "cse.staff@example.com", "password": "secret123"})
    assert response.status_code == 200
    token = response.json()["access_token"]
    assert response.json()["user"]["role"] == "department_user"

    me = client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["email"] == "cse.staff@example.com"


def test_login_with_wrong_password(client, world):
    response = client.post("/users/login", json={"email": "cse.staff@example.com", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "invalid_credentials"


def test_self_registration_is_always_department_user(client, world):
    response = client.post("/users/register", json={
        "email": "new.staff@example.com",
        "password": "secret123",
        "full_name": "New Staff",
        "role": "super_admin",
        "institution_id": world.inst_a.id,
        "department_id": world.cse.id,
    })
    assert response.status_code == 201
    assert response.json()["role"] == "department_user"


def test_registration_can_be_closed(client, world, headers):
    response = client.put(
        "/settings/registration_active", json={"value": False}, headers=headers(world.users.admin)
    )
    assert response.status_code == 200
    assert client.get("/settings/registration").json() == {"registration_active": False}

    response = client.post("/users/register", json={
        "email": "late.staff@example.com",
        "password": "secret123",
        "full_name": "Late Staff",
    })
    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "registration_closed"


def test_settings_visibility(client, world, headers):
    listed = client.get("/settings/", headers=headers(world.users.principal_a))
    assert listed.status_code == 200
    assert {"key": "registration_active", "value": True} in [
        {"key": s["key"], "value": s["value"]} for s in listed.json()
    ]

    assert client.get("/settings/", headers=headers(world.users.dept_user)).status_code == 403
    assert client.put(
        "/settings/registration_active", json={"value": False}, headers=headers(world.users.principal_a)
    ).status_code == 403


def test_duplicate_email(client, world, headers):
    response = client.post("/users/", json={
        "email": "cse.staff@example.com",
        "password": "secret123",
        "full_name": "Duplicate",
    }, headers=headers(world.users.admin))
    assert response.status_code == 400
    assert response.json()["detail"]["code"] == "email_taken"


def test_admin_creates_team_member(client, world, headers):
    response = client.post("/users/", json={
        "email": "design2@example.com",
        "password": "secret123",
        "full_name": "Second Designer",
        "role": "designing_team",
    }, headers=headers(world.users.admin))
    assert response.status_code == 201
    assert response.json()["role"] == "designing_team"


def test_user_may_only_change_own_theme(client, world, headers):
    user = world.users.dept_user
    ok = client.put(f"/users/{user.id}", json={"theme_preference": "dark"}, headers=headers(user))
    assert ok.status_code == 200
    assert ok.json()["theme_preference"] == "dark"

    escalate = client.put(f"/users/{user.id}", json={"role": "super_admin"}, headers=headers(user))
    assert escalate.status_code == 403
    assert escalate.json()["detail"]["code"] == "forbidden"


def test_change_password(client, world, headers):
    user = world.users.dept_user
    wrong = client.post(
        "/users/change-password", json={"old_password": "guess", "new_password": "n3w-secret"}, headers=headers(user)
    )
    assert wrong.status_code == 400
    assert wrong.json()["detail"]["code"] == "wrong_password"

    changed = client.post(
        "/users/change-password", json={"old_password": "secret123", "new_password": "n3w-secret"}, headers=headers(user)
    )
    assert changed.status_code == 200
    login = client.post("/users/login", json={"email": "cse.staff@example.com", "password": "n3w-secret"})
    assert login.status_code == 200


def test_admin_cannot_delete_self(client, world, headers):
    admin = world.users.admin
    response = client.delete(f"/users/{admin.id}", headers=headers(admin))
    assert response.status_code == 400


def test_hall_with_bookings_cannot_be_deleted(client, world, headers, make_booking):
    make_booking()
    response = client.delete(f"/halls/{world.auditorium.id}", headers=headers(world.users.admin))
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "hall_in_use"

    deactivate = client.put(
        f"/halls/{world.auditorium.id}", json={"is_active": False}, headers=headers(world.users.admin)
    )
    assert deactivate.json()["is_active"] is False

    assert client.delete(f"/halls/{world.seminar.id}", headers=headers(world.users.admin)).status_code == 200


def test_hall_listing_by_role(client, world, headers):
    names = lambda user: {h["name"] for h in client.get("/halls/", headers=headers(user)).json()}
    assert names(world.users.principal_b) == {"Arts Hall"}
    assert "Old Block Hall" in names(world.users.admin)
    assert client.get(f"/halls/{world.closed.id}", headers=headers(world.users.dept_user)).status_code == 404


def test_only_super_admin_manages_halls(client, world, headers):
    response = client.post(
        "/halls/", json={"name": "Mini Hall", "institution_id": world.inst_a.id}, headers=headers(world.users.principal_a)
    )
    assert response.status_code == 403


def test_create_hall_for_unknown_institution(client, world, headers):
    response = client.post(
        "/halls/", json={"name": "Mini Hall", "institution_id": "nowhere"}, headers=headers(world.users.admin)
    )
    assert response.status_code == 404


def test_institutions_and_departments(client, world, headers):
    institutions = client.get("/institutions/", headers=headers(world.users.principal_a)).json()
    assert [i["short_name"] for i in institutions] == ["HCE"]

    departments = client.get("/departments/", params={"institution_id": world.inst_b.id}).json()
    assert [d["short_name"] for d in departments] == ["ENG"]

    created = client.post(
        "/departments/",
        json={"name": "Mechanical", "short_name": "MECH", "institution_id": world.inst_a.id},
        headers=headers(world.users.admin),
    )
    assert created.status_code == 201


class TestPressReleases:
    def submit(self, client, headers, user, **extra):
        body = {
            "coordinator_name": "Dr. Meena",
            "event_title": "Tech Symposium",
            "event_date": "2030-03-14",
            "english_writeup": "The symposium drew 400 students.",
        }
        body.update(extra)
        return client.post("/press-releases/", json=body, headers=headers(user))

    def test_submit_moderate_and_publish(self, client, world, headers):
        submitted = self.submit(client, headers, world.users.dept_user)
        assert submitted.status_code == 201
        assert submitted.json()["status"] == "pending"
        release_id = submitted.json()["id"]

        mine = client.get("/press-releases/mine", headers=headers(world.users.dept_user)).json()
        assert [r["id"] for r in mine] == [release_id]

        queue = client.get("/press-releases/", params={"status": "pending"}, headers=headers(world.users.principal_a))
        assert [r["id"] for r in queue.json()] == [release_id]
        assert client.get("/press-releases/", headers=headers(world.users.principal_b)).json() == []

        denied = client.put(
            f"/press-releases/{release_id}/status", json={"status": "approved"}, headers=headers(world.users.principal_b)
        )
        assert denied.status_code == 403

        approved = client.put(
            f"/press-releases/{release_id}/status", json={"status": "approved"}, headers=headers(world.users.principal_a)
        )
        assert approved.json()["status"] == "approved"

        published = client.get("/press-releases/approved", headers=headers(world.users.press)).json()
        assert [r["id"] for r in published] == [release_id]

    def test_press_team_cannot_moderate(self, client, world, headers):
        assert client.get("/press-releases/", headers=headers(world.users.press)).status_code == 403

    def test_cannot_attach_someone_elses_booking(self, client, world, headers, make_booking):
        other = make_booking(user=world.users.other_dept_user)
        response = self.submit(client, headers, world.users.dept_user, booking_id=other.id)
        assert response.status_code == 404

    def test_deleting_booking_keeps_press_release(self, client, world, headers, make_booking, db):
        booking = make_booking()
        release_id = self.submit(client, headers, world.users.dept_user, booking_id=booking.id).json()["id"]

        assert client.delete(f"/bookings/{booking.id}", headers=headers(world.users.admin)).status_code == 200

        db.expire_all()
        release = db.get(models.PressRelease, release_id)
        assert release is not None
        assert release.booking_id is None

    def test_release_from_department_without_institution_is_super_admin_only(
        self, client, world, headers, db, password_hash
    ):
        legacy = models.Department(name="Placement Cell", short_name="PLC", institution_id=None)
        db.add(legacy)
        db.flush()
        coordinator = models.User(
            email="placement@example.com",
            password_hash=password_hash,
            full_name="Placement Coordinator",
            role="department_user",
            department_id=legacy.id,
        )
        db.add(coordinator)
        db.commit()

        release_id = self.submit(client, headers, coordinator).json()["id"]

        for principal in (world.users.principal_a, world.users.principal_b):
            response = client.put(
                f"/press-releases/{release_id}/status", json={"status": "approved"}, headers=headers(principal)
            )
            assert response.status_code == 403
            assert response.json()["detail"]["code"] == "forbidden"

        approved = client.put(
            f"/press-releases/{release_id}/status", json={"status": "approved"}, headers=headers(world.users.admin)
        )
        assert approved.json()["status"] == "approved"


def test_expired_token_is_rejected(client, world):
    token = auth.create_access_token(world.users.admin.id, "super_admin", expires_delta=timedelta(minutes=-1))
    response = client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_token_of_deleted_user_is_rejected(client, world, headers):
    press = world.users.press
    stale = headers(press)
    assert client.delete(f"/users/{press.id}", headers=headers(world.users.admin)).status_code == 200
    assert client.get("/users/me", headers=stale).status_code == 401


def test_role_is_read_from_the_database_not_the_token(client, world):
    user = world.users.dept_user
    token = auth.create_access_token(user.id, "super_admin")
    response = client.get("/users/", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403
