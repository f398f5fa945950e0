from datetime import date, timedelta

from jose import jwt

from emr import main, security
from emr.config import settings
from emr.exceptions import StorageError


def _assertion(**claims):
    return jwt.encode(claims, settings.identity_secret, algorithm=settings.jwt_algorithm)


class TestSession:
    def test_protected_routes_require_a_session(self, client):
        assert client.get("/api/patients").status_code == 401
        assert client.get("/api/auth/user").status_code == 401
        assert client.get("/api/dashboard/metrics").status_code == 401

    def test_garbage_and_expired_tokens_are_rejected(self, client, doctor):
        expired = security.create_access_token(doctor.id, doctor.role, expires_delta=timedelta(seconds=-5))

        assert client.get("/api/patients", headers={"Authorization": "Bearer nonsense"}).status_code == 401
        assert client.get("/api/patients", headers={"Authorization": f"Bearer {expired}"}).status_code == 401

    def test_token_for_deleted_user_is_rejected(self, client):
        token = security.create_access_token("ghost", "doctor")
        assert client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"}).status_code == 401

    def test_login_upserts_user_and_sets_cookie(self, client):
        assertion = _assertion(sub="idp|42", email="chase@ppth.org", first_name="Robert", last_name="Chase")

        response = client.post("/api/auth/login", json={"idToken": assertion})
        assert response.status_code == 200
        body = response.json()
        assert body["tokenType"] == "bearer"
        assert "session" in response.cookies

        # The cookie alone carries the session
        me = client.get("/api/auth/user")
        assert me.status_code == 200
        assert me.json()["id"] == "idp|42"
        assert me.json()["firstName"] == "Robert"
        assert me.json()["role"] == "doctor"

        by_header = client.get("/api/auth/user", headers={"Authorization": f"Bearer {body['accessToken']}"})
        assert by_header.json()["email"] == "chase@ppth.org"

    def test_login_keeps_role_of_returning_user(self, client, admin):
        response = client.post("/api/auth/login", json={"idToken": _assertion(sub=admin.id, first_name="Lisa")})
        assert response.status_code == 200

        token = response.json()["accessToken"]
        me = client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"}).json()
        assert me["role"] == "admin"
        assert me["lastName"] == "Cuddy"

    def test_login_rejects_forged_assertion(self, client):
        forged = jwt.encode({"sub": "idp|1"}, "not-the-identity-secret", algorithm="HS256")
        assert client.post("/api/auth/login", json={"idToken": forged}).status_code == 401

    def test_logout_clears_cookie(self, client):
        response = client.post("/api/auth/logout")
        assert response.status_code == 204
        assert "session" in response.headers.get("set-cookie", "")


class TestPatientsApi:
    def test_create_uses_camel_case(self, client, doctor_headers):
        response = client.post(
            "/api/patients",
            json={"firstName": "Ada", "lastName": "Lovelace", "email": "", "dateOfBirth": "1815-12-10"},
            headers=doctor_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["firstName"] == "Ada"
        assert body["email"] is None
        assert body["dateOfBirth"] == "1815-12-10"
        assert body["status"] == "active"
        assert body["createdAt"] == body["updatedAt"]

    def test_invalid_payload_is_400(self, client, doctor_headers):
        response = client.post("/api/patients", json={"lastName": "Lovelace"}, headers=doctor_headers)

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid request data"
        assert response.json()["errors"]

    def test_unknown_status_is_400(self, client, doctor_headers, patient):
        response = client.put(f"/api/patients/{patient.id}", json={"status": "archived"}, headers=doctor_headers)
        assert response.status_code == 400

    def test_missing_patient_is_404(self, client, doctor_headers):
        assert client.get("/api/patients/999", headers=doctor_headers).status_code == 404
        assert client.put("/api/patients/999", json={"status": "inactive"}, headers=doctor_headers).status_code == 404

    def test_update(self, client, doctor_headers, patient):
        response = client.put(f"/api/patients/{patient.id}", json={"status": "follow-up"}, headers=doctor_headers)

        assert response.status_code == 200
        assert response.json()["status"] == "follow-up"
        assert response.json()["lastName"] == "Lovelace"

    def test_delete_twice_is_204(self, client, doctor_headers, patient):
        assert client.delete(f"/api/patients/{patient.id}", headers=doctor_headers).status_code == 204
        assert client.delete(f"/api/patients/{patient.id}", headers=doctor_headers).status_code == 204
        assert client.get(f"/api/patients/{patient.id}", headers=doctor_headers).status_code == 404

    def test_delete_with_dependents_is_400(self, client, doctor_headers, patient, make_appointment):
        make_appointment()
        response = client.delete(f"/api/patients/{patient.id}", headers=doctor_headers)

        assert response.status_code == 400
        assert response.json()["errors"]["dependent"] == "appointments"

    def test_search(self, client, doctor_headers, patient):
        hits = client.get("/api/patients/search", params={"q": "lovel"}, headers=doctor_headers)
        assert hits.status_code == 200
        assert [p["id"] for p in hits.json()] == [patient.id]

        assert client.get("/api/patients/search", params={"q": "  "}, headers=doctor_headers).status_code == 400
        assert client.get("/api/patients/search", headers=doctor_headers).status_code == 400


class TestAppointmentsApi:
    def test_create_defaults_doctor_to_caller(self, client, doctor, doctor_headers, patient):
        response = client.post(
            "/api/appointments",
            json={"patientId": patient.id, "date": "2024-06-01", "time": "09:00", "type": "consultation"},
            headers=doctor_headers,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["doctorId"] == doctor.id
        assert body["status"] == "scheduled"
        assert body["duration"] == "30"

        listed = client.get("/api/appointments/date/2024-06-01", headers=doctor_headers).json()
        assert listed[0]["patient"]["firstName"] == "Ada"
        assert listed[0]["doctor"]["id"] == doctor.id

    def test_unknown_patient_is_400(self, client, doctor_headers):
        response = client.post(
            "/api/appointments",
            json={"patientId": 999, "date": "2024-06-01", "time": "09:00", "type": "consultation"},
            headers=doctor_headers,
        )
        assert response.status_code == 400
        assert response.json()["errors"]["field"] == "patient_id"

    def test_today_and_by_doctor(self, client, doctor, doctor_headers, make_appointment):
        make_appointment(date=date.today())
        make_appointment(date=date.today() - timedelta(days=1))

        assert len(client.get("/api/appointments/today", headers=doctor_headers).json()) == 1
        assert len(client.get(f"/api/appointments/doctor/{doctor.id}", headers=doctor_headers).json()) == 2

    def test_get_missing_is_404(self, client, doctor_headers):
        assert client.get("/api/appointments/12", headers=doctor_headers).status_code == 404


class TestNotesAndPrescriptionsApi:
    def test_note_round_trip(self, client, doctor_headers, patient):
        created = client.post(
            "/api/clinical-notes",
            json={"patientId": patient.id, "title": "Intake", "content": "History taken", "type": "consultation"},
            headers=doctor_headers,
        )
        assert created.status_code == 201

        notes = client.get(f"/api/clinical-notes/patient/{patient.id}", headers=doctor_headers).json()
        assert [n["id"] for n in notes] == [created.json()["id"]]
        assert notes[0]["appointment"] is None
        assert notes[0]["patient"]["id"] == patient.id

    def test_prescription_refills_default(self, client, doctor_headers, patient):
        created = client.post(
            "/api/prescriptions",
            json={
                "patientId": patient.id,
                "medicationName": "Amoxicillin",
                "dosage": "500mg",
                "frequency": "3x daily",
                "duration": "7 days",
                "startDate": "2024-06-01",
            },
            headers=doctor_headers,
        )

        assert created.status_code == 201
        assert created.json()["refillsRemaining"] == 0

        fetched = client.get(f"/api/prescriptions/{created.json()['id']}", headers=doctor_headers).json()
        assert fetched["doctor"]["lastName"] == "House"


class TestStaffApi:
    def test_staff_routes_are_admin_only(self, client, doctor_headers, admin_headers):
        assert client.get("/api/staff", headers=doctor_headers).status_code == 403
        response = client.get("/api/staff", headers=admin_headers)
        assert response.status_code == 200
        assert {m["id"] for m in response.json()} == {"admin-1", "doc-1"}

    def test_create_staff_and_duplicate_email(self, client, admin_headers):
        payload = {"firstName": "James", "lastName": "Wilson", "email": "wilson@ppth.org", "role": "doctor"}

        created = client.post("/api/staff", json=payload, headers=admin_headers)
        assert created.status_code == 201
        assert created.json()["email"] == "wilson@ppth.org"

        assert client.post("/api/staff", json=payload, headers=admin_headers).status_code == 409

    def test_added_staff_member_can_sign_in(self, client, admin_headers):
        payload = {"firstName": "James", "lastName": "Wilson", "email": "wilson@ppth.org", "role": "nurse"}
        member_id = client.post("/api/staff", json=payload, headers=admin_headers).json()["id"]

        for _ in range(2):
            login = client.post(
                "/api/auth/login",
                json={"idToken": _assertion(sub="idp|wilson", email="Wilson@ppth.org", profile_image_url="https://img/w")},
            )
            assert login.status_code == 200

            token = login.json()["accessToken"]
            me = client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"}).json()
            assert me["id"] == member_id
            assert me["role"] == "nurse"
            assert me["profileImageUrl"] == "https://img/w"

        staff = client.get("/api/staff", headers=admin_headers).json()
        assert len([m for m in staff if m["lastName"] == "Wilson"]) == 1

    def test_signed_up_email_is_not_claimed_by_another_account(self, client, doctor):
        login = client.post("/api/auth/login", json={"idToken": _assertion(sub="idp|impostor", email=doctor.email)})
        assert login.status_code == 409

    def test_admin_cannot_remove_themselves(self, client, admin, admin_headers):
        assert client.delete(f"/api/staff/{admin.id}", headers=admin_headers).status_code == 400


def test_dashboard_metrics(client, doctor_headers, patient, make_appointment):
    make_appointment(date=date.today())

    response = client.get("/api/dashboard/metrics", headers=doctor_headers)
    assert response.status_code == 200
    assert response.json() == {
        "todayAppointments": 1,
        "activePatients": 1,
        "pendingReports": 0,
        "monthlyRevenue": settings.monthly_revenue,
    }


def test_health(client):
    assert client.get("/health").json() == {"status": "ok", "database": "ok"}


def test_console_script_serves_the_app(monkeypatch):
    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))

    main.run()

    assert calls == [("emr.main:app", {"host": settings.host, "port": settings.port})]


def test_storage_error_details_default_to_empty():
    error = StorageError("boom")
    assert error.details == {}
    assert str(error) == "boom"
