"""
Tests for the Flask API – the route guard, staff login and identity endpoints.
"""

import io

import pytest
import requests

from medportal.api.app import create_app


# ── Helpers / Fakes ──────────────────────────────────────────────────

class FakeResponse:
    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, predictions=None, error=None):
        self._predictions = predictions or []
        self._error = error

    def post(self, url, **kwargs):
        if self._error:
            raise self._error
        return FakeResponse({"predictions": self._predictions})


ADMIN_ROW = {"id": 1, "display_name": "System Admin", "role": "Admin"}


@pytest.fixture
def make_client(fake_engine):
    def build(row=ADMIN_ROW, http_session=None):
        app = create_app(engine=fake_engine(row), id_card_api_key="test-key",
                         http_session=http_session or FakeSession())
        app.config["TESTING"] = True
        return app.test_client()
    return build


def sign_in(client, role="Admin", token="tok"):
    client.set_cookie("role", role)
    client.set_cookie("token", token)


@pytest.fixture
def client(make_client):
    return make_client()


# ── Tests: info ──────────────────────────────────────────────────────

def test_index(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "running"


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.get_json()["checks"] == {"database": True, "id_card_service": True}


# ── Tests: route guard ───────────────────────────────────────────────

def test_dashboard_root_without_cookies_is_404(client):
    resp = client.get("/dashboard")
    assert resp.status_code == 404
    assert resp.get_json()["error"] == "Not found"


def test_dashboard_root_redirects_to_home(client):
    sign_in(client, "LabTechnician")
    resp = client.get("/dashboard")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/dashboard/lab-technician")


def test_protected_page_requires_login(client):
    resp = client.get("/dashboard/receptionist")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/login/staff")


def test_role_mismatch_redirects(client):
    sign_in(client, "LabTechnician")
    resp = client.get("/dashboard/admin/patients")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/dashboard/lab-technician")


def test_matching_role_sees_dashboard(client):
    sign_in(client, "Admin")
    resp = client.get("/dashboard/admin/patients")
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["role"] == "Admin"
    active = [item["title"] for item in data["navigation"] if item["isActive"]]
    assert active == ["Patients"]


def test_unknown_dashboard_segment_is_404(client):
    sign_in(client, "Admin")
    assert client.get("/dashboard/patient").status_code == 404


def test_staff_login_page_redirects_when_signed_in(client):
    assert client.get("/login/staff").status_code == 200
    sign_in(client, "Receptionist")
    resp = client.get("/login/staff")
    assert resp.status_code == 302
    assert resp.headers["Location"].endswith("/dashboard/receptionist")


def test_unknown_role_cookie_is_ignored(client):
    sign_in(client, "superuser")
    resp = client.get("/dashboard/admin")
    assert resp.headers["Location"].endswith("/login/staff")


# ── Tests: auth ──────────────────────────────────────────────────────

def test_staff_login_sets_cookies_and_session(client):
    resp = client.post("/api/auth/staff/login", json={"api_key": "k"})
    assert resp.status_code == 200
    assert resp.get_json()["redirect"] == "/dashboard/admin"
    cookies = " ".join(resp.headers.getlist("Set-Cookie"))
    assert "role=Admin" in cookies
    assert "token=" in cookies

    session = client.get("/api/auth/session")
    assert session.status_code == 200
    assert session.get_json()["user"]["role"] == "Admin"

    assert client.get("/dashboard/admin").status_code == 200


def test_staff_login_bad_key(make_client):
    client = make_client(row=None)
    resp = client.post("/api/auth/staff/login", json={"api_key": "nope"})
    assert resp.status_code == 401
    assert "Authentication failed" in resp.get_json()["error"]


def test_staff_login_requires_json(client):
    assert client.post("/api/auth/staff/login", data="x").status_code == 400
    assert client.post("/api/auth/staff/login", json={}).status_code == 400


def test_staff_login_rejects_non_object_body(client):
    resp = client.post("/api/auth/staff/login", json=["k"])
    assert resp.status_code == 400
    assert "JSON object" in resp.get_json()["error"]


def test_session_rejects_forged_token(client):
    client.set_cookie("token", "not-a-jwt")
    assert client.get("/api/auth/session").status_code == 401


def test_session_requires_token(client):
    assert client.get("/api/auth/session").status_code == 401


def test_logout_clears_cookies(client):
    client.post("/api/auth/staff/login", json={"api_key": "k"})
    resp = client.post("/api/auth/logout")
    assert resp.status_code == 200
    assert client.get("/dashboard/admin").status_code == 302


# ── Tests: identity endpoints ────────────────────────────────────────

def test_validate_national_id(client):
    resp = client.post("/api/national-id/validate", json={"national_id": "30103150101234"})
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["birth_date"] == "2001-03-15"
    assert data["sex"] == "male"
    assert data["governorate"] == "Cairo"
    assert isinstance(data["age"], int)


def test_validate_national_id_invalid(client):
    resp = client.post("/api/national-id/validate", json={"national_id": "50103150101234"})
    assert resp.status_code == 422
    assert resp.get_json()["valid"] is False


def test_validate_national_id_missing(client):
    assert client.post("/api/national-id/validate", json={}).status_code == 400


def test_validate_national_id_rejects_non_object_body(client):
    resp = client.post("/api/national-id/validate", json=["30103150101234"])
    assert resp.status_code == 400
    assert "JSON object" in resp.get_json()["error"]


def test_validate_phone(client):
    resp = client.post("/api/phone/validate", json={"phone": " 01012345678 "})
    assert resp.status_code == 200
    assert resp.get_json() == {"valid": True, "phone": "01012345678", "formatted": "201012345678"}


def test_validate_phone_invalid(client):
    resp = client.post("/api/phone/validate", json={"phone": "01312345678"})
    assert resp.status_code == 422
    assert resp.get_json()["valid"] is False


def test_validate_phone_bad_body(client):
    assert client.post("/api/phone/validate", json={}).status_code == 400
    assert client.post("/api/phone/validate", json={"phone": 1012345678}).status_code == 400
    assert client.post("/api/phone/validate", json=["01012345678"]).status_code == 400


def upload(client, payload=b"fake-image"):
    return client.post(
        "/api/verify-id",
        data={"image": (io.BytesIO(payload), "id.jpg", "image/jpeg")},
        content_type="multipart/form-data",
    )


def test_verify_id_valid(make_client):
    client = make_client(http_session=FakeSession([{"class": "Egyption-Id", "confidence": 0.7}]))
    resp = upload(client)
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["isValid"] is True
    assert data["confidence"] == 0.7
    assert "note" not in data


def test_verify_id_fallback_note(make_client):
    client = make_client(http_session=FakeSession([{"class": "cat", "confidence": 0.45}]))
    data = upload(client).get_json()
    assert data["isValid"] is True
    assert data["note"] == "Accepted with lower confidence threshold"


def test_verify_id_no_image(client):
    resp = client.post("/api/verify-id", data={}, content_type="multipart/form-data")
    assert resp.status_code == 400


def test_verify_id_service_down(make_client):
    client = make_client(http_session=FakeSession(error=requests.ConnectionError("down")))
    resp = upload(client)
    assert resp.status_code == 502
    assert "error" in resp.get_json()
