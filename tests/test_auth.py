from taskynet.models import RoleName

from .conftest import DEFAULT_PASSWORD

SIGNUP = {
    "firstName": "Ada",
    "lastName": "Haddad",
    "phoneNumber": "+96170000001",
    "address": "Hamra street, building 12",
    "email": "Ada@TaskyNet.com",
    "password": "admin123",
}


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "ok"


def test_signup_bootstraps_first_admin_only(client):
    resp = client.post("/api/auth/signup", json=SIGNUP)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["user"]["email"] == "ada@taskynet.com"
    assert body["user"]["role"] == RoleName.ADMIN
    assert "password" not in body["user"] and "passwordHash" not in body["user"]
    assert body["token"]

    again = client.post("/api/auth/signup", json={**SIGNUP, "email": "other@taskynet.com"})
    assert again.status_code == 403
    assert "error" in again.get_json()


def test_signup_validates_payload(client):
    resp = client.post("/api/auth/signup", json={**SIGNUP, "phoneNumber": "abc"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Phone number is not valid"


def test_login_and_token_use(client, factory, admin_id):
    email = factory.email_of(admin_id)
    resp = client.post("/api/auth/login", json={"email": email.upper(), "password": DEFAULT_PASSWORD})
    assert resp.status_code == 200
    token = resp.get_json()["token"]

    roles = client.get("/api/roles", headers={"Authorization": f"Bearer {token}"})
    assert roles.status_code == 200
    assert RoleName.COLLECTOR in [role["name"] for role in roles.get_json()]


def test_login_rejects_bad_credentials(client, factory, admin_id):
    email = factory.email_of(admin_id)
    resp = client.post("/api/auth/login", json={"email": email, "password": "wrong-password"})
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Invalid email or password"}


def test_login_rejects_inactive_user(client, factory):
    user_id = factory.user(RoleName.ADMIN, active=False)
    resp = client.post("/api/auth/login", json={"email": factory.email_of(user_id), "password": DEFAULT_PASSWORD})
    assert resp.status_code == 401


def test_technician_cannot_use_admin_login(client, factory):
    tech = factory.user(RoleName.TECHNICIAN)
    resp = client.post("/api/auth/login", json={"email": factory.email_of(tech), "password": DEFAULT_PASSWORD})
    assert resp.status_code == 403


def test_missing_and_invalid_tokens(client):
    assert client.get("/api/roles").status_code == 401
    resp = client.get("/api/roles", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Invalid token"}


def test_token_scopes_are_not_interchangeable(client, factory, employee_headers):
    admin = factory.user(RoleName.ADMIN)
    assert client.get("/api/roles", headers=employee_headers(admin)).status_code == 403
    assert client.get("/api/employee/profile", headers=factory.headers(admin)).status_code == 403
    assert client.get("/api/employee/profile", headers=employee_headers(admin)).status_code == 200


def test_role_gates(client, manager_headers):
    assert client.get("/api/zones", headers=manager_headers).status_code == 200
    assert client.get("/api/roles", headers=manager_headers).status_code == 403
    assert client.get("/api/company", headers=manager_headers).status_code == 403
