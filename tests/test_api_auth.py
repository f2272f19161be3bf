"""
API tests for the authentication endpoints.
"""
import inspect

import pytest
from fastapi.testclient import TestClient

from app.config import settings
from conftest import PASSWORD

COOKIE = settings.SESSION_COOKIE_NAME


def register_body(**overrides):
    body = {
        "username": "jane_doe",
        "email": "jane@example.org",
        "password": "Passw0rd",
        "firstName": "Jane",
        "lastName": "Doe",
    }
    body.update(overrides)
    return body


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "OK"
    assert body["database"] == "connected"
    assert body["environment"] == "test"


def test_register_sets_session(client):
    response = client.post("/api/auth/register", json=register_body(role="coordinator"))

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "User registered and logged in successfully"
    assert body["user"]["username"] == "jane_doe"
    assert body["user"]["role"] == "coordinator"
    assert body["user"]["firstName"] == "Jane"
    assert "passwordHash" not in body["user"]
    assert COOKIE in client.cookies

    me = client.get("/api/auth/user")
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "jane@example.org"


def test_register_admin_forbidden(client):
    response = client.post("/api/auth/register", json={"role": "admin"})

    assert response.status_code == 403
    assert response.json()["error"] == "Forbidden"
    assert COOKIE not in client.cookies


def test_register_validation_messages(client):
    response = client.post("/api/auth/register", json=register_body(email="nope", username="a"))

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Validation Error"
    assert len(body["messages"]) == 2


def test_register_duplicate(client, researcher):
    response = client.post("/api/auth/register", json=register_body(email=researcher.email))

    assert response.status_code == 400
    assert response.json()["message"] == "A user with this email already exists"


def test_register_while_logged_in(login, researcher):
    client = login("rita")
    response = client.post("/api/auth/register", json=register_body())

    assert response.status_code == 400
    assert response.json()["error"] == "Already Authenticated"


def test_register_requires_json_object(client):
    response = client.post("/api/auth/register", json=["not", "an", "object"])
    assert response.status_code == 400


def test_login(client, researcher):
    response = client.post("/api/v1/auth/login", json={"emailOrUsername": "rita", "password": PASSWORD})

    assert response.status_code == 200
    assert response.json()["message"] == "Login successful"
    assert response.json()["user"]["id"] == researcher.id
    assert "httponly" in response.headers["set-cookie"].lower()


def test_login_missing_fields(client):
    response = client.post("/api/auth/login", json={})

    assert response.status_code == 400
    fields = {m.split(":")[0] for m in response.json()["messages"]}
    assert fields == {"emailOrUsername", "password"}


def test_login_bad_credentials(client, researcher):
    response = client.post("/api/auth/login", json={"emailOrUsername": "rita", "password": "Wrong123"})

    assert response.status_code == 401
    assert response.json() == {"error": "Authentication Failed", "message": "Invalid credentials"}


def test_admin_portal_rejects_non_admin_without_cookie(client, researcher):
    response = client.post("/api/auth/login", json={
        "emailOrUsername": "rita", "password": PASSWORD, "portal": "admin",
    })

    assert response.status_code == 403
    assert response.json()["message"] == "Only admin accounts may use the admin portal."
    assert "set-cookie" not in response.headers
    assert COOKIE not in client.cookies


def test_admin_must_use_admin_portal(client, admin):
    response = client.post("/api/auth/login", json={"emailOrUsername": "adele", "password": PASSWORD})
    assert response.status_code == 403

    response = client.post("/api/auth/login", json={
        "emailOrUsername": "adele", "password": PASSWORD, "portal": "ADMIN",
    })
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "admin"


def test_unknown_portal(client, researcher):
    response = client.post("/api/auth/login", json={
        "emailOrUsername": "rita", "password": PASSWORD, "portal": "backdoor",
    })
    assert response.status_code == 400


def test_user_requires_session(client):
    response = client.get("/api/auth/user")

    assert response.status_code == 401
    assert response.json()["error"] == "Unauthorized"


def test_check(client, login, researcher):
    assert client.get("/api/auth/check").json() == {"isAuthenticated": False, "user": None}

    body = login("rita").get("/api/auth/check").json()
    assert body["isAuthenticated"] is True
    assert body["user"]["username"] == "rita"


def test_logout_revokes_cookie(app, login, researcher):
    client = login("rita")
    token = client.cookies[COOKIE]

    response = client.post("/api/auth/logout")
    assert response.status_code == 200
    assert response.json() == {"message": "Logout successful"}
    assert client.get("/api/auth/user").status_code == 401

    replay = TestClient(app, cookies={COOKIE: token})
    assert replay.get("/api/auth/user").status_code == 401


def test_logout_requires_session(client):
    assert client.post("/api/auth/logout").status_code == 401


def test_update_profile(login, researcher):
    client = login("rita")
    response = client.put("/api/auth/profile", json={"lastName": "Moreno", "department": "Oncology"})

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Profile updated successfully"
    assert body["user"]["lastName"] == "Moreno"
    assert body["user"]["fullName"] == "Rita Moreno"
    assert body["user"]["department"] == "Oncology"


@pytest.mark.parametrize("prefix", ["/api/auth", "/api/v1/auth"])
def test_routes_mounted_on_both_prefixes(client, prefix):
    assert client.get(f"{prefix}/check").status_code == 200


def test_api_handlers_run_in_threadpool(app):
    # Handlers hash passwords and hit the database synchronously
    endpoints = [
        route.endpoint for route in app.routes
        if getattr(route, "path", "").startswith("/api/")
    ]

    assert endpoints
    assert not [e.__name__ for e in endpoints if inspect.iscoroutinefunction(e)]
