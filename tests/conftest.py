"""
Pytest fixtures for the Trial Tracker tests.

Every test gets a fresh in-memory SQLite database; the API is wired to it
through dependency overrides.
"""
import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["SECRET_KEY"] = "test-secret-key"

import pytest
from typing import Any, Dict
from fastapi.testclient import TestClient

from trialtracker.auth import AuthService, Principal, Role
from trialtracker.database import DatabaseConfig, DatabaseManager
from trialtracker.trials import TrialService

PASSWORD = "Secret123"


def build_trial_payload(**overrides) -> Dict[str, Any]:
    """A valid trial body in wire format."""
    payload = {
        "trialId": "ONC-001",
        "trialName": "Adjuvant Immunotherapy in Resected Melanoma",
        "description": "Randomized study of adjuvant checkpoint inhibition.",
        "principalInvestigator": "Dr. Ada Byron",
        "sponsor": "Northwind Oncology",
        "therapeuticArea": "Oncology",
        "drugName": "NW-101",
        "primaryEndpoint": "Relapse-free survival at 24 months",
        "phase": "Phase III",
        "status": "Recruiting",
        "startDate": "2024-01-15",
        "endDate": "2026-06-30",
        "estimatedEnrollment": 50,
        "actualEnrollment": 10,
        "secondaryEndpoints": ["Overall survival"],
        "inclusionCriteria": ["Age 18 or older"],
        "exclusionCriteria": ["Prior checkpoint therapy"],
        "studyLocations": [{"facility": "City Hospital", "city": "Boston", "country": "USA"}],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def trial_payload():
    return build_trial_payload


@pytest.fixture
def db_manager():
    manager = DatabaseManager(DatabaseConfig(url="sqlite://"))
    manager.create_tables()
    yield manager
    manager.close()


@pytest.fixture
def session(db_manager):
    session = db_manager.get_session()
    yield session
    session.close()


@pytest.fixture
def auth_service(session):
    return AuthService(session)


@pytest.fixture
def trial_service(session):
    return TrialService(session)


@pytest.fixture
def make_user(auth_service):
    """Create an account with any role."""
    def _make(username: str, role: Role = Role.RESEARCHER, **fields):
        data = {
            "username": username,
            "email": f"{username}@example.org",
            "password": PASSWORD,
            "firstName": username.capitalize(),
            "lastName": "Tester",
        }
        data.update(fields)
        return auth_service.provision_user(data, role=role)
    return _make


@pytest.fixture
def researcher(make_user):
    return make_user("rita", Role.RESEARCHER)


@pytest.fixture
def other_researcher(make_user):
    return make_user("oscar", Role.RESEARCHER)


@pytest.fixture
def coordinator(make_user):
    return make_user("cora", Role.COORDINATOR)


@pytest.fixture
def admin(make_user):
    return make_user("adele", Role.ADMIN)


@pytest.fixture
def principal_for():
    return Principal.from_user


# =============================================================================
# API
# =============================================================================

@pytest.fixture
def app(db_manager):
    from app.main import app as fastapi_app
    from app.services.database import get_db

    def override_get_db():
        session = db_manager.get_session()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    fastapi_app.dependency_overrides[get_db] = override_get_db
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def login(app):
    """Return a client holding a session cookie for the given account."""
    def _login(identifier: str, password: str = PASSWORD, portal: str = None) -> TestClient:
        client = TestClient(app)
        body = {"emailOrUsername": identifier, "password": password}
        if portal:
            body["portal"] = portal
        response = client.post("/api/auth/login", json=body)
        assert response.status_code == 200, response.text
        return client
    return _login
