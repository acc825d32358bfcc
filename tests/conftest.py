"""Pytest configuration and fixtures for API tests.

This module provides shared fixtures for testing the Ijazah Platform API:
a temporary record store, a TestClient and helpers that create signed-in
students, scholars and the bootstrap admin.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import copy
import os

# Environment must be set before the package reads its configuration
os.environ["LOG_FILE"] = ""
os.environ["PASSWORD_HASH_ITERATIONS"] = "1000"
os.environ["CACHE_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["IJAZAH_TEST_ADMIN_PASSWORD"] = "admin-password-1"
os.environ.pop("RESEND_API_KEY", None)

import pytest
from fastapi.testclient import TestClient

from ijazah_api import auth, scholar_service
from ijazah_api.api import app, initialize_services
from ijazah_api.api_utils import services
from ijazah_api.platform_config import load_platform_config


ADMIN_EMAIL = "admin@test.ijazah.app"
ADMIN_PASSWORD = "admin-password-1"
DEFAULT_PASSWORD = "password-123"


@pytest.fixture
def platform_config():
    """Repository seed file with a test admin account."""
    data = copy.deepcopy(load_platform_config())
    data["accounts"] = [{
        "email": ADMIN_EMAIL,
        "full_name": "Test Admin",
        "roles": ["student", "admin"],
        "password_env": "IJAZAH_TEST_ADMIN_PASSWORD",
    }]
    return data


@pytest.fixture
def store(tmp_path, platform_config):
    """Initialize services on a fresh temporary data directory.

    Yields:
        JsonStore: The initialized record store
    """
    auth.active_tokens.clear()
    store = initialize_services(data_dir=tmp_path / "data", platform_config=platform_config)
    yield store
    auth.active_tokens.clear()
    services.clear()


@pytest.fixture
def test_client(store):
    """Create a test client for the API.

    The client is used as a context manager so the lifespan initializes
    the response cache.

    Yields:
        TestClient: FastAPI test client
    """
    with TestClient(app) as client:
        yield client


def login(client, email, password=DEFAULT_PASSWORD):
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    data = response.json()
    return {
        "user_id": data["user_id"],
        "email": data["email"],
        "token": data["token"],
        "headers": {"Authorization": f"Bearer {data['token']}"},
    }


@pytest.fixture
def login_user(test_client):
    """Factory logging an existing account in."""
    def _login(email, password=DEFAULT_PASSWORD):
        return login(test_client, email, password)

    return _login


@pytest.fixture
def make_user(test_client):
    """Factory registering an account and logging it in.

    Returns:
        Callable returning ``{"user_id", "email", "token", "headers"}``
    """
    def _make_user(email, full_name="Test Student", password=DEFAULT_PASSWORD):
        response = test_client.post("/auth/register", json={
            "email": email,
            "password": password,
            "full_name": full_name,
        })
        assert response.status_code == 201, response.text
        return login(test_client, email, password)

    return _make_user


@pytest.fixture
def admin(test_client):
    """The bootstrap admin, signed in."""
    return login(test_client, ADMIN_EMAIL, ADMIN_PASSWORD)


@pytest.fixture
def student(make_user):
    return make_user("student@example.com", full_name="Ahmad Student")


@pytest.fixture
def scholar(make_user, store):
    """A signed-in user with an active scholar record."""
    user = make_user("sheikh@example.com", full_name="Sheikh Yusuf")
    scholar_service.make_scholar(
        store,
        user["user_id"],
        specialization="Qira'at and tajweed",
        bio_detailed="Teaches the ten readings",
        sanad_chain={"chain": ["Sheikh A", "Sheikh B"]},
    )
    return user


@pytest.fixture
def second_scholar(make_user, store):
    user = make_user("sheikh2@example.com", full_name="Sheikh Bilal")
    scholar_service.make_scholar(store, user["user_id"], specialization="Hifz")
    return user


def build_application_payload(ijazah_type="qirat", **overrides):
    """Return a valid application body."""
    payload = {
        "ijazah_type": ijazah_type,
        "personal_info": {
            "full_name": "Ahmad Student",
            "email": "student@example.com",
            "phone": "+966 500 000 000",
            "date_of_birth": "2000-01-01",
            "country": "Saudi Arabia",
            "city": "Madinah",
        },
        "academic_background": {
            "education_level": "bachelor",
            "years_of_study": 6,
        },
        "quran_experience": {
            "memorization_level": "complete",
            "recitation_proficiency": "advanced",
            "tajweed_knowledge": "advanced",
            "recitation": "حفص",
            "selected_narrations": ["حفص"],
        },
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def application_payload():
    return build_application_payload()


@pytest.fixture
def submitted_application(test_client, student, application_payload):
    """A submitted, unassigned application of ``student``."""
    response = test_client.post("/applications", json=application_payload, headers=student["headers"])
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def approved_application(test_client, scholar, submitted_application):
    """``submitted_application`` reviewed and approved by ``scholar``."""
    application_id = submitted_application["application_id"]
    base = f"/scholar/applications/{application_id}"
    assert test_client.post(f"{base}/start-review", headers=scholar["headers"]).status_code == 200
    response = test_client.post(f"{base}/approve", json={"notes": "Excellent"}, headers=scholar["headers"])
    assert response.status_code == 200, response.text
    return response.json()
