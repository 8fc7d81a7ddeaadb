"""
Shared fixtures.

Every test application is built from explicit settings: no rate limiting,
no artificial repository latency, the cheapest bcrypt cost and no span
export (request spans are still created).
"""

import os

os.environ.setdefault("PRACTICE_API_ENVIRONMENT", "test")
os.environ.setdefault("PRACTICE_API_RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("PRACTICE_API_MOCK_DELAY_MIN_SECONDS", "0")
os.environ.setdefault("PRACTICE_API_MOCK_DELAY_MAX_SECONDS", "0")
os.environ.setdefault("PRACTICE_API_PASSWORD_BCRYPT_ROUNDS", "4")
os.environ.setdefault("PRACTICE_API_TRACING_EXPORTER", "none")

from typing import Any, Callable, Dict, Iterator, Optional

import pytest
from fastapi.testclient import TestClient
from prometheus_client.parser import text_string_to_metric_families

from practice_api.src.config import Settings, clear_settings_cache
from practice_api.src.main import create_app

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "AdminPass@2024"
DEFAULT_PASSWORD = "SecurePass123!"


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "environment": "test",
        "rate_limit_enabled": False,
        "mock_delay_min_seconds": 0.0,
        "mock_delay_max_seconds": 0.0,
        "password_bcrypt_rounds": 4,
        "log_level": "WARNING",
        "log_format": "text",
        "tracing_exporter": "none",
        "bootstrap_admin_username": ADMIN_USERNAME,
        "bootstrap_admin_password": ADMIN_PASSWORD,
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Iterator[None]:
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def app(settings: Settings):
    return create_app(settings)


@pytest.fixture
def client(app) -> Iterator[TestClient]:
    # Entering the client runs the lifespan, which creates the bootstrap admin
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client: TestClient) -> Callable[..., Dict[str, Any]]:
    """Register an account and return the token response body."""

    def _register(username: str = "jdoe", **fields: Any) -> Dict[str, Any]:
        body = {
            "username": username,
            "email": fields.pop("email", f"{username}@example.com"),
            "password": fields.pop("password", DEFAULT_PASSWORD),
            **fields,
        }
        response = client.post("/api/auth/register", json=body)
        assert response.status_code == 201, response.text
        return response.json()

    return _register


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user_headers(register) -> Dict[str, str]:
    return bearer(register("jdoe")["accessToken"])


@pytest.fixture
def admin_headers(client: TestClient) -> Dict[str, str]:
    response = client.post(
        "/api/auth/login",
        json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200, response.text
    return bearer(response.json()["accessToken"])


@pytest.fixture
def headers_for_role(client: TestClient, register, admin_headers) -> Callable[[str, str], Dict[str, str]]:
    """Register an account, give it one role, and return its auth headers."""

    def _headers(username: str, role: str) -> Dict[str, str]:
        user = register(username)["user"]
        response = client.put(
            f"/api/admin/users/{user['id']}/roles",
            json={"roles": [role]},
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text
        # Roles are read from the stored account, so the original token carries them
        login = client.post("/api/auth/login", json={"username": username, "password": DEFAULT_PASSWORD})
        return bearer(login.json()["accessToken"])

    return _headers


@pytest.fixture
def metric_value(client: TestClient) -> Callable[..., Optional[float]]:
    """Read one sample from /metrics by name and exact label set."""

    def _value(sample_name: str, **labels: str) -> Optional[float]:
        response = client.get("/metrics")
        assert response.status_code == 200, response.text
        for family in text_string_to_metric_families(response.text):
            for sample in family.samples:
                if sample.name == sample_name and sample.labels == labels:
                    return sample.value
        return None

    return _value
