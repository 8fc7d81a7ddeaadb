"""
Contract tests for authentication API endpoints.

Tests verify the API contract for authentication endpoints:
- Request/response schemas (camelCase on the wire)
- Password and username rules
- Error response shapes
- The published OpenAPI document
"""

import pytest
from pydantic import ValidationError

from practice_api.src.models.auth import (
    ErrorResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    RoleUpdateRequest,
    TokenResponse,
    UserRecord,
    UserResponse,
)

VALID_REGISTRATION = {
    "username": "jdoe",
    "email": "jdoe@example.com",
    "password": "SecurePass123!",
}


def error_fields(exc_info) -> set:
    return {error["loc"][0] for error in exc_info.value.errors() if error["loc"]}


# ============================================================================
# REGISTRATION
# ============================================================================


class TestRegisterRequestContract:
    """Contract tests for POST /api/auth/register."""

    def test_minimal_registration(self):
        request = RegisterRequest(**VALID_REGISTRATION)

        assert request.username == "jdoe"
        assert request.first_name is None

    def test_profile_fields_use_camel_case(self):
        request = RegisterRequest.model_validate(
            {**VALID_REGISTRATION, "firstName": "Jane", "lastName": "Doe", "jobTitle": "Associate"}
        )

        assert (request.first_name, request.last_name, request.job_title) == ("Jane", "Doe", "Associate")

    @pytest.mark.parametrize("username", ["ab", "a" * 51, "john doe", "jane@doe"])
    def test_rejects_bad_usernames(self, username):
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(**{**VALID_REGISTRATION, "username": username})

        assert "username" in error_fields(exc_info)

    @pytest.mark.parametrize("username", ["john_doe", "jane-doe", "J0hn"])
    def test_accepts_allowed_username_characters(self, username):
        assert RegisterRequest(**{**VALID_REGISTRATION, "username": username}).username == username

    def test_rejects_invalid_email(self):
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(**{**VALID_REGISTRATION, "email": "not-an-email"})

        assert "email" in error_fields(exc_info)

    @pytest.mark.parametrize(
        "password, reason",
        [
            ("Sh0rt!", "at least 8 characters"),
            ("securepass123!", "uppercase"),
            ("SECUREPASS123!", "lowercase"),
            ("SecurePassword!", "digit"),
            ("SecurePass1234", "special character"),
        ],
    )
    def test_password_complexity(self, password, reason):
        with pytest.raises(ValidationError) as exc_info:
            RegisterRequest(**{**VALID_REGISTRATION, "password": password})

        assert "password" in error_fields(exc_info)
        assert reason in str(exc_info.value)


# ============================================================================
# LOGIN AND REFRESH
# ============================================================================


class TestLoginEndpointContract:
    """Contract tests for POST /api/auth/login and /api/auth/refresh."""

    def test_login_with_username(self):
        request = LoginRequest(username="admin", password="x")

        assert request.identifier == "admin"

    def test_login_with_email(self):
        request = LoginRequest(email="admin@example.com", password="x")

        assert request.identifier == "admin@example.com"

    def test_login_requires_an_identifier(self):
        with pytest.raises(ValidationError) as exc_info:
            LoginRequest(password="SecurePass123!")

        assert "username or email is required" in str(exc_info.value)

    def test_login_requires_password(self):
        with pytest.raises(ValidationError) as exc_info:
            LoginRequest(username="admin")

        assert "password" in error_fields(exc_info)

    def test_refresh_request_uses_camel_case(self):
        request = RefreshRequest.model_validate({"refreshToken": "r" * 20})

        assert request.refresh_token == "r" * 20

    def test_refresh_token_minimum_length(self):
        with pytest.raises(ValidationError):
            RefreshRequest(refresh_token="short")


# ============================================================================
# RESPONSES
# ============================================================================


class TestResponseContract:
    """Contract tests for token, user and error responses."""

    @pytest.fixture
    def user_response(self) -> UserResponse:
        record = UserRecord(
            id="a" * 24,
            username="jdoe",
            email="jdoe@example.com",
            password_hash="$2b$04$hash",
            first_name="Jane",
        )
        return UserResponse.from_record(record)

    def test_user_response_hides_password_hash(self, user_response):
        data = user_response.to_wire()

        assert "passwordHash" not in data
        assert "password_hash" not in data
        assert data["firstName"] == "Jane"
        assert data["isActive"] is True
        assert data["roles"] == ["user"]

    def test_token_response_wire_shape(self, user_response):
        response = TokenResponse(
            access_token="a" * 20,
            refresh_token="r" * 20,
            expires_in=3600,
            user=user_response,
        )

        assert set(response.to_wire()) == {"accessToken", "refreshToken", "tokenType", "expiresIn", "user"}
        assert response.token_type == "bearer"

    def test_token_response_rejects_non_positive_lifetime(self, user_response):
        with pytest.raises(ValidationError) as exc_info:
            TokenResponse(access_token="a" * 20, refresh_token="r" * 20, expires_in=0, user=user_response)

        assert "expires_in" in error_fields(exc_info) or "expiresIn" in error_fields(exc_info)

    def test_error_response_requires_detail(self):
        assert ErrorResponse(detail="Invalid credentials").detail == "Invalid credentials"
        with pytest.raises(ValidationError):
            ErrorResponse(detail="")

    def test_role_update_rejects_unknown_roles(self):
        assert RoleUpdateRequest(roles=["attorney", "paralegal"]).roles == ["attorney", "paralegal"]
        with pytest.raises(ValidationError) as exc_info:
            RoleUpdateRequest(roles=["superuser"])

        assert "Invalid role: superuser" in str(exc_info.value)

    def test_role_update_requires_a_role(self):
        with pytest.raises(ValidationError):
            RoleUpdateRequest(roles=[])


# ============================================================================
# OPENAPI DOCUMENT
# ============================================================================


class TestOpenAPIContract:
    """The published schema lists the authentication endpoints."""

    @pytest.fixture
    def openapi(self, app):
        return app.openapi()

    @pytest.mark.parametrize(
        "path, method",
        [
            ("/api/auth/register", "post"),
            ("/api/auth/login", "post"),
            ("/api/auth/refresh", "post"),
            ("/api/auth/logout", "post"),
            ("/api/auth/me", "get"),
            ("/api/admin/users", "get"),
            ("/api/admin/users/{user_id}/roles", "put"),
        ],
    )
    def test_endpoint_is_documented(self, openapi, path, method):
        assert method in openapi["paths"][path]

    def test_register_documents_201_and_400(self, openapi):
        responses = openapi["paths"]["/api/auth/register"]["post"]["responses"]

        assert {"201", "400", "422"} <= set(responses)

    def test_token_response_schema_is_camel_case(self, openapi):
        properties = openapi["components"]["schemas"]["TokenResponse"]["properties"]

        assert {"accessToken", "refreshToken", "tokenType", "expiresIn", "user"} <= set(properties)
