"""
Authentication and user management models.

Provides Pydantic schemas for:
- User records (in-memory storage) and API representations
- Registration and login requests
- JWT tokens and payloads
- Roles

Request and response bodies use camelCase on the wire.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
import re

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from shared.models import CamelModel, utc_now


# ============================================================================
# Role Enum
# ============================================================================


class Role(str, Enum):
    """
    User roles.

    - ADMIN: every feature, every action
    - ATTORNEY: every feature; create, read, update, delete
    - PARALEGAL: management, legal and compliance features; no deletes
    - USER: read and create on every feature (default for self-registration)
    """
    ADMIN = "admin"
    ATTORNEY = "attorney"
    PARALEGAL = "paralegal"
    USER = "user"


_SPECIAL_CHARS = r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>\/?]"


def validate_password_complexity(v: str) -> str:
    """
    Validate password complexity.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character
    """
    if len(v) < 8:
        raise ValueError("Password must be at least 8 characters long")

    if not re.search(r"[A-Z]", v):
        raise ValueError("Password must contain at least one uppercase letter")

    if not re.search(r"[a-z]", v):
        raise ValueError("Password must contain at least one lowercase letter")

    if not re.search(r"\d", v):
        raise ValueError("Password must contain at least one digit")

    if not re.search(_SPECIAL_CHARS, v):
        raise ValueError("Password must contain at least one special character")

    return v


# ============================================================================
# Stored Records
# ============================================================================


class UserRecord(BaseModel):
    """User as kept by the user repository (never returned over HTTP)."""
    id: str
    username: str
    email: str
    password_hash: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    job_title: Optional[str] = None
    roles: List[str] = Field(default_factory=lambda: [Role.USER.value])
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


# ============================================================================
# Request Models
# ============================================================================


class RegisterRequest(CamelModel):
    """Self-registration request."""
    username: str = Field(
        ...,
        min_length=3,
        max_length=50,
        description="Username (alphanumeric, underscore, hyphen)"
    )
    email: EmailStr = Field(
        ...,
        description="Email address"
    )
    password: str = Field(
        ...,
        min_length=8,
        max_length=128,
        description="Password (minimum 8 characters)"
    )
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    job_title: Optional[str] = Field(None, max_length=100)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        """Validate username format."""
        if not re.match(r"^[a-zA-Z0-9_-]+$", v):
            raise ValueError(
                "Username must contain only letters, numbers, hyphens, and underscores"
            )
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return validate_password_complexity(v)

    model_config = {
        "json_schema_extra": {
            "example": {
                "username": "jdoe",
                "email": "jdoe@example.com",
                "password": "SecurePassword123!",
                "firstName": "Jane",
                "lastName": "Doe",
                "jobTitle": "Associate"
            }
        }
    }


class LoginRequest(CamelModel):
    """Login request; either username or email identifies the account."""
    username: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[str] = Field(None, min_length=3, max_length=254)
    password: str = Field(..., min_length=1, max_length=128)

    @model_validator(mode="after")
    def require_identifier(self) -> "LoginRequest":
        if not self.username and not self.email:
            raise ValueError("username or email is required")
        return self

    @property
    def identifier(self) -> str:
        return self.username or self.email


class RefreshRequest(CamelModel):
    """Exchange a refresh token for a new token pair."""
    refresh_token: str = Field(..., min_length=10)


class RoleUpdateRequest(CamelModel):
    """Replace the roles of a user (admin only)."""
    roles: List[str] = Field(..., min_length=1)

    @field_validator("roles")
    @classmethod
    def validate_roles(cls, v: List[str]) -> List[str]:
        """Validate roles are valid."""
        valid_roles = {role.value for role in Role}
        for role in v:
            if role not in valid_roles:
                raise ValueError(
                    f"Invalid role: {role}. Must be one of {sorted(valid_roles)}"
                )
        return v


# ============================================================================
# Response Models
# ============================================================================


class UserResponse(CamelModel):
    """User information response schema."""
    id: str
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    job_title: Optional[str] = None
    roles: List[str]
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: UserRecord) -> "UserResponse":
        return cls.model_validate(record.model_dump(exclude={"password_hash", "updated_at"}))


class TokenResponse(CamelModel):
    """Token pair returned by login, registration and refresh."""
    access_token: str = Field(..., min_length=10)
    refresh_token: str = Field(..., min_length=10)
    token_type: str = Field(default="bearer")
    expires_in: int = Field(..., gt=0, description="Access token lifetime in seconds")
    user: UserResponse


class ErrorResponse(BaseModel):
    """Error response schema."""
    detail: str = Field(
        ...,
        min_length=1,
        description="Error message"
    )


# ============================================================================
# Token Models
# ============================================================================


class TokenType(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenPayload(BaseModel):
    """Decoded JWT claims."""
    sub: str = Field(..., description="Subject (user ID)")
    username: str
    roles: List[str] = Field(default_factory=list)
    type: TokenType = TokenType.ACCESS
    jti: Optional[str] = Field(None, description="Token ID, used for revocation")
    exp: int = Field(..., description="Expiration timestamp (Unix epoch)")
    iat: int = Field(..., description="Issued at timestamp (Unix epoch)")


class CurrentUser(BaseModel):
    """
    Current authenticated user model.

    Injected into request handlers by the authentication dependencies.
    """
    id: str
    username: str
    email: str
    roles: List[str]
    is_active: bool

    def has_role(self, role: Role) -> bool:
        return role.value in self.roles

    def has_any_role(self, roles: List[Role]) -> bool:
        return any(role.value in self.roles for role in roles)

    def is_admin(self) -> bool:
        return self.has_role(Role.ADMIN)
