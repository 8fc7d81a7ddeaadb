"""
Authentication service for user accounts and JWT token management.

Provides:
- Password hashing and verification (passlib + bcrypt)
- JWT access/refresh token creation and validation
- Registration, login, refresh and logout
- Bootstrap admin account creation
"""

import secrets
from datetime import timedelta
from typing import List, Optional, Set

import structlog
from jose import JWTError, jwt
from opentelemetry.sdk.trace import TracerProvider
from passlib.context import CryptContext
from pydantic import ValidationError

from practice_api.src.config import Settings, get_settings
from practice_api.src.models.auth import (
    CurrentUser,
    LoginRequest,
    RegisterRequest,
    Role,
    TokenPayload,
    TokenResponse,
    TokenType,
    UserRecord,
    UserResponse,
)
from practice_api.src.repositories.user_repo import DuplicateUserError, UserRepository
from shared.models import utc_now
from shared.tracing import TracingMixin, traced

logger = structlog.get_logger(__name__)


class AuthService(TracingMixin):
    """Service for authentication operations."""

    def __init__(
        self,
        user_repo: UserRepository,
        settings: Optional[Settings] = None,
        tracer_provider: Optional[TracerProvider] = None,
    ):
        """
        Initialize auth service.

        Args:
            user_repo: User repository
            settings: Application settings (defaults to the cached settings)
            tracer_provider: Provider for login spans (global provider when None)
        """
        self.user_repo = user_repo
        self.tracer_provider = tracer_provider
        self.settings = settings or get_settings()
        self._revoked: Set[str] = set()

        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=self.settings.password_bcrypt_rounds
        )

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(minutes=self.settings.jwt_access_token_expire_minutes)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return timedelta(days=self.settings.jwt_refresh_token_expire_days)

    def hash_password(self, password: str) -> str:
        """
        Hash a password using bcrypt.

        Args:
            password: Plain text password

        Returns:
            Hashed password
        """
        return self.pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """
        Verify a password against its hash.

        Returns:
            True if password matches, False otherwise (including malformed hashes)
        """
        try:
            return self.pwd_context.verify(plain_password, hashed_password)
        except ValueError as e:
            logger.error("password_verify_failed", error=str(e))
            return False

    # ========================================================================
    # Tokens
    # ========================================================================

    def _create_token(self, user: UserRecord, token_type: TokenType, expires_delta: timedelta) -> str:
        now = utc_now()
        payload = {
            "sub": user.id,
            "username": user.username,
            "roles": user.roles,
            "type": token_type.value,
            "jti": secrets.token_hex(8),
            "exp": int((now + expires_delta).timestamp()),
            "iat": int(now.timestamp()),
        }
        return jwt.encode(
            payload,
            self.settings.jwt_secret_key,
            algorithm=self.settings.jwt_algorithm
        )

    def create_access_token(self, user: UserRecord, expires_delta: Optional[timedelta] = None) -> str:
        """
        Create JWT access token.

        Args:
            user: Token subject
            expires_delta: Custom expiration time (optional)

        Returns:
            JWT token string
        """
        token = self._create_token(user, TokenType.ACCESS, expires_delta or self.access_token_ttl)
        logger.info(
            "access_token_created",
            user_id=user.id,
            username=user.username,
            expires_in=(expires_delta or self.access_token_ttl).total_seconds()
        )
        return token

    def create_refresh_token(self, user: UserRecord) -> str:
        return self._create_token(user, TokenType.REFRESH, self.refresh_token_ttl)

    def decode_token(self, token: str, expected_type: TokenType = TokenType.ACCESS) -> Optional[TokenPayload]:
        """
        Decode and validate JWT token.

        Args:
            token: JWT token string
            expected_type: Reject tokens of the other type

        Returns:
            Token payload or None if invalid, expired, revoked or of the wrong type
        """
        try:
            claims = jwt.decode(
                token,
                self.settings.jwt_secret_key,
                algorithms=[self.settings.jwt_algorithm]
            )
            payload = TokenPayload.model_validate(claims)
        except JWTError as e:
            logger.warning("token_decode_failed", error=str(e))
            return None
        except ValidationError as e:
            logger.warning("token_claims_invalid", error=str(e))
            return None

        if payload.type != expected_type:
            logger.warning("token_type_mismatch", expected=expected_type.value, actual=payload.type.value)
            return None
        if payload.jti and payload.jti in self._revoked:
            logger.warning("token_revoked", user_id=payload.sub)
            return None

        return payload

    def revoke_token(self, token: str) -> bool:
        """Revoke an access or refresh token. Returns False for undecodable tokens."""
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError:
            return False
        jti = claims.get("jti")
        if not jti:
            return False
        self._revoked.add(jti)
        return True

    def issue_tokens(self, user: UserRecord) -> TokenResponse:
        """Token pair plus the public user record."""
        return TokenResponse(
            access_token=self.create_access_token(user),
            refresh_token=self.create_refresh_token(user),
            token_type="bearer",
            expires_in=int(self.access_token_ttl.total_seconds()),
            user=UserResponse.from_record(user),
        )

    # ========================================================================
    # Account operations
    # ========================================================================

    async def register(self, request: RegisterRequest) -> TokenResponse:
        """
        Register a new account with the default ``user`` role.

        Raises:
            DuplicateUserError: If the username or email is taken
        """
        user = await self.user_repo.create_user(
            username=request.username,
            email=str(request.email),
            password_hash=self.hash_password(request.password),
            first_name=request.first_name,
            last_name=request.last_name,
            job_title=request.job_title,
        )
        logger.info("user_registered", user_id=user.id, username=user.username)
        return self.issue_tokens(user)

    @traced("auth.authenticate_user")
    async def authenticate_user(self, login_request: LoginRequest) -> Optional[UserRecord]:
        """
        Authenticate user with username or email and password.

        Returns:
            User if authenticated, None otherwise
        """
        identifier = login_request.identifier
        user = await self.user_repo.get_user_by_login(identifier)

        if not user:
            logger.warning("authentication_failed_user_not_found", identifier=identifier)
            return None

        if not user.is_active:
            logger.warning("authentication_failed_user_inactive", identifier=identifier)
            return None

        if not self.verify_password(login_request.password, user.password_hash):
            logger.warning("authentication_failed_invalid_password", identifier=identifier)
            return None

        logger.info("user_authenticated", user_id=user.id, username=user.username)
        return user

    async def login(self, login_request: LoginRequest) -> Optional[TokenResponse]:
        """
        Login user and create a token pair.

        Returns:
            Token response or None if authentication failed
        """
        user = await self.authenticate_user(login_request)
        if not user:
            return None

        user = await self.user_repo.record_login(user.id) or user
        logger.info("login_success", user_id=user.id, username=user.username)
        return self.issue_tokens(user)

    async def refresh(self, refresh_token: str) -> Optional[TokenResponse]:
        """Exchange a valid refresh token for a new pair."""
        payload = self.decode_token(refresh_token, expected_type=TokenType.REFRESH)
        if not payload:
            return None

        user = await self.user_repo.get_user_by_id(payload.sub)
        if not user or not user.is_active:
            logger.warning("token_refresh_failed_user_unavailable", user_id=payload.sub)
            return None

        self.revoke_token(refresh_token)
        logger.info("token_refreshed", user_id=user.id)
        return self.issue_tokens(user)

    async def get_current_user(self, token: str) -> Optional[CurrentUser]:
        """
        Get current user from an access token.

        Roles come from the stored account, so role changes apply to tokens
        already issued.

        Returns:
            Current user or None if invalid
        """
        payload = self.decode_token(token)
        if not payload:
            return None

        user = await self.user_repo.get_user_by_id(payload.sub)
        if not user:
            logger.warning("get_current_user_failed_user_not_found", user_id=payload.sub)
            return None

        if not user.is_active:
            logger.warning("get_current_user_failed_user_inactive", user_id=payload.sub)
            return None

        return CurrentUser(
            id=user.id,
            username=user.username,
            email=user.email,
            roles=user.roles,
            is_active=user.is_active
        )

    async def update_roles(self, user_id: str, roles: List[str]) -> Optional[UserRecord]:
        return await self.user_repo.update_user(user_id, roles=roles)

    async def ensure_bootstrap_admin(self) -> Optional[UserRecord]:
        """
        Create the configured admin account if it does not exist yet.

        Returns:
            The admin user, or None when no bootstrap account is configured
        """
        username = self.settings.bootstrap_admin_username
        password = self.settings.bootstrap_admin_password
        if not username or not password:
            return None

        existing = await self.user_repo.get_user_by_username(username)
        if existing:
            return existing

        try:
            admin = await self.user_repo.create_user(
                username=username,
                email=self.settings.bootstrap_admin_email,
                password_hash=self.hash_password(password),
                roles=[Role.ADMIN.value],
                first_name="System",
                last_name="Administrator",
            )
        except DuplicateUserError as e:
            logger.error("bootstrap_admin_failed", error=str(e))
            return None

        logger.info("bootstrap_admin_created", user_id=admin.id, username=username)
        return admin
