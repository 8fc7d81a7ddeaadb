"""
FastAPI dependency injection for services, authentication and request context.

Provides injectable dependencies for:
- The application state container (repositories, services, metrics)
- User authentication (JWT bearer token validation)
- List query parameters

All dependencies use FastAPI's dependency injection system and read shared
objects from ``request.app.state.services``, so tests can build isolated
applications.
"""

from dataclasses import dataclass
from typing import Optional

import structlog
from fastapi import Depends, HTTPException, Query, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from opentelemetry.sdk.trace import TracerProvider

from practice_api.src.config import Settings
from practice_api.src.models.auth import CurrentUser, Role
from practice_api.src.repositories.audit_repo import AuditRepository
from practice_api.src.repositories.compliance_repo import ComplianceRepository
from practice_api.src.repositories.feature_repo import FeatureRepositoryRegistry
from practice_api.src.repositories.user_repo import UserRepository
from practice_api.src.services.auth_service import AuthService
from practice_api.src.services.compliance_service import ComplianceService
from shared.metrics import ApiMetrics
from shared.models import MAX_PAGE_SIZE, ItemStatus, ListParams

logger = structlog.get_logger(__name__)

# HTTP Bearer token scheme
security = HTTPBearer(auto_error=False)


# ============================================================================
# APPLICATION STATE
# ============================================================================


@dataclass
class AppState:
    """Application state container for shared resources."""

    settings: Settings
    user_repo: UserRepository
    audit_repo: AuditRepository
    auth_service: AuthService
    feature_registry: FeatureRepositoryRegistry
    compliance_repo: ComplianceRepository
    compliance_service: ComplianceService
    metrics: ApiMetrics
    tracer_provider: Optional[TracerProvider] = None

    @classmethod
    def build(cls, settings: Settings, tracer_provider: Optional[TracerProvider] = None) -> "AppState":
        """Wire in-memory repositories and services from settings."""
        user_repo = UserRepository()
        audit_repo = AuditRepository(max_entries=settings.audit_max_entries)
        compliance_repo = ComplianceRepository()
        metrics = ApiMetrics()
        return cls(
            settings=settings,
            user_repo=user_repo,
            audit_repo=audit_repo,
            auth_service=AuthService(user_repo, settings=settings, tracer_provider=tracer_provider),
            feature_registry=FeatureRepositoryRegistry.in_memory(
                delay_range=(settings.mock_delay_min_seconds, settings.mock_delay_max_seconds),
                seed=settings.mock_seed_items,
            ),
            compliance_repo=compliance_repo,
            compliance_service=ComplianceService(
                compliance_repo, audit_repo, metrics, tracer_provider=tracer_provider
            ),
            metrics=metrics,
            tracer_provider=tracer_provider,
        )


def get_app_state(request: Request) -> AppState:
    return request.app.state.services


def get_settings_dependency(state: AppState = Depends(get_app_state)) -> Settings:
    return state.settings


def get_auth_service(state: AppState = Depends(get_app_state)) -> AuthService:
    return state.auth_service


def get_user_repository(state: AppState = Depends(get_app_state)) -> UserRepository:
    return state.user_repo


def get_audit_repository(state: AppState = Depends(get_app_state)) -> AuditRepository:
    return state.audit_repo


def get_feature_registry(state: AppState = Depends(get_app_state)) -> FeatureRepositoryRegistry:
    return state.feature_registry


def get_compliance_service(state: AppState = Depends(get_app_state)) -> ComplianceService:
    return state.compliance_service


def get_metrics(state: AppState = Depends(get_app_state)) -> ApiMetrics:
    return state.metrics


# ============================================================================
# AUTHENTICATION DEPENDENCIES
# ============================================================================


async def get_token_from_header(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """
    Extract JWT token from Authorization header.

    Args:
        credentials: HTTP bearer credentials

    Returns:
        JWT token string

    Raises:
        HTTPException: If token is missing or invalid format
    """
    if not credentials:
        logger.warning("auth_missing_credentials")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication credentials",
            headers={"WWW-Authenticate": "Bearer"}
        )

    return credentials.credentials


async def get_current_user(
    request: Request,
    token: str = Depends(get_token_from_header),
    auth_service: AuthService = Depends(get_auth_service)
) -> CurrentUser:
    """
    Get current authenticated user from JWT token.

    Validates the token and loads the account it names. The user is also
    stored on ``request.state.user`` for logging and auditing.

    Raises:
        HTTPException: 401 if the token is invalid or the account is gone

    Example:
        @router.get("/me")
        async def me(user: CurrentUser = Depends(get_current_user)):
            return {"username": user.username, "roles": user.roles}
    """
    current_user = await auth_service.get_current_user(token)

    if not current_user:
        logger.warning("auth_invalid_token", path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    request.state.user = current_user
    logger.debug(
        "user_authenticated",
        user_id=current_user.id,
        username=current_user.username,
        roles=current_user.roles
    )
    return current_user


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[CurrentUser]:
    """
    Get current user if a valid token is supplied, None otherwise.

    Never raises; invalid tokens are treated as anonymous.
    """
    if not credentials:
        return None

    current_user = await auth_service.get_current_user(credentials.credentials)
    if current_user:
        request.state.user = current_user
    return current_user


async def require_admin(
    current_user: CurrentUser = Depends(get_current_user)
) -> CurrentUser:
    """
    Require admin role.

    Raises:
        HTTPException: 403 if user is not admin
    """
    if not current_user.has_role(Role.ADMIN):
        logger.warning(
            "admin_required",
            user_id=current_user.id,
            username=current_user.username,
            roles=current_user.roles
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required"
        )

    return current_user


# ============================================================================
# LIST PARAMETERS
# ============================================================================


async def get_list_params(
    search_term: Optional[str] = Query(None, alias="searchTerm", max_length=200),
    item_status: Optional[ItemStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    settings: Settings = Depends(get_settings_dependency),
) -> ListParams:
    """
    List filters from the query string.

    ``limit`` defaults to ``pagination_default_limit`` and is clamped to
    ``pagination_max_limit``, and never exceeds ``MAX_PAGE_SIZE``.

    Example:
        @router.get("")
        async def list_items(params: ListParams = Depends(get_list_params)):
            return await repository.list_items(params)
    """
    if limit is None:
        limit = settings.pagination_default_limit
    limit = min(limit, settings.pagination_max_limit, MAX_PAGE_SIZE)

    return ListParams(
        search_term=search_term or None,
        status=item_status,
        page=page,
        limit=limit,
    )
