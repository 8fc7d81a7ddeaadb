"""
Authentication and user administration routers.

Provides REST API endpoints for:
- Registration, login, token refresh, logout and the current user
- User listing and role management (admin only)

Every authentication outcome is written to the audit trail.
"""

from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from practice_api.src.dependencies import (
    AppState,
    get_app_state,
    get_current_user,
    get_token_from_header,
    require_admin,
)
from practice_api.src.middleware.audit import request_audit_context
from practice_api.src.models.audit import ActionCategory, AuditAction, AuditLogType, AuditSeverity
from practice_api.src.models.auth import (
    CurrentUser,
    ErrorResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    RoleUpdateRequest,
    TokenResponse,
    UserResponse,
)
from practice_api.src.repositories.user_repo import DuplicateUserError

logger = structlog.get_logger(__name__)

# Create router for authentication endpoints
auth_router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        422: {"model": ErrorResponse, "description": "Validation Error"}
    }
)

# Create router for admin endpoints
admin_router = APIRouter(
    prefix="/admin",
    tags=["User Management"],
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Forbidden"},
        404: {"model": ErrorResponse, "description": "Not Found"},
    }
)


# ============================================================================
# AUTHENTICATION ENDPOINTS
# ============================================================================


@auth_router.post(
    "/register",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="""
    Create an account with the ``user`` role and return a token pair.

    **Authentication:** Not required (public endpoint)

    **Error Responses:**
    - 400: Username or email already registered
    - 422: Validation error (password complexity, email format, ...)
    """,
    responses={400: {"model": ErrorResponse, "description": "Duplicate user"}}
)
async def register(
    request: Request,
    register_request: RegisterRequest,
    state: AppState = Depends(get_app_state),
) -> TokenResponse:
    try:
        token_response = await state.auth_service.register(register_request)
    except DuplicateUserError as e:
        state.metrics.auth_events.labels(event="register", outcome="failure").inc()
        logger.warning("registration_failed", field=e.field)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    user = token_response.user
    state.metrics.auth_events.labels(event="register", outcome="success").inc()
    state.metrics.registered_users.set(await state.user_repo.count_users())

    if state.settings.audit_enabled:
        context = request_audit_context(request)
        context.update(user_id=user.id, username=user.username)
        await state.audit_repo.create_audit_log(
            action=AuditAction.USER_REGISTER,
            event_type="User Registered",
            log_type=AuditLogType.AUTHENTICATION,
            action_category=ActionCategory.CREATE,
            description=f"Registered account {user.username}",
            resource_type="User",
            resource_id=user.id,
            status_code=status.HTTP_201_CREATED,
            **context,
        )

    return token_response


@auth_router.post(
    "/login",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
    summary="User Login",
    description="""
    Authenticate with username (or email) and password.

    **Authentication:** Not required (public endpoint)

    **Success Response (200):**
    - accessToken / refreshToken: JWTs
    - tokenType: "bearer"
    - expiresIn: access token lifetime in seconds
    - user: the authenticated account

    **Error Responses:**
    - 401: Invalid credentials or inactive user
    - 422: Validation error (invalid request format)
    """,
    responses={
        401: {
            "description": "Invalid credentials",
            "model": ErrorResponse,
            "content": {
                "application/json": {
                    "example": {"detail": "Invalid credentials"}
                }
            }
        }
    }
)
async def login(
    request: Request,
    login_request: LoginRequest,
    state: AppState = Depends(get_app_state),
) -> TokenResponse:
    """
    Authenticate user and return a token pair.

    Raises:
        HTTPException: 401 if authentication fails
    """
    context = request_audit_context(request)
    logger.info("login_attempt", identifier=login_request.identifier, ip_address=context["ip_address"])

    token_response = await state.auth_service.login(login_request)

    if not token_response:
        state.metrics.auth_events.labels(event="login", outcome="failure").inc()
        if state.settings.audit_enabled:
            context["username"] = login_request.identifier
            await state.audit_repo.log_security_event(
                action=AuditAction.LOGIN_FAILURE,
                event_type="Login Failed",
                action_category=ActionCategory.LOGIN,
                description="Invalid credentials",
                resource_type="User",
                details={"reason": "invalid_credentials"},
                severity=AuditSeverity.MEDIUM,
                status_code=status.HTTP_401_UNAUTHORIZED,
                **context,
            )

        logger.warning("login_failed", identifier=login_request.identifier, ip_address=context["ip_address"])
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"}
        )

    user = token_response.user
    state.metrics.auth_events.labels(event="login", outcome="success").inc()
    if state.settings.audit_enabled:
        context.update(user_id=user.id, username=user.username)
        await state.audit_repo.create_audit_log(
            action=AuditAction.LOGIN_SUCCESS,
            event_type="Login",
            log_type=AuditLogType.AUTHENTICATION,
            action_category=ActionCategory.LOGIN,
            description=f"{user.username} logged in",
            resource_type="User",
            resource_id=user.id,
            status_code=status.HTTP_200_OK,
            **context,
        )

    logger.info("login_success", username=user.username, ip_address=context["ip_address"])
    return token_response


@auth_router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Refresh Tokens",
    description="Exchange a refresh token for a new token pair. The old refresh token is revoked.",
)
async def refresh(
    request: Request,
    refresh_request: RefreshRequest,
    state: AppState = Depends(get_app_state),
) -> TokenResponse:
    token_response = await state.auth_service.refresh(refresh_request.refresh_token)
    if not token_response:
        state.metrics.auth_events.labels(event="refresh", outcome="failure").inc()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
            headers={"WWW-Authenticate": "Bearer"}
        )

    user = token_response.user
    state.metrics.auth_events.labels(event="refresh", outcome="success").inc()
    if state.settings.audit_enabled:
        context = request_audit_context(request)
        context.update(user_id=user.id, username=user.username)
        await state.audit_repo.create_audit_log(
            action=AuditAction.TOKEN_REFRESH,
            event_type="Token Refreshed",
            log_type=AuditLogType.AUTHENTICATION,
            action_category=ActionCategory.OTHER,
            resource_type="User",
            resource_id=user.id,
            **context,
        )
    return token_response


@auth_router.get(
    "/me",
    response_model=UserResponse,
    summary="Current User",
)
async def me(
    current_user: CurrentUser = Depends(get_current_user),
    state: AppState = Depends(get_app_state),
) -> UserResponse:
    record = await state.user_repo.get_user_by_id(current_user.id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.from_record(record)


@auth_router.post(
    "/logout",
    summary="Logout",
    description="""
    Revoke the access token of the request and, when supplied, the refresh token.

    **Authentication:** Required
    """,
)
async def logout(
    request: Request,
    refresh_request: Optional[RefreshRequest] = None,
    token: str = Depends(get_token_from_header),
    current_user: CurrentUser = Depends(get_current_user),
    state: AppState = Depends(get_app_state),
) -> dict:
    state.auth_service.revoke_token(token)
    if refresh_request is not None:
        state.auth_service.revoke_token(refresh_request.refresh_token)

    state.metrics.auth_events.labels(event="logout", outcome="success").inc()
    if state.settings.audit_enabled:
        await state.audit_repo.create_audit_log(
            action=AuditAction.LOGOUT,
            event_type="Logout",
            log_type=AuditLogType.AUTHENTICATION,
            action_category=ActionCategory.LOGOUT,
            description=f"{current_user.username} logged out",
            resource_type="User",
            resource_id=current_user.id,
            **request_audit_context(request, current_user),
        )

    logger.info("logout_success", user_id=current_user.id)
    return {"success": True, "message": "Logged out successfully"}


# ============================================================================
# USER ADMINISTRATION ENDPOINTS
# ============================================================================


@admin_router.get(
    "/users",
    response_model=List[UserResponse],
    summary="List Users",
    description="""
    List every account, oldest first.

    **Authentication:** Required (admin role)

    **Query Parameters:**
    - isActive: Filter by active status (optional)
    """,
)
async def list_users(
    is_active: Optional[bool] = Query(None, alias="isActive"),
    admin: CurrentUser = Depends(require_admin),
    state: AppState = Depends(get_app_state),
) -> List[UserResponse]:
    users = await state.user_repo.list_users()
    if is_active is not None:
        users = [user for user in users if user.is_active == is_active]

    logger.info("user_list_success", count=len(users), admin_username=admin.username)
    return [UserResponse.from_record(user) for user in users]


@admin_router.put(
    "/users/{user_id}/roles",
    response_model=UserResponse,
    summary="Update User Roles",
    description="""
    Replace the roles of an account. Takes effect on tokens already issued.

    **Authentication:** Required (admin role)

    **Error Responses:**
    - 404: User not found
    - 422: Unknown role name
    """,
)
async def update_user_roles(
    user_id: str,
    role_update: RoleUpdateRequest,
    request: Request,
    admin: CurrentUser = Depends(require_admin),
    state: AppState = Depends(get_app_state),
) -> UserResponse:
    existing = await state.user_repo.get_user_by_id(user_id)
    if existing is None:
        logger.warning("user_not_found", user_id=user_id, admin_username=admin.username)
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    updated = await state.auth_service.update_roles(user_id, role_update.roles)

    if state.settings.audit_enabled:
        await state.audit_repo.create_audit_log(
            action=AuditAction.USER_ROLE_UPDATE,
            event_type="User Roles Updated",
            log_type=AuditLogType.AUTHORIZATION,
            action_category=ActionCategory.UPDATE,
            description=f"Roles of {existing.username} set to {', '.join(role_update.roles)}",
            resource_type="User",
            resource_id=user_id,
            details={"old_roles": existing.roles, "new_roles": role_update.roles},
            severity=AuditSeverity.MEDIUM,
            **request_audit_context(request, admin),
        )

    logger.info(
        "user_roles_updated",
        user_id=user_id,
        roles=role_update.roles,
        admin_username=admin.username
    )
    return UserResponse.from_record(updated)
