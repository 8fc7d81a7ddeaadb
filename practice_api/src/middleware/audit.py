"""
Audit helpers shared by the routers and the application.

Provides:
- Request context for audit entries (client IP, user agent, correlation ID)
- Sensitive data masking for payloads copied into audit details
- Security event logging for rate limit rejections
"""

from typing import Any, Dict, Optional, Set

import structlog
from fastapi import Request

from practice_api.src.models.audit import AuditAction
from practice_api.src.models.auth import CurrentUser
from practice_api.src.repositories.audit_repo import AuditRepository

logger = structlog.get_logger(__name__)

# Fields never copied into audit details
SENSITIVE_FIELDS: Set[str] = {
    "password",
    "passwordhash",
    "password_hash",
    "secret",
    "token",
    "accesstoken",
    "access_token",
    "refreshtoken",
    "refresh_token",
    "authorization",
    "ssn",
}

MASK = "***MASKED***"


def mask_sensitive_data(data: Any) -> Any:
    """
    Recursively mask sensitive fields.

    Args:
        data: Data to mask (dict, list, or primitive)

    Returns:
        Copy of the data with sensitive values replaced
    """
    if isinstance(data, dict):
        return {
            key: MASK if key.lower() in SENSITIVE_FIELDS else mask_sensitive_data(value)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [mask_sensitive_data(item) for item in data]
    return data


def client_ip(request: Request) -> Optional[str]:
    """Client address, honouring X-Forwarded-For and X-Real-IP."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    if request.client:
        return request.client.host
    return None


def request_audit_context(request: Request, user: Optional[CurrentUser] = None) -> Dict[str, Any]:
    """
    Audit entry fields describing who sent a request.

    Example:
        await audit_repo.create_audit_log(
            action=AuditAction.ITEM_DELETE,
            event_type="Item Deleted",
            **request_audit_context(request, user),
        )
    """
    user = user or getattr(request.state, "user", None)
    return {
        "user_id": user.id if user else None,
        "username": user.username if user else None,
        "ip_address": client_ip(request),
        "user_agent": request.headers.get("User-Agent"),
        "correlation_id": getattr(request.state, "correlation_id", None),
    }


async def log_rate_limit_exceeded(
    audit_repo: AuditRepository,
    request: Request,
    limit: Optional[str] = None,
) -> None:
    """
    Log a rate limit rejection as a security event.

    Args:
        audit_repo: Audit repository
        request: Rejected request
        limit: The limit that was exceeded, in slowapi syntax
    """
    await audit_repo.log_security_event(
        action=AuditAction.RATE_LIMIT_EXCEEDED,
        event_type="Rate Limit Exceeded",
        description=f"Rate limit exceeded on {request.url.path}",
        details={"method": request.method, "path": request.url.path, "limit": limit},
        status_code=429,
        **request_audit_context(request),
    )
    logger.warning("rate_limit_exceeded", path=request.url.path, limit=limit)
