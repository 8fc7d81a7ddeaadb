"""FastAPI request guards and audit helpers.

This package contains the role policy and the per-feature permission
guard, plus the helpers that attach request metadata to audit entries.
"""

from practice_api.src.middleware.audit import (
    SENSITIVE_FIELDS,
    client_ip,
    log_rate_limit_exceeded,
    mask_sensitive_data,
    request_audit_context,
)
from practice_api.src.middleware.rbac import (
    ROLE_POLICY,
    FeatureGuard,
    RolePolicy,
    allowed_actions,
    allowed_features,
    can_access_feature,
)

__all__ = [
    # Audit helpers
    "SENSITIVE_FIELDS",
    "client_ip",
    "log_rate_limit_exceeded",
    "mask_sensitive_data",
    "request_audit_context",
    # Role policy
    "ROLE_POLICY",
    "FeatureGuard",
    "RolePolicy",
    "allowed_actions",
    "allowed_features",
    "can_access_feature",
]
