"""
Role-Based Access Control (RBAC) for feature routes.

Provides:
- The declarative role policy table (role -> feature categories, actions)
- Policy queries (can a set of roles perform an action on a feature?)
- FeatureGuard, the single route guard used by every feature router
- Audit logging integration for access denials
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Set

import structlog
from fastapi import Depends, HTTPException, Request, status

from practice_api.src.dependencies import AppState, get_app_state, get_optional_user
from practice_api.src.features.catalog import FEATURE_CATALOG, FeatureCategory, FeatureDefinition
from practice_api.src.features.routes import FeatureAction
from practice_api.src.middleware.audit import request_audit_context
from practice_api.src.models.audit import AuditAction
from practice_api.src.models.auth import CurrentUser, Role

logger = structlog.get_logger(__name__)


# ============================================================================
# ROLE POLICY
# ============================================================================


@dataclass(frozen=True)
class RolePolicy:
    """
    What one role may do.

    Attributes:
        categories: Feature categories the role can reach (None for all)
        actions: Actions allowed inside those categories
    """

    categories: Optional[FrozenSet[FeatureCategory]]
    actions: FrozenSet[FeatureAction]

    def allows(self, feature: FeatureDefinition, action: FeatureAction) -> bool:
        if self.categories is not None and feature.category not in self.categories:
            return False
        return action in self.actions


_ALL_ACTIONS = frozenset(FeatureAction)

ROLE_POLICY: Dict[Role, RolePolicy] = {
    Role.ADMIN: RolePolicy(categories=None, actions=_ALL_ACTIONS),
    Role.ATTORNEY: RolePolicy(categories=None, actions=_ALL_ACTIONS),
    Role.PARALEGAL: RolePolicy(
        categories=frozenset({
            FeatureCategory.MANAGEMENT,
            FeatureCategory.LEGAL,
            FeatureCategory.COMPLIANCE,
        }),
        actions=frozenset({FeatureAction.READ, FeatureAction.CREATE, FeatureAction.UPDATE}),
    ),
    Role.USER: RolePolicy(
        categories=None,
        actions=frozenset({FeatureAction.READ, FeatureAction.CREATE}),
    ),
}


def _policies(roles: Iterable[str]) -> List[RolePolicy]:
    # Unknown role names grant nothing
    valid = {role.value: role for role in Role}
    return [ROLE_POLICY[valid[name]] for name in roles if name in valid]


def can_access_feature(
    roles: Iterable[str],
    feature: FeatureDefinition,
    action: FeatureAction = FeatureAction.READ,
) -> bool:
    """
    Check whether any of the roles allows the action on the feature.

    Example:
        >>> can_access_feature(["paralegal"], get_feature("tax-law"))
        False
    """
    return any(policy.allows(feature, action) for policy in _policies(roles))


def allowed_actions(roles: Iterable[str], feature: FeatureDefinition) -> Set[FeatureAction]:
    """Actions the roles grant on one feature."""
    policies = _policies(roles)
    return {
        action for action in FeatureAction
        if any(policy.allows(feature, action) for policy in policies)
    }


def allowed_features(roles: Iterable[str]) -> List[FeatureDefinition]:
    """Catalog entries the roles can at least read."""
    return [feature for feature in FEATURE_CATALOG if can_access_feature(roles, feature)]


# ============================================================================
# ROUTE GUARD
# ============================================================================


class FeatureGuard:
    """
    Dependency protecting one feature route.

    Returns the authenticated user when the policy allows the action;
    otherwise raises 401 (no valid token) or 403 (no role allows it). Both
    denials are logged and written to the audit trail.

    Example:
        @router.delete("/{item_id}")
        async def delete_item(
            item_id: str,
            user: CurrentUser = Depends(FeatureGuard(feature, FeatureAction.DELETE)),
        ):
            ...
    """

    def __init__(self, feature: FeatureDefinition, action: FeatureAction):
        self.feature = feature
        self.action = action

    async def __call__(
        self,
        request: Request,
        user: Optional[CurrentUser] = Depends(get_optional_user),
        state: AppState = Depends(get_app_state),
    ) -> CurrentUser:
        if user is None:
            logger.warning(
                "rbac_user_not_authenticated",
                path=request.url.path,
                feature=self.feature.slug,
                action=self.action.value,
            )
            await self._audit_denial(
                request, state, None, AuditAction.UNAUTHORIZED_ACCESS, status.HTTP_401_UNAUTHORIZED
            )
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated",
                headers={"WWW-Authenticate": "Bearer"},
            )

        if not can_access_feature(user.roles, self.feature, self.action):
            logger.warning(
                "rbac_permission_denied",
                path=request.url.path,
                user_id=user.id,
                username=user.username,
                roles=user.roles,
                feature=self.feature.slug,
                action=self.action.value,
            )
            state.metrics.access_denied.labels(feature=self.feature.slug, action=self.action.value).inc()
            await self._audit_denial(
                request, state, user, AuditAction.PERMISSION_DENIED, status.HTTP_403_FORBIDDEN
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: {self.action.value} on {self.feature.slug} not allowed",
            )

        logger.debug(
            "rbac_permission_granted",
            user_id=user.id,
            feature=self.feature.slug,
            action=self.action.value,
        )
        return user

    async def _audit_denial(
        self,
        request: Request,
        state: AppState,
        user: Optional[CurrentUser],
        action: AuditAction,
        status_code: int,
    ) -> None:
        if not state.settings.audit_enabled:
            return
        event = "Unauthorized Access" if user is None else "Permission Denied"
        await state.audit_repo.log_security_event(
            action=action,
            event_type=event,
            description=f"{event}: {self.action.value} {self.feature.slug}",
            resource_type=self.feature.slug,
            details={"path": request.url.path, "method": request.method},
            status_code=status_code,
            **request_audit_context(request, user),
        )
