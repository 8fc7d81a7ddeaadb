"""
Feature routers.

One router is generated per catalog entry from the shared route template:

- ``GET    /<feature>``                 list (read)
- ``POST   /<feature>``, ``/create``    create
- ``GET    /<feature>/<sub-resource>``  read-only collections (read)
- ``GET    /<feature>/{id}``            detail (read)
- ``PUT|PATCH /<feature>/{id}``, ``PUT /{id}/edit``  update
- ``GET    /<feature>/{id}/history``      audit entries of one record (read)
- ``DELETE /<feature>/{id}``            delete

Every route is protected by a FeatureGuard for its action. Writes are
counted and written to the audit trail.
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, status

from practice_api.src.dependencies import (
    AppState,
    get_app_state,
    get_list_params,
    get_optional_user,
)
from practice_api.src.features.catalog import (
    FEATURE_CATALOG,
    FeatureDefinition,
    UnknownFeatureError,
    get_feature,
)
from practice_api.src.features.routes import FeatureAction, page_routes
from practice_api.src.middleware.audit import mask_sensitive_data, request_audit_context
from practice_api.src.middleware.rbac import FeatureGuard, allowed_actions, allowed_features
from practice_api.src.models.audit import ActionCategory, AuditAction, AuditLogType
from practice_api.src.models.auth import CurrentUser, ErrorResponse
from practice_api.src.repositories.feature_repo import ItemNotFoundError
from shared.models import FeatureItem, FeatureItemCreate, FeatureItemUpdate, ItemPage, ListParams

logger = structlog.get_logger(__name__)

ANALYTICS = "analytics"

_AUDIT_EVENTS = {
    AuditAction.ITEM_CREATE: ("Record Created", ActionCategory.CREATE),
    AuditAction.ITEM_UPDATE: ("Record Updated", ActionCategory.UPDATE),
    AuditAction.ITEM_DELETE: ("Record Deleted", ActionCategory.DELETE),
}


async def _record_write(
    state: AppState,
    request: Request,
    user: CurrentUser,
    feature: FeatureDefinition,
    action: AuditAction,
    item_id: str,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    event_type, category = _AUDIT_EVENTS[action]
    state.metrics.feature_operations.labels(feature=feature.slug, operation=category.value.lower()).inc()
    if not state.settings.audit_enabled:
        return
    await state.audit_repo.create_audit_log(
        action=action,
        event_type=event_type,
        log_type=AuditLogType.DATA_MODIFICATION,
        action_category=category,
        description=f"{event_type}: {feature.name}",
        resource_type=feature.slug,
        resource_id=item_id,
        details=mask_sensitive_data(details) if details else None,
        **request_audit_context(request, user),
    )


def _not_found(error: ItemNotFoundError) -> HTTPException:
    logger.warning("feature_item_not_found", feature=error.feature_slug, item_id=error.item_id)
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(error))


def build_feature_router(feature: FeatureDefinition) -> APIRouter:
    """
    Create the router of one feature.

    Args:
        feature: Catalog entry; mounted at its endpoint below the API prefix

    Returns:
        Router to include with ``prefix=settings.api_prefix``
    """
    router = APIRouter(
        prefix=feature.api_path,
        tags=[feature.name],
        responses={
            401: {"model": ErrorResponse, "description": "Not authenticated"},
            403: {"model": ErrorResponse, "description": "Permission denied"},
        },
    )
    can_read = FeatureGuard(feature, FeatureAction.READ)
    can_create = FeatureGuard(feature, FeatureAction.CREATE)
    can_update = FeatureGuard(feature, FeatureAction.UPDATE)
    can_delete = FeatureGuard(feature, FeatureAction.DELETE)

    @router.get("", response_model=ItemPage, summary=f"List {feature.name} records")
    async def list_items(
        params: ListParams = Depends(get_list_params),
        user: CurrentUser = Depends(can_read),
        state: AppState = Depends(get_app_state),
    ) -> ItemPage:
        return await state.feature_registry.get(feature).list_items(params)

    async def create_item(
        request: Request,
        data: Optional[FeatureItemCreate] = None,
        user: CurrentUser = Depends(can_create),
        state: AppState = Depends(get_app_state),
    ) -> FeatureItem:
        data = data or FeatureItemCreate()
        item = await state.feature_registry.get(feature).create_item(data)
        await _record_write(
            state, request, user, feature, AuditAction.ITEM_CREATE, item.id,
            {"name": item.name},
        )
        return item

    for path in ("", "/create"):
        router.add_api_route(
            path,
            create_item,
            methods=["POST"],
            response_model=FeatureItem,
            status_code=status.HTTP_201_CREATED,
            summary=f"Create {feature.name} record",
        )

    @router.get(f"/{ANALYTICS}", summary=f"{feature.name} status counts")
    async def analytics(
        user: CurrentUser = Depends(can_read),
        state: AppState = Depends(get_app_state),
    ) -> Dict[str, Any]:
        counts = await state.feature_registry.get(feature).count_by_status()
        return {"feature": feature.slug, "total": sum(counts.values()), "byStatus": counts}

    def add_sub_resource(resource: str) -> None:
        @router.get(f"/{resource}", summary=f"{feature.name} {resource}")
        async def sub_resource(
            params: ListParams = Depends(get_list_params),
            user: CurrentUser = Depends(can_read),
            state: AppState = Depends(get_app_state),
        ) -> Dict[str, Any]:
            page = await state.feature_registry.get(feature).list_items(params)
            return {"resource": resource, **page.to_wire()}

    for resource in feature.sub_resources:
        if resource != ANALYTICS:
            add_sub_resource(resource)

    @router.get("/{item_id}", response_model=FeatureItem, summary=f"Get {feature.name} record")
    async def get_item(
        item_id: str,
        user: CurrentUser = Depends(can_read),
        state: AppState = Depends(get_app_state),
    ) -> FeatureItem:
        try:
            return await state.feature_registry.get(feature).get_item(item_id)
        except ItemNotFoundError as e:
            raise _not_found(e)

    async def update_item(
        item_id: str,
        data: FeatureItemUpdate,
        request: Request,
        user: CurrentUser = Depends(can_update),
        state: AppState = Depends(get_app_state),
    ) -> FeatureItem:
        try:
            item = await state.feature_registry.get(feature).update_item(item_id, data)
        except ItemNotFoundError as e:
            raise _not_found(e)
        await _record_write(
            state, request, user, feature, AuditAction.ITEM_UPDATE, item_id,
            {"fields": sorted(data.model_dump(exclude_unset=True))},
        )
        return item

    router.add_api_route(
        "/{item_id}", update_item, methods=["PUT", "PATCH"],
        response_model=FeatureItem, summary=f"Update {feature.name} record",
    )
    router.add_api_route(
        "/{item_id}/edit", update_item, methods=["PUT"],
        response_model=FeatureItem, summary=f"Update {feature.name} record",
    )

    @router.get("/{item_id}/history", summary=f"{feature.name} record audit history")
    async def item_history(
        item_id: str,
        user: CurrentUser = Depends(can_read),
        state: AppState = Depends(get_app_state),
    ) -> Dict[str, Any]:
        """Audit entries written for one record, newest first; kept after deletion."""
        entries = await state.audit_repo.get_resource_history(feature.slug, item_id)
        return {
            "feature": feature.slug,
            "itemId": item_id,
            "entries": [entry.to_wire() for entry in entries],
            "total": len(entries),
        }

    @router.delete("/{item_id}", summary=f"Delete {feature.name} record")
    async def delete_item(
        item_id: str,
        request: Request,
        user: CurrentUser = Depends(can_delete),
        state: AppState = Depends(get_app_state),
    ) -> Dict[str, Any]:
        try:
            deleted_id = await state.feature_registry.get(feature).delete_item(item_id)
        except ItemNotFoundError as e:
            raise _not_found(e)
        await _record_write(state, request, user, feature, AuditAction.ITEM_DELETE, deleted_id)
        return {"success": True, "id": deleted_id}

    return router


# ============================================================================
# CATALOG ENDPOINTS
# ============================================================================


catalog_router = APIRouter(prefix="/features", tags=["Features"])


@catalog_router.get("", summary="List features")
async def list_catalog(user: Optional[CurrentUser] = Depends(get_optional_user)) -> Dict[str, Any]:
    """
    The feature catalog.

    With a valid token only the features the caller can read are listed,
    each with the actions the caller's roles allow.
    """
    if user is None:
        features: List[Dict[str, Any]] = [feature.to_dict() for feature in FEATURE_CATALOG]
    else:
        features = [
            {
                **feature.to_dict(),
                "allowedActions": sorted(a.value for a in allowed_actions(user.roles, feature)),
            }
            for feature in allowed_features(user.roles)
        ]
    return {"features": features, "total": len(features)}


@catalog_router.get("/{slug}", summary="Describe a feature")
async def describe_feature(slug: str) -> Dict[str, Any]:
    try:
        feature = get_feature(slug)
    except UnknownFeatureError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {**feature.to_dict(), "routes": page_routes(feature)}


def feature_routers() -> List[APIRouter]:
    """One router per catalog entry, in catalog order."""
    return [build_feature_router(feature) for feature in FEATURE_CATALOG]
