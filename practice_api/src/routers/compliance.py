"""
Compliance & Risk Management router.

Provides REST API endpoints for:
- Ethics & compliance tracking, risk assessments, malpractice checks,
  regulatory obligations, privacy matters and liability records
  (``GET`` lists with derived views, ``POST`` creates)
- The audit trail (``/audit-trail``, alias ``/audit-logs``)
- Compliance summary and report generation (``/reports``)
- The feature overview (``/overview``)

Payloads are validated by the compliance validators; failures become
``400 {success: false, message, errors}`` responses.
"""

from typing import Any, Dict

import structlog
from fastapi import APIRouter, Body, Depends, Request, status

from practice_api.src.config import Settings
from practice_api.src.dependencies import (
    get_compliance_service,
    get_settings_dependency,
)
from practice_api.src.features.catalog import get_feature
from practice_api.src.features.routes import FeatureAction
from practice_api.src.middleware.rbac import FeatureGuard
from practice_api.src.models.auth import CurrentUser, ErrorResponse
from practice_api.src.repositories.compliance_repo import ComplianceKind
from practice_api.src.services.compliance_service import KIND_SPECS, ComplianceService

logger = structlog.get_logger(__name__)

COMPLIANCE_FEATURE = get_feature("compliance")

can_read = FeatureGuard(COMPLIANCE_FEATURE, FeatureAction.READ)
can_create = FeatureGuard(COMPLIANCE_FEATURE, FeatureAction.CREATE)

router = APIRouter(
    prefix=COMPLIANCE_FEATURE.api_path,
    tags=["Compliance & Risk Management"],
    responses={
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Permission denied"},
    },
)


@router.get("/overview", summary="Compliance feature overview")
async def overview(
    user: CurrentUser = Depends(can_read),
    settings: Settings = Depends(get_settings_dependency),
) -> Dict[str, Any]:
    return ComplianceService.overview(f"{settings.api_prefix}{COMPLIANCE_FEATURE.api_path}")


def _register_kind(kind: ComplianceKind) -> None:
    spec = KIND_SPECS[kind]
    created_message = f"{spec.label[0].upper()}{spec.label[1:]} created successfully"

    @router.get(f"/{kind.value}", summary=f"List {spec.title} records")
    async def list_records(
        request: Request,
        user: CurrentUser = Depends(can_read),
        service: ComplianceService = Depends(get_compliance_service),
    ) -> Dict[str, Any]:
        data = await service.list_records(kind, request.query_params)
        return {"success": True, "data": data}

    @router.post(
        f"/{kind.value}",
        status_code=status.HTTP_201_CREATED,
        summary=f"Create {spec.label}",
        responses={400: {"description": "Validation failed"}},
    )
    async def create_record(
        payload: Any = Body(None),
        user: CurrentUser = Depends(can_create),
        service: ComplianceService = Depends(get_compliance_service),
    ) -> Dict[str, Any]:
        record = await service.create_record(kind, payload, user)
        return {"success": True, "message": created_message, "data": record}


for _kind in ComplianceKind:
    _register_kind(_kind)


async def _audit_trail(
    request: Request,
    user: CurrentUser = Depends(can_read),
    service: ComplianceService = Depends(get_compliance_service),
) -> Dict[str, Any]:
    data = await service.audit_trail(request.query_params)
    return {"success": True, "data": data}


for _path in ("/audit-trail", "/audit-logs"):
    router.add_api_route(
        _path,
        _audit_trail,
        methods=["GET"],
        summary="Audit trail",
        responses={400: {"description": "Invalid query parameter"}},
    )


@router.get("/reports", summary="Compliance summary")
async def compliance_summary(
    user: CurrentUser = Depends(can_read),
    service: ComplianceService = Depends(get_compliance_service),
) -> Dict[str, Any]:
    return {"success": True, "data": await service.summary()}


@router.post(
    "/reports",
    status_code=status.HTTP_200_OK,
    summary="Generate compliance report",
    responses={400: {"description": "Validation failed"}},
)
async def generate_report(
    payload: Any = Body(None),
    user: CurrentUser = Depends(can_create),
    service: ComplianceService = Depends(get_compliance_service),
) -> Dict[str, Any]:
    report = await service.generate_report(payload, user)
    return {"success": True, "message": "Compliance report generated successfully", "data": report}
