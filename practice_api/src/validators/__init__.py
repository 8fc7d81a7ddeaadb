"""Request payload validation for the compliance API."""

from practice_api.src.validators.base import (
    PayloadValidationError,
    StrictModel,
    validate_payload,
)
from practice_api.src.validators.compliance import (
    AuditLogQuery,
    ComplianceRecordCreate,
    ComplianceReportRequest,
    LiabilityInsuranceCreate,
    MalpracticeCheckCreate,
    PrivacyComplianceCreate,
    RegulatoryComplianceCreate,
    RiskAssessmentCreate,
)

__all__ = [
    "AuditLogQuery",
    "ComplianceRecordCreate",
    "ComplianceReportRequest",
    "LiabilityInsuranceCreate",
    "MalpracticeCheckCreate",
    "PayloadValidationError",
    "PrivacyComplianceCreate",
    "RegulatoryComplianceCreate",
    "RiskAssessmentCreate",
    "StrictModel",
    "validate_payload",
]
