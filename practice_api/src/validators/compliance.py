"""
Validation models for compliance and risk management payloads.

One model per record kind accepted by the compliance API, plus the audit
log query and the report request. Enumerated values, lengths and numeric
ranges are enforced exactly; optional free-text fields such as
``description`` and ``assignedTo`` accept an empty string, every other
string must be non-empty once trimmed.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from practice_api.src.validators.base import (
    ObjectIdStr,
    StrictModel,
    Text,
    bounded_text,
)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC so they compare with stored timestamps."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ============================================================================
# Shared field types
# ============================================================================

Title = bounded_text(200, min_length=3)
Description = bounded_text(2000, min_length=0)
Notes = bounded_text(2000, min_length=0)
Assignee = bounded_text(100, min_length=0)
Author = bounded_text(100, min_length=2)

Priority = Literal["Low", "Medium", "High", "Critical"]
Severity = Priority

RiskLevel = Literal["Very Low", "Low", "Medium", "High", "Critical"]

AuditLogType = Literal[
    "User Action", "System Event", "Data Access", "Data Modification",
    "Authentication", "Authorization", "Security Event", "Compliance Event",
    "Error", "Other",
]
AuditSeverity = Literal["Info", "Low", "Medium", "High", "Critical"]
AuditStatus = Literal["Success", "Failed", "Warning", "Error", "In Progress", "Completed"]


# ============================================================================
# Ethics & Compliance Tracking
# ============================================================================


class EthicsRule(StrictModel):
    rule_number: Optional[bounded_text(50)] = None
    rule_name: Optional[bounded_text(200)] = None
    jurisdiction: Optional[bounded_text(100)] = None
    category: Optional[bounded_text(100)] = None
    description: Optional[bounded_text(2000)] = None
    effective_date: Optional[datetime] = None
    compliance_deadline: Optional[datetime] = None


class CleTracking(StrictModel):
    course_name: Optional[bounded_text(200)] = None
    provider: Optional[bounded_text(200)] = None
    course_type: Optional[
        Literal["Ethics", "Legal", "Professional Development", "Technology", "Other"]
    ] = None
    credits: Optional[float] = Field(None, ge=0, le=100)
    completed_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    certificate_number: Optional[bounded_text(100)] = None


class ComplianceRecordCreate(StrictModel):
    """Ethics rule, CLE requirement, alert or violation report."""

    record_type: Literal[
        "Ethics Rule", "CLE Requirement", "Ethics Alert", "Violation Report",
        "Compliance Monitoring", "Professional Conduct", "Other",
    ]
    title: Title
    description: Optional[Description] = None
    ethics_rule: Optional[EthicsRule] = None
    cle_tracking: Optional[CleTracking] = None
    status: Literal[
        "Active", "Pending", "Completed", "Violated", "Under Review", "Resolved", "Archived",
    ] = "Active"
    priority: Priority = "Medium"
    assigned_to: Optional[Assignee] = None
    compliance_category: Optional[Literal[
        "Professional Conduct", "Client Relations", "Confidentiality",
        "Conflict of Interest", "Trust Accounting", "Advertising",
        "Fee Agreements", "Record Keeping", "Other",
    ]] = None
    jurisdiction: Optional[bounded_text(100, min_length=0)] = None
    regulatory_body: Optional[bounded_text(200, min_length=0)] = None
    effective_date: Optional[datetime] = None
    due_date: Optional[datetime] = None
    notes: Optional[Notes] = None
    tags: Optional[List[Text]] = None
    created_by: Author


# ============================================================================
# Risk Assessment
# ============================================================================


class RiskFactor(StrictModel):
    factor: Text
    category: Optional[Text] = None
    description: Optional[Text] = None
    likelihood: Optional[Literal["Very Low", "Low", "Medium", "High", "Very High"]] = None
    impact: Optional[Literal["Negligible", "Minor", "Moderate", "Major", "Catastrophic"]] = None
    score: Optional[float] = Field(None, ge=0, le=25)


class MitigationStrategy(StrictModel):
    strategy: Text
    description: Optional[Text] = None
    priority: Optional[Priority] = None
    status: Optional[Literal[
        "Planned", "In Progress", "Implemented", "Deferred", "Not Applicable",
    ]] = None
    cost: Optional[float] = Field(None, ge=0)
    notes: Optional[Text] = None


class RiskAssessmentCreate(StrictModel):
    """Risk assessment of a case, client or practice area."""

    assessment_type: Literal[
        "Case Risk", "Client Risk", "Financial Risk", "Reputational Risk",
        "Operational Risk", "Legal Risk", "Compliance Risk", "Other",
    ]
    title: Title
    description: Optional[Description] = None
    case_id: Optional[ObjectIdStr] = None
    case_number: Optional[Text] = None
    client_id: Optional[ObjectIdStr] = None
    client_name: Optional[Text] = None
    risk_factors: Optional[List[RiskFactor]] = None
    overall_risk_score: float = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    risk_category: Optional[Literal[
        "Financial", "Legal", "Operational", "Reputational", "Strategic",
        "Compliance", "Market", "Other",
    ]] = None
    mitigation_strategies: Optional[List[MitigationStrategy]] = None
    status: Literal[
        "Open", "Under Review", "Mitigated", "Accepted", "Transferred", "Closed", "Archived",
    ] = "Open"
    priority: Priority = "Medium"
    assigned_to: Optional[Assignee] = None
    assessment_date: datetime
    assessed_by: Author
    tags: Optional[List[Text]] = None


# ============================================================================
# Malpractice Prevention
# ============================================================================


class ConflictCheck(StrictModel):
    party_names: Optional[List[Text]] = None
    opposing_party: Optional[Text] = None
    opposing_counsel: Optional[Text] = None
    conflict_type: Optional[Literal[
        "Direct Conflict", "Indirect Conflict", "Potential Conflict", "No Conflict", "Waived",
    ]] = None
    conflict_details: Optional[Text] = None
    waiver_obtained: Optional[bool] = None


class DeadlineMonitoring(StrictModel):
    deadline_type: Optional[Literal[
        "Filing", "Response", "Discovery", "Motion", "Appeal",
        "Statute of Limitations", "Other",
    ]] = None
    deadline_date: Optional[datetime] = None
    trigger_date: Optional[datetime] = None
    calculation_method: Optional[Text] = None
    responsible_attorney: Optional[Text] = None
    backup_attorney: Optional[Text] = None


class MalpracticeCheckCreate(StrictModel):
    """Conflict, deadline or quality check."""

    check_type: Literal[
        "Conflict Check", "Deadline Check", "Statute of Limitations",
        "Quality Review", "Best Practice Alert", "Document Review", "Other",
    ]
    title: Title
    description: Optional[Description] = None
    case_id: Optional[ObjectIdStr] = None
    case_number: Optional[Text] = None
    client_id: Optional[ObjectIdStr] = None
    client_name: Optional[Text] = None
    conflict_check: Optional[ConflictCheck] = None
    deadline_monitoring: Optional[DeadlineMonitoring] = None
    result: Literal[
        "Clear", "Issue Found", "Conflict Identified", "Deadline At Risk",
        "Action Required", "Resolved", "Waived",
    ]
    severity: Severity = "Medium"
    status: Literal[
        "Pending", "In Review", "Resolved", "Escalated", "Waived", "Closed", "Archived",
    ] = "Pending"
    assigned_to: Optional[Assignee] = None
    check_date: datetime
    performed_by: Author
    tags: Optional[List[Text]] = None


# ============================================================================
# Regulatory Compliance
# ============================================================================


class AbaCompliance(StrictModel):
    model_rule: Optional[Text] = None
    rule_number: Optional[Text] = None
    rule_title: Optional[Text] = None
    rule_description: Optional[Text] = None
    compliance_requirements: Optional[List[Text]] = None


class StateBarRules(StrictModel):
    state: Optional[bounded_text(2, min_length=2)] = None
    rule_number: Optional[Text] = None
    rule_title: Optional[Text] = None
    rule_category: Optional[Text] = None
    requirements: Optional[List[Text]] = None
    renewal_frequency: Optional[Text] = None


class RegulatoryComplianceCreate(StrictModel):
    """ABA or state bar obligation."""

    compliance_type: Literal[
        "ABA Rules", "State Bar Rules", "Trust Accounting", "Advertising Compliance",
        "Fee Agreement", "Record Keeping", "Professional Conduct", "Other",
    ]
    title: Title
    description: Optional[Description] = None
    jurisdiction: bounded_text(100, min_length=2)
    regulatory_body: Literal[
        "ABA", "State Bar", "Federal Court", "State Court", "Ethics Committee",
        "Bar Association", "Professional Conduct Board", "Other",
    ]
    aba_compliance: Optional[AbaCompliance] = None
    state_bar_rules: Optional[StateBarRules] = None
    status: Literal[
        "Compliant", "Non-Compliant", "Pending", "Under Review", "Action Required",
        "Grace Period", "Archived",
    ] = "Pending"
    severity: Severity = "Medium"
    assigned_to: Optional[Assignee] = None
    effective_date: Optional[datetime] = None
    compliance_deadline: Optional[datetime] = None
    tags: Optional[List[Text]] = None
    created_by: Author


# ============================================================================
# Data Privacy Compliance
# ============================================================================


class DataSubject(StrictModel):
    subject_type: Optional[Literal["Client", "Employee", "Vendor", "Third Party", "Other"]] = None
    subject_id: Optional[Text] = None
    subject_name: Optional[Text] = None
    email: Optional[EmailStr] = None
    phone: Optional[Text] = None
    jurisdiction: Optional[Text] = None


class DataSubjectRequest(StrictModel):
    request_type: Optional[Literal[
        "Access", "Rectification", "Erasure", "Restriction", "Portability",
        "Object", "Opt-Out", "Do Not Sell", "Other",
    ]] = None
    request_date: Optional[datetime] = None
    request_method: Optional[Text] = None
    request_details: Optional[Text] = None
    response_deadline: Optional[datetime] = None


class DataCategory(StrictModel):
    category: Optional[Text] = None
    description: Optional[Text] = None
    sensitivity: Optional[Text] = None


class GdprCompliance(StrictModel):
    lawful_basis: Optional[Literal[
        "Consent", "Contract", "Legal Obligation", "Vital Interests",
        "Public Interest", "Legitimate Interest",
    ]] = None
    data_categories: Optional[List[DataCategory]] = None


class PrivacyComplianceCreate(StrictModel):
    """GDPR/CCPA/HIPAA matter or data subject request."""

    compliance_type: Literal[
        "GDPR", "CCPA", "HIPAA", "Data Subject Request", "Privacy Policy",
        "Consent Management", "Data Breach", "Privacy Assessment", "Other",
    ]
    title: Title
    description: Optional[Description] = None
    data_subject: Optional[DataSubject] = None
    data_subject_request: Optional[DataSubjectRequest] = None
    gdpr_compliance: Optional[GdprCompliance] = None
    status: Literal[
        "Pending", "In Progress", "Completed", "Overdue", "Rejected", "Escalated",
        "Closed", "Archived",
    ] = "Pending"
    priority: Priority = "Medium"
    assigned_to: Optional[Assignee] = None
    submitted_date: Optional[datetime] = None
    tags: Optional[List[Text]] = None
    created_by: Author


# ============================================================================
# Professional Liability Management
# ============================================================================


class InsurancePolicy(StrictModel):
    policy_number: Optional[bounded_text(100)] = None
    policy_type: Optional[Literal[
        "Professional Liability", "Malpractice", "E&O", "Cyber Liability",
        "General Liability", "Directors & Officers", "Other",
    ]] = None
    carrier: Optional[Text] = None
    effective_date: Optional[datetime] = None
    expiration_date: Optional[datetime] = None
    policy_status: Optional[Literal[
        "Active", "Expired", "Pending Renewal", "Cancelled", "Under Review",
    ]] = None
    coverage_amount: Optional[float] = Field(None, ge=0)
    deductible: Optional[float] = Field(None, ge=0)


class Claim(StrictModel):
    claim_number: Optional[Text] = None
    claim_type: Optional[Literal[
        "Professional Negligence", "Breach of Duty", "Conflict of Interest",
        "Missed Deadline", "Error or Omission", "Breach of Contract", "Other",
    ]] = None
    claim_status: Optional[Literal[
        "Reported", "Under Investigation", "Reserved", "In Litigation",
        "Settled", "Closed", "Denied",
    ]] = None
    incident_date: Optional[datetime] = None
    description: Optional[Text] = None


class IncidentReport(StrictModel):
    incident_type: Optional[Text] = None
    incident_date: Optional[datetime] = None
    reported_by: Optional[Text] = None
    description: Optional[Text] = None
    potential_liability: Optional[bool] = None


class LiabilityInsuranceCreate(StrictModel):
    """Insurance policy, claim or incident report."""

    record_type: Literal[
        "Insurance Policy", "Claim", "Incident Report", "Coverage Verification",
        "Policy Renewal", "Other",
    ]
    title: Title
    description: Optional[Description] = None
    insurance_policy: Optional[InsurancePolicy] = None
    claim: Optional[Claim] = None
    incident_report: Optional[IncidentReport] = None
    status: Literal[
        "Active", "Pending", "Under Review", "Approved", "Denied", "Closed", "Archived",
    ] = "Active"
    priority: Priority = "Medium"
    assigned_to: Optional[Assignee] = None
    tags: Optional[List[Text]] = None
    created_by: Author


# ============================================================================
# Audit trail and reports
# ============================================================================


class AuditLogQuery(StrictModel):
    """Query string filters for the audit trail."""

    log_type: Optional[AuditLogType] = None
    user_id: Optional[ObjectIdStr] = None
    username: Optional[Text] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    resource_type: Optional[Text] = None
    severity: Optional[AuditSeverity] = None
    status: Optional[AuditStatus] = None
    page: int = Field(1, ge=1)
    limit: int = Field(50, ge=1, le=100)

    @field_validator("start_date", "end_date")
    @classmethod
    def dates_as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)


class ReportFilters(StrictModel):
    status: Optional[List[str]] = None
    priority: Optional[List[str]] = None
    assigned_to: Optional[Text] = None
    jurisdiction: Optional[Text] = None


ReportType = Literal[
    "Ethics Compliance", "Risk Assessment", "Malpractice Prevention",
    "Regulatory Compliance", "Audit Trail", "Privacy Compliance",
    "Liability Management", "Comprehensive",
]


class ComplianceReportRequest(StrictModel):
    """Request to assemble a compliance report over a date range."""

    report_type: ReportType
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    include_details: bool = True
    format: Literal["JSON", "PDF", "CSV", "Excel"] = "JSON"
    filters: Optional[ReportFilters] = None
    generated_by: Author

    @field_validator("start_date", "end_date")
    @classmethod
    def dates_as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    @model_validator(mode="after")
    def check_date_range(self) -> "ComplianceReportRequest":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self
