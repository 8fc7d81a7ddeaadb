"""
Compliance and risk management service.

Provides:
- Creation of the six compliance record kinds (validated, numbered, audited)
- Filtered listings with the derived views each kind exposes (high risks,
  upcoming deadlines, overdue data subject requests, ...)
- The compliance summary and on-demand compliance reports
- The audit trail query

Record numbers have the form ``<PREFIX>-<year>-<5 digits>``.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type

import structlog
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider

from practice_api.src.models.audit import ActionCategory, AuditAction, AuditLogType, AuditSeverity
from practice_api.src.models.auth import CurrentUser
from practice_api.src.repositories.audit_repo import AuditRepository
from practice_api.src.repositories.compliance_repo import (
    ComplianceKind,
    ComplianceRepository,
    Document,
    get_path,
)
from practice_api.src.validators import (
    AuditLogQuery,
    ComplianceRecordCreate,
    ComplianceReportRequest,
    LiabilityInsuranceCreate,
    MalpracticeCheckCreate,
    PrivacyComplianceCreate,
    RegulatoryComplianceCreate,
    RiskAssessmentCreate,
    StrictModel,
    validate_payload,
)
from shared.metrics import ApiMetrics
from shared.models import utc_now
from shared.tracing import TracingMixin, traced

logger = structlog.get_logger(__name__)


# ============================================================================
# Record kinds
# ============================================================================


@dataclass(frozen=True)
class ComplianceKindSpec:
    """How one record kind is validated, numbered, listed and audited."""

    kind: ComplianceKind
    title: str
    description: str
    model: Type[StrictModel]
    prefix: str
    number_field: str
    resource_type: str
    event_type: str
    label: str
    author_field: str
    list_key: str
    # query parameter -> dotted document path
    list_filters: Tuple[Tuple[str, str], ...]
    # (dotted path, descending) applied in order
    sort: Tuple[Tuple[str, bool], ...]


KIND_SPECS: Dict[ComplianceKind, ComplianceKindSpec] = {
    spec.kind: spec
    for spec in (
        ComplianceKindSpec(
            kind=ComplianceKind.ETHICS,
            title="Ethics & Compliance Tracking",
            description="Monitor ethical obligations and CLE requirements",
            model=ComplianceRecordCreate,
            prefix="COMP",
            number_field="recordNumber",
            resource_type="ComplianceRecord",
            event_type="Compliance Record Created",
            label="compliance record",
            author_field="createdBy",
            list_key="records",
            list_filters=(("status", "status"), ("assignedTo", "assignedTo"), ("recordType", "recordType")),
            sort=(("priority", True), ("dueDate", False)),
        ),
        ComplianceKindSpec(
            kind=ComplianceKind.RISK_ASSESSMENT,
            title="Risk Assessment Tools",
            description="Identify and assess case risks",
            model=RiskAssessmentCreate,
            prefix="RISK",
            number_field="assessmentNumber",
            resource_type="RiskAssessment",
            event_type="Risk Assessment Created",
            label="risk assessment",
            author_field="assessedBy",
            list_key="assessments",
            list_filters=(("riskLevel", "riskLevel"), ("status", "status"), ("caseNumber", "caseNumber")),
            sort=(("overallRiskScore", True), ("assessmentDate", True)),
        ),
        ComplianceKindSpec(
            kind=ComplianceKind.MALPRACTICE,
            title="Malpractice Prevention",
            description="Conflict checks and deadline monitoring",
            model=MalpracticeCheckCreate,
            prefix="MPC",
            number_field="checkNumber",
            resource_type="MalpracticeCheck",
            event_type="Malpractice Check Created",
            label="malpractice check",
            author_field="performedBy",
            list_key="checks",
            list_filters=(("checkType", "checkType"), ("status", "status"), ("severity", "severity")),
            sort=(("severity", True), ("checkDate", True)),
        ),
        ComplianceKindSpec(
            kind=ComplianceKind.REGULATORY,
            title="Regulatory Compliance",
            description="ABA and state bar compliance",
            model=RegulatoryComplianceCreate,
            prefix="REG",
            number_field="complianceNumber",
            resource_type="RegulatoryCompliance",
            event_type="Regulatory Compliance Created",
            label="regulatory compliance record",
            author_field="createdBy",
            list_key="records",
            list_filters=(
                ("jurisdiction", "jurisdiction"),
                ("complianceType", "complianceType"),
                ("status", "status"),
            ),
            sort=(("severity", True), ("complianceDeadline", False)),
        ),
        ComplianceKindSpec(
            kind=ComplianceKind.PRIVACY,
            title="Data Privacy Compliance",
            description="GDPR and CCPA compliance tools",
            model=PrivacyComplianceCreate,
            prefix="PRIV",
            number_field="privacyNumber",
            resource_type="PrivacyCompliance",
            event_type="Privacy Compliance Created",
            label="privacy compliance record",
            author_field="createdBy",
            list_key="records",
            list_filters=(
                ("complianceType", "complianceType"),
                ("status", "status"),
                ("subjectId", "dataSubject.subjectId"),
            ),
            sort=(("priority", True), ("submittedDate", True)),
        ),
        ComplianceKindSpec(
            kind=ComplianceKind.LIABILITY,
            title="Professional Liability Management",
            description="Track insurance and claims",
            model=LiabilityInsuranceCreate,
            prefix="LI",
            number_field="recordNumber",
            resource_type="LiabilityInsurance",
            event_type="Liability Insurance Record Created",
            label="liability insurance record",
            author_field="createdBy",
            list_key="records",
            list_filters=(("recordType", "recordType"), ("status", "status")),
            sort=(("priority", True), ("createdAt", True)),
        ),
    )
}

SUB_FEATURES: Tuple[str, ...] = (
    "Ethics & Compliance Tracking",
    "Risk Assessment Tools",
    "Malpractice Prevention",
    "Regulatory Compliance",
    "Audit Trail & Logging",
    "Data Privacy Compliance",
    "Professional Liability Management",
    "Compliance Reporting",
)

# Days until the next review, by risk level
REVIEW_INTERVAL_DAYS: Dict[str, int] = {
    "Critical": 7,
    "High": 30,
    "Medium": 90,
    "Low": 180,
    "Very Low": 365,
}

GDPR_RESPONSE_DAYS = 30
DEFAULT_RESPONSE_DAYS = 45

_RANK = {"Low": 1, "Medium": 2, "High": 3, "Critical": 4}
_RANKED_PATHS = {"priority", "severity"}


# ============================================================================
# Helpers
# ============================================================================


def generate_record_number(prefix: str, now: Optional[datetime] = None) -> str:
    """
    Build a record number.

    Example:
        >>> generate_record_number("RISK")
        'RISK-2024-04217'
    """
    year = (now or utc_now()).year
    return f"{prefix}-{year}-{secrets.randbelow(100000):05d}"


def next_review_date(risk_level: str, now: datetime) -> datetime:
    return now + timedelta(days=REVIEW_INTERVAL_DAYS.get(risk_level, 90))


def _as_utc(value: Any) -> Any:
    """Make every datetime in a document timezone-aware."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, dict):
        return {key: _as_utc(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_as_utc(item) for item in value]
    return value


def _sort_value(path: str, value: Any) -> Any:
    if path in _RANKED_PATHS:
        return _RANK.get(value)
    return value


def order_records(records: List[Document], keys: Tuple[Tuple[str, bool], ...]) -> List[Document]:
    """Sort by several (path, descending) keys; records missing a key go last."""
    ordered = list(records)
    for path, descending in reversed(keys):
        present = [r for r in ordered if _sort_value(path, get_path(r, path)) is not None]
        missing = [r for r in ordered if _sort_value(path, get_path(r, path)) is None]
        present.sort(key=lambda r: _sort_value(path, get_path(r, path)), reverse=descending)
        ordered = present + missing
    return ordered


def _within(value: Any, start: Optional[datetime], end: Optional[datetime]) -> bool:
    if not isinstance(value, datetime):
        return False
    if start and value < start:
        return False
    if end and value > end:
        return False
    return True


def _group_counts(records: List[Document], path: str) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for record in records:
        key = get_path(record, path) or "Unspecified"
        counts[key] = counts.get(key, 0) + 1
    return counts


# ============================================================================
# Service
# ============================================================================


class ComplianceService(TracingMixin):
    """Service for compliance records, reports and the audit trail."""

    def __init__(
        self,
        repository: ComplianceRepository,
        audit_repo: AuditRepository,
        metrics: Optional[ApiMetrics] = None,
        tracer_provider: Optional[TracerProvider] = None,
    ):
        """
        Initialize compliance service.

        Args:
            repository: Compliance record storage
            audit_repo: Audit trail, written on every create and report
            metrics: Optional metrics to count created records
            tracer_provider: Provider for service spans (global provider when None)
        """
        self.repository = repository
        self.audit_repo = audit_repo
        self.metrics = metrics
        self.tracer_provider = tracer_provider
        self._views: Dict[ComplianceKind, Callable[[], Any]] = {
            ComplianceKind.ETHICS: self._ethics_views,
            ComplianceKind.RISK_ASSESSMENT: self._risk_views,
            ComplianceKind.MALPRACTICE: self._malpractice_views,
            ComplianceKind.REGULATORY: self._regulatory_views,
            ComplianceKind.PRIVACY: self._privacy_views,
            ComplianceKind.LIABILITY: self._liability_views,
        }

    # ------------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------------

    @traced("compliance.create_record")
    async def create_record(
        self,
        kind: ComplianceKind,
        payload: Any,
        user: Optional[CurrentUser] = None,
    ) -> Document:
        """
        Validate and store a new record.

        Args:
            kind: Record kind
            payload: Raw JSON body
            user: Authenticated caller, recorded in the audit entry

        Returns:
            The stored record

        Raises:
            PayloadValidationError: If the payload is invalid
        """
        trace.get_current_span().set_attribute("compliance.kind", kind.value)
        spec = KIND_SPECS[kind]
        validated = validate_payload(spec.model, payload)
        document = _as_utc(validated.model_dump(by_alias=True, exclude_none=True))
        now = utc_now()
        document[spec.number_field] = generate_record_number(spec.prefix, now)

        severity = AuditSeverity.INFO
        if kind == ComplianceKind.RISK_ASSESSMENT:
            document["lastReviewDate"] = now
            document["nextReviewDate"] = next_review_date(document["riskLevel"], now)
            severity = (
                AuditSeverity.HIGH
                if document["riskLevel"] in ("Critical", "High")
                else AuditSeverity.MEDIUM
            )
        elif kind == ComplianceKind.MALPRACTICE:
            severity = AuditSeverity(document["severity"])
        elif kind == ComplianceKind.PRIVACY:
            request = document.get("dataSubjectRequest")
            if document["complianceType"] == "Data Subject Request" and request is not None:
                if not request.get("responseDeadline"):
                    days = GDPR_RESPONSE_DAYS if document.get("gdprCompliance") else DEFAULT_RESPONSE_DAYS
                    request["responseDeadline"] = now + timedelta(days=days)
        elif kind == ComplianceKind.LIABILITY:
            severity = AuditSeverity.HIGH if document["recordType"] == "Claim" else AuditSeverity.MEDIUM

        record = await self.repository.insert(kind, document)

        subject = record.get("title")
        if kind == ComplianceKind.MALPRACTICE:
            subject = record["checkType"]
        elif kind == ComplianceKind.LIABILITY:
            subject = record["recordType"]

        await self.audit_repo.create_audit_log(
            action=AuditAction.COMPLIANCE_RECORD_CREATE,
            event_type=spec.event_type,
            log_type=AuditLogType.COMPLIANCE_EVENT,
            action_category=ActionCategory.CREATE,
            user_id=user.id if user else None,
            username=record[spec.author_field],
            description=f"Created {spec.label}: {subject}",
            resource_type=spec.resource_type,
            resource_id=record["id"],
            severity=severity,
        )
        if self.metrics is not None:
            self.metrics.compliance_records_created.labels(kind=kind.value).inc()

        logger.info(
            "compliance_record_created",
            kind=kind.value,
            record_id=record["id"],
            number=record[spec.number_field],
        )
        return record

    # ------------------------------------------------------------------------
    # List
    # ------------------------------------------------------------------------

    async def list_records(self, kind: ComplianceKind, query: Mapping[str, str]) -> Dict[str, Any]:
        """
        Filtered records (at most 100) plus the kind's derived views.

        Args:
            kind: Record kind
            query: Query string; only the kind's filter parameters are used
        """
        spec = KIND_SPECS[kind]
        filters = {path: query.get(param) or None for param, path in spec.list_filters}
        records = order_records(await self.repository.find(kind, filters, limit=None), spec.sort)[:100]

        data: Dict[str, Any] = {spec.list_key: records}
        data.update(await self._views[kind]())
        total_key = "totalAssessments" if kind == ComplianceKind.RISK_ASSESSMENT else (
            "totalChecks" if kind == ComplianceKind.MALPRACTICE else "totalRecords"
        )
        data[total_key] = len(records)
        return data

    async def _ethics_views(self) -> Dict[str, Any]:
        upcoming = await self.repository.find(
            ComplianceKind.ETHICS,
            {"recordType": "CLE Requirement"},
            predicate=lambda r: r.get("status") in ("Active", "Pending") and r.get("dueDate") is not None,
            limit=None,
        )
        return {"upcomingCLE": order_records(upcoming, (("dueDate", False),))[:10]}

    async def _high_risks(self) -> List[Document]:
        risks = await self.repository.find(
            ComplianceKind.RISK_ASSESSMENT,
            predicate=lambda r: r.get("riskLevel") in ("High", "Critical")
            and r.get("status") in ("Open", "Under Review"),
            limit=None,
        )
        return order_records(risks, (("overallRiskScore", True),))

    async def risk_analytics(self, predicate: Optional[Callable[[Document], bool]] = None) -> List[Dict[str, Any]]:
        """Count and average score per risk level, highest average first."""
        records = await self.repository.find(ComplianceKind.RISK_ASSESSMENT, predicate=predicate, limit=None)
        groups: Dict[str, List[float]] = {}
        for record in records:
            groups.setdefault(record["riskLevel"], []).append(record["overallRiskScore"])
        rows = [
            {"riskLevel": level, "count": len(scores), "avgScore": round(sum(scores) / len(scores), 2)}
            for level, scores in groups.items()
        ]
        rows.sort(key=lambda row: row["avgScore"], reverse=True)
        return rows

    async def _risk_views(self) -> Dict[str, Any]:
        return {
            "highRisks": (await self._high_risks())[:10],
            "analytics": await self.risk_analytics(),
        }

    async def _critical_malpractice(self) -> List[Document]:
        issues = await self.repository.find(
            ComplianceKind.MALPRACTICE,
            predicate=lambda r: r.get("severity") in ("High", "Critical")
            and r.get("status") not in ("Resolved", "Closed", "Archived"),
            limit=None,
        )
        return order_records(issues, (("severity", True), ("checkDate", True)))

    async def _malpractice_views(self) -> Dict[str, Any]:
        now = utc_now()
        horizon = now + timedelta(days=30)
        conflicts = await self.repository.find(
            ComplianceKind.MALPRACTICE,
            {"checkType": "Conflict Check"},
            predicate=lambda r: get_path(r, "conflictCheck.conflictType")
            in ("Direct Conflict", "Indirect Conflict", "Potential Conflict")
            and r.get("status") not in ("Resolved", "Waived", "Closed"),
            limit=None,
        )
        deadlines = await self.repository.find(
            ComplianceKind.MALPRACTICE,
            {"checkType": "Deadline Check"},
            predicate=lambda r: _within(get_path(r, "deadlineMonitoring.deadlineDate"), now, horizon)
            and r.get("status") not in ("Resolved", "Closed"),
            limit=None,
        )
        return {
            "conflicts": order_records(conflicts, (("checkDate", True),))[:10],
            "upcomingDeadlines": order_records(deadlines, (("deadlineMonitoring.deadlineDate", False),))[:10],
            "criticalIssues": (await self._critical_malpractice())[:10],
        }

    async def _regulatory_views(self) -> Dict[str, Any]:
        now = utc_now()
        horizon = now + timedelta(days=60)
        non_compliant = await self.repository.find(
            ComplianceKind.REGULATORY,
            predicate=lambda r: r.get("status") in ("Non-Compliant", "Action Required"),
            limit=None,
        )
        renewals = await self.repository.find(
            ComplianceKind.REGULATORY,
            predicate=lambda r: _within(r.get("complianceDeadline"), now, horizon)
            and r.get("status") != "Archived",
            limit=None,
        )
        return {
            "nonCompliant": order_records(non_compliant, (("severity", True), ("complianceDeadline", False)))[:10],
            "upcomingRenewals": order_records(renewals, (("complianceDeadline", False),))[:10],
        }

    async def _overdue_privacy(self) -> List[Document]:
        now = utc_now()
        overdue = await self.repository.find(
            ComplianceKind.PRIVACY,
            predicate=lambda r: r.get("status") not in ("Completed", "Closed", "Archived")
            and _within(get_path(r, "dataSubjectRequest.responseDeadline"), None, now),
            limit=None,
        )
        return order_records(overdue, (("dataSubjectRequest.responseDeadline", False),))

    async def privacy_metrics(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """Per compliance type: total, pending, completed and overdue counts."""
        records = await self.repository.find(
            ComplianceKind.PRIVACY,
            predicate=lambda r: _within(r["createdAt"], start, end),
            limit=None,
        )
        rows: Dict[str, Dict[str, Any]] = {}
        for record in records:
            row = rows.setdefault(
                record["complianceType"],
                {"complianceType": record["complianceType"], "count": 0, "pending": 0, "completed": 0, "overdue": 0},
            )
            row["count"] += 1
            if record["status"] in ("Pending", "In Progress"):
                row["pending"] += 1
            elif record["status"] == "Completed":
                row["completed"] += 1
            elif record["status"] == "Overdue":
                row["overdue"] += 1
        return sorted(rows.values(), key=lambda row: row["count"], reverse=True)

    async def _privacy_views(self) -> Dict[str, Any]:
        pending = await self.repository.find(
            ComplianceKind.PRIVACY,
            {"complianceType": "Data Subject Request"},
            predicate=lambda r: r.get("status") in ("Pending", "In Progress"),
            limit=None,
        )
        return {
            "pendingRequests": order_records(pending, (("dataSubjectRequest.responseDeadline", False),))[:10],
            "overdueRequests": (await self._overdue_privacy())[:10],
            "metrics": await self.privacy_metrics(utc_now() - timedelta(days=90), None),
        }

    async def claims_analytics(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """Claim count per claim status."""
        claims = await self.repository.find(
            ComplianceKind.LIABILITY,
            {"recordType": "Claim"},
            predicate=lambda r: _within(r["createdAt"], start, end),
            limit=None,
        )
        counts = _group_counts(claims, "claim.claimStatus")
        rows = [{"claimStatus": status, "count": count} for status, count in counts.items()]
        return sorted(rows, key=lambda row: row["count"], reverse=True)

    async def _liability_views(self) -> Dict[str, Any]:
        now = utc_now()
        horizon = now + timedelta(days=60)
        active = await self.repository.find(
            ComplianceKind.LIABILITY,
            {"recordType": "Insurance Policy", "insurancePolicy.policyStatus": "Active"},
            limit=None,
        )
        expiring = [
            record for record in active
            if _within(get_path(record, "insurancePolicy.expirationDate"), now, horizon)
        ]
        open_claims = await self.repository.find(
            ComplianceKind.LIABILITY,
            {"recordType": "Claim"},
            predicate=lambda r: get_path(r, "claim.claimStatus")
            in ("Reported", "Under Investigation", "Reserved", "In Litigation"),
            limit=None,
        )
        return {
            "activePolicies": order_records(active, (("insurancePolicy.expirationDate", False),))[:10],
            "expiringPolicies": order_records(expiring, (("insurancePolicy.expirationDate", False),))[:10],
            "openClaims": open_claims[:10],
            "claimsAnalytics": await self.claims_analytics(now - timedelta(days=365), None),
        }

    # ------------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------------

    async def summary(self) -> Dict[str, Any]:
        """Open item counts per kind and the most critical items."""
        repo = self.repository
        return {
            "summary": {
                "ethicsRecords": await repo.count(
                    ComplianceKind.ETHICS, lambda r: r["status"] in ("Active", "Pending")),
                "riskAssessments": await repo.count(
                    ComplianceKind.RISK_ASSESSMENT, lambda r: r["status"] in ("Open", "Under Review")),
                "malpracticeChecks": await repo.count(
                    ComplianceKind.MALPRACTICE, lambda r: r["status"] not in ("Resolved", "Closed")),
                "regulatoryRecords": await repo.count(
                    ComplianceKind.REGULATORY, lambda r: r["status"] not in ("Compliant", "Archived")),
                "privacyRecords": await repo.count(
                    ComplianceKind.PRIVACY, lambda r: r["status"] in ("Pending", "In Progress")),
                "liabilityRecords": await repo.count(
                    ComplianceKind.LIABILITY, lambda r: r["status"] == "Active"),
            },
            "criticalItems": {
                "highRisks": (await self._high_risks())[:5],
                "criticalMalpractice": (await self._critical_malpractice())[:5],
                "overduePrivacy": (await self._overdue_privacy())[:5],
            },
            "reportGeneratedAt": utc_now(),
        }

    @traced("compliance.generate_report")
    async def generate_report(
        self,
        payload: Any,
        user: Optional[CurrentUser] = None,
    ) -> Dict[str, Any]:
        """
        Assemble a report of the requested type over an optional date range.

        Raises:
            PayloadValidationError: If the request is invalid
        """
        request = validate_payload(ComplianceReportRequest, payload)
        start, end = request.start_date, request.end_date
        report_type = request.report_type
        comprehensive = report_type == "Comprehensive"
        data: Dict[str, Any] = {}

        if comprehensive or report_type == "Ethics Compliance":
            data["ethicsCompliance"] = await self.repository.find(
                ComplianceKind.ETHICS,
                predicate=lambda r: _within(r["createdAt"], start, end),
                limit=None,
            )
        if comprehensive or report_type == "Risk Assessment":
            filters = request.filters
            data["riskAnalytics"] = await self.risk_analytics(
                (lambda r: self._matches_report_filters(r, filters)) if filters else None
            )
        if comprehensive or report_type == "Malpractice Prevention":
            checks = await self.repository.find(
                ComplianceKind.MALPRACTICE,
                predicate=lambda r: _within(r["createdAt"], start, end),
                limit=None,
            )
            data["malpracticeResults"] = _group_counts(checks, "result")
        if comprehensive or report_type == "Regulatory Compliance":
            obligations = await self.repository.find(
                ComplianceKind.REGULATORY,
                predicate=lambda r: _within(r["createdAt"], start, end),
                limit=None,
            )
            data["regulatoryStatus"] = _group_counts(obligations, "status")
        if comprehensive or report_type == "Privacy Compliance":
            data["privacyMetrics"] = await self.privacy_metrics(start, end)
        if comprehensive or report_type == "Liability Management":
            data["claimsAnalytics"] = await self.claims_analytics(start, end)
        if comprehensive or report_type == "Audit Trail":
            rows = await self.audit_repo.get_audit_report(AuditLogQuery(start_date=start, end_date=end))
            data["auditReport"] = [row.to_wire() for row in rows]

        await self.audit_repo.create_audit_log(
            action=AuditAction.COMPLIANCE_REPORT_GENERATE,
            event_type="Compliance Report Generated",
            log_type=AuditLogType.COMPLIANCE_EVENT,
            action_category=ActionCategory.CREATE,
            user_id=user.id if user else None,
            username=request.generated_by,
            description=f"Generated {report_type} report",
            resource_type="ComplianceReport",
        )
        logger.info("compliance_report_generated", report_type=report_type, sections=sorted(data))

        return {
            "reportType": report_type,
            "generatedBy": request.generated_by,
            "generatedAt": utc_now(),
            "format": request.format,
            "includeDetails": request.include_details,
            "dateRange": {"startDate": start, "endDate": end},
            "data": data,
        }

    @staticmethod
    def _matches_report_filters(record: Document, filters: Any) -> bool:
        if filters.status and record.get("status") not in filters.status:
            return False
        if filters.priority and record.get("priority") not in filters.priority:
            return False
        if filters.assigned_to and record.get("assignedTo") != filters.assigned_to:
            return False
        if filters.jurisdiction and record.get("jurisdiction") != filters.jurisdiction:
            return False
        return True

    # ------------------------------------------------------------------------
    # Audit trail and overview
    # ------------------------------------------------------------------------

    async def audit_trail(self, query: Mapping[str, Any]) -> Dict[str, Any]:
        """
        One page of the audit trail with recent security events and counts.

        Raises:
            PayloadValidationError: If a query parameter is invalid or unknown
        """
        params = validate_payload(AuditLogQuery, query)
        logs, total = await self.audit_repo.list_audit_logs(params)
        security_events = await self.audit_repo.get_security_events(days=7, limit=10)
        report = await self.audit_repo.get_audit_report(params)
        return {
            "logs": [entry.to_wire() for entry in logs],
            "securityEvents": [entry.to_wire() for entry in security_events],
            "report": [row.to_wire() for row in report],
            "pagination": {
                "page": params.page,
                "limit": params.limit,
                "totalLogs": total,
                "totalPages": -(-total // params.limit),
            },
        }

    @staticmethod
    def overview(base_path: str) -> Dict[str, Any]:
        """Sub-features and the endpoints serving them."""
        endpoints: Dict[str, Dict[str, str]] = {}
        for segment in (
            "ethics", "risk-assessment", "malpractice-prevention", "regulatory",
            "audit-trail", "privacy", "liability", "reports",
        ):
            key = segment.split("-")[0] + "".join(part.title() for part in segment.split("-")[1:])
            path = f"{base_path}/{segment}"
            endpoints[key] = {"get": path} if segment == "audit-trail" else {"get": path, "post": path}
        return {
            "feature": "Compliance & Risk Management",
            "description": "Comprehensive compliance and risk management system",
            "subFeatures": list(SUB_FEATURES),
            "endpoints": endpoints,
        }
