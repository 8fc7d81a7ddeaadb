"""
Contract tests for compliance request payloads.

Tests cover:
- The error shape returned for invalid payloads
- Required fields and defaults per record kind
- Unknown fields, trimming and coercion
- Audit trail query limits
- Report date ranges
"""

import pytest

from practice_api.src.validators import (
    AuditLogQuery,
    ComplianceRecordCreate,
    ComplianceReportRequest,
    LiabilityInsuranceCreate,
    MalpracticeCheckCreate,
    PayloadValidationError,
    PrivacyComplianceCreate,
    RegulatoryComplianceCreate,
    RiskAssessmentCreate,
    validate_payload,
)

VALID_PAYLOADS = {
    ComplianceRecordCreate: {
        "recordType": "Ethics Rule",
        "title": "Rule 1.7 conflicts",
        "createdBy": "Jane Doe",
    },
    RiskAssessmentCreate: {
        "assessmentType": "Case Risk",
        "title": "Smith litigation exposure",
        "overallRiskScore": 42,
        "riskLevel": "Medium",
        "assessmentDate": "2024-03-01T00:00:00Z",
        "assessedBy": "Jane Doe",
    },
    MalpracticeCheckCreate: {
        "checkType": "Conflict Check",
        "title": "New client intake",
        "result": "Clear",
        "checkDate": "2024-03-01",
        "performedBy": "Jane Doe",
    },
    RegulatoryComplianceCreate: {
        "complianceType": "State Bar Rules",
        "title": "Annual trust account filing",
        "jurisdiction": "California",
        "regulatoryBody": "State Bar",
        "createdBy": "Jane Doe",
    },
    PrivacyComplianceCreate: {
        "complianceType": "GDPR",
        "title": "Access request from client",
        "createdBy": "Jane Doe",
    },
    LiabilityInsuranceCreate: {
        "recordType": "Insurance Policy",
        "title": "Malpractice policy 2024",
        "createdBy": "Jane Doe",
    },
}

REQUIRED_FIELDS = {
    ComplianceRecordCreate: {"recordType", "title", "createdBy"},
    RiskAssessmentCreate: {
        "assessmentType", "title", "overallRiskScore", "riskLevel", "assessmentDate", "assessedBy",
    },
    MalpracticeCheckCreate: {"checkType", "title", "result", "checkDate", "performedBy"},
    RegulatoryComplianceCreate: {
        "complianceType", "title", "jurisdiction", "regulatoryBody", "createdBy",
    },
    PrivacyComplianceCreate: {"complianceType", "title", "createdBy"},
    LiabilityInsuranceCreate: {"recordType", "title", "createdBy"},
}


def failed_fields(model, data) -> dict:
    with pytest.raises(PayloadValidationError) as exc_info:
        validate_payload(model, data)
    return {error["field"]: error for error in exc_info.value.errors}


# ============================================================================
# ERROR SHAPE
# ============================================================================


class TestValidationErrorShape:
    """Invalid payloads report one entry per problem."""

    def test_error_entries(self):
        errors = failed_fields(ComplianceRecordCreate, {"recordType": "Ethics Rule", "title": "Rule"})

        assert set(errors) == {"createdBy"}
        assert set(errors["createdBy"]) == {"field", "message", "type"}
        assert errors["createdBy"]["type"] == "missing"

    def test_exception_message(self):
        with pytest.raises(PayloadValidationError) as exc_info:
            validate_payload(PrivacyComplianceCreate, {})

        assert exc_info.value.message == "Validation failed"
        assert exc_info.value.first_message

    def test_nested_paths_are_dotted(self):
        payload = {
            **VALID_PAYLOADS[RiskAssessmentCreate],
            "riskFactors": [{"factor": "Statute", "score": 30}],
        }

        errors = failed_fields(RiskAssessmentCreate, payload)

        assert set(errors) == {"riskFactors.0.score"}

    def test_none_is_treated_as_empty_body(self):
        errors = failed_fields(LiabilityInsuranceCreate, None)

        assert set(errors) == REQUIRED_FIELDS[LiabilityInsuranceCreate]

    @pytest.mark.parametrize("body", [[1, 2], [], "ethics", 42])
    def test_non_object_body_is_rejected(self, body):
        with pytest.raises(PayloadValidationError) as exc_info:
            validate_payload(ComplianceRecordCreate, body)

        assert exc_info.value.errors == [{
            "field": "body",
            "message": "Input should be a valid dictionary",
            "type": "dict_type",
        }]


# ============================================================================
# RECORD PAYLOADS
# ============================================================================


class TestRecordPayloads:
    """Required fields, defaults and field rules per record kind."""

    @pytest.mark.parametrize("model", list(VALID_PAYLOADS))
    def test_valid_payload_is_accepted(self, model):
        assert isinstance(validate_payload(model, VALID_PAYLOADS[model]), model)

    @pytest.mark.parametrize("model", list(REQUIRED_FIELDS))
    def test_required_fields(self, model):
        assert set(failed_fields(model, {})) == REQUIRED_FIELDS[model]

    @pytest.mark.parametrize("model", list(VALID_PAYLOADS))
    def test_unknown_fields_are_rejected(self, model):
        errors = failed_fields(model, {**VALID_PAYLOADS[model], "bogus": 1})

        assert errors["bogus"]["type"] == "extra_forbidden"

    def test_defaults(self):
        record = validate_payload(ComplianceRecordCreate, VALID_PAYLOADS[ComplianceRecordCreate])
        check = validate_payload(MalpracticeCheckCreate, VALID_PAYLOADS[MalpracticeCheckCreate])
        regulatory = validate_payload(RegulatoryComplianceCreate, VALID_PAYLOADS[RegulatoryComplianceCreate])

        assert (record.status, record.priority) == ("Active", "Medium")
        assert (check.status, check.severity) == ("Pending", "Medium")
        assert regulatory.status == "Pending"

    def test_strings_are_trimmed(self):
        payload = {**VALID_PAYLOADS[ComplianceRecordCreate], "title": "   Rule 1.7 conflicts   "}

        assert validate_payload(ComplianceRecordCreate, payload).title == "Rule 1.7 conflicts"

    @pytest.mark.parametrize("title", ["ab", "   ab   ", "x" * 201])
    def test_title_length(self, title):
        payload = {**VALID_PAYLOADS[PrivacyComplianceCreate], "title": title}

        assert "title" in failed_fields(PrivacyComplianceCreate, payload)

    def test_optional_description_may_be_empty(self):
        payload = {**VALID_PAYLOADS[PrivacyComplianceCreate], "description": "", "assignedTo": ""}

        assert validate_payload(PrivacyComplianceCreate, payload).description == ""

    def test_enumerations_are_exact(self):
        payload = {**VALID_PAYLOADS[RiskAssessmentCreate], "riskLevel": "medium"}

        assert "riskLevel" in failed_fields(RiskAssessmentCreate, payload)

    @pytest.mark.parametrize("score, valid", [(0, True), (100, True), (-1, False), (100.5, False)])
    def test_overall_risk_score_range(self, score, valid):
        payload = {**VALID_PAYLOADS[RiskAssessmentCreate], "overallRiskScore": score}

        if valid:
            assert validate_payload(RiskAssessmentCreate, payload).overall_risk_score == score
        else:
            assert "overallRiskScore" in failed_fields(RiskAssessmentCreate, payload)

    def test_numbers_and_dates_are_coerced_from_strings(self):
        payload = {**VALID_PAYLOADS[RiskAssessmentCreate], "overallRiskScore": "55.5"}

        assessment = validate_payload(RiskAssessmentCreate, payload)

        assert assessment.overall_risk_score == 55.5
        assert assessment.assessment_date.year == 2024

    def test_object_id_references(self):
        valid = {**VALID_PAYLOADS[MalpracticeCheckCreate], "caseId": "a" * 24}
        invalid = {**VALID_PAYLOADS[MalpracticeCheckCreate], "caseId": "case-1"}

        assert validate_payload(MalpracticeCheckCreate, valid).case_id == "a" * 24
        assert "caseId" in failed_fields(MalpracticeCheckCreate, invalid)

    def test_state_code_is_two_letters(self):
        payload = {
            **VALID_PAYLOADS[RegulatoryComplianceCreate],
            "stateBarRules": {"state": "CAL"},
        }

        assert "stateBarRules.state" in failed_fields(RegulatoryComplianceCreate, payload)

    def test_data_subject_email(self):
        payload = {
            **VALID_PAYLOADS[PrivacyComplianceCreate],
            "dataSubject": {"email": "not-an-email"},
        }

        assert "dataSubject.email" in failed_fields(PrivacyComplianceCreate, payload)

    def test_document_is_camel_case_without_unset_fields(self):
        document = validate_payload(
            ComplianceRecordCreate, VALID_PAYLOADS[ComplianceRecordCreate]
        ).to_document()

        assert document == {
            "recordType": "Ethics Rule",
            "title": "Rule 1.7 conflicts",
            "status": "Active",
            "priority": "Medium",
            "createdBy": "Jane Doe",
        }


# ============================================================================
# QUERIES AND REPORTS
# ============================================================================


class TestAuditLogQuery:
    """Query string rules for the audit trail."""

    def test_defaults(self):
        query = validate_payload(AuditLogQuery, {})

        assert (query.page, query.limit) == (1, 50)

    @pytest.mark.parametrize("params, field", [
        ({"page": "0"}, "page"),
        ({"limit": "101"}, "limit"),
        ({"userId": "jdoe"}, "userId"),
        ({"logType": "Login"}, "logType"),
    ])
    def test_invalid_parameters(self, params, field):
        assert field in failed_fields(AuditLogQuery, params)

    def test_query_strings_are_coerced(self):
        query = validate_payload(
            AuditLogQuery,
            {"page": "2", "limit": "25", "startDate": "2024-01-01T00:00:00"},
        )

        assert (query.page, query.limit) == (2, 25)
        assert query.start_date.tzinfo is not None


class TestComplianceReportRequest:
    """Report request rules."""

    def test_defaults(self):
        request = validate_payload(
            ComplianceReportRequest, {"reportType": "Comprehensive", "generatedBy": "Jane Doe"}
        )

        assert request.include_details is True
        assert request.format == "JSON"

    def test_start_after_end_is_rejected(self):
        with pytest.raises(PayloadValidationError) as exc_info:
            validate_payload(ComplianceReportRequest, {
                "reportType": "Audit Trail",
                "generatedBy": "Jane Doe",
                "startDate": "2024-06-01",
                "endDate": "2024-01-01",
            })

        assert "startDate must not be after endDate" in exc_info.value.first_message

    def test_unknown_report_type(self):
        errors = failed_fields(ComplianceReportRequest, {"reportType": "Weekly", "generatedBy": "Jane Doe"})

        assert "reportType" in errors
