"""
Unit tests for audit logging functionality.

Tests cover:
- Audit log entry creation and defaults
- Security events
- Filtering, pagination and the aggregate report
- Bounded retention
- Sensitive data masking in audit details
"""

from datetime import timedelta

import pytest

from practice_api.src.middleware.audit import MASK, mask_sensitive_data
from practice_api.src.models.audit import (
    ActionCategory,
    AuditAction,
    AuditLogType,
    AuditSeverity,
    AuditStatus,
)
from practice_api.src.repositories.audit_repo import AuditRepository
from practice_api.src.validators.compliance import AuditLogQuery
from shared.models import utc_now

USER_ID = "a" * 24


@pytest.fixture
def audit_repo() -> AuditRepository:
    return AuditRepository()


async def log_item_change(repo: AuditRepository, action: AuditAction, username: str = "jdoe", **fields):
    return await repo.create_audit_log(
        action=action,
        event_type="Item Changed",
        log_type=AuditLogType.DATA_MODIFICATION,
        username=username,
        resource_type="case-management",
        **fields,
    )


# ============================================================================
# ENTRY CREATION
# ============================================================================


class TestAuditLogEntry:
    """Test audit log entry creation."""

    async def test_entry_defaults(self, audit_repo):
        entry = await audit_repo.create_audit_log(action=AuditAction.LOGIN_SUCCESS, event_type="Login")

        assert entry.action == "login_success"
        assert entry.log_type == AuditLogType.USER_ACTION
        assert entry.severity == AuditSeverity.INFO
        assert entry.status == AuditStatus.SUCCESS
        assert entry.user_id is None
        assert entry.timestamp.tzinfo is not None
        assert len(entry.id) == 24

    async def test_log_id_format(self, audit_repo):
        entry = await audit_repo.create_audit_log(action=AuditAction.LOGOUT, event_type="Logout")
        prefix, millis, suffix = entry.log_id.split("-")

        assert prefix == "LOG"
        assert millis.isdigit()
        assert len(suffix) == 9

    async def test_entry_captures_request_fields(self, audit_repo):
        entry = await log_item_change(
            audit_repo,
            AuditAction.ITEM_CREATE,
            user_id=USER_ID,
            resource_id="b" * 24,
            action_category=ActionCategory.CREATE,
            details={"name": "Smith v. Jones"},
            ip_address="10.0.0.1",
            user_agent="pytest",
            status_code=201,
            correlation_id="req-1",
        )

        assert entry.user_id == USER_ID
        assert entry.resource_type == "case-management"
        assert entry.details == {"name": "Smith v. Jones"}
        assert entry.status_code == 201

    async def test_entry_serializes_in_camel_case(self, audit_repo):
        entry = await log_item_change(audit_repo, AuditAction.ITEM_UPDATE)
        data = entry.to_wire()

        assert data["logType"] == "Data Modification"
        assert data["resourceType"] == "case-management"
        assert "log_type" not in data

    async def test_security_event_defaults(self, audit_repo):
        entry = await audit_repo.log_security_event(
            action=AuditAction.PERMISSION_DENIED,
            event_type="Permission Denied",
            username="jdoe",
        )

        assert entry.log_type == AuditLogType.SECURITY_EVENT
        assert entry.severity == AuditSeverity.HIGH
        assert entry.status == AuditStatus.FAILED

    async def test_security_event_severity_override(self, audit_repo):
        entry = await audit_repo.log_security_event(
            action=AuditAction.LOGIN_FAILURE,
            event_type="Login Failed",
            severity=AuditSeverity.MEDIUM,
        )

        assert entry.severity == AuditSeverity.MEDIUM

    async def test_oldest_entries_are_dropped(self):
        repo = AuditRepository(max_entries=3)
        for _ in range(5):
            await repo.create_audit_log(action=AuditAction.LOGOUT, event_type="Logout")

        assert repo.count() == 3


# ============================================================================
# QUERIES
# ============================================================================


class TestAuditQueries:
    """Test filtering, pagination and aggregation."""

    async def test_list_is_newest_first(self, audit_repo):
        first = await log_item_change(audit_repo, AuditAction.ITEM_CREATE)
        second = await log_item_change(audit_repo, AuditAction.ITEM_DELETE)

        entries, total = await audit_repo.list_audit_logs(AuditLogQuery())

        assert [entry.id for entry in entries] == [second.id, first.id]
        assert total == 2

    async def test_pagination(self, audit_repo):
        for _ in range(7):
            await log_item_change(audit_repo, AuditAction.ITEM_UPDATE)

        entries, total = await audit_repo.list_audit_logs(AuditLogQuery(page=2, limit=5))

        assert len(entries) == 2
        assert total == 7

    async def test_filter_by_username_and_log_type(self, audit_repo):
        await log_item_change(audit_repo, AuditAction.ITEM_CREATE, username="jdoe")
        await log_item_change(audit_repo, AuditAction.ITEM_CREATE, username="asmith")
        await audit_repo.log_security_event(AuditAction.PERMISSION_DENIED, "Denied", username="jdoe")

        entries, total = await audit_repo.list_audit_logs(
            AuditLogQuery(username="jdoe", log_type=AuditLogType.DATA_MODIFICATION)
        )

        assert total == 1
        assert entries[0].username == "jdoe"
        assert entries[0].log_type == AuditLogType.DATA_MODIFICATION

    async def test_filter_by_date_range(self, audit_repo):
        await log_item_change(audit_repo, AuditAction.ITEM_CREATE)

        _, in_range = await audit_repo.list_audit_logs(
            AuditLogQuery(start_date=utc_now() - timedelta(hours=1))
        )
        _, future = await audit_repo.list_audit_logs(
            AuditLogQuery(start_date=utc_now() + timedelta(hours=1))
        )

        assert in_range == 1
        assert future == 0

    async def test_security_events_only(self, audit_repo):
        await log_item_change(audit_repo, AuditAction.ITEM_CREATE)
        denied = await audit_repo.log_security_event(AuditAction.PERMISSION_DENIED, "Denied")

        events = await audit_repo.get_security_events(days=1, limit=10)

        assert [event.id for event in events] == [denied.id]

    async def test_report_groups_by_type_and_status(self, audit_repo):
        await log_item_change(audit_repo, AuditAction.ITEM_CREATE, username="jdoe")
        await log_item_change(audit_repo, AuditAction.ITEM_UPDATE, username="jdoe")
        await log_item_change(audit_repo, AuditAction.ITEM_DELETE, username="asmith")
        await audit_repo.log_security_event(AuditAction.PERMISSION_DENIED, "Denied", username="jdoe")

        rows = await audit_repo.get_audit_report(AuditLogQuery())

        assert [(row.log_type, row.status, row.count, row.unique_users) for row in rows] == [
            ("Data Modification", "Success", 3, 2),
            ("Security Event", "Failed", 1, 1),
        ]

    async def test_resource_history(self, audit_repo):
        await log_item_change(audit_repo, AuditAction.ITEM_CREATE, resource_id="b" * 24)
        await log_item_change(audit_repo, AuditAction.ITEM_UPDATE, resource_id="b" * 24)
        await log_item_change(audit_repo, AuditAction.ITEM_CREATE, resource_id="c" * 24)

        history = await audit_repo.get_resource_history("case-management", "b" * 24)

        assert [entry.action for entry in history] == ["item_update", "item_create"]


# ============================================================================
# SENSITIVE DATA MASKING
# ============================================================================


class TestSensitiveDataMasking:
    """Test masking of secrets copied into audit details."""

    def test_masks_top_level_fields(self):
        masked = mask_sensitive_data({"username": "jdoe", "password": "SecurePass123!"})

        assert masked == {"username": "jdoe", "password": MASK}

    def test_field_names_are_case_insensitive(self):
        masked = mask_sensitive_data({"refreshToken": "abc", "Authorization": "Bearer x"})

        assert masked == {"refreshToken": MASK, "Authorization": MASK}

    def test_masks_nested_structures(self):
        data = {"user": {"ssn": "123-45-6789", "name": "Ann"}, "tokens": [{"accessToken": "abc"}]}

        masked = mask_sensitive_data(data)

        assert masked["user"] == {"ssn": MASK, "name": "Ann"}
        assert masked["tokens"] == [{"accessToken": MASK}]

    def test_original_is_not_modified(self):
        data = {"password": "secret"}
        mask_sensitive_data(data)

        assert data == {"password": "secret"}

    def test_primitives_pass_through(self):
        assert mask_sensitive_data("plain") == "plain"
        assert mask_sensitive_data(None) is None
