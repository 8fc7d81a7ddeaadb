"""
Audit log repository.

Keeps the audit trail in process memory, newest entries last, bounded by
``audit_max_entries``. Provides filtering, pagination and the aggregate
views used by the compliance audit trail endpoint.
"""

import asyncio
from collections import deque
from datetime import timedelta
from typing import Any, Deque, Dict, List, Optional, Tuple

import structlog

from practice_api.src.models.audit import (
    ActionCategory,
    AuditAction,
    AuditLogEntry,
    AuditLogType,
    AuditReportRow,
    AuditSeverity,
    AuditStatus,
)
from practice_api.src.validators.compliance import AuditLogQuery
from shared.models import utc_now

logger = structlog.get_logger(__name__)


class AuditRepository:
    """Repository for audit log entries."""

    def __init__(self, max_entries: int = 10000):
        """
        Initialize audit repository.

        Args:
            max_entries: Oldest entries are dropped beyond this many
        """
        self._entries: Deque[AuditLogEntry] = deque(maxlen=max_entries)
        self._lock = asyncio.Lock()

    async def create_audit_log(
        self,
        action: AuditAction,
        event_type: str,
        log_type: AuditLogType = AuditLogType.USER_ACTION,
        action_category: Optional[ActionCategory] = None,
        user_id: Optional[str] = None,
        username: Optional[str] = None,
        description: Optional[str] = None,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        status_code: Optional[int] = None,
        severity: AuditSeverity = AuditSeverity.INFO,
        status: AuditStatus = AuditStatus.SUCCESS,
        correlation_id: Optional[str] = None,
    ) -> AuditLogEntry:
        """
        Create a new audit log entry.

        Args:
            action: Action performed
            event_type: Short human-readable event name
            log_type: Audit trail classification
            action_category: Create/Read/Update/... bucket
            user_id: User ID (None for anonymous)
            username: Username at the time of the action
            description: Free-text description
            resource_type: Type of resource
            resource_id: Resource identifier
            details: Additional details
            ip_address: Client IP address
            user_agent: Client user agent
            status_code: HTTP status code
            severity: Entry severity
            status: Outcome of the action
            correlation_id: Request correlation ID

        Returns:
            Created audit log entry
        """
        entry = AuditLogEntry(
            action=action.value,
            event_type=event_type,
            log_type=log_type,
            action_category=action_category,
            user_id=user_id,
            username=username,
            description=description,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
            ip_address=ip_address,
            user_agent=user_agent,
            status_code=status_code,
            severity=severity,
            status=status,
            correlation_id=correlation_id,
        )
        async with self._lock:
            self._entries.append(entry)

        logger.debug(
            "audit_log_created",
            audit_id=entry.id,
            user_id=user_id,
            action=action.value,
            resource_type=resource_type,
        )
        return entry

    async def log_security_event(self, action: AuditAction, event_type: str, **fields: Any) -> AuditLogEntry:
        """Record a security event (High severity unless overridden)."""
        fields.setdefault("severity", AuditSeverity.HIGH)
        fields.setdefault("status", AuditStatus.FAILED)
        return await self.create_audit_log(
            action=action,
            event_type=event_type,
            log_type=AuditLogType.SECURITY_EVENT,
            **fields,
        )

    def _matches(self, entry: AuditLogEntry, query: AuditLogQuery) -> bool:
        if query.log_type and entry.log_type.value != query.log_type:
            return False
        if query.user_id and entry.user_id != query.user_id:
            return False
        if query.username and entry.username != query.username:
            return False
        if query.resource_type and entry.resource_type != query.resource_type:
            return False
        if query.severity and entry.severity.value != query.severity:
            return False
        if query.status and entry.status.value != query.status:
            return False
        if query.start_date and entry.timestamp < query.start_date:
            return False
        if query.end_date and entry.timestamp > query.end_date:
            return False
        return True

    async def list_audit_logs(self, query: AuditLogQuery) -> Tuple[List[AuditLogEntry], int]:
        """
        List audit logs with filtering and pagination.

        Args:
            query: Filter parameters

        Returns:
            Tuple of (entries newest first, total matching count)
        """
        matching = [entry for entry in reversed(self._entries) if self._matches(entry, query)]
        skip = (query.page - 1) * query.limit
        return matching[skip:skip + query.limit], len(matching)

    async def get_security_events(self, days: int = 7, limit: int = 10) -> List[AuditLogEntry]:
        """Most recent security events within the last ``days``."""
        since = utc_now() - timedelta(days=days)
        events = [
            entry for entry in reversed(self._entries)
            if entry.log_type == AuditLogType.SECURITY_EVENT and entry.timestamp >= since
        ]
        return events[:limit]

    async def get_audit_report(self, query: AuditLogQuery) -> List[AuditReportRow]:
        """Counts of matching entries grouped by (log type, status), largest first."""
        groups: Dict[Tuple[str, str], Dict[str, Any]] = {}
        for entry in self._entries:
            if not self._matches(entry, query):
                continue
            key = (entry.log_type.value, entry.status.value)
            group = groups.setdefault(key, {"count": 0, "users": set()})
            group["count"] += 1
            if entry.username:
                group["users"].add(entry.username)

        rows = [
            AuditReportRow(
                log_type=log_type,
                status=status,
                count=group["count"],
                unique_users=len(group["users"]),
            )
            for (log_type, status), group in groups.items()
        ]
        rows.sort(key=lambda row: row.count, reverse=True)
        return rows

    async def get_resource_history(self, resource_type: str, resource_id: str) -> List[AuditLogEntry]:
        return [
            entry for entry in reversed(self._entries)
            if entry.resource_type == resource_type and entry.resource_id == resource_id
        ]

    def count(self) -> int:
        return len(self._entries)
