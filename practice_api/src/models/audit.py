"""
Audit logging models.

Provides Pydantic schemas for:
- Audit log entries (authentication, record changes, compliance events)
- Security event logging
- Audit report aggregation rows

Entries are serialized in camelCase for the audit trail endpoint.
"""

import secrets
import time
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from shared.models import CamelModel, new_object_id, utc_now


# ============================================================================
# Enums
# ============================================================================


class AuditAction(str, Enum):
    """
    Audit action types.

    Every event the service records in the audit trail.
    """
    # Authentication actions
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILURE = "login_failure"
    LOGOUT = "logout"
    TOKEN_REFRESH = "token_refresh"

    # User management actions
    USER_REGISTER = "user_register"
    USER_ROLE_UPDATE = "user_role_update"

    # Feature record actions
    ITEM_CREATE = "item_create"
    ITEM_UPDATE = "item_update"
    ITEM_DELETE = "item_delete"

    # Compliance actions
    COMPLIANCE_RECORD_CREATE = "compliance_record_create"
    COMPLIANCE_REPORT_GENERATE = "compliance_report_generate"

    # Security actions
    UNAUTHORIZED_ACCESS = "unauthorized_access"
    PERMISSION_DENIED = "permission_denied"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"


class AuditLogType(str, Enum):
    """Broad classification used to filter the audit trail."""
    USER_ACTION = "User Action"
    SYSTEM_EVENT = "System Event"
    DATA_ACCESS = "Data Access"
    DATA_MODIFICATION = "Data Modification"
    AUTHENTICATION = "Authentication"
    AUTHORIZATION = "Authorization"
    SECURITY_EVENT = "Security Event"
    COMPLIANCE_EVENT = "Compliance Event"
    ERROR = "Error"
    OTHER = "Other"


class AuditSeverity(str, Enum):
    INFO = "Info"
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"


class AuditStatus(str, Enum):
    """
    Audit log status.

    Indicates the outcome of the audited action.
    """
    SUCCESS = "Success"
    FAILED = "Failed"
    WARNING = "Warning"
    ERROR = "Error"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"


class ActionCategory(str, Enum):
    CREATE = "Create"
    READ = "Read"
    UPDATE = "Update"
    DELETE = "Delete"
    LOGIN = "Login"
    LOGOUT = "Logout"
    EXPORT = "Export"
    OTHER = "Other"


def new_log_id() -> str:
    """Human-readable log identifier, ``LOG-<epoch ms>-<9 chars>``."""
    return f"LOG-{int(time.time() * 1000)}-{secrets.token_hex(5)[:9]}"


# ============================================================================
# Entries
# ============================================================================


class AuditLogEntry(CamelModel):
    """A single audit trail entry."""
    id: str = Field(default_factory=new_object_id)
    log_id: str = Field(default_factory=new_log_id)
    log_type: AuditLogType = AuditLogType.USER_ACTION
    event_type: str = Field(..., min_length=1, description="Short event name")
    action: str = Field(..., description="Action performed (AuditAction value)")
    action_category: Optional[ActionCategory] = None
    user_id: Optional[str] = Field(None, description="User ID (None for anonymous/system)")
    username: Optional[str] = None
    description: Optional[str] = None
    resource_type: Optional[str] = Field(None, description="Feature slug or record kind")
    resource_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    status_code: Optional[int] = Field(None, ge=100, le=599)
    severity: AuditSeverity = AuditSeverity.INFO
    status: AuditStatus = AuditStatus.SUCCESS
    correlation_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "65a1f0c2e4b0a1b2c3d4e5f6",
                "logId": "LOG-1705312800000-3f9a1c2b7",
                "logType": "Compliance Event",
                "eventType": "Compliance Record Created",
                "action": "compliance_record_create",
                "actionCategory": "Create",
                "username": "jdoe",
                "resourceType": "ComplianceRecord",
                "resourceId": "65a1f0c2e4b0a1b2c3d4e5f7",
                "severity": "Info",
                "status": "Success",
                "timestamp": "2024-01-15T10:00:00Z"
            }
        }
    }


class AuditReportRow(CamelModel):
    """Entry counts grouped by log type and status."""
    log_type: str
    status: str
    count: int = Field(..., ge=0)
    unique_users: int = Field(..., ge=0)


class AuditTrailPage(CamelModel):
    """Response body of the audit trail endpoint."""
    logs: List[AuditLogEntry]
    security_events: List[AuditLogEntry] = Field(default_factory=list)
    report: List[AuditReportRow] = Field(default_factory=list)
    pagination: Dict[str, int]
