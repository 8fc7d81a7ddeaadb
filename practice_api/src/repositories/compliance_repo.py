"""
Compliance record repository.

Holds the six kinds of compliance records (ethics, risk assessments,
malpractice checks, regulatory obligations, privacy matters and liability
records) in process memory. Records are camelCase documents; nested values
are addressed with dotted paths (``dataSubject.subjectId``).
"""

import asyncio
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

import structlog

from shared.models import new_object_id, utc_now

logger = structlog.get_logger(__name__)

Document = Dict[str, Any]
Predicate = Callable[[Document], bool]


class ComplianceKind(str, Enum):
    """Record kinds, valued by their URL segment."""

    ETHICS = "ethics"
    RISK_ASSESSMENT = "risk-assessment"
    MALPRACTICE = "malpractice-prevention"
    REGULATORY = "regulatory"
    PRIVACY = "privacy"
    LIABILITY = "liability"


def get_path(document: Mapping[str, Any], path: str) -> Any:
    """Value at a dotted path, or None if any segment is missing."""
    value: Any = document
    for part in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
        if value is None:
            return None
    return value


class ComplianceRepository:
    """Repository for compliance records."""

    def __init__(self):
        self._records: Dict[ComplianceKind, List[Document]] = {kind: [] for kind in ComplianceKind}
        self._lock = asyncio.Lock()

    async def insert(self, kind: ComplianceKind, document: Document) -> Document:
        """
        Store a new record.

        Args:
            kind: Record kind
            document: Validated fields (camelCase)

        Returns:
            The stored record with ``id``, ``createdAt`` and ``updatedAt``
        """
        now = utc_now()
        record = {"id": new_object_id(), **document, "createdAt": now, "updatedAt": now}
        async with self._lock:
            self._records[kind].append(record)

        logger.info("compliance_record_stored", kind=kind.value, record_id=record["id"])
        return record

    async def find(
        self,
        kind: ComplianceKind,
        filters: Optional[Mapping[str, Any]] = None,
        predicate: Optional[Predicate] = None,
        limit: Optional[int] = 100,
    ) -> List[Document]:
        """
        Records matching every filter, newest first.

        Args:
            kind: Record kind
            filters: Dotted path -> required value; None values are ignored
            predicate: Additional test applied after the filters
            limit: Maximum number of records (None for all)
        """
        active = {path: value for path, value in (filters or {}).items() if value is not None}
        matching = []
        for record in reversed(self._records[kind]):
            if any(get_path(record, path) != value for path, value in active.items()):
                continue
            if predicate is not None and not predicate(record):
                continue
            matching.append(record)
            if limit is not None and len(matching) >= limit:
                break
        return matching

    async def count(self, kind: ComplianceKind, predicate: Optional[Predicate] = None) -> int:
        if predicate is None:
            return len(self._records[kind])
        return sum(1 for record in self._records[kind] if predicate(record))

    async def get(self, kind: ComplianceKind, record_id: str) -> Optional[Document]:
        for record in self._records[kind]:
            if record["id"] == record_id:
                return record
        return None
