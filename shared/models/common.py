"""Common Pydantic models shared by the API service, the state store and the client."""

import secrets
from datetime import datetime, timezone
from enum import Enum
from math import ceil
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Timezone-aware current time."""
    return datetime.now(timezone.utc)


# Largest page any list operation returns
MAX_PAGE_SIZE = 100


def new_object_id() -> str:
    """24 hex character identifier, the shape of a MongoDB ObjectId."""
    return secrets.token_hex(12)


class HealthStatus(str, Enum):
    """Health status enum."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


class ItemStatus(str, Enum):
    """Lifecycle status of a feature record."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class CamelModel(BaseModel):
    """Base model that speaks camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> Dict[str, Any]:
        """Serialize to the JSON shape used over HTTP."""
        return self.model_dump(mode="json", by_alias=True)


class FeatureItem(CamelModel):
    """A single record of any feature (case, client, contract, ...)."""

    id: str = Field(..., min_length=1, description="Record identifier")
    name: str = Field(..., min_length=1, description="Display name")
    description: Optional[str] = Field(None, description="Free-text description")
    status: ItemStatus = Field(ItemStatus.ACTIVE, description="Record status")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class FeatureItemCreate(CamelModel):
    """Payload for creating a record.

    Every field is optional and unknown fields are ignored, so feature
    specific payloads (``caseType``, ``clientId``, ...) are accepted.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    status: Optional[ItemStatus] = None

    @field_validator("name", "description")
    @classmethod
    def strip_text(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        return v or None


class FeatureItemUpdate(FeatureItemCreate):
    """Partial update of a record; only fields that were sent are applied."""


class Pagination(CamelModel):
    """Advisory pagination block. Never cross-checked against ``items``."""

    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1)
    total: int = Field(0, ge=0)
    total_pages: int = Field(0, ge=0)

    @classmethod
    def for_total(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(
            page=page,
            limit=limit,
            total=total,
            total_pages=ceil(total / limit) if limit else 0,
        )


class ItemPage(CamelModel):
    """A page of records as returned by list operations."""

    items: List[FeatureItem] = Field(default_factory=list)
    pagination: Optional[Pagination] = None


class ListParams(CamelModel):
    """Query parameters accepted by list operations."""

    search_term: Optional[str] = None
    status: Optional[ItemStatus] = None
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=MAX_PAGE_SIZE)

    def to_query(self) -> Dict[str, Any]:
        """Render as query-string parameters, dropping unset filters."""
        return {
            key: value
            for key, value in self.model_dump(mode="json", by_alias=True).items()
            if value is not None
        }
