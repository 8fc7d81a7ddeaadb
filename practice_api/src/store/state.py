"""State models held by the per-feature CRUD store."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from shared.models import FeatureItem, Pagination, utc_now


class NotificationType(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class Notification(BaseModel):
    """User-facing message queued by a store operation."""

    id: str
    type: NotificationType
    message: str
    timestamp: datetime = Field(default_factory=utc_now)


class LoadingState(BaseModel):
    """In-flight flags; one per kind of request."""

    items: bool = False
    operations: bool = False
    details: bool = False


class FeatureState(BaseModel):
    """
    Client-side state of one feature.

    ``items`` is kept unique by id. ``pagination`` mirrors whatever the last
    list response reported and is never reconciled with ``items``.
    """

    items: List[FeatureItem] = Field(default_factory=list)
    selected_item: Optional[FeatureItem] = None
    filters: Dict[str, Any] = Field(default_factory=dict)
    loading: LoadingState = Field(default_factory=LoadingState)
    error: Optional[str] = None
    notifications: List[Notification] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)


def initial_state() -> FeatureState:
    """Fresh state: no items, nothing selected, page 1 of 10, nothing loading."""
    return FeatureState()
