"""Shared Pydantic models."""

from .common import (
    CamelModel,
    FeatureItem,
    FeatureItemCreate,
    FeatureItemUpdate,
    HealthStatus,
    ItemPage,
    ItemStatus,
    ListParams,
    MAX_PAGE_SIZE,
    Pagination,
    new_object_id,
    utc_now,
)

__all__ = [
    "CamelModel",
    "FeatureItem",
    "FeatureItemCreate",
    "FeatureItemUpdate",
    "HealthStatus",
    "ItemPage",
    "ItemStatus",
    "ListParams",
    "MAX_PAGE_SIZE",
    "Pagination",
    "new_object_id",
    "utc_now",
]
