"""Feature catalog and the per-feature route template."""

from practice_api.src.features.catalog import (
    FEATURE_CATALOG,
    FEATURES_BY_SLUG,
    FeatureCategory,
    FeatureDefinition,
    UnknownFeatureError,
    get_feature,
    list_features,
)
from practice_api.src.features.routes import (
    FEATURE_ROUTE_TEMPLATE,
    FeatureAction,
    FeatureView,
    RouteTemplate,
    page_routes,
)

__all__ = [
    "FEATURE_CATALOG",
    "FEATURES_BY_SLUG",
    "FEATURE_ROUTE_TEMPLATE",
    "FeatureAction",
    "FeatureCategory",
    "FeatureDefinition",
    "FeatureView",
    "RouteTemplate",
    "UnknownFeatureError",
    "get_feature",
    "list_features",
    "page_routes",
]
