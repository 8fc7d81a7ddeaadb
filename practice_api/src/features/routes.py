"""
Route template shared by every feature.

Each feature exposes the same four page routes. Each route is tied to the
policy action it requires, so the HTTP router and any UI shell derive their
guards from the same table.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple

from practice_api.src.features.catalog import FeatureDefinition


class FeatureAction(str, Enum):
    """Actions a role may be granted on a feature."""

    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class FeatureView(str, Enum):
    """The page a route renders."""

    MAIN = "main"
    CREATE = "create"
    DETAIL = "detail"
    EDIT = "edit"


@dataclass(frozen=True)
class RouteTemplate:
    """One of the four per-feature routes."""

    path: str
    view: FeatureView
    action: FeatureAction


FEATURE_ROUTE_TEMPLATE: Tuple[RouteTemplate, ...] = (
    RouteTemplate("/", FeatureView.MAIN, FeatureAction.READ),
    RouteTemplate("/create", FeatureView.CREATE, FeatureAction.CREATE),
    RouteTemplate("/:id", FeatureView.DETAIL, FeatureAction.READ),
    RouteTemplate("/:id/edit", FeatureView.EDIT, FeatureAction.UPDATE),
)

ACTION_BY_VIEW: Dict[FeatureView, FeatureAction] = {
    route.view: route.action for route in FEATURE_ROUTE_TEMPLATE
}


def page_routes(feature: FeatureDefinition) -> List[Dict[str, str]]:
    """
    Concrete page routes of one feature.

    Example:
        >>> page_routes(get_feature("civil-rights"))[3]
        {'path': '/civil-rights/:id/edit', 'view': 'edit', 'action': 'update'}
    """
    routes = []
    for route in FEATURE_ROUTE_TEMPLATE:
        suffix = "" if route.path == "/" else route.path
        routes.append({
            "path": f"/{feature.slug}{suffix}",
            "view": route.view.value,
            "action": route.action.value,
        })
    return routes
