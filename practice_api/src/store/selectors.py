"""Read accessors over the root state returned by ``FeatureStore.get_state``."""

from typing import Any, Dict, List, Mapping, Optional

from shared.models import FeatureItem, Pagination
from practice_api.src.store.state import FeatureState, LoadingState, Notification

RootState = Mapping[str, FeatureState]


def select_items(root: RootState, slug: str) -> List[FeatureItem]:
    return root[slug].items


def select_selected_item(root: RootState, slug: str) -> Optional[FeatureItem]:
    return root[slug].selected_item


def select_loading(root: RootState, slug: str) -> LoadingState:
    return root[slug].loading


def select_error(root: RootState, slug: str) -> Optional[str]:
    return root[slug].error


def select_filters(root: RootState, slug: str) -> Dict[str, Any]:
    return root[slug].filters


def select_notifications(root: RootState, slug: str) -> List[Notification]:
    return root[slug].notifications


def select_pagination(root: RootState, slug: str) -> Pagination:
    return root[slug].pagination
