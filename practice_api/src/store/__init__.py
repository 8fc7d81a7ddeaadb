"""Generic per-feature CRUD state store."""

from practice_api.src.store.selectors import (
    select_error,
    select_filters,
    select_items,
    select_loading,
    select_notifications,
    select_pagination,
    select_selected_item,
)
from practice_api.src.store.slice import Action, CrudOperation, CrudSlice, Phase
from practice_api.src.store.state import (
    FeatureState,
    LoadingState,
    Notification,
    NotificationType,
    initial_state,
)
from practice_api.src.store.store import FeatureStore
from practice_api.src.store.thunks import CrudThunks

__all__ = [
    "Action",
    "CrudOperation",
    "CrudSlice",
    "CrudThunks",
    "FeatureState",
    "FeatureStore",
    "LoadingState",
    "Notification",
    "NotificationType",
    "Phase",
    "initial_state",
    "select_error",
    "select_filters",
    "select_items",
    "select_loading",
    "select_notifications",
    "select_pagination",
    "select_selected_item",
]
