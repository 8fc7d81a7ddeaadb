"""
Generic CRUD slice.

A slice owns the reducer and the action creators for one feature. The same
class is instantiated for every catalog entry, so all features share one
implementation of the state transitions:

- synchronous reducers: selection, filters, notifications, pagination, reset
- a pending/fulfilled/rejected lifecycle for each of the five CRUD operations

Reducers are pure: ids and timestamps are generated by the action creators,
never inside ``reduce``.
"""

import structlog
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from shared.models import FeatureItem, ItemPage, Pagination, utc_now
from practice_api.src.features.catalog import FeatureDefinition
from practice_api.src.store.state import (
    FeatureState,
    Notification,
    NotificationType,
    initial_state,
)

logger = structlog.get_logger(__name__)


class CrudOperation(str, Enum):
    """The five asynchronous operations of every feature."""

    FETCH_ITEMS = "fetch_items"
    FETCH_ITEM = "fetch_item"
    CREATE_ITEM = "create_item"
    UPDATE_ITEM = "update_item"
    DELETE_ITEM = "delete_item"

    @property
    def loading_flag(self) -> str:
        if self is CrudOperation.FETCH_ITEMS:
            return "items"
        if self is CrudOperation.FETCH_ITEM:
            return "details"
        return "operations"


class Phase(str, Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


_FALLBACK_ERRORS = {
    CrudOperation.FETCH_ITEMS: "Failed to fetch {slug} items",
    CrudOperation.FETCH_ITEM: "Failed to fetch {slug} item",
    CrudOperation.CREATE_ITEM: "Failed to create {slug} item",
    CrudOperation.UPDATE_ITEM: "Failed to update {slug} item",
    CrudOperation.DELETE_ITEM: "Failed to delete {slug} item",
}

_SUCCESS_MESSAGES = {
    CrudOperation.CREATE_ITEM: "{name} item created successfully",
    CrudOperation.UPDATE_ITEM: "{name} item updated successfully",
    CrudOperation.DELETE_ITEM: "{name} item deleted successfully",
}


@dataclass(frozen=True)
class Action:
    """
    A state transition request.

    Attributes:
        type: ``<slug>/<reducer>`` or ``<slug>/<operation>/<phase>``
        feature: Slug of the slice that handles the action
        payload: Reducer input (item, filters, page, id, ...)
        error: Error message for rejected operations
        meta: Extra data such as the request arguments or a notification
    """

    type: str
    feature: str
    payload: Any = None
    error: Optional[str] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def phase(self) -> Optional[Phase]:
        suffix = self.type.rsplit("/", 1)[-1]
        try:
            return Phase(suffix)
        except ValueError:
            return None


def _unique_by_id(items: List[FeatureItem]) -> List[FeatureItem]:
    seen = set()
    unique = []
    for item in items:
        if item.id not in seen:
            seen.add(item.id)
            unique.append(item)
    return unique


class CrudSlice:
    """
    Reducer and action creators for one feature.

    Example:
        >>> crud = CrudSlice(get_feature("civil-rights"))
        >>> state = crud.initial_state()
        >>> state = crud.reduce(state, crud.set_filters({"status": "active"}))
        >>> state.filters
        {'status': 'active'}
    """

    def __init__(self, feature: FeatureDefinition):
        self.feature = feature
        self.name = feature.slug
        self._reducers: Dict[str, Callable[[FeatureState, Action], FeatureState]] = {
            "set_selected_item": self._set_selected_item,
            "set_filters": self._set_filters,
            "clear_filters": self._clear_filters,
            "clear_error": self._clear_error,
            "add_notification": self._add_notification,
            "remove_notification": self._remove_notification,
            "clear_notifications": self._clear_notifications,
            "set_pagination": self._set_pagination,
            "reset_state": self._reset_state,
        }

    def initial_state(self) -> FeatureState:
        return initial_state()

    def _action(self, reducer: str, payload: Any = None, **meta: Any) -> Action:
        return Action(type=f"{self.name}/{reducer}", feature=self.name, payload=payload, meta=meta)

    def new_notification(self, type: NotificationType, message: str) -> Notification:
        return Notification(
            id=f"{self.name}_{int(utc_now().timestamp() * 1000)}_{uuid4().hex[:6]}",
            type=type,
            message=message,
        )

    def fallback_error(self, operation: CrudOperation) -> str:
        return _FALLBACK_ERRORS[operation].format(slug=self.name)

    # ========================================================================
    # Action creators
    # ========================================================================

    def set_selected_item(self, item: Optional[FeatureItem]) -> Action:
        return self._action("set_selected_item", item)

    def set_filters(self, filters: Dict[str, Any]) -> Action:
        return self._action("set_filters", dict(filters))

    def clear_filters(self) -> Action:
        return self._action("clear_filters")

    def clear_error(self) -> Action:
        return self._action("clear_error")

    def add_notification(self, type: NotificationType, message: str) -> Action:
        return self._action("add_notification", self.new_notification(type, message))

    def remove_notification(self, notification_id: str) -> Action:
        return self._action("remove_notification", notification_id)

    def clear_notifications(self) -> Action:
        return self._action("clear_notifications")

    def set_pagination(self, **fields: int) -> Action:
        return self._action("set_pagination", fields)

    def reset_state(self) -> Action:
        return self._action("reset_state")

    def pending(self, operation: CrudOperation, **meta: Any) -> Action:
        return Action(
            type=f"{self.name}/{operation.value}/{Phase.PENDING.value}",
            feature=self.name,
            meta={"operation": operation, **meta},
        )

    def fulfilled(self, operation: CrudOperation, payload: Any, **meta: Any) -> Action:
        template = _SUCCESS_MESSAGES.get(operation)
        if template is not None:
            meta["notification"] = self.new_notification(
                NotificationType.SUCCESS, template.format(name=self.feature.name)
            )
        return Action(
            type=f"{self.name}/{operation.value}/{Phase.FULFILLED.value}",
            feature=self.name,
            payload=payload,
            meta={"operation": operation, **meta},
        )

    def rejected(self, operation: CrudOperation, message: Optional[str], **meta: Any) -> Action:
        return Action(
            type=f"{self.name}/{operation.value}/{Phase.REJECTED.value}",
            feature=self.name,
            error=message or self.fallback_error(operation),
            meta={"operation": operation, **meta},
        )

    # ========================================================================
    # Reducer
    # ========================================================================

    def reduce(self, state: FeatureState, action: Action) -> FeatureState:
        """Return the state after ``action``; unrelated actions return ``state``."""
        if action.feature != self.name:
            return state

        phase = action.phase
        if phase is not None:
            operation: CrudOperation = action.meta["operation"]
            if phase is Phase.PENDING:
                return self._on_pending(state, operation)
            if phase is Phase.REJECTED:
                return self._on_rejected(state, operation, action)
            return self._on_fulfilled(state, operation, action)

        reducer = self._reducers.get(action.type.split("/", 1)[-1])
        if reducer is None:
            logger.debug("store_action_ignored", feature=self.name, action=action.type)
            return state
        return reducer(state, action)

    @staticmethod
    def _with_loading(state: FeatureState, flag: str, value: bool) -> Dict[str, Any]:
        return {"loading": state.loading.model_copy(update={flag: value})}

    def _on_pending(self, state: FeatureState, operation: CrudOperation) -> FeatureState:
        update = self._with_loading(state, operation.loading_flag, True)
        update["error"] = None
        return state.model_copy(update=update)

    def _on_rejected(self, state: FeatureState, operation: CrudOperation, action: Action) -> FeatureState:
        update = self._with_loading(state, operation.loading_flag, False)
        update["error"] = action.error or self.fallback_error(operation)
        return state.model_copy(update=update)

    def _on_fulfilled(self, state: FeatureState, operation: CrudOperation, action: Action) -> FeatureState:
        update = self._with_loading(state, operation.loading_flag, False)
        notification: Optional[Notification] = action.meta.get("notification")
        if notification is not None:
            update["notifications"] = [*state.notifications, notification]

        if operation is CrudOperation.FETCH_ITEMS:
            page: ItemPage = action.payload
            update["items"] = _unique_by_id(list(page.items))
            if page.pagination is not None:
                update["pagination"] = page.pagination

        elif operation is CrudOperation.FETCH_ITEM:
            update["selected_item"] = action.payload

        elif operation is CrudOperation.CREATE_ITEM:
            created: FeatureItem = action.payload
            update["items"] = [created, *(i for i in state.items if i.id != created.id)]

        elif operation is CrudOperation.UPDATE_ITEM:
            updated: FeatureItem = action.payload
            update["items"] = [updated if i.id == updated.id else i for i in state.items]
            if state.selected_item is not None and state.selected_item.id == updated.id:
                update["selected_item"] = updated

        elif operation is CrudOperation.DELETE_ITEM:
            deleted_id: str = action.payload
            update["items"] = [i for i in state.items if i.id != deleted_id]
            if state.selected_item is not None and state.selected_item.id == deleted_id:
                update["selected_item"] = None

        return state.model_copy(update=update)

    # Synchronous reducers

    def _set_selected_item(self, state: FeatureState, action: Action) -> FeatureState:
        return state.model_copy(update={"selected_item": action.payload})

    def _set_filters(self, state: FeatureState, action: Action) -> FeatureState:
        return state.model_copy(update={"filters": {**state.filters, **action.payload}})

    def _clear_filters(self, state: FeatureState, action: Action) -> FeatureState:
        return state.model_copy(update={"filters": {}})

    def _clear_error(self, state: FeatureState, action: Action) -> FeatureState:
        return state.model_copy(update={"error": None})

    def _add_notification(self, state: FeatureState, action: Action) -> FeatureState:
        return state.model_copy(update={"notifications": [*state.notifications, action.payload]})

    def _remove_notification(self, state: FeatureState, action: Action) -> FeatureState:
        remaining = [n for n in state.notifications if n.id != action.payload]
        return state.model_copy(update={"notifications": remaining})

    def _clear_notifications(self, state: FeatureState, action: Action) -> FeatureState:
        return state.model_copy(update={"notifications": []})

    def _set_pagination(self, state: FeatureState, action: Action) -> FeatureState:
        merged = Pagination(**{**state.pagination.model_dump(), **action.payload})
        return state.model_copy(update={"pagination": merged})

    def _reset_state(self, state: FeatureState, action: Action) -> FeatureState:
        return self.initial_state()
