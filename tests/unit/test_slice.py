"""
Unit tests for the generic CRUD slice.

Tests cover:
- Initial state and reset
- Synchronous reducers (selection, filters, notifications, pagination)
- The pending/fulfilled/rejected lifecycle of the five operations
- Uniqueness of items by id
"""

import pytest

from practice_api.src.features.catalog import get_feature
from practice_api.src.store.slice import Action, CrudOperation, CrudSlice, Phase
from practice_api.src.store.state import FeatureState, NotificationType, initial_state
from shared.models import FeatureItem, ItemPage, Pagination


def make_item(item_id: str, name: str = "Item") -> FeatureItem:
    return FeatureItem(id=item_id, name=name)


@pytest.fixture
def crud() -> CrudSlice:
    return CrudSlice(get_feature("civil-rights"))


# ============================================================================
# INITIAL STATE
# ============================================================================


class TestInitialState:
    """Test the state a slice starts from."""

    def test_initial_state_is_empty(self, crud):
        state = crud.initial_state()

        assert state.items == []
        assert state.selected_item is None
        assert state.filters == {}
        assert state.error is None
        assert state.notifications == []

    def test_initial_loading_flags_are_false(self, crud):
        loading = crud.initial_state().loading

        assert loading.items is False
        assert loading.operations is False
        assert loading.details is False

    def test_initial_pagination(self, crud):
        pagination = crud.initial_state().pagination

        assert (pagination.page, pagination.limit, pagination.total, pagination.total_pages) == (1, 10, 0, 0)

    def test_reset_state_equals_initial_state(self, crud):
        state = crud.reduce(crud.initial_state(), crud.set_filters({"searchTerm": "smith"}))
        state = crud.reduce(state, crud.add_notification(NotificationType.INFO, "hello"))

        reset = crud.reduce(state, crud.reset_state())

        assert reset == initial_state()


# ============================================================================
# SYNCHRONOUS REDUCERS
# ============================================================================


class TestSynchronousReducers:
    """Test reducers that do not involve a repository call."""

    def test_set_selected_item(self, crud):
        item = make_item("a1")
        state = crud.reduce(crud.initial_state(), crud.set_selected_item(item))

        assert state.selected_item == item

    def test_set_filters_merges(self, crud):
        state = crud.reduce(crud.initial_state(), crud.set_filters({"searchTerm": "smith"}))
        state = crud.reduce(state, crud.set_filters({"status": "active"}))

        assert state.filters == {"searchTerm": "smith", "status": "active"}

    def test_clear_filters(self, crud):
        state = crud.reduce(crud.initial_state(), crud.set_filters({"status": "active"}))
        state = crud.reduce(state, crud.clear_filters())

        assert state.filters == {}

    def test_clear_error(self, crud):
        state = crud.initial_state().model_copy(update={"error": "boom"})
        state = crud.reduce(state, crud.clear_error())

        assert state.error is None

    def test_add_notification_generates_id_and_timestamp(self, crud):
        state = crud.reduce(crud.initial_state(), crud.add_notification(NotificationType.SUCCESS, "Saved"))

        assert len(state.notifications) == 1
        notification = state.notifications[0]
        assert notification.id.startswith("civil-rights_")
        assert notification.type == NotificationType.SUCCESS
        assert notification.message == "Saved"
        assert notification.timestamp is not None

    def test_notifications_append(self, crud):
        state = crud.initial_state()
        for message in ("one", "two", "three"):
            state = crud.reduce(state, crud.add_notification(NotificationType.INFO, message))

        assert [n.message for n in state.notifications] == ["one", "two", "three"]
        assert len({n.id for n in state.notifications}) == 3

    def test_remove_notification(self, crud):
        state = crud.reduce(crud.initial_state(), crud.add_notification(NotificationType.INFO, "one"))
        state = crud.reduce(state, crud.add_notification(NotificationType.INFO, "two"))
        first_id = state.notifications[0].id

        state = crud.reduce(state, crud.remove_notification(first_id))

        assert [n.message for n in state.notifications] == ["two"]

    def test_clear_notifications(self, crud):
        state = crud.reduce(crud.initial_state(), crud.add_notification(NotificationType.ERROR, "x"))
        state = crud.reduce(state, crud.clear_notifications())

        assert state.notifications == []

    def test_set_pagination_merges(self, crud):
        state = crud.reduce(crud.initial_state(), crud.set_pagination(page=3))

        assert state.pagination.page == 3
        assert state.pagination.limit == 10

    def test_reducers_do_not_mutate_previous_state(self, crud):
        before = crud.initial_state()
        crud.reduce(before, crud.set_filters({"status": "inactive"}))

        assert before.filters == {}

    def test_actions_of_other_features_are_ignored(self, crud):
        other = CrudSlice(get_feature("case-management"))
        state = crud.initial_state()

        assert crud.reduce(state, other.set_filters({"status": "active"})) is state

    def test_unknown_reducer_is_ignored(self, crud):
        state = crud.initial_state()
        action = Action(type="civil-rights/does_not_exist", feature="civil-rights")

        assert crud.reduce(state, action) is state


# ============================================================================
# ASYNC LIFECYCLE
# ============================================================================


class TestOperationLifecycle:
    """Test the pending, fulfilled and rejected transitions."""

    def test_action_type_carries_phase(self, crud):
        action = crud.pending(CrudOperation.FETCH_ITEMS)

        assert action.type == "civil-rights/fetch_items/pending"
        assert action.phase is Phase.PENDING

    def test_fetch_items_pending_sets_loading_and_clears_error(self, crud):
        state = crud.initial_state().model_copy(update={"error": "old"})
        state = crud.reduce(state, crud.pending(CrudOperation.FETCH_ITEMS))

        assert state.loading.items is True
        assert state.error is None

    def test_fetch_items_fulfilled(self, crud):
        page = ItemPage(
            items=[make_item("a1"), make_item("a2")],
            pagination=Pagination.for_total(1, 10, 2),
        )
        state = crud.reduce(crud.initial_state(), crud.pending(CrudOperation.FETCH_ITEMS))
        state = crud.reduce(state, crud.fulfilled(CrudOperation.FETCH_ITEMS, page))

        assert [i.id for i in state.items] == ["a1", "a2"]
        assert state.pagination.total == 2
        assert state.loading.items is False
        assert state.notifications == []

    def test_fetch_items_without_pagination_keeps_previous(self, crud):
        state = crud.reduce(crud.initial_state(), crud.set_pagination(page=4))
        state = crud.reduce(state, crud.fulfilled(CrudOperation.FETCH_ITEMS, ItemPage(items=[])))

        assert state.pagination.page == 4

    def test_fetch_items_deduplicates_by_id(self, crud):
        page = ItemPage(items=[make_item("a1", "first"), make_item("a1", "second")])
        state = crud.reduce(crud.initial_state(), crud.fulfilled(CrudOperation.FETCH_ITEMS, page))

        assert len(state.items) == 1
        assert state.items[0].name == "first"

    def test_fetch_item_uses_details_flag(self, crud):
        state = crud.reduce(crud.initial_state(), crud.pending(CrudOperation.FETCH_ITEM))
        assert state.loading.details is True
        assert state.loading.items is False

        item = make_item("a1")
        state = crud.reduce(state, crud.fulfilled(CrudOperation.FETCH_ITEM, item))

        assert state.selected_item == item
        assert state.loading.details is False

    def test_create_prepends_and_notifies_once(self, crud):
        state = crud.reduce(
            crud.initial_state(),
            crud.fulfilled(CrudOperation.FETCH_ITEMS, ItemPage(items=[make_item("a1")])),
        )
        state = crud.reduce(state, crud.pending(CrudOperation.CREATE_ITEM))
        assert state.loading.operations is True

        state = crud.reduce(state, crud.fulfilled(CrudOperation.CREATE_ITEM, make_item("b2")))

        assert [i.id for i in state.items] == ["b2", "a1"]
        assert state.loading.operations is False
        assert len(state.notifications) == 1
        assert state.notifications[0].message == "Civil Rights item created successfully"
        assert state.notifications[0].type == NotificationType.SUCCESS

    def test_create_with_existing_id_keeps_items_unique(self, crud):
        state = crud.reduce(
            crud.initial_state(),
            crud.fulfilled(CrudOperation.FETCH_ITEMS, ItemPage(items=[make_item("a1", "old")])),
        )
        state = crud.reduce(state, crud.fulfilled(CrudOperation.CREATE_ITEM, make_item("a1", "new")))

        assert [(i.id, i.name) for i in state.items] == [("a1", "new")]

    def test_update_replaces_in_place_and_selected_item(self, crud):
        items = [make_item("a1"), make_item("a2"), make_item("a3")]
        state = crud.reduce(crud.initial_state(), crud.fulfilled(CrudOperation.FETCH_ITEMS, ItemPage(items=items)))
        state = crud.reduce(state, crud.set_selected_item(items[1]))

        updated = make_item("a2", "Renamed")
        state = crud.reduce(state, crud.fulfilled(CrudOperation.UPDATE_ITEM, updated))

        assert [i.name for i in state.items] == ["Item", "Renamed", "Item"]
        assert state.selected_item.name == "Renamed"
        assert state.notifications[-1].message == "Civil Rights item updated successfully"

    def test_update_leaves_other_selection_alone(self, crud):
        items = [make_item("a1"), make_item("a2")]
        state = crud.reduce(crud.initial_state(), crud.fulfilled(CrudOperation.FETCH_ITEMS, ItemPage(items=items)))
        state = crud.reduce(state, crud.set_selected_item(items[0]))

        state = crud.reduce(state, crud.fulfilled(CrudOperation.UPDATE_ITEM, make_item("a2", "Renamed")))

        assert state.selected_item.name == "Item"

    def test_delete_removes_and_clears_selection(self, crud):
        items = [make_item("a1"), make_item("a2")]
        state = crud.reduce(crud.initial_state(), crud.fulfilled(CrudOperation.FETCH_ITEMS, ItemPage(items=items)))
        state = crud.reduce(state, crud.set_selected_item(items[0]))

        state = crud.reduce(state, crud.fulfilled(CrudOperation.DELETE_ITEM, "a1"))

        assert [i.id for i in state.items] == ["a2"]
        assert state.selected_item is None
        assert state.notifications[-1].message == "Civil Rights item deleted successfully"

    def test_rejected_sets_error_message(self, crud):
        state = crud.reduce(crud.initial_state(), crud.pending(CrudOperation.DELETE_ITEM))
        state = crud.reduce(state, crud.rejected(CrudOperation.DELETE_ITEM, "Network down"))

        assert state.error == "Network down"
        assert state.loading.operations is False

    @pytest.mark.parametrize(
        "operation, expected",
        [
            (CrudOperation.FETCH_ITEMS, "Failed to fetch civil-rights items"),
            (CrudOperation.FETCH_ITEM, "Failed to fetch civil-rights item"),
            (CrudOperation.CREATE_ITEM, "Failed to create civil-rights item"),
            (CrudOperation.UPDATE_ITEM, "Failed to update civil-rights item"),
            (CrudOperation.DELETE_ITEM, "Failed to delete civil-rights item"),
        ],
    )
    def test_rejected_without_message_uses_fallback(self, crud, operation, expected):
        state = crud.reduce(crud.initial_state(), crud.rejected(operation, ""))

        assert state.error == expected

    def test_rejected_does_not_notify(self, crud):
        state = crud.reduce(crud.initial_state(), crud.rejected(CrudOperation.CREATE_ITEM, "bad"))

        assert state.notifications == []
        assert isinstance(state, FeatureState)
