"""
Unit tests for the in-memory feature repository and the registry.

Tests cover:
- Seed data and default values on create
- Search, status filter and pagination
- Partial updates, deletes and missing ids
- Status counts
"""

import pytest

from practice_api.src.features.catalog import get_feature
from practice_api.src.repositories.feature_repo import (
    FeatureRepositoryRegistry,
    InMemoryFeatureRepository,
    ItemNotFoundError,
)
from shared.models import FeatureItemCreate, FeatureItemUpdate, ItemStatus, ListParams


@pytest.fixture
def repository() -> InMemoryFeatureRepository:
    return InMemoryFeatureRepository(get_feature("family-law"), delay_range=(0, 0))


@pytest.fixture
def empty_repository() -> InMemoryFeatureRepository:
    return InMemoryFeatureRepository(get_feature("family-law"), delay_range=(0, 0), seed=False)


# ============================================================================
# SEED AND CREATE
# ============================================================================


class TestCreate:
    """Test record creation."""

    async def test_seeded_with_two_records(self, repository):
        page = await repository.list_items()

        assert sorted(item.name for item in page.items) == ["Family Law Record 1", "Family Law Record 2"]
        assert all(item.status == ItemStatus.ACTIVE for item in page.items)

    async def test_create_uses_default_name_and_status(self, empty_repository):
        item = await empty_repository.create_item(FeatureItemCreate())

        assert item.name == "New Family Law"
        assert item.status == ItemStatus.ACTIVE
        assert len(item.id) == 24
        assert item.created_at.tzinfo is not None

    async def test_create_ignores_unknown_fields(self, empty_repository):
        data = FeatureItemCreate.model_validate({"name": "Custody review", "custodyType": "joint"})
        item = await empty_repository.create_item(data)

        assert item.name == "Custody review"

    async def test_blank_name_falls_back_to_default(self, empty_repository):
        item = await empty_repository.create_item(FeatureItemCreate(name="   "))

        assert item.name == "New Family Law"

    async def test_newest_record_listed_first(self, repository):
        created = await repository.create_item(FeatureItemCreate(name="Latest"))

        page = await repository.list_items()

        assert page.items[0].id == created.id


# ============================================================================
# LIST FILTERS
# ============================================================================


class TestListFilters:
    """Test search, status and pagination."""

    async def test_search_is_case_insensitive_on_name_and_description(self, empty_repository):
        await empty_repository.create_item(FeatureItemCreate(name="Adoption", description="Smith family"))
        await empty_repository.create_item(FeatureItemCreate(name="SMITH divorce"))
        await empty_repository.create_item(FeatureItemCreate(name="Custody"))

        page = await empty_repository.list_items(ListParams(search_term="smith"))

        assert sorted(item.name for item in page.items) == ["Adoption", "SMITH divorce"]

    async def test_status_filter(self, empty_repository):
        await empty_repository.create_item(FeatureItemCreate(name="Open"))
        await empty_repository.create_item(FeatureItemCreate(name="Closed", status=ItemStatus.INACTIVE))

        page = await empty_repository.list_items(ListParams(status=ItemStatus.INACTIVE))

        assert [item.name for item in page.items] == ["Closed"]

    async def test_pagination(self, empty_repository):
        for index in range(25):
            await empty_repository.create_item(FeatureItemCreate(name=f"Matter {index}"))

        page = await empty_repository.list_items(ListParams(page=3, limit=10))

        assert len(page.items) == 5
        assert page.pagination.total == 25
        assert page.pagination.total_pages == 3
        assert page.pagination.page == 3

    async def test_page_past_the_end_is_empty(self, repository):
        page = await repository.list_items(ListParams(page=5, limit=10))

        assert page.items == []
        assert page.pagination.total == 2


# ============================================================================
# UPDATE AND DELETE
# ============================================================================


class TestUpdateDelete:
    """Test partial updates and deletes."""

    async def test_partial_update_keeps_other_fields(self, empty_repository):
        item = await empty_repository.create_item(FeatureItemCreate(name="Matter", description="Initial"))

        updated = await empty_repository.update_item(item.id, FeatureItemUpdate(status=ItemStatus.INACTIVE))

        assert updated.name == "Matter"
        assert updated.description == "Initial"
        assert updated.status == ItemStatus.INACTIVE
        assert updated.updated_at >= item.updated_at

    async def test_update_cannot_null_required_fields(self, empty_repository):
        item = await empty_repository.create_item(FeatureItemCreate(name="Matter"))

        updated = await empty_repository.update_item(item.id, FeatureItemUpdate(name=None))

        assert updated.name == "Matter"

    async def test_update_missing_item(self, empty_repository):
        with pytest.raises(ItemNotFoundError) as exc_info:
            await empty_repository.update_item("missing", FeatureItemUpdate(name="x"))

        assert exc_info.value.feature_slug == "family-law"
        assert exc_info.value.item_id == "missing"

    async def test_delete_returns_id(self, repository):
        item = (await repository.list_items()).items[0]

        assert await repository.delete_item(item.id) == item.id
        with pytest.raises(ItemNotFoundError):
            await repository.get_item(item.id)

    async def test_delete_missing_item(self, repository):
        with pytest.raises(ItemNotFoundError):
            await repository.delete_item("missing")

    async def test_count_by_status(self, repository):
        item = (await repository.list_items()).items[0]
        await repository.update_item(item.id, FeatureItemUpdate(status=ItemStatus.INACTIVE))

        assert await repository.count_by_status() == {"active": 1, "inactive": 1}


# ============================================================================
# REGISTRY
# ============================================================================


class TestRegistry:
    """Test lazy creation of repositories."""

    def test_one_repository_per_feature(self):
        registry = FeatureRepositoryRegistry.in_memory(delay_range=(0, 0))
        feature = get_feature("tax-law")

        assert registry.get(feature) is registry.get(feature)
        assert registry.get(feature) is not registry.get(get_feature("family-law"))
        assert registry.loaded() == ["family-law", "tax-law"]

    def test_nothing_loaded_up_front(self):
        assert FeatureRepositoryRegistry.in_memory().loaded() == []
