"""
Feature record repositories.

A single repository interface serves every feature in the catalog. Two
implementations are provided:

- InMemoryFeatureRepository: per-process dict storage with fabricated seed
  records and artificial latency. Data does not survive a restart.
- HttpFeatureRepository: the same operations over the service's REST API,
  through the ApiClient.
"""

import asyncio
import random
import structlog
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple

from shared.models import (
    FeatureItem,
    FeatureItemCreate,
    FeatureItemUpdate,
    ItemPage,
    ItemStatus,
    ListParams,
    Pagination,
    new_object_id,
    utc_now,
)
from practice_api.src.client.api_client import ApiClient
from practice_api.src.features.catalog import FeatureDefinition

logger = structlog.get_logger(__name__)


class ItemNotFoundError(LookupError):
    """Raised when a record id does not exist in a feature."""

    def __init__(self, feature_slug: str, item_id: str):
        super().__init__(f"{feature_slug} item {item_id} not found")
        self.feature_slug = feature_slug
        self.item_id = item_id


class FeatureRepository(ABC):
    """Operations every feature supports."""

    def __init__(self, feature: FeatureDefinition):
        self.feature = feature

    @abstractmethod
    async def list_items(self, params: Optional[ListParams] = None) -> ItemPage:
        """Return one page of records matching the filters."""

    @abstractmethod
    async def get_item(self, item_id: str) -> FeatureItem:
        """Return a record or raise ItemNotFoundError."""

    @abstractmethod
    async def create_item(self, data: FeatureItemCreate) -> FeatureItem:
        """Create a record and return it."""

    @abstractmethod
    async def update_item(self, item_id: str, data: FeatureItemUpdate) -> FeatureItem:
        """Apply a partial update and return the updated record."""

    @abstractmethod
    async def delete_item(self, item_id: str) -> str:
        """Delete a record and return its id."""

    async def count_by_status(self) -> Dict[str, int]:
        """Number of records per status, for the analytics sub-resource."""
        counts = {}
        for item_status in ItemStatus:
            page = await self.list_items(ListParams(status=item_status, limit=1))
            counts[item_status.value] = page.pagination.total if page.pagination else len(page.items)
        return counts


class InMemoryFeatureRepository(FeatureRepository):
    """
    Mock repository backed by a dict.

    Every call sleeps for a random duration in ``delay_range`` to mimic a
    network round trip. Pass ``(0, 0)`` to disable the delay.
    """

    def __init__(
        self,
        feature: FeatureDefinition,
        delay_range: Tuple[float, float] = (0.3, 0.5),
        seed: bool = True,
    ):
        super().__init__(feature)
        self.delay_range = delay_range
        self._items: Dict[str, FeatureItem] = {}
        self._lock = asyncio.Lock()

        if seed:
            for index in (1, 2):
                item = FeatureItem(
                    id=new_object_id(),
                    name=f"{feature.name} Record {index}",
                    description=f"Sample {feature.name.lower()} record",
                    status=ItemStatus.ACTIVE,
                )
                self._items[item.id] = item

    async def _simulate_latency(self) -> None:
        low, high = self.delay_range
        if high <= 0:
            return
        await asyncio.sleep(random.uniform(low, high))

    def _matches(self, item: FeatureItem, params: ListParams) -> bool:
        if params.status is not None and item.status != params.status:
            return False
        if params.search_term:
            needle = params.search_term.lower()
            haystack = f"{item.name} {item.description or ''}".lower()
            if needle not in haystack:
                return False
        return True

    async def list_items(self, params: Optional[ListParams] = None) -> ItemPage:
        params = params or ListParams()
        await self._simulate_latency()

        # Newest first, matching the order the store keeps after creates
        matching = [
            item for item in reversed(list(self._items.values()))
            if self._matches(item, params)
        ]
        start = (params.page - 1) * params.limit
        page_items = matching[start:start + params.limit]

        logger.debug(
            "feature_items_listed",
            feature=self.feature.slug,
            total=len(matching),
            returned=len(page_items),
        )
        return ItemPage(
            items=page_items,
            pagination=Pagination.for_total(params.page, params.limit, len(matching)),
        )

    async def get_item(self, item_id: str) -> FeatureItem:
        await self._simulate_latency()
        item = self._items.get(item_id)
        if item is None:
            raise ItemNotFoundError(self.feature.slug, item_id)
        return item

    async def create_item(self, data: FeatureItemCreate) -> FeatureItem:
        await self._simulate_latency()
        now = utc_now()
        item = FeatureItem(
            id=new_object_id(),
            name=data.name or self.feature.default_item_name,
            description=data.description,
            status=data.status or ItemStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
        async with self._lock:
            self._items[item.id] = item

        logger.info("feature_item_created", feature=self.feature.slug, item_id=item.id)
        return item

    async def update_item(self, item_id: str, data: FeatureItemUpdate) -> FeatureItem:
        await self._simulate_latency()
        async with self._lock:
            current = self._items.get(item_id)
            if current is None:
                raise ItemNotFoundError(self.feature.slug, item_id)

            changes = data.model_dump(exclude_unset=True)
            # name and status are required on a stored record
            for key in ("name", "status"):
                if key in changes and changes[key] is None:
                    del changes[key]
            changes["updated_at"] = utc_now()
            updated = current.model_copy(update=changes)
            self._items[item_id] = updated

        logger.info(
            "feature_item_updated",
            feature=self.feature.slug,
            item_id=item_id,
            fields=sorted(k for k in changes if k != "updated_at"),
        )
        return updated

    async def delete_item(self, item_id: str) -> str:
        await self._simulate_latency()
        async with self._lock:
            if self._items.pop(item_id, None) is None:
                raise ItemNotFoundError(self.feature.slug, item_id)

        logger.info("feature_item_deleted", feature=self.feature.slug, item_id=item_id)
        return item_id

    async def count_by_status(self) -> Dict[str, int]:
        await self._simulate_latency()
        counts = {status.value: 0 for status in ItemStatus}
        for item in self._items.values():
            counts[item.status.value] += 1
        return counts


class HttpFeatureRepository(FeatureRepository):
    """
    Repository that talks to the REST API of a running service.

    Args:
        feature: Catalog entry; its endpoint is resolved against the client's
            base URL (which already ends in ``/api``)
        client: ApiClient carrying the bearer token
    """

    def __init__(self, feature: FeatureDefinition, client: ApiClient):
        super().__init__(feature)
        self.client = client
        self.base_path = feature.api_path

    async def list_items(self, params: Optional[ListParams] = None) -> ItemPage:
        params = params or ListParams()
        body = await self.client.get(self.base_path, params=params.to_query())
        return ItemPage.model_validate(body)

    async def get_item(self, item_id: str) -> FeatureItem:
        body = await self.client.get(f"{self.base_path}/{item_id}")
        return FeatureItem.model_validate(body)

    async def create_item(self, data: FeatureItemCreate) -> FeatureItem:
        body = await self.client.post(
            self.base_path,
            json=data.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        return FeatureItem.model_validate(body)

    async def update_item(self, item_id: str, data: FeatureItemUpdate) -> FeatureItem:
        body = await self.client.patch(
            f"{self.base_path}/{item_id}",
            json=data.model_dump(mode="json", by_alias=True, exclude_unset=True),
        )
        return FeatureItem.model_validate(body)

    async def delete_item(self, item_id: str) -> str:
        await self.client.delete(f"{self.base_path}/{item_id}")
        return item_id


RepositoryFactory = Callable[[FeatureDefinition], FeatureRepository]


class FeatureRepositoryRegistry:
    """Creates one repository per feature on first use and keeps it."""

    def __init__(self, factory: RepositoryFactory):
        self._factory = factory
        self._repositories: Dict[str, FeatureRepository] = {}

    def get(self, feature: FeatureDefinition) -> FeatureRepository:
        repository = self._repositories.get(feature.slug)
        if repository is None:
            repository = self._factory(feature)
            self._repositories[feature.slug] = repository
        return repository

    def loaded(self) -> List[str]:
        return sorted(self._repositories)

    @classmethod
    def in_memory(
        cls,
        delay_range: Tuple[float, float] = (0.3, 0.5),
        seed: bool = True,
    ) -> "FeatureRepositoryRegistry":
        return cls(lambda feature: InMemoryFeatureRepository(feature, delay_range, seed))

