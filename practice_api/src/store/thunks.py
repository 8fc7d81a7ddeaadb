"""
Async CRUD operations for a feature slice.

Each operation dispatches ``pending``, awaits the repository, then dispatches
``fulfilled`` with the result or ``rejected`` with the error message. The
final action is returned; failures are recorded in state, not raised.
"""

import structlog
from typing import Any, Awaitable, Callable, Optional

from shared.models import FeatureItemCreate, FeatureItemUpdate, ListParams
from practice_api.src.repositories.feature_repo import FeatureRepository
from practice_api.src.store.slice import Action, CrudOperation, CrudSlice

logger = structlog.get_logger(__name__)

Dispatch = Callable[[Action], Action]


class CrudThunks:
    """The five asynchronous operations bound to one slice and repository."""

    def __init__(self, crud_slice: CrudSlice, repository: FeatureRepository, dispatch: Dispatch):
        self.slice = crud_slice
        self.repository = repository
        self._dispatch = dispatch

    async def _run(
        self,
        operation: CrudOperation,
        call: Callable[[], Awaitable[Any]],
        **meta: Any,
    ) -> Action:
        self._dispatch(self.slice.pending(operation, **meta))
        try:
            payload = await call()
        except Exception as e:
            logger.warning(
                "store_operation_rejected",
                feature=self.slice.name,
                operation=operation.value,
                error=str(e),
                error_type=type(e).__name__,
            )
            return self._dispatch(self.slice.rejected(operation, str(e), **meta))
        return self._dispatch(self.slice.fulfilled(operation, payload, **meta))

    async def fetch_items(self, params: Optional[ListParams] = None) -> Action:
        return await self._run(
            CrudOperation.FETCH_ITEMS,
            lambda: self.repository.list_items(params),
            params=params,
        )

    async def fetch_item(self, item_id: str) -> Action:
        return await self._run(
            CrudOperation.FETCH_ITEM,
            lambda: self.repository.get_item(item_id),
            item_id=item_id,
        )

    async def create_item(self, data: FeatureItemCreate) -> Action:
        return await self._run(
            CrudOperation.CREATE_ITEM,
            lambda: self.repository.create_item(data),
        )

    async def update_item(self, item_id: str, data: FeatureItemUpdate) -> Action:
        return await self._run(
            CrudOperation.UPDATE_ITEM,
            lambda: self.repository.update_item(item_id, data),
            item_id=item_id,
        )

    async def delete_item(self, item_id: str) -> Action:
        return await self._run(
            CrudOperation.DELETE_ITEM,
            lambda: self.repository.delete_item(item_id),
            item_id=item_id,
        )
