"""
Root store holding one CRUD slice per catalog feature.

Example:
    >>> store = FeatureStore(FeatureRepositoryRegistry.in_memory(delay_range=(0, 0)))
    >>> await store.thunks("case-management").fetch_items()
    >>> select_items(store.get_state(), "case-management")
"""

import structlog
from typing import Callable, Dict, Iterable, List, Optional

from practice_api.src.features.catalog import FEATURE_CATALOG, FeatureDefinition, get_feature
from practice_api.src.repositories.feature_repo import FeatureRepositoryRegistry
from practice_api.src.store.slice import Action, CrudSlice
from practice_api.src.store.state import FeatureState
from practice_api.src.store.thunks import CrudThunks

logger = structlog.get_logger(__name__)

Listener = Callable[[Action], None]


class FeatureStore:
    """Dispatches actions to the owning slice and notifies subscribers."""

    def __init__(
        self,
        registry: FeatureRepositoryRegistry,
        features: Optional[Iterable[FeatureDefinition]] = None,
    ):
        self.registry = registry
        self._slices: Dict[str, CrudSlice] = {}
        self._state: Dict[str, FeatureState] = {}
        self._thunks: Dict[str, CrudThunks] = {}
        self._listeners: List[Listener] = []

        for feature in features if features is not None else FEATURE_CATALOG:
            crud = CrudSlice(feature)
            self._slices[feature.slug] = crud
            self._state[feature.slug] = crud.initial_state()

    def slice(self, slug: str) -> CrudSlice:
        if slug not in self._slices:
            get_feature(slug)  # raises UnknownFeatureError for unknown slugs
            raise KeyError(f"Feature {slug} is not registered in this store")
        return self._slices[slug]

    def get_state(self) -> Dict[str, FeatureState]:
        """Snapshot of the root state keyed by feature slug."""
        return dict(self._state)

    def feature_state(self, slug: str) -> FeatureState:
        return self._state[self.slice(slug).name]

    def dispatch(self, action: Action) -> Action:
        crud = self.slice(action.feature)
        self._state[crud.name] = crud.reduce(self._state[crud.name], action)
        for listener in list(self._listeners):
            listener(action)
        return action

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def thunks(self, slug: str) -> CrudThunks:
        """Async operations of one feature, bound to its repository."""
        crud = self.slice(slug)
        thunks = self._thunks.get(slug)
        if thunks is None:
            repository = self.registry.get(crud.feature)
            thunks = CrudThunks(crud, repository, self.dispatch)
            self._thunks[slug] = thunks
        return thunks
