"""
Load state for the reference data shown on the product form.

Every resource is in exactly one of ``NotRequested``, ``Loading``,
``Loaded(data)`` or ``Errored(error)``. The four subcategory-scoped resources
are re-requested together whenever a subcategory is selected; each selection
gets a new generation number and responses from older generations are
dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from functools import partial
from typing import Any, Callable, Dict, Generic, Optional, TypeVar, Union

from .catalog import CatalogApi
from .state import StateStore
from .tasks import TaskRunner

logger = logging.getLogger(__name__)

T = TypeVar("T")

CATEGORIES = "categories"
FEATURE_TYPES = "feature_types"
LABELS = "labels"
USE_CASES = "use_cases"
STANDARDS = "standards"
SUBCATEGORY_RESOURCES = (FEATURE_TYPES, LABELS, USE_CASES, STANDARDS)


@dataclass(frozen=True)
class NotRequested:
    pass


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class Loaded(Generic[T]):
    data: T


@dataclass(frozen=True)
class Errored:
    error: Exception


ResourceState = Union[NotRequested, Loading, Loaded, Errored]

NOT_REQUESTED = NotRequested()
LOADING = Loading()


class SectionStatus(Enum):
    """What a form section should display for a resource."""
    IDLE = auto()
    LOADING = auto()
    UNAVAILABLE = auto()
    READY = auto()


def section_status(state: ResourceState) -> SectionStatus:
    """Map a resource state to its rendering policy.

    Empty or absent data counts as unavailable, same as a failed fetch.
    """
    if isinstance(state, NotRequested):
        return SectionStatus.IDLE
    if isinstance(state, Loading):
        return SectionStatus.LOADING
    if isinstance(state, Loaded) and state.data:
        return SectionStatus.READY
    return SectionStatus.UNAVAILABLE


def loaded_data(state: ResourceState, default: Any = None) -> Any:
    if isinstance(state, Loaded) and state.data is not None:
        return state.data
    return default


class SubcategoryResources:
    """Fetch feature types, labels, use cases and standards for one subcategory."""

    def __init__(self, catalog: CatalogApi, runner: TaskRunner, store: StateStore):
        self.runner = runner
        self.store = store
        self._fetchers: Dict[str, Callable[[Any], Any]] = {
            FEATURE_TYPES: catalog.fetch_feature_types,
            LABELS: catalog.fetch_labels,
            USE_CASES: catalog.fetch_use_cases,
            STANDARDS: catalog.fetch_standards,
        }
        self._generation = 0
        self._subcategory_id: Optional[Any] = None
        for name in SUBCATEGORY_RESOURCES:
            self.store.update(name, NOT_REQUESTED)

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def subcategory_id(self) -> Optional[Any]:
        return self._subcategory_id

    def state(self, name: str) -> ResourceState:
        return self.store.get(name, NOT_REQUESTED)

    def select(self, subcategory_id: Any) -> int:
        """Reset every resource to Loading and re-request it for ``subcategory_id``."""
        self._generation += 1
        generation = self._generation
        self._subcategory_id = subcategory_id
        logger.info(
            "Loading reference data for subcategory %s (generation %d)",
            subcategory_id,
            generation,
        )
        for name in SUBCATEGORY_RESOURCES:
            self.store.update(name, LOADING)
        for name, fetch in self._fetchers.items():
            self.runner.submit(
                partial(fetch, subcategory_id),
                partial(self._resolve, name, generation),
                partial(self._fail, name, generation),
            )
        return generation

    def _is_stale(self, name: str, generation: int) -> bool:
        if generation != self._generation:
            logger.debug(
                "Discarding stale %s response (generation %d, current %d)",
                name,
                generation,
                self._generation,
            )
            return True
        return False

    def _resolve(self, name: str, generation: int, data: Any) -> None:
        if self._is_stale(name, generation):
            return
        self.store.update(name, Loaded(data))

    def _fail(self, name: str, generation: int, exc: Exception) -> None:
        if self._is_stale(name, generation):
            return
        logger.warning(
            "Could not fetch %s for subcategory %s: %s", name, self._subcategory_id, exc
        )
        self.store.update(name, Errored(exc))
