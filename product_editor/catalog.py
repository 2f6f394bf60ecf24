"""
Typed access to the catalogue endpoints used by the product form.
"""

from __future__ import annotations

from typing import Any, Callable, List, TypeVar

from .api_client import ApiClient
from .models import (
    CatalogDataError,
    Category,
    FeatureType,
    Label,
    Standard,
    UseCase,
)

T = TypeVar("T")


class CatalogError(Exception):
    """Raised when a catalogue response cannot be turned into models."""


def feature_values_path(feature_id: Any) -> str:
    return f"/product-features/{feature_id}/values"


def labels_path(subcategory_id: Any) -> str:
    return f"/product-labels/subcategory/{subcategory_id}"


def use_cases_path(subcategory_id: Any) -> str:
    return f"/product-use-cases/subcategory/{subcategory_id}"


def technical_results_path(version_id: Any) -> str:
    return f"/standards/version/{version_id}/technical-results"


def _subcategory_path(subcategory_id: Any, resource: str) -> str:
    return f"/categories/subcategory/{subcategory_id}/{resource}"


class CatalogApi:
    """Fetch reference data for the product form."""

    def __init__(self, client: ApiClient):
        self.client = client

    def _fetch_list(self, path: str, parse: Callable[[Any], T]) -> List[T]:
        data = self.client.get(path)
        if data is None:
            return []
        if not isinstance(data, list):
            raise CatalogError(f"Expected a list from {path}")
        try:
            return [parse(entry) for entry in data]
        except CatalogDataError as exc:
            raise CatalogError(f"Malformed entry from {path}: {exc}") from exc

    def fetch_categories(self) -> List[Category]:
        return self._fetch_list("/categories", Category.from_dict)

    def fetch_feature_types(self, subcategory_id: Any) -> List[FeatureType]:
        return self._fetch_list(
            _subcategory_path(subcategory_id, "features"), FeatureType.from_dict
        )

    def fetch_labels(self, subcategory_id: Any) -> List[Label]:
        return self._fetch_list(
            _subcategory_path(subcategory_id, "labels"), Label.from_dict
        )

    def fetch_use_cases(self, subcategory_id: Any) -> List[UseCase]:
        return self._fetch_list(
            _subcategory_path(subcategory_id, "use-cases"), UseCase.from_dict
        )

    def fetch_standards(self, subcategory_id: Any) -> List[Standard]:
        return self._fetch_list(
            _subcategory_path(subcategory_id, "standards"), Standard.from_dict
        )
