"""Reference data and draft models for the product editor."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

FeatureValue = Union[int, float, List[int]]


class CatalogDataError(Exception):
    """Raised when reference data returned by the API has an unexpected shape."""


def _require(data: Dict[str, Any], key: str, kind: str) -> Any:
    if not isinstance(data, dict):
        raise CatalogDataError(f"Expected an object for {kind}, got {type(data).__name__}")
    if key not in data:
        raise CatalogDataError(f"Missing '{key}' in {kind}")
    return data[key]


def _as_list(value: Any, kind: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise CatalogDataError(f"Expected a list of {kind}")
    return value


@dataclass(frozen=True)
class Option:
    """A selectable entry as shown by every selector: display label and id."""

    label: str
    value: Any

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Option":
        return cls(
            label=str(_require(data, "label", "option")),
            value=_require(data, "value", "option"),
        )


@dataclass
class Subcategory:
    """Represents a subcategory within a category."""

    id: int
    title: str
    category_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Subcategory":
        return cls(
            id=_require(data, "id", "subcategory"),
            title=data.get("title") or str(data["id"]),
            category_id=data.get("categoryId"),
        )


@dataclass
class Category:
    """Represents a top-level category and its subcategories."""

    id: int
    title: str
    subcategories: List[Subcategory] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(
            id=_require(data, "id", "category"),
            title=data.get("title") or str(data["id"]),
            subcategories=[
                Subcategory.from_dict(entry)
                for entry in _as_list(data.get("subcategories"), "subcategories")
            ],
        )

    def get_subcategory(self, subcategory_id: int) -> Optional[Subcategory]:
        for subcategory in self.subcategories:
            if subcategory.id == subcategory_id:
                return subcategory
        return None


class FeatureVariant(Enum):
    """How a feature value is entered."""

    SELECT = "select"
    NONE = "null"

    @classmethod
    def parse(cls, raw: Any) -> "FeatureVariant":
        if raw == cls.SELECT.value:
            return cls.SELECT
        return cls.NONE


@dataclass
class PossibleValue:
    id: int
    value: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PossibleValue":
        return cls(
            id=_require(data, "id", "possible value"),
            value=str(data.get("value", "")),
        )

    def to_option(self) -> Option:
        return Option(label=self.value, value=self.id)


@dataclass
class FeatureType:
    """A feature defined for a subcategory, either a value list or a number."""

    id: int
    title: str
    variant: FeatureVariant = FeatureVariant.NONE
    extra: Optional[str] = None
    possible_values: List[PossibleValue] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeatureType":
        return cls(
            id=_require(data, "id", "feature type"),
            title=data.get("title") or str(data["id"]),
            variant=FeatureVariant.parse(data.get("variant")),
            extra=data.get("extra"),
            possible_values=[
                PossibleValue.from_dict(entry)
                for entry in _as_list(data.get("possibleValues"), "possible values")
            ],
        )

    @property
    def is_selectable(self) -> bool:
        return self.variant is FeatureVariant.SELECT

    def options(self) -> List[Option]:
        return [value.to_option() for value in self.possible_values]


@dataclass
class TitledItem:
    """Reference entry carrying only an id and a title."""

    id: int
    title: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        return cls(
            id=_require(data, "id", cls.__name__),
            title=data.get("title") or str(data["id"]),
        )

    def to_option(self) -> Option:
        return Option(label=self.title, value=self.id)


class Label(TitledItem):
    pass


class UseCase(TitledItem):
    pass


class TechnicalResult(TitledItem):
    pass


@dataclass
class StandardVersion:
    id: int
    title: str
    technical_results: List[TechnicalResult] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StandardVersion":
        return cls(
            id=_require(data, "id", "standard version"),
            title=data.get("title") or str(data["id"]),
            technical_results=[
                TechnicalResult.from_dict(entry)
                for entry in _as_list(data.get("technicalResults"), "technical results")
            ],
        )


@dataclass
class Standard:
    id: int
    title: str
    versions: List[StandardVersion] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Standard":
        return cls(
            id=_require(data, "id", "standard"),
            title=data.get("title") or str(data["id"]),
            versions=[
                StandardVersion.from_dict(entry)
                for entry in _as_list(data.get("versions"), "versions")
            ],
        )

    def get_version(self, version_id: Any) -> Optional[StandardVersion]:
        for version in self.versions:
            if version.id == version_id:
                return version
        return None


def options_from(items: List[Any]) -> List[Option]:
    """Map reference entries to selector options."""
    return [item.to_option() for item in items]


@dataclass
class Draft:
    """The in-progress, not yet submitted product record."""

    # The draft mirrors every field of the submission payload.
    # pylint: disable=too-many-instance-attributes
    product_sku: str = ""
    product_link: str = ""
    category: Optional[int] = None
    subcategory: Optional[int] = None
    features: Dict[int, FeatureValue] = field(default_factory=dict)
    labels: List[int] = field(default_factory=list)
    use_cases: List[int] = field(default_factory=list)
    standard: Optional[int] = None
    standard_version: Optional[int] = None
    technical_result: List[int] = field(default_factory=list)

    def clear_subcategory_selections(self) -> None:
        """Drop every selection that depends on the active subcategory."""
        self.features = {}
        self.labels = []
        self.use_cases = []
        self.standard = None
        self.standard_version = None
        self.technical_result = []

    def to_payload(self) -> Dict[str, Any]:
        """Return the draft keyed by API field names, omitting unset values."""
        payload = {
            "productSKU": self.product_sku,
            "productLink": self.product_link,
            "category": self.category,
            "subcategory": self.subcategory,
            "features": deepcopy(self.features),
            "labels": list(self.labels),
            "useCases": list(self.use_cases),
            "standard": self.standard,
            "standardVersion": self.standard_version,
            "technicalResult": list(self.technical_result),
        }
        return {key: value for key, value in payload.items() if value is not None}
