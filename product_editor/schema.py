"""Submission schema for the product draft."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any, Dict, List, Union

from pydantic import (
    AnyUrl,
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StringConstraints,
    ValidationError,
)

from .models import Draft

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
FeatureEntry = Union[StrictInt, StrictFloat, List[StrictInt]]

REQUIRED_MESSAGE = "Required"


@dataclass
class FormValidationError(Exception):
    """Raised when a draft does not satisfy the submission schema.

    Attributes:
        field_errors: mapping of draft field name -> human-readable message.
        message: top-level message.
    """

    field_errors: Dict[str, str]
    message: str = "Validation failed"

    def __str__(self) -> str:
        return self.message


class ProductSubmission(BaseModel):
    """Validated product record, serialised with the API's field names."""

    model_config = ConfigDict(populate_by_name=True)

    product_sku: NonEmptyStr = Field(alias="productSKU")
    product_link: AnyUrl = Field(alias="productLink")
    category: StrictInt
    subcategory: StrictInt
    features: Dict[int, FeatureEntry] = Field(default_factory=dict)
    labels: List[StrictInt] = Field(default_factory=list)
    use_cases: List[StrictInt] = Field(default_factory=list, alias="useCases")
    standard: StrictInt
    standard_version: StrictInt = Field(alias="standardVersion")
    technical_result: List[StrictInt] = Field(default_factory=list, alias="technicalResult")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# Payload key -> Draft attribute, used to report errors against form fields.
_FIELD_NAMES = {
    field.alias or name: name for name, field in ProductSubmission.model_fields.items()
}


def _field_errors(exc: ValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc") or ("__root__",)
        field_name = _FIELD_NAMES.get(str(loc[0]), str(loc[0]))
        if field_name in errors:
            continue
        if err.get("type") == "missing":
            errors[field_name] = REQUIRED_MESSAGE
        else:
            errors[field_name] = err.get("msg", "Invalid value")
    return errors


def validate_draft(draft: Draft) -> ProductSubmission:
    """Validate ``draft`` or raise FormValidationError with one message per field."""
    try:
        return ProductSubmission.model_validate(draft.to_payload())
    except ValidationError as exc:
        raise FormValidationError(field_errors=_field_errors(exc)) from exc
