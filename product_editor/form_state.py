"""
Controller for the product edit screen.

Owns the draft and all fetched reference data, applies the cascading resets
between dependent fields and validates the draft on submit. Views subscribe to
the keys of ``store`` (``draft``, ``errors`` and one key per resource).
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from . import catalog as endpoints
from .catalog import CatalogApi
from .inline_create import CreateKey, InlineCreateController, normalize_create_key
from .models import (
    Category,
    FeatureType,
    Option,
    Standard,
    StandardVersion,
    Draft,
    options_from,
)
from .resources import (
    CATEGORIES,
    FEATURE_TYPES,
    LABELS,
    LOADING,
    NOT_REQUESTED,
    STANDARDS,
    USE_CASES,
    Errored,
    Loaded,
    ResourceState,
    SubcategoryResources,
    loaded_data,
)
from .schema import FormValidationError, ProductSubmission, validate_draft
from .state import StateStore
from .tasks import TaskRunner

logger = logging.getLogger(__name__)

DRAFT = "draft"
ERRORS = "errors"

Number = Union[int, float]

TECHNICAL_RESULT_KEY = "add-technical-result"


class StandardChangePolicy(Enum):
    """What happens to the version and technical results when the standard changes."""

    CLEAR = "clear"
    KEEP = "keep"

    @classmethod
    def parse(cls, value: Union[str, "StandardChangePolicy"]) -> "StandardChangePolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            allowed = ", ".join(policy.value for policy in cls)
            raise ValueError(
                f"Unknown standard change policy {value!r}; expected one of {allowed}"
            ) from exc


def parse_number(text: Optional[str]) -> Optional[Number]:
    """Parse numeric input; blank or unparsable text gives None."""
    if text is None:
        return None
    cleaned = str(text).strip().replace(",", ".")
    if not cleaned:
        return None
    try:
        return int(cleaned)
    except ValueError:
        pass
    try:
        number = float(cleaned)
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


class ProductFormState:
    """Draft, reference data and field cascade for one product edit."""

    def __init__(
        self,
        catalog: CatalogApi,
        runner: TaskRunner,
        *,
        store: Optional[StateStore] = None,
        standard_policy: Union[str, StandardChangePolicy] = StandardChangePolicy.CLEAR,
        on_submit: Optional[Callable[[ProductSubmission], None]] = None,
    ):
        self.catalog = catalog
        self.runner = runner
        self.store = store or StateStore()
        self.standard_policy = StandardChangePolicy.parse(standard_policy)
        self.on_submit = on_submit
        self.draft = Draft()
        self.resources = SubcategoryResources(catalog, runner, self.store)
        self._controllers: Dict[CreateKey, InlineCreateController] = {}
        self._submit_attempted = False
        self.store.update(CATEGORIES, NOT_REQUESTED)
        self.store.update(DRAFT, self.draft)
        self.store.update(ERRORS, {})

    # Reference data

    def load_categories(self) -> None:
        self.store.update(CATEGORIES, LOADING)
        self.runner.submit(
            self.catalog.fetch_categories,
            lambda data: self.store.update(CATEGORIES, Loaded(data)),
            self._categories_failed,
        )

    def _categories_failed(self, exc: Exception) -> None:
        logger.warning("Could not fetch categories: %s", exc)
        self.store.update(CATEGORIES, Errored(exc))

    def state(self, name: str) -> ResourceState:
        return self.store.get(name, NOT_REQUESTED)

    @property
    def categories(self) -> List[Category]:
        return loaded_data(self.state(CATEGORIES), [])

    @property
    def feature_types(self) -> List[FeatureType]:
        return loaded_data(self.state(FEATURE_TYPES), [])

    @property
    def standards(self) -> List[Standard]:
        return loaded_data(self.state(STANDARDS), [])

    @property
    def errors(self) -> Dict[str, str]:
        return self.store.get(ERRORS, {})

    # Draft updates

    def _draft_changed(self) -> None:
        if self._submit_attempted:
            self._revalidate()
        self.store.update(DRAFT, self.draft)

    def _revalidate(self) -> None:
        try:
            validate_draft(self.draft)
        except FormValidationError as exc:
            self.store.update(ERRORS, dict(exc.field_errors))
            return
        self.store.update(ERRORS, {})

    def set_product_sku(self, value: str) -> None:
        self.draft.product_sku = value
        self._draft_changed()

    def set_product_link(self, value: str) -> None:
        self.draft.product_link = value
        self._draft_changed()

    def select_category(self, category_id: Any, subcategory_id: Any) -> None:
        """Write both cascade ids at once and reload the subcategory resources."""
        changed = subcategory_id != self.draft.subcategory
        self.draft.category = category_id
        self.draft.subcategory = subcategory_id
        if changed:
            self.draft.clear_subcategory_selections()
        self._detach_controllers()
        self.resources.select(subcategory_id)
        self._draft_changed()

    def feature_values(self, feature_id: Any) -> List[Any]:
        value = self.draft.features.get(feature_id)
        return list(value) if isinstance(value, list) else []

    def set_feature_values(self, feature_id: Any, values: Sequence[Any]) -> None:
        self.draft.features = {**self.draft.features, feature_id: list(values)}
        self._draft_changed()

    def feature_number(self, feature_id: Any) -> Optional[Number]:
        value = self.draft.features.get(feature_id)
        return None if isinstance(value, list) else value

    def set_feature_number(self, feature_id: Any, value: Optional[Number]) -> None:
        """Store a numeric feature; an empty or zero value removes the entry."""
        features = dict(self.draft.features)
        if not value:
            features.pop(feature_id, None)
        else:
            features[feature_id] = value
        self.draft.features = features
        self._draft_changed()

    def set_labels(self, values: Sequence[Any]) -> None:
        self.draft.labels = list(values)
        self._draft_changed()

    def set_use_cases(self, values: Sequence[Any]) -> None:
        self.draft.use_cases = list(values)
        self._draft_changed()

    def set_standard(self, standard_id: Any) -> None:
        previous = self.draft.standard
        self.draft.standard = standard_id
        if previous != standard_id and self.standard_policy is StandardChangePolicy.CLEAR:
            self._detach_controllers(TECHNICAL_RESULT_KEY)
            self.draft.standard_version = None
            self.draft.technical_result = []
        self._draft_changed()

    def set_standard_version(self, version_id: Any) -> None:
        previous = self.draft.standard_version
        self.draft.standard_version = version_id
        if previous != version_id and self.standard_policy is StandardChangePolicy.CLEAR:
            self._detach_controllers(TECHNICAL_RESULT_KEY)
            self.draft.technical_result = []
        self._draft_changed()

    def set_technical_results(self, values: Sequence[Any]) -> None:
        self.draft.technical_result = list(values)
        self._draft_changed()

    # Derived option lists

    def selected_standard(self) -> Optional[Standard]:
        for standard in self.standards:
            if standard.id == self.draft.standard:
                return standard
        return None

    def selected_version(self) -> Optional[StandardVersion]:
        standard = self.selected_standard()
        if standard is None:
            return None
        return standard.get_version(self.draft.standard_version)

    def standard_options(self) -> List[Option]:
        return [Option(label=s.title, value=s.id) for s in self.standards]

    def version_options(self) -> List[Option]:
        standard = self.selected_standard()
        if standard is None:
            return []
        return [Option(label=v.title, value=v.id) for v in standard.versions]

    def technical_result_options(self) -> List[Option]:
        version = self.selected_version()
        if version is None:
            return []
        return options_from(version.technical_results)

    @property
    def show_version_selector(self) -> bool:
        return self.draft.standard is not None

    @property
    def show_technical_results(self) -> bool:
        return self.draft.standard is not None and self.draft.standard_version is not None

    # Inline-create controllers, one per creation key while the subcategory is active

    def _detach_controllers(self, kind: Optional[str] = None) -> None:
        """Detach and forget cached controllers, all of them or one ``kind``.

        A detached controller's pending create can no longer write to the draft.
        """
        for key in list(self._controllers):
            if kind is None or key[0] == kind:
                self._controllers.pop(key).detach()

    def _controller(
        self,
        key: Sequence[Any],
        *,
        initial_options: Sequence[Option],
        get_value: Callable[[], List[Any]],
        set_value: Callable[[List[Any]], None],
        create_url: str,
        post_value_key: str,
    ) -> InlineCreateController:
        create_key = normalize_create_key(key)
        controller = self._controllers.get(create_key)
        if controller is None:
            controller = InlineCreateController(
                client=self.catalog.client,
                runner=self.runner,
                initial_options=initial_options,
                get_value=get_value,
                set_value=set_value,
                create_key=create_key,
                create_url=create_url,
                post_value_key=post_value_key,
            )
            self._controllers[create_key] = controller
        return controller

    def feature_values_controller(self, feature: FeatureType) -> InlineCreateController:
        return self._controller(
            ("add-feature-value", feature.id),
            initial_options=feature.options(),
            get_value=lambda: self.feature_values(feature.id),
            set_value=lambda values: self.set_feature_values(feature.id, values),
            create_url=endpoints.feature_values_path(feature.id),
            post_value_key="value",
        )

    def labels_controller(self) -> InlineCreateController:
        subcategory_id = self.draft.subcategory
        return self._controller(
            ("add-label", subcategory_id),
            initial_options=options_from(loaded_data(self.state(LABELS), [])),
            get_value=lambda: self.draft.labels,
            set_value=self.set_labels,
            create_url=endpoints.labels_path(subcategory_id),
            post_value_key="label",
        )

    def use_cases_controller(self) -> InlineCreateController:
        subcategory_id = self.draft.subcategory
        return self._controller(
            ("add-use-cases", subcategory_id),
            initial_options=options_from(loaded_data(self.state(USE_CASES), [])),
            get_value=lambda: self.draft.use_cases,
            set_value=self.set_use_cases,
            create_url=endpoints.use_cases_path(subcategory_id),
            post_value_key="useCase",
        )

    def technical_results_controller(self) -> InlineCreateController:
        version_id = self.draft.standard_version
        return self._controller(
            (TECHNICAL_RESULT_KEY, version_id),
            initial_options=self.technical_result_options(),
            get_value=lambda: self.draft.technical_result,
            set_value=self.set_technical_results,
            create_url=endpoints.technical_results_path(version_id),
            post_value_key="technicalResult",
        )

    # Submission

    def submit(self) -> Optional[ProductSubmission]:
        """Validate the draft and hand it to ``on_submit``.

        Returns the validated submission, or None when a field is invalid. In
        that case ``errors`` holds one message per invalid field.
        """
        self._submit_attempted = True
        try:
            submission = validate_draft(self.draft)
        except FormValidationError as exc:
            logger.info("Submission blocked by invalid fields: %s", ", ".join(sorted(exc.field_errors)))
            self.store.update(ERRORS, dict(exc.field_errors))
            return None
        self.store.update(ERRORS, {})
        if self.on_submit:
            self.on_submit(submission)
        return submission
