import tkinter as tk
from tkinter import ttk
from typing import Any, Callable, Dict, List, Optional, Tuple
import logging

from ..form_state import DRAFT, ERRORS, ProductFormState, parse_number
from ..models import Category, FeatureType
from ..resources import (
    CATEGORIES,
    FEATURE_TYPES,
    LABELS,
    STANDARDS,
    SUBCATEGORY_RESOURCES,
    USE_CASES,
    SectionStatus,
    section_status,
)
from .components import Card, PAGE_BACKGROUND, error_label
from .multi_select import CreatableMultiSelect

logger = logging.getLogger(__name__)

ERROR_FIELDS = (
    "product_sku",
    "product_link",
    "category",
    "subcategory",
    "features",
    "labels",
    "use_cases",
    "standard",
    "standard_version",
    "technical_result",
)

UNAVAILABLE_MESSAGES = {
    FEATURE_TYPES: "Error fetching the feature types",
    LABELS: "Error fetching the labels",
    USE_CASES: "Error fetching the use cases",
    STANDARDS: "Error fetching the standards",
}


def _clear(frame: tk.Misc) -> None:
    for child in frame.winfo_children():
        child.destroy()


class CategoryCascade(ttk.Frame):
    """Two-level category -> subcategory picker.

    ``on_select(category_id, subcategory_id)`` fires once a subcategory is
    picked, so both ids are written together.
    """

    def __init__(self, parent: tk.Misc, categories: List[Category],
                 on_select: Callable[[Any, Any], None]):
        super().__init__(parent)
        self.categories = categories
        self.on_select = on_select
        self._category: Optional[Category] = None

        self.category_combobox = ttk.Combobox(
            self,
            values=[c.title for c in categories],
            state="readonly",
            width=24,
        )
        self.category_combobox.set("Select a category")
        self.category_combobox.grid(row=0, column=0, sticky=tk.W)
        self.category_combobox.bind("<<ComboboxSelected>>", self._on_category_change)

        ttk.Label(self, text="/").grid(row=0, column=1, padx=4)
        self.subcategory_combobox = ttk.Combobox(self, values=[], state="disabled", width=24)
        self.subcategory_combobox.grid(row=0, column=2, sticky=tk.W)
        self.subcategory_combobox.bind("<<ComboboxSelected>>", self._on_subcategory_change)

    def _on_category_change(self, _event: tk.Event = None) -> None:
        index = self.category_combobox.current()
        if index < 0:
            return
        self._category = self.categories[index]
        self.subcategory_combobox.configure(
            values=[s.title for s in self._category.subcategories],
            state="readonly",
        )
        self.subcategory_combobox.set("")

    def _on_subcategory_change(self, _event: tk.Event = None) -> None:
        index = self.subcategory_combobox.current()
        if self._category is None or index < 0:
            return
        subcategory = self._category.subcategories[index]
        self.on_select(self._category.id, subcategory.id)


class ProductFormView(ttk.Frame):
    """The product edit screen: draft fields on the left, attributes on the right."""

    def __init__(self, parent: tk.Misc, form: ProductFormState):
        super().__init__(parent, padding=24)
        self.form = form
        self.logger = logger
        self.error_vars: Dict[str, tk.StringVar] = {
            field: tk.StringVar(master=self) for field in ERROR_FIELDS
        }
        self._standards_signature: Optional[Tuple[Any, ...]] = None
        self._number_vars: Dict[Any, tk.StringVar] = {}

        self.columnconfigure(0, weight=1, uniform="half")
        self.columnconfigure(1, weight=1, uniform="half")
        self.left = ttk.Frame(self)
        self.left.grid(row=0, column=0, sticky="new", padx=(0, 16))
        self.left.columnconfigure(0, weight=1)
        self.right = ttk.Frame(self)
        self.right.grid(row=0, column=1, sticky="new", padx=(16, 0))
        self.right.columnconfigure(0, weight=1)

        self.create_product_card()
        self.create_attributes_card()
        self.standards_card = Card(self.right, title="Standards")
        self.labels_card = Card(self.right, title="Labels & Use Cases")

        store = self.form.store
        store.subscribe(CATEGORIES, lambda _state: self.render_categories())
        for name in SUBCATEGORY_RESOURCES:
            store.subscribe(name, lambda _state, n=name: self.render_resource(n))
        store.subscribe(DRAFT, lambda _draft: self.render_standards())
        store.subscribe(ERRORS, self.render_errors)

        self.render_categories()
        self.render_status()

    # Left column

    def create_product_card(self) -> None:
        card = Card(self.left, title="Product Edit")
        card.grid(row=0, column=0, sticky=tk.EW)
        fields = [
            ("product_sku", "Product SKU", self.form.set_product_sku),
            ("product_link", "Product Link", self.form.set_product_link),
        ]
        self.entries: Dict[str, ttk.Entry] = {}
        for i, (field, label, setter) in enumerate(fields):
            tk.Label(card.body, text=label, bg="white", anchor=tk.W).grid(
                row=i * 3, column=0, sticky=tk.W, pady=(8 if i else 0, 2))
            var = tk.StringVar(master=self, value=getattr(self.form.draft, field))
            var.trace_add("write", lambda *_a, v=var, s=setter: s(v.get()))
            entry = ttk.Entry(card.body, textvariable=var, width=40)
            entry.grid(row=i * 3 + 1, column=0, sticky=tk.EW)
            error_label(card.body, self.error_vars[field]).grid(
                row=i * 3 + 2, column=0, sticky=tk.W)
            self.entries[field] = entry

        self.submit_button = ttk.Button(self.left, text="Submit", command=self.submit)
        self.submit_button.grid(row=1, column=0, sticky=tk.W, pady=(24, 0))
        self.summary_var = tk.StringVar(master=self)
        error_label(self.left, self.summary_var).grid(row=2, column=0, sticky=tk.W, pady=(6, 0))

    def submit(self) -> None:
        self.form.submit()

    # Attributes card

    def create_attributes_card(self) -> None:
        card = Card(self.right, title="Product attributes & suitability")
        card.grid(row=0, column=0, sticky=tk.EW)
        tk.Label(card.body, text="Category", bg="white", anchor=tk.W).grid(
            row=0, column=0, sticky=tk.W, pady=(0, 2))
        self.category_frame = tk.Frame(card.body, bg="white")
        self.category_frame.grid(row=1, column=0, sticky=tk.W)
        error_label(card.body, self.error_vars["subcategory"]).grid(row=2, column=0, sticky=tk.W)
        self.status_frame = tk.Frame(card.body, bg="white")
        self.status_frame.grid(row=3, column=0, sticky=tk.EW, pady=(8, 0))
        self.features_frame = tk.Frame(card.body, bg="white")
        self.features_frame.grid(row=4, column=0, sticky=tk.EW, pady=(8, 0))
        self.features_frame.columnconfigure(0, weight=1, uniform="features")
        self.features_frame.columnconfigure(1, weight=1, uniform="features")

    def render_categories(self) -> None:
        _clear(self.category_frame)
        status = section_status(self.form.state(CATEGORIES))
        if status is SectionStatus.LOADING:
            tk.Label(self.category_frame, text="Loading...", bg="white").grid(row=0, column=0)
        elif status is SectionStatus.READY:
            CategoryCascade(
                self.category_frame, self.form.categories, self.form.select_category
            ).grid(row=0, column=0, sticky=tk.W)
        elif status is SectionStatus.UNAVAILABLE:
            tk.Label(self.category_frame, text="No categories!", bg="white").grid(row=0, column=0)

    def render_resource(self, name: str) -> None:
        self.render_status()
        if name == FEATURE_TYPES:
            self.render_features()
        elif name == STANDARDS:
            self._standards_signature = None
            self.render_standards()
        else:
            self.render_labels()

    def render_status(self) -> None:
        _clear(self.status_frame)
        if self.form.draft.subcategory is None:
            return
        statuses = {name: section_status(self.form.state(name)) for name in SUBCATEGORY_RESOURCES}
        row = 0
        if any(status is SectionStatus.LOADING for status in statuses.values()):
            tk.Label(self.status_frame, text="Loading...", bg="white").grid(row=row, column=0, sticky=tk.W)
            row += 1
        for name, status in statuses.items():
            if status is SectionStatus.UNAVAILABLE:
                tk.Label(
                    self.status_frame, text=UNAVAILABLE_MESSAGES[name], bg="white", anchor=tk.W
                ).grid(row=row, column=0, sticky=tk.W)
                row += 1

    def render_features(self) -> None:
        _clear(self.features_frame)
        self._number_vars.clear()
        if section_status(self.form.state(FEATURE_TYPES)) is not SectionStatus.READY:
            return
        bold = ("TkDefaultFont", 9, "bold")
        tk.Label(self.features_frame, text="Feature types", font=bold, bg="white", anchor=tk.W).grid(
            row=0, column=0, sticky=tk.W, pady=(0, 4))
        tk.Label(self.features_frame, text="Value", font=bold, bg="white", anchor=tk.W).grid(
            row=0, column=1, sticky=tk.W, pady=(0, 4))
        for row, feature in enumerate(self.form.feature_types, start=1):
            ttk.Separator(self.features_frame).grid(row=row * 2 - 1, column=0, columnspan=2, sticky=tk.EW)
            tk.Label(self.features_frame, text=feature.title, bg="white", anchor=tk.W).grid(
                row=row * 2, column=0, sticky=tk.W, pady=6)
            self._feature_input(feature).grid(row=row * 2, column=1, sticky=tk.EW, pady=6)
        error_label(self.features_frame, self.error_vars["features"]).grid(
            row=len(self.form.feature_types) * 2 + 1, column=0, columnspan=2, sticky=tk.W)

    def _feature_input(self, feature: FeatureType) -> tk.Widget:
        if feature.is_selectable:
            return CreatableMultiSelect(
                self.features_frame, self.form.feature_values_controller(feature), height=4)
        frame = tk.Frame(self.features_frame, bg="white")
        current = self.form.feature_number(feature.id)
        var = tk.StringVar(master=self, value="" if current is None else str(current))
        var.trace_add(
            "write",
            lambda *_a, fid=feature.id, v=var: self.form.set_feature_number(fid, parse_number(v.get())),
        )
        self._number_vars[feature.id] = var
        ttk.Entry(frame, textvariable=var, width=14).grid(row=0, column=0, sticky=tk.W)
        if feature.extra:
            tk.Label(frame, text=feature.extra, bg="#f3f4f6", padx=6).grid(row=0, column=1, sticky=tk.NS)
        return frame

    # Standards card

    def render_standards(self) -> None:
        draft = self.form.draft
        status = section_status(self.form.state(STANDARDS))
        signature = (status, draft.standard, draft.standard_version)
        if signature == self._standards_signature:
            return
        self._standards_signature = signature
        card = self.standards_card
        _clear(card.body)
        if status is not SectionStatus.READY:
            card.grid_remove()
            return
        card.grid(row=1, column=0, sticky=tk.EW, pady=(32, 0))

        tk.Label(card.body, text="Standard", bg="white", anchor=tk.W).grid(row=0, column=0, sticky=tk.W)
        self._option_combobox(
            card.body, self.form.standard_options(), draft.standard,
            "Select a standard", self.form.set_standard,
        ).grid(row=1, column=0, sticky=tk.W)
        error_label(card.body, self.error_vars["standard"]).grid(row=2, column=0, sticky=tk.W)

        if self.form.show_version_selector:
            tk.Label(card.body, text="Standard Version", bg="white", anchor=tk.W).grid(
                row=3, column=0, sticky=tk.W, pady=(12, 0))
            self._option_combobox(
                card.body, self.form.version_options(), draft.standard_version,
                "Select a standard version", self.form.set_standard_version,
            ).grid(row=4, column=0, sticky=tk.W)
        error_label(card.body, self.error_vars["standard_version"]).grid(row=5, column=0, sticky=tk.W)

        if self.form.show_technical_results:
            tk.Label(card.body, text="Technical Results", bg="white", anchor=tk.W).grid(
                row=6, column=0, sticky=tk.W, pady=(12, 0))
            CreatableMultiSelect(card.body, self.form.technical_results_controller()).grid(
                row=7, column=0, sticky=tk.EW)
            error_label(card.body, self.error_vars["technical_result"]).grid(row=8, column=0, sticky=tk.W)

    def _option_combobox(self, parent: tk.Misc, options, selected: Any, placeholder: str,
                         on_change: Callable[[Any], None]) -> ttk.Combobox:
        combobox = ttk.Combobox(
            parent, values=[o.label for o in options], state="readonly", width=30)
        values = [o.value for o in options]
        if selected in values:
            combobox.current(values.index(selected))
        else:
            combobox.set(placeholder)

        def _changed(_event: tk.Event) -> None:
            index = combobox.current()
            if index >= 0:
                on_change(values[index])

        combobox.bind("<<ComboboxSelected>>", _changed)
        return combobox

    # Labels & use cases card

    def render_labels(self) -> None:
        card = self.labels_card
        _clear(card.body)
        ready = all(
            section_status(self.form.state(name)) is SectionStatus.READY for name in (LABELS, USE_CASES)
        )
        if not ready:
            card.grid_remove()
            return
        card.grid(row=2, column=0, sticky=tk.EW, pady=(32, 0))
        sections = [
            ("Labels", self.form.labels_controller(), "labels"),
            ("Use Cases", self.form.use_cases_controller(), "use_cases"),
        ]
        for i, (title, controller, field) in enumerate(sections):
            tk.Label(card.body, text=title, bg="white", anchor=tk.W).grid(
                row=i * 3, column=0, sticky=tk.W, pady=(12 if i else 0, 2))
            CreatableMultiSelect(card.body, controller).grid(row=i * 3 + 1, column=0, sticky=tk.EW)
            error_label(card.body, self.error_vars[field]).grid(row=i * 3 + 2, column=0, sticky=tk.W)

    # Errors

    def render_errors(self, errors: Dict[str, str]) -> None:
        errors = errors or {}
        for field, var in self.error_vars.items():
            var.set(errors.get(field, ""))
        if "category" in errors and "subcategory" not in errors:
            self.error_vars["subcategory"].set(errors["category"])
        if errors:
            noun = "field" if len(errors) == 1 else "fields"
            self.summary_var.set(f"{len(errors)} {noun} need attention before submitting")
        else:
            self.summary_var.set("")


def build_window(root: tk.Tk, form: ProductFormState) -> ProductFormView:
    """Place the product form on ``root``."""
    root.configure(bg=PAGE_BACKGROUND)
    style = ttk.Style(root)
    style.configure("TFrame", background=PAGE_BACKGROUND)
    view = ProductFormView(root, form)
    view.pack(fill=tk.BOTH, expand=True)
    return view
