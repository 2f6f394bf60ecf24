"""
UI package for the Product Editor application.
"""

from .components import Card, UIConfig, create_task_runner
from .multi_select import CreatableMultiSelect
from .product_form import ProductFormView, build_window

__all__ = (
    "Card",
    "UIConfig",
    "create_task_runner",
    "CreatableMultiSelect",
    "ProductFormView",
    "build_window",
)
