"""Tk multi-select widget with an inline "add an item" input."""

from __future__ import annotations

import logging
import tkinter as tk
from tkinter import ttk
from typing import Any, List

from ..inline_create import CREATED, InlineCreateController
from .components import BusyIndicator, ERROR_COLOR

logger = logging.getLogger(__name__)


class CreatableMultiSelect(ttk.Frame):
    """Multi-value listbox backed by an InlineCreateController."""

    def __init__(
        self,
        parent: tk.Misc,
        controller: InlineCreateController,
        *,
        height: int = 5,
        width: int = 32,
    ):
        super().__init__(parent)
        self.controller = controller
        self._updating = False
        self.columnconfigure(0, weight=1)

        add_frame = ttk.Frame(self)
        add_frame.grid(row=0, column=0, sticky=tk.EW)
        add_frame.columnconfigure(1, weight=1)
        ttk.Label(add_frame, text="+ Add an item").grid(row=0, column=0, sticky=tk.W, padx=(0, 6))
        self.text_var = tk.StringVar(master=self, value=controller.text)
        self.entry = ttk.Entry(add_frame, textvariable=self.text_var)
        self.entry.grid(row=0, column=1, sticky=tk.EW)
        self.busy = BusyIndicator(add_frame)
        self.entry.bind("<Return>", self._on_enter)
        self.entry.bind("<KP_Enter>", self._on_enter)
        self.text_var.trace_add("write", self._on_text_changed)

        ttk.Separator(self, orient=tk.HORIZONTAL).grid(row=1, column=0, sticky=tk.EW, pady=6)

        list_frame = ttk.Frame(self)
        list_frame.grid(row=2, column=0, sticky=tk.NSEW)
        list_frame.columnconfigure(0, weight=1)
        self.listbox = tk.Listbox(
            list_frame,
            selectmode=tk.MULTIPLE,
            exportselection=False,
            height=height,
            width=width,
            activestyle="none",
        )
        self.listbox.grid(row=0, column=0, sticky=tk.NSEW)
        scrollbar = ttk.Scrollbar(list_frame, orient=tk.VERTICAL, command=self.listbox.yview)
        scrollbar.grid(row=0, column=1, sticky=tk.NS)
        self.listbox.configure(yscrollcommand=scrollbar.set)
        self.listbox.bind("<<ListboxSelect>>", self._on_select)

        self.error_var = tk.StringVar(master=self)
        self.error_label = tk.Label(
            self,
            textvariable=self.error_var,
            fg=ERROR_COLOR,
            font=("TkDefaultFont", 8),
            anchor=tk.W,
            justify=tk.LEFT,
            wraplength=width * 7,
        )
        self.error_label.grid(row=3, column=0, sticky=tk.EW)

        controller.subscribe(self._on_controller_event)
        self.bind("<Destroy>", self._on_destroy, add="+")
        self.refresh()

    def refresh(self) -> None:
        """Redraw options, selection, input state and error from the controller."""
        self._updating = True
        try:
            selected = set(self.controller.value)
            self.listbox.delete(0, tk.END)
            for index, option in enumerate(self.controller.options):
                self.listbox.insert(tk.END, option.label)
                if option.value in selected:
                    self.listbox.selection_set(index)
            if self.text_var.get() != self.controller.text:
                self.text_var.set(self.controller.text)
            if self.controller.pending:
                self.entry.state(["disabled"])
                self.busy.show(row=0, column=2, padx=(6, 0))
            else:
                self.entry.state(["!disabled"])
                self.busy.hide()
            self.error_var.set(self.controller.error or "")
        finally:
            self._updating = False

    def selected_values(self) -> List[Any]:
        return self.controller.value

    def _on_destroy(self, event: tk.Event) -> None:
        if event.widget is self:
            self.controller.unsubscribe(self._on_controller_event)

    def _on_controller_event(self, event: str) -> None:
        self.refresh()
        if event == CREATED:
            self.after_idle(self.entry.focus_set)

    def _on_text_changed(self, *_args) -> None:
        if not self._updating:
            self.controller.set_text(self.text_var.get())

    def _on_enter(self, _event: tk.Event) -> str:
        self.controller.submit()
        return "break"

    def _on_select(self, _event: tk.Event) -> None:
        if self._updating:
            return
        options = self.controller.options
        chosen = [options[index].value for index in self.listbox.curselection()]
        shown = {option.value for option in options}
        current = self.controller.value
        # Keep the existing order and append newly picked values at the end.
        values = [value for value in current if value not in shown or value in chosen]
        values.extend(value for value in chosen if value not in values)
        self.controller.set_selected(values)
