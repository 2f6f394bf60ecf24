import tkinter as tk
from tkinter import ttk
from dataclasses import dataclass
import logging

from ..tasks import ThreadedTaskRunner

logger = logging.getLogger(__name__)

ERROR_COLOR = "#dc2626"
PAGE_BACKGROUND = "#F7F8F7"


@dataclass
class UIConfig:
    """Configuration for UI elements."""
    font_size: int = 10
    window_size: tuple[int, int] = (1200, 800)
    locale: str = 'en'


class Card(tk.Frame):
    """White panel with a thin border and an optional bold heading."""

    def __init__(self, parent: tk.Misc, title: str = "", padding: int = 16, **kwargs):
        super().__init__(
            parent,
            bg="white",
            highlightthickness=1,
            highlightbackground="#d1d5db",
            padx=padding,
            pady=padding,
            **kwargs,
        )
        self.columnconfigure(0, weight=1)
        self.body = tk.Frame(self, bg="white")
        if title:
            tk.Label(
                self, text=title, bg="white", font=("TkDefaultFont", 10, "bold"), anchor=tk.W
            ).grid(row=0, column=0, sticky=tk.EW)
            self.body.grid(row=1, column=0, sticky=tk.NSEW, pady=(12, 0))
        else:
            self.body.grid(row=0, column=0, sticky=tk.NSEW)
        self.body.columnconfigure(0, weight=1)


class BusyIndicator(ttk.Progressbar):
    """Small indeterminate progress bar that hides itself when idle."""

    def __init__(self, parent: tk.Misc, length: int = 40):
        super().__init__(parent, mode="indeterminate", length=length)
        self._visible = False

    def show(self, **grid_options) -> None:
        if not self._visible:
            self.grid(**grid_options)
            self.start(15)
            self._visible = True

    def hide(self) -> None:
        if self._visible:
            self.stop()
            self.grid_remove()
            self._visible = False


def error_label(parent: tk.Misc, variable: tk.StringVar) -> tk.Label:
    """Label that renders an inline field error in red."""
    return tk.Label(
        parent,
        textvariable=variable,
        fg=ERROR_COLOR,
        bg=parent.cget("bg") if isinstance(parent, tk.Frame) else PAGE_BACKGROUND,
        font=("TkDefaultFont", 8),
        anchor=tk.W,
        justify=tk.LEFT,
    )


def create_task_runner(widget: tk.Misc, poll_interval: int = 50) -> ThreadedTaskRunner:
    """Task runner delivering results on the Tk main loop of ``widget``."""
    return ThreadedTaskRunner(widget.after, poll_interval=poll_interval)
