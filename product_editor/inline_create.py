"""
Controller behind the multi-select widget that can create new options inline.

The controller owns only its option list, the text typed into the "add" input,
the pending flag of the create call and the last create error. Selected values
belong to the caller and are read and written through callbacks.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Sequence, Tuple, Union

from .api_client import ApiClient
from .models import Option
from .tasks import TaskRunner

logger = logging.getLogger(__name__)

CHANGED = "changed"
CREATED = "created"

CreateKey = Tuple[str, ...]


def normalize_create_key(key: Union[str, Sequence[Any]]) -> CreateKey:
    if isinstance(key, str):
        return (key,)
    return tuple(str(part) for part in key)


class InlineCreateController:
    """Multi-select state with an escape hatch to create new options."""

    def __init__(
        self,
        *,
        client: ApiClient,
        runner: TaskRunner,
        initial_options: Sequence[Option],
        get_value: Callable[[], Optional[List[Any]]],
        set_value: Callable[[List[Any]], None],
        create_key: Union[str, Sequence[Any]],
        create_url: str,
        post_value_key: str,
    ):
        self.client = client
        self.runner = runner
        self.options: List[Option] = list(initial_options)
        self._get_value = get_value
        self._set_value = set_value
        self.create_key = normalize_create_key(create_key)
        self.create_url = create_url
        self.post_value_key = post_value_key
        self.text = ""
        self.pending = False
        self.error: Optional[str] = None
        self.detached = False
        self._listeners: List[Callable[[str], None]] = []

    def subscribe(self, listener: Callable[[str], None]) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Callable[[str], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event)

    @property
    def value(self) -> List[Any]:
        return list(self._get_value() or [])

    def detach(self) -> None:
        """Stop writing to the caller's selection; an in-flight create is dropped."""
        self.detached = True

    def set_text(self, text: str) -> None:
        if self.pending:
            return
        self.text = text

    def set_selected(self, values: Sequence[Any]) -> None:
        if self.detached:
            return
        self._set_value(list(values))
        self._emit(CHANGED)

    def submit(self) -> bool:
        """Create an option from the typed text.

        Returns True when a create call was dispatched.
        """
        if self.pending:
            logger.debug("Create %s already in flight; ignoring", self.create_key)
            return False
        text = self.text
        if not text.strip():
            return False
        self.pending = True
        self.error = None
        self._emit(CHANGED)
        body = {self.post_value_key: text}
        logger.info("Creating option via %s (%s)", self.create_url, "/".join(self.create_key))
        self.runner.submit(
            lambda: Option.from_dict(self.client.post(self.create_url, body)),
            self._created,
            self._failed,
        )
        return True

    def _created(self, option: Option) -> None:
        if self.detached:
            self.pending = False
            logger.debug("Dropping create for detached %s", "/".join(self.create_key))
            return
        self.options.append(option)
        self.text = ""
        self.pending = False
        self._set_value(self.value + [option.value])
        self._emit(CHANGED)
        self._emit(CREATED)

    def _failed(self, exc: Exception) -> None:
        self.pending = False
        if self.detached:
            return
        self.error = f"Could not add \"{self.text.strip()}\": {exc}"
        logger.warning("Create via %s failed: %s", self.create_url, exc)
        self._emit(CHANGED)
