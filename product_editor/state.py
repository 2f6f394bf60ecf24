"""Keyed observable store the views subscribe to."""

from typing import Any, Callable, Dict, List, TypeVar

T = TypeVar('T')

Listener = Callable[[Any], None]


class StateStore:
    """Keyed state with change notifications."""

    def __init__(self):
        self._state: Dict[str, Any] = {}
        self._observers: Dict[str, List[Listener]] = {}

    def update(self, key: str, value: Any) -> None:
        """Update state and notify observers."""
        self._state[key] = value
        self.notify(key)

    def notify(self, key: str) -> None:
        """Re-send the current value of ``key`` to its observers."""
        value = self._state.get(key)
        for callback in list(self._observers.get(key, [])):
            callback(value)

    def get(self, key: str, default: T = None) -> T:
        """Get state value with default."""
        return self._state.get(key, default)

    def subscribe(self, key: str, callback: Listener) -> None:
        """Subscribe to state changes."""
        if key not in self._observers:
            self._observers[key] = []
        self._observers[key].append(callback)

    def unsubscribe(self, key: str, callback: Listener) -> None:
        """Unsubscribe from state changes."""
        if key in self._observers and callback in self._observers[key]:
            self._observers[key].remove(callback)
