"""
Minimal observer primitives used for the model's reactive state.

Property holds a single value and notifies its listeners synchronously, in
subscription order, whenever the value changes. Emitter is a bare event
channel for notifications that carry no stored value (bond added, etc.).
"""

from __future__ import annotations
from typing import Any, Callable, Generic, List, Optional, TypeVar
import logging

import numpy as np

logger = logging.getLogger(__name__)

T = TypeVar("T")

Listener = Callable[[Any, Any], None]


def _values_equal(a: Any, b: Any) -> bool:
    if isinstance(a, np.ndarray) or isinstance(b, np.ndarray):
        if a is None or b is None:
            return False
        return bool(np.array_equal(a, b))
    return a is b or a == b


class Emitter:
    """
    Synchronous event channel.

    Listeners are called with the emitted arguments in the order they were
    added. A listener that raises is logged and the remaining listeners still
    run.
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._listeners: List[Callable[..., None]] = []

    def add_listener(self, listener: Callable[..., None]) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[..., None]) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            logger.warning(f"Emitter {self.name!r}: attempted to remove unknown listener")

    def has_listener(self, listener: Callable[..., None]) -> bool:
        return listener in self._listeners

    def emit(self, *args: Any) -> None:
        # copy so listeners may unsubscribe themselves while being notified
        for listener in list(self._listeners):
            try:
                listener(*args)
            except Exception:
                logger.exception(f"Listener failed while emitting {self.name!r}")

    def __len__(self) -> int:
        return len(self._listeners)


class Property(Generic[T]):
    """
    Observable value.

    Usage:
        flag = Property(False, name="show_bond_angles")
        flag.link(lambda new, old: print(new))   # called now and on every change
        flag.value = True
    """

    def __init__(self, initial_value: T, name: str = ""):
        self.name = name
        self._initial_value = initial_value
        self._value = initial_value
        self._changed = Emitter(name)

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, new_value: T) -> None:
        self.set(new_value)

    def get(self) -> T:
        return self._value

    def set(self, new_value: T) -> None:
        old_value = self._value
        if _values_equal(old_value, new_value):
            return
        self._value = new_value
        self._changed.emit(new_value, old_value)

    def link(self, listener: Listener) -> Listener:
        """Subscribe and immediately call the listener with the current value."""
        self._changed.add_listener(listener)
        listener(self._value, None)
        return listener

    def lazy_link(self, listener: Listener) -> Listener:
        """Subscribe without an initial call."""
        self._changed.add_listener(listener)
        return listener

    def unlink(self, listener: Listener) -> None:
        self._changed.remove_listener(listener)

    @property
    def listener_count(self) -> int:
        return len(self._changed)

    @property
    def initial_value(self) -> Optional[T]:
        return self._initial_value

    def reset(self) -> None:
        self.set(self._initial_value)

    def __repr__(self) -> str:
        return f"<Property {self.name} value={self._value!r}>"
