"""
Synchronous listener registry shared by the client-side state containers.

Containers call `notify()` after a mutation has been applied; listeners run
inline, in registration order, before `notify()` returns.
"""

from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")

Listener = Callable[[T], None]


class ListenerHub(Generic[T]):
    """Holds the listeners of one container and fans events out to them."""

    def __init__(self) -> None:
        self._listeners: list[Listener[T]] = []

    def subscribe(self, listener: Listener[T]) -> Callable[[], None]:
        """Register a listener. Returns a callable that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self, event: T) -> None:
        # Copy so a listener may unsubscribe itself while being notified.
        for listener in list(self._listeners):
            listener(event)

    def __len__(self) -> int:
        return len(self._listeners)
