"""Change notification for committed mutations."""

from __future__ import annotations

import logging
from typing import Callable

from rostertree.tree.mutations import MutationEntry

logger = logging.getLogger(__name__)

Subscriber = Callable[[MutationEntry], None]


class ChangeNotifier:
    """Delivers each committed MutationEntry to subscribed observers.

    Observers learn about changes only through this channel. Delivery is
    synchronous, in subscription order.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register an observer.

        Returns:
            A callable that removes the observer again.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def subscriber_count(self) -> int:
        """Return number of registered observers."""
        return len(self._subscribers)

    def publish(self, entry: MutationEntry) -> None:
        """Deliver an entry to every observer.

        The mutation is already committed, so an observer that raises is
        logged and skipped; it never reaches the caller of the mutation.
        """
        for callback in list(self._subscribers):
            try:
                callback(entry)
            except Exception:
                logger.exception("Change subscriber %r failed on %s", callback, entry)


__all__ = ["ChangeNotifier", "Subscriber"]
