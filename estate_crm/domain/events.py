"""In-process publish/subscribe channel for data-change notifications.

Services publish after a mutation commits; views and background jobs
subscribe to refresh what they show.
"""

import inspect
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Union

logger = logging.getLogger(__name__)

Subscriber = Callable[[str, dict[str, Any]], Union[None, Awaitable[None]]]

CONTACT_CREATED = "contacts.created"
CONTACT_UPDATED = "contacts.updated"
CONTACT_DELETED = "contacts.deleted"
CONTACTS_MERGED = "contacts.merged"


class EventBus:
    """Topic-based observer registry."""

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)

    def subscribe(self, topic: str, callback: Subscriber) -> Callable[[], None]:
        """Register a callback for a topic.

        Args:
            topic: Topic name, or "*" for every topic
            callback: Called with (topic, payload); may be a coroutine function

        Returns:
            Function that removes the subscription
        """
        self._subscribers[topic].append(callback)
        return lambda: self.unsubscribe(topic, callback)

    def unsubscribe(self, topic: str, callback: Subscriber) -> None:
        """Remove a callback; unknown callbacks are ignored."""
        callbacks = self._subscribers.get(topic)
        if callbacks and callback in callbacks:
            callbacks.remove(callback)

    async def publish(self, topic: str, payload: dict[str, Any]) -> int:
        """Deliver a payload to the topic's subscribers in registration order.

        A subscriber that raises is logged and skipped; the publisher and
        the remaining subscribers are unaffected.

        Returns:
            Number of subscribers that handled the event without error
        """
        delivered = 0
        for callback in [*self._subscribers.get(topic, ()), *self._subscribers.get("*", ())]:
            try:
                result = callback(topic, payload)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except Exception:
                logger.exception(
                    "Event subscriber failed",
                    extra={"topic": topic, "subscriber": getattr(callback, "__name__", repr(callback))},
                )
        return delivered

    def clear(self) -> None:
        """Drop all subscriptions."""
        self._subscribers.clear()


# Global instance
event_bus = EventBus()
