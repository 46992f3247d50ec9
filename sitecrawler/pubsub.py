"""Topic based publish/subscribe with bounded, closable subscriptions."""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Deque, Dict, Iterator, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_BUFFER = 10


class SubscriptionClosed(Exception):
    """Raised when reading from a subscription that is closed and drained."""


class Subscription:
    """A bounded stream of messages delivered for one topic."""

    def __init__(self, topic: str, buffer: int = DEFAULT_BUFFER) -> None:
        if buffer < 0:
            raise ValueError(f"buffer size must not be negative: {buffer}")
        self.topic = topic
        self._capacity = buffer
        self._items: Deque[Any] = deque()
        self._cond = threading.Condition()
        self._closed = False
        self._waiting = 0

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def _offer(self, message: Any) -> bool:
        """Deliver without blocking; return False when full or closed."""
        with self._cond:
            if self._closed:
                return False
            # An unbuffered subscription only accepts what a waiting reader takes.
            if len(self._items) >= max(self._capacity, self._waiting):
                return False
            self._items.append(message)
            self._cond.notify()
            return True

    def _close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def get(self, timeout: Optional[float] = None) -> Any:
        """Return the next message.

        Raises SubscriptionClosed once the subscription is closed and empty,
        and TimeoutError when nothing arrives within ``timeout`` seconds.
        """
        with self._cond:
            self._waiting += 1
            try:
                self._cond.wait_for(lambda: self._items or self._closed, timeout)
            finally:
                self._waiting -= 1
            if self._items:
                return self._items.popleft()
            if self._closed:
                raise SubscriptionClosed(self.topic)
            raise TimeoutError(f"no message on topic {self.topic!r}")

    def __iter__(self) -> Iterator[Any]:
        while True:
            try:
                yield self.get()
            except SubscriptionClosed:
                return


class PubSub:
    """Fan-out of published messages to every subscription of a topic."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._subscribers: Dict[str, List[Subscription]] = {}
        self._closed = False

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def subscribe(self, topic: str, buffer: int = DEFAULT_BUFFER) -> Subscription:
        """Open a new subscription to ``topic`` holding up to ``buffer`` messages."""
        subscription = Subscription(topic, buffer)
        with self._lock:
            self._subscribers.setdefault(topic, []).append(subscription)
        return subscription

    def publish(self, topic: str, message: Any) -> None:
        """Send ``message`` to every subscriber of ``topic`` without blocking.

        A subscriber whose buffer is full misses the message.
        """
        with self._lock:
            if self._closed:
                logger.warning("tried to publish to closed pubsub")
                return
            for subscription in self._subscribers.get(topic, []):
                if not subscription._offer(message):
                    logger.warning(
                        "warning: could not send message, channel full or closed"
                    )

    def unsubscribe(self, topic: str, subscription: Subscription) -> None:
        """Close ``subscription`` and stop delivering ``topic`` to it."""
        with self._lock:
            subscriptions = self._subscribers.get(topic, [])
            for position, candidate in enumerate(subscriptions):
                if candidate is subscription:
                    candidate._close()
                    del subscriptions[position]
                    break

    def shutdown(self) -> None:
        """Close every subscription; later publishes are refused."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            for subscriptions in self._subscribers.values():
                for subscription in subscriptions:
                    subscription._close()
            self._subscribers = {}