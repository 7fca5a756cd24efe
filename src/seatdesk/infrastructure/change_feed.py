"""In-process change notification.

Each subscription owns a queue, so a slow consumer never blocks the writer
and snapshots arrive in the order they were published.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Optional, Union

from seatdesk.domain.models import Collection

logger = logging.getLogger(__name__)

SnapshotHandler = Callable[[Any], Union[None, Awaitable[None]]]

_CLOSED = object()


class SubscriptionClosed(Exception):
    pass


class Subscription:
    """A live stream of complete snapshots for one collection."""

    def __init__(self, feed: ChangeFeed, collection: Collection) -> None:
        self.collection = collection
        self._feed = feed
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, snapshot: Any) -> None:
        if not self._closed:
            self._queue.put_nowait(snapshot)

    async def get(self) -> Any:
        """Wait for the next snapshot."""
        if self._closed and self._queue.empty():
            raise SubscriptionClosed(self.collection.value)
        item = await self._queue.get()
        if item is _CLOSED:
            raise SubscriptionClosed(self.collection.value)
        return item

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> Any:
        try:
            return await self.get()
        except SubscriptionClosed:
            raise StopAsyncIteration

    def attach(self, handler: SnapshotHandler) -> None:
        """Drive handler with every snapshot from a background task."""
        self._task = asyncio.create_task(self._pump(handler))

    async def _pump(self, handler: SnapshotHandler) -> None:
        async for snapshot in self:
            try:
                result = handler(snapshot)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Snapshot handler for %s failed", self.collection.value)

    def cancel(self) -> None:
        """Stop delivery. Snapshots already queued are dropped."""
        if self._closed:
            return
        self._closed = True
        self._feed.remove(self)
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)
        if self._task is not None and self._task is not asyncio.current_task():
            self._task.cancel()
        logger.info("Subscription to %s cancelled", self.collection.value)


class ChangeFeed:
    def __init__(self) -> None:
        self._subscriptions: dict[Collection, list[Subscription]] = defaultdict(list)

    def add(self, collection: Collection) -> Subscription:
        subscription = Subscription(self, collection)
        self._subscriptions[collection].append(subscription)
        return subscription

    def remove(self, subscription: Subscription) -> None:
        subscribers = self._subscriptions.get(subscription.collection, [])
        if subscription in subscribers:
            subscribers.remove(subscription)

    def has_subscribers(self, collection: Collection) -> bool:
        return bool(self._subscriptions.get(collection))

    def publish(self, collection: Collection, snapshot: Any) -> None:
        for subscription in list(self._subscriptions.get(collection, [])):
            subscription.deliver(snapshot)

    def close(self) -> None:
        for subscribers in list(self._subscriptions.values()):
            for subscription in list(subscribers):
                subscription.cancel()
