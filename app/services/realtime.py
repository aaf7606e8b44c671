"""In-process realtime channel for row change events.

Subscribers register a callback for a table, optionally narrowed by a
predicate on the changed row and by operation. Every subscription returns a
handle that must be released when the listener goes away.

Delivery is at-most-once. Nothing is buffered for a subscriber that is not
registered when an event is published, so clients fetch the current state
once when they (re)connect.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from app.core.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    """A committed change to a single row."""

    table: str
    operation: str  # INSERT, UPDATE or DELETE
    new_row: dict[str, Any] = field(default_factory=dict)

    def to_message(self) -> dict[str, Any]:
        """Wire shape sent to websocket clients."""
        return {
            "table": self.table,
            "operation": self.operation,
            "newRow": self.new_row,
        }


ChangeCallback = Callable[[ChangeEvent], Awaitable[None] | None]
RowPredicate = Callable[[dict[str, Any]], bool]


class Subscription:
    """Handle for a registered listener."""

    def __init__(
        self,
        channel: "RealtimeChannel",
        table: str,
        callback: ChangeCallback,
        predicate: RowPredicate | None = None,
        operations: set[str] | None = None,
    ) -> None:
        self._channel = channel
        self.table = table
        self.callback = callback
        self.predicate = predicate
        self.operations = {op.upper() for op in operations} if operations else None
        self.active = True

    def matches(self, event: ChangeEvent) -> bool:
        if not self.active or event.table != self.table:
            return False
        if self.operations and event.operation.upper() not in self.operations:
            return False
        if self.predicate is not None and not self.predicate(event.new_row):
            return False
        return True

    def release(self) -> None:
        """Stop receiving events. Safe to call more than once."""
        if not self.active:
            return
        self.active = False
        self._channel._remove(self)


class RealtimeChannel:
    """Observer registry that fans change events out to subscribers."""

    def __init__(self, delivery_timeout: float | None = None) -> None:
        self._subscriptions: list[Subscription] = []
        self._publish_lock = asyncio.Lock()
        self.delivery_timeout = (
            delivery_timeout
            if delivery_timeout is not None
            else settings.realtime_delivery_timeout_seconds
        )

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        predicate: RowPredicate | None = None,
        operations: set[str] | None = None,
    ) -> Subscription:
        """Register a callback for changes to a table.

        Args:
            table: Table name to listen on
            callback: Called with each matching ChangeEvent (sync or async)
            predicate: Optional filter on the changed row
            operations: Optional set of operations to receive

        Returns:
            Subscription handle; call release() when done
        """
        subscription = Subscription(self, table, callback, predicate, operations)
        self._subscriptions.append(subscription)
        logger.debug(f"Subscribed to {table} ({self.subscriber_count} active)")
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)
            logger.debug(f"Released subscription on {subscription.table}")

    async def publish(self, event: ChangeEvent) -> int:
        """Deliver an event to every matching subscriber.

        Publishes are serialized so events reach subscribers in the order
        they were published. A failing callback is logged and skipped; one
        that does not finish within the delivery timeout is released.

        Returns:
            Number of subscribers that received the event
        """
        delivered = 0
        async with self._publish_lock:
            for subscription in list(self._subscriptions):
                if not subscription.matches(event):
                    continue
                try:
                    outcome = subscription.callback(event)
                    if inspect.isawaitable(outcome):
                        await asyncio.wait_for(outcome, self.delivery_timeout)
                    delivered += 1
                except asyncio.TimeoutError:
                    logger.warning(
                        f"Realtime subscriber on {event.table} timed out; releasing it"
                    )
                    subscription.release()
                except Exception:
                    logger.exception(
                        f"Realtime subscriber failed for {event.operation} on {event.table}"
                    )
        return delivered


realtime_channel = RealtimeChannel()


def get_realtime_channel() -> RealtimeChannel:
    """Dependency returning the process-wide channel."""
    return realtime_channel
