"""In-process change notifications for the production and shipment tables."""
from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

PRODUCTION_CHANNEL = "production"
SHIPMENTS_CHANNEL = "shipments"
CHANNELS = (PRODUCTION_CHANNEL, SHIPMENTS_CHANNEL)

Subscriber = Callable[[str], "Awaitable[None] | None"]


class ChangeNotifier:
    """Fan out "something changed" signals to subscribers.

    Notifications carry only the channel name; subscribers are expected to
    reload whatever they derive from that table.
    """

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def publish(self, channel: str) -> None:
        if channel not in CHANNELS:
            raise ValueError(f"Unknown channel: {channel}")
        logger.info("Change notification", extra={"channel": channel})
        for callback in list(self._subscribers):
            result = callback(channel)
            if inspect.isawaitable(result):
                await result


__all__ = [
    "CHANNELS",
    "ChangeNotifier",
    "PRODUCTION_CHANNEL",
    "SHIPMENTS_CHANNEL",
]
