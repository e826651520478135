"""In-process channel change events.

Routers publish ``ChannelChanged`` after a click or an edit has been
committed. Handlers (statistics regeneration) run in order; a failing handler
is logged and never affects the action that published the event.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from exceptions import ChannelNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChannelChanged:
    channel_id: str
    reason: str  # "click" or "edit"


ChannelChangedHandler = Callable[[ChannelChanged], Awaitable[None]]


class ChannelEventBus:
    """Minimal publish/subscribe for channel change events."""

    def __init__(self) -> None:
        self._handlers: list[ChannelChangedHandler] = []

    def subscribe(self, handler: ChannelChangedHandler) -> ChannelChangedHandler:
        if handler not in self._handlers:
            self._handlers.append(handler)
        return handler

    def unsubscribe(self, handler: ChannelChangedHandler) -> None:
        if handler in self._handlers:
            self._handlers.remove(handler)

    async def publish(self, event: ChannelChanged) -> None:
        for handler in list(self._handlers):
            try:
                await handler(event)
            except Exception:
                logger.exception(
                    f"Handler {getattr(handler, '__name__', handler)} failed "
                    f"for {event.reason} on channel {event.channel_id}"
                )


channel_events = ChannelEventBus()


def get_channel_events() -> ChannelEventBus:
    """FastAPI dependency returning the process-wide event bus."""
    return channel_events


def stats_regeneration_handler(engine_factory) -> ChannelChangedHandler:
    """Handler that rolls up weekly and monthly stats for the changed channel."""

    async def regenerate_channel_stats(event: ChannelChanged) -> None:
        try:
            await engine_factory().roll_up_channel(event.channel_id)
        except ChannelNotFound:
            logger.info(f"Channel {event.channel_id} gone before stats regeneration")

    return regenerate_channel_stats
