"""Tests for channel change events and the regeneration hook."""

from unittest.mock import AsyncMock

from exceptions import ChannelNotFound, StoreUnavailable
from models.channel_history import StatsPeriod
from services.stats_events import ChannelChanged, ChannelEventBus, stats_regeneration_handler


async def test_publish_runs_handlers_in_order():
    bus = ChannelEventBus()
    calls = []

    async def first(event):
        calls.append(("first", event.channel_id))

    async def second(event):
        calls.append(("second", event.reason))

    bus.subscribe(first)
    bus.subscribe(second)
    bus.subscribe(first)  # duplicate ignored

    await bus.publish(ChannelChanged("ch-1", "click"))

    assert calls == [("first", "ch-1"), ("second", "click")]


async def test_failing_handler_does_not_stop_others(caplog):
    bus = ChannelEventBus()
    broken = AsyncMock(side_effect=StoreUnavailable())
    working = AsyncMock()
    bus.subscribe(broken)
    bus.subscribe(working)

    await bus.publish(ChannelChanged("ch-1", "edit"))

    working.assert_awaited_once_with(ChannelChanged("ch-1", "edit"))
    assert "failed for edit on channel ch-1" in caplog.text


async def test_unsubscribe_is_idempotent():
    bus = ChannelEventBus()
    handler = AsyncMock()
    bus.subscribe(handler)
    bus.unsubscribe(handler)
    bus.unsubscribe(handler)

    await bus.publish(ChannelChanged("ch-1", "click"))
    handler.assert_not_awaited()


async def test_regeneration_handler_rolls_up_channel(engine, stats_state):
    stats_state.add_channel("ch-1", subscription_count=9)
    handler = stats_regeneration_handler(lambda: engine)

    await handler(ChannelChanged("ch-1", "click"))

    periods = {key[1] for key in stats_state.history}
    assert periods == {StatsPeriod.WEEKLY, StatsPeriod.MONTHLY}


async def test_regeneration_handler_ignores_deleted_channel():
    engine = AsyncMock()
    engine.roll_up_channel.side_effect = ChannelNotFound("ch-1")
    handler = stats_regeneration_handler(lambda: engine)

    await handler(ChannelChanged("ch-1", "edit"))

    engine.roll_up_channel.assert_awaited_once_with("ch-1")
