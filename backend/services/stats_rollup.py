"""Statistics roll-up engine - weekly/monthly channel history snapshots.

For one channel and period, a roll-up:

1. computes the window containing the anchor (default: now),
2. reads the channel's live subscription count,
3. counts clicks inside the window (boundaries inclusive),
4. looks up the snapshot whose start equals the recomputed previous window
   start (missing -> previous values are zero),
5. derives growth = current - previous,
6. upserts the snapshot keyed by (channel, period, window start).

Re-running a roll-up for the same window overwrites the snapshot in place,
including ``subscription_count``, which always reflects the live counter at
roll-up time. A skipped period means growth is measured against zero.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from config import get_settings
from exceptions import BatchPartialFailure, ChannelNotFound
from models.channel_history import ChannelHistory, StatsPeriod
from services.stats_periods import period_window, previous_period_start
from services.stats_stores import ChannelStatsPeriod, StoresFactory, sql_stats_stores

logger = logging.getLogger(__name__)


@dataclass
class BatchResult:
    """Outcome of a batch roll-up. Failures never abort the batch."""
    period: StatsPeriod
    snapshots: dict[str, ChannelHistory] = field(default_factory=dict)
    failures: dict[str, Exception] = field(default_factory=dict)

    @property
    def partial_failure(self) -> Optional[BatchPartialFailure]:
        if not self.failures:
            return None
        return BatchPartialFailure(self.period.value, self.failures)

    def raise_for_failures(self) -> None:
        if self.failures:
            raise BatchPartialFailure(self.period.value, self.failures)


class RollupEngine:
    """Computes and persists channel history snapshots."""

    def __init__(
        self,
        stores: StoresFactory,
        week_start: str = "sunday",
        concurrency: int = 5,
        clock: Callable[[], datetime] | None = None,
    ):
        self._stores = stores
        self._week_start = week_start
        self._concurrency = max(1, concurrency)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def roll_up(
        self,
        channel_id: str,
        period: StatsPeriod | str,
        anchor: datetime | None = None,
    ) -> ChannelHistory:
        """Roll up one channel for one period and return the written snapshot.

        Raises ChannelNotFound (nothing written) or StoreUnavailable.
        """
        period = StatsPeriod(period)
        anchor = anchor or self._clock()
        window = period_window(period, anchor, self._week_start)

        async with self._stores() as stores:
            channel = await stores.channels.get(channel_id)
            if channel is None:
                raise ChannelNotFound(channel_id)

            click_count = await stores.clicks.count_in_range(
                channel_id, window.start, window.end
            )

            previous = await stores.history.find_by_key(
                channel_id,
                period,
                previous_period_start(period, anchor, self._week_start),
            )
            previous_subscriptions = previous.subscription_count if previous else 0
            previous_clicks = previous.click_count if previous else 0

            stats = ChannelStatsPeriod(
                channel_id=channel_id,
                period=period,
                start_date=window.start,
                end_date=window.end,
                subscription_count=channel.subscription_count,
                click_count=click_count,
                subscription_growth=channel.subscription_count - previous_subscriptions,
                click_growth=click_count - previous_clicks,
            )
            snapshot = await stores.history.upsert(stats)

        logger.info(
            f"{period.value.capitalize()} stats for channel {channel_id} "
            f"({window.start:%Y-%m-%d}): {stats.click_count} clicks, "
            f"{stats.subscription_count} subscriptions"
        )
        return snapshot

    async def roll_up_channel(
        self,
        channel_id: str,
        anchor: datetime | None = None,
        periods: Iterable[StatsPeriod] = (StatsPeriod.WEEKLY, StatsPeriod.MONTHLY),
    ) -> dict[StatsPeriod, ChannelHistory]:
        """Roll up every period for a single channel, in order."""
        anchor = anchor or self._clock()
        snapshots = {}
        for period in periods:
            snapshots[StatsPeriod(period)] = await self.roll_up(channel_id, period, anchor)
        return snapshots

    async def roll_up_all(
        self,
        period: StatsPeriod | str,
        anchor: datetime | None = None,
    ) -> BatchResult:
        """Roll up every channel for ``period`` concurrently.

        Each channel runs in its own unit of work. Per-channel failures are
        collected and logged; listing the channels is the only step whose
        failure propagates.
        """
        period = StatsPeriod(period)
        anchor = anchor or self._clock()

        async with self._stores() as stores:
            channel_ids = await stores.channels.list_ids()

        semaphore = asyncio.Semaphore(self._concurrency)

        async def _roll_up_one(channel_id: str) -> ChannelHistory:
            async with semaphore:
                return await self.roll_up(channel_id, period, anchor)

        outcomes = await asyncio.gather(
            *(_roll_up_one(channel_id) for channel_id in channel_ids),
            return_exceptions=True,
        )

        result = BatchResult(period=period)
        for channel_id, outcome in zip(channel_ids, outcomes):
            if isinstance(outcome, Exception):
                result.failures[channel_id] = outcome
                if isinstance(outcome, ChannelNotFound):
                    logger.info(f"Channel {channel_id} disappeared before {period.value} roll-up, skipping")
                else:
                    logger.warning(f"{period.value.capitalize()} roll-up failed for channel {channel_id}: {outcome}")
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.snapshots[channel_id] = outcome

        if result.partial_failure:
            logger.warning(result.partial_failure.message)
        logger.info(
            f"{period.value.capitalize()} roll-up complete: "
            f"{len(result.snapshots)} written, {len(result.failures)} failed"
        )
        return result

    async def roll_up_periods(
        self,
        periods: Iterable[StatsPeriod | str],
        anchor: datetime | None = None,
    ) -> list[BatchResult]:
        """Run ``roll_up_all`` for each period with a shared anchor."""
        anchor = anchor or self._clock()
        return [await self.roll_up_all(period, anchor) for period in periods]


def get_rollup_engine() -> RollupEngine:
    """Build the engine from settings, backed by the SQL stores."""
    settings = get_settings()
    return RollupEngine(
        stores=sql_stats_stores(),
        week_start=settings.stats_week_start,
        concurrency=settings.stats_rollup_concurrency,
    )
