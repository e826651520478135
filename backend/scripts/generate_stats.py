#!/usr/bin/env python3
"""Roll up channel statistics from the command line.

Same work as the cron endpoint, for running from a system crontab or by hand.
"""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from exceptions import BatchPartialFailure, ChannelNotFound, StatsError
from models.channel_history import StatsPeriod
from services.stats_rollup import get_rollup_engine

USAGE = """Usage: python3 generate_stats.py [weekly|monthly|all] [--channel <id>] [--strict]
Example: python3 generate_stats.py all
         python3 generate_stats.py weekly --channel 3f2b6c1e-...
"""


def parse_args(argv: list[str]) -> tuple[list[StatsPeriod], str | None, bool]:
    """Return (periods, channel_id, strict) or raise ValueError."""
    args = list(argv)
    strict = "--strict" in args
    if strict:
        args.remove("--strict")

    channel_id = None
    if "--channel" in args:
        i = args.index("--channel")
        if i + 1 >= len(args):
            raise ValueError("--channel needs a channel id")
        channel_id = args[i + 1]
        del args[i:i + 2]

    which = args[0] if args else "all"
    if len(args) > 1:
        raise ValueError(f"Unexpected arguments: {' '.join(args[1:])}")
    if which == "all":
        periods = [StatsPeriod.WEEKLY, StatsPeriod.MONTHLY]
    else:
        periods = [StatsPeriod(which)]
    return periods, channel_id, strict


async def generate_stats(periods: list[StatsPeriod], channel_id: str | None, strict: bool) -> int:
    """Run the roll-up. Returns the process exit code."""
    engine = get_rollup_engine()

    if channel_id:
        try:
            snapshots = await engine.roll_up_channel(channel_id, periods=periods)
        except ChannelNotFound:
            print(f"Channel {channel_id} not found.")
            return 1
        for period, snapshot in snapshots.items():
            print(
                f"{period.value}: {snapshot.click_count} clicks "
                f"({snapshot.click_growth:+d}), {snapshot.subscription_count} subscriptions "
                f"({snapshot.subscription_growth:+d})"
            )
        return 0

    exit_code = 0
    for result in await engine.roll_up_periods(periods):
        print(f"{result.period.value}: {len(result.snapshots)} written, {len(result.failures)} failed")
        for failed_id, error in result.failures.items():
            print(f"  {failed_id}: {error}")
        if strict:
            try:
                result.raise_for_failures()
            except BatchPartialFailure as e:
                print(f"  {e.message}")
                exit_code = 2
    return exit_code


if __name__ == "__main__":
    try:
        periods, channel_id, strict = parse_args(sys.argv[1:])
    except ValueError as e:
        print(e)
        print(USAGE)
        sys.exit(1)

    try:
        sys.exit(asyncio.run(generate_stats(periods, channel_id, strict)))
    except StatsError as e:
        print(f"Statistics roll-up failed: {e.message}")
        sys.exit(1)
