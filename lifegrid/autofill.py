"""
Automatic "week completed" marking.

On the configured weekday the current week is added to the filled weeks,
at most once. The scheduler owns no timer: callers invoke
check_and_maybe_fill() on any cadence (at startup, then hourly via
run_periodically() or from cron).
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Optional

from loguru import logger

from lifegrid.settings import SettingsStore
from lifegrid.weeks import week_key

WEEKDAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def sunday_based_weekday(now: datetime) -> int:
    """
    0 = Sunday ... 6 = Saturday, the convention of the autoFillDay setting.
    """
    return now.isoweekday() % 7


class AutoFillScheduler:
    def __init__(self, store: SettingsStore) -> None:
        self.store = store

    def check_and_maybe_fill(self, now: Optional[datetime] = None) -> bool:
        """
        Mark the current week as filled if today is the fill day.

        Returns True only when a week was added (and persisted).
        """
        settings = self.store.settings
        if not settings.enable_auto_fill:
            return False

        now = now or datetime.now()
        if sunday_based_weekday(now) != settings.auto_fill_day:
            return False

        key = week_key(now)
        if self.store.is_filled(key):
            return False

        added = self.store.add_filled_week(key)
        if added:
            logger.info(f"Auto-filled week {key}")
        return added


async def run_periodically(
    scheduler: AutoFillScheduler,
    interval: float = 3600.0,
    stop: Optional[asyncio.Event] = None,
) -> None:
    """
    Run the check once right away, then every `interval` seconds until `stop` is set.
    """
    stop = stop or asyncio.Event()
    while not stop.is_set():
        scheduler.check_and_maybe_fill()
        try:
            await asyncio.wait_for(stop.wait(), timeout=interval)
        except asyncio.TimeoutError:
            continue
