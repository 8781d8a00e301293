"""Manual and daily triggers for the behavior embedding recompute."""

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from .config import SchedulerConfig
from .errors import BehaviorEngineError
from .models import RecomputeReport
from .recompute import BehaviorEmbeddingRecomputer

logger = logging.getLogger(__name__)


class BehaviorEmbeddingScheduler:
    """
    Runs the recompute once a day at ``config.run_at`` in ``config.timezone``.

    The periodic loop only runs when ``config.enabled`` is set; the manual
    trigger is always available.
    """

    def __init__(
        self,
        recomputer: BehaviorEmbeddingRecomputer,
        config: Optional[SchedulerConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.recomputer = recomputer
        self.config = config or SchedulerConfig()
        self.tz = ZoneInfo(self.config.timezone)
        self.clock = clock or (lambda: datetime.now(self.tz))

    def trigger_once(self) -> RecomputeReport:
        """Run a recompute immediately and return its report."""
        report = self.recomputer.recompute()
        logger.info(
            "Behavior embedding job completed: updated %d / %d (cutoff %s)",
            report.songs_updated,
            report.total_songs_scanned,
            report.cutoff,
        )
        return report

    def next_run_after(self, now: datetime) -> datetime:
        """First scheduled time strictly after ``now``, in the scheduler's timezone."""
        local_now = self._localize(now)
        candidate = datetime.combine(local_now.date(), self.config.run_at, tzinfo=self.tz)
        if candidate <= local_now:
            candidate = datetime.combine(
                local_now.date() + timedelta(days=1), self.config.run_at, tzinfo=self.tz
            )
        return candidate

    def _localize(self, value: datetime) -> datetime:
        # Naive times are taken to be in the scheduler timezone
        return value.astimezone(self.tz) if value.tzinfo else value.replace(tzinfo=self.tz)

    def run_forever(self, stop_event: Optional[threading.Event] = None) -> int:
        """
        Block and trigger the recompute daily until ``stop_event`` is set.

        Returns:
            Number of runs completed
        """
        if not self.config.enabled:
            logger.info("Behavior embedding scheduler is disabled; set scheduler.enabled to run it")
            return 0

        stop_event = stop_event or threading.Event()
        runs = 0
        while not stop_event.is_set():
            next_run = self.next_run_after(self.clock())
            wait_seconds = max(0.0, (next_run - self._localize(self.clock())).total_seconds())
            logger.info("Next behavior embedding run at %s", next_run.isoformat())
            if stop_event.wait(wait_seconds):
                break
            try:
                self.trigger_once()
            except BehaviorEngineError:
                logger.exception("Behavior embedding job failed; retrying at the next scheduled time")
                continue
            runs += 1
        return runs
