"""
Notification Sinks

The sink is the delivery side of the engine: it holds pending reminders and
fires them. ``APSchedulerSink`` keeps every reminder as a one-shot ``date`` job
in a dedicated APScheduler job store.
"""
import logging
import threading
from datetime import datetime
from typing import Callable, List, Mapping, Optional

from apscheduler.jobstores.base import JobLookupError
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.background import BackgroundScheduler

from .errors import SinkRejected
from .scheduler_config import DEFAULT_MAX_PENDING

logger = logging.getLogger(__name__)

REMINDER_JOBSTORE = "reminders"


class NotificationSink:
    """Interface every delivery backend implements."""

    def is_available(self) -> bool:
        raise NotImplementedError

    def schedule(self, reminder_id: str, fire_at: datetime, payload: Mapping) -> None:
        """Queue one reminder. Raises SinkRejected if the entry is refused."""
        raise NotImplementedError

    def cancel(self, reminder_id: str) -> None:
        raise NotImplementedError

    def cancel_by_prefix(self, prefix: str) -> int:
        raise NotImplementedError

    def pending_ids(self, prefix: Optional[str] = None) -> List[str]:
        raise NotImplementedError

    def count_pending(self, prefix: Optional[str] = None) -> int:
        return len(self.pending_ids(prefix))


class UnavailableSink(NotificationSink):
    """Runtime without local notification support."""

    def is_available(self) -> bool:
        return False

    def schedule(self, reminder_id, fire_at, payload):
        raise SinkRejected("Local notifications are not supported on this runtime")

    def cancel(self, reminder_id):
        return None

    def cancel_by_prefix(self, prefix):
        return 0

    def pending_ids(self, prefix=None):
        return []


def log_delivery(reminder_id: str, payload: Mapping) -> None:
    logger.info(f"🔔 Reminder fired: {reminder_id} ({payload.get('payloadKey', 'unknown')})")


def build_scheduler(timezone="UTC") -> BackgroundScheduler:
    return BackgroundScheduler(
        jobstores={
            "default": MemoryJobStore(),
            REMINDER_JOBSTORE: MemoryJobStore(),
        },
        job_defaults={
            "coalesce": True,
            "max_instances": 1,
            "misfire_grace_time": 300,
        },
        timezone=timezone,
    )


class APSchedulerSink(NotificationSink):
    def __init__(
        self,
        scheduler: Optional[BackgroundScheduler] = None,
        max_pending: int = DEFAULT_MAX_PENDING,
        deliver: Callable[[str, Mapping], None] = log_delivery,
        timezone="UTC",
    ):
        self.scheduler = scheduler or build_scheduler(timezone)
        self.max_pending = max_pending
        self.deliver = deliver
        # Cap check and add_job must not interleave across categories
        self._lock = threading.Lock()

    def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info(f"🚀 Reminder sink started (cap {self.max_pending} pending)")

    def shutdown(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("🛑 Reminder sink stopped")

    def is_available(self) -> bool:
        return self.scheduler.running

    def _jobs(self):
        return self.scheduler.get_jobs(jobstore=REMINDER_JOBSTORE)

    def schedule(self, reminder_id, fire_at, payload):
        with self._lock:
            existing = {job.id for job in self._jobs()}
            if reminder_id not in existing and len(existing) >= self.max_pending:
                raise SinkRejected(f"Pending reminder cap of {self.max_pending} reached")
            self.scheduler.add_job(
                self.deliver,
                "date",
                run_date=fire_at,
                args=[reminder_id, dict(payload)],
                id=reminder_id,
                jobstore=REMINDER_JOBSTORE,
                replace_existing=True,
            )

    def cancel(self, reminder_id):
        try:
            self.scheduler.remove_job(reminder_id, jobstore=REMINDER_JOBSTORE)
        except JobLookupError:
            logger.debug(f"Reminder {reminder_id} already gone")

    def cancel_by_prefix(self, prefix):
        cancelled = 0
        with self._lock:
            for job in self._jobs():
                if job.id.startswith(prefix):
                    self.cancel(job.id)
                    cancelled += 1
        return cancelled

    def pending_ids(self, prefix=None):
        return [job.id for job in self._jobs() if prefix is None or job.id.startswith(prefix)]
