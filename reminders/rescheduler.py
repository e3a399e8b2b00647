"""
Rescheduler

Reconciles the notification sink with the committed configuration, one
category at a time: cancel everything carrying the category prefix, compute
the new set, submit it. Runs for the same category are serialized; different
categories may run in parallel.
"""
import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional

import pytz
from prometheus_client import Counter

from .computer import compute_schedule
from .enums import Category, RescheduleState
from .errors import PartialScheduleFailure, ReminderError, SinkRejected, SinkUnavailable
from .schemas import ConfigBase, ScheduledReminder
from .scheduler_config import DEFAULT_HORIZON_DAYS
from .sink import NotificationSink
from .workouts import WorkoutPlanProvider

logger = logging.getLogger(__name__)

REMINDERS_SUBMITTED = Counter(
    "reminders_submitted_total",
    "Reminders accepted by the notification sink",
    ["category"]
)

REMINDERS_REJECTED = Counter(
    "reminders_rejected_total",
    "Reminders the notification sink refused",
    ["category"]
)


@dataclass
class RescheduleOutcome:
    category: Category
    enabled: bool
    planned: int = 0
    accepted: int = 0
    cancelled: int = 0
    skipped: bool = False
    error: Optional[ReminderError] = None

    @property
    def rejected(self) -> int:
        return self.planned - self.accepted

    @property
    def degraded(self) -> bool:
        return self.error is not None and not self.skipped

    def raise_for_status(self) -> None:
        if self.error is not None:
            raise self.error

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "enabled": self.enabled,
            "planned": self.planned,
            "accepted": self.accepted,
            "rejected": self.rejected,
            "cancelled": self.cancelled,
            "skipped": self.skipped,
            "degraded": self.degraded,
            "error": self.error.to_dict() if self.error else None,
        }


def utc_now() -> datetime:
    return datetime.now(pytz.utc)


class Rescheduler:
    def __init__(
        self,
        sink: NotificationSink,
        get_config: Callable[[Category], ConfigBase],
        workout_plan: Optional[WorkoutPlanProvider] = None,
        horizon_days: float = DEFAULT_HORIZON_DAYS,
        tz="UTC",
        clock: Callable[[], datetime] = utc_now,
    ):
        self.sink = sink
        self.get_config = get_config
        self.workout_plan = workout_plan
        self.horizon_days = horizon_days
        self.tz = tz
        self.clock = clock
        # Capability is probed once; the engine branches on this flag only
        self.available = sink.is_available()

        self._locks = {category: threading.Lock() for category in Category}
        self._states = {category: RescheduleState.idle for category in Category}
        self._degraded = {category: False for category in Category}

    # =========================================================
    # STATE
    # =========================================================
    def state(self, category) -> RescheduleState:
        return self._states[Category(category)]

    def is_degraded(self, category) -> bool:
        return self._degraded[Category(category)]

    def degraded_categories(self) -> List[Category]:
        return [c for c, degraded in self._degraded.items() if degraded]

    # =========================================================
    # COMPUTATION
    # =========================================================
    def compute(self, category, config: Optional[ConfigBase] = None,
                now: Optional[datetime] = None) -> List[ScheduledReminder]:
        """What the sink should hold for ``category`` right now."""
        category = Category(category)
        config = config if config is not None else self.get_config(category)
        now = now or self.clock()
        workouts = None
        if category == Category.workout and self.workout_plan is not None:
            workouts = self.workout_plan.upcoming(now, self.horizon_days)
        return compute_schedule(category, config, now, self.horizon_days, self.tz, workouts)

    # =========================================================
    # RECONCILIATION
    # =========================================================
    def reschedule(self, category) -> RescheduleOutcome:
        """
        Cancel-then-submit for one category.

        The config is read after the category lock is taken, so a run queued
        behind an in-flight one always applies the latest committed state. A
        disabled category ends with nothing pending.
        """
        category = Category(category)
        if not self.available:
            config = self.get_config(category)
            return RescheduleOutcome(category, enabled=config.enabled, skipped=True,
                                     error=SinkUnavailable(category=category.value))

        with self._locks[category]:
            outcome = None
            try:
                self._states[category] = RescheduleState.cancelling
                cancelled = self.sink.cancel_by_prefix(category.prefix)
                config = self.get_config(category)
                outcome = RescheduleOutcome(category, enabled=config.enabled, cancelled=cancelled)

                if not config.enabled:
                    self._degraded[category] = False
                    logger.info(f"Cancelled {cancelled} {category.value} reminders (disabled)")
                    return outcome

                reminders = self.compute(category, config)
                outcome.planned = len(reminders)
                self._states[category] = RescheduleState.submitting
                self._submit(category, reminders, outcome)
            except Exception as e:
                logger.error(f"Sink failure while rescheduling {category.value}: {e}", exc_info=True)
                self._degraded[category] = True
                error = ReminderError(f"Notification sink failure: {e}", category=category.value)
                if outcome is None:
                    return RescheduleOutcome(category, enabled=self.get_config(category).enabled, error=error)
                # Keep the counts of what already reached the sink
                outcome.error = error
                return outcome
            finally:
                self._states[category] = RescheduleState.idle

        self._degraded[category] = outcome.degraded
        if outcome.degraded:
            logger.warning(f"⚠️ {category.value} reminders degraded: {outcome.error.message}")
        else:
            logger.info(f"✅ Scheduled {outcome.accepted} {category.value} reminders "
                        f"(replaced {cancelled})")
        return outcome

    def _submit(self, category: Category, reminders: List[ScheduledReminder],
                outcome: RescheduleOutcome) -> None:
        for reminder in reminders:
            payload = {
                **reminder.payload,
                "category": category.value,
                "payloadKey": reminder.payload_key,
            }
            try:
                self.sink.schedule(reminder.reminder_id, reminder.fire_at, payload)
            except SinkRejected as e:
                # Reminders are ordered by fire time, so the earliest ones stay
                outcome.error = PartialScheduleFailure(
                    category.value, outcome.accepted, outcome.planned - outcome.accepted, reason=e.message
                )
                REMINDERS_REJECTED.labels(category=category.value).inc(outcome.rejected)
                return
            outcome.accepted += 1
            REMINDERS_SUBMITTED.labels(category=category.value).inc()

    def cancel(self, category) -> RescheduleOutcome:
        """Remove every pending reminder of ``category`` without resubmitting."""
        category = Category(category)
        enabled = self.get_config(category).enabled
        if not self.available:
            return RescheduleOutcome(category, enabled=enabled, skipped=True,
                                     error=SinkUnavailable(category=category.value))
        with self._locks[category]:
            try:
                self._states[category] = RescheduleState.cancelling
                cancelled = self.sink.cancel_by_prefix(category.prefix)
            finally:
                self._states[category] = RescheduleState.idle
            self._degraded[category] = False
        logger.info(f"Cancelled {cancelled} {category.value} reminders")
        return RescheduleOutcome(category, enabled=enabled, cancelled=cancelled)

    def resync_all(self) -> Dict[Category, RescheduleOutcome]:
        return {category: self.reschedule(category) for category in Category}

    def cancel_all(self) -> Dict[Category, RescheduleOutcome]:
        return {category: self.cancel(category) for category in Category}
