"""
Reminder Service

The object the settings layer talks to. It owns the preferences store, the
rescheduler and the count reporter; every edit goes store -> rescheduler so
the sink always matches the committed configuration.
"""
import logging
from typing import Dict, Iterable, List, Mapping, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from .computer import calculate_reminder_frequency, water_progress
from .config import ReminderConfig, config as default_config
from .database import init_database, make_engine, make_session_factory
from .debounce import DraftDebouncer
from .enums import Category
from .errors import SinkUnavailable
from .rescheduler import Rescheduler, RescheduleOutcome, utc_now
from .reporter import ScheduledCountReporter
from .schemas import ConfigBase, NotificationPreferences, ScheduledReminder, WorkoutOccurrence
from .scheduler_config import DEFAULT_DEBOUNCE_SECONDS, DEFAULT_HORIZON_DAYS, DEFAULT_REFRESH_INTERVAL
from .sink import APSchedulerSink, NotificationSink, UnavailableSink
from .store import PreferencesStore, SqlPreferencesStorage, to_category
from .workouts import CustomTimesWorkoutPlan, StaticWorkoutPlan, WorkoutPlanProvider

logger = logging.getLogger(__name__)

REFRESH_JOB_ID = "reminder_refresh_job"


class ReminderService:
    def __init__(
        self,
        store: PreferencesStore,
        sink: NotificationSink,
        workout_plan: Optional[WorkoutPlanProvider] = None,
        horizon_days: float = DEFAULT_HORIZON_DAYS,
        tz="UTC",
        clock=utc_now,
        refresh_scheduler: Optional[BackgroundScheduler] = None,
        refresh_interval: int = DEFAULT_REFRESH_INTERVAL,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        self.store = store
        self.sink = sink
        self.tz = tz
        self._custom_plan = CustomTimesWorkoutPlan(lambda: store.get_config(Category.workout), tz)
        self.rescheduler = Rescheduler(
            sink,
            store.get_config,
            workout_plan=workout_plan or self._custom_plan,
            horizon_days=horizon_days,
            tz=tz,
            clock=clock,
        )
        self.reporter = ScheduledCountReporter(sink, available=self.rescheduler.available)
        self.refresh_scheduler = refresh_scheduler
        self.refresh_interval = refresh_interval
        self.drafts = DraftDebouncer(self.update_config, delay=debounce_seconds)
        self._unavailable_reported = False

    @property
    def available(self) -> bool:
        return self.rescheduler.available

    # =========================================================
    # OUTCOME REPORTING
    # =========================================================
    def _report(self, outcome: RescheduleOutcome) -> RescheduleOutcome:
        if isinstance(outcome.error, SinkUnavailable):
            # Said once per service, not on every mutation
            if not self._unavailable_reported:
                logger.warning("⚠️ Local notifications unavailable: preferences are saved but nothing is scheduled")
                self._unavailable_reported = True
        return outcome

    def _report_all(self, outcomes: Dict[Category, RescheduleOutcome]) -> Dict[Category, RescheduleOutcome]:
        for outcome in outcomes.values():
            self._report(outcome)
        return outcomes

    # =========================================================
    # LIFECYCLE
    # =========================================================
    def initialize(self) -> Dict[Category, RescheduleOutcome]:
        """Load stored preferences and resync every category with the sink."""
        self.store.load()
        outcomes = self.schedule_all()
        logger.info(f"Reminder service ready: {self.get_scheduled_count()} reminders pending")
        return outcomes

    def start_refresh(self) -> None:
        """Keep the rolling horizon filled by resyncing on an interval."""
        if self.refresh_scheduler is None:
            self.refresh_scheduler = BackgroundScheduler(timezone=self.tz)
        self.refresh_scheduler.add_job(
            self.schedule_all,
            "interval",
            seconds=self.refresh_interval,
            id=REFRESH_JOB_ID,
            replace_existing=True,
        )
        if not self.refresh_scheduler.running:
            self.refresh_scheduler.start()
        logger.info(f"🚀 Reminder refresh every {self.refresh_interval}s")

    def shutdown(self) -> None:
        self.drafts.cancel()
        if self.refresh_scheduler is not None and self.refresh_scheduler.running:
            self.refresh_scheduler.shutdown(wait=False)
        if isinstance(self.sink, APSchedulerSink):
            self.sink.shutdown()
        logger.info("🛑 Reminder service stopped")

    # =========================================================
    # MUTATIONS
    # =========================================================
    def get_preferences(self) -> NotificationPreferences:
        return self.store.preferences

    def get_config(self, category) -> ConfigBase:
        return self.store.get_config(category)

    def update_config(self, category, patch: Mapping, allow_conflicts: bool = False) -> RescheduleOutcome:
        category = to_category(category)
        self.store.update_config(category, patch, allow_conflicts=allow_conflicts)
        return self._report(self.rescheduler.reschedule(category))

    def toggle_category(self, category) -> RescheduleOutcome:
        """Flip a category; disabling cancels its reminders, enabling recomputes them."""
        category = to_category(category)
        self.store.toggle_category(category)
        return self._report(self.rescheduler.reschedule(category))

    def reset_to_defaults(self) -> Dict[Category, RescheduleOutcome]:
        self.store.reset_to_defaults()
        return self.schedule_all()

    def schedule_all(self) -> Dict[Category, RescheduleOutcome]:
        return self._report_all(self.rescheduler.resync_all())

    def clear_all(self) -> Dict[Category, RescheduleOutcome]:
        return self._report_all(self.rescheduler.cancel_all())

    def set_workout_plan(self, occurrences: Optional[Iterable[WorkoutOccurrence]]) -> RescheduleOutcome:
        """Use explicit workout occurrences; ``None`` falls back to custom times."""
        if occurrences is None:
            self.rescheduler.workout_plan = self._custom_plan
        else:
            self.rescheduler.workout_plan = StaticWorkoutPlan(occurrences)
        return self._report(self.rescheduler.reschedule(Category.workout))

    # =========================================================
    # READ MODELS
    # =========================================================
    def preview(self, category) -> List[ScheduledReminder]:
        return self.rescheduler.compute(to_category(category))

    def get_scheduled_count(self, category=None) -> int:
        if category is not None:
            category = to_category(category)
        return self.reporter.get_scheduled_count(category)

    def get_counts_by_category(self) -> Dict[str, int]:
        return self.reporter.get_counts_by_category()

    def frequency_label(self) -> str:
        return calculate_reminder_frequency(self.store.get_config(Category.water))

    def water_progress(self, current_liters: float) -> dict:
        return water_progress(self.store.get_config(Category.water), current_liters)

    def status(self) -> dict:
        return {
            "available": self.available,
            "scheduled": self.get_scheduled_count(),
            "byCategory": self.get_counts_by_category(),
            "degraded": [c.value for c in self.rescheduler.degraded_categories()],
        }


def create_service(cfg: Optional[ReminderConfig] = None) -> ReminderService:
    """Wire the production service from environment configuration."""
    cfg = cfg or default_config
    engine = make_engine(cfg.DATABASE_URL)
    init_database(engine)
    storage = SqlPreferencesStorage(make_session_factory(engine), user_key=cfg.USER_KEY)

    if cfg.NOTIFICATIONS_ENABLED:
        sink = APSchedulerSink(max_pending=cfg.SINK_MAX_PENDING, timezone=cfg.TIMEZONE)
        sink.start()
        refresh_scheduler = sink.scheduler
    else:
        sink = UnavailableSink()
        refresh_scheduler = None

    return ReminderService(
        PreferencesStore(storage),
        sink,
        horizon_days=cfg.HORIZON_DAYS,
        tz=cfg.TIMEZONE,
        refresh_scheduler=refresh_scheduler,
        refresh_interval=cfg.REFRESH_INTERVAL_SECONDS,
        debounce_seconds=cfg.DEBOUNCE_SECONDS,
    )
