from .enums import Category, ProgressFrequency, RescheduleState
from .schemas import NotificationPreferences, ScheduledReminder, WorkoutOccurrence, default_preferences
from .store import PreferencesStore, MemoryPreferencesStorage, SqlPreferencesStorage
from .rescheduler import Rescheduler, RescheduleOutcome
from .reporter import ScheduledCountReporter
from .service import ReminderService, create_service
