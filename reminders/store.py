"""
Preferences Store

Owns the durable NotificationPreferences aggregate. Every mutation is merged,
validated and persisted before it becomes visible; a failed write leaves the
previous state in place.
"""
import logging
import threading
from typing import Mapping, Optional, Set, Tuple

from pydantic import ValidationError

from .database import PreferencesRecord
from .enums import Category
from .errors import (
    ConfigValidationError,
    InvalidFormat,
    PersistenceFailure,
    ScheduleConflict,
    UnknownCategory,
)
from .schemas import CONFIG_MODELS, ConfigBase, NotificationPreferences, default_preferences
from . import validator

logger = logging.getLogger(__name__)


# =========================================================
# STORAGE COLLABORATORS
# =========================================================
class PreferencesStorage:
    def load_preferences(self) -> Optional[NotificationPreferences]:
        raise NotImplementedError

    def save_preferences(self, preferences: NotificationPreferences) -> None:
        raise NotImplementedError


class MemoryPreferencesStorage(PreferencesStorage):
    """Process-local storage, mostly for tests and previews."""

    def __init__(self, initial: Optional[NotificationPreferences] = None):
        self._data = initial.model_dump(mode="json") if initial else None

    def load_preferences(self):
        if self._data is None:
            return None
        return NotificationPreferences.model_validate(self._data)

    def save_preferences(self, preferences):
        self._data = preferences.model_dump(mode="json")


class SqlPreferencesStorage(PreferencesStorage):
    def __init__(self, session_factory, user_key: str = "default"):
        self.session_factory = session_factory
        self.user_key = user_key

    def load_preferences(self):
        db = self.session_factory()
        try:
            record = db.query(PreferencesRecord).filter(
                PreferencesRecord.user_key == self.user_key
            ).first()
            if record is None:
                return None
            return NotificationPreferences.model_validate(record.preferences)
        finally:
            db.close()

    def save_preferences(self, preferences):
        db = self.session_factory()
        try:
            record = db.query(PreferencesRecord).filter(
                PreferencesRecord.user_key == self.user_key
            ).first()
            data = preferences.model_dump(mode="json")
            if record is None:
                db.add(PreferencesRecord(user_key=self.user_key, preferences=data))
            else:
                record.preferences = data
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()


# =========================================================
# PATCH MERGING
# =========================================================
def to_category(category) -> Category:
    try:
        return Category(category)
    except ValueError:
        raise UnknownCategory(category)


def _pydantic_to_invalid_format(category: Category, error: ValidationError) -> InvalidFormat:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    return InvalidFormat(
        first.get("input"),
        category=category.value,
        field=field or None,
        message=f"Invalid value for {field or category.value}: {first.get('msg')}",
    )


def merge_patch(category: Category, current: ConfigBase, patch: Mapping) -> Tuple[ConfigBase, Set[str]]:
    """
    Merge ``patch`` into ``current``. Nested mappings (meal slots) merge field
    by field. Returns the validated model and the attribute names touched.
    """
    model_cls = CONFIG_MODELS[category]
    if not isinstance(patch, Mapping):
        raise ConfigValidationError("Patch must be an object", category=category.value)

    data = current.model_dump()
    touched = set()
    for key, value in patch.items():
        name = model_cls.field_name(key)
        if name is None:
            raise ConfigValidationError(f"Unknown field {key!r}", category=category.value, field=key)
        if isinstance(value, Mapping) and isinstance(data.get(name), dict):
            data[name] = {**data[name], **value}
        else:
            data[name] = value
        touched.add(name)

    try:
        return model_cls.model_validate(data), touched
    except ValidationError as e:
        raise _pydantic_to_invalid_format(category, e)


# =========================================================
# PREFERENCES STORE
# =========================================================
class PreferencesStore:
    def __init__(self, storage: PreferencesStorage):
        self.storage = storage
        self._preferences = default_preferences()
        self._lock = threading.RLock()

    def load(self) -> NotificationPreferences:
        """Read stored preferences, falling back to the built-in defaults."""
        try:
            stored = self.storage.load_preferences()
        except Exception as e:
            logger.error(f"Failed to load notification preferences: {e}", exc_info=True)
            raise PersistenceFailure(f"Could not load preferences: {e}")

        with self._lock:
            self._preferences = stored or default_preferences()
        if stored is None:
            logger.info("No stored notification preferences, using defaults")
        return self.preferences

    @property
    def preferences(self) -> NotificationPreferences:
        with self._lock:
            return self._preferences.model_copy(deep=True)

    def get_config(self, category) -> ConfigBase:
        with self._lock:
            return self._preferences.get(to_category(category)).model_copy(deep=True)

    def _commit(self, updated: NotificationPreferences) -> None:
        try:
            self.storage.save_preferences(updated)
        except Exception as e:
            logger.error(f"Failed to save notification preferences: {e}", exc_info=True)
            raise PersistenceFailure(f"Could not save preferences: {e}")
        self._preferences = updated

    def update_config(self, category, patch: Mapping, allow_conflicts: bool = False) -> ConfigBase:
        """
        Merge ``patch`` into one category, validate, persist.

        Raises ConfigValidationError subclasses for hard errors and
        ScheduleConflict for soft ones unless ``allow_conflicts`` is set.
        Nothing is written when either is raised.
        """
        category = to_category(category)
        with self._lock:
            config, touched = merge_patch(category, self._preferences.get(category), patch)
            conflicts = validator.validate(category, config, touched)
            if conflicts and not allow_conflicts:
                first = conflicts[0]
                raise ScheduleConflict(first.message, category=first.category,
                                       field=first.field, conflicts=conflicts)
            if conflicts:
                logger.warning(f"Saving {category.value} config despite {len(conflicts)} conflict(s)")

            self._commit(self._preferences.model_copy(update={category.value: config}))
            logger.info(f"Updated {category.value} config: {sorted(touched)}")
            return config.model_copy(deep=True)

    def toggle_category(self, category) -> ConfigBase:
        category = to_category(category)
        with self._lock:
            current = self._preferences.get(category)
            config = current.model_copy(update={"enabled": not current.enabled})
            self._commit(self._preferences.model_copy(update={category.value: config}))
            logger.info(f"{category.value} reminders {'enabled' if config.enabled else 'disabled'}")
            return config.model_copy(deep=True)

    def reset_to_defaults(self) -> NotificationPreferences:
        with self._lock:
            self._commit(default_preferences())
            logger.info("Notification preferences reset to defaults")
            return self.preferences
