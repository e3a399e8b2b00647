import os
import logging
from pathlib import Path
from dotenv import load_dotenv

from .scheduler_config import (
    DEFAULT_HORIZON_DAYS,
    DEFAULT_REFRESH_INTERVAL,
    DEFAULT_MAX_PENDING,
    DEFAULT_DEBOUNCE_SECONDS,
)

logger = logging.getLogger(__name__)

current_file_path = Path(__file__).resolve()
root_dir = current_file_path.parent.parent
env_path = root_dir / ".env"

if env_path.exists():
    load_dotenv(dotenv_path=env_path, override=False)
else:
    logger.debug(f".env file not found at {env_path}, using process environment")


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class ReminderConfig:
    def __init__(self) -> None:
        self.DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./reminders.db")
        self.USER_KEY = os.getenv("REMINDER_USER_KEY", "default")
        self.TIMEZONE = os.getenv("REMINDER_TIMEZONE", "UTC")
        self.HORIZON_DAYS = int(os.getenv("REMINDER_HORIZON_DAYS", DEFAULT_HORIZON_DAYS))
        self.REFRESH_INTERVAL_SECONDS = int(os.getenv("REFRESH_INTERVAL_SECONDS", DEFAULT_REFRESH_INTERVAL))
        self.NOTIFICATIONS_ENABLED = _env_bool("NOTIFICATIONS_ENABLED", True)
        self.SINK_MAX_PENDING = int(os.getenv("SINK_MAX_PENDING", DEFAULT_MAX_PENDING))
        self.DEBOUNCE_SECONDS = float(os.getenv("DEBOUNCE_SECONDS", DEFAULT_DEBOUNCE_SECONDS))

config = ReminderConfig()
