import logging
from typing import Dict, Optional

from prometheus_client import Gauge

from .enums import Category
from .sink import NotificationSink

logger = logging.getLogger(__name__)

REMINDERS_PENDING = Gauge(
    "reminders_pending",
    "Reminders currently pending in the notification sink",
    ["category"]
)


class ScheduledCountReporter:
    """Reads pending counts from the sink itself, never from configuration."""

    def __init__(self, sink: NotificationSink, available: Optional[bool] = None):
        self.sink = sink
        self.available = sink.is_available() if available is None else available

    def get_scheduled_count(self, category=None) -> int:
        if not self.available:
            return 0
        if category is None:
            return self.sink.count_pending()
        category = Category(category)
        count = self.sink.count_pending(category.prefix)
        REMINDERS_PENDING.labels(category=category.value).set(count)
        return count

    def get_counts_by_category(self) -> Dict[str, int]:
        return {category.value: self.get_scheduled_count(category) for category in Category}
