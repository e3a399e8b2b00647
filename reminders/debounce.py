"""
Draft debouncing.

Sliders and text fields fire on every change. Drafts are merged per category
and only the settled value is committed, so the sink never sees a
cancel/resubmit storm.
"""
import logging
import threading
from typing import Any, Callable, Dict, Mapping, Optional

from .enums import Category
from .scheduler_config import DEFAULT_DEBOUNCE_SECONDS

logger = logging.getLogger(__name__)


def _merge_into(target: dict, patch: Mapping) -> dict:
    for key, value in patch.items():
        if isinstance(value, Mapping) and isinstance(target.get(key), dict):
            _merge_into(target[key], value)
        elif isinstance(value, Mapping):
            target[key] = dict(value)
        else:
            target[key] = value
    return target


class DraftDebouncer:
    def __init__(
        self,
        commit: Callable[[Category, dict], Any],
        delay: float = DEFAULT_DEBOUNCE_SECONDS,
        on_error: Optional[Callable[[Category, Exception], None]] = None,
    ):
        self.commit = commit
        self.delay = delay
        self.on_error = on_error
        self._drafts: Dict[Category, dict] = {}
        self._timers: Dict[Category, threading.Timer] = {}
        self._lock = threading.Lock()

    def submit(self, category, patch: Mapping) -> None:
        """Merge ``patch`` into the pending draft and restart the quiet period."""
        category = Category(category)
        with self._lock:
            _merge_into(self._drafts.setdefault(category, {}), patch)
            previous = self._timers.pop(category, None)
            if previous is not None:
                previous.cancel()
            timer = threading.Timer(self.delay, self._fire, args=[category])
            timer.daemon = True
            self._timers[category] = timer
            timer.start()

    def pending(self) -> Dict[Category, dict]:
        with self._lock:
            return {category: dict(draft) for category, draft in self._drafts.items()}

    def _take(self, category: Category) -> Optional[dict]:
        timer = self._timers.pop(category, None)
        if timer is not None:
            timer.cancel()
        return self._drafts.pop(category, None)

    def _fire(self, category: Category) -> None:
        with self._lock:
            patch = self._take(category)
        if patch is None:
            return
        try:
            self.commit(category, patch)
        except Exception as e:
            logger.error(f"Debounced {category.value} update failed: {e}", exc_info=True)
            if self.on_error is not None:
                self.on_error(category, e)

    def flush(self, category=None) -> Dict[Category, Any]:
        """Commit pending drafts now. Errors propagate to the caller."""
        with self._lock:
            categories = [Category(category)] if category is not None else list(self._drafts)
            patches = {c: self._take(c) for c in categories}
        return {c: self.commit(c, patch) for c, patch in patches.items() if patch is not None}

    def cancel(self) -> None:
        with self._lock:
            for category in list(self._drafts):
                self._take(category)
