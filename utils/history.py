"""In-memory history of completed generations, newest first."""

import threading
import time
from datetime import datetime, timezone

from config.defaults import DEFAULTS
from core.state import HistoryItem


class HistoryStore:
    """Keeps the most recent ``limit`` generations."""

    def __init__(self, limit=None):
        self.limit = limit or DEFAULTS["history_limit"]
        self._items = []
        self._lock = threading.Lock()
        self._last_id = 0

    def _next_id(self):
        # Millisecond ids, bumped when two runs land in the same millisecond.
        self._last_id = max(int(time.time() * 1000), self._last_id + 1)
        return self._last_id

    def add(self, title, video_url, spec, files):
        with self._lock:
            item = HistoryItem(
                id=self._next_id(),
                title=title,
                video_url=video_url,
                spec=spec,
                files=list(files),
                timestamp=datetime.now(timezone.utc).isoformat(),
            )
            self._items = [item] + self._items[:self.limit - 1]
        return item

    def get(self, item_id):
        with self._lock:
            return next((i for i in self._items if i.id == item_id), None)

    def list(self):
        with self._lock:
            return list(self._items)

    def clear(self):
        with self._lock:
            self._items = []
