"""
In-process change feed: publish row change events, subscribe with a server-side user filter.

Services publish after commit (e.g. new user_notifications rows); clients subscribe to
INSERT events on a table filtered by user_id and get the inserted record.
Callbacks run on the publishing thread; a failing callback is logged and skipped.
"""
import itertools
import logging
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)

ChangeCallback = Callable[[dict[str, Any]], None]


class Subscription:
    """Handle returned by ChangeFeed.subscribe; unsubscribe() is idempotent."""

    __slots__ = ("_feed", "_key", "table", "event", "user_id")

    def __init__(self, feed: "ChangeFeed", key: int, table: str, event: str, user_id: str | None):
        self._feed = feed
        self._key = key
        self.table = table
        self.event = event
        self.user_id = user_id

    @property
    def active(self) -> bool:
        return self._feed._has(self._key)

    def unsubscribe(self) -> None:
        self._feed._remove(self._key)


class ChangeFeed:
    """Thread-safe publish/subscribe of (table, event, record) changes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._subs: dict[int, tuple[str, str, str | None, ChangeCallback]] = {}

    def subscribe(
        self,
        table: str,
        event: str,
        callback: ChangeCallback,
        *,
        user_id: str | None = None,
    ) -> Subscription:
        """Receive `event` records on `table`; with user_id, only records whose user_id matches."""
        with self._lock:
            key = next(self._ids)
            self._subs[key] = (table, event, user_id, callback)
        return Subscription(self, key, table, event, user_id)

    def publish(self, table: str, event: str, record: dict[str, Any]) -> int:
        """Deliver record to matching subscribers. Returns how many callbacks ran without error."""
        with self._lock:
            targets = [
                cb
                for (t, ev, uid, cb) in self._subs.values()
                if t == table and ev == event and (uid is None or str(record.get("user_id")) == uid)
            ]
        delivered = 0
        for cb in targets:
            try:
                cb(record)
                delivered += 1
            except Exception as e:
                logger.warning("Change feed callback failed for %s %s: %s", event, table, e, exc_info=True)
        return delivered

    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)

    def _has(self, key: int) -> bool:
        with self._lock:
            return key in self._subs

    def _remove(self, key: int) -> None:
        with self._lock:
            self._subs.pop(key, None)


# Process-wide feed the delivery service publishes to
change_feed = ChangeFeed()
