"""
Notification center: per-session notification state for the student app.

Holds the unread count and the popup queue for the signed-in user. Two sources ask for a
"check for new notifications": a 30-second APScheduler interval job and realtime INSERT
events on user_notifications. Both only enqueue onto one asyncio.Queue; a single consumer
task runs the checks one at a time (bursts are coalesced), so state is only mutated on the
event loop. Popup auto-dismiss timers are loop handles keyed by notification id and are
cancelled whenever the popup leaves the queue by another path.

Backend errors never surface here: stores return [] / 0 / False, anything a store raises is
logged and replaced by the same values, and the center treats that as "nothing changed".
"""
import asyncio
import logging
from contextlib import suppress
from datetime import datetime, timezone
from typing import Callable

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from campusbell.client.store import NotificationStore
from campusbell.client.unread_counter import UnreadCounter
from campusbell.config import settings
from campusbell.core.constants import (
    AUTH_SIGNED_OUT,
    EVENT_INSERT,
    NOTIFICATION_POLL_JOB_ID,
    PRIORITY_URGENT,
    USER_NOTIFICATIONS_TABLE,
)
from campusbell.services.realtime import ChangeFeed, Subscription
from campusbell.services.types import NotificationItem, PopupNotification

logger = logging.getLogger(__name__)

Listener = Callable[["NotificationCenter"], None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class NotificationCenter:
    """Create one per app; sign_in/sign_out bound the lifetime of everything user-specific."""

    def __init__(
        self,
        store: NotificationStore,
        *,
        feed: ChangeFeed | None = None,
        poll_interval_seconds: float | None = None,
        popup_limit: int | None = None,
        auto_dismiss_seconds: float | None = None,
        check_limit: int | None = None,
        inbox_limit: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._feed = feed
        self._poll_interval = settings.poll_interval_seconds if poll_interval_seconds is None else poll_interval_seconds
        self._popup_limit = settings.popup_limit if popup_limit is None else popup_limit
        self._auto_dismiss = (
            settings.popup_auto_dismiss_seconds if auto_dismiss_seconds is None else auto_dismiss_seconds
        )
        self._check_limit = settings.new_notification_check_limit if check_limit is None else check_limit
        self._inbox_limit = settings.inbox_limit if inbox_limit is None else inbox_limit
        self._clock = clock or _utcnow

        self.current_user_id: str | None = None
        self.popups: list[PopupNotification] = []
        self.last_checked_at: datetime = self._clock()
        # Popped ids created after last_checked_at; the next check would see them again
        self._shown_since_checkpoint: set[str] = set()
        self._unread = UnreadCounter(store)
        self._timers: dict[str, asyncio.TimerHandle] = {}
        self._listeners: list[Listener] = []

        self._loop: asyncio.AbstractEventLoop | None = None
        self._checks: asyncio.Queue | None = None
        self._worker: asyncio.Task | None = None
        self._scheduler: AsyncIOScheduler | None = None
        self._subscription: Subscription | None = None

    async def __aenter__(self) -> "NotificationCenter":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    # --- Read-only views ---

    @property
    def unread_count(self) -> int:
        return self._unread.value

    @property
    def badge_label(self) -> str:
        return self._unread.badge_label

    @property
    def is_signed_in(self) -> bool:
        return self.current_user_id is not None

    def popup_ids(self) -> list[str]:
        return [p.id for p in self.popups]

    def has_pending_timer(self, notification_id: str) -> bool:
        return notification_id in self._timers

    # --- Listeners ---

    def add_listener(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with suppress(ValueError):
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                logger.warning("Notification listener failed: %s", e, exc_info=True)

    # --- Session lifecycle ---

    async def handle_auth_event(self, event: str, user_id: str | None) -> None:
        """Auth state change: SIGNED_OUT (or no user) signs out; anything else signs the user in."""
        if event == AUTH_SIGNED_OUT or not user_id:
            await self.sign_out()
        else:
            await self.sign_in(user_id)

    async def sign_in(self, user_id: str) -> None:
        """Start polling + realtime for user_id, then refresh the count and check once right away."""
        if user_id == self.current_user_id:
            return
        if self.current_user_id is not None:
            await self.sign_out()
        self._loop = asyncio.get_running_loop()
        self.current_user_id = user_id
        self._unread.bind(user_id)
        self.last_checked_at = self._clock()
        self._shown_since_checkpoint = set()
        self._checks = asyncio.Queue()
        self._worker = self._loop.create_task(self._consume_checks(self._checks, user_id))
        self._start_polling()
        self._subscribe_realtime(user_id)
        logger.info("Notification center signed in for user %s", user_id)
        await self.refresh_unread_count()
        await self.check_now()

    async def sign_out(self) -> None:
        """Stop polling, realtime and timers; unread count to 0 and popups cleared."""
        user_id = self.current_user_id
        self.current_user_id = None
        self._stop_polling()
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        for notification_id in list(self._timers):
            self._cancel_timer(notification_id)
        self.popups = []
        self._shown_since_checkpoint = set()
        self._unread.reset()

        worker, queue = self._worker, self._checks
        self._worker = None
        self._checks = None
        if worker is not None and worker is not asyncio.current_task():
            worker.cancel()
            with suppress(asyncio.CancelledError):
                await worker
        if queue is not None:
            # Release anyone blocked in check_now()
            while not queue.empty():
                queue.get_nowait()
                queue.task_done()
        if user_id is not None:
            logger.info("Notification center signed out user %s", user_id)
        self._notify()

    async def close(self) -> None:
        await self.sign_out()

    def _start_polling(self) -> None:
        if not self._poll_interval or self._poll_interval <= 0:
            return
        self._scheduler = AsyncIOScheduler(event_loop=self._loop)
        self._scheduler.add_job(
            self.request_check,
            "interval",
            seconds=self._poll_interval,
            args=["poll"],
            id=NOTIFICATION_POLL_JOB_ID,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()

    def _stop_polling(self) -> None:
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

    def _subscribe_realtime(self, user_id: str) -> None:
        if self._feed is None:
            return
        self._subscription = self._feed.subscribe(
            USER_NOTIFICATIONS_TABLE,
            EVENT_INSERT,
            self._on_delivery_inserted,
            user_id=user_id,
        )

    def _on_delivery_inserted(self, record: dict) -> None:
        logger.debug("New notification delivery received: %s", record.get("notification_id"))
        self.request_check("realtime")

    # --- Checking for new notifications ---

    def request_check(self, source: str = "poll") -> None:
        """Enqueue a check. Safe to call from any thread (scheduler executor, change feed publisher)."""
        loop, queue = self._loop, self._checks
        if loop is None or queue is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(queue.put_nowait, source)

    async def check_now(self) -> None:
        """Enqueue a check and wait until the consumer has processed everything queued so far."""
        queue = self._checks
        if self.current_user_id is None or queue is None:
            return
        queue.put_nowait("manual")
        await queue.join()

    async def _consume_checks(self, queue: asyncio.Queue, user_id: str) -> None:
        while True:
            source = await queue.get()
            batch = 1
            while not queue.empty():
                queue.get_nowait()
                batch += 1
            try:
                await self._check_for_new_notifications(user_id, source)
            except Exception as e:
                logger.warning("Error checking for new notifications (%s): %s", source, e, exc_info=True)
            finally:
                for _ in range(batch):
                    queue.task_done()

    async def _check_for_new_notifications(self, user_id: str, source: str) -> None:
        started = self._clock()
        since = self.last_checked_at
        items = await self._call_store(
            "checking for new notifications", [], self._store.load_notifications, user_id, self._check_limit
        )
        if user_id != self.current_user_id:
            return
        fresh = [
            n for n in items
            if not n.is_read and n.created_at > since and n.id not in self._shown_since_checkpoint
        ]
        # Oldest first so the newest ends up on top and the cap evicts the oldest
        for notification in sorted(fresh, key=lambda n: n.created_at):
            self.show_popup(notification)
        if fresh:
            logger.debug("Check (%s) found %s new notifications for user %s", source, len(fresh), user_id)
        if started > self.last_checked_at:
            self.last_checked_at = started
        # Created during the fetch: still newer than the checkpoint, so the next check sees them again
        shown = self._shown_since_checkpoint | {n.id for n in fresh}
        self._shown_since_checkpoint = {
            n.id for n in items if n.id in shown and n.created_at > self.last_checked_at
        }
        await self.refresh_unread_count()

    async def _call_store(self, action: str, fallback, func, *args):
        """Run a blocking store call off the loop; any error is logged and treated as no change."""
        try:
            return await asyncio.to_thread(func, *args)
        except Exception as e:
            logger.warning("Error %s: %s", action, e, exc_info=True)
            return fallback

    # --- Popups ---

    def show_popup(self, notification: NotificationItem) -> bool:
        """
        Queue a popup (newest first, capped). Same id twice is a no-op. Returns True if queued.

        Call from the event loop thread: non-urgent popups schedule their auto-dismiss timer on the
        running loop, so this raises RuntimeError outside one unless auto-dismiss is disabled.
        """
        if any(p.id == notification.id for p in self.popups):
            return False
        queued = [PopupNotification(notification)] + self.popups
        self.popups = queued[: self._popup_limit]
        for evicted in queued[self._popup_limit:]:
            self._cancel_timer(evicted.id)
        if notification.priority != PRIORITY_URGENT and self._auto_dismiss > 0:
            loop = asyncio.get_running_loop()
            self._timers[notification.id] = loop.call_later(
                self._auto_dismiss, self._auto_dismiss_popup, notification.id
            )
        self._notify()
        return True

    def _auto_dismiss_popup(self, notification_id: str) -> None:
        self._timers.pop(notification_id, None)
        self.dismiss_popup(notification_id)

    def _cancel_timer(self, notification_id: str) -> None:
        handle = self._timers.pop(notification_id, None)
        if handle is not None:
            handle.cancel()

    def dismiss_popup(self, notification_id: str) -> bool:
        """Remove a popup without touching read state. Returns True if it was queued."""
        self._cancel_timer(notification_id)
        remaining = [p for p in self.popups if p.id != notification_id]
        if len(remaining) == len(self.popups):
            return False
        self.popups = remaining
        self._notify()
        return True

    async def mark_read_and_dismiss(self, notification_id: str) -> bool:
        """Mark read in the backend; only on success remove the popup and refresh the count."""
        user_id = self.current_user_id
        if not user_id:
            return False
        ok = await self._call_store(
            "marking notification as read", False, self._store.mark_read, notification_id, user_id
        )
        if not ok:
            logger.info("Mark read failed for %s; popup left in place", notification_id)
            return False
        if user_id != self.current_user_id:
            return True
        self.dismiss_popup(notification_id)
        await self.refresh_unread_count()
        return True

    # --- Unread count and inbox ---

    async def refresh_unread_count(self) -> int:
        before = self._unread.value
        count = await self._unread.refresh()
        if count != before:
            self._notify()
        return count

    async def load_inbox(self, limit: int | None = None) -> list[NotificationItem]:
        """Unread, eligible notifications for the notification list screen, newest first."""
        user_id = self.current_user_id
        if not user_id:
            return []
        items = await self._call_store(
            "loading notifications", [], self._store.load_notifications, user_id, limit or self._inbox_limit
        )
        return [n for n in items if not n.is_read]

    async def mark_all_read(self, notification_ids: list[str]) -> bool:
        user_id = self.current_user_id
        if not user_id:
            return False
        ok = await self._call_store(
            "marking all notifications as read", False, self._store.mark_all_read, user_id, list(notification_ids)
        )
        if ok:
            await self.refresh_unread_count()
        return ok
