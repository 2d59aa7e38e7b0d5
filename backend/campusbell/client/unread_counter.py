"""Unread counter: the in-memory unread count for one signed-in user, refreshed from the store on demand."""
import asyncio
import logging

from campusbell.client.store import NotificationStore
from campusbell.services.display import badge_label

logger = logging.getLogger(__name__)


class UnreadCounter:
    """No caching beyond `value`; every refresh re-queries. May lag the backend between refreshes."""

    def __init__(self, store: NotificationStore) -> None:
        self._store = store
        self._user_id: str | None = None
        self.value = 0

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def badge_label(self) -> str:
        return badge_label(self.value)

    def bind(self, user_id: str) -> None:
        if user_id != self._user_id:
            self._user_id = user_id
            self.value = 0

    def reset(self) -> None:
        self._user_id = None
        self.value = 0

    async def refresh(self) -> int:
        """Re-query the count for the bound user. A result for a user no longer bound is discarded."""
        user_id = self._user_id
        if not user_id:
            return self.value
        try:
            count = await asyncio.to_thread(self._store.get_unread_count, user_id)
        except Exception as e:
            logger.warning("Error refreshing unread count for user %s: %s", user_id, e, exc_info=True)
            return self.value
        if user_id != self._user_id:
            logger.debug("Discarding unread count for signed-out user %s", user_id)
            return self.value
        self.value = count
        return count
