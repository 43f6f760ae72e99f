"""Per-user sync cooldown."""

import logging
import math
import threading
from datetime import datetime, timedelta
from typing import Callable

from app.core.clock import utcnow

logger = logging.getLogger(__name__)


class CooldownGate:
    """Tracks when each user may sync again after a completed sync."""

    def __init__(self, interval_seconds: int, clock: Callable[[], datetime] = utcnow):
        self.interval = timedelta(seconds=interval_seconds)
        self.clock = clock
        self._expiry: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def arm(self, user_id: str) -> datetime:
        """Start the cooldown for a user; returns when it expires."""
        expiry = self.clock() + self.interval
        with self._lock:
            self._expiry[user_id] = expiry
        logger.info(f"Sync cooldown armed for {user_id} until {expiry.isoformat()}")
        return expiry

    def remaining_seconds(self, user_id: str) -> int:
        with self._lock:
            expiry = self._expiry.get(user_id)
        if expiry is None:
            return 0
        remaining = (expiry - self.clock()).total_seconds()
        return max(0, math.ceil(remaining))

    def is_on_cooldown(self, user_id: str) -> bool:
        return self.remaining_seconds(user_id) > 0

    def clear(self, user_id: str) -> None:
        with self._lock:
            self._expiry.pop(user_id, None)

    def purge_expired(self) -> int:
        """Drop entries whose cooldown has passed. Returns how many were dropped."""
        now = self.clock()
        with self._lock:
            expired = [user_id for user_id, expiry in self._expiry.items() if expiry <= now]
            for user_id in expired:
                del self._expiry[user_id]
        return len(expired)
