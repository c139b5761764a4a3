# ===== app/services/booking/staff_locks.py =====
"""
Per-staff write locks serializing booking commits.

Two writers targeting the same staff member never run their
validate-then-insert sections concurrently. Locks are always taken in
ascending staff id order so multi-staff bookings cannot deadlock.
"""
import logging
import time
from contextlib import contextmanager
from threading import Lock
from typing import Dict, Iterable, Iterator, List, Optional

import redis
from redis.exceptions import LockError

from app.config.redis import RedisKeys, get_redis
from app.config.settings import get_settings
from app.core.exceptions import ConflictError

logger = logging.getLogger(__name__)


class StaffLockManager:
    """In-process locks; enough when a single API process does the writing"""

    def __init__(self, timeout_seconds: float = 5.0):
        self.timeout_seconds = timeout_seconds
        self._locks: Dict[int, Lock] = {}
        self._registry_lock = Lock()

    def _lock_for(self, staff_id: int) -> Lock:
        with self._registry_lock:
            lock = self._locks.get(staff_id)
            if lock is None:
                lock = self._locks[staff_id] = Lock()
            return lock

    def _acquire_one(self, staff_id: int, timeout: float):
        lock = self._lock_for(staff_id)
        if not lock.acquire(timeout=max(timeout, 0)):
            return None
        return lock

    def _release_one(self, handle) -> None:
        handle.release()

    @contextmanager
    def acquire_many(self, staff_ids: Iterable[int]) -> Iterator[List[int]]:
        """
        Hold the locks of every given staff member.

        Raises ConflictError when they cannot all be taken within the timeout.
        """
        ordered = sorted(set(staff_ids))
        deadline = time.monotonic() + self.timeout_seconds
        held = []
        try:
            for staff_id in ordered:
                handle = self._acquire_one(staff_id, deadline - time.monotonic())
                if handle is None:
                    logger.warning(f"Timed out waiting for booking lock of staff {staff_id}")
                    raise ConflictError(
                        "Another booking is in progress for this staff, please retry",
                        details={"staff_id": staff_id},
                    )
                held.append(handle)
            yield ordered
        finally:
            for handle in reversed(held):
                self._release_one(handle)

    def acquire(self, staff_id: int):
        return self.acquire_many([staff_id])


class RedisStaffLockManager(StaffLockManager):
    """Redis locks, shared by every API process pointing at the same Redis"""

    def __init__(
            self,
            client: Optional[redis.Redis] = None,
            timeout_seconds: float = 5.0,
            ttl_seconds: int = 30
    ):
        super().__init__(timeout_seconds=timeout_seconds)
        self.client = client or get_redis()
        self.ttl_seconds = ttl_seconds

    def _acquire_one(self, staff_id: int, timeout: float):
        lock = self.client.lock(
            RedisKeys.STAFF_BOOKING_LOCK.format(staff_id=staff_id),
            timeout=self.ttl_seconds,
            blocking_timeout=max(timeout, 0.01),
        )
        if not lock.acquire(blocking=True):
            return None
        return lock

    def _release_one(self, handle) -> None:
        try:
            handle.release()
        except LockError:
            # TTL expired while we were still writing; someone may hold it now
            logger.warning(f"Booking lock {handle.name} expired before release")


_lock_manager: Optional[StaffLockManager] = None


def get_lock_manager() -> StaffLockManager:
    """Process-wide lock manager chosen by BOOKING_LOCK_BACKEND"""
    global _lock_manager
    if _lock_manager is None:
        settings = get_settings()
        if settings.BOOKING_LOCK_BACKEND == "redis":
            _lock_manager = RedisStaffLockManager(
                timeout_seconds=settings.BOOKING_LOCK_TIMEOUT_SECONDS,
                ttl_seconds=settings.BOOKING_LOCK_TTL_SECONDS,
            )
        else:
            _lock_manager = StaffLockManager(timeout_seconds=settings.BOOKING_LOCK_TIMEOUT_SECONDS)
        logger.info(f"Booking lock backend: {settings.BOOKING_LOCK_BACKEND}")
    return _lock_manager
