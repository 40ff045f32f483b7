"""
Per-vehicle state locking.

Serializes the read-modify-write of a vehicle's live state. Within one
process an asyncio.Lock per vehicle is enough; with the "redis" backend a
Redis lock is taken as well so several workers serialize too.
"""

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from redis.exceptions import LockError

from backend.app.core.config import settings
from backend.app.core.exceptions import VehicleBusyError
from backend.app.core.redis_client import redis_client

logger = logging.getLogger("fleet_telemetry.locking")


class VehicleLockRegistry:

    def __init__(self, backend: Optional[str] = None, redis=None, timeout_seconds: Optional[int] = None):
        self.backend = backend or settings.vehicle_lock_backend
        self.redis = redis if redis is not None else redis_client
        self.timeout_seconds = timeout_seconds or settings.vehicle_lock_timeout_seconds
        # Idle locks are dropped once nobody holds a reference
        self._locks: "weakref.WeakValueDictionary[int, asyncio.Lock]" = weakref.WeakValueDictionary()

    def local_lock(self, vehicle_id: int) -> asyncio.Lock:
        lock = self._locks.get(vehicle_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[vehicle_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, vehicle_id: int) -> AsyncIterator[None]:
        """
        Hold the state lock of one vehicle.

        Raises:
            VehicleBusyError: the lock was not acquired within the timeout
        """
        lock = self.local_lock(vehicle_id)
        if not await self._acquire_local(lock):
            logger.warning("Timed out waiting for state lock of vehicle %s", vehicle_id)
            raise VehicleBusyError(vehicle_id)

        try:
            if self.backend == "redis":
                async with self._redis_lock(vehicle_id):
                    yield
            else:
                yield
        finally:
            lock.release()

    async def _acquire_local(self, lock: asyncio.Lock) -> bool:
        """
        Acquire within the timeout.

        An acquire that completes while the timeout cancels it still owns the
        lock, so the waiter releases it on completion instead of leaking it.
        """
        waiter = asyncio.ensure_future(lock.acquire())
        try:
            done, _ = await asyncio.wait({waiter}, timeout=self.timeout_seconds)
        except asyncio.CancelledError:
            _abandon(waiter, lock)
            raise
        if done:
            return waiter.result()
        _abandon(waiter, lock)
        return False

    @asynccontextmanager
    async def _redis_lock(self, vehicle_id: int) -> AsyncIterator[None]:
        redis_lock = self.redis.lock(
            f"vehicle:state:{vehicle_id}",
            timeout=self.timeout_seconds,
            blocking_timeout=self.timeout_seconds
        )
        acquired = await redis_lock.acquire()
        if not acquired:
            logger.warning("Timed out waiting for redis state lock of vehicle %s", vehicle_id)
            raise VehicleBusyError(vehicle_id)
        try:
            yield
        finally:
            try:
                await redis_lock.release()
            except LockError:
                # Expired while held; the next holder already owns the key
                logger.warning("Redis state lock of vehicle %s expired before release", vehicle_id)


def _abandon(waiter: "asyncio.Future[bool]", lock: asyncio.Lock) -> None:
    def release_if_acquired(future):
        if not future.cancelled() and future.exception() is None and future.result():
            lock.release()

    waiter.cancel()
    waiter.add_done_callback(release_if_acquired)


# Process-wide registry used by ingestion and the status read path
vehicle_locks = VehicleLockRegistry()
