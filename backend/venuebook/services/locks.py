"""Per-hall critical section around conflict-check-then-insert.

Two layers serialise writers for the same hall:

- a process-local ``asyncio.Lock`` keyed by hall id, held until the
  transaction has committed;
- ``SELECT ... FOR UPDATE`` on the hall row, which PostgreSQL holds until
  commit and which therefore also serialises separate worker processes.
"""

import asyncio
import logging
import uuid
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from venuebook.errors import NotFound
from venuebook.models.hall import Hall

logger = logging.getLogger(__name__)


class HallLocks:
    """Registry of asyncio locks, one per hall id, dropped when unused."""

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[uuid.UUID, asyncio.Lock] = weakref.WeakValueDictionary()

    def for_hall(self, hall_id: uuid.UUID) -> asyncio.Lock:
        lock = self._locks.get(hall_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[hall_id] = lock
        return lock


hall_locks = HallLocks()


@asynccontextmanager
async def hall_critical_section(db: AsyncSession, hall_id: uuid.UUID) -> AsyncIterator[Hall]:
    """Lock ``hall_id``, yield the locked hall row, commit on clean exit.

    On error nothing is committed; the caller's session scope rolls back.
    """
    async with hall_locks.for_hall(hall_id):
        result = await db.execute(
            select(Hall).where(Hall.id == hall_id, Hall.is_active.is_(True)).with_for_update()
        )
        hall = result.scalar_one_or_none()
        if hall is None:
            raise NotFound("Hall not found")
        yield hall
        await db.commit()
        logger.debug("Released critical section for hall %s", hall_id)
