"""Per-student serialization of ledger writes.

Charge generation and payment recording for the same student must not
interleave. In-process writers are serialized with one asyncio.Lock per
student; across processes the services additionally lock the student rows
(SELECT ... FOR UPDATE) inside their transaction.
"""

import asyncio
import weakref
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, List, Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tuition.core.models import Student

_locks: "weakref.WeakValueDictionary[UUID, asyncio.Lock]" = weakref.WeakValueDictionary()


def _lock_for(student_id: UUID) -> asyncio.Lock:
    lock = _locks.get(student_id)
    if lock is None:
        lock = asyncio.Lock()
        _locks[student_id] = lock
    return lock


@asynccontextmanager
async def student_locks(student_ids: Iterable[UUID]) -> AsyncIterator[None]:
    """Hold the locks of all given students. Acquired in sorted order so two callers never deadlock."""
    ordered = sorted(set(student_ids), key=str)
    held: List[asyncio.Lock] = []
    try:
        for sid in ordered:
            lock = _lock_for(sid)
            await lock.acquire()
            held.append(lock)
        yield
    finally:
        for lock in reversed(held):
            lock.release()


async def lock_student_rows(db: AsyncSession, student_ids: Sequence[UUID]) -> None:
    """Row-lock the students for the rest of the current transaction (no-op on SQLite)."""
    if not student_ids:
        return
    await db.execute(
        select(Student.id).where(Student.id.in_(list(student_ids))).with_for_update()
    )
