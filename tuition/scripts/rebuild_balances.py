"""
Rebuild monthly balances from a given month onwards.

Recalculating one month never refreshes later months, so a backdated payment
leaves later balances stale. This rebuilds every month from --from-month up to
the latest month with ledger activity, for one student or for all students
that have charges, payments or balances.

Usage:
  python -m tuition.scripts.rebuild_balances --from-month 2024-01
  python -m tuition.scripts.rebuild_balances --from-month 2024-01 --student 3f0c...
"""

import argparse
import asyncio
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, union
from sqlalchemy.ext.asyncio import AsyncSession

from tuition.core.ledger import rebuild_balances
from tuition.core.locks import lock_student_rows, student_locks
from tuition.core.models import Charge, MonthlyBalance, Payment
from tuition.core.months import parse_month
from tuition.db.session import AsyncSessionLocal


async def students_with_ledger_activity(db: AsyncSession) -> List[UUID]:
    stmt = union(
        select(Charge.student_id),
        select(Payment.student_id),
        select(MonthlyBalance.student_id),
    )
    result = await db.execute(stmt)
    return sorted({row[0] for row in result.all()}, key=str)


async def run_rebuild(from_month: str, student_id: Optional[UUID] = None) -> int:
    parse_month(from_month)
    total_rows = 0
    async with AsyncSessionLocal() as session:
        student_ids = [student_id] if student_id else await students_with_ledger_activity(session)
        for sid in student_ids:
            async with student_locks([sid]):
                try:
                    await lock_student_rows(session, [sid])
                    rows = await rebuild_balances(session, sid, from_month)
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
            total_rows += len(rows)
            print(f"  {sid}: {len(rows)} months rebuilt")
    return total_rows


def main() -> None:
    parser = argparse.ArgumentParser(description="Rebuild monthly balances from a month onwards")
    parser.add_argument("--from-month", required=True, help="First month to rebuild (YYYY-MM)")
    parser.add_argument("--student", type=UUID, default=None, help="Only rebuild this student id")
    args = parser.parse_args()
    total = asyncio.run(run_rebuild(args.from_month, student_id=args.student))
    print(f"Monthly balances rebuilt: {total}")


if __name__ == "__main__":
    main()
