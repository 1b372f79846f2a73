"""Monthly balance ledger.

balance(M) = balance(M-1) + sum(charges billed for M) - sum(payments dated in M)

Every write recomputes all four stored fields from the underlying charge and
payment facts, so calling it again with unchanged facts gives the same row.
Recalculating a month does not refresh later months; use rebuild_balances for that.
"""

import logging
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tuition.core.models import Charge, MonthlyBalance, Payment
from tuition.core.months import month_bounds, month_of, month_range, parse_month, previous_month

logger = logging.getLogger(__name__)


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


async def monthly_charge_total(db: AsyncSession, student_id: UUID, month: str) -> Decimal:
    """All charges billed for the month, OPEN or SETTLED."""
    total = (
        await db.execute(
            select(func.coalesce(func.sum(Charge.amount), 0)).where(
                Charge.student_id == student_id,
                Charge.billing_month == month,
            )
        )
    ).scalar()
    return _to_decimal(total)


async def monthly_payment_total(db: AsyncSession, student_id: UUID, month: str) -> Decimal:
    start, end = month_bounds(month)
    total = (
        await db.execute(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                Payment.student_id == student_id,
                Payment.payment_date >= start,
                Payment.payment_date < end,
            )
        )
    ).scalar()
    return _to_decimal(total)


async def recalculate_balance(db: AsyncSession, student_id: UUID, month: str) -> MonthlyBalance:
    """Recompute and upsert MonthlyBalance(student, month). Flushes; the caller commits."""
    parse_month(month)
    prev = await db.get(MonthlyBalance, (student_id, previous_month(month)))
    previous_balance = _to_decimal(prev.balance) if prev else Decimal("0")
    monthly_charge = await monthly_charge_total(db, student_id, month)
    monthly_payment = await monthly_payment_total(db, student_id, month)
    balance = previous_balance + monthly_charge - monthly_payment

    row = await db.get(MonthlyBalance, (student_id, month))
    if row is None:
        row = MonthlyBalance(student_id=student_id, month=month)
        db.add(row)
    row.previous_balance = previous_balance
    row.monthly_charge = monthly_charge
    row.monthly_payment = monthly_payment
    row.balance = balance
    await db.flush()
    logger.debug(
        "Recalculated balance student=%s month=%s previous=%s charge=%s payment=%s balance=%s",
        student_id, month, previous_balance, monthly_charge, monthly_payment, balance,
    )
    return row


async def latest_ledger_month(db: AsyncSession, student_id: UUID) -> Optional[str]:
    """Latest month with a balance row, a charge or a payment for the student."""
    last_balance = (
        await db.execute(select(func.max(MonthlyBalance.month)).where(MonthlyBalance.student_id == student_id))
    ).scalar()
    last_charge = (
        await db.execute(select(func.max(Charge.billing_month)).where(Charge.student_id == student_id))
    ).scalar()
    last_payment_date = (
        await db.execute(select(func.max(Payment.payment_date)).where(Payment.student_id == student_id))
    ).scalar()
    candidates = [m for m in (last_balance, last_charge) if m]
    if last_payment_date is not None:
        candidates.append(month_of(last_payment_date))
    return max(candidates) if candidates else None


async def rebuild_balances(db: AsyncSession, student_id: UUID, from_month: str) -> List[MonthlyBalance]:
    """Recalculate from_month and every later month up to the student's latest ledger month, in order.

    Nothing is written when from_month is past the latest month with activity.
    """
    parse_month(from_month)
    latest = await latest_ledger_month(db, student_id)
    if latest is None or from_month > latest:
        logger.info("No ledger activity for student %s from %s; nothing to rebuild", student_id, from_month)
        return []
    rows = []
    for month in month_range(from_month, latest):
        rows.append(await recalculate_balance(db, student_id, month))
    logger.info("Rebuilt %d monthly balances for student %s from %s", len(rows), student_id, from_month)
    return rows
