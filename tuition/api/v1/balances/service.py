"""Balances service: read views over monthly_balances plus the explicit rebuild operation."""

import logging
import math
from datetime import date
from typing import Dict, List, Optional, Sequence
from uuid import UUID

from fastapi import status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tuition.api.v1.charges.service import list_student_charges
from tuition.api.v1.payments.service import get_payment_history
from tuition.core.enums import BalanceFilter
from tuition.core.exceptions import ServiceError, StudentNotFoundError
from tuition.core.ledger import rebuild_balances
from tuition.core.locks import lock_student_rows, student_locks
from tuition.core.models import MonthlyBalance, Payment, Student
from tuition.core.months import parse_month
from tuition.core.schemas import MonthlyBalanceResponse, StudentSummary

from .schemas import (
    BalanceListItem,
    BalanceListResponse,
    Pagination,
    RebuildBalancesResponse,
    StudentLedgerResponse,
)

logger = logging.getLogger(__name__)


async def _get_student_or_404(db: AsyncSession, student_id: UUID) -> Student:
    student = await db.get(Student, student_id)
    if not student:
        raise StudentNotFoundError(student_id)
    return student


async def get_balance(
    db: AsyncSession,
    student_id: UUID,
    month: str,
) -> MonthlyBalanceResponse:
    parse_month(month)
    await _get_student_or_404(db, student_id)
    row = await db.get(MonthlyBalance, (student_id, month))
    if not row:
        raise ServiceError(f"No balance recorded for {month}", status.HTTP_404_NOT_FOUND)
    return MonthlyBalanceResponse.model_validate(row)


async def get_student_ledger(
    db: AsyncSession,
    student_id: UUID,
) -> StudentLedgerResponse:
    """Balance history (oldest month first), charges (newest month first) and payments (newest first)."""
    student = await _get_student_or_404(db, student_id)
    history = (
        await db.execute(
            select(MonthlyBalance)
            .where(MonthlyBalance.student_id == student_id)
            .order_by(MonthlyBalance.month)
        )
    ).scalars().all()
    return StudentLedgerResponse(
        student=StudentSummary.model_validate(student),
        balance_history=[MonthlyBalanceResponse.model_validate(b) for b in history],
        charges=await list_student_charges(db, student_id),
        payments=await get_payment_history(db, student_id),
    )


async def _last_payment_dates(db: AsyncSession, student_ids: Sequence[UUID]) -> Dict[UUID, date]:
    if not student_ids:
        return {}
    result = await db.execute(
        select(Payment.student_id, func.max(Payment.payment_date))
        .where(Payment.student_id.in_(list(student_ids)))
        .group_by(Payment.student_id)
    )
    return {sid: last for sid, last in result.all()}


async def list_balances(
    db: AsyncSession,
    month: str,
    balance_filter: BalanceFilter = BalanceFilter.all,
    cohort: Optional[str] = None,
    nationality: Optional[str] = None,
    page: int = 1,
    page_size: int = 50,
) -> BalanceListResponse:
    """One page of the month's balances, largest amount owed first."""
    parse_month(month)
    conditions = [MonthlyBalance.month == month]
    if balance_filter == BalanceFilter.receivable:
        conditions.append(MonthlyBalance.balance > 0)
    elif balance_filter == BalanceFilter.overpaid:
        conditions.append(MonthlyBalance.balance < 0)
    if cohort:
        conditions.append(Student.cohort == cohort)
    if nationality:
        conditions.append(Student.nationality == nationality)

    total = (
        await db.execute(
            select(func.count())
            .select_from(MonthlyBalance)
            .join(Student, MonthlyBalance.student_id == Student.id)
            .where(*conditions)
        )
    ).scalar() or 0

    rows = (
        await db.execute(
            select(MonthlyBalance, Student)
            .join(Student, MonthlyBalance.student_id == Student.id)
            .where(*conditions)
            .order_by(MonthlyBalance.balance.desc(), Student.student_number)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
    ).all()

    last_payments = await _last_payment_dates(db, [b.student_id for b, _ in rows])
    items = [
        BalanceListItem(
            **MonthlyBalanceResponse.model_validate(b).model_dump(),
            student=StudentSummary.model_validate(s),
            last_payment_date=last_payments.get(b.student_id),
        )
        for b, s in rows
    ]
    return BalanceListResponse(
        month=month,
        items=items,
        pagination=Pagination(
            page=page,
            page_size=page_size,
            total=total,
            total_pages=math.ceil(total / page_size) if page_size else 0,
        ),
    )


async def rebuild_student_balances(
    db: AsyncSession,
    student_id: UUID,
    from_month: str,
) -> RebuildBalancesResponse:
    """Recalculate from_month and every later month for the student, under the student's lock."""
    parse_month(from_month)
    await _get_student_or_404(db, student_id)
    async with student_locks([student_id]):
        try:
            await lock_student_rows(db, [student_id])
            rows = await rebuild_balances(db, student_id, from_month)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
    return RebuildBalancesResponse(
        student_id=student_id,
        from_month=from_month,
        balances=[MonthlyBalanceResponse.model_validate(r) for r in rows],
    )
