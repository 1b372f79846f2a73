"""Payments service: append-only payment log, FIFO settlement of open charges, balance refresh."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tuition.core.config import settings
from tuition.core.enums import ChargeStatus
from tuition.core.exceptions import ServiceError, StudentNotFoundError
from tuition.core.ledger import rebuild_balances, recalculate_balance
from tuition.core.locks import lock_student_rows, student_locks
from tuition.core.models import BillingItem, Charge, Payment, Student
from tuition.core.months import month_of
from tuition.core.schemas import MonthlyBalanceResponse

from .schemas import (
    PaymentCreate,
    PaymentRecordedResponse,
    PaymentResponse,
    PaymentWithStudent,
    ReconciliationResult,
)

logger = logging.getLogger(__name__)


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


def _payment_to_response(payment: Payment) -> PaymentResponse:
    return PaymentResponse(
        id=payment.id,
        student_id=payment.student_id,
        payment_date=payment.payment_date,
        amount=_to_decimal(payment.amount),
        method=payment.method,
        notes=payment.notes,
        created_at=payment.created_at,
    )


async def reconcile_charges(
    db: AsyncSession,
    student_id: UUID,
    amount: Decimal,
) -> ReconciliationResult:
    """Settle the student's OPEN charges oldest month first while the payment fully covers them.

    Settlement is all-or-nothing per charge: the walk stops at the first charge the
    remaining amount cannot cover, leaving it and every later charge OPEN. Whatever is
    left over is not attached to any charge; it only shows up in the monthly balance.
    """
    open_charges = (
        await db.execute(
            select(Charge)
            .join(BillingItem, Charge.billing_item_id == BillingItem.id)
            .where(
                Charge.student_id == student_id,
                Charge.status == ChargeStatus.OPEN.value,
            )
            .order_by(
                Charge.billing_month,
                BillingItem.display_order,
                Charge.created_at,
                Charge.id,
            )
        )
    ).scalars().all()

    remaining = _to_decimal(amount)
    settled: List[UUID] = []
    now = datetime.utcnow()
    for charge in open_charges:
        if remaining <= 0:
            break
        charge_amount = _to_decimal(charge.amount)
        if remaining < charge_amount:
            break
        charge.status = ChargeStatus.SETTLED.value
        charge.settled_at = now
        remaining -= charge_amount
        settled.append(charge.id)
    await db.flush()
    return ReconciliationResult(settled_charge_ids=settled, unapplied_amount=remaining)


async def record_payment(
    db: AsyncSession,
    payload: PaymentCreate,
    cascade: Optional[bool] = None,
) -> PaymentRecordedResponse:
    """Persist a payment, reconcile open charges and recalculate the payment month's balance.

    Everything is committed in one transaction under the student's lock. With cascade
    (CASCADE_BALANCE_REBUILD) later months that already have balances are rebuilt too.
    """
    if cascade is None:
        cascade = settings.cascade_balance_rebuild
    amount = _to_decimal(payload.amount)
    if amount <= 0:
        raise ServiceError("Payment amount must be positive", status.HTTP_400_BAD_REQUEST)
    student = await db.get(Student, payload.student_id)
    if not student:
        logger.warning("Payment refused: unknown student %s", payload.student_id)
        raise StudentNotFoundError(payload.student_id)

    student_id = student.id
    month = month_of(payload.payment_date)
    async with student_locks([student_id]):
        try:
            await lock_student_rows(db, [student_id])
            payment = Payment(
                student_id=student_id,
                payment_date=payload.payment_date,
                amount=amount,
                method=payload.method.value,
                notes=(payload.notes or "").strip() or None,
            )
            db.add(payment)
            await db.flush()
            reconciliation = await reconcile_charges(db, student_id, amount)
            if cascade:
                rows = await rebuild_balances(db, student_id, month)
                balance = rows[0]
            else:
                balance = await recalculate_balance(db, student_id, month)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

    await db.refresh(payment)
    logger.info(
        "Recorded payment %s student=%s amount=%s date=%s: settled %d charges, unapplied %s",
        payment.id, student_id, amount, payload.payment_date,
        len(reconciliation.settled_charge_ids), reconciliation.unapplied_amount,
    )
    return PaymentRecordedResponse(
        payment=_payment_to_response(payment),
        reconciliation=reconciliation,
        balance=MonthlyBalanceResponse.model_validate(balance),
    )


async def list_payments(
    db: AsyncSession,
    student_id: Optional[UUID] = None,
    limit: int = 50,
) -> List[PaymentWithStudent]:
    """Most recent payments first (payment date, then entry time)."""
    stmt = select(Payment, Student).join(Student, Payment.student_id == Student.id)
    if student_id is not None:
        stmt = stmt.where(Payment.student_id == student_id)
    stmt = stmt.order_by(Payment.payment_date.desc(), Payment.created_at.desc()).limit(limit)
    result = await db.execute(stmt)
    out = []
    for payment, student in result.all():
        out.append(
            PaymentWithStudent(
                **_payment_to_response(payment).model_dump(),
                student_number=student.student_number,
                student_name=student.name_kanji or student.name_en,
            )
        )
    return out


async def get_payment_history(
    db: AsyncSession,
    student_id: UUID,
) -> List[PaymentResponse]:
    if not await db.get(Student, student_id):
        raise StudentNotFoundError(student_id)
    result = await db.execute(
        select(Payment)
        .where(Payment.student_id == student_id)
        .order_by(Payment.payment_date.desc(), Payment.created_at.desc())
    )
    return [_payment_to_response(p) for p in result.scalars().all()]
