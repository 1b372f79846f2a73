"""Charge generation: bills every (student x active priced item) for a month, then refreshes balances."""

import logging
from typing import List, Literal, Optional, Sequence, Union
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tuition.core.enums import ChargeStatus, StudentStatus
from tuition.core.exceptions import DuplicateChargeError, ServiceError, StudentNotFoundError
from tuition.core.exemptions import ExemptionPolicy
from tuition.core.ledger import recalculate_balance
from tuition.core.locks import lock_student_rows, student_locks
from tuition.core.models import BillingItem, Charge, Student
from tuition.core.months import parse_month

from .schemas import ChargeResponse, ChargeWithItem, GenerateChargesResponse

logger = logging.getLogger(__name__)

StudentSelector = Union[Literal["all"], Sequence[UUID]]


def _charge_to_response(charge: Charge) -> ChargeResponse:
    return ChargeResponse(
        id=charge.id,
        student_id=charge.student_id,
        billing_item_id=charge.billing_item_id,
        billing_month=charge.billing_month,
        amount=charge.amount,
        status=charge.status,
        created_at=charge.created_at,
        settled_at=charge.settled_at,
    )


async def resolve_students(db: AsyncSession, selector: StudentSelector) -> List[UUID]:
    """"all" -> every ENROLLED student; an explicit list must only name known students."""
    if selector == "all":
        result = await db.execute(
            select(Student.id)
            .where(Student.status == StudentStatus.ENROLLED.value)
            .order_by(Student.student_number)
        )
        return list(result.scalars().all())

    requested = list(dict.fromkeys(selector))
    if not requested:
        return []
    found = set(
        (await db.execute(select(Student.id).where(Student.id.in_(requested)))).scalars().all()
    )
    missing = [str(sid) for sid in requested if sid not in found]
    if missing:
        raise ServiceError(f"Unknown student ids: {', '.join(missing)}", status.HTTP_400_BAD_REQUEST)
    return requested


async def resolve_billing_items(
    db: AsyncSession,
    billing_month: str,
    policy: ExemptionPolicy,
) -> List[BillingItem]:
    """Active items with a price, in display order, minus the items exempt in this month."""
    result = await db.execute(
        select(BillingItem)
        .where(BillingItem.is_active.is_(True), BillingItem.unit_price.is_not(None))
        .order_by(BillingItem.display_order, BillingItem.name)
    )
    exempt = policy.exempt_codes(billing_month)
    return [item for item in result.scalars().all() if item.code.upper() not in exempt]


async def generate_charges(
    db: AsyncSession,
    billing_month: str,
    student_ids: StudentSelector,
    policy: ExemptionPolicy,
) -> GenerateChargesResponse:
    """Create one OPEN charge per (student, item) for billing_month in a single transaction.

    A (student, item, month) triple that already exists aborts the whole call with 409.
    """
    parse_month(billing_month)
    students = await resolve_students(db, student_ids)
    items = await resolve_billing_items(db, billing_month, policy) if students else []
    if not students or not items:
        logger.info(
            "No charges generated for %s (students=%d, items=%d)", billing_month, len(students), len(items)
        )
        return GenerateChargesResponse(
            billing_month=billing_month, created=0, student_count=len(students), item_count=len(items)
        )

    item_ids = [item.id for item in items]
    async with student_locks(students):
        try:
            await lock_student_rows(db, students)
            duplicate = (
                await db.execute(
                    select(Charge.id)
                    .where(
                        Charge.billing_month == billing_month,
                        Charge.student_id.in_(students),
                        Charge.billing_item_id.in_(item_ids),
                    )
                    .limit(1)
                )
            ).scalar_one_or_none()
            if duplicate:
                raise DuplicateChargeError(billing_month)
            charges = [
                Charge(
                    student_id=student_id,
                    billing_item_id=item.id,
                    billing_month=billing_month,
                    amount=item.unit_price,
                    status=ChargeStatus.OPEN.value,
                )
                for student_id in students
                for item in items
            ]
            db.add_all(charges)
            await db.flush()
            for student_id in students:
                await recalculate_balance(db, student_id, billing_month)
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning("Duplicate charge generation refused for %s", billing_month)
            raise DuplicateChargeError(billing_month)
        except ServiceError as e:
            await db.rollback()
            logger.warning("Charge generation for %s refused: %s", billing_month, e.message)
            raise
        except Exception:
            await db.rollback()
            raise

    logger.info(
        "Generated %d charges for %s (%d students x %d items)",
        len(charges), billing_month, len(students), len(items),
    )
    return GenerateChargesResponse(
        billing_month=billing_month,
        created=len(charges),
        student_count=len(students),
        item_count=len(items),
    )


async def list_student_charges(
    db: AsyncSession,
    student_id: UUID,
    billing_month: Optional[str] = None,
    status_filter: Optional[ChargeStatus] = None,
) -> List[ChargeWithItem]:
    if not await db.get(Student, student_id):
        raise StudentNotFoundError(student_id)
    stmt = (
        select(Charge, BillingItem.code, BillingItem.name)
        .join(BillingItem, Charge.billing_item_id == BillingItem.id)
        .where(Charge.student_id == student_id)
    )
    if billing_month is not None:
        parse_month(billing_month)
        stmt = stmt.where(Charge.billing_month == billing_month)
    if status_filter is not None:
        stmt = stmt.where(Charge.status == status_filter.value)
    stmt = stmt.order_by(Charge.billing_month.desc(), BillingItem.display_order, Charge.created_at)
    result = await db.execute(stmt)
    out = []
    for charge, item_code, item_name in result.all():
        out.append(
            ChargeWithItem(
                **_charge_to_response(charge).model_dump(),
                item_code=item_code,
                item_name=item_name,
            )
        )
    return out
