"""Per-student write serialization."""

import asyncio
import uuid
from datetime import date
from decimal import Decimal
from typing import AsyncGenerator

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tuition.api.v1.charges.service import generate_charges
from tuition.api.v1.payments.schemas import PaymentCreate, PaymentRecordedResponse
from tuition.api.v1.payments.service import record_payment
from tuition.core.enums import ChargeStatus, PaymentMethod, StudentStatus
from tuition.core.exemptions import ExemptionPolicy
from tuition.core.locks import student_locks
from tuition.core.models import BillingItem, Charge, MonthlyBalance, Student
from tuition.db.session import Base


@pytest.mark.asyncio
async def test_same_student_writers_do_not_interleave() -> None:
    student_id = uuid.uuid4()
    events = []

    async def writer(name: str) -> None:
        async with student_locks([student_id]):
            events.append(f"{name}:start")
            await asyncio.sleep(0.01)
            events.append(f"{name}:end")

    await asyncio.gather(writer("a"), writer("b"))

    assert events in (
        ["a:start", "a:end", "b:start", "b:end"],
        ["b:start", "b:end", "a:start", "a:end"],
    )


@pytest.mark.asyncio
async def test_different_students_run_concurrently() -> None:
    first, second = uuid.uuid4(), uuid.uuid4()
    both_inside = asyncio.Event()
    inside = set()

    async def writer(student_id) -> None:
        async with student_locks([student_id]):
            inside.add(student_id)
            if len(inside) == 2:
                both_inside.set()
            await asyncio.wait_for(both_inside.wait(), timeout=1)

    await asyncio.gather(writer(first), writer(second))

    assert inside == {first, second}


@pytest.mark.asyncio
async def test_overlapping_student_sets_do_not_deadlock() -> None:
    a, b = uuid.uuid4(), uuid.uuid4()

    async def writer(ids) -> None:
        async with student_locks(ids):
            await asyncio.sleep(0.01)

    await asyncio.wait_for(asyncio.gather(writer([a, b]), writer([b, a])), timeout=1)


@pytest.mark.asyncio
async def test_lock_released_on_error() -> None:
    student_id = uuid.uuid4()

    with pytest.raises(RuntimeError):
        async with student_locks([student_id]):
            raise RuntimeError("boom")

    async with student_locks([student_id]):
        pass


@pytest.fixture()
async def file_sessionmaker(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Sessions on a shared SQLite file, each with its own connection."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.mark.asyncio
async def test_concurrent_payments_for_one_student_settle_different_charges(file_sessionmaker) -> None:
    async with file_sessionmaker() as setup:
        student = Student(student_number="S0001", name_en="Student 1", status=StudentStatus.ENROLLED.value)
        setup.add(student)
        setup.add(BillingItem(code="TUITION", name="Tuition", unit_price=Decimal("30000"), display_order=1))
        await setup.commit()
        student_id = student.id
        for month in ("2024-01", "2024-02", "2024-03"):
            await generate_charges(setup, month, [student_id], ExemptionPolicy({}))

    async def pay() -> PaymentRecordedResponse:
        async with file_sessionmaker() as session:
            return await record_payment(
                session,
                PaymentCreate(
                    student_id=student_id,
                    payment_date=date(2024, 3, 15),
                    amount=Decimal("30000"),
                    method=PaymentMethod.CASH,
                ),
            )

    first, second = await asyncio.gather(pay(), pay())

    assert len(first.reconciliation.settled_charge_ids) == 1
    assert len(second.reconciliation.settled_charge_ids) == 1
    assert first.reconciliation.settled_charge_ids != second.reconciliation.settled_charge_ids

    async with file_sessionmaker() as check:
        rows = (
            await check.execute(
                select(Charge.billing_month, Charge.status)
                .where(Charge.student_id == student_id)
                .order_by(Charge.billing_month)
            )
        ).all()
        march = await check.get(MonthlyBalance, (student_id, "2024-03"))

    assert [tuple(r) for r in rows] == [
        ("2024-01", ChargeStatus.SETTLED.value),
        ("2024-02", ChargeStatus.SETTLED.value),
        ("2024-03", ChargeStatus.OPEN.value),
    ]
    assert march.monthly_payment == Decimal("60000")
    assert march.balance == Decimal("30000")
