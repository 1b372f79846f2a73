"""Payment recording: FIFO all-or-nothing settlement and balance refresh."""

import uuid
from datetime import date
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tuition.api.v1.charges.service import generate_charges
from tuition.api.v1.payments.schemas import PaymentCreate
from tuition.api.v1.payments.service import record_payment
from tuition.api.v1.reports.service import overpaid_summary
from tuition.core.enums import ChargeStatus, PaymentMethod
from tuition.core.exceptions import ServiceError
from tuition.core.exemptions import ExemptionPolicy
from tuition.core.models import Charge, MonthlyBalance, Payment

NO_EXEMPTIONS = ExemptionPolicy({})


async def _statuses(db: AsyncSession, student_id) -> dict:
    rows = (
        await db.execute(select(Charge).where(Charge.student_id == student_id))
    ).scalars().all()
    return {c.billing_month: c.status for c in rows}


async def _three_open_months(db: AsyncSession, make_student, make_item):
    student = await make_student()
    await make_item("TUITION", "30000")
    for month in ("2024-01", "2024-02", "2024-03"):
        await generate_charges(db, month, [student.id], NO_EXEMPTIONS)
    return student


def _pay(student_id, amount: str, day: date = date(2024, 3, 10)) -> PaymentCreate:
    return PaymentCreate(
        student_id=student_id,
        payment_date=day,
        amount=Decimal(amount),
        method=PaymentMethod.BANK_TRANSFER,
    )


@pytest.mark.asyncio
async def test_fifo_settles_oldest_months_that_fit(db_session, make_student, make_item) -> None:
    student = await _three_open_months(db_session, make_student, make_item)
    student_id = student.id

    result = await record_payment(db_session, _pay(student_id, "65000"))

    assert await _statuses(db_session, student_id) == {
        "2024-01": ChargeStatus.SETTLED.value,
        "2024-02": ChargeStatus.SETTLED.value,
        "2024-03": ChargeStatus.OPEN.value,
    }
    assert len(result.reconciliation.settled_charge_ids) == 2
    assert result.reconciliation.unapplied_amount == Decimal("5000")
    # March: 60000 carried + 30000 billed - 65000 paid, independent of settlement
    assert result.balance.month == "2024-03"
    assert result.balance.previous_balance == Decimal("60000")
    assert result.balance.monthly_payment == Decimal("65000")
    assert result.balance.balance == Decimal("25000")


@pytest.mark.asyncio
async def test_exact_amount_settles_exactly_one_charge(db_session, make_student, make_item) -> None:
    student = await _three_open_months(db_session, make_student, make_item)
    student_id = student.id

    result = await record_payment(db_session, _pay(student_id, "30000"))

    assert result.reconciliation.unapplied_amount == Decimal("0")
    assert list((await _statuses(db_session, student_id)).values()).count(ChargeStatus.SETTLED.value) == 1
    assert (await _statuses(db_session, student_id))["2024-01"] == ChargeStatus.SETTLED.value


@pytest.mark.asyncio
async def test_partial_payment_settles_nothing(db_session, make_student, make_item) -> None:
    student = await _three_open_months(db_session, make_student, make_item)
    student_id = student.id

    result = await record_payment(db_session, _pay(student_id, "29999"))

    assert result.reconciliation.settled_charge_ids == []
    assert result.reconciliation.unapplied_amount == Decimal("29999")
    assert set((await _statuses(db_session, student_id)).values()) == {ChargeStatus.OPEN.value}
    assert result.balance.balance == Decimal("60001")


@pytest.mark.asyncio
async def test_walk_stops_at_first_charge_that_does_not_fit(db_session, make_student, make_item) -> None:
    student = await make_student()
    student_id = student.id
    big = await make_item("TUITION", "50000", display_order=1)
    await generate_charges(db_session, "2024-01", [student_id], NO_EXEMPTIONS)
    big.unit_price = Decimal("10000")
    await db_session.commit()
    await generate_charges(db_session, "2024-02", [student_id], NO_EXEMPTIONS)

    # 20000 would cover February's 10000, but January's 50000 blocks the walk
    result = await record_payment(db_session, _pay(student_id, "20000", day=date(2024, 2, 1)))

    assert result.reconciliation.settled_charge_ids == []
    assert set((await _statuses(db_session, student_id)).values()) == {ChargeStatus.OPEN.value}


@pytest.mark.asyncio
async def test_remainder_is_not_banked_for_later_payments(db_session, make_student, make_item) -> None:
    student = await _three_open_months(db_session, make_student, make_item)
    student_id = student.id

    await record_payment(db_session, _pay(student_id, "45000"))
    second = await record_payment(db_session, _pay(student_id, "20000"))

    # first payment settles January; second alone cannot cover February
    statuses = await _statuses(db_session, student_id)
    assert statuses["2024-01"] == ChargeStatus.SETTLED.value
    assert statuses["2024-02"] == ChargeStatus.OPEN.value
    assert second.reconciliation.settled_charge_ids == []
    assert second.balance.balance == Decimal("25000")


@pytest.mark.asyncio
async def test_overpayment_settles_everything_and_goes_negative(db_session, make_student, make_item) -> None:
    student = await _three_open_months(db_session, make_student, make_item)
    student_id = student.id

    result = await record_payment(db_session, _pay(student_id, "100000"))

    assert set((await _statuses(db_session, student_id)).values()) == {ChargeStatus.SETTLED.value}
    assert result.reconciliation.unapplied_amount == Decimal("10000")
    assert result.balance.balance == Decimal("-10000")
    summary = await overpaid_summary(db_session, "2024-03")
    assert summary.student_count == 1
    assert summary.total_amount == Decimal("-10000")


@pytest.mark.asyncio
async def test_payment_month_is_recalculated_not_charge_month(db_session, make_student, make_item) -> None:
    student = await _three_open_months(db_session, make_student, make_item)
    student_id = student.id

    await record_payment(db_session, _pay(student_id, "30000", day=date(2024, 4, 2)))

    april = await db_session.get(MonthlyBalance, (student_id, "2024-04"))
    assert april.previous_balance == Decimal("90000")
    assert april.monthly_charge == Decimal("0")
    assert april.balance == Decimal("60000")


@pytest.mark.asyncio
async def test_cascade_rebuilds_later_months(db_session, make_student, make_item) -> None:
    student = await _three_open_months(db_session, make_student, make_item)
    student_id = student.id

    await record_payment(db_session, _pay(student_id, "30000", day=date(2024, 1, 31)), cascade=True)

    march = await db_session.get(MonthlyBalance, (student_id, "2024-03"))
    assert march.balance == Decimal("60000")


@pytest.mark.asyncio
async def test_unknown_student_is_not_found(db_session) -> None:
    with pytest.raises(ServiceError) as exc:
        await record_payment(db_session, _pay(uuid.uuid4(), "1000"))
    assert exc.value.status_code == 404
    assert (await db_session.execute(select(Payment))).scalars().all() == []


@pytest.mark.asyncio
async def test_record_payment_endpoint(client: AsyncClient, db_session, make_student, make_item) -> None:
    student = await _three_open_months(db_session, make_student, make_item)
    student_id = str(student.id)

    response = await client.post(
        "/api/v1/payments",
        json={
            "student_id": student_id,
            "payment_date": "2024-03-10",
            "amount": "65000",
            "method": "CASH",
            "notes": "  front desk  ",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["payment"]["notes"] == "front desk"
    assert data["payment"]["method"] == "CASH"
    assert len(data["reconciliation"]["settled_charge_ids"]) == 2
    assert Decimal(data["balance"]["balance"]) == Decimal("25000")

    listing = await client.get("/api/v1/payments", params={"student_id": student_id})
    assert listing.status_code == 200
    assert listing.json()[0]["student_number"] == "S0001"

    history = await client.get(f"/api/v1/payments/history/{student_id}")
    assert history.status_code == 200
    assert len(history.json()) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"payment_date": "2024-03-10", "amount": "0", "method": "CASH"},
        {"payment_date": "2024-03-10", "amount": "-5", "method": "CASH"},
        {"payment_date": "2024-03-10", "amount": "0.004", "method": "CASH"},
        {"payment_date": "2024-03-10", "amount": "123456789012345.67", "method": "CASH"},
        {"payment_date": "2024-03-10", "amount": "100", "method": "CHEQUE"},
        {"payment_date": "not-a-date", "amount": "100", "method": "CASH"},
    ],
)
async def test_record_payment_validation(client: AsyncClient, make_student, payload: dict) -> None:
    student = await make_student()
    response = await client.post("/api/v1/payments", json={"student_id": str(student.id), **payload})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_payment_history_unknown_student(client: AsyncClient) -> None:
    response = await client.get(f"/api/v1/payments/history/{uuid.uuid4()}")
    assert response.status_code == 404
