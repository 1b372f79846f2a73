"""Payment schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from tuition.core.enums import PaymentMethod
from tuition.core.schemas import MonthlyBalanceResponse


class PaymentCreate(BaseModel):
    student_id: UUID
    payment_date: date
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    method: PaymentMethod
    notes: Optional[str] = None


class PaymentResponse(BaseModel):
    id: UUID
    student_id: UUID
    payment_date: date
    amount: Decimal
    method: PaymentMethod
    notes: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PaymentWithStudent(PaymentResponse):
    student_number: Optional[str] = None
    student_name: Optional[str] = None


class ReconciliationResult(BaseModel):
    """Outcome of applying one payment to the student's open charges, oldest month first."""

    settled_charge_ids: List[UUID] = Field(default_factory=list)
    unapplied_amount: Decimal


class PaymentRecordedResponse(BaseModel):
    payment: PaymentResponse
    reconciliation: ReconciliationResult
    balance: MonthlyBalanceResponse
