"""Schemas shared across ledger modules."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class StudentSummary(BaseModel):
    """Student directory fields shown next to ledger rows."""

    id: UUID
    student_number: str
    name_kanji: Optional[str] = None
    name_en: Optional[str] = None
    nationality: Optional[str] = None
    cohort: Optional[str] = None
    status: str

    class Config:
        from_attributes = True


class MonthlyBalanceResponse(BaseModel):
    student_id: UUID
    month: str
    previous_balance: Decimal
    monthly_charge: Decimal
    monthly_payment: Decimal
    balance: Decimal
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
