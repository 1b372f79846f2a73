"""Monthly balance schemas."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from tuition.api.v1.charges.schemas import ChargeWithItem
from tuition.api.v1.payments.schemas import PaymentResponse
from tuition.core.schemas import MonthlyBalanceResponse, StudentSummary


class BalanceListItem(MonthlyBalanceResponse):
    student: StudentSummary
    last_payment_date: Optional[date] = None


class Pagination(BaseModel):
    page: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)


class BalanceListResponse(BaseModel):
    month: str
    items: List[BalanceListItem]
    pagination: Pagination


class StudentLedgerResponse(BaseModel):
    """Everything the ledger knows about one student."""

    student: StudentSummary
    balance_history: List[MonthlyBalanceResponse]
    charges: List[ChargeWithItem]
    payments: List[PaymentResponse]


class RebuildBalancesResponse(BaseModel):
    student_id: UUID
    from_month: str
    balances: List[MonthlyBalanceResponse]
