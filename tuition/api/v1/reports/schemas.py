"""Report and dashboard schemas."""

from decimal import Decimal
from typing import List
from uuid import UUID

from pydantic import BaseModel

from tuition.api.v1.payments.schemas import PaymentWithStudent


class BalanceSummary(BaseModel):
    student_count: int
    total_amount: Decimal


class ItemSales(BaseModel):
    """Money collected for one billing item: SETTLED charges only."""

    billing_item_id: UUID
    item_code: str
    item_name: str
    display_order: int
    amount: Decimal
    count: int


class DashboardResponse(BaseModel):
    month: str
    receivable_summary: BalanceSummary
    overpaid_summary: BalanceSummary
    item_sales: List[ItemSales]
    recent_payments: List[PaymentWithStudent]


class ItemSalesReportResponse(BaseModel):
    month: str
    item_sales: List[ItemSales]
    total: Decimal
