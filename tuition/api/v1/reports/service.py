"""Read-only rollups over monthly balances and charges. Nothing here writes."""

import io
from decimal import Decimal
from typing import List

from openpyxl import Workbook
from openpyxl.styles import Font
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tuition.api.v1.payments.service import list_payments
from tuition.core.enums import ChargeStatus
from tuition.core.models import BillingItem, Charge, MonthlyBalance
from tuition.core.months import parse_month

from .schemas import BalanceSummary, DashboardResponse, ItemSales, ItemSalesReportResponse

SALES_SHEET_HEADERS = ("display_order", "item_code", "item_name", "count", "amount")


def _to_decimal(val) -> Decimal:
    if val is None:
        return Decimal("0")
    return val if isinstance(val, Decimal) else Decimal(str(val))


async def _balance_summary(db: AsyncSession, month: str, condition) -> BalanceSummary:
    count, total = (
        await db.execute(
            select(
                func.count(MonthlyBalance.student_id),
                func.coalesce(func.sum(MonthlyBalance.balance), 0),
            ).where(MonthlyBalance.month == month, condition)
        )
    ).one()
    return BalanceSummary(student_count=count or 0, total_amount=_to_decimal(total))


async def receivable_summary(db: AsyncSession, month: str) -> BalanceSummary:
    """Students who still owe money at the end of the month (balance > 0)."""
    parse_month(month)
    return await _balance_summary(db, month, MonthlyBalance.balance > 0)


async def overpaid_summary(db: AsyncSession, month: str) -> BalanceSummary:
    """Students who have paid more than billed (balance < 0); total_amount is negative."""
    parse_month(month)
    return await _balance_summary(db, month, MonthlyBalance.balance < 0)


async def item_sales(db: AsyncSession, month: str) -> List[ItemSales]:
    """
    Sales per billing item for the month, in display order.

    Sales are recognised on settlement: only SETTLED charges count. This is
    deliberately different from the balance, which includes every charge.
    """
    parse_month(month)
    result = await db.execute(
        select(
            BillingItem.id,
            BillingItem.code,
            BillingItem.name,
            BillingItem.display_order,
            func.coalesce(func.sum(Charge.amount), 0),
            func.count(Charge.id),
        )
        .join(Charge, Charge.billing_item_id == BillingItem.id)
        .where(
            Charge.billing_month == month,
            Charge.status == ChargeStatus.SETTLED.value,
        )
        .group_by(BillingItem.id, BillingItem.code, BillingItem.name, BillingItem.display_order)
        .order_by(BillingItem.display_order, BillingItem.name)
    )
    return [
        ItemSales(
            billing_item_id=item_id,
            item_code=code,
            item_name=name,
            display_order=display_order,
            amount=_to_decimal(amount),
            count=count,
        )
        for item_id, code, name, display_order, amount, count in result.all()
    ]


async def get_item_sales_report(db: AsyncSession, month: str) -> ItemSalesReportResponse:
    sales = await item_sales(db, month)
    return ItemSalesReportResponse(
        month=month,
        item_sales=sales,
        total=sum((s.amount for s in sales), Decimal("0")),
    )


async def get_dashboard(db: AsyncSession, month: str, recent_limit: int = 5) -> DashboardResponse:
    return DashboardResponse(
        month=month,
        receivable_summary=await receivable_summary(db, month),
        overpaid_summary=await overpaid_summary(db, month),
        item_sales=await item_sales(db, month),
        recent_payments=await list_payments(db, limit=recent_limit),
    )


async def export_item_sales_report(db: AsyncSession, month: str) -> bytes:
    """Accounting sheet for the month as an .xlsx file."""
    report = await get_item_sales_report(db, month)
    wb = Workbook()
    ws = wb.active
    ws.title = f"Sales {month}"
    ws.append(list(SALES_SHEET_HEADERS))
    for cell in ws[1]:
        cell.font = Font(bold=True)
    for s in report.item_sales:
        ws.append([s.display_order, s.item_code, s.item_name, s.count, float(s.amount)])
    ws.append([None, None, "TOTAL", sum(s.count for s in report.item_sales), float(report.total)])
    ws[ws.max_row][2].font = Font(bold=True)
    bio = io.BytesIO()
    wb.save(bio)
    return bio.getvalue()
