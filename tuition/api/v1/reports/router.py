"""Tuition dashboard and accounting reports."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from tuition.core.config import settings
from tuition.core.exceptions import ServiceError
from tuition.core.months import MONTH_PATTERN, current_month
from tuition.db.session import get_db

from .schemas import DashboardResponse, ItemSalesReportResponse
from . import service

router = APIRouter(prefix="/api/v1/tuition", tags=["tuition-reports"])


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN, description="YYYY-MM; defaults to the current month"),
    db: AsyncSession = Depends(get_db),
) -> DashboardResponse:
    try:
        return await service.get_dashboard(
            db, month or current_month(), recent_limit=settings.recent_payments_limit
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/reports", response_model=ItemSalesReportResponse)
async def get_item_sales_report(
    month: str = Query(..., pattern=MONTH_PATTERN),
    db: AsyncSession = Depends(get_db),
) -> ItemSalesReportResponse:
    try:
        return await service.get_item_sales_report(db, month)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/reports/export")
async def export_item_sales_report(
    month: str = Query(..., pattern=MONTH_PATTERN),
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Download the month's item sales as an Excel sheet."""
    try:
        content = await service.export_item_sales_report(db, month)
        return Response(
            content=content,
            media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={"Content-Disposition": f"attachment; filename=item_sales_{month}.xlsx"},
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
