"""Balances router: per-student monthly positions, the month listing and explicit rebuilds."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tuition.core.config import settings
from tuition.core.enums import BalanceFilter
from tuition.core.exceptions import ServiceError
from tuition.core.months import MONTH_PATTERN, current_month
from tuition.core.schemas import MonthlyBalanceResponse
from tuition.db.session import get_db

from .schemas import BalanceListResponse, RebuildBalancesResponse, StudentLedgerResponse
from . import service

router = APIRouter(prefix="/api/v1/balances", tags=["balances"])


@router.get("", response_model=BalanceListResponse)
async def list_balances(
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN, description="YYYY-MM; defaults to the current month"),
    balance_status: BalanceFilter = Query(BalanceFilter.all, description="all, receivable, overpaid"),
    cohort: Optional[str] = Query(None),
    nationality: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    db: AsyncSession = Depends(get_db),
) -> BalanceListResponse:
    try:
        return await service.list_balances(
            db,
            month or current_month(),
            balance_filter=balance_status,
            cohort=cohort,
            nationality=nationality,
            page=page,
            page_size=settings.balance_page_size,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{student_id}", response_model=StudentLedgerResponse)
async def get_student_ledger(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> StudentLedgerResponse:
    try:
        return await service.get_student_ledger(db, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{student_id}/{month}", response_model=MonthlyBalanceResponse)
async def get_balance(
    student_id: UUID,
    month: str,
    db: AsyncSession = Depends(get_db),
) -> MonthlyBalanceResponse:
    try:
        return await service.get_balance(db, student_id, month)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{student_id}/rebuild", response_model=RebuildBalancesResponse)
async def rebuild_balances(
    student_id: UUID,
    from_month: str = Query(..., pattern=MONTH_PATTERN),
    db: AsyncSession = Depends(get_db),
) -> RebuildBalancesResponse:
    try:
        return await service.rebuild_student_balances(db, student_id, from_month)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
