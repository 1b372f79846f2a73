"""Charges router: monthly bulk generation and per-student listing."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tuition.core.enums import ChargeStatus
from tuition.core.exceptions import ServiceError
from tuition.core.exemptions import ExemptionPolicy, get_exemption_policy
from tuition.core.months import MONTH_PATTERN
from tuition.db.session import get_db

from .schemas import ChargeWithItem, GenerateChargesRequest, GenerateChargesResponse
from . import service

router = APIRouter(prefix="/api/v1/charges", tags=["charges"])


@router.post(
    "",
    response_model=GenerateChargesResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_charges(
    payload: GenerateChargesRequest,
    db: AsyncSession = Depends(get_db),
    policy: ExemptionPolicy = Depends(get_exemption_policy),
) -> GenerateChargesResponse:
    try:
        return await service.generate_charges(db, payload.billing_month, payload.student_ids, policy)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[ChargeWithItem])
async def list_student_charges(
    student_id: UUID,
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN, description="Billing month, YYYY-MM"),
    charge_status: Optional[ChargeStatus] = Query(None, description="OPEN or SETTLED"),
    db: AsyncSession = Depends(get_db),
) -> List[ChargeWithItem]:
    try:
        return await service.list_student_charges(
            db,
            student_id,
            billing_month=month,
            status_filter=charge_status,
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
