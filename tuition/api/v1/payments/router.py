"""Payments router: record (with automatic settlement) and list payments."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tuition.core.exceptions import ServiceError
from tuition.db.session import get_db

from .schemas import PaymentCreate, PaymentRecordedResponse, PaymentResponse, PaymentWithStudent
from . import service

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])


@router.post(
    "",
    response_model=PaymentRecordedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_payment(
    payload: PaymentCreate,
    db: AsyncSession = Depends(get_db),
) -> PaymentRecordedResponse:
    try:
        return await service.record_payment(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[PaymentWithStudent])
async def list_payments(
    student_id: Optional[UUID] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
) -> List[PaymentWithStudent]:
    return await service.list_payments(db, student_id=student_id, limit=limit)


@router.get("/history/{student_id}", response_model=List[PaymentResponse])
async def get_payment_history(
    student_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> List[PaymentResponse]:
    try:
        return await service.get_payment_history(db, student_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
