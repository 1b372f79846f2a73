"""Billing catalog router."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from tuition.core.exceptions import ServiceError
from tuition.db.session import get_db

from .schemas import BillingItemCreate, BillingItemResponse, BillingItemUpdate
from . import service

router = APIRouter(prefix="/api/v1/billing-items", tags=["billing-items"])


@router.post(
    "",
    response_model=BillingItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_billing_item(
    payload: BillingItemCreate,
    db: AsyncSession = Depends(get_db),
) -> BillingItemResponse:
    try:
        return await service.create_billing_item(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[BillingItemResponse])
async def list_billing_items(
    include_inactive: bool = Query(False, description="Include deactivated items"),
    db: AsyncSession = Depends(get_db),
) -> List[BillingItemResponse]:
    return await service.list_billing_items(db, include_inactive=include_inactive)


@router.patch("/{billing_item_id}", response_model=BillingItemResponse)
async def update_billing_item(
    billing_item_id: UUID,
    payload: BillingItemUpdate,
    db: AsyncSession = Depends(get_db),
) -> BillingItemResponse:
    item = await service.update_billing_item(db, billing_item_id, payload)
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Billing item not found",
        )
    return item
