"""Billing catalog service layer. Price changes never touch charges already issued."""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from tuition.core.exceptions import ServiceError
from tuition.core.models import BillingItem

from .schemas import BillingItemCreate, BillingItemResponse, BillingItemUpdate

logger = logging.getLogger(__name__)


def _to_response(item: BillingItem) -> BillingItemResponse:
    return BillingItemResponse(
        id=item.id,
        code=item.code,
        name=item.name,
        unit_price=item.unit_price,
        is_active=item.is_active,
        display_order=item.display_order,
        created_at=item.created_at,
        updated_at=item.updated_at,
    )


async def create_billing_item(
    db: AsyncSession,
    payload: BillingItemCreate,
) -> BillingItemResponse:
    code = payload.code.strip().upper()[:50]
    existing = (
        await db.execute(select(BillingItem.id).where(BillingItem.code == code))
    ).scalar_one_or_none()
    if existing:
        raise ServiceError("Billing item code already exists", status.HTTP_409_CONFLICT)
    try:
        item = BillingItem(
            code=code,
            name=payload.name.strip(),
            unit_price=payload.unit_price,
            display_order=payload.display_order,
            is_active=True,
        )
        db.add(item)
        await db.commit()
        await db.refresh(item)
    except IntegrityError:
        await db.rollback()
        raise ServiceError("Billing item code already exists", status.HTTP_409_CONFLICT)
    logger.info("Created billing item %s (%s) price=%s", item.code, item.id, item.unit_price)
    return _to_response(item)


async def list_billing_items(
    db: AsyncSession,
    include_inactive: bool = False,
) -> List[BillingItemResponse]:
    stmt = select(BillingItem)
    if not include_inactive:
        stmt = stmt.where(BillingItem.is_active.is_(True))
    stmt = stmt.order_by(BillingItem.display_order, BillingItem.name)
    result = await db.execute(stmt)
    return [_to_response(item) for item in result.scalars().all()]


async def update_billing_item(
    db: AsyncSession,
    billing_item_id: UUID,
    payload: BillingItemUpdate,
) -> Optional[BillingItemResponse]:
    item = await db.get(BillingItem, billing_item_id)
    if not item:
        return None
    if payload.name is not None:
        item.name = payload.name.strip()
    if payload.clear_unit_price:
        item.unit_price = None
    elif payload.unit_price is not None:
        item.unit_price = payload.unit_price
    if payload.display_order is not None:
        item.display_order = payload.display_order
    if payload.is_active is not None:
        item.is_active = payload.is_active
    await db.commit()
    await db.refresh(item)
    return _to_response(item)
