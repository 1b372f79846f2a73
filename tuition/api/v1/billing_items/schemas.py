"""Billing catalog schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class BillingItemCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    unit_price: Optional[Decimal] = Field(
        None,
        ge=0,
        max_digits=12,
        decimal_places=2,
        description="Items without a price are never billed",
    )
    display_order: int = Field(0, ge=0)


class BillingItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    unit_price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    clear_unit_price: bool = Field(False, description="Set unit_price to null (item stops being billed)")
    display_order: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class BillingItemResponse(BaseModel):
    id: UUID
    code: str
    name: str
    unit_price: Optional[Decimal] = None
    is_active: bool
    display_order: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
