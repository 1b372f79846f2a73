"""Charge (invoice) schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field

from tuition.core.enums import ChargeStatus
from tuition.core.months import MONTH_PATTERN


class GenerateChargesRequest(BaseModel):
    billing_month: str = Field(..., pattern=MONTH_PATTERN, description="YYYY-MM")
    student_ids: Union[Literal["all"], List[UUID]] = Field(
        ...,
        description='"all" for every enrolled student, or an explicit list of student ids',
    )


class GenerateChargesResponse(BaseModel):
    billing_month: str
    created: int
    student_count: int
    item_count: int


class ChargeResponse(BaseModel):
    id: UUID
    student_id: UUID
    billing_item_id: UUID
    billing_month: str
    amount: Decimal
    status: ChargeStatus
    created_at: datetime
    settled_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ChargeWithItem(ChargeResponse):
    item_code: Optional[str] = None
    item_name: Optional[str] = None
