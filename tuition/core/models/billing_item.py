"""Billing catalog item (Tuition, Dormitory, Textbooks...)."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, Numeric, String, Uuid

from tuition.db.session import Base


class BillingItem(Base):
    """Chargeable item. Items without a unit price are never billed; soft delete via is_active."""

    __tablename__ = "billing_items"
    __table_args__ = (
        CheckConstraint("unit_price IS NULL OR unit_price >= 0", name="chk_billing_item_unit_price"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Stable key referenced by exemption rules (e.g. TUITION)
    code = Column(String(50), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    display_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
