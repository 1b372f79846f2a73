"""Charge (invoice line): one billing item for one student for one billing month."""

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Numeric, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from tuition.core.enums import ChargeStatus
from tuition.db.session import Base


class Charge(Base):
    """
    Snapshot of a billed item. amount is copied from the item's unit price at creation
    and never changes; status only moves OPEN -> SETTLED.
    """

    __tablename__ = "charges"
    __table_args__ = (
        UniqueConstraint(
            "student_id",
            "billing_item_id",
            "billing_month",
            name="uq_charge_student_item_month",
        ),
        CheckConstraint("status IN ('OPEN','SETTLED')", name="chk_charge_status"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id", ondelete="RESTRICT"), nullable=False, index=True)
    billing_item_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("billing_items.id", ondelete="RESTRICT"),
        nullable=False,
    )
    billing_month = Column(String(7), nullable=False, index=True)  # YYYY-MM
    amount = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), nullable=False, default=ChargeStatus.OPEN.value)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    settled_at = Column(DateTime(timezone=True), nullable=True)

    student = relationship("Student")
    billing_item = relationship("BillingItem")
