"""Monthly balance: materialized per-student, per-month ledger position."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from tuition.db.session import Base


class MonthlyBalance(Base):
    """
    balance = previous_balance + monthly_charge - monthly_payment.
    Rows are only ever written by a full recalculation; never adjusted by deltas.
    """

    __tablename__ = "monthly_balances"

    student_id = Column(Uuid(as_uuid=True), ForeignKey("students.id", ondelete="RESTRICT"), primary_key=True)
    month = Column(String(7), primary_key=True)  # YYYY-MM
    previous_balance = Column(Numeric(12, 2), nullable=False, default=0)
    monthly_charge = Column(Numeric(12, 2), nullable=False, default=0)
    monthly_payment = Column(Numeric(12, 2), nullable=False, default=0)
    balance = Column(Numeric(12, 2), nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student = relationship("Student")
