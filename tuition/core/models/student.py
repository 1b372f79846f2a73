"""Student directory row. Owned by the student directory; the ledger only reads it."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Uuid

from tuition.core.enums import StudentStatus
from tuition.db.session import Base


class Student(Base):
    """Billable student. Only ENROLLED students are picked up by "all" charge generation."""

    __tablename__ = "students"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_number = Column(String(50), unique=True, nullable=False)
    name_kanji = Column(String(255), nullable=True)
    name_en = Column(String(255), nullable=True)
    nationality = Column(String(100), nullable=True)
    cohort = Column(String(50), nullable=True, index=True)
    status = Column(String(20), nullable=False, default=StudentStatus.ENROLLED.value, index=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
