from typing import Optional
from uuid import UUID

from fastapi import status


class ServiceError(Exception):
    """Base exception for ledger service errors; routers map status_code to the HTTP response."""

    def __init__(self, message: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class StudentNotFoundError(ServiceError):
    def __init__(self, student_id: Optional[UUID] = None) -> None:
        super().__init__("Student not found", status.HTTP_404_NOT_FOUND)
        self.student_id = student_id


class DuplicateChargeError(ServiceError):
    """A (student, billing item, month) charge already exists; the whole batch is refused."""

    def __init__(self, billing_month: str) -> None:
        super().__init__(
            f"Charges for {billing_month} already exist for some of these students and items",
            status.HTTP_409_CONFLICT,
        )
        self.billing_month = billing_month
