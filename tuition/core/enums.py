from enum import Enum


class StudentStatus(str, Enum):
    PRE_ENROLLMENT = "PRE_ENROLLMENT"
    ENROLLED = "ENROLLED"
    ON_LEAVE = "ON_LEAVE"
    WITHDRAWN = "WITHDRAWN"
    EXPELLED = "EXPELLED"
    GRADUATED = "GRADUATED"
    COMPLETED = "COMPLETED"


class ChargeStatus(str, Enum):
    OPEN = "OPEN"
    SETTLED = "SETTLED"


class PaymentMethod(str, Enum):
    CASH = "CASH"
    BANK_TRANSFER = "BANK_TRANSFER"


class BalanceFilter(str, Enum):
    all = "all"
    receivable = "receivable"
    overpaid = "overpaid"
