from tuition.core.models.student import Student
from tuition.core.models.billing_item import BillingItem
from tuition.core.models.charge import Charge
from tuition.core.models.payment import Payment
from tuition.core.models.monthly_balance import MonthlyBalance

__all__ = [
    "Student",
    "BillingItem",
    "Charge",
    "Payment",
    "MonthlyBalance",
]
