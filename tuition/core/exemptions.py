"""Calendar-based billing exemptions (e.g. no tuition during long breaks)."""

from typing import Dict, FrozenSet, Iterable, Mapping

from tuition.core.config import settings
from tuition.core.months import parse_month


class ExemptionPolicy:
    """Month-of-year -> set of billing item codes that are not charged in that month.

    Evaluated per generation call; nothing about the policy is stored on charges.
    """

    def __init__(self, rules: Mapping[int, Iterable[str]]) -> None:
        self._rules: Dict[int, FrozenSet[str]] = {}
        for month_of_year, codes in (rules or {}).items():
            m = int(month_of_year)
            if not 1 <= m <= 12:
                raise ValueError(f"Invalid month of year in exemption rules: {month_of_year}")
            self._rules[m] = frozenset(c.strip().upper() for c in codes if c and c.strip())

    def exempt_codes(self, billing_month: str) -> FrozenSet[str]:
        _, m = parse_month(billing_month)
        return self._rules.get(m, frozenset())

    def is_exempt(self, billing_month: str, item_code: str) -> bool:
        return (item_code or "").upper() in self.exempt_codes(billing_month)


def get_exemption_policy() -> ExemptionPolicy:
    """FastAPI dependency: policy built from TUITION_EXEMPTIONS."""
    return ExemptionPolicy(settings.tuition_exemptions)
