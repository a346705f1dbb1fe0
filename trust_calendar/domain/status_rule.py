"""
Default Upass/Biyashna rule.

The rule is a policy input: the merger only talks to the StatusRule
protocol, so the cadence can be swapped without touching the merger.

Usage Examples:
    from datetime import date
    from trust_calendar.domain.status_rule import AlternatingStatusRule

    rule = AlternatingStatusRule()               # 2025-01-01 is Upass
    rule.compute_default_status(date(2025, 1, 2))  # FastStatus.BIYASHNA

    # Re-anchor the cadence
    rule = AlternatingStatusRule(base_date=date(2025, 1, 2))
"""
from dataclasses import dataclass
from datetime import date as Date
from typing import Protocol

from .models import FastStatus


# Known Upass day anchoring the alternating cadence
BASE_UPASS_DATE = Date(2025, 1, 1)


class StatusRule(Protocol):
    """Anything that can decide the default fast status of a date."""

    def compute_default_status(self, day: Date) -> FastStatus:
        ...


@dataclass(frozen=True)
class AlternatingStatusRule:
    """
    Alternating day cadence.

    Day 0 (base): base_status
    Day 1: the other status
    Day 2: base_status
    ...
    Dates before the base follow the same parity.
    """
    base_date: Date = BASE_UPASS_DATE
    base_status: FastStatus = FastStatus.UPASS

    def compute_default_status(self, day: Date) -> FastStatus:
        if (day - self.base_date).days % 2 == 0:
            return self.base_status
        return FastStatus.BIYASHNA if self.base_status is FastStatus.UPASS else FastStatus.UPASS


DEFAULT_RULE = AlternatingStatusRule()


def compute_default_status(day: Date, rule: StatusRule = DEFAULT_RULE) -> FastStatus:
    """Default fast status for a date. Total: never raises for a valid date."""
    return rule.compute_default_status(day)
