"""
labor_engine.py — Average labour cost for service time pricing.

Covers:
  - Mean hourly rate across active employees
  - Average cost per minute (the rate the costing engine multiplies service minutes by)
  - Staffing summary for the cost-analysis view

No active employees is a normal state (fresh catalogue); it yields 0.0, never
an exception or NaN.
"""

from typing import Any, Dict, Iterable, List

from kalkulator.config import MINUTES_PER_HOUR
from kalkulator.models.pricing_models import Employee


class LaborEngine:
    """Derives labour rates from the employee catalogue."""

    def __init__(self, employees: Iterable[Employee]) -> None:
        self._active: List[Employee] = [e for e in employees if e.active]

    @property
    def active_headcount(self) -> int:
        return len(self._active)

    def average_hourly_rate(self) -> float:
        """Mean hourly rate of active employees; 0.0 with no active employees."""
        if not self._active:
            return 0.0
        return sum(float(e.hourly_rate) for e in self._active) / len(self._active)

    def average_cost_per_minute(self) -> float:
        return self.average_hourly_rate() / MINUTES_PER_HOUR

    def summary(self) -> Dict[str, Any]:
        """Labour figures shown alongside the cost analysis."""
        hourly = self.average_hourly_rate()
        return {
            "active_employees": self.active_headcount,
            "average_hourly_rate": round(hourly, 2),
            "average_cost_per_minute": round(hourly / MINUTES_PER_HOUR, 4),
        }


def average_cost_per_minute(employees: Iterable[Employee]) -> float:
    """Mean hourly rate of active employees divided by 60 (0.0 if none are active)."""
    return LaborEngine(employees).average_cost_per_minute()
