"""Immutable domain entities read by the staffing engine."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from staffplan.core.numbers import HUNDRED, ZERO
from staffplan.models.allocation import AllocationMap
from staffplan.models.periods import DateWindow


class CalendarEventType(str, enum.Enum):
    NATIONAL_HOLIDAY = "NATIONAL_HOLIDAY"
    COMPANY_CLOSURE = "COMPANY_CLOSURE"
    LOCAL_HOLIDAY = "LOCAL_HOLIDAY"


@dataclass(frozen=True, slots=True)
class CalendarEvent:
    date: date
    type: CalendarEventType
    location: str | None = None
    name: str = ""


@dataclass(frozen=True, slots=True)
class Resource:
    id: str
    name: str
    location: str | None
    hire_date: date | None
    role_id: str | None
    last_day_of_work: date | None = None
    max_staffing_percentage: int = 100
    resigned: bool = False
    horizontal: str | None = None

    def effective_window(self, window: DateWindow) -> DateWindow | None:
        """Clip ``window`` to employment; the last day of work is inclusive."""

        return window.intersect(self.hire_date, self.last_day_of_work)


@dataclass(frozen=True, slots=True)
class Role:
    id: str
    name: str


@dataclass(frozen=True, slots=True)
class RoleCostRecord:
    """One SCD2 row of a role's daily cost; ``end_date=None`` marks the open row."""

    role_id: str
    daily_cost: Decimal
    start_date: date
    end_date: date | None = None

    @property
    def is_open(self) -> bool:
        return self.end_date is None

    def covers(self, day: date) -> bool:
        return self.start_date <= day and (self.end_date is None or day <= self.end_date)


@dataclass(frozen=True, slots=True)
class Client:
    id: str
    name: str
    sector: str = ""


@dataclass(frozen=True, slots=True)
class Contract:
    id: str
    name: str
    wbs_code: str | None = None
    capienza: Decimal = ZERO


@dataclass(frozen=True, slots=True)
class Project:
    id: str
    name: str
    client_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    budget: Decimal = ZERO
    realization_percentage: Decimal = HUNDRED
    contract_id: str | None = None
    status: str | None = None

    def clip(self, window: DateWindow) -> DateWindow | None:
        return window.intersect(self.start_date, self.end_date)

    def is_active_during(self, window: DateWindow) -> bool:
        return self.clip(window) is not None


@dataclass(frozen=True, slots=True, eq=False)
class Assignment:
    id: str
    resource_id: str
    project_id: str
    allocation: AllocationMap = field(default_factory=AllocationMap)


@dataclass(frozen=True, slots=True)
class AllocationTotals:
    person_days: Decimal = ZERO
    cost: Decimal = ZERO

    def __add__(self, other: AllocationTotals) -> AllocationTotals:
        return AllocationTotals(
            person_days=self.person_days + other.person_days,
            cost=self.cost + other.cost,
        )
