"""Reduction of sparse allocation maps to person-days and cost."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import date
from decimal import Decimal

from staffplan.core.numbers import HUNDRED, ZERO, to_decimal
from staffplan.models.entities import AllocationTotals, Assignment, CalendarEvent, Project, Resource
from staffplan.models.periods import DateWindow, month_key
from staffplan.services.calendar_service import CalendarService, as_calendar
from staffplan.services.cost_history import CostHistoryResolver


class AllocationAggregator:
    """Sums allocation percentages over working days inside an effective window.

    The effective window is the requested window clipped to the resource's
    employment (hire date to last day of work, both inclusive) and, when a
    project is given, to the project's start/end dates. Allocation keys outside
    it, or on non-working days for the resource's location, are not counted.
    """

    def __init__(
        self,
        calendar: CalendarService,
        cost_resolver: CostHistoryResolver | None = None,
    ) -> None:
        self.calendar = calendar
        self.cost_resolver = cost_resolver

    def effective_window(
        self,
        resource: Resource,
        window: DateWindow,
        project: Project | None = None,
    ) -> DateWindow | None:
        clipped = resource.effective_window(window)
        if clipped is None or project is None:
            return clipped
        return project.clip(clipped)

    def counted_entries(
        self,
        assignment: Assignment,
        resource: Resource,
        window: DateWindow,
        project: Project | None = None,
    ) -> Iterator[tuple[date, Decimal]]:
        effective = self.effective_window(resource, window, project)
        if effective is None:
            return
        for day, percentage in assignment.allocation.between(effective.start, effective.end):
            if self.calendar.is_working_day(day, resource.location):
                yield day, percentage

    def _entry_totals(
        self,
        day: date,
        percentage: Decimal,
        resource: Resource,
        realization: Decimal,
    ) -> AllocationTotals:
        share = percentage / HUNDRED
        if self.cost_resolver is None:
            return AllocationTotals(person_days=share, cost=ZERO)
        daily_cost = self.cost_resolver.daily_cost(resource.role_id, day)
        return AllocationTotals(person_days=share, cost=share * daily_cost * realization)

    @staticmethod
    def _realization(project: Project | None) -> Decimal:
        if project is None:
            return Decimal(1)
        return to_decimal(project.realization_percentage) / HUNDRED

    def aggregate(
        self,
        assignment: Assignment,
        resource: Resource,
        window: DateWindow,
        project: Project | None = None,
    ) -> AllocationTotals:
        realization = self._realization(project)
        totals = AllocationTotals()
        for day, percentage in self.counted_entries(assignment, resource, window, project):
            totals += self._entry_totals(day, percentage, resource, realization)
        return totals

    def aggregate_monthly(
        self,
        assignment: Assignment,
        resource: Resource,
        window: DateWindow,
        project: Project | None = None,
    ) -> dict[str, AllocationTotals]:
        """Per ``YYYY-MM`` totals for every month of ``window`` in a single pass."""

        realization = self._realization(project)
        buckets = {key: AllocationTotals() for key in window.month_keys()}
        for day, percentage in self.counted_entries(assignment, resource, window, project):
            key = month_key(day)
            buckets[key] = buckets[key] + self._entry_totals(day, percentage, resource, realization)
        return buckets


def aggregate(
    assignment: Assignment,
    resource: Resource,
    window: DateWindow,
    calendar: CalendarService | Iterable[CalendarEvent] | None,
    cost_resolver: CostHistoryResolver | None = None,
    project: Project | None = None,
) -> AllocationTotals:
    return AllocationAggregator(as_calendar(calendar), cost_resolver).aggregate(
        assignment,
        resource,
        window,
        project,
    )
