"""Month-level load projection from historic run-rates."""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from staffplan.core.config import get_settings
from staffplan.core.numbers import HUNDRED, ZERO, safe_div
from staffplan.models.entities import Assignment, CalendarEvent, Project, Resource
from staffplan.models.periods import DateWindow, add_months, month_start
from staffplan.repositories.snapshot_repository import SnapshotRepository
from staffplan.services.allocation_aggregator import AllocationAggregator
from staffplan.services.calendar_service import CalendarService, as_calendar
from staffplan.services.cost_history import CostHistoryResolver

logger = logging.getLogger(__name__)


class ForecastState(str, enum.Enum):
    ACTUAL = "ACTUAL"
    PROJECTED = "PROJECTED"
    NONE = "NONE"


@dataclass(frozen=True, slots=True)
class MonthProjection:
    month: str
    person_days: Decimal
    state: ForecastState
    working_days: int = 0
    run_rate: Decimal | None = None


@dataclass(frozen=True, slots=True)
class CapacityMonth:
    month: str
    resource_count: int
    available_person_days: Decimal
    allocated_person_days: Decimal
    projected_person_days: Decimal
    utilization_percent: Decimal
    surplus_deficit: Decimal


class ForecastProjector:
    """Classifies a (resource, assignment, month) as actual, projected or empty.

    Months up to the current one, and future months that already hold at least
    one allocation key, are reported as actuals. Other future months inside the
    project's dates are projected from the mean utilization of the last
    ``lookback_months`` earlier months that hold allocation keys. "Today" is
    always passed in by the caller.
    """

    def __init__(self, aggregator: AllocationAggregator, *, lookback_months: int | None = None) -> None:
        self.aggregator = aggregator
        self.calendar = aggregator.calendar
        if lookback_months is None:
            lookback_months = get_settings().forecast_lookback_months
        self.lookback_months = lookback_months

    def _working_days(self, resource: Resource, window: DateWindow, project: Project | None) -> int:
        effective = self.aggregator.effective_window(resource, window, project)
        return self.calendar.working_days_in(effective, resource.location)

    def run_rate(
        self,
        resource: Resource,
        assignment: Assignment,
        project: Project | None,
        before_month: date,
    ) -> Decimal | None:
        """Mean of person-days / working-days over the trailing months with data."""

        target_start = month_start(before_month)
        rates: list[Decimal] = []
        for key in reversed(assignment.allocation.month_keys()):
            if len(rates) >= self.lookback_months:
                break
            window = DateWindow.for_month(key)
            if window.start >= target_start:
                continue
            working_days = self._working_days(resource, window, project)
            if working_days == 0:
                continue
            totals = self.aggregator.aggregate(assignment, resource, window, project)
            rates.append(totals.person_days / Decimal(working_days))
        if not rates:
            return None
        return sum(rates, ZERO) / Decimal(len(rates))

    def project_month(
        self,
        resource: Resource,
        assignment: Assignment,
        project: Project | None,
        month: date | str,
        *,
        today: date,
    ) -> MonthProjection:
        target = DateWindow.for_month(month)
        has_entries = assignment.allocation.has_entries_between(target.start, target.end)

        if target.start <= month_start(today) or has_entries:
            totals = self.aggregator.aggregate(assignment, resource, target, project)
            return MonthProjection(
                month=target.month_key,
                person_days=totals.person_days,
                state=ForecastState.ACTUAL,
                working_days=self._working_days(resource, target, project),
            )

        if project is None or not project.is_active_during(target):
            return MonthProjection(month=target.month_key, person_days=ZERO, state=ForecastState.NONE)
        working_days = self._working_days(resource, target, project)
        if working_days == 0:
            return MonthProjection(month=target.month_key, person_days=ZERO, state=ForecastState.NONE)

        rate = self.run_rate(resource, assignment, project, target.start)
        if rate is None:
            return MonthProjection(month=target.month_key, person_days=ZERO, state=ForecastState.NONE)
        return MonthProjection(
            month=target.month_key,
            person_days=rate * working_days,
            state=ForecastState.PROJECTED,
            working_days=working_days,
            run_rate=rate,
        )


class CapacityForecaster:
    """Team-level available vs allocated person-days over a month horizon."""

    def __init__(self, repository: SnapshotRepository, projector: ForecastProjector) -> None:
        self.repo = repository
        self.projector = projector

    def _select_resources(
        self,
        *,
        horizontal: str | None,
        client_id: str | None,
        project_id: str | None,
    ) -> list[Resource]:
        resources = list(self.repo.list_resources())
        if horizontal:
            resources = [resource for resource in resources if resource.horizontal == horizontal]
        if project_id:
            staffed = {row.resource_id for row in self.repo.list_assignments_for_project(project_id)}
            resources = [resource for resource in resources if resource.id in staffed]
        elif client_id:
            staffed = {
                row.resource_id
                for project in self.repo.list_projects(client_id=client_id)
                for row in self.repo.list_assignments_for_project(project.id)
            }
            resources = [resource for resource in resources if resource.id in staffed]
        return resources

    def forecast(
        self,
        *,
        today: date,
        horizon_months: int | None = None,
        horizontal: str | None = None,
        client_id: str | None = None,
        project_id: str | None = None,
    ) -> list[CapacityMonth]:
        if horizon_months is None:
            horizon_months = get_settings().forecast_horizon_months
        resources = self._select_resources(horizontal=horizontal, client_id=client_id, project_id=project_id)
        first_month = month_start(today)
        calendar = self.projector.calendar

        months: list[CapacityMonth] = []
        for offset in range(horizon_months):
            window = DateWindow.for_month(add_months(first_month, offset))
            available = ZERO
            allocated = ZERO
            projected = ZERO
            for resource in resources:
                available += calendar.working_days_in(resource.effective_window(window), resource.location)
                for assignment in self.repo.list_assignments_for_resource(resource.id):
                    result = self.projector.project_month(
                        resource,
                        assignment,
                        self.repo.get_project(assignment.project_id),
                        window.start,
                        today=today,
                    )
                    allocated += result.person_days
                    if result.state is ForecastState.PROJECTED:
                        projected += result.person_days
            months.append(
                CapacityMonth(
                    month=window.month_key,
                    resource_count=len(resources),
                    available_person_days=available,
                    allocated_person_days=allocated,
                    projected_person_days=projected,
                    utilization_percent=safe_div(allocated * HUNDRED, available),
                    surplus_deficit=available - allocated,
                )
            )
        logger.debug("Capacity forecast over %d months for %d resources", horizon_months, len(resources))
        return months


def project_month(
    resource: Resource,
    assignment: Assignment,
    project: Project | None,
    month: date | str,
    calendar: CalendarService | Iterable[CalendarEvent] | None,
    *,
    today: date,
    cost_resolver: CostHistoryResolver | None = None,
    lookback_months: int | None = None,
) -> MonthProjection:
    aggregator = AllocationAggregator(as_calendar(calendar), cost_resolver)
    projector = ForecastProjector(aggregator, lookback_months=lookback_months)
    return projector.project_month(resource, assignment, project, month, today=today)
