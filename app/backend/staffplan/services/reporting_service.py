"""Dashboard reports built on the staffing engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from staffplan.core.errors import UnknownEntityError
from staffplan.core.numbers import HUNDRED, ZERO, safe_div, to_decimal
from staffplan.models.entities import AllocationTotals, Project, Resource
from staffplan.models.periods import DateWindow
from staffplan.services.engine import StaffingEngine


@dataclass(frozen=True, slots=True)
class ProjectBudgetRow:
    project_id: str
    project_name: str
    client_name: str | None
    budget: Decimal
    person_days: Decimal
    estimated_cost: Decimal
    variance: Decimal
    budget_usage_percent: Decimal


@dataclass(frozen=True, slots=True)
class ProjectFteRow:
    project_id: str
    project_name: str
    client_name: str | None
    working_days: int
    person_days: Decimal
    fte: Decimal


@dataclass(frozen=True, slots=True)
class ResourceUtilization:
    resource_id: str
    resource_name: str
    working_days: int
    person_days: Decimal
    average_allocation_percent: Decimal
    max_staffing_percentage: int


@dataclass(frozen=True, slots=True)
class DailyLoad:
    day: date
    total_percentage: Decimal
    max_staffing_percentage: int
    over_allocated: bool


class ReportingService:
    """Project and resource summaries; over-allocation is reported, never rejected."""

    def __init__(self, engine: StaffingEngine) -> None:
        self.engine = engine
        self.repo = engine.repo

    def _project_totals(self, project: Project) -> AllocationTotals:
        assignments = self.repo.list_assignments_for_project(project.id)
        starts = [row.allocation.first_day for row in assignments if row.allocation]
        ends = [row.allocation.last_day for row in assignments if row.allocation]
        window_start = project.start_date or (min(starts) if starts else None)
        window_end = project.end_date or (max(ends) if ends else None)
        if window_start is None or window_end is None or window_start > window_end:
            return AllocationTotals()

        window = DateWindow(window_start, window_end)
        totals = AllocationTotals()
        for assignment in assignments:
            totals += self.engine.aggregate_assignment(assignment, window)
        return totals

    def _client_name(self, project: Project) -> str | None:
        client = self.repo.get_client(project.client_id)
        return client.name if client is not None else None

    def budget_analysis(self, *, client_id: str | None = None) -> list[ProjectBudgetRow]:
        rows: list[ProjectBudgetRow] = []
        for project in self.repo.list_projects(client_id=client_id):
            totals = self._project_totals(project)
            budget = to_decimal(project.budget)
            rows.append(
                ProjectBudgetRow(
                    project_id=project.id,
                    project_name=project.name,
                    client_name=self._client_name(project),
                    budget=budget,
                    person_days=totals.person_days,
                    estimated_cost=totals.cost,
                    variance=budget - totals.cost,
                    budget_usage_percent=safe_div(totals.cost * HUNDRED, budget),
                )
            )
        rows.sort(key=lambda row: row.project_name)
        return rows

    def project_fte(self, *, client_id: str | None = None) -> list[ProjectFteRow]:
        """FTE over each dated project's lifetime; undated projects are left out."""

        rows: list[ProjectFteRow] = []
        for project in self.repo.list_projects(client_id=client_id):
            if project.start_date is None or project.end_date is None:
                continue
            working_days = self.engine.calendar.working_days_between(project.start_date, project.end_date, None)
            person_days = self._project_totals(project).person_days
            rows.append(
                ProjectFteRow(
                    project_id=project.id,
                    project_name=project.name,
                    client_name=self._client_name(project),
                    working_days=working_days,
                    person_days=person_days,
                    fte=safe_div(person_days, working_days),
                )
            )
        rows.sort(key=lambda row: row.project_name)
        return rows

    def _utilization(self, resource: Resource, window: DateWindow) -> ResourceUtilization:
        effective = resource.effective_window(window)
        working_days = self.engine.calendar.working_days_in(effective, resource.location)
        person_days = ZERO
        for assignment in self.repo.list_assignments_for_resource(resource.id):
            person_days += self.engine.aggregate_assignment(assignment, window).person_days
        return ResourceUtilization(
            resource_id=resource.id,
            resource_name=resource.name,
            working_days=working_days,
            person_days=person_days,
            average_allocation_percent=safe_div(person_days * HUNDRED, working_days),
            max_staffing_percentage=resource.max_staffing_percentage,
        )

    def resource_utilization(self, month: date | str) -> list[ResourceUtilization]:
        window = DateWindow.for_month(month)
        rows = [self._utilization(resource, window) for resource in self.repo.list_resources()]
        rows.sort(key=lambda row: (row.average_allocation_percent, row.resource_name))
        return rows

    def underutilized_resources(self, month: date | str) -> list[ResourceUtilization]:
        window = DateWindow.for_month(month)
        rows: list[ResourceUtilization] = []
        for row in self.resource_utilization(month):
            resource = self.repo.get_resource(row.resource_id)
            if resource is None or resource.effective_window(window) is None:
                continue
            if row.average_allocation_percent < row.max_staffing_percentage:
                rows.append(row)
        return rows

    def daily_load(self, resource_id: str, window: DateWindow) -> list[DailyLoad]:
        """Summed percentage per working day of the resource's effective window."""

        resource = self.repo.get_resource(resource_id)
        if resource is None:
            raise UnknownEntityError("resource", resource_id)
        effective = resource.effective_window(window)
        if effective is None:
            return []

        totals: dict[date, Decimal] = {}
        for assignment in self.repo.list_assignments_for_resource(resource.id):
            project = self.repo.get_project(assignment.project_id)
            if project is None:
                continue
            for day, percentage in self.engine.aggregator.counted_entries(assignment, resource, effective, project):
                totals[day] = totals.get(day, ZERO) + percentage

        loads: list[DailyLoad] = []
        for day in effective.days():
            if not self.engine.calendar.is_working_day(day, resource.location):
                continue
            total = totals.get(day, ZERO)
            loads.append(
                DailyLoad(
                    day=day,
                    total_percentage=total,
                    max_staffing_percentage=resource.max_staffing_percentage,
                    over_allocated=total > resource.max_staffing_percentage,
                )
            )
        return loads
