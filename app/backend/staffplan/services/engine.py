"""Facade wiring the engine components over one snapshot."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from decimal import Decimal

from staffplan.core.config import Settings, get_settings
from staffplan.core.errors import UnknownEntityError
from staffplan.models.entities import AllocationTotals, Assignment, Project, Resource
from staffplan.models.periods import DateWindow
from staffplan.repositories.snapshot_repository import SnapshotRepository, StaffingSnapshot
from staffplan.services.allocation_aggregator import AllocationAggregator
from staffplan.services.calendar_service import CalendarService
from staffplan.services.cost_history import CostHistoryResolver
from staffplan.services.forecast_service import (
    CapacityForecaster,
    CapacityMonth,
    ForecastProjector,
    MonthProjection,
)
from staffplan.services.rollup_service import Dimension, RollupBuilder, RollupNode, RollupUnit

logger = logging.getLogger(__name__)


class StaffingEngine:
    """All engine operations bound to a single immutable snapshot.

    Build a new engine whenever the snapshot changes; nothing is cached
    across snapshots.
    """

    def __init__(self, snapshot: StaffingSnapshot, *, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.repo = SnapshotRepository(snapshot)
        self.calendar = CalendarService(snapshot.calendar_events)
        self.costs = CostHistoryResolver(snapshot.cost_history)
        self.aggregator = AllocationAggregator(self.calendar, self.costs)
        self.rollups = RollupBuilder(
            self.repo,
            self.aggregator,
            reference_working_days_per_month=self.settings.reference_working_days_per_month,
        )
        self.projector = ForecastProjector(
            self.aggregator,
            lookback_months=self.settings.forecast_lookback_months,
        )
        self.capacity = CapacityForecaster(self.repo, self.projector)

    # ---------- Lookups ----------
    def _get_assignment(self, assignment_id: str) -> Assignment:
        assignment = self.repo.get_assignment(assignment_id)
        if assignment is None:
            raise UnknownEntityError("assignment", assignment_id)
        return assignment

    def _get_resource(self, resource_id: str) -> Resource:
        resource = self.repo.get_resource(resource_id)
        if resource is None:
            raise UnknownEntityError("resource", resource_id)
        return resource

    def _owners(self, assignment: Assignment) -> tuple[Resource | None, Project | None]:
        return self.repo.get_resource(assignment.resource_id), self.repo.get_project(assignment.project_id)

    # ---------- Operations ----------
    def daily_cost(self, role_id: str, on: date) -> Decimal:
        return self.costs.daily_cost(role_id, on)

    def aggregate_assignment(self, assignment: Assignment, window: DateWindow) -> AllocationTotals:
        resource, project = self._owners(assignment)
        if resource is None or project is None:
            logger.debug("Assignment %s skipped: resource or project missing", assignment.id)
            return AllocationTotals()
        return self.aggregator.aggregate(assignment, resource, window, project)

    def aggregate(self, assignment_id: str, window: DateWindow) -> AllocationTotals:
        return self.aggregate_assignment(self._get_assignment(assignment_id), window)

    def aggregate_resource(self, resource_id: str, window: DateWindow) -> AllocationTotals:
        self._get_resource(resource_id)
        totals = AllocationTotals()
        for assignment in self.repo.list_assignments_for_resource(resource_id):
            totals += self.aggregate_assignment(assignment, window)
        return totals

    def rollup(
        self,
        dimension_path: Iterable[Dimension | str],
        window: DateWindow,
        unit: RollupUnit | str = RollupUnit.DAYS,
    ) -> RollupNode:
        return self.rollups.rollup(dimension_path, window, unit)

    def project_month(self, assignment_id: str, month: date | str, *, today: date) -> MonthProjection:
        assignment = self._get_assignment(assignment_id)
        resource = self._get_resource(assignment.resource_id)
        project = self.repo.get_project(assignment.project_id)
        return self.projector.project_month(resource, assignment, project, month, today=today)

    def capacity_forecast(
        self,
        *,
        today: date,
        horizon_months: int | None = None,
        horizontal: str | None = None,
        client_id: str | None = None,
        project_id: str | None = None,
    ) -> list[CapacityMonth]:
        if horizon_months is None:
            horizon_months = self.settings.forecast_horizon_months
        return self.capacity.forecast(
            today=today,
            horizon_months=horizon_months,
            horizontal=horizontal,
            client_id=client_id,
            project_id=project_id,
        )
