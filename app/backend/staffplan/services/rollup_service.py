"""Hierarchical rollups of aggregated allocation values by dimension and month."""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field, replace
from decimal import Decimal

from staffplan.core.config import get_settings
from staffplan.core.numbers import ZERO
from staffplan.models.entities import (
    AllocationTotals,
    Assignment,
    CalendarEvent,
    Client,
    Contract,
    Project,
    Resource,
)
from staffplan.models.periods import DateWindow
from staffplan.repositories.snapshot_repository import SnapshotRepository, StaffingSnapshot
from staffplan.services.allocation_aggregator import AllocationAggregator
from staffplan.services.calendar_service import CalendarService, as_calendar
from staffplan.services.cost_history import CostHistoryResolver

logger = logging.getLogger(__name__)

UNSPECIFIED_ID = "__unspecified__"
UNSPECIFIED_LABEL = "Unspecified"


class Dimension(str, enum.Enum):
    RESOURCE = "resource"
    PROJECT = "project"
    CLIENT = "client"
    CONTRACT = "contract"
    LOCATION = "location"
    HORIZONTAL = "horizontal"
    NONE = "none"


class RollupUnit(str, enum.Enum):
    DAYS = "days"
    FTE = "fte"
    COST = "cost"


PROJECT_LEVELS = {Dimension.PROJECT, Dimension.CLIENT, Dimension.CONTRACT}


@dataclass(slots=True)
class RollupNode:
    id: str
    label: str
    dimension: Dimension | None
    total_value: Decimal = ZERO
    monthly_values: dict[str, Decimal] = field(default_factory=dict)
    children: list[RollupNode] = field(default_factory=list)

    @property
    def is_leaf(self) -> bool:
        return not self.children


@dataclass(frozen=True, slots=True)
class RollupRow:
    depth: int
    id: str
    label: str
    dimension: Dimension | None
    total_value: Decimal
    monthly_values: dict[str, Decimal]
    is_subtotal: bool = False
    is_total: bool = False


def normalize_dimension_path(dimension_path: Iterable[Dimension | str]) -> list[Dimension]:
    """``[none]`` (or an empty path) is a flat per-resource table."""

    levels = [Dimension(level) for level in dimension_path]
    levels = [level for level in levels if level is not Dimension.NONE]
    return levels or [Dimension.RESOURCE]


class RollupBuilder:
    """Builds ``RollupNode`` trees; values are summed from leaves to every ancestor."""

    def __init__(
        self,
        repository: SnapshotRepository,
        aggregator: AllocationAggregator,
        *,
        reference_working_days_per_month: int | None = None,
        require_projects: bool = True,
    ) -> None:
        self.repo = repository
        self.aggregator = aggregator
        # Without project data, assignments are aggregated unclipped at full realization.
        self.require_projects = require_projects
        if reference_working_days_per_month is None:
            reference_working_days_per_month = get_settings().reference_working_days_per_month
        self.reference_working_days = Decimal(reference_working_days_per_month)

    def _resolve_level(
        self,
        level: Dimension,
        resource: Resource,
        project: Project | None,
    ) -> tuple[str, str] | None:
        if level is Dimension.RESOURCE:
            return resource.id, resource.name
        if project is None and level in PROJECT_LEVELS:
            return None
        if level is Dimension.PROJECT:
            return project.id, project.name
        if level is Dimension.CLIENT:
            client = self.repo.get_client(project.client_id)
            return (client.id, client.name) if client is not None else None
        if level is Dimension.CONTRACT:
            contract = self.repo.get_contract(project.contract_id)
            if contract is None:
                return None
            label = f"{contract.wbs_code} - {contract.name}" if contract.wbs_code else contract.name
            return contract.id, label
        if level is Dimension.LOCATION:
            value = resource.location
        else:
            value = resource.horizontal
        if not value:
            return UNSPECIFIED_ID, UNSPECIFIED_LABEL
        return value, value

    def _resolve_path(
        self,
        levels: Sequence[Dimension],
        resource: Resource,
        project: Project | None,
    ) -> list[tuple[str, str]] | None:
        keys: list[tuple[str, str]] = []
        for level in levels:
            resolved = self._resolve_level(level, resource, project)
            if resolved is None:
                return None
            keys.append(resolved)
        return keys

    def unit_value(self, totals: AllocationTotals, unit: RollupUnit) -> Decimal:
        if unit is RollupUnit.COST:
            return totals.cost
        if unit is RollupUnit.FTE:
            return totals.person_days / self.reference_working_days
        return totals.person_days

    def rollup(
        self,
        dimension_path: Iterable[Dimension | str],
        window: DateWindow,
        unit: RollupUnit | str = RollupUnit.DAYS,
        *,
        assignments: Iterable[Assignment] | None = None,
    ) -> RollupNode:
        levels = normalize_dimension_path(dimension_path)
        unit = RollupUnit(unit)
        month_keys = window.month_keys()

        root = RollupNode(
            id="total",
            label="Total",
            dimension=None,
            monthly_values={key: ZERO for key in month_keys},
        )
        nodes: dict[tuple[str, ...], RollupNode] = {(): root}
        skipped = 0

        for assignment in self.repo.list_assignments() if assignments is None else assignments:
            resource = self.repo.get_resource(assignment.resource_id)
            project = self.repo.get_project(assignment.project_id)
            if resource is None or (project is None and self.require_projects):
                skipped += 1
                continue
            keys = self._resolve_path(levels, resource, project)
            if keys is None:
                skipped += 1
                continue

            monthly = self.aggregator.aggregate_monthly(assignment, resource, window, project)
            values = {key: self.unit_value(totals, unit) for key, totals in monthly.items()}
            contribution = sum(values.values(), ZERO)

            path: tuple[str, ...] = ()
            lineage = [root]
            for level, (node_id, label) in zip(levels, keys):
                path = (*path, node_id)
                node = nodes.get(path)
                if node is None:
                    node = RollupNode(
                        id=node_id,
                        label=label,
                        dimension=level,
                        monthly_values={key: ZERO for key in month_keys},
                    )
                    nodes[path] = node
                    lineage[-1].children.append(node)
                lineage.append(node)

            for node in lineage:
                for key, value in values.items():
                    node.monthly_values[key] += value
                node.total_value += contribution

        if skipped:
            logger.debug("Rollup skipped %d assignments with missing owner entities", skipped)
        return root


def sort_rollup(
    node: RollupNode,
    *,
    key: Callable[[RollupNode], object] = lambda item: item.total_value,
    reverse: bool = True,
) -> RollupNode:
    """Return a copy of the tree with every level's children sorted."""

    children = [sort_rollup(child, key=key, reverse=reverse) for child in node.children]
    children.sort(key=key, reverse=reverse)
    return replace(node, monthly_values=dict(node.monthly_values), children=children)


def flatten_rollup(node: RollupNode) -> list[RollupRow]:
    """Table rows in tree order; group nodes are subtotals and the root closes as the total."""

    rows: list[RollupRow] = []

    def _walk(current: RollupNode, depth: int) -> None:
        for child in current.children:
            rows.append(
                RollupRow(
                    depth=depth,
                    id=child.id,
                    label=child.label,
                    dimension=child.dimension,
                    total_value=child.total_value,
                    monthly_values=dict(child.monthly_values),
                    is_subtotal=not child.is_leaf,
                )
            )
            _walk(child, depth + 1)

    _walk(node, 0)
    rows.append(
        RollupRow(
            depth=0,
            id=node.id,
            label=node.label,
            dimension=node.dimension,
            total_value=node.total_value,
            monthly_values=dict(node.monthly_values),
            is_total=True,
        )
    )
    return rows


def rollup(
    assignments: Iterable[Assignment],
    resources: Iterable[Resource],
    dimension_path: Iterable[Dimension | str],
    window: DateWindow,
    calendar: CalendarService | Iterable[CalendarEvent] | None,
    cost_resolver: CostHistoryResolver | None,
    unit: RollupUnit | str = RollupUnit.DAYS,
    *,
    projects: Iterable[Project] | None = None,
    clients: Iterable[Client] = (),
    contracts: Iterable[Contract] = (),
    reference_working_days_per_month: int | None = None,
) -> RollupNode:
    """Standalone rollup over plain entity lists.

    When ``projects`` is not given, assignments are counted without project
    clipping or realization, and project, client and contract levels are empty.
    """

    snapshot = StaffingSnapshot(
        resources=tuple(resources),
        projects=tuple(projects or ()),
        assignments=tuple(assignments),
        clients=tuple(clients),
        contracts=tuple(contracts),
    )
    builder = RollupBuilder(
        SnapshotRepository(snapshot),
        AllocationAggregator(as_calendar(calendar), cost_resolver),
        reference_working_days_per_month=reference_working_days_per_month,
        require_projects=projects is not None,
    )
    return builder.rollup(dimension_path, window, unit)
