"""Request payloads and response serializers shared by the engine endpoints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from staffplan.core.numbers import q2
from staffplan.models.allocation import AllocationMap
from staffplan.models.entities import (
    AllocationTotals,
    Assignment,
    CalendarEvent,
    CalendarEventType,
    Client,
    Contract,
    Project,
    Resource,
    Role,
    RoleCostRecord,
)
from staffplan.models.periods import DateWindow
from staffplan.repositories.snapshot_repository import StaffingSnapshot
from staffplan.services.forecast_service import CapacityMonth, MonthProjection
from staffplan.services.rollup_service import RollupNode


class CalendarEventPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_date: date = Field(alias="date")
    type: CalendarEventType
    location: str | None = None
    name: str = ""


class ResourcePayload(BaseModel):
    id: str = Field(min_length=1)
    name: str
    location: str | None = None
    hire_date: date | None = None
    role_id: str | None = None
    last_day_of_work: date | None = None
    max_staffing_percentage: int = Field(default=100, ge=0)
    resigned: bool = False
    horizontal: str | None = None


class RolePayload(BaseModel):
    id: str = Field(min_length=1)
    name: str


class RoleCostPayload(BaseModel):
    role_id: str
    daily_cost: Decimal = Field(ge=0)
    start_date: date
    end_date: date | None = None


class ClientPayload(BaseModel):
    id: str = Field(min_length=1)
    name: str
    sector: str = ""


class ContractPayload(BaseModel):
    id: str = Field(min_length=1)
    name: str
    wbs_code: str | None = None
    capienza: Decimal = Decimal("0")


class ProjectPayload(BaseModel):
    id: str = Field(min_length=1)
    name: str
    client_id: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    budget: Decimal = Decimal("0")
    realization_percentage: Decimal = Decimal("100")
    contract_id: str | None = None
    status: str | None = None


class AssignmentPayload(BaseModel):
    id: str = Field(min_length=1)
    resource_id: str
    project_id: str
    # Keys stay raw strings here; AllocationMap.from_raw validates them.
    allocation: dict[str, Decimal] = Field(default_factory=dict)


class SnapshotPayload(BaseModel):
    resources: list[ResourcePayload] = Field(default_factory=list)
    projects: list[ProjectPayload] = Field(default_factory=list)
    assignments: list[AssignmentPayload] = Field(default_factory=list)
    roles: list[RolePayload] = Field(default_factory=list)
    cost_history: list[RoleCostPayload] = Field(default_factory=list)
    clients: list[ClientPayload] = Field(default_factory=list)
    contracts: list[ContractPayload] = Field(default_factory=list)
    calendar: list[CalendarEventPayload] = Field(default_factory=list)

    def to_snapshot(self) -> StaffingSnapshot:
        return StaffingSnapshot(
            resources=tuple(Resource(**item.model_dump()) for item in self.resources),
            projects=tuple(Project(**item.model_dump()) for item in self.projects),
            assignments=tuple(
                Assignment(
                    id=item.id,
                    resource_id=item.resource_id,
                    project_id=item.project_id,
                    allocation=AllocationMap.from_raw(item.allocation, assignment_id=item.id),
                )
                for item in self.assignments
            ),
            roles=tuple(Role(**item.model_dump()) for item in self.roles),
            cost_history=tuple(RoleCostRecord(**item.model_dump()) for item in self.cost_history),
            clients=tuple(Client(**item.model_dump()) for item in self.clients),
            contracts=tuple(Contract(**item.model_dump()) for item in self.contracts),
            calendar_events=tuple(
                CalendarEvent(date=item.event_date, type=item.type, location=item.location, name=item.name)
                for item in self.calendar
            ),
        )


class WindowPayload(BaseModel):
    start: date
    end: date

    def to_window(self) -> DateWindow:
        return DateWindow(self.start, self.end)


# ---------- Serialization ----------
def serialize_window(window: DateWindow) -> dict[str, str]:
    return {"start": window.start.isoformat(), "end": window.end.isoformat()}


def serialize_totals(totals: AllocationTotals) -> dict[str, str]:
    return {
        "person_days": str(q2(totals.person_days)),
        "cost": str(q2(totals.cost)),
    }


def serialize_rollup_node(node: RollupNode) -> dict[str, object]:
    return {
        "id": node.id,
        "label": node.label,
        "dimension": node.dimension.value if node.dimension is not None else None,
        "total_value": str(q2(node.total_value)),
        "monthly_values": {key: str(q2(value)) for key, value in node.monthly_values.items()},
        "children": [serialize_rollup_node(child) for child in node.children],
    }


def serialize_projection(projection: MonthProjection) -> dict[str, object]:
    return {
        "month": projection.month,
        "state": projection.state.value,
        "person_days": str(q2(projection.person_days)),
        "working_days": projection.working_days,
        "run_rate": str(projection.run_rate.quantize(Decimal("0.0001"))) if projection.run_rate is not None else None,
    }


def serialize_capacity_month(row: CapacityMonth) -> dict[str, object]:
    return {
        "month": row.month,
        "resource_count": row.resource_count,
        "available_person_days": str(q2(row.available_person_days)),
        "allocated_person_days": str(q2(row.allocated_person_days)),
        "projected_person_days": str(q2(row.projected_person_days)),
        "utilization_percent": str(q2(row.utilization_percent)),
        "surplus_deficit": str(q2(row.surplus_deficit)),
    }
