"""Reporting endpoints for budget, FTE and utilization analytics."""

from __future__ import annotations

from decimal import Decimal

from fastapi import APIRouter
from pydantic import BaseModel, Field

from staffplan.api.schemas import SnapshotPayload, WindowPayload
from staffplan.core.numbers import q2
from staffplan.services.engine import StaffingEngine
from staffplan.services.reporting_service import ReportingService, ResourceUtilization

router = APIRouter(prefix="/reports", tags=["reports"])


class ProjectReportPayload(BaseModel):
    snapshot: SnapshotPayload
    client_id: str | None = None


class UtilizationPayload(BaseModel):
    snapshot: SnapshotPayload
    month: str = Field(pattern=r"^\d{4}-\d{2}$")
    underutilized_only: bool = False


class DailyLoadPayload(BaseModel):
    snapshot: SnapshotPayload
    resource_id: str = Field(min_length=1)
    window: WindowPayload


def _service(snapshot: SnapshotPayload) -> ReportingService:
    return ReportingService(StaffingEngine(snapshot.to_snapshot()))


def _money(value: Decimal) -> str:
    return str(q2(value))


def _utilization_row(row: ResourceUtilization) -> dict[str, object]:
    return {
        "resource_id": row.resource_id,
        "resource_name": row.resource_name,
        "working_days": row.working_days,
        "person_days": _money(row.person_days),
        "average_allocation_percent": _money(row.average_allocation_percent),
        "max_staffing_percentage": row.max_staffing_percentage,
    }


@router.post("/budget")
def report_budget(payload: ProjectReportPayload) -> dict[str, object]:
    rows = _service(payload.snapshot).budget_analysis(client_id=payload.client_id)
    return {
        "rows": [
            {
                "project_id": row.project_id,
                "project_name": row.project_name,
                "client_name": row.client_name,
                "budget": _money(row.budget),
                "person_days": _money(row.person_days),
                "estimated_cost": _money(row.estimated_cost),
                "variance": _money(row.variance),
                "budget_usage_percent": _money(row.budget_usage_percent),
            }
            for row in rows
        ]
    }


@router.post("/fte")
def report_fte(payload: ProjectReportPayload) -> dict[str, object]:
    rows = _service(payload.snapshot).project_fte(client_id=payload.client_id)
    return {
        "rows": [
            {
                "project_id": row.project_id,
                "project_name": row.project_name,
                "client_name": row.client_name,
                "working_days": row.working_days,
                "person_days": _money(row.person_days),
                "fte": _money(row.fte),
            }
            for row in rows
        ]
    }


@router.post("/utilization")
def report_utilization(payload: UtilizationPayload) -> dict[str, object]:
    service = _service(payload.snapshot)
    if payload.underutilized_only:
        rows = service.underutilized_resources(payload.month)
    else:
        rows = service.resource_utilization(payload.month)
    return {"month": payload.month, "rows": [_utilization_row(row) for row in rows]}


@router.post("/daily-load")
def report_daily_load(payload: DailyLoadPayload) -> dict[str, object]:
    loads = _service(payload.snapshot).daily_load(payload.resource_id, payload.window.to_window())
    return {
        "resource_id": payload.resource_id,
        "days": [
            {
                "day": row.day.isoformat(),
                "total_percentage": _money(row.total_percentage),
                "max_staffing_percentage": row.max_staffing_percentage,
                "over_allocated": row.over_allocated,
            }
            for row in loads
        ],
        "over_allocated_days": sum(1 for row in loads if row.over_allocated),
    }
