from __future__ import annotations

from collections.abc import Generator
from datetime import date, timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from staffplan.api.dependencies import get_today
from staffplan.main import create_app
from staffplan.models import (
    AllocationMap,
    Assignment,
    CalendarEvent,
    CalendarEventType,
    Project,
    Resource,
    RoleCostRecord,
)
from staffplan.repositories.snapshot_repository import StaffingSnapshot

FIXED_TODAY = date(2024, 6, 15)
MILAN = "Milan"
ROME = "Rome"


def make_resource(
    resource_id: str = "r1",
    *,
    location: str | None = MILAN,
    hire_date: date | None = date(2024, 1, 1),
    role_id: str | None = "dev",
    **kwargs: object,
) -> Resource:
    kwargs.setdefault("name", f"Resource {resource_id}")
    return Resource(
        id=resource_id,
        location=location,
        hire_date=hire_date,
        role_id=role_id,
        **kwargs,
    )


def make_project(project_id: str = "p1", **kwargs: object) -> Project:
    kwargs.setdefault("name", f"Project {project_id}")
    return Project(id=project_id, **kwargs)


def make_assignment(
    assignment_id: str,
    resource_id: str,
    project_id: str,
    allocation: dict[str, int | str] | None = None,
) -> Assignment:
    return Assignment(
        id=assignment_id,
        resource_id=resource_id,
        project_id=project_id,
        allocation=AllocationMap.from_raw(allocation, assignment_id=assignment_id),
    )


def weekday_allocation(start: date, end: date, percentage: int) -> dict[str, int]:
    allocation: dict[str, int] = {}
    current = start
    while current <= end:
        if current.weekday() < 5:
            allocation[current.isoformat()] = percentage
        current += timedelta(days=1)
    return allocation


def role_history() -> tuple[RoleCostRecord, ...]:
    return (
        RoleCostRecord(role_id="dev", daily_cost=Decimal("100"), start_date=date(2024, 1, 1), end_date=date(2024, 5, 31)),
        RoleCostRecord(role_id="dev", daily_cost=Decimal("120"), start_date=date(2024, 6, 1)),
    )


def milan_local_holiday() -> CalendarEvent:
    return CalendarEvent(
        date=date(2024, 6, 3),
        type=CalendarEventType.LOCAL_HOLIDAY,
        location=MILAN,
        name="Sant'Ambrogio (moved)",
    )


@pytest.fixture()
def milan_snapshot() -> StaffingSnapshot:
    return StaffingSnapshot(
        resources=(make_resource("r1"),),
        projects=(make_project("p1"),),
        assignments=(make_assignment("a1", "r1", "p1", {"2024-05-30": 100, "2024-06-03": 50}),),
        cost_history=role_history(),
        calendar_events=(milan_local_holiday(),),
    )


def milan_payload() -> dict[str, object]:
    return {
        "resources": [
            {"id": "r1", "name": "Resource r1", "location": MILAN, "hire_date": "2024-01-01", "role_id": "dev"},
        ],
        "projects": [{"id": "p1", "name": "Project p1", "budget": "1000"}],
        "assignments": [
            {
                "id": "a1",
                "resource_id": "r1",
                "project_id": "p1",
                "allocation": {"2024-05-30": 100, "2024-06-03": 50},
            }
        ],
        "roles": [{"id": "dev", "name": "Developer"}],
        "cost_history": [
            {"role_id": "dev", "daily_cost": "100", "start_date": "2024-01-01", "end_date": "2024-05-31"},
            {"role_id": "dev", "daily_cost": "120", "start_date": "2024-06-01"},
        ],
        "calendar": [{"date": "2024-06-03", "type": "LOCAL_HOLIDAY", "location": MILAN}],
    }


@pytest.fixture()
def client() -> Generator[TestClient, None, None]:
    app = create_app()

    def override_today() -> date:
        return FIXED_TODAY

    app.dependency_overrides[get_today] = override_today
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
