from datetime import date
from decimal import Decimal

import pytest

from staffplan.core.config import Settings
from staffplan.core.errors import InvalidWindowError, UnknownEntityError
from staffplan.models import AllocationTotals, DateWindow
from staffplan.repositories.snapshot_repository import StaffingSnapshot
from staffplan.services.engine import StaffingEngine
from staffplan.services.forecast_service import ForecastState

from conftest import FIXED_TODAY, make_assignment, role_history

MAY_JUNE = DateWindow(date(2024, 5, 1), date(2024, 6, 30))


def _engine(snapshot: StaffingSnapshot, **overrides: object) -> StaffingEngine:
    return StaffingEngine(snapshot, settings=Settings(**overrides))


def test_engine_aggregates_by_assignment_id(milan_snapshot: StaffingSnapshot) -> None:
    totals = _engine(milan_snapshot).aggregate("a1", MAY_JUNE)

    assert totals == AllocationTotals(person_days=Decimal("1"), cost=Decimal("100"))


def test_engine_aggregates_all_assignments_of_a_resource(milan_snapshot: StaffingSnapshot) -> None:
    snapshot = StaffingSnapshot(
        resources=milan_snapshot.resources,
        projects=milan_snapshot.projects,
        assignments=milan_snapshot.assignments + (make_assignment("a2", "r1", "p1", {"2024-06-04": 50}),),
        cost_history=role_history(),
        calendar_events=milan_snapshot.calendar_events,
    )

    totals = _engine(snapshot).aggregate_resource("r1", MAY_JUNE)

    assert totals == AllocationTotals(person_days=Decimal("1.5"), cost=Decimal("160"))


def test_unknown_ids_raise(milan_snapshot: StaffingSnapshot) -> None:
    engine = _engine(milan_snapshot)

    with pytest.raises(UnknownEntityError):
        engine.aggregate("missing", MAY_JUNE)
    with pytest.raises(UnknownEntityError):
        engine.aggregate_resource("missing", MAY_JUNE)


def test_assignment_with_missing_project_is_zero(milan_snapshot: StaffingSnapshot) -> None:
    snapshot = StaffingSnapshot(
        resources=milan_snapshot.resources,
        assignments=(make_assignment("a1", "r1", "p-gone", {"2024-05-30": 100}),),
    )

    assert _engine(snapshot).aggregate("a1", MAY_JUNE) == AllocationTotals()


def test_engine_uses_configured_fte_divisor(milan_snapshot: StaffingSnapshot) -> None:
    tree = _engine(milan_snapshot, reference_working_days_per_month=10).rollup(["none"], MAY_JUNE, "fte")

    assert tree.total_value == Decimal("0.1")


def test_engine_daily_cost(milan_snapshot: StaffingSnapshot) -> None:
    engine = _engine(milan_snapshot)

    assert engine.daily_cost("dev", date(2024, 5, 31)) == Decimal("100")
    assert engine.daily_cost("dev", date(2024, 6, 1)) == Decimal("120")


def test_engine_forecast_operations(milan_snapshot: StaffingSnapshot) -> None:
    engine = _engine(milan_snapshot, forecast_horizon_months=3)

    projection = engine.project_month("a1", "2024-05", today=FIXED_TODAY)
    capacity = engine.capacity_forecast(today=FIXED_TODAY)

    assert projection.state is ForecastState.ACTUAL
    assert projection.person_days == Decimal("1")
    assert [row.month for row in capacity] == ["2024-06", "2024-07", "2024-08"]


def test_invalid_window_is_rejected() -> None:
    with pytest.raises(InvalidWindowError):
        DateWindow(date(2024, 6, 30), date(2024, 6, 1))
    with pytest.raises(InvalidWindowError):
        DateWindow.for_month("2024-13")


def test_capacity_forecast_with_zero_horizon_is_empty(milan_snapshot: StaffingSnapshot) -> None:
    engine = _engine(milan_snapshot, forecast_horizon_months=3)

    assert engine.capacity_forecast(today=FIXED_TODAY, horizon_months=0) == []
