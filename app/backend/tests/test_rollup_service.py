from datetime import date
from decimal import Decimal

import pytest

from staffplan.models import Client, Contract, DateWindow, RoleCostRecord
from staffplan.repositories.snapshot_repository import SnapshotRepository, StaffingSnapshot
from staffplan.services.allocation_aggregator import AllocationAggregator
from staffplan.services.calendar_service import CalendarService
from staffplan.services.cost_history import CostHistoryResolver
from staffplan.services.rollup_service import (
    Dimension,
    RollupBuilder,
    RollupNode,
    RollupUnit,
    flatten_rollup,
    rollup,
    sort_rollup,
)

from conftest import ROME, make_assignment, make_project, make_resource

WINDOW = DateWindow(date(2024, 6, 1), date(2024, 7, 31))


@pytest.fixture()
def snapshot() -> StaffingSnapshot:
    return StaffingSnapshot(
        resources=(
            make_resource("r1", horizontal="Data"),
            make_resource("r2", location=ROME),
        ),
        clients=(Client(id="c1", name="Acme"), Client(id="c2", name="Globex")),
        contracts=(Contract(id="k1", name="Framework", wbs_code="W-1"),),
        projects=(
            make_project("p1", client_id="c1", contract_id="k1"),
            make_project("p2", client_id="c2"),
            make_project("p3", client_id="c-missing"),
        ),
        assignments=(
            make_assignment("a1", "r1", "p1", {"2024-06-03": 100, "2024-06-04": 50, "2024-07-01": 100}),
            make_assignment("a2", "r1", "p2", {"2024-06-05": 100}),
            make_assignment("a3", "r2", "p1", {"2024-07-02": 50}),
            make_assignment("a4", "r2", "p3", {"2024-06-06": 100}),
            make_assignment("a5", "r-missing", "p1", {"2024-06-03": 100}),
        ),
        cost_history=(RoleCostRecord(role_id="dev", daily_cost=Decimal("100"), start_date=date(2024, 1, 1)),),
    )


def _builder(snapshot: StaffingSnapshot) -> RollupBuilder:
    aggregator = AllocationAggregator(CalendarService(), CostHistoryResolver(snapshot.cost_history))
    return RollupBuilder(SnapshotRepository(snapshot), aggregator, reference_working_days_per_month=20)


def _assert_additive(node: RollupNode) -> None:
    assert node.total_value == sum(node.monthly_values.values(), Decimal("0"))
    if node.children:
        assert node.total_value == sum((child.total_value for child in node.children), Decimal("0"))
        for key, value in node.monthly_values.items():
            assert value == sum((child.monthly_values[key] for child in node.children), Decimal("0"))
        for child in node.children:
            _assert_additive(child)


def _child(node: RollupNode, node_id: str) -> RollupNode:
    return next(child for child in node.children if child.id == node_id)


def test_client_resource_rollup_skips_assignments_without_client(snapshot: StaffingSnapshot) -> None:
    tree = _builder(snapshot).rollup([Dimension.CLIENT, Dimension.RESOURCE], WINDOW)

    assert tree.id == "total"
    assert tree.total_value == Decimal("4")
    assert tree.monthly_values == {"2024-06": Decimal("2.5"), "2024-07": Decimal("1.5")}
    assert [child.label for child in tree.children] == ["Acme", "Globex"]

    acme = _child(tree, "c1")
    assert acme.dimension is Dimension.CLIENT
    assert acme.total_value == Decimal("3")
    assert _child(acme, "r1").total_value == Decimal("2.5")
    assert _child(acme, "r2").total_value == Decimal("0.5")
    assert _child(tree, "c2").total_value == Decimal("1")
    _assert_additive(tree)


def test_none_path_is_a_flat_resource_table(snapshot: StaffingSnapshot) -> None:
    tree = _builder(snapshot).rollup([Dimension.NONE], WINDOW)

    assert [child.id for child in tree.children] == ["r1", "r2"]
    assert all(child.dimension is Dimension.RESOURCE and child.is_leaf for child in tree.children)
    assert _child(tree, "r1").total_value == Decimal("3.5")
    assert _child(tree, "r2").total_value == Decimal("1.5")
    assert tree.total_value == Decimal("5")


def test_empty_path_and_string_levels_are_accepted(snapshot: StaffingSnapshot) -> None:
    builder = _builder(snapshot)

    flat = builder.rollup([], WINDOW)
    by_name = builder.rollup(["client", "resource"], WINDOW, "days")

    assert flat.total_value == Decimal("5")
    assert by_name.total_value == Decimal("4")


def test_fte_unit_divides_by_reference_working_days(snapshot: StaffingSnapshot) -> None:
    tree = _builder(snapshot).rollup([Dimension.NONE], WINDOW, RollupUnit.FTE)

    assert tree.total_value == Decimal("0.25")
    assert _child(tree, "r1").monthly_values == {"2024-06": Decimal("0.125"), "2024-07": Decimal("0.05")}
    _assert_additive(tree)


def test_cost_unit_uses_historical_cost(snapshot: StaffingSnapshot) -> None:
    tree = _builder(snapshot).rollup([Dimension.PROJECT, Dimension.RESOURCE], WINDOW, RollupUnit.COST)

    assert tree.total_value == Decimal("500")
    assert _child(tree, "p1").total_value == Decimal("300")
    _assert_additive(tree)


def test_contract_level_uses_wbs_label_and_skips_projects_without_contract(snapshot: StaffingSnapshot) -> None:
    tree = _builder(snapshot).rollup([Dimension.CONTRACT], WINDOW)

    assert [(child.id, child.label) for child in tree.children] == [("k1", "W-1 - Framework")]
    assert tree.total_value == Decimal("3")


def test_missing_location_or_horizontal_is_grouped_as_unspecified(snapshot: StaffingSnapshot) -> None:
    builder = _builder(snapshot)

    by_location = builder.rollup([Dimension.LOCATION], WINDOW)
    by_horizontal = builder.rollup([Dimension.HORIZONTAL, Dimension.RESOURCE], WINDOW)

    assert {child.id: child.total_value for child in by_location.children} == {
        "Milan": Decimal("3.5"),
        "Rome": Decimal("1.5"),
    }
    assert {child.label: child.total_value for child in by_horizontal.children} == {
        "Data": Decimal("3.5"),
        "Unspecified": Decimal("1.5"),
    }
    _assert_additive(by_horizontal)


def test_rollup_of_subset_of_assignments(snapshot: StaffingSnapshot) -> None:
    tree = _builder(snapshot).rollup([Dimension.NONE], WINDOW, assignments=snapshot.assignments[:1])

    assert tree.total_value == Decimal("2.5")
    assert [child.id for child in tree.children] == ["r1"]


def test_sort_rollup_returns_sorted_copy(snapshot: StaffingSnapshot) -> None:
    tree = _builder(snapshot).rollup([Dimension.LOCATION], WINDOW)

    ascending = sort_rollup(tree, reverse=False)

    assert [child.id for child in ascending.children] == ["Rome", "Milan"]
    assert [child.id for child in tree.children] == ["Milan", "Rome"]


def test_flatten_rollup_marks_subtotals_and_total(snapshot: StaffingSnapshot) -> None:
    tree = _builder(snapshot).rollup([Dimension.CLIENT, Dimension.RESOURCE], WINDOW)

    rows = flatten_rollup(tree)

    assert [(row.depth, row.id) for row in rows] == [
        (0, "c1"),
        (1, "r1"),
        (1, "r2"),
        (0, "c2"),
        (1, "r1"),
        (0, "total"),
    ]
    assert [row.is_subtotal for row in rows] == [True, False, False, True, False, False]
    assert rows[-1].is_total is True
    assert rows[-1].total_value == Decimal("4")


def test_module_rollup_function(snapshot: StaffingSnapshot) -> None:
    tree = rollup(
        snapshot.assignments,
        snapshot.resources,
        ["client"],
        WINDOW,
        [],
        CostHistoryResolver(snapshot.cost_history),
        RollupUnit.COST,
        projects=snapshot.projects,
        clients=snapshot.clients,
        reference_working_days_per_month=20,
    )

    assert {child.id: child.total_value for child in tree.children} == {
        "c1": Decimal("300"),
        "c2": Decimal("100"),
    }


def test_module_rollup_without_projects_counts_every_assignment() -> None:
    resource = make_resource("r1")
    assignment = make_assignment("a1", "r1", "p-unlisted", {"2024-06-04": 100, "2024-06-05": 100})
    june = DateWindow.for_month("2024-06")

    tree = rollup((assignment,), (resource,), ["resource"], june, [], None, "days")

    assert tree.total_value == Decimal("2")
    assert [(child.id, child.total_value) for child in tree.children] == [("r1", Decimal("2"))]


def test_module_rollup_without_projects_has_no_project_levels() -> None:
    assignment = make_assignment("a1", "r1", "p1", {"2024-06-04": 100})

    tree = rollup((assignment,), (make_resource("r1"),), ["project"], WINDOW, [], None)

    assert tree.children == []
    assert tree.total_value == Decimal("0")
