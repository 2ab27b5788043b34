"""Aggregation, rollup and cost lookup endpoints."""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter
from pydantic import BaseModel, Field

from staffplan.api.schemas import (
    SnapshotPayload,
    WindowPayload,
    serialize_rollup_node,
    serialize_totals,
    serialize_window,
)
from staffplan.core.numbers import q2
from staffplan.services.engine import StaffingEngine
from staffplan.services.rollup_service import Dimension, RollupUnit, flatten_rollup, sort_rollup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/engine", tags=["engine"])


class AggregatePayload(BaseModel):
    snapshot: SnapshotPayload
    assignment_id: str = Field(min_length=1)
    window: WindowPayload


class ResourceAggregatePayload(BaseModel):
    snapshot: SnapshotPayload
    resource_id: str = Field(min_length=1)
    window: WindowPayload


class RollupPayload(BaseModel):
    snapshot: SnapshotPayload
    dimension_path: list[Dimension] = Field(default_factory=lambda: [Dimension.NONE])
    window: WindowPayload
    unit: RollupUnit = RollupUnit.DAYS
    sort_by_total: bool = False


class DailyCostPayload(BaseModel):
    snapshot: SnapshotPayload
    role_id: str = Field(min_length=1)
    on: date


def _engine(snapshot: SnapshotPayload) -> StaffingEngine:
    return StaffingEngine(snapshot.to_snapshot())


@router.post("/aggregate")
def aggregate_assignment(payload: AggregatePayload) -> dict[str, object]:
    window = payload.window.to_window()
    totals = _engine(payload.snapshot).aggregate(payload.assignment_id, window)
    return {
        "assignment_id": payload.assignment_id,
        "window": serialize_window(window),
        **serialize_totals(totals),
    }


@router.post("/aggregate/resource")
def aggregate_resource(payload: ResourceAggregatePayload) -> dict[str, object]:
    window = payload.window.to_window()
    totals = _engine(payload.snapshot).aggregate_resource(payload.resource_id, window)
    return {
        "resource_id": payload.resource_id,
        "window": serialize_window(window),
        **serialize_totals(totals),
    }


@router.post("/rollup")
def build_rollup(payload: RollupPayload) -> dict[str, object]:
    window = payload.window.to_window()
    logger.info(
        "Rollup by %s in %s from %s to %s",
        "/".join(level.value for level in payload.dimension_path) or Dimension.NONE.value,
        payload.unit.value,
        window.start,
        window.end,
    )
    tree = _engine(payload.snapshot).rollup(payload.dimension_path, window, payload.unit)
    if payload.sort_by_total:
        tree = sort_rollup(tree)
    rows = [
        {
            "depth": row.depth,
            "id": row.id,
            "label": row.label,
            "dimension": row.dimension.value if row.dimension is not None else None,
            "total_value": str(q2(row.total_value)),
            "monthly_values": {key: str(q2(value)) for key, value in row.monthly_values.items()},
            "is_subtotal": row.is_subtotal,
            "is_total": row.is_total,
        }
        for row in flatten_rollup(tree)
    ]
    return {
        "unit": payload.unit.value,
        "window": serialize_window(window),
        "months": window.month_keys(),
        "tree": serialize_rollup_node(tree),
        "rows": rows,
    }


@router.post("/daily-cost")
def daily_cost(payload: DailyCostPayload) -> dict[str, object]:
    cost = _engine(payload.snapshot).daily_cost(payload.role_id, payload.on)
    return {
        "role_id": payload.role_id,
        "on": payload.on.isoformat(),
        "daily_cost": str(q2(cost)),
    }
