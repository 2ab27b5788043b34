"""Forecast endpoints: per-assignment month projection and team capacity."""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from staffplan.api.dependencies import get_today
from staffplan.api.schemas import SnapshotPayload, serialize_capacity_month, serialize_projection
from staffplan.services.engine import StaffingEngine

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/engine/forecast", tags=["forecast"])


class MonthProjectionPayload(BaseModel):
    snapshot: SnapshotPayload
    assignment_id: str = Field(min_length=1)
    month: str = Field(pattern=r"^\d{4}-\d{2}$")
    today: date | None = None


class CapacityForecastPayload(BaseModel):
    snapshot: SnapshotPayload
    horizon_months: int | None = Field(default=None, ge=1, le=36)
    horizontal: str | None = None
    client_id: str | None = None
    project_id: str | None = None
    today: date | None = None


@router.post("/month")
def project_month(
    payload: MonthProjectionPayload,
    today: date = Depends(get_today),
) -> dict[str, object]:
    today = payload.today or today
    engine = StaffingEngine(payload.snapshot.to_snapshot())
    projection = engine.project_month(payload.assignment_id, payload.month, today=today)
    return {
        "assignment_id": payload.assignment_id,
        "today": today.isoformat(),
        **serialize_projection(projection),
    }


@router.post("/capacity")
def capacity_forecast(
    payload: CapacityForecastPayload,
    today: date = Depends(get_today),
) -> dict[str, object]:
    today = payload.today or today
    engine = StaffingEngine(payload.snapshot.to_snapshot())
    months = engine.capacity_forecast(
        today=today,
        horizon_months=payload.horizon_months,
        horizontal=payload.horizontal,
        client_id=payload.client_id,
        project_id=payload.project_id,
    )
    logger.info("Capacity forecast from %s over %d months", today, len(months))
    return {
        "today": today.isoformat(),
        "months": [serialize_capacity_month(row) for row in months],
    }
