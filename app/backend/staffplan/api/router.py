"""Top-level API router."""

from fastapi import APIRouter

from staffplan.api.routes.engine import router as engine_router
from staffplan.api.routes.forecast import router as forecast_router
from staffplan.api.routes.health import router as health_router
from staffplan.api.routes.reports import router as reports_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(engine_router)
api_router.include_router(forecast_router)
api_router.include_router(reports_router)
