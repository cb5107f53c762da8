"""Health metric API routes.

Learn: The same router is mounted twice, at /health and at
/health-metrics, over one health_metrics table. Both prefixes accept
the full set of routes below.

Fixed paths (summary, type, date-range, stats) are declared before
/{metric_id}.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from companion.auth.policy import OwnerScope, get_owner_scope
from companion.db.engine import get_db
from companion.schemas import UtcDatetime
from companion.schemas.health import (
    HealthMetricCreate,
    HealthMetricPage,
    HealthMetricRead,
    HealthMetricStats,
    HealthMetricUpdate,
    HealthSummary,
    MetricType,
)
from companion.services.health_service import DEFAULT_PAGE_SIZE, HealthMetricService

router = APIRouter()


def _metric_svc(
    db: AsyncSession = Depends(get_db),
    scope: OwnerScope = Depends(get_owner_scope),
) -> HealthMetricService:
    return HealthMetricService(db, scope)


# ─── Listing ─────────────────────────────────────────────


@router.get("", response_model=HealthMetricPage)
async def list_metrics(
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    svc: HealthMetricService = Depends(_metric_svc),
):
    """The caller's metrics, newest first, one page at a time."""
    return await svc.page(limit=limit, offset=offset)


@router.get("/summary", response_model=HealthSummary)
async def summary(svc: HealthMetricService = Depends(_metric_svc)):
    """Latest value and 7-day average per metric type."""
    return await svc.summary()


@router.get("/type/{metric_type}", response_model=HealthMetricPage)
async def list_by_type(
    metric_type: MetricType,
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    svc: HealthMetricService = Depends(_metric_svc),
):
    return await svc.page(limit=limit, offset=offset, metric_type=metric_type)


@router.get("/date-range", response_model=list[HealthMetricRead])
async def list_by_date_range(
    start_date: Optional[UtcDatetime] = Query(None),
    end_date: Optional[UtcDatetime] = Query(None),
    type: Optional[MetricType] = Query(None),
    svc: HealthMetricService = Depends(_metric_svc),
):
    return await svc.in_range(start_date=start_date, end_date=end_date, metric_type=type)


@router.get("/stats/{metric_type}", response_model=HealthMetricStats)
async def metric_stats(
    metric_type: MetricType,
    start_date: Optional[UtcDatetime] = Query(None),
    end_date: Optional[UtcDatetime] = Query(None),
    svc: HealthMetricService = Depends(_metric_svc),
):
    """Average, min, max, count and first→last percent trend."""
    return await svc.stats(metric_type, start_date=start_date, end_date=end_date)


# ─── Single metric ───────────────────────────────────────


@router.post("", response_model=HealthMetricRead, status_code=201)
async def create_metric(
    body: HealthMetricCreate, svc: HealthMetricService = Depends(_metric_svc)
):
    """Record a metric; a matching health-calendar event is booked alongside."""
    return await svc.create(body)


@router.get("/{metric_id}", response_model=HealthMetricRead)
async def get_metric(metric_id: int, svc: HealthMetricService = Depends(_metric_svc)):
    return await svc.get(metric_id)


@router.put("/{metric_id}", response_model=HealthMetricRead)
async def update_metric(
    metric_id: int,
    body: HealthMetricUpdate,
    svc: HealthMetricService = Depends(_metric_svc),
):
    return await svc.update(metric_id, body)


@router.delete("/{metric_id}")
async def delete_metric(metric_id: int, svc: HealthMetricService = Depends(_metric_svc)):
    await svc.delete(metric_id)
    return {"message": "Health metric deleted successfully"}
