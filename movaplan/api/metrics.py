"""Admin endpoints for plan rejection metrics."""

from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from loguru import logger

from movaplan.api.dependencies.metrics import get_metrics_store
from movaplan.domains.training_plan.enums import StatisticsPeriod
from movaplan.metrics.plan_rejections import PlanRejectionMetrics

router = APIRouter(prefix="/api/metrics", tags=["metrics"])


@router.get("/plan-rejections")
def get_plan_rejections(
    period: StatisticsPeriod = Query(StatisticsPeriod.ALL),
    source: Literal["memory", "db"] = Query("memory"),
    metrics: PlanRejectionMetrics = Depends(get_metrics_store),
) -> dict[str, Any]:
    """Rejection statistics for the dashboard."""
    statistics, used_source = metrics.get_statistics_with_source(period, source=source)
    return {
        "success": True,
        "period": period.value,
        "source": used_source,
        "persistenceEnabled": metrics.is_persistence_enabled(),
        "statistics": statistics,
    }


@router.delete("/plan-rejections")
def clear_plan_rejections(
    metrics: PlanRejectionMetrics = Depends(get_metrics_store),
) -> dict[str, Any]:
    """Clear in-memory rejection metrics (ops/test)."""
    metrics.clear()
    logger.info("Plan rejection metrics cleared")
    return {"success": True}
