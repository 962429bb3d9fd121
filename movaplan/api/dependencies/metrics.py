"""Metrics store dependency.

Routes receive the rejection metrics store through FastAPI's dependency
injection; tests override get_metrics_store with an isolated instance.
"""

from movaplan.metrics.plan_rejections import PlanRejectionMetrics, get_plan_rejection_metrics


def get_metrics_store() -> PlanRejectionMetrics:
    return get_plan_rejection_metrics()
