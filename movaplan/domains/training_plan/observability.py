"""Observability for the plan generation pipeline.

This module provides:
- Stage event logging (start/success/fail)
- Stage-level timing
- Rejection logging shared by the validator and the pipeline
"""

import time
from contextlib import contextmanager
from enum import StrEnum

from loguru import logger


class PlannerStage(StrEnum):
    """Canonical planner stage enum.

    Each stage represents a distinct phase in generating and gating a plan.
    """

    RESOLVE_DIVISION = "resolve_division"
    BUILD_DAYS = "build_days"
    FIT_TIME = "fit_time"
    SAME_TYPE = "same_type_correction"
    VALIDATE = "validate"


def log_event(
    event: str,
    **kwargs: str | int | float | bool | None,
) -> None:
    """Log a structured event.

    Thin wrapper around logger.info so every event shares one format.

    Standard events:
    - division_resolved: Division chosen for the requested frequency
    - division_overridden: Caller division conflicted with the frequency
    - level_downgraded: Available time too short for the declared level
    - day_trimmed_for_time: Exercises removed to fit available time
    - plan_generated: Candidate plan emitted by the generator
    - plan_accepted: Candidate plan passed every rule

    Args:
        event: Event name
        **kwargs: Additional structured fields to include in the log
    """
    logger.info(event, **kwargs)


def log_stage_event(
    stage: PlannerStage,
    status: str,
    meta: dict[str, str | int | float | bool | None] | None = None,
) -> None:
    """Log a stage event (start/success/fail).

    Args:
        stage: Planner stage
        status: Event status ("start", "success", or "fail")
        meta: Optional metadata dictionary to include in log

    Raises:
        ValueError: If status is not one of the allowed values
    """
    allowed_statuses = {"start", "success", "fail"}
    if status not in allowed_statuses:
        raise ValueError(f"Status must be one of {allowed_statuses}, got: {status}")

    log_data: dict[str, str | int | float | bool | None] = {
        "stage": stage.value,
        "status": status,
    }
    if meta:
        log_data.update(meta)

    log_event("planner_stage", **log_data)


def log_rejection(reason: str, context: dict[str, object]) -> None:
    """Log a plan rejection at WARNING with its reason code and context."""
    logger.warning(
        "plan_rejected",
        reason=reason,
        **{key: value for key, value in context.items() if key != "reason"},
    )


@contextmanager
def timing(metric_name: str):
    """Context manager for timing operations.

    Args:
        metric_name: Metric name (e.g., "training_plan.generate")

    Yields:
        None (context manager)
    """
    start_time = time.monotonic()
    try:
        yield
    finally:
        elapsed = time.monotonic() - start_time
        log_event(
            "planner_timing",
            metric=metric_name,
            duration_seconds=elapsed,
        )
