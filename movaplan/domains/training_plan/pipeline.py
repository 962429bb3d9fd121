"""Generate -> validate -> regenerate pipeline.

No plan reaches a user without passing the validator. Each regeneration
tightens the per-day exercise budget by one; when the attempt budget is
exhausted the caller gets PlanGenerationError, never a silent fallback.
"""

import re
from collections.abc import Mapping
from typing import Any

from loguru import logger

from movaplan.domains.training_plan.errors import PlanGenerationError
from movaplan.domains.training_plan.generator import generate_training_plan_structure
from movaplan.domains.training_plan.models import TrainingPlan
from movaplan.domains.training_plan.observability import log_event
from movaplan.domains.training_plan.schemas import TrainingPlanRequest
from movaplan.domains.training_plan.validator import is_training_plan_usable
from movaplan.metrics.plan_rejections import PlanRejectionMetrics, collect_rejections

DEFAULT_MAX_ATTEMPTS = 2

_FIRST_INT = re.compile(r"\d+")


def parse_training_days(value: str | int | None, default: int = 3) -> int:
    """Extract a weekly frequency from profile text ("3x por semana" -> 3).

    Values outside 1..7 are clamped; missing or unparseable input returns default.
    """
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, int):
        days = value
    else:
        match = _FIRST_INT.search(str(value))
        if not match:
            return default
        days = int(match.group())
    return min(7, max(1, days))


def generate_validated_training_plan(
    request: TrainingPlanRequest,
    metrics: PlanRejectionMetrics | None = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> TrainingPlan:
    """Generate a plan that passes validation.

    Args:
        request: Generator inputs
        metrics: Metrics store for rejections; the process-wide default when None
        max_attempts: Generate/validate attempts before giving up

    Returns:
        A TrainingPlan accepted by the validator

    Raises:
        PlanGenerationError: If no candidate passed within max_attempts
        InvalidPlanRequestError: If the request is unusable by the generator
    """
    reasons: list[str] = []
    for attempt in range(max_attempts):
        plan = generate_training_plan_structure(
            request.training_days,
            request.activity_level,
            division=request.division,
            available_time_minutes=request.available_time_minutes,
            imc=request.imc,
            objective=request.objective,
            has_shoulder_restriction=request.has_shoulder_restriction,
            has_knee_restriction=request.has_knee_restriction,
            environment=request.environment,
            age=request.age,
            exercise_budget_reduction=attempt,
        )
        with collect_rejections() as collector:
            usable = is_training_plan_usable(
                plan,
                request.training_days,
                request.activity_level,
                request.available_time_minutes,
                request.validation_context(),
                metrics=metrics,
            )
        if usable:
            log_event("plan_accepted", attempt=attempt + 1, training_days=request.training_days)
            return plan

        reasons.extend(collector.reasons)
        logger.warning(f"Generated plan rejected on attempt {attempt + 1}/{max_attempts}: {collector.reasons}")

    raise PlanGenerationError(max_attempts, reasons)


def accept_candidate_plan(
    payload: Mapping[str, Any] | None,
    request: TrainingPlanRequest,
    metrics: PlanRejectionMetrics | None = None,
) -> TrainingPlan | None:
    """Gate an externally authored (LLM) plan payload.

    Returns:
        The coerced TrainingPlan when it passes validation, otherwise None
    """
    if not is_training_plan_usable(
        payload,
        request.training_days,
        request.activity_level,
        request.available_time_minutes,
        request.validation_context(),
        metrics=metrics,
    ):
        return None
    return TrainingPlan.from_payload(payload)
