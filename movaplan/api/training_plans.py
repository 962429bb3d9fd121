"""API endpoints for training plan generation and validation."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from movaplan.api.dependencies.metrics import get_metrics_store
from movaplan.config.settings import settings
from movaplan.domains.training_plan.errors import InvalidPlanRequestError, PlanGenerationError
from movaplan.domains.training_plan.pipeline import generate_validated_training_plan
from movaplan.domains.training_plan.schemas import TrainingPlanRequest, ValidationContext
from movaplan.domains.training_plan.validator import is_training_plan_usable
from movaplan.metrics.plan_rejections import PlanRejectionMetrics, collect_rejections

router = APIRouter(prefix="/api/training-plans", tags=["training-plans"])


class ValidatePlanRequest(BaseModel):
    """Request body for validating a candidate plan."""

    model_config = ConfigDict(populate_by_name=True)

    plan: Any = Field(..., description="Candidate plan (e.g., LLM output)")
    training_days: int = Field(..., alias="trainingDays")
    activity_level: str | None = Field(None, alias="activityLevel")
    available_time_minutes: float | None = Field(None, alias="availableTimeMinutes")
    context: ValidationContext | None = None


class ValidatePlanResponse(BaseModel):
    """Validation verdict and the rejection codes recorded for it."""

    usable: bool
    reasons: list[str]


@router.post("/generate")
def generate_plan(
    request: TrainingPlanRequest,
    metrics: PlanRejectionMetrics = Depends(get_metrics_store),
) -> dict[str, Any]:
    """Generate a plan through the generate/validate/regenerate pipeline.

    Returns 422 when no candidate passed validation within the attempt budget.
    """
    logger.info(
        f"Generating training plan: days={request.training_days}, level={request.activity_level}"
    )
    try:
        plan = generate_validated_training_plan(
            request,
            metrics=metrics,
            max_attempts=settings.plan_generation_max_attempts,
        )
    except InvalidPlanRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    except PlanGenerationError as e:
        logger.error(f"Training plan generation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "message": "Não foi possível gerar um plano válido. Tente novamente.",
                "attempts": e.attempts,
                "reasons": e.reasons,
            },
        ) from e
    return plan.to_dict()


@router.post("/validate", response_model=ValidatePlanResponse)
def validate_plan(
    request: ValidatePlanRequest,
    metrics: PlanRejectionMetrics = Depends(get_metrics_store),
) -> ValidatePlanResponse:
    """Run the validator on a candidate plan."""
    with collect_rejections() as collector:
        usable = is_training_plan_usable(
            request.plan,
            request.training_days,
            request.activity_level,
            request.available_time_minutes,
            request.context,
            metrics=metrics,
        )
    return ValidatePlanResponse(usable=usable, reasons=collector.reasons)
