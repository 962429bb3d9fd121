"""Pydantic schemas for generator input and validator context.

Field aliases follow the camelCase JSON used by API callers and LLM
payloads; Python code constructs them with snake_case names.
"""

from pydantic import BaseModel, ConfigDict, Field

from movaplan.domains.training_plan.enums import Environment


class TrainingPlanRequest(BaseModel):
    """Inputs of the plan structure generator."""

    model_config = ConfigDict(populate_by_name=True)

    training_days: int = Field(..., ge=1, le=7, alias="trainingDays", description="Days per week (1-7)")
    activity_level: str = Field("Moderado", alias="activityLevel", description="Free-text activity level")
    division: str | None = Field(None, description="Requested division; re-derived from trainingDays")
    available_time_minutes: float | None = Field(
        None, gt=0, alias="availableTimeMinutes", description="Minutes available per session"
    )
    imc: float | None = Field(None, gt=0, description="Body mass index")
    objective: str | None = Field(None, description="Free-text training objective")
    has_shoulder_restriction: bool = Field(False, alias="hasShoulderRestriction")
    has_knee_restriction: bool = Field(False, alias="hasKneeRestriction")
    environment: Environment | None = Field(None, description="Where the user trains")
    age: int | None = Field(None, ge=0, le=120)

    def validation_context(self) -> "ValidationContext":
        return ValidationContext(
            imc=self.imc,
            objective=self.objective,
            age=self.age,
            has_shoulder_restriction=self.has_shoulder_restriction,
            has_knee_restriction=self.has_knee_restriction,
        )


class ValidationContext(BaseModel):
    """Extra context for the validator (the user profile behind the plan)."""

    model_config = ConfigDict(populate_by_name=True)

    imc: float | None = None
    objective: str | None = None
    age: int | None = None
    gender: str | None = None
    equipment: str | None = None
    has_shoulder_restriction: bool = Field(False, alias="hasShoulderRestriction")
    has_knee_restriction: bool = Field(False, alias="hasKneeRestriction")
