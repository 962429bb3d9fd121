"""Domain-specific errors for training plan generation.

The validator never raises: rejections are reported as a boolean plus a
metric. These errors cover caller mistakes and exhausted regeneration.
"""


class PlannerError(Exception):
    """Base exception for all training plan errors."""

    pass


class InvalidPlanRequestError(PlannerError):
    """Raised when generator input is unusable (e.g., trainingDays outside 1..7)."""

    pass


class MalformedPlanError(PlannerError):
    """Raised when a payload cannot be coerced into a TrainingPlan."""

    pass


class PlanGenerationError(PlannerError):
    """Raised when no candidate plan passed validation within the attempt budget.

    Attributes:
        attempts: Number of attempts made
        reasons: Rejection reason codes observed across attempts
    """

    def __init__(self, attempts: int, reasons: list[str]):
        self.attempts = attempts
        self.reasons = reasons
        super().__init__(
            f"Could not produce a valid plan after {attempts} attempt(s): {reasons}"
        )
