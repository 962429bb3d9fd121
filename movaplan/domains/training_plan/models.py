"""Training plan data models.

Immutable value objects shared by the generator and the validator.
Serialized shape (camelCase) matches the JSON contract of LLM-authored
plans: {overview, weeklySchedule: [{day, type, exercises: [...]}], progression}.
"""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from movaplan.domains.training_plan.errors import MalformedPlanError


@dataclass(frozen=True)
class Exercise:
    """One exercise prescription inside a training day.

    Attributes:
        name: Display name (Portuguese)
        primary_muscle: Main muscle group targeted
        secondary_muscles: Assisting muscle groups (at most 2 in a valid plan)
        sets: Number of working sets
        reps: Rep range expression (e.g., "8-12")
        rest: Rest duration expression (e.g., "90s", "2 min")
        notes: Optional coaching notes
    """

    name: str
    primary_muscle: str
    secondary_muscles: tuple[str, ...] = ()
    sets: int = 3
    reps: str = "8-12"
    rest: str = "60s"
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "primaryMuscle": self.primary_muscle,
            "secondaryMuscles": list(self.secondary_muscles),
            "sets": self.sets,
            "reps": self.reps,
            "rest": self.rest,
        }
        if self.notes:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_payload(cls, payload: Any) -> "Exercise":
        if not isinstance(payload, Mapping):
            raise MalformedPlanError(f"Exercise must be an object, got {type(payload).__name__}")

        secondary = payload.get("secondaryMuscles") or ()
        if isinstance(secondary, str):
            secondary = (secondary,)
        elif not isinstance(secondary, list | tuple):
            raise MalformedPlanError("secondaryMuscles must be a list")

        notes = payload.get("notes")
        return cls(
            name=str(payload.get("name") or ""),
            primary_muscle=str(payload.get("primaryMuscle") or ""),
            secondary_muscles=tuple(str(muscle) for muscle in secondary),
            sets=_coerce_sets(payload.get("sets")),
            reps=str(payload.get("reps") or ""),
            rest=str(payload.get("rest") or ""),
            notes=str(notes) if notes else None,
        )


@dataclass(frozen=True)
class TrainingDay:
    """One day of the weekly schedule.

    Attributes:
        day: Display label (e.g., "Treino A – Peito/Ombros/Tríceps")
        type: Division tag (Push/Pull/Legs/Lower/Upper/Full)
        exercises: Ordered exercise list
    """

    day: str
    type: str | None
    exercises: tuple[Exercise, ...] = field(default_factory=tuple)

    def with_exercises(self, exercises: tuple[Exercise, ...]) -> "TrainingDay":
        return replace(self, exercises=exercises)

    def to_dict(self) -> dict[str, Any]:
        return {
            "day": self.day,
            "type": self.type,
            "exercises": [exercise.to_dict() for exercise in self.exercises],
        }

    @classmethod
    def from_payload(cls, payload: Any) -> "TrainingDay":
        if not isinstance(payload, Mapping):
            raise MalformedPlanError(f"Training day must be an object, got {type(payload).__name__}")

        exercises = payload.get("exercises")
        if exercises is None:
            exercises = []
        if not isinstance(exercises, list | tuple):
            raise MalformedPlanError("exercises must be a list")

        day_type = payload.get("type")
        return cls(
            day=str(payload.get("day") or ""),
            type=str(day_type) if day_type is not None else None,
            exercises=tuple(Exercise.from_payload(item) for item in exercises),
        )


@dataclass(frozen=True)
class TrainingPlan:
    """Weekly training plan.

    Attributes:
        overview: Free-text description of the plan
        weekly_schedule: One TrainingDay per training day
        progression: Free-text progression guidance
    """

    overview: str
    weekly_schedule: tuple[TrainingDay, ...]
    progression: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "overview": self.overview,
            "weeklySchedule": [day.to_dict() for day in self.weekly_schedule],
            "progression": self.progression,
        }

    @classmethod
    def from_payload(cls, payload: Any) -> "TrainingPlan":
        """Coerce a JSON-like payload into a TrainingPlan.

        Missing scalar fields are tolerated (empty strings); shape errors are not.

        Raises:
            MalformedPlanError: If the payload is not an object, weeklySchedule is
                missing or not a list, or any day/exercise has the wrong shape
        """
        if isinstance(payload, TrainingPlan):
            return payload
        if not isinstance(payload, Mapping):
            raise MalformedPlanError(f"Plan must be an object, got {type(payload).__name__}")

        schedule = payload.get("weeklySchedule")
        if not isinstance(schedule, list | tuple):
            raise MalformedPlanError("weeklySchedule is missing or not a list")

        return cls(
            overview=str(payload.get("overview") or ""),
            weekly_schedule=tuple(TrainingDay.from_payload(day) for day in schedule),
            progression=str(payload.get("progression") or ""),
        )


def _coerce_sets(value: Any) -> int:
    if isinstance(value, bool):
        raise MalformedPlanError("sets must be a number")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise MalformedPlanError(f"sets must be a finite number, got {value!r}")
        return int(value)
    if value is None or value == "":
        return 0
    try:
        return int(str(value).strip().split("-")[0])
    except ValueError as e:
        raise MalformedPlanError(f"sets must be a number, got {value!r}") from e
