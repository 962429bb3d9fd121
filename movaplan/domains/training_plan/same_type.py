"""Same-type day consistency.

Days sharing a normalized division tag (e.g., both Push days of a 5-day
PPL) must prescribe the identical exercise list. The generator enforces
it by copying; the validator checks it.
"""

from collections.abc import Sequence

from movaplan.domains.training_plan import taxonomy
from movaplan.domains.training_plan.constants import ELDERLY_AGE_THRESHOLD
from movaplan.domains.training_plan.enums import DayType
from movaplan.domains.training_plan.models import Exercise, TrainingDay


def group_days_by_type(days: Sequence[TrainingDay]) -> dict[str, list[int]]:
    """Map normalized day type to the indexes of the days carrying it, in order."""
    groups: dict[str, list[int]] = {}
    for index, day in enumerate(days):
        groups.setdefault(taxonomy.normalize_division_name(day.type), []).append(index)
    return groups


def enforce_same_type_days(days: Sequence[TrainingDay]) -> tuple[TrainingDay, ...]:
    """Copy the exercises of the first day of each type onto later same-type days."""
    corrected = list(days)
    for indexes in group_days_by_type(days).values():
        first = corrected[indexes[0]]
        for index in indexes[1:]:
            corrected[index] = corrected[index].with_exercises(first.exercises)
    return tuple(corrected)


def _signature(exercise: Exercise) -> tuple[str, int, str, str]:
    return (taxonomy.normalize(exercise.name), exercise.sets, exercise.reps, exercise.rest)


def find_same_type_mismatch(
    days: Sequence[TrainingDay],
    age: int | None = None,
) -> dict[str, str | int] | None:
    """Return context describing the first same-type mismatch, or None.

    Exercises are compared by normalized name, sets, reps and rest, in order.
    Full Body days are exempt for users at or above ELDERLY_AGE_THRESHOLD.
    """
    for day_type, indexes in group_days_by_type(days).items():
        if len(indexes) <= 1:
            continue
        if age is not None and age >= ELDERLY_AGE_THRESHOLD and day_type == DayType.FULL:
            continue

        first = days[indexes[0]]
        first_signature = [_signature(exercise) for exercise in first.exercises]
        for index in indexes[1:]:
            current = days[index]
            current_signature = [_signature(exercise) for exercise in current.exercises]
            if len(first_signature) != len(current_signature):
                return {
                    "dayType": day_type,
                    "firstDay": first.day,
                    "currentDay": current.day,
                    "firstCount": len(first_signature),
                    "currentCount": len(current_signature),
                }
            for position, (expected, actual) in enumerate(zip(first_signature, current_signature)):
                if expected != actual:
                    return {
                        "dayType": day_type,
                        "firstDay": first.day,
                        "currentDay": current.day,
                        "exerciseIndex": position,
                    }
    return None
