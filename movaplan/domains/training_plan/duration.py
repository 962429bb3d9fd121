"""Training day duration estimate.

duration = sum(sets x (rest_seconds + EXECUTION_SECONDS_PER_SET)) over exercises.
Shared by the generator (time fitting) and the validator (time check).
"""

import re
from collections.abc import Iterable

from movaplan.domains.training_plan.constants import DEFAULT_REST_SECONDS, EXECUTION_SECONDS_PER_SET
from movaplan.domains.training_plan.models import Exercise

_NUMBER = re.compile(r"\d+(?:[.,]\d+)?")


def parse_rest_seconds(rest: str | None) -> float:
    """Parse a rest expression into seconds.

    - "90s", "60-90s" -> first number (90, 60)
    - "2 min", "2-3 min" -> first number x 60
    - empty or unparseable -> DEFAULT_REST_SECONDS
    """
    if not rest:
        return DEFAULT_REST_SECONDS
    match = _NUMBER.search(rest)
    if not match:
        return DEFAULT_REST_SECONDS
    value = float(match.group().replace(",", "."))
    if "min" in rest.lower():
        return value * 60
    return value


def exercise_seconds(exercise: Exercise) -> float:
    sets = max(exercise.sets, 0)
    return sets * (parse_rest_seconds(exercise.rest) + EXECUTION_SECONDS_PER_SET)


def estimate_day_minutes(exercises: Iterable[Exercise]) -> float:
    """Estimated duration of a day in minutes."""
    return sum(exercise_seconds(exercise) for exercise in exercises) / 60


def format_rest(seconds: float) -> str:
    return f"{int(seconds)}s"
