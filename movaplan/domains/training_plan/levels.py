"""Activity level normalization and per-level volume profiles.

A LevelProfile carries every number keyed by activity level:
- Per-day exercise ceiling enforced by the validator
- Per-day exercise target used by the generator (always <= the ceiling)
- Per-primary-muscle exercise ceiling within one day
- Weekly set bases for large and small muscle groups
- Sets-per-exercise bounds and the blueprint volume tier
"""

import math
from dataclasses import dataclass

from loguru import logger

from movaplan.domains.training_plan import taxonomy
from movaplan.domains.training_plan.constants import (
    DEFICIT_VOLUME_MULTIPLIER,
    MIN_MINUTES_ADVANCED,
    MIN_MINUTES_ATHLETE,
    MIN_MINUTES_INTERMEDIATE,
)
from movaplan.domains.training_plan.enums import ActivityLevel

# Applied when the level string is not recognized
DEFAULT_DAY_EXERCISE_CEILING = 8
DEFAULT_PRIMARY_MUSCLE_CEILING = 5


@dataclass(frozen=True)
class LevelProfile:
    """Immutable volume profile of an activity level.

    Attributes:
        level: Normalized activity level
        max_exercises_per_day: Validator ceiling for exercises in one day
        target_exercises_per_day: Generator target for exercises in one day
        max_exercises_per_primary_muscle: Validator ceiling per primary muscle per day
        weekly_sets_large: Weekly set base for large groups (peitoral, costas, quadriceps)
        weekly_sets_small: Weekly set base for small groups (ombros, triceps, biceps)
        min_sets: Minimum sets per exercise outside deficit mode
        max_sets: Maximum sets per exercise
        volume_tier: Index into day blueprint counts (0 = lowest volume)
    """

    level: ActivityLevel
    max_exercises_per_day: int
    target_exercises_per_day: int
    max_exercises_per_primary_muscle: int
    weekly_sets_large: int
    weekly_sets_small: int
    min_sets: int
    max_sets: int
    volume_tier: int


_PROFILES: dict[ActivityLevel, LevelProfile] = {
    ActivityLevel.IDOSO: LevelProfile(ActivityLevel.IDOSO, 5, 5, 3, 8, 6, 2, 3, 0),
    ActivityLevel.LIMITADO: LevelProfile(ActivityLevel.LIMITADO, 5, 5, 3, 8, 6, 2, 3, 0),
    ActivityLevel.INICIANTE: LevelProfile(ActivityLevel.INICIANTE, 6, 6, 4, 10, 6, 2, 3, 0),
    ActivityLevel.SEDENTARIO: LevelProfile(ActivityLevel.SEDENTARIO, 6, 6, 5, 8, 6, 2, 3, 0),
    ActivityLevel.MODERADO: LevelProfile(ActivityLevel.MODERADO, 8, 7, 5, 12, 8, 2, 4, 1),
    ActivityLevel.INTERMEDIARIO: LevelProfile(ActivityLevel.INTERMEDIARIO, 8, 7, 5, 12, 8, 2, 4, 1),
    ActivityLevel.AVANCADO: LevelProfile(ActivityLevel.AVANCADO, 10, 8, 5, 14, 10, 3, 5, 2),
    ActivityLevel.ATLETA: LevelProfile(ActivityLevel.ATLETA, 12, 8, 6, 16, 12, 3, 5, 2),
    ActivityLevel.ATLETA_ALTO_RENDIMENTO: LevelProfile(
        ActivityLevel.ATLETA_ALTO_RENDIMENTO, 12, 10, 8, 20, 16, 3, 5, 3
    ),
}

# Checked in order; the first substring found wins
_LEVEL_KEYWORDS: tuple[tuple[str, ActivityLevel], ...] = (
    ("alto rendimento", ActivityLevel.ATLETA_ALTO_RENDIMENTO),
    ("altorendimento", ActivityLevel.ATLETA_ALTO_RENDIMENTO),
    ("alto_rendimento", ActivityLevel.ATLETA_ALTO_RENDIMENTO),
    ("atleta", ActivityLevel.ATLETA),
    ("avancado", ActivityLevel.AVANCADO),
    ("intermediario", ActivityLevel.INTERMEDIARIO),
    ("moderado", ActivityLevel.MODERADO),
    ("iniciante", ActivityLevel.INICIANTE),
    ("sedentario", ActivityLevel.SEDENTARIO),
    ("idoso", ActivityLevel.IDOSO),
    ("limitado", ActivityLevel.LIMITADO),
)


def match_activity_level(value: str | None) -> ActivityLevel | None:
    """Return the ActivityLevel named by value, or None when nothing matches."""
    normalized = taxonomy.normalize(value)
    if not normalized:
        return None
    for keyword, level in _LEVEL_KEYWORDS:
        if keyword in normalized:
            return level
    return None


def normalize_activity_level(value: str | None) -> ActivityLevel:
    """Normalize a free-text activity level ("Atleta Alto Rendimento" -> atleta_altorendimento).

    Unknown or empty input falls back to MODERADO.
    """
    level = match_activity_level(value)
    if level is None:
        logger.info("activity_level_fallback", raw_level=value, level=ActivityLevel.MODERADO.value)
        return ActivityLevel.MODERADO
    return level


def get_level_profile(level: ActivityLevel | str | None) -> LevelProfile:
    if isinstance(level, ActivityLevel):
        return _PROFILES[level]
    return _PROFILES[normalize_activity_level(level)]


def max_exercises_per_day(level: str | None) -> int:
    """Validator ceiling for exercises per day; DEFAULT_DAY_EXERCISE_CEILING when unknown."""
    matched = match_activity_level(level)
    if matched is None:
        return DEFAULT_DAY_EXERCISE_CEILING
    return _PROFILES[matched].max_exercises_per_day


def max_exercises_per_primary_muscle(level: str | None) -> int:
    """Validator ceiling per primary muscle per day; DEFAULT_PRIMARY_MUSCLE_CEILING when unknown."""
    matched = match_activity_level(level)
    if matched is None:
        return DEFAULT_PRIMARY_MUSCLE_CEILING
    return _PROFILES[matched].max_exercises_per_primary_muscle


def weekly_set_ceilings(profile: LevelProfile, *, deficit: bool = False) -> dict[str, int]:
    """Weekly set ceiling per canonical muscle.

    Args:
        profile: Level profile providing the large/small bases
        deficit: When True every ceiling is floor(0.7 x ceiling)

    Returns:
        Mapping of canonical muscle name to weekly set ceiling
    """
    large = profile.weekly_sets_large
    small = profile.weekly_sets_small
    ceilings = {
        taxonomy.PEITORAL: large,
        taxonomy.COSTAS: large,
        taxonomy.QUADRICEPS: large,
        taxonomy.POSTERIOR: round(large * 0.8),
        taxonomy.GLUTEOS: round(large * 0.6),
        taxonomy.OMBROS: small,
        taxonomy.TRICEPS: small,
        taxonomy.BICEPS: small,
        taxonomy.PANTURRILHAS: round(small * 0.5),
        taxonomy.TRAPEZIO: round(small * 0.5),
        taxonomy.ABDOMEN: round(small * 0.5),
    }
    if deficit:
        ceilings = {
            muscle: math.floor(value * DEFICIT_VOLUME_MULTIPLIER) for muscle, value in ceilings.items()
        }
    return ceilings


def operational_level(level: ActivityLevel, available_minutes: float | None) -> ActivityLevel:
    """Downgrade a level whose volume cannot fit in the available time.

    - atleta / atleta_altorendimento need >= 75 min, else avancado
    - avancado needs >= 60 min, else intermediario
    - intermediario needs >= 45 min, else iniciante
    Downgrades cascade until the level fits.
    """
    if available_minutes is None or available_minutes <= 0:
        return level

    current = level
    if current in (ActivityLevel.ATLETA, ActivityLevel.ATLETA_ALTO_RENDIMENTO):
        if available_minutes >= MIN_MINUTES_ATHLETE:
            return current
        current = ActivityLevel.AVANCADO
    if current == ActivityLevel.AVANCADO:
        if available_minutes >= MIN_MINUTES_ADVANCED:
            return current
        current = ActivityLevel.INTERMEDIARIO
    if current == ActivityLevel.INTERMEDIARIO:
        if available_minutes >= MIN_MINUTES_INTERMEDIATE:
            return current
        current = ActivityLevel.INICIANTE
    return current
