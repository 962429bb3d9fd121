"""Training plan validator.

Re-derives every structural and business rule for a candidate plan,
independently of whether it came from the generator or an LLM.

The rule engine (find_plan_rejection) is pure and returns the first
violation found. is_training_plan_usable wraps it with the side effects:
a WARNING log and exactly one rejection metric per rejected call.

Check order:
1. weeklySchedule present and a list
2. number of days equals trainingDays
3. day types compatible with the division implied by trainingDays
4. plan-wide rules: same-type days, joint restrictions, elderly risk,
   aesthetic bias
5. per-day rules, day by day, in this order: empty day, exercise count,
   primary muscle present, forbidden groups, lower/full composition,
   required groups, name/muscle mismatch, ordering, per-muscle count,
   smart distribution, secondary muscles, available time
"""

import math
from collections import Counter
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from movaplan.domains.training_plan import taxonomy
from movaplan.domains.training_plan.constants import (
    AESTHETIC_BIAS_TERMS,
    ELDERLY_AGE_THRESHOLD,
    LOWER_MAX_SINGLE_MUSCLE_RATIO,
    MAX_SECONDARY_MUSCLES,
    MAX_WEEKLY_HIGH_RISK_FOR_ELDERLY,
    PULL_MAX_BICEPS_RATIO,
    PUSH_MAX_TRICEPS_RATIO,
)
from movaplan.domains.training_plan.duration import estimate_day_minutes
from movaplan.domains.training_plan.enums import DayType, RejectionReason, RiskLevel
from movaplan.domains.training_plan.errors import MalformedPlanError
from movaplan.domains.training_plan.levels import (
    max_exercises_per_day,
    max_exercises_per_primary_muscle,
)
from movaplan.domains.training_plan.models import TrainingDay, TrainingPlan
from movaplan.domains.training_plan.observability import PlannerStage, log_rejection, log_stage_event
from movaplan.domains.training_plan.same_type import find_same_type_mismatch
from movaplan.domains.training_plan.schemas import ValidationContext
from movaplan.metrics.plan_rejections import PlanRejectionMetrics, emit_rejection

ContextValue = str | int | float | bool | None


@dataclass(frozen=True)
class Rejection:
    """First rule violated by a plan."""

    reason: RejectionReason
    context: dict[str, ContextValue] = field(default_factory=dict)


def validate_exercises_count_by_level(exercise_count: int, activity_level: str | None) -> bool:
    """Return True when a day's exercise count is within the level ceiling."""
    return exercise_count <= max_exercises_per_day(activity_level)


def is_training_plan_usable(
    plan: TrainingPlan | Mapping[str, Any] | None,
    training_days: int,
    activity_level: str | None = None,
    available_time_minutes: float | None = None,
    extra_context: ValidationContext | Mapping[str, Any] | None = None,
    *,
    metrics: PlanRejectionMetrics | None = None,
) -> bool:
    """Decide whether a candidate plan can be shown to a user.

    Never raises for any plan payload. On rejection logs a warning and
    records one rejection metric; on acceptance records nothing.

    Args:
        plan: TrainingPlan or JSON-like payload (LLM output)
        training_days: Frequency requested by the user
        activity_level: Free-text activity level
        available_time_minutes: Minutes available per session
        extra_context: User profile (age, BMI, objective, joint restrictions)
        metrics: Metrics store; the process-wide default when None

    Returns:
        True if the plan passes every rule
    """
    rejection = find_plan_rejection(
        plan,
        training_days,
        activity_level,
        available_time_minutes,
        extra_context,
    )
    if rejection is None:
        log_stage_event(PlannerStage.VALIDATE, "success", meta={"training_days": training_days})
        return True

    context: dict[str, ContextValue] = {
        "trainingDays": training_days,
        "activityLevel": activity_level,
        **rejection.context,
    }
    log_rejection(rejection.reason.value, context)
    emit_rejection(rejection.reason, context, metrics=metrics)
    return False


def find_plan_rejection(
    plan: TrainingPlan | Mapping[str, Any] | None,
    training_days: int,
    activity_level: str | None = None,
    available_time_minutes: float | None = None,
    extra_context: ValidationContext | Mapping[str, Any] | None = None,
) -> Rejection | None:
    """Return the first rule the plan violates, or None when it is usable."""
    try:
        parsed = TrainingPlan.from_payload(plan)
    except MalformedPlanError as e:
        return Rejection(RejectionReason.WEEKLY_SCHEDULE_INVALIDO, {"error": str(e)})

    context = _coerce_context(extra_context)
    days = parsed.weekly_schedule

    if len(days) != training_days:
        return Rejection(
            RejectionReason.NUMERO_DIAS_INCOMPATIVEL,
            {"expected": training_days, "received": len(days)},
        )

    for check in (
        _check_division,
        _check_same_type_days,
        _check_shoulder_restriction,
        _check_knee_restriction,
        _check_elderly_risk,
        _check_aesthetic_bias,
    ):
        rejection = check(parsed, training_days, context)
        if rejection is not None:
            return rejection

    for day in days:
        rejection = _check_day(day, activity_level, available_time_minutes, context)
        if rejection is not None:
            return rejection

    return None


def _coerce_context(extra_context: ValidationContext | Mapping[str, Any] | None) -> ValidationContext:
    if isinstance(extra_context, ValidationContext):
        return extra_context
    if not extra_context:
        return ValidationContext()
    try:
        return ValidationContext.model_validate(dict(extra_context))
    except ValueError as e:
        logger.warning(f"Ignoring invalid validation context: {e}")
        return ValidationContext()


# -----------------------------
# Plan-wide checks
# -----------------------------
def _check_division(plan: TrainingPlan, training_days: int, _: ValidationContext) -> Rejection | None:
    expected = taxonomy.EXPECTED_DAY_TYPES_BY_FREQUENCY.get(training_days)
    if expected is None:
        return None

    expected_values = {day_type.value for day_type in expected}
    received = [taxonomy.normalize_division_name(day.type) for day in plan.weekly_schedule]
    details: dict[str, ContextValue] = {
        "expected": ",".join(sorted(expected_values)),
        "received": ",".join(received),
    }

    for day, day_type in zip(plan.weekly_schedule, received):
        if day_type not in expected_values:
            return Rejection(
                RejectionReason.DIVISAO_INCOMPATIVEL_FREQUENCIA,
                {**details, "day": day.day, "dayType": day_type},
            )

    # 4 days need both halves, 5+ days need the whole PPL cycle
    if training_days >= 4 and not expected_values.issubset(received):
        return Rejection(RejectionReason.DIVISAO_INCOMPATIVEL_FREQUENCIA, details)
    return None


def _check_same_type_days(plan: TrainingPlan, _: int, context: ValidationContext) -> Rejection | None:
    mismatch = find_same_type_mismatch(plan.weekly_schedule, age=context.age)
    if mismatch is None:
        return None
    return Rejection(RejectionReason.DIAS_MESMO_TIPO_EXERCICIOS_DIFERENTES, dict(mismatch))


def _check_shoulder_restriction(plan: TrainingPlan, _: int, context: ValidationContext) -> Rejection | None:
    if not context.has_shoulder_restriction:
        return None
    for day in plan.weekly_schedule:
        for exercise in day.exercises:
            if taxonomy.canonical_muscle(exercise.primary_muscle) == taxonomy.OMBROS or (
                taxonomy.is_shoulder_stress_name(exercise.name)
            ):
                return Rejection(
                    RejectionReason.RESTRICAO_ARTICULAR_OMBRO,
                    {"day": day.day, "dayType": _day_type_label(day), "exercise": exercise.name},
                )
    return None


def _check_knee_restriction(plan: TrainingPlan, _: int, context: ValidationContext) -> Rejection | None:
    if not context.has_knee_restriction:
        return None
    for day in plan.weekly_schedule:
        for exercise in day.exercises:
            if taxonomy.is_knee_stress_name(exercise.name):
                return Rejection(
                    RejectionReason.RESTRICAO_ARTICULAR_JOELHO,
                    {"day": day.day, "dayType": _day_type_label(day), "exercise": exercise.name},
                )
    return None


def _check_elderly_risk(plan: TrainingPlan, _: int, context: ValidationContext) -> Rejection | None:
    if context.age is None or context.age < ELDERLY_AGE_THRESHOLD:
        return None
    high_risk = [
        exercise.name
        for day in plan.weekly_schedule
        for exercise in day.exercises
        if taxonomy.risk_level_for_name(exercise.name) == RiskLevel.HIGH
    ]
    if len(high_risk) > MAX_WEEKLY_HIGH_RISK_FOR_ELDERLY:
        return Rejection(
            RejectionReason.EXCESSO_EXERCICIOS_ALTO_RISCO_IDOSO,
            {"age": context.age, "count": len(high_risk), "max": MAX_WEEKLY_HIGH_RISK_FOR_ELDERLY},
        )
    return None


def _check_aesthetic_bias(plan: TrainingPlan, _: int, __: ValidationContext) -> Rejection | None:
    texts = [plan.overview, plan.progression]
    texts.extend(exercise.notes or "" for day in plan.weekly_schedule for exercise in day.exercises)
    for text in texts:
        normalized = taxonomy.normalize(text)
        for term in AESTHETIC_BIAS_TERMS:
            if term in normalized:
                return Rejection(RejectionReason.VIES_ESTETICO_DETECTADO, {"term": term})
    return None


# -----------------------------
# Per-day checks
# -----------------------------
def _day_type_label(day: TrainingDay) -> str:
    return taxonomy.normalize_division_name(day.type)


def _check_day(
    day: TrainingDay,
    activity_level: str | None,
    available_time_minutes: float | None,
    context: ValidationContext,
) -> Rejection | None:
    label = _day_type_label(day)
    day_type = taxonomy.day_type_of(day.type)
    base: dict[str, ContextValue] = {"day": day.day, "dayType": label}
    exercises = day.exercises

    if not exercises:
        return Rejection(RejectionReason.DIA_SEM_EXERCICIOS, base)

    if not validate_exercises_count_by_level(len(exercises), activity_level):
        return Rejection(
            RejectionReason.EXCESSO_EXERCICIOS_NIVEL,
            {**base, "count": len(exercises), "max": max_exercises_per_day(activity_level)},
        )

    for exercise in exercises:
        if not exercise.primary_muscle.strip():
            return Rejection(RejectionReason.EXERCICIO_SEM_PRIMARY_MUSCLE, {**base, "exercise": exercise.name})

    muscles = [taxonomy.canonical_muscle(exercise.primary_muscle) for exercise in exercises]

    if day_type is not None:
        rejection = _check_day_composition(day_type, exercises, muscles, base, context)
        if rejection is not None:
            return rejection

    for exercise in exercises:
        if not taxonomy.name_matches_primary_muscle(exercise.name, exercise.primary_muscle):
            return Rejection(
                RejectionReason.EXERCICIO_MUSCULO_INCOMPATIVEL,
                {**base, "exercise": exercise.name, "primaryMuscle": exercise.primary_muscle},
            )

    if day_type is not None and not _order_is_valid(day_type, muscles):
        return Rejection(RejectionReason.ORDEM_EXERCICIOS_INVALIDA, base)

    muscle_limit = max_exercises_per_primary_muscle(activity_level)
    for muscle, count in Counter(muscles).items():
        if count > muscle_limit:
            return Rejection(
                RejectionReason.EXCESSO_EXERCICIOS_MUSCULO_PRIMARIO,
                {**base, "muscle": muscle, "count": count, "max": muscle_limit},
            )

    if day_type is not None:
        rejection = _check_smart_distribution(day_type, muscles, base)
        if rejection is not None:
            return rejection

    for exercise in exercises:
        if len(exercise.secondary_muscles) > MAX_SECONDARY_MUSCLES:
            return Rejection(
                RejectionReason.SECONDARY_MUSCLES_EXCEDE_LIMITE,
                {**base, "exercise": exercise.name, "count": len(exercise.secondary_muscles)},
            )

    if available_time_minutes is not None and available_time_minutes > 0:
        estimated = estimate_day_minutes(exercises)
        if estimated > available_time_minutes:
            return Rejection(
                RejectionReason.TEMPO_TREINO_EXCEDE_DISPONIVEL,
                {
                    **base,
                    "estimatedMinutes": round(estimated, 1),
                    "availableMinutes": available_time_minutes,
                },
            )

    return None


def _check_day_composition(
    day_type: DayType,
    exercises: Sequence,
    muscles: list[str],
    base: dict[str, ContextValue],
    context: ValidationContext,
) -> Rejection | None:
    allowed = taxonomy.ALLOWED_MUSCLES.get(day_type, frozenset())
    forbidden = taxonomy.FORBIDDEN_MUSCLES.get(day_type, frozenset())
    for exercise, muscle in zip(exercises, muscles):
        if muscle in forbidden or muscle not in allowed:
            return Rejection(
                RejectionReason.GRUPO_MUSCULAR_PROIBIDO,
                {**base, "exercise": exercise.name, "muscle": muscle},
            )

    present = set(muscles)
    shoulder = context.has_shoulder_restriction
    knee = context.has_knee_restriction

    if day_type == DayType.LOWER:
        needs_quadriceps = not knee
        if (
            (needs_quadriceps and taxonomy.QUADRICEPS not in present)
            or taxonomy.POSTERIOR not in present
            or not present & {taxonomy.GLUTEOS, taxonomy.PANTURRILHAS}
        ):
            return Rejection(RejectionReason.LOWER_SEM_GRUPOS_OBRIGATORIOS, base)

    if day_type == DayType.FULL:
        if (
            taxonomy.PEITORAL not in present
            or taxonomy.COSTAS not in present
            or not present & taxonomy.LEG_MUSCLES
            or (not shoulder and taxonomy.OMBROS not in present)
        ):
            return Rejection(RejectionReason.FULL_BODY_SEM_GRUPOS_OBRIGATORIOS, base)

    required = taxonomy.required_muscles(day_type, shoulder_restriction=shoulder, knee_restriction=knee)
    missing = [muscle for muscle in required if muscle not in present]
    if missing:
        return Rejection(RejectionReason.GRUPO_OBRIGATORIO_AUSENTE, {**base, "missing": ",".join(missing)})
    return None


def _order_is_valid(day_type: DayType, muscles: list[str]) -> bool:
    """Each expected group must first appear after the groups before it."""
    last_index = -1
    for group in taxonomy.EXPECTED_ORDER.get(day_type, ()):
        positions = [index for index, muscle in enumerate(muscles) if muscle in group]
        if not positions:
            continue
        first = positions[0]
        if first < last_index:
            return False
        last_index = first
    return True


def _check_smart_distribution(
    day_type: DayType,
    muscles: list[str],
    base: dict[str, ContextValue],
) -> Rejection | None:
    total = len(muscles)
    counts = Counter(muscles)

    if day_type == DayType.PUSH:
        limit = math.ceil(total * PUSH_MAX_TRICEPS_RATIO)
        if counts[taxonomy.TRICEPS] > limit or not (counts[taxonomy.PEITORAL] or counts[taxonomy.OMBROS]):
            return Rejection(
                RejectionReason.DISTRIBUICAO_INTELIGENTE_INVALIDA,
                {**base, "muscle": taxonomy.TRICEPS, "count": counts[taxonomy.TRICEPS], "max": limit},
            )

    if day_type == DayType.PULL:
        limit = math.ceil(total * PULL_MAX_BICEPS_RATIO)
        if counts[taxonomy.BICEPS] > limit:
            return Rejection(
                RejectionReason.DISTRIBUICAO_INTELIGENTE_INVALIDA,
                {**base, "muscle": taxonomy.BICEPS, "count": counts[taxonomy.BICEPS], "max": limit},
            )

    if day_type == DayType.LOWER:
        limit = math.ceil(total * LOWER_MAX_SINGLE_MUSCLE_RATIO)
        muscle, count = counts.most_common(1)[0]
        if count > limit:
            return Rejection(
                RejectionReason.DISTRIBUICAO_INTELIGENTE_INVALIDA,
                {**base, "muscle": muscle, "count": count, "max": limit},
            )
    return None
