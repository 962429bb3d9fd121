"""Deterministic training plan structure generator.

Builds a weekly schedule from the exercise corpus:

1. Resolve the division from trainingDays (a conflicting caller division
   is overridden) and the day-type cycle.
2. Resolve the operational level (downgraded when time is short) and the
   weekly set ceilings (scaled down in deficit mode).
3. Build one template per distinct day type: select exercises per the
   day blueprint, drop what the weekly budget cannot pay for, balance
   the distribution, assign sets, order, fit available time.
4. Copy templates onto days and force same-type days to be identical.

Same inputs always produce the same plan. The generator never raises for
valid inputs; a plan it cannot fit is returned as-is and left for the
validator to reject.
"""

import math
from collections import Counter
from dataclasses import dataclass, replace

from loguru import logger

from movaplan.domains.training_plan import taxonomy
from movaplan.domains.training_plan.adjustments import adjust_reps, is_deficit_mode
from movaplan.domains.training_plan.constants import (
    DEFAULT_PROGRESSION,
    EXECUTION_SECONDS_PER_SET,
    LOWER_MAX_SINGLE_MUSCLE_RATIO,
    MIN_REST_SECONDS,
    MIN_VIABLE_DAY_EXERCISES,
    PULL_MAX_BICEPS_RATIO,
    PUSH_MAX_TRICEPS_RATIO,
)
from movaplan.domains.training_plan.corpus import (
    CorpusExercise,
    ExerciseCorpus,
    ExerciseFilter,
    get_default_corpus,
)
from movaplan.domains.training_plan.duration import estimate_day_minutes, format_rest, parse_rest_seconds
from movaplan.domains.training_plan.enums import ActivityLevel, DayType, Division, Environment
from movaplan.domains.training_plan.errors import InvalidPlanRequestError
from movaplan.domains.training_plan.levels import (
    LevelProfile,
    get_level_profile,
    max_exercises_per_primary_muscle,
    normalize_activity_level,
    operational_level,
    weekly_set_ceilings,
)
from movaplan.domains.training_plan.models import Exercise, TrainingDay, TrainingPlan
from movaplan.domains.training_plan.observability import (
    PlannerStage,
    log_event,
    log_stage_event,
    timing,
)
from movaplan.domains.training_plan.same_type import enforce_same_type_days

# Exercises per muscle slot, indexed by LevelProfile.volume_tier
DAY_BLUEPRINTS: dict[DayType, tuple[tuple[str, tuple[int, int, int, int]], ...]] = {
    DayType.PUSH: (
        (taxonomy.PEITORAL, (2, 3, 3, 4)),
        (taxonomy.OMBROS, (1, 2, 2, 2)),
        (taxonomy.TRICEPS, (1, 1, 2, 2)),
    ),
    DayType.PULL: (
        (taxonomy.COSTAS, (2, 3, 3, 4)),
        (taxonomy.TRAPEZIO, (0, 0, 1, 1)),
        (taxonomy.BICEPS, (1, 2, 2, 2)),
    ),
    DayType.LOWER: (
        (taxonomy.QUADRICEPS, (2, 2, 3, 3)),
        (taxonomy.POSTERIOR, (1, 2, 2, 3)),
        (taxonomy.GLUTEOS, (1, 1, 1, 2)),
        (taxonomy.PANTURRILHAS, (1, 1, 1, 1)),
    ),
    DayType.UPPER: (
        (taxonomy.PEITORAL, (1, 2, 2, 2)),
        (taxonomy.COSTAS, (1, 2, 2, 2)),
        (taxonomy.OMBROS, (1, 1, 2, 2)),
        (taxonomy.BICEPS, (1, 1, 1, 2)),
        (taxonomy.TRICEPS, (1, 1, 1, 2)),
    ),
    DayType.FULL: (
        (taxonomy.PEITORAL, (1, 1, 2, 2)),
        (taxonomy.COSTAS, (1, 1, 2, 2)),
        (taxonomy.QUADRICEPS, (1, 1, 1, 2)),
        (taxonomy.POSTERIOR, (1, 1, 1, 1)),
        (taxonomy.OMBROS, (1, 1, 1, 1)),
        (taxonomy.TRICEPS, (0, 1, 1, 1)),
        (taxonomy.BICEPS, (0, 1, 0, 1)),
    ),
}

_DIVISION_CYCLES: dict[Division, tuple[tuple[DayType, str], ...]] = {
    Division.FULL_BODY: ((DayType.FULL, "Full Body"),),
    Division.UPPER_LOWER: ((DayType.UPPER, "Upper"), (DayType.LOWER, "Lower")),
    Division.PPL: ((DayType.PUSH, "Push"), (DayType.PULL, "Pull"), (DayType.LOWER, "Legs")),
}

_DIVISION_ALIASES: dict[str, Division] = {
    "full body": Division.FULL_BODY,
    "fullbody": Division.FULL_BODY,
    "full": Division.FULL_BODY,
    "upper/lower": Division.UPPER_LOWER,
    "upper lower": Division.UPPER_LOWER,
    "upperlower": Division.UPPER_LOWER,
    "ppl": Division.PPL,
    "push/pull/legs": Division.PPL,
    "push pull legs": Division.PPL,
}

_PPL_TITLES = {
    DayType.PUSH: "Peito/Ombros/Tríceps",
    DayType.PULL: "Costas/Bíceps",
    DayType.LOWER: "Pernas",
}
_UPPER_LOWER_DAY_NAMES = ("Segunda-feira", "Terça-feira", "Quarta-feira", "Quinta-feira")
_FULL_BODY_DAY_NAMES = ("Segunda-feira", "Terça-feira", "Quarta-feira")


# -----------------------------
# Division resolution
# -----------------------------
def division_for_frequency(training_days: int) -> Division:
    """1-3 days -> Full Body, 4 -> Upper/Lower, 5-7 -> PPL."""
    if training_days <= 3:
        return Division.FULL_BODY
    if training_days == 4:
        return Division.UPPER_LOWER
    return Division.PPL


def parse_division(value: str | None) -> Division | None:
    return _DIVISION_ALIASES.get(taxonomy.normalize(value))


def resolve_division(training_days: int, requested: str | None = None) -> Division:
    """Division for a frequency; a conflicting requested division is overridden."""
    division = division_for_frequency(training_days)
    if requested:
        parsed = parse_division(requested)
        if parsed != division:
            logger.warning(
                f"Requested division '{requested}' incompatible with {training_days} days; using {division.value}"
            )
            log_event(
                "division_overridden",
                requested=requested,
                resolved=division.value,
                training_days=training_days,
            )
    return division


def day_cycle(division: Division, training_days: int) -> list[tuple[DayType, str]]:
    cycle = _DIVISION_CYCLES[division]
    return [cycle[index % len(cycle)] for index in range(training_days)]


def _day_label(division: Division, day_type: DayType, index: int) -> str:
    if division == Division.PPL:
        return f"Treino {chr(ord('A') + index)} – {_PPL_TITLES[day_type]}"
    if division == Division.UPPER_LOWER:
        name = _UPPER_LOWER_DAY_NAMES[index] if index < len(_UPPER_LOWER_DAY_NAMES) else f"Dia {index + 1}"
        return f"{name} – {'Superiores' if day_type == DayType.UPPER else 'Inferiores'}"
    name = _FULL_BODY_DAY_NAMES[index] if index < len(_FULL_BODY_DAY_NAMES) else f"Dia {index + 1}"
    return f"{name} – Corpo Inteiro"


# -----------------------------
# Day building
# -----------------------------
@dataclass(frozen=True)
class _Planned:
    """Exercise being planned, before it is emitted."""

    entry: CorpusExercise
    muscle: str
    sets: int = 0
    rest_seconds: float | None = None


@dataclass(frozen=True)
class _DayContext:
    day_type: DayType
    profile: LevelProfile
    required_groups: tuple[frozenset[str], ...]
    max_per_muscle: int
    target_exercises: int


def _required_groups(day_type: DayType, shoulder: bool, knee: bool) -> tuple[frozenset[str], ...]:
    """Muscle groups of which at least one exercise must survive trimming."""
    groups = [
        frozenset({muscle})
        for muscle in taxonomy.required_muscles(day_type, shoulder_restriction=shoulder, knee_restriction=knee)
    ]
    if day_type == DayType.LOWER:
        groups.append(frozenset({taxonomy.GLUTEOS, taxonomy.PANTURRILHAS}))
    if day_type == DayType.FULL:
        groups.append(taxonomy.LEG_MUSCLES)
        if not shoulder:
            groups.append(frozenset({taxonomy.OMBROS}))
    return tuple(groups)


def _is_protected(index: int, planned: list[_Planned], groups: tuple[frozenset[str], ...]) -> bool:
    muscle = planned[index].muscle
    for group in groups:
        if muscle in group and sum(1 for item in planned if item.muscle in group) == 1:
            return True
    return False


def _removal_index(
    planned: list[_Planned],
    groups: tuple[frozenset[str], ...],
    muscle: str | None = None,
) -> int | None:
    """Lowest-priority removable exercise: smallest muscle first, latest position first."""
    candidates = [
        index
        for index, item in enumerate(planned)
        if (muscle is None or item.muscle == muscle) and not _is_protected(index, planned, groups)
    ]
    if not candidates:
        return None
    return min(candidates, key=lambda index: (taxonomy.size_weight(planned[index].muscle), -index))


def _select(day_type: DayType, profile: LevelProfile, corpus: ExerciseCorpus, exercise_filter: ExerciseFilter) -> list[_Planned]:
    selected: list[_Planned] = []
    for muscle, counts in DAY_BLUEPRINTS.get(day_type, ()):
        count = counts[profile.volume_tier]
        if count <= 0:
            continue
        for entry in corpus.candidates(muscle, exercise_filter)[:count]:
            selected.append(_Planned(entry=entry, muscle=muscle))
    return selected


def _violation(planned: list[_Planned], ctx: _DayContext) -> tuple[str | None, str] | None:
    """First distribution rule broken by the day, as (muscle to trim, rule name)."""
    counts = Counter(item.muscle for item in planned)
    total = len(planned)

    for muscle, count in counts.items():
        if count > ctx.max_per_muscle:
            return muscle, "per_muscle_cap"

    if ctx.day_type == DayType.PUSH and counts[taxonomy.TRICEPS] > math.ceil(total * PUSH_MAX_TRICEPS_RATIO):
        return taxonomy.TRICEPS, "push_triceps_ratio"
    if ctx.day_type == DayType.PULL and counts[taxonomy.BICEPS] > math.ceil(total * PULL_MAX_BICEPS_RATIO):
        return taxonomy.BICEPS, "pull_biceps_ratio"
    if ctx.day_type == DayType.LOWER and counts:
        muscle, count = counts.most_common(1)[0]
        if count > math.ceil(total * LOWER_MAX_SINGLE_MUSCLE_RATIO):
            return muscle, "lower_single_muscle_ratio"

    if total > ctx.target_exercises:
        return None, "day_target"
    return None


def _balance(planned: list[_Planned], ctx: _DayContext) -> list[_Planned]:
    """Remove exercises until the distribution rules and the day target hold."""
    planned = list(planned)
    while True:
        violation = _violation(planned, ctx)
        if violation is None:
            return planned
        muscle, rule = violation
        index = _removal_index(planned, ctx.required_groups, muscle)
        if index is None:
            logger.debug(f"Cannot satisfy {rule} on {ctx.day_type.value} day without dropping required groups")
            return planned
        planned.pop(index)


def _apply_budget(
    planned: list[_Planned],
    ctx: _DayContext,
    budgets: dict[str, int],
    min_sets: int,
) -> list[_Planned]:
    """Drop exercises the daily set budget cannot pay for, then assign sets.

    Each muscle keeps at most budget // min_sets exercises; a required
    muscle always keeps one exercise with at least one set.
    """
    required = set().union(*ctx.required_groups) if ctx.required_groups else set()
    max_sets = ctx.profile.max_sets
    result: list[_Planned] = []

    by_muscle: dict[str, list[_Planned]] = {}
    for item in planned:
        by_muscle.setdefault(item.muscle, []).append(item)

    for muscle, items in by_muscle.items():
        budget = budgets.get(muscle, 0)
        keep = min(len(items), budget // min_sets)
        if keep == 0:
            if muscle not in required:
                continue
            result.append(replace(items[0], sets=max(1, min(budget, max_sets))))
            continue

        base = min(max_sets, budget // keep)
        extra = budget - base * keep
        for position, item in enumerate(items[:keep]):
            sets = base + 1 if position < extra and base < max_sets else base
            result.append(replace(item, sets=sets))

    return result


def _order(planned: list[_Planned], day_type: DayType) -> list[_Planned]:
    """Expected group order, then muscle size, then compound before isolation."""
    return sorted(
        planned,
        key=lambda item: (
            taxonomy.order_rank(day_type, item.muscle),
            -taxonomy.size_weight(item.muscle),
            not item.entry.compound,
        ),
    )


def _minutes(planned: list[_Planned]) -> float:
    return sum(
        item.sets
        * ((item.rest_seconds if item.rest_seconds is not None else parse_rest_seconds(item.entry.rest))
           + EXECUTION_SECONDS_PER_SET)
        for item in planned
    ) / 60


def _fit_time(planned: list[_Planned], ctx: _DayContext, available_minutes: float) -> list[_Planned]:
    """Trim exercises down to the minimum viable day, then compress rest to MIN_REST_SECONDS."""
    planned = list(planned)
    removed = 0
    while _minutes(planned) > available_minutes and len(planned) > MIN_VIABLE_DAY_EXERCISES:
        index = _removal_index(planned, ctx.required_groups)
        if index is None:
            break
        planned.pop(index)
        removed += 1
    if removed:
        log_event("day_trimmed_for_time", day_type=ctx.day_type.value, removed=removed)

    if _minutes(planned) <= available_minutes:
        return planned

    total_sets = sum(item.sets for item in planned)
    rest_seconds = sum(item.sets * parse_rest_seconds(item.entry.rest) for item in planned)
    if total_sets == 0 or rest_seconds == 0:
        return planned

    scale = (available_minutes * 60 - total_sets * EXECUTION_SECONDS_PER_SET) / rest_seconds
    if scale >= 1:
        return planned
    compressed = [
        replace(item, rest_seconds=max(MIN_REST_SECONDS, math.floor(parse_rest_seconds(item.entry.rest) * scale)))
        for item in planned
    ]
    log_event("rest_compressed", day_type=ctx.day_type.value, scale=round(max(scale, 0.0), 2))
    return compressed


def _emit(planned: list[_Planned], imc: float | None, objective: str | None) -> tuple[Exercise, ...]:
    exercises = []
    for item in planned:
        exercise = item.entry.to_exercise(sets=item.sets, reps=adjust_reps(item.entry.reps, imc, objective))
        if item.rest_seconds is not None:
            exercise = replace(exercise, rest=format_rest(item.rest_seconds))
        exercises.append(exercise)
    return tuple(exercises)


def _weekly_frequency(templates: dict[DayType, list[_Planned]], cycle: list[tuple[DayType, str]]) -> Counter[str]:
    frequency: Counter[str] = Counter()
    for day_type, _ in cycle:
        for muscle in {item.muscle for item in templates[day_type]}:
            frequency[muscle] += 1
    return frequency


# -----------------------------
# Public API
# -----------------------------
def generate_training_plan_structure(
    training_days: int,
    activity_level: str | None,
    division: str | None = None,
    available_time_minutes: float | None = None,
    imc: float | None = None,
    objective: str | None = None,
    has_shoulder_restriction: bool = False,
    has_knee_restriction: bool = False,
    environment: Environment | str | None = None,
    age: int | None = None,
    *,
    exercise_budget_reduction: int = 0,
    corpus: ExerciseCorpus | None = None,
) -> TrainingPlan:
    """Build a weekly training plan deterministically.

    Args:
        training_days: Training days per week (1-7)
        activity_level: Free-text activity level ("Moderado", "Atleta Alto Rendimento", ...)
        division: Requested division; overridden when incompatible with training_days
        available_time_minutes: Minutes available per session
        imc: Body mass index
        objective: Free-text objective ("Ganhar massa", "Emagrecimento", ...)
        has_shoulder_restriction: Exclude shoulder-stress exercises and ombros work
        has_knee_restriction: Exclude knee-stress exercises
        environment: "casa", "academia", "ambos" or "ar_livre"
        age: User age; 60+ keeps only low-risk lifts
        exercise_budget_reduction: Exercises removed from the per-day target (regeneration)
        corpus: Exercise corpus; the packaged corpus when None

    Returns:
        TrainingPlan with one day per training day

    Raises:
        InvalidPlanRequestError: If training_days is not an integer in 1..7 or
            environment is unknown
    """
    if isinstance(training_days, bool) or not isinstance(training_days, int) or not 1 <= training_days <= 7:
        raise InvalidPlanRequestError(f"trainingDays must be an integer between 1 and 7, got {training_days!r}")
    try:
        env = Environment(taxonomy.normalize(environment).replace(" ", "_")) if environment else None
    except ValueError as e:
        raise InvalidPlanRequestError(f"Unknown environment: {environment!r}") from e

    corpus = corpus or get_default_corpus()

    with timing("training_plan.generate"):
        log_stage_event(PlannerStage.RESOLVE_DIVISION, "start", meta={"training_days": training_days})
        resolved_division = resolve_division(training_days, division)
        cycle = day_cycle(resolved_division, training_days)
        log_event("division_resolved", division=resolved_division.value, training_days=training_days)

        level = normalize_activity_level(activity_level)
        op_level = operational_level(level, available_time_minutes)
        if op_level != level:
            log_event(
                "level_downgraded",
                level=level.value,
                operational_level=op_level.value,
                available_minutes=available_time_minutes,
            )
        profile = get_level_profile(op_level)
        deficit = is_deficit_mode(imc, objective)
        ceilings = weekly_set_ceilings(profile, deficit=deficit)
        min_sets = 1 if deficit else profile.min_sets

        exercise_filter = ExerciseFilter(
            environment=env,
            shoulder_restriction=has_shoulder_restriction,
            knee_restriction=has_knee_restriction,
            age=age,
        )

        log_stage_event(PlannerStage.BUILD_DAYS, "start", meta={"division": resolved_division.value})
        contexts: dict[DayType, _DayContext] = {}
        templates: dict[DayType, list[_Planned]] = {}
        for day_type, _ in cycle:
            if day_type in templates:
                continue
            contexts[day_type] = _DayContext(
                day_type=day_type,
                profile=profile,
                required_groups=_required_groups(day_type, has_shoulder_restriction, has_knee_restriction),
                max_per_muscle=min(
                    profile.max_exercises_per_primary_muscle,
                    max_exercises_per_primary_muscle(activity_level),
                ),
                target_exercises=max(1, profile.target_exercises_per_day - exercise_budget_reduction),
            )
            templates[day_type] = _select(day_type, profile, corpus, exercise_filter)

        frequency = _weekly_frequency(templates, cycle)
        budgets = {muscle: ceilings.get(muscle, 0) // days for muscle, days in frequency.items()}

        for day_type, planned in templates.items():
            ctx = contexts[day_type]
            planned = _apply_budget(planned, ctx, budgets, min_sets)
            planned = _balance(planned, ctx)
            planned = _order(planned, day_type)
            if available_time_minutes:
                log_stage_event(
                    PlannerStage.FIT_TIME,
                    "start",
                    meta={"day_type": day_type.value, "available_minutes": available_time_minutes},
                )
                planned = _fit_time(planned, ctx, available_time_minutes)
                planned = _balance(planned, ctx)
            templates[day_type] = planned
        log_stage_event(PlannerStage.BUILD_DAYS, "success", meta={"day_types": len(templates)})

        days = tuple(
            TrainingDay(
                day=_day_label(resolved_division, day_type, index),
                type=type_label,
                exercises=_emit(templates[day_type], imc, objective),
            )
            for index, (day_type, type_label) in enumerate(cycle)
        )
        days = enforce_same_type_days(days)
        log_stage_event(PlannerStage.SAME_TYPE, "success", meta={"days": len(days)})

        plan = TrainingPlan(
            overview=_overview(resolved_division, training_days, level, op_level, deficit, exercise_filter),
            weekly_schedule=days,
            progression=DEFAULT_PROGRESSION,
        )

    log_event(
        "plan_generated",
        division=resolved_division.value,
        training_days=training_days,
        level=op_level.value,
        deficit=deficit,
        longest_day_minutes=round(max(estimate_day_minutes(day.exercises) for day in days), 1),
    )
    return plan


def _overview(
    division: Division,
    training_days: int,
    level: ActivityLevel,
    op_level: ActivityLevel,
    deficit: bool,
    exercise_filter: ExerciseFilter,
) -> str:
    parts = [f"Plano de treino {division.value} para {training_days}x por semana, nível operacional {op_level.value}"]
    if op_level != level:
        parts[0] += f" (rebaixado de {level.value} por tempo insuficiente)"
    if deficit:
        parts.append("Volume semanal reduzido em 30% para contexto de déficit calórico/recomposição")
    if exercise_filter.shoulder_restriction:
        parts.append("Exercícios com estresse no ombro foram excluídos")
    if exercise_filter.knee_restriction:
        parts.append("Exercícios com estresse no joelho foram excluídos")
    return ". ".join(parts) + "."
