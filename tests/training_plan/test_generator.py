"""Tests for the deterministic plan structure generator.

The central property: for every frequency and level, the generated plan
passes the validator with the same inputs.
"""

from collections import Counter

import pytest

from movaplan.domains.training_plan import taxonomy
from movaplan.domains.training_plan.corpus import get_default_corpus
from movaplan.domains.training_plan.duration import estimate_day_minutes, parse_rest_seconds
from movaplan.domains.training_plan.enums import Division, Environment, Equipment, RiskLevel
from movaplan.domains.training_plan.errors import InvalidPlanRequestError
from movaplan.domains.training_plan.generator import (
    day_cycle,
    division_for_frequency,
    generate_training_plan_structure,
    parse_division,
    resolve_division,
)
from movaplan.domains.training_plan.levels import get_level_profile, weekly_set_ceilings
from movaplan.domains.training_plan.schemas import ValidationContext
from movaplan.domains.training_plan.validator import find_plan_rejection

LEVELS = [
    "Idoso",
    "Limitado",
    "Iniciante",
    "Sedentário",
    "Moderado",
    "Intermediário",
    "Avançado",
    "Atleta",
    "Atleta Alto Rendimento",
]


def _weekly_sets(plan) -> Counter[str]:
    sets: Counter[str] = Counter()
    for day in plan.weekly_schedule:
        for exercise in day.exercises:
            sets[taxonomy.canonical_muscle(exercise.primary_muscle)] += exercise.sets
    return sets


def _corpus_entry(name: str):
    return next(entry for entry in get_default_corpus().entries if entry.name == name)


# -----------------------------
# Division
# -----------------------------
@pytest.mark.parametrize(
    ("training_days", "expected"),
    [
        (1, Division.FULL_BODY),
        (2, Division.FULL_BODY),
        (3, Division.FULL_BODY),
        (4, Division.UPPER_LOWER),
        (5, Division.PPL),
        (6, Division.PPL),
        (7, Division.PPL),
    ],
)
def test_division_for_frequency(training_days: int, expected: Division) -> None:
    """Test frequency to division mapping."""
    assert division_for_frequency(training_days) == expected


def test_parse_division_aliases() -> None:
    """Test that division aliases are recognized."""
    assert parse_division("Push/Pull/Legs") == Division.PPL
    assert parse_division("upper lower") == Division.UPPER_LOWER
    assert parse_division("FullBody") == Division.FULL_BODY
    assert parse_division("bro split") is None


def test_resolve_division_overrides_conflicting_request() -> None:
    """Test that trainingDays wins over a conflicting division."""
    assert resolve_division(3, "PPL") == Division.FULL_BODY
    assert resolve_division(5, "Full Body") == Division.PPL
    assert resolve_division(4, "Upper/Lower") == Division.UPPER_LOWER


def test_day_cycle_wraps_ppl() -> None:
    """Test that 7 PPL days cycle Push, Pull, Legs."""
    labels = [label for _, label in day_cycle(Division.PPL, 7)]
    assert labels == ["Push", "Pull", "Legs", "Push", "Pull", "Legs", "Push"]


def test_requested_division_is_overridden_in_plan() -> None:
    """Test that a PPL request for 3 days yields Full Body days."""
    plan = generate_training_plan_structure(3, "Moderado", division="PPL")
    assert [day.type for day in plan.weekly_schedule] == ["Full Body"] * 3
    assert plan.weekly_schedule[0].day == "Segunda-feira – Corpo Inteiro"


def test_day_labels() -> None:
    """Test day labels for PPL and Upper/Lower."""
    ppl = generate_training_plan_structure(5, "Moderado")
    assert ppl.weekly_schedule[0].day == "Treino A – Peito/Ombros/Tríceps"
    assert ppl.weekly_schedule[2].day == "Treino C – Pernas"

    upper_lower = generate_training_plan_structure(4, "Moderado")
    assert [day.day for day in upper_lower.weekly_schedule] == [
        "Segunda-feira – Superiores",
        "Terça-feira – Inferiores",
        "Quarta-feira – Superiores",
        "Quinta-feira – Inferiores",
    ]


# -----------------------------
# Generated plans pass validation
# -----------------------------
@pytest.mark.parametrize("training_days", range(1, 8))
@pytest.mark.parametrize("level", LEVELS)
def test_generated_plan_is_usable(training_days: int, level: str) -> None:
    """Test that every generated plan passes the validator."""
    plan = generate_training_plan_structure(training_days, level)

    assert len(plan.weekly_schedule) == training_days
    assert find_plan_rejection(plan, training_days, level) is None


@pytest.mark.parametrize("training_days", [3, 4, 5])
def test_generated_plan_fits_available_time(training_days: int) -> None:
    """Test that days are trimmed to fit 30 minutes and still pass validation."""
    plan = generate_training_plan_structure(training_days, "Moderado", available_time_minutes=30)

    for day in plan.weekly_schedule:
        assert estimate_day_minutes(day.exercises) <= 30
    assert find_plan_rejection(plan, training_days, "Moderado", 30) is None


def test_rest_is_compressed_when_trimming_is_not_enough() -> None:
    """Test that rest is shortened, never below 45s, when a day cannot lose more exercises."""
    plan = generate_training_plan_structure(3, "Moderado", available_time_minutes=20)

    for day in plan.weekly_schedule:
        assert estimate_day_minutes(day.exercises) <= 20
        assert all(45 <= parse_rest_seconds(exercise.rest) < 90 for exercise in day.exercises)
    assert find_plan_rejection(plan, 3, "Moderado", 20) is None


def test_concrete_recomposition_scenario() -> None:
    """Test 3 days, Moderado, 60 min, BMI 25, mass gain: deficit volume, 7 exercises per day."""
    context = ValidationContext(imc=25, objective="Ganhar massa")
    plan = generate_training_plan_structure(
        3,
        "Moderado",
        division="Full Body",
        available_time_minutes=60,
        imc=25,
        objective="Ganhar massa",
    )

    assert [day.type for day in plan.weekly_schedule] == ["Full Body"] * 3
    for day in plan.weekly_schedule:
        assert len(day.exercises) == 7
        assert estimate_day_minutes(day.exercises) <= 60
    assert "déficit" in plan.overview
    assert find_plan_rejection(plan, 3, "Moderado", 60, context) is None


# -----------------------------
# Volume
# -----------------------------
def test_generation_is_deterministic() -> None:
    """Test that the same inputs always produce the same plan."""
    kwargs = {"available_time_minutes": 45, "imc": 27.5, "objective": "Emagrecimento", "age": 35}
    first = generate_training_plan_structure(5, "Intermediário", **kwargs)
    second = generate_training_plan_structure(5, "Intermediário", **kwargs)
    assert first == second
    assert first.to_dict() == second.to_dict()


def test_weekly_volume_increases_with_level() -> None:
    """Test that weekly sets grow from Sedentário to Moderado to Atleta."""
    totals = [
        sum(_weekly_sets(generate_training_plan_structure(3, level)).values())
        for level in ("Sedentário", "Moderado", "Atleta")
    ]
    assert totals[0] < totals[1] < totals[2]


@pytest.mark.parametrize("training_days", [3, 4, 5])
@pytest.mark.parametrize(
    ("imc", "objective"),
    [(31, "Emagrecimento"), (30, "Ganhar massa"), (25, "Ganhar massa muscular")],
)
def test_deficit_volume_stays_under_scaled_ceiling(training_days: int, imc: float, objective: str) -> None:
    """Test that weekly sets per muscle stay within 70% of the ceiling in deficit mode."""
    plan = generate_training_plan_structure(training_days, "Moderado", imc=imc, objective=objective)
    ceilings = weekly_set_ceilings(get_level_profile("Moderado"), deficit=True)

    for muscle, sets in _weekly_sets(plan).items():
        assert sets <= ceilings[muscle], muscle


@pytest.mark.parametrize("training_days", [3, 4, 5, 6])
def test_weekly_volume_stays_under_ceiling(training_days: int) -> None:
    """Test that weekly sets per muscle stay within the level ceiling."""
    plan = generate_training_plan_structure(training_days, "Avançado")
    ceilings = weekly_set_ceilings(get_level_profile("Avançado"))

    for muscle, sets in _weekly_sets(plan).items():
        assert sets <= ceilings[muscle], muscle


def test_regeneration_reduces_day_target() -> None:
    """Test that exercise_budget_reduction lowers the exercises per day."""
    base = generate_training_plan_structure(3, "Moderado")
    reduced = generate_training_plan_structure(3, "Moderado", exercise_budget_reduction=2)

    assert max(len(day.exercises) for day in reduced.weekly_schedule) <= 5
    assert len(reduced.weekly_schedule[0].exercises) < len(base.weekly_schedule[0].exercises)
    assert find_plan_rejection(reduced, 3, "Moderado") is None


def test_short_time_downgrades_level() -> None:
    """Test that an athlete with 50 minutes trains at the intermediario level."""
    plan = generate_training_plan_structure(3, "Atleta", available_time_minutes=50)
    assert "intermediario" in plan.overview
    assert "rebaixado de atleta" in plan.overview


# -----------------------------
# Profile exclusions
# -----------------------------
@pytest.mark.parametrize("training_days", [3, 4, 5])
def test_shoulder_restriction_excludes_shoulder_work(training_days: int) -> None:
    """Test that no ombros or shoulder-stress exercise is prescribed."""
    plan = generate_training_plan_structure(training_days, "Moderado", has_shoulder_restriction=True)

    for day in plan.weekly_schedule:
        for exercise in day.exercises:
            assert taxonomy.canonical_muscle(exercise.primary_muscle) != taxonomy.OMBROS
            assert not _corpus_entry(exercise.name).shoulder_stress
    context = ValidationContext(has_shoulder_restriction=True)
    assert find_plan_rejection(plan, training_days, "Moderado", extra_context=context) is None


@pytest.mark.parametrize("training_days", [3, 4, 5])
def test_knee_restriction_excludes_knee_work(training_days: int) -> None:
    """Test that no knee-stress exercise is prescribed."""
    plan = generate_training_plan_structure(training_days, "Moderado", has_knee_restriction=True)

    for day in plan.weekly_schedule:
        for exercise in day.exercises:
            assert not _corpus_entry(exercise.name).knee_stress
    context = ValidationContext(has_knee_restriction=True)
    assert find_plan_rejection(plan, training_days, "Moderado", extra_context=context) is None


def test_home_environment_excludes_machines() -> None:
    """Test that machine and cable exercises are excluded at home."""
    plan = generate_training_plan_structure(4, "Moderado", environment=Environment.CASA)

    for day in plan.weekly_schedule:
        for exercise in day.exercises:
            equipment = _corpus_entry(exercise.name).equipment
            assert not equipment & {Equipment.MAQUINA, Equipment.POLIA}, exercise.name
    assert find_plan_rejection(plan, 4, "Moderado") is None


def test_elderly_get_only_low_risk_lifts() -> None:
    """Test that users aged 60+ only receive low-risk exercises."""
    plan = generate_training_plan_structure(3, "Idoso", age=70)

    for day in plan.weekly_schedule:
        for exercise in day.exercises:
            assert _corpus_entry(exercise.name).risk == RiskLevel.LOW
    assert find_plan_rejection(plan, 3, "Idoso", extra_context={"age": 70}) is None


# -----------------------------
# Invalid input
# -----------------------------
@pytest.mark.parametrize("training_days", [0, 8, -1, True])
def test_invalid_training_days(training_days) -> None:
    """Test that trainingDays outside 1..7 raises InvalidPlanRequestError."""
    with pytest.raises(InvalidPlanRequestError, match="trainingDays"):
        generate_training_plan_structure(training_days, "Moderado")


def test_unknown_environment() -> None:
    """Test that an unknown environment raises InvalidPlanRequestError."""
    with pytest.raises(InvalidPlanRequestError, match="Unknown environment"):
        generate_training_plan_structure(3, "Moderado", environment="praia")


def test_unknown_level_falls_back_to_moderado() -> None:
    """Test that an unrecognized level generates a Moderado plan."""
    assert generate_training_plan_structure(3, "???") == generate_training_plan_structure(3, "Moderado")
