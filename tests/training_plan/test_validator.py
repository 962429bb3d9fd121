"""Tests for the training plan validator.

Every rejection reason is reached through a minimal change to a valid
plan, and rejected calls record exactly one metric.
"""

import copy

import pytest

from movaplan.domains.training_plan.enums import RejectionReason
from movaplan.domains.training_plan.validator import (
    find_plan_rejection,
    is_training_plan_usable,
    validate_exercises_count_by_level,
)


def _for_days(plan: dict, day_type: str, mutate) -> dict:
    """Apply mutate to the exercise list of every day of a type."""
    for day in plan["weeklySchedule"]:
        if day["type"] == day_type:
            mutate(day["exercises"])
    return plan


def _reason(plan, training_days: int, **kwargs) -> RejectionReason | None:
    rejection = find_plan_rejection(plan, training_days, **kwargs)
    return rejection.reason if rejection else None


# -----------------------------
# Acceptance
# -----------------------------
def test_valid_full_body_plan_is_usable(full_body_plan, metrics_store) -> None:
    """Test that a well-formed 3-day Full Body plan passes and records nothing."""
    assert is_training_plan_usable(full_body_plan, 3, "Moderado", 60, metrics=metrics_store)
    assert metrics_store.get_all_metrics() == []


def test_valid_ppl_plan_is_usable(ppl_plan, metrics_store) -> None:
    """Test that a 5-day PPL plan tagged with 'Legs' passes."""
    assert is_training_plan_usable(ppl_plan, 5, "Moderado", metrics=metrics_store)


def test_unknown_day_type_skips_composition_rules() -> None:
    """Test that composition rules do not apply to unrecognized day types."""
    plan = {
        "overview": "",
        "weeklySchedule": [
            {
                "day": "Dia 1",
                "type": "Cardio",
                "exercises": [{"name": "Bicicleta", "primaryMuscle": "quadriceps", "sets": 1, "rest": "60s"}],
            }
        ],
        "progression": "",
    }
    assert find_plan_rejection(plan, 1, "Moderado") is None


def test_rejection_uses_default_store_when_none_given(full_body_plan, default_metrics_store) -> None:
    """Test that rejections go to the process-wide store by default."""
    assert not is_training_plan_usable(full_body_plan, 4, "Moderado")
    assert [metric.reason for metric in default_metrics_store.get_all_metrics()] == [
        "numero_dias_incompativel"
    ]


# -----------------------------
# Structure
# -----------------------------
@pytest.mark.parametrize(
    "payload",
    [
        None,
        "not a plan",
        {"overview": "sem agenda"},
        {"weeklySchedule": "segunda"},
        {"weeklySchedule": [{"day": "Dia 1", "type": "Full", "exercises": ["supino"]}]},
        {"weeklySchedule": [{"day": "Dia 1", "type": "Full", "exercises": [{"name": "Supino", "sets": {}}]}]},
        {"weeklySchedule": [{"day": "Dia 1", "type": "Full", "exercises": [{"name": "Supino", "sets": float("nan")}]}]},
        {"weeklySchedule": [{"day": "Dia 1", "type": "Full", "exercises": [{"name": "Supino", "sets": float("inf")}]}]},
        {"weeklySchedule": [{"day": "Dia 1", "type": "Full", "exercises": [{"name": "Supino", "sets": float("-inf")}]}]},
    ],
)
def test_malformed_payload_rejected_without_raising(payload, metrics_store) -> None:
    """Test that malformed payloads are rejected, never raised."""
    assert not is_training_plan_usable(payload, 1, "Moderado", metrics=metrics_store)
    assert metrics_store.get_all_metrics()[0].reason == RejectionReason.WEEKLY_SCHEDULE_INVALIDO


def test_day_count_mismatch(full_body_plan) -> None:
    """Test that a 3-day plan requested as 4 days is rejected."""
    rejection = find_plan_rejection(full_body_plan, 4, "Moderado")
    assert rejection is not None
    assert rejection.reason == RejectionReason.NUMERO_DIAS_INCOMPATIVEL
    assert rejection.context == {"expected": 4, "received": 3}


def test_division_incompatible_day_type(full_body_plan) -> None:
    """Test that a Push day in a 3-day plan is rejected."""
    full_body_plan["weeklySchedule"][1]["type"] = "Push"
    rejection = find_plan_rejection(full_body_plan, 3, "Moderado")
    assert rejection.reason == RejectionReason.DIVISAO_INCOMPATIVEL_FREQUENCIA
    assert rejection.context["dayType"] == "push"


def test_division_missing_half_of_upper_lower(full_body_plan) -> None:
    """Test that 4 Upper days without a Lower day are rejected."""
    plan = copy.deepcopy(full_body_plan)
    plan["weeklySchedule"].append(copy.deepcopy(plan["weeklySchedule"][0]))
    for day in plan["weeklySchedule"]:
        day["type"] = "Upper"
    assert _reason(plan, 4, activity_level="Moderado") == RejectionReason.DIVISAO_INCOMPATIVEL_FREQUENCIA


def test_division_ppl_without_legs(ppl_plan) -> None:
    """Test that a 5-day plan without a lower day is rejected."""
    ppl_plan["weeklySchedule"][2]["type"] = "Push"
    assert _reason(ppl_plan, 5, activity_level="Moderado") == RejectionReason.DIVISAO_INCOMPATIVEL_FREQUENCIA


def test_same_type_days_must_match(full_body_plan) -> None:
    """Test that same-type days with different prescriptions are rejected."""
    full_body_plan["weeklySchedule"][1]["exercises"][0]["sets"] = 4
    rejection = find_plan_rejection(full_body_plan, 3, "Moderado")
    assert rejection.reason == RejectionReason.DIAS_MESMO_TIPO_EXERCICIOS_DIFERENTES
    assert rejection.context["exerciseIndex"] == 0


def test_same_type_full_body_exempt_for_elderly(full_body_plan) -> None:
    """Test that Full Body days may differ for users aged 60+."""
    full_body_plan["weeklySchedule"][1]["exercises"][0]["sets"] = 2
    assert find_plan_rejection(full_body_plan, 3, "Moderado", extra_context={"age": 65}) is None


# -----------------------------
# Profile rules
# -----------------------------
def test_shoulder_restriction(full_body_plan) -> None:
    """Test that shoulder work is rejected for users with a shoulder restriction."""
    rejection = find_plan_rejection(
        full_body_plan, 3, "Moderado", extra_context={"hasShoulderRestriction": True}
    )
    assert rejection.reason == RejectionReason.RESTRICAO_ARTICULAR_OMBRO
    assert rejection.context["exercise"] == "Desenvolvimento com halteres"


def test_shoulder_restriction_relaxes_required_ombros(full_body_plan) -> None:
    """Test that a Full Body day without ombros passes under a shoulder restriction."""
    _for_days(full_body_plan, "Full Body", lambda exercises: exercises.pop(4))
    assert find_plan_rejection(full_body_plan, 3, "Moderado", extra_context={"hasShoulderRestriction": True}) is None
    assert _reason(full_body_plan, 3, activity_level="Moderado") == RejectionReason.FULL_BODY_SEM_GRUPOS_OBRIGATORIOS


def test_knee_restriction(full_body_plan) -> None:
    """Test that knee-stress exercises are rejected for users with a knee restriction."""
    rejection = find_plan_rejection(full_body_plan, 3, "Moderado", extra_context={"hasKneeRestriction": True})
    assert rejection.reason == RejectionReason.RESTRICAO_ARTICULAR_JOELHO
    assert rejection.context["exercise"] == "Leg press"


def test_knee_restriction_relaxes_required_quadriceps(ppl_plan) -> None:
    """Test that a lower day without quadriceps passes under a knee restriction."""
    _for_days(ppl_plan, "Legs", lambda exercises: exercises.__delitem__(slice(0, 2)))
    assert find_plan_rejection(ppl_plan, 5, "Moderado", extra_context={"hasKneeRestriction": True}) is None


def test_elderly_high_risk_limit(full_body_plan, exercise_factory) -> None:
    """Test that more than one high-risk lift per week is rejected at 60+."""

    def _swap(exercises: list[dict]) -> None:
        exercises[3] = exercise_factory("Levantamento terra romeno", "posterior de coxa", ("gluteos",))

    _for_days(full_body_plan, "Full Body", _swap)
    rejection = find_plan_rejection(full_body_plan, 3, "Moderado", extra_context={"age": 65})
    assert rejection.reason == RejectionReason.EXCESSO_EXERCICIOS_ALTO_RISCO_IDOSO
    assert rejection.context["count"] == 3
    assert find_plan_rejection(full_body_plan, 3, "Moderado", extra_context={"age": 40}) is None


def test_aesthetic_bias(full_body_plan) -> None:
    """Test that gendered aesthetic copy is rejected."""
    full_body_plan["overview"] = "Treino feminino com foco em glúteos"
    assert _reason(full_body_plan, 3, activity_level="Moderado") == RejectionReason.VIES_ESTETICO_DETECTADO


# -----------------------------
# Day rules
# -----------------------------
def test_empty_day(full_body_plan) -> None:
    """Test that a day without exercises is rejected."""
    _for_days(full_body_plan, "Full Body", list.clear)
    assert _reason(full_body_plan, 3, activity_level="Moderado") == RejectionReason.DIA_SEM_EXERCICIOS


def test_iniciante_seven_exercises_records_one_metric(full_body_plan, exercise_factory, metrics_store) -> None:
    """Test that 7 exercises for an Iniciante records only excesso_exercicios_nivel, once."""
    _for_days(
        full_body_plan,
        "Full Body",
        lambda exercises: exercises.append(exercise_factory("Tríceps francês com halter", "triceps")),
    )

    assert not is_training_plan_usable(full_body_plan, 3, "Iniciante", metrics=metrics_store)

    metrics = metrics_store.get_all_metrics()
    assert len(metrics) == 1
    assert metrics[0].reason == RejectionReason.EXCESSO_EXERCICIOS_NIVEL
    assert metrics[0].context["activityLevel"] == "Iniciante"
    assert metrics[0].context["dayType"] == "full"
    assert metrics_store.get_statistics()["byReason"] == {"excesso_exercicios_nivel": 1}

    # Same plan fits the Moderado ceiling
    assert is_training_plan_usable(full_body_plan, 3, "Moderado", metrics=metrics_store)
    assert len(metrics_store.get_all_metrics()) == 1


def test_missing_primary_muscle(full_body_plan) -> None:
    """Test that an exercise without primaryMuscle is rejected."""
    _for_days(full_body_plan, "Full Body", lambda exercises: exercises[0].update(primaryMuscle=""))
    assert _reason(full_body_plan, 3, activity_level="Moderado") == RejectionReason.EXERCICIO_SEM_PRIMARY_MUSCLE


def test_forbidden_group_on_push_day(ppl_plan, exercise_factory) -> None:
    """Test that biceps on a push day is rejected."""
    _for_days(
        ppl_plan, "Push", lambda exercises: exercises.append(exercise_factory("Rosca direta com barra", "biceps"))
    )
    rejection = find_plan_rejection(ppl_plan, 5, "Moderado")
    assert rejection.reason == RejectionReason.GRUPO_MUSCULAR_PROIBIDO
    assert rejection.context["muscle"] == "biceps"


def test_group_outside_full_body_allow_list(full_body_plan, exercise_factory) -> None:
    """Test that trapezio is not accepted on a Full Body day."""
    _for_days(
        full_body_plan,
        "Full Body",
        lambda exercises: exercises.append(exercise_factory("Encolhimento com halteres", "trapezio")),
    )
    assert _reason(full_body_plan, 3, activity_level="Moderado") == RejectionReason.GRUPO_MUSCULAR_PROIBIDO


def test_lower_without_required_groups(ppl_plan) -> None:
    """Test that a lower day without posterior chain work is rejected."""
    _for_days(ppl_plan, "Legs", lambda exercises: exercises.__delitem__(slice(2, 4)))
    assert _reason(ppl_plan, 5, activity_level="Moderado") == RejectionReason.LOWER_SEM_GRUPOS_OBRIGATORIOS


def test_required_group_missing_on_push_day(ppl_plan) -> None:
    """Test that a push day without triceps is rejected."""
    _for_days(ppl_plan, "Push", lambda exercises: exercises.pop(4))
    rejection = find_plan_rejection(ppl_plan, 5, "Moderado")
    assert rejection.reason == RejectionReason.GRUPO_OBRIGATORIO_AUSENTE
    assert rejection.context["missing"] == "triceps"


def test_name_muscle_mismatch(full_body_plan, exercise_factory) -> None:
    """Test that a calf raise labelled as ombros is rejected."""

    def _swap(exercises: list[dict]) -> None:
        exercises[4] = exercise_factory("Elevação de panturrilha em pé", "ombros")

    _for_days(full_body_plan, "Full Body", _swap)
    assert _reason(full_body_plan, 3, activity_level="Moderado") == RejectionReason.EXERCICIO_MUSCULO_INCOMPATIVEL


def test_invalid_order(full_body_plan) -> None:
    """Test that an arm exercise before the big groups is rejected."""
    _for_days(full_body_plan, "Full Body", lambda exercises: exercises.insert(0, exercises.pop()))
    assert _reason(full_body_plan, 3, activity_level="Moderado") == RejectionReason.ORDEM_EXERCICIOS_INVALIDA


def test_too_many_exercises_for_one_muscle(ppl_plan, exercise_factory) -> None:
    """Test that 6 chest exercises exceed the Moderado per-muscle ceiling."""
    chest = [
        "Supino reto com barra",
        "Supino inclinado com halteres",
        "Supino com halteres",
        "Supino inclinado na máquina",
        "Flexão de braços",
        "Crucifixo com halteres",
    ]

    def _chest_heavy(exercises: list[dict]) -> None:
        exercises[:] = [exercise_factory(name, "peitoral") for name in chest] + [
            exercise_factory("Desenvolvimento com halteres", "ombros"),
            exercise_factory("Tríceps na polia alta", "triceps"),
        ]

    _for_days(ppl_plan, "Push", _chest_heavy)
    rejection = find_plan_rejection(ppl_plan, 5, "Moderado")
    assert rejection.reason == RejectionReason.EXCESSO_EXERCICIOS_MUSCULO_PRIMARIO
    assert rejection.context == {"day": "Treino A", "dayType": "push", "muscle": "peitoral", "count": 6, "max": 5}


def test_push_day_with_forty_percent_triceps(ppl_plan, exercise_factory, metrics_store) -> None:
    """Test that a PPL push day with 40% triceps is rejected for smart distribution."""

    def _triceps_heavy(exercises: list[dict]) -> None:
        exercises[:] = [
            exercise_factory("Supino reto com barra", "peitoral"),
            exercise_factory("Supino inclinado com halteres", "peitoral"),
            exercise_factory("Supino com halteres", "peitoral"),
            exercise_factory("Crucifixo com halteres", "peitoral"),
            exercise_factory("Desenvolvimento com halteres", "ombros"),
            exercise_factory("Elevação lateral com halteres", "ombros"),
            exercise_factory("Mergulho entre bancos", "triceps"),
            exercise_factory("Tríceps na polia alta", "triceps"),
            exercise_factory("Tríceps francês com halter", "triceps"),
            exercise_factory("Tríceps coice com halteres", "triceps"),
        ]

    _for_days(ppl_plan, "Push", _triceps_heavy)

    assert not is_training_plan_usable(ppl_plan, 5, "Atleta", metrics=metrics_store)

    metrics = metrics_store.get_all_metrics()
    assert [metric.reason for metric in metrics] == ["distribuicao_inteligente_invalida"]
    assert metrics[0].context["muscle"] == "triceps"
    assert metrics[0].context["count"] == 4
    assert metrics[0].context["max"] == 3


def test_pull_day_with_too_much_biceps(ppl_plan, exercise_factory) -> None:
    """Test that 3 of 5 pull exercises on biceps is rejected."""

    def _biceps_heavy(exercises: list[dict]) -> None:
        exercises[:] = [
            exercise_factory("Puxada na barra fixa", "costas"),
            exercise_factory("Remada curvada com barra", "costas"),
            exercise_factory("Rosca direta com barra", "biceps"),
            exercise_factory("Rosca alternada com halteres", "biceps"),
            exercise_factory("Rosca martelo com halteres", "biceps"),
        ]

    _for_days(ppl_plan, "Pull", _biceps_heavy)
    assert _reason(ppl_plan, 5, activity_level="Moderado") == RejectionReason.DISTRIBUICAO_INTELIGENTE_INVALIDA


def test_lower_day_concentrated_on_one_muscle(ppl_plan, exercise_factory) -> None:
    """Test that 4 of 6 lower exercises on quadriceps is rejected."""

    def _quad_heavy(exercises: list[dict]) -> None:
        exercises[:] = [
            exercise_factory("Agachamento com barra", "quadriceps"),
            exercise_factory("Leg press", "quadriceps"),
            exercise_factory("Agachamento goblet com halter", "quadriceps"),
            exercise_factory("Afundo com halteres", "quadriceps"),
            exercise_factory("Stiff com halteres", "posterior de coxa"),
            exercise_factory("Elevação pélvica com halter", "gluteos"),
        ]

    _for_days(ppl_plan, "Legs", _quad_heavy)
    rejection = find_plan_rejection(ppl_plan, 5, "Moderado")
    assert rejection.reason == RejectionReason.DISTRIBUICAO_INTELIGENTE_INVALIDA
    assert rejection.context["muscle"] == "quadriceps"


def test_too_many_secondary_muscles(full_body_plan) -> None:
    """Test that more than 2 secondary muscles is rejected."""
    _for_days(
        full_body_plan,
        "Full Body",
        lambda exercises: exercises[0].update(secondaryMuscles=["triceps", "ombros", "costas"]),
    )
    assert _reason(full_body_plan, 3, activity_level="Moderado") == RejectionReason.SECONDARY_MUSCLES_EXCEDE_LIMITE


def test_time_exceeds_available(full_body_plan) -> None:
    """Test that a 36-minute day does not fit in 30 minutes."""
    rejection = find_plan_rejection(full_body_plan, 3, "Moderado", 30)
    assert rejection.reason == RejectionReason.TEMPO_TREINO_EXCEDE_DISPONIVEL
    assert rejection.context["estimatedMinutes"] == 36.0
    assert find_plan_rejection(full_body_plan, 3, "Moderado", 40) is None


# -----------------------------
# Level ceiling helper
# -----------------------------
@pytest.mark.parametrize(
    ("count", "level", "expected"),
    [
        (6, "Iniciante", True),
        (7, "Iniciante", False),
        (5, "Idoso", True),
        (6, "Idoso", False),
        (12, "Atleta Alto Rendimento", True),
        (8, "nível desconhecido", True),
        (9, None, False),
    ],
)
def test_validate_exercises_count_by_level(count: int, level: str | None, expected: bool) -> None:
    """Test per-level exercise ceilings with the default for unknown levels."""
    assert validate_exercises_count_by_level(count, level) is expected
