"""Root conftest for all tests.

This file makes shared fixtures available across all test modules.
"""

import pytest
from fastapi.testclient import TestClient

from movaplan.metrics.plan_rejections import PlanRejectionMetrics, set_plan_rejection_metrics


@pytest.fixture(autouse=True)
def default_metrics_store():
    """Replace the process-wide rejection store with a fresh in-memory one.

    Keeps validator calls without an explicit store from leaking metrics
    between tests or touching the database.
    """
    store = PlanRejectionMetrics()
    set_plan_rejection_metrics(store)
    yield store
    set_plan_rejection_metrics(None)


@pytest.fixture
def metrics_store() -> PlanRejectionMetrics:
    """Isolated rejection metrics store."""
    return PlanRejectionMetrics()


@pytest.fixture
def client(metrics_store):
    """Test client with the metrics dependency bound to metrics_store."""
    from movaplan.api.dependencies.metrics import get_metrics_store
    from movaplan.main import app

    app.dependency_overrides[get_metrics_store] = lambda: metrics_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# -----------------------------
# Plan payloads
# -----------------------------
def make_exercise(
    name: str,
    primary_muscle: str,
    secondary: tuple[str, ...] = (),
    sets: int = 3,
    reps: str = "8-12",
    rest: str = "90s",
) -> dict:
    return {
        "name": name,
        "primaryMuscle": primary_muscle,
        "secondaryMuscles": list(secondary),
        "sets": sets,
        "reps": reps,
        "rest": rest,
    }


def _full_body_exercises() -> list[dict]:
    return [
        make_exercise("Supino reto com barra", "peitoral", ("triceps", "ombros")),
        make_exercise("Remada curvada com barra", "costas", ("biceps",)),
        make_exercise("Leg press", "quadriceps", ("gluteos",)),
        make_exercise("Stiff com halteres", "posterior de coxa", ("gluteos",)),
        make_exercise("Desenvolvimento com halteres", "ombros", ("triceps",)),
        make_exercise("Rosca direta com barra", "biceps"),
    ]


def _push_exercises() -> list[dict]:
    return [
        make_exercise("Supino reto com barra", "peitoral", ("triceps", "ombros")),
        make_exercise("Supino inclinado com halteres", "peitoral", ("triceps",)),
        make_exercise("Desenvolvimento com halteres", "ombros", ("triceps",)),
        make_exercise("Elevação lateral com halteres", "ombros"),
        make_exercise("Tríceps na polia alta", "triceps"),
    ]


def _pull_exercises() -> list[dict]:
    return [
        make_exercise("Puxada na barra fixa", "costas", ("biceps",)),
        make_exercise("Remada curvada com barra", "costas", ("biceps",)),
        make_exercise("Remada unilateral com halteres", "costas", ("biceps",)),
        make_exercise("Encolhimento com halteres", "trapezio"),
        make_exercise("Rosca direta com barra", "biceps"),
    ]


def _legs_exercises() -> list[dict]:
    return [
        make_exercise("Agachamento com barra", "quadriceps", ("gluteos",)),
        make_exercise("Leg press", "quadriceps", ("gluteos",)),
        make_exercise("Stiff com halteres", "posterior de coxa", ("gluteos",)),
        make_exercise("Mesa flexora", "posterior de coxa"),
        make_exercise("Elevação pélvica com halter", "gluteos", ("posterior de coxa",)),
        make_exercise("Elevação de panturrilha em pé", "panturrilhas"),
    ]


_PPL_BUILDERS = {"Push": _push_exercises, "Pull": _pull_exercises, "Legs": _legs_exercises}


@pytest.fixture
def full_body_plan() -> dict:
    """Valid 3-day Full Body plan (Moderado, 36 min per day)."""
    return {
        "overview": "Plano Full Body 3x por semana",
        "weeklySchedule": [
            {"day": f"Dia {index + 1}", "type": "Full Body", "exercises": _full_body_exercises()}
            for index in range(3)
        ],
        "progression": "Aumentar a carga gradualmente",
    }


@pytest.fixture
def ppl_plan() -> dict:
    """Valid 5-day PPL plan (Push, Pull, Legs, Push, Pull)."""
    cycle = ["Push", "Pull", "Legs", "Push", "Pull"]
    return {
        "overview": "Plano PPL 5x por semana",
        "weeklySchedule": [
            {"day": f"Treino {chr(ord('A') + index)}", "type": day_type, "exercises": _PPL_BUILDERS[day_type]()}
            for index, day_type in enumerate(cycle)
        ],
        "progression": "Aumentar a carga gradualmente",
    }


@pytest.fixture
def exercise_factory():
    """Builder for exercise payload dicts."""
    return make_exercise
