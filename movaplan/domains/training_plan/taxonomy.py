"""Muscle taxonomy and normalizer.

Pure string/set functions shared by the generator and the validator:
- Accent/case folding and synonym mapping for muscles and division tags
- Big/small muscle classification and size weights
- Per-day-type allow-lists, forbidden groups, required groups and
  expected exercise order
- Name-pattern rules for exercises that did not come from the corpus
  (LLM-authored plans carry names only, no tags)

No side effects. Every table is keyed by DayType; unknown day types are
handled explicitly by the callers (no rule applies).
"""

import unicodedata

from movaplan.domains.training_plan.enums import DayType, RiskLevel

# -----------------------------
# Canonical muscle names
# -----------------------------
PEITORAL = "peitoral"
COSTAS = "costas"
QUADRICEPS = "quadriceps"
POSTERIOR = "posterior de coxa"
GLUTEOS = "gluteos"
OMBROS = "ombros"
TRAPEZIO = "trapezio"
BICEPS = "biceps"
TRICEPS = "triceps"
PANTURRILHAS = "panturrilhas"
ABDOMEN = "abdomen"
ANTEBRACO = "antebraco"

_MUSCLE_SYNONYMS: dict[str, str] = {
    "peito": PEITORAL,
    "peitorais": PEITORAL,
    "dorsal": COSTAS,
    "dorsais": COSTAS,
    "isquiotibiais": POSTERIOR,
    "posterior": POSTERIOR,
    "posteriores de coxa": POSTERIOR,
    "gluteo": GLUTEOS,
    "panturrilha": PANTURRILHAS,
    "ombro": OMBROS,
    "deltoide": OMBROS,
    "deltoides": OMBROS,
    "deltoide posterior": OMBROS,
    "abdominal": ABDOMEN,
    "abdominais": ABDOMEN,
    "core": ABDOMEN,
    "antebracos": ANTEBRACO,
}

BIG_MUSCLES = frozenset({PEITORAL, COSTAS, QUADRICEPS, POSTERIOR, GLUTEOS, OMBROS})
SMALL_MUSCLES = frozenset({BICEPS, TRICEPS, PANTURRILHAS, ABDOMEN})
LEG_MUSCLES = frozenset({QUADRICEPS, POSTERIOR, GLUTEOS, PANTURRILHAS})

# Ordering priority inside a day (higher first)
SIZE_WEIGHT: dict[str, int] = {
    QUADRICEPS: 5,
    POSTERIOR: 5,
    GLUTEOS: 5,
    COSTAS: 4,
    PEITORAL: 4,
    OMBROS: 3,
    TRAPEZIO: 3,
    TRICEPS: 2,
    BICEPS: 2,
    ABDOMEN: 1,
    PANTURRILHAS: 1,
    ANTEBRACO: 1,
}

# -----------------------------
# Division tables
# -----------------------------
ALLOWED_MUSCLES: dict[DayType, frozenset[str]] = {
    DayType.PUSH: frozenset({PEITORAL, TRICEPS, OMBROS}),
    DayType.PULL: frozenset({COSTAS, BICEPS, TRAPEZIO, OMBROS}),
    DayType.LOWER: frozenset({QUADRICEPS, POSTERIOR, GLUTEOS, PANTURRILHAS, ABDOMEN}),
    DayType.UPPER: frozenset({PEITORAL, TRICEPS, OMBROS, COSTAS, BICEPS}),
    DayType.FULL: frozenset(
        {PEITORAL, COSTAS, QUADRICEPS, POSTERIOR, GLUTEOS, OMBROS, BICEPS, TRICEPS, ABDOMEN}
    ),
    DayType.SHOULDERS_ARMS: frozenset({OMBROS, BICEPS, TRICEPS}),
}

FORBIDDEN_MUSCLES: dict[DayType, frozenset[str]] = {
    DayType.LOWER: frozenset({PEITORAL, COSTAS, BICEPS, TRICEPS}),
    DayType.PUSH: frozenset({COSTAS, BICEPS}),
    DayType.PULL: frozenset({PEITORAL, TRICEPS}),
    DayType.UPPER: LEG_MUSCLES,
    DayType.SHOULDERS_ARMS: frozenset({COSTAS}),
}

REQUIRED_MUSCLES: dict[DayType, tuple[str, ...]] = {
    DayType.PUSH: (PEITORAL, OMBROS, TRICEPS),
    DayType.PULL: (COSTAS, BICEPS),
    DayType.LOWER: (QUADRICEPS, POSTERIOR),
    DayType.UPPER: (PEITORAL, COSTAS, OMBROS),
    DayType.FULL: (PEITORAL, COSTAS),
}

# Logical group sequence per day type; big groups precede small ones
EXPECTED_ORDER: dict[DayType, tuple[frozenset[str], ...]] = {
    DayType.PUSH: (frozenset({PEITORAL}), frozenset({OMBROS}), frozenset({TRICEPS})),
    DayType.PULL: (frozenset({COSTAS}), frozenset({TRAPEZIO, OMBROS}), frozenset({BICEPS})),
    DayType.LOWER: (
        frozenset({QUADRICEPS}),
        frozenset({POSTERIOR}),
        frozenset({GLUTEOS, PANTURRILHAS}),
    ),
    DayType.UPPER: (
        frozenset({PEITORAL, COSTAS}),
        frozenset({OMBROS, TRAPEZIO}),
        frozenset({BICEPS, TRICEPS}),
    ),
    DayType.FULL: (
        frozenset({PEITORAL, COSTAS}),
        frozenset({QUADRICEPS, POSTERIOR, GLUTEOS}),
        frozenset({OMBROS}),
        frozenset({BICEPS, TRICEPS}),
    ),
    DayType.SHOULDERS_ARMS: (frozenset({OMBROS}), frozenset({BICEPS, TRICEPS})),
}

# Division tags accepted for each weekly frequency
EXPECTED_DAY_TYPES_BY_FREQUENCY: dict[int, frozenset[DayType]] = {
    2: frozenset({DayType.FULL}),
    3: frozenset({DayType.FULL}),
    4: frozenset({DayType.UPPER, DayType.LOWER}),
    5: frozenset({DayType.PUSH, DayType.PULL, DayType.LOWER}),
    6: frozenset({DayType.PUSH, DayType.PULL, DayType.LOWER}),
    7: frozenset({DayType.PUSH, DayType.PULL, DayType.LOWER}),
}

_DIVISION_SYNONYMS: dict[str, str] = {
    "legs": "lower",
    "pernas": "lower",
    "inferiores": "lower",
    "superiores": "upper",
    "full body": "full",
    "fullbody": "full",
    "full-body": "full",
    "corpo inteiro": "full",
    "shoulders & arms": "shouldersarms",
    "shoulders/arms": "shouldersarms",
    "ombros e bracos": "shouldersarms",
}

# -----------------------------
# Name patterns (untagged exercises)
# -----------------------------
SHOULDER_STRESS_PATTERNS = ("desenvolvimento", "elevacao lateral", "elevacao frontal")
KNEE_STRESS_PATTERNS = ("agachamento", "leg press", "cadeira extensora", "afundo")
HIGH_RISK_PATTERNS = ("deadlift", "terra", "clean", "snatch", "arranco")
COMPOUND_PATTERNS = (
    "supino",
    "agachamento",
    "squat",
    "leg press",
    "terra",
    "deadlift",
    "stiff",
    "remada",
    "row",
    "puxada",
    "pulldown",
    "barra fixa",
    "desenvolvimento",
    "press",
    "afundo",
    "flexao de bracos",
    "mergulho",
    "good morning",
)

# (exercise name patterns, primary muscles that can never go with them)
_NAME_MUSCLE_MISMATCHES: tuple[tuple[tuple[str, ...], frozenset[str]], ...] = (
    (("panturrilha",), frozenset({OMBROS, PEITORAL, COSTAS, BICEPS, TRICEPS})),
    (("remada",), frozenset({OMBROS})),
    (
        (
            "agachamento",
            "leg press",
            "cadeira extensora",
            "flexao de pernas",
            "flexao de joelhos",
        ),
        frozenset({OMBROS, BICEPS, TRICEPS, PEITORAL, COSTAS}),
    ),
    (
        ("supino", "desenvolvimento", "elevacao lateral", "crucifixo"),
        frozenset({QUADRICEPS, POSTERIOR, GLUTEOS, PANTURRILHAS}),
    ),
)


def normalize(value: str | None) -> str:
    """Lower-case, strip diacritics and surrounding whitespace."""
    if not value:
        return ""
    decomposed = unicodedata.normalize("NFD", str(value).lower())
    stripped = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    return stripped.strip()


def normalize_division_name(value: str | None) -> str:
    """Normalize a division tag, folding synonyms ("Legs" -> "lower")."""
    normalized = normalize(value)
    return _DIVISION_SYNONYMS.get(normalized, normalized)


def day_type_of(value: str | None) -> DayType | None:
    """Map a free-text day tag to a DayType, or None when it is not recognized."""
    try:
        return DayType(normalize_division_name(value))
    except ValueError:
        return None


def canonical_muscle(value: str | None) -> str:
    """Normalize a muscle name and fold synonyms to the canonical group."""
    normalized = normalize(value)
    return _MUSCLE_SYNONYMS.get(normalized, normalized)


def is_big(muscle: str | None) -> bool:
    return canonical_muscle(muscle) in BIG_MUSCLES


def is_small(muscle: str | None) -> bool:
    return canonical_muscle(muscle) in SMALL_MUSCLES


def is_leg_muscle(muscle: str | None) -> bool:
    return canonical_muscle(muscle) in LEG_MUSCLES


def size_weight(muscle: str | None) -> int:
    """Ordering weight of a muscle group (unknown groups sort last)."""
    return SIZE_WEIGHT.get(canonical_muscle(muscle), 0)


def order_rank(day_type: DayType | None, muscle: str | None) -> int:
    """Position of a muscle in the expected order of a day type.

    Muscles outside the order table rank after every listed group.
    """
    groups = EXPECTED_ORDER.get(day_type, ()) if day_type else ()
    canonical = canonical_muscle(muscle)
    for index, group in enumerate(groups):
        if canonical in group:
            return index
    return len(groups)


def required_muscles(
    day_type: DayType,
    *,
    shoulder_restriction: bool = False,
    knee_restriction: bool = False,
) -> tuple[str, ...]:
    """Required primary groups of a day type, relaxed by joint restrictions."""
    required = REQUIRED_MUSCLES.get(day_type, ())
    if shoulder_restriction:
        required = tuple(m for m in required if m != OMBROS)
    if knee_restriction:
        required = tuple(m for m in required if m != QUADRICEPS)
    return required


def _name_matches(name: str | None, patterns: tuple[str, ...]) -> bool:
    normalized = normalize(name)
    return any(pattern in normalized for pattern in patterns)


def is_shoulder_stress_name(name: str | None) -> bool:
    return _name_matches(name, SHOULDER_STRESS_PATTERNS)


def is_knee_stress_name(name: str | None) -> bool:
    return _name_matches(name, KNEE_STRESS_PATTERNS)


def is_compound_name(name: str | None) -> bool:
    return _name_matches(name, COMPOUND_PATTERNS)


def risk_level_for_name(name: str | None) -> RiskLevel:
    """Structural risk of a lift inferred from its name.

    - high: Olympic lifts and deadlift variations
    - moderate: barbell squats and barbell presses
    - low: everything else (isolation, machines, bodyweight)
    """
    normalized = normalize(name)
    if any(pattern in normalized for pattern in HIGH_RISK_PATTERNS):
        return RiskLevel.HIGH
    if ("agachamento" in normalized and "barra" in normalized) or (
        "desenvolvimento" in normalized and "barra" in normalized
    ):
        return RiskLevel.MODERATE
    return RiskLevel.LOW


def name_matches_primary_muscle(name: str | None, primary_muscle: str | None) -> bool:
    """Return False for known-wrong name/muscle pairings (e.g., calf raise as ombros).

    "Flexão de braços" (push-up) is a valid chest exercise and is not
    caught by the leg-flexion patterns.
    """
    normalized_name = normalize(name)
    primary = canonical_muscle(primary_muscle)
    for patterns, invalid_muscles in _NAME_MUSCLE_MISMATCHES:
        if primary in invalid_muscles and any(p in normalized_name for p in patterns):
            return False
    return True
