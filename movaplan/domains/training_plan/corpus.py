"""Exercise corpus loader and filters.

The corpus is a static YAML catalog (data/exercise_corpus.yaml) keyed by
canonical primary muscle. Each entry carries first-class tags for
equipment, compound pattern, structural risk and joint stress.

Name-pattern rules from the taxonomy are folded into the tags at load
time, so a corpus exercise is excluded whenever the validator would
flag its name.
"""

from dataclasses import dataclass
from pathlib import Path

import yaml
from loguru import logger

from movaplan.domains.training_plan import taxonomy
from movaplan.domains.training_plan.constants import ELDERLY_AGE_THRESHOLD
from movaplan.domains.training_plan.enums import Environment, Equipment, RiskLevel
from movaplan.domains.training_plan.models import Exercise

CORPUS_PATH = Path(__file__).parent / "data" / "exercise_corpus.yaml"

# Equipment unavailable outside a gym
HOME_EXCLUDED_EQUIPMENT = frozenset({Equipment.MAQUINA, Equipment.POLIA})

_RISK_ORDER = {RiskLevel.LOW: 0, RiskLevel.MODERATE: 1, RiskLevel.HIGH: 2}


@dataclass(frozen=True)
class CorpusExercise:
    """Tagged corpus entry."""

    name: str
    primary_muscle: str
    secondary_muscles: tuple[str, ...]
    equipment: frozenset[Equipment]
    compound: bool
    risk: RiskLevel
    shoulder_stress: bool
    knee_stress: bool
    reps: str
    rest: str
    notes: str | None = None

    def to_exercise(self, sets: int, reps: str | None = None) -> Exercise:
        return Exercise(
            name=self.name,
            primary_muscle=self.primary_muscle,
            secondary_muscles=self.secondary_muscles,
            sets=sets,
            reps=reps or self.reps,
            rest=self.rest,
            notes=self.notes,
        )


@dataclass(frozen=True)
class ExerciseFilter:
    """Exclusion criteria applied to corpus entries.

    Attributes:
        environment: Training environment (None means no equipment restriction)
        shoulder_restriction: Drop shoulder-stress exercises and ombros as primary
        knee_restriction: Drop knee-stress exercises
        age: User age; at ELDERLY_AGE_THRESHOLD or above only low-risk lifts remain
    """

    environment: Environment | None = None
    shoulder_restriction: bool = False
    knee_restriction: bool = False
    age: int | None = None

    def allows(self, exercise: CorpusExercise) -> bool:
        if self.environment in (Environment.CASA, Environment.AR_LIVRE):
            if exercise.equipment & HOME_EXCLUDED_EQUIPMENT:
                return False
        if self.shoulder_restriction and (
            exercise.shoulder_stress or exercise.primary_muscle == taxonomy.OMBROS
        ):
            return False
        if self.knee_restriction and exercise.knee_stress:
            return False
        if self.age is not None and self.age >= ELDERLY_AGE_THRESHOLD:
            if _RISK_ORDER[exercise.risk] > _RISK_ORDER[RiskLevel.LOW]:
                return False
        return True


class ExerciseCorpus:
    """Read-only catalog of tagged exercises grouped by primary muscle."""

    def __init__(self, entries: list[CorpusExercise]):
        self._entries = tuple(entries)
        self._by_muscle: dict[str, tuple[CorpusExercise, ...]] = {}
        for entry in self._entries:
            self._by_muscle[entry.primary_muscle] = (*self._by_muscle.get(entry.primary_muscle, ()), entry)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def entries(self) -> tuple[CorpusExercise, ...]:
        return self._entries

    def muscles(self) -> list[str]:
        return list(self._by_muscle)

    def candidates(self, muscle: str, exercise_filter: ExerciseFilter | None = None) -> list[CorpusExercise]:
        """Exercises for a muscle that pass the filter, compound first, corpus order otherwise."""
        entries = self._by_muscle.get(taxonomy.canonical_muscle(muscle), ())
        if exercise_filter is not None:
            entries = tuple(entry for entry in entries if exercise_filter.allows(entry))
        return sorted(entries, key=lambda entry: not entry.compound)


def parse_corpus(data: object, source: str = "<memory>") -> ExerciseCorpus:
    """Build an ExerciseCorpus from parsed YAML.

    Args:
        data: Mapping of primary muscle to list of entries
        source: Label used in error messages

    Returns:
        ExerciseCorpus instance

    Raises:
        TypeError: If the top-level structure is not a mapping of lists
        ValueError: If an entry is missing its name or has an unknown tag value
    """
    if not isinstance(data, dict):
        raise TypeError(f"Invalid corpus format in {source}: expected dict")

    entries: list[CorpusExercise] = []
    for raw_muscle, raw_entries in data.items():
        muscle = taxonomy.canonical_muscle(raw_muscle)
        if not isinstance(raw_entries, list):
            raise TypeError(f"Invalid entries for '{raw_muscle}' in {source}: expected list")

        for raw in raw_entries:
            if not isinstance(raw, dict) or not raw.get("name"):
                raise ValueError(f"Corpus entry without name under '{raw_muscle}' in {source}")
            name = str(raw["name"])
            try:
                equipment = frozenset(Equipment(item) for item in raw.get("equipment", []))
                risk = RiskLevel(raw.get("risk", RiskLevel.LOW.value))
            except ValueError as e:
                raise ValueError(f"Invalid tag on '{name}' in {source}: {e}") from e

            # Name patterns can only widen the tags
            name_risk = taxonomy.risk_level_for_name(name)
            if _RISK_ORDER[name_risk] > _RISK_ORDER[risk]:
                risk = name_risk

            entries.append(
                CorpusExercise(
                    name=name,
                    primary_muscle=muscle,
                    secondary_muscles=tuple(taxonomy.canonical_muscle(m) for m in raw.get("secondary", [])),
                    equipment=equipment,
                    compound=bool(raw.get("compound", False)) or taxonomy.is_compound_name(name),
                    risk=risk,
                    shoulder_stress=bool(raw.get("shoulder_stress", False))
                    or taxonomy.is_shoulder_stress_name(name),
                    knee_stress=bool(raw.get("knee_stress", False)) or taxonomy.is_knee_stress_name(name),
                    reps=str(raw.get("reps", "8-12")),
                    rest=str(raw.get("rest", "60s")),
                    notes=raw.get("notes"),
                )
            )

    return ExerciseCorpus(entries)


def load_corpus(path: Path = CORPUS_PATH) -> ExerciseCorpus:
    """Load the exercise corpus from a YAML file.

    Raises:
        FileNotFoundError: If the corpus file doesn't exist
    """
    if not path.exists():
        raise FileNotFoundError(f"Exercise corpus not found: {path}")

    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)

    corpus = parse_corpus(data, source=str(path))
    logger.debug(f"Loaded {len(corpus)} exercises from {path.name}")
    return corpus


_default_corpus: ExerciseCorpus | None = None


def get_default_corpus() -> ExerciseCorpus:
    """Return the packaged corpus, loading it on first use."""
    global _default_corpus
    if _default_corpus is None:
        _default_corpus = load_corpus()
    return _default_corpus
