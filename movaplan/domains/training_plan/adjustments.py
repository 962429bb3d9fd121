"""Body-composition adjustments: deficit detection and rep ranges.

BMI never changes strength work; it only shifts volume (deficit mode)
and, for overweight users with weight-loss or recomposition goals,
nudges rep ranges by at most 30% of the original range width.
"""

import math
import re

from movaplan.domains.training_plan import taxonomy
from movaplan.domains.training_plan.constants import (
    DEFICIT_BMI_THRESHOLD,
    MASS_GAIN_KEYWORDS,
    OVERWEIGHT_BMI_UPPER,
    REP_ADJUSTMENT_CAP,
    STRENGTH_KEYWORDS,
    WEIGHT_LOSS_KEYWORDS,
)

_REP_RANGE = re.compile(r"(\d+)\s*-\s*(\d+)")

# Obesity class I upper bound for rep adjustment
_OBESITY_I_UPPER = 35.0


def _mentions(objective: str | None, keywords: tuple[str, ...]) -> bool:
    normalized = taxonomy.normalize(objective)
    return any(keyword in normalized for keyword in keywords)


def is_weight_loss_objective(objective: str | None) -> bool:
    return _mentions(objective, WEIGHT_LOSS_KEYWORDS)


def is_mass_gain_objective(objective: str | None) -> bool:
    return _mentions(objective, MASS_GAIN_KEYWORDS)


def is_deficit_mode(imc: float | None, objective: str | None) -> bool:
    """Caloric deficit or recomposition context.

    - Any weight-loss objective
    - BMI >= DEFICIT_BMI_THRESHOLD with a mass-gain objective (recomposition)
    """
    if is_weight_loss_objective(objective):
        return True
    return imc is not None and imc >= DEFICIT_BMI_THRESHOLD and is_mass_gain_objective(objective)


def adjust_reps(base_reps: str, imc: float | None, objective: str | None) -> str:
    """Shift a rep range for overweight users, capped at REP_ADJUSTMENT_CAP of the range.

    Args:
        base_reps: Rep range from the corpus (e.g., "6-10")
        imc: Body mass index
        objective: Free-text objective

    Returns:
        Adjusted rep range, or base_reps when no rule applies
    """
    if imc is None or not objective or _mentions(objective, STRENGTH_KEYWORDS):
        return base_reps

    match = _REP_RANGE.search(base_reps)
    if not match:
        return base_reps

    base_min, base_max = int(match.group(1)), int(match.group(2))
    max_step = math.ceil((base_max - base_min) * REP_ADJUSTMENT_CAP)
    new_min, new_max = base_min, base_max

    if DEFICIT_BMI_THRESHOLD <= imc < _OBESITY_I_UPPER and is_weight_loss_objective(objective):
        new_min = base_min + min(max_step, max(0, 10 - base_min))
        new_max = base_max + min(max_step, max(0, 15 - base_max))
    elif DEFICIT_BMI_THRESHOLD <= imc < OVERWEIGHT_BMI_UPPER and is_mass_gain_objective(objective):
        if base_max <= 8:
            new_max = base_max + min(max_step, max(0, 12 - base_max))

    if (new_min, new_max) == (base_min, base_max):
        return base_reps
    return f"{new_min}-{new_max}"
