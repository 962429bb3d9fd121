"""Training plan constants - single source of truth.

Generator and validator both import from here. A number that appears in
both must never be duplicated in either module.
"""

# Duration estimate: sets x (rest + execution)
EXECUTION_SECONDS_PER_SET = 30
DEFAULT_REST_SECONDS = 60
MIN_REST_SECONDS = 45

# A time-trimmed day never goes below this many exercises
MIN_VIABLE_DAY_EXERCISES = 3

# Deficit / recomposition
DEFICIT_BMI_THRESHOLD = 25.0
OVERWEIGHT_BMI_UPPER = 30.0
DEFICIT_VOLUME_MULTIPLIER = 0.7
WEIGHT_LOSS_KEYWORDS = ("emagrec", "perder", "queima", "perda")
MASS_GAIN_KEYWORDS = ("ganhar", "massa")
STRENGTH_KEYWORDS = ("forca",)
REP_ADJUSTMENT_CAP = 0.3

# Age
ELDERLY_AGE_THRESHOLD = 60
MAX_WEEKLY_HIGH_RISK_FOR_ELDERLY = 1

# Smart distribution ratios
PUSH_MAX_TRICEPS_RATIO = 0.3
PULL_MAX_BICEPS_RATIO = 0.3
LOWER_MAX_SINGLE_MUSCLE_RATIO = 0.5

MAX_SECONDARY_MUSCLES = 2

# Operational level downgrade by available time (minutes)
MIN_MINUTES_ATHLETE = 75
MIN_MINUTES_ADVANCED = 60
MIN_MINUTES_INTERMEDIATE = 45

# Free-text terms that signal aesthetic bias in plan copy
AESTHETIC_BIAS_TERMS = (
    "foco em gluteos",
    "treino feminino",
    "obrigatorio para mulher",
)

DEFAULT_PROGRESSION = (
    "Aumentar a carga em 2-5% quando conseguir realizar o topo da faixa de repetições "
    "em todas as séries. Após 4-6 semanas, considerar aumentar o número de séries dos "
    "exercícios principais, se a recuperação permitir."
)
