"""Canonical enums for training plan dimensions.

All enums are string-based to keep JSON serialization trivial and to
match the values stored with rejection metrics.
"""

from enum import StrEnum


# -----------------------------
# Activity Level
# -----------------------------
class ActivityLevel(StrEnum):
    """Normalized activity level keys (accent-free, snake_case)."""

    IDOSO = "idoso"
    LIMITADO = "limitado"
    INICIANTE = "iniciante"
    SEDENTARIO = "sedentario"
    MODERADO = "moderado"
    INTERMEDIARIO = "intermediario"
    AVANCADO = "avancado"
    ATLETA = "atleta"
    ATLETA_ALTO_RENDIMENTO = "atleta_altorendimento"


# -----------------------------
# Division
# -----------------------------
class Division(StrEnum):
    """Weekly split strategy."""

    FULL_BODY = "Full Body"
    UPPER_LOWER = "Upper/Lower"
    PPL = "PPL"


# -----------------------------
# Day Type
# -----------------------------
class DayType(StrEnum):
    """Normalized division tag of a training day.

    "legs" is never a member: it is always folded into LOWER.
    """

    PUSH = "push"
    PULL = "pull"
    LOWER = "lower"
    UPPER = "upper"
    FULL = "full"
    SHOULDERS_ARMS = "shouldersarms"


# -----------------------------
# Training Environment
# -----------------------------
class Environment(StrEnum):
    """Where the user trains."""

    CASA = "casa"
    ACADEMIA = "academia"
    AMBOS = "ambos"
    AR_LIVRE = "ar_livre"


# -----------------------------
# Equipment
# -----------------------------
class Equipment(StrEnum):
    """Equipment tags carried by corpus exercises."""

    BARRA = "barra"
    HALTERES = "halteres"
    MAQUINA = "maquina"
    POLIA = "polia"
    PESO_CORPORAL = "peso_corporal"
    BANCO = "banco"
    BARRA_FIXA = "barra_fixa"


# -----------------------------
# Exercise Risk
# -----------------------------
class RiskLevel(StrEnum):
    """Structural risk of a lift."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


# -----------------------------
# Rejection Reasons
# -----------------------------
class RejectionReason(StrEnum):
    """Closed set of plan rejection codes recorded by the validator."""

    WEEKLY_SCHEDULE_INVALIDO = "weeklySchedule_invalido"
    NUMERO_DIAS_INCOMPATIVEL = "numero_dias_incompativel"
    DIVISAO_INCOMPATIVEL_FREQUENCIA = "divisao_incompativel_frequencia"
    DIAS_MESMO_TIPO_EXERCICIOS_DIFERENTES = "dias_mesmo_tipo_exercicios_diferentes"
    RESTRICAO_ARTICULAR_OMBRO = "restricao_articular_ombro"
    RESTRICAO_ARTICULAR_JOELHO = "restricao_articular_joelho"
    EXCESSO_EXERCICIOS_ALTO_RISCO_IDOSO = "excesso_exercicios_alto_risco_idoso"
    VIES_ESTETICO_DETECTADO = "vies_estetico_detectado"
    DIA_SEM_EXERCICIOS = "dia_sem_exercicios"
    EXCESSO_EXERCICIOS_NIVEL = "excesso_exercicios_nivel"
    EXERCICIO_SEM_PRIMARY_MUSCLE = "exercicio_sem_primaryMuscle"
    GRUPO_MUSCULAR_PROIBIDO = "grupo_muscular_proibido"
    LOWER_SEM_GRUPOS_OBRIGATORIOS = "lower_sem_grupos_obrigatorios"
    FULL_BODY_SEM_GRUPOS_OBRIGATORIOS = "full_body_sem_grupos_obrigatorios"
    GRUPO_OBRIGATORIO_AUSENTE = "grupo_obrigatorio_ausente"
    EXERCICIO_MUSCULO_INCOMPATIVEL = "exercicio_musculo_incompativel"
    ORDEM_EXERCICIOS_INVALIDA = "ordem_exercicios_invalida"
    EXCESSO_EXERCICIOS_MUSCULO_PRIMARIO = "excesso_exercicios_musculo_primario"
    DISTRIBUICAO_INTELIGENTE_INVALIDA = "distribuicao_inteligente_invalida"
    SECONDARY_MUSCLES_EXCEDE_LIMITE = "secondaryMuscles_excede_limite"
    TEMPO_TREINO_EXCEDE_DISPONIVEL = "tempo_treino_excede_disponivel"


class StatisticsPeriod(StrEnum):
    """Time window for rejection statistics."""

    ALL = "all"
    LAST_24H = "24h"
