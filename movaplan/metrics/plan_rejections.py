"""Plan rejection metrics.

Append-only log of why candidate plans were rejected, consumed by the
admin dashboard. Recording never raises to the caller and never blocks
on I/O: entries go to an in-memory list and, when persistence is
enabled, to a background database writer.

A process-wide default store exists for production wiring; tests and
the API build isolated PlanRejectionMetrics instances instead.
"""

from __future__ import annotations

import threading
import time
from collections import Counter
from collections.abc import Generator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any, Protocol

from loguru import logger

from movaplan.domains.training_plan import taxonomy
from movaplan.domains.training_plan.enums import RejectionReason, StatisticsPeriod

DEFAULT_MAX_METRICS = 10000
RECENT_LIMIT = 100
DAY_MS = 24 * 60 * 60 * 1000

ContextScalar = str | int | float | bool | None


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class PlanRejectionMetric:
    """One recorded rejection.

    Attributes:
        reason: Rejection reason code
        timestamp: Epoch milliseconds
        context: Scalar context (activityLevel, dayType, trainingDays, ...)
    """

    reason: str
    timestamp: int
    context: dict[str, ContextScalar] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"reason": self.reason, "timestamp": self.timestamp, "context": dict(self.context)}


class RejectionPersistence(Protocol):
    def save(self, metric: PlanRejectionMetric) -> None: ...

    def fetch(
        self,
        since: int | None = None,
        until: int | None = None,
        limit: int | None = None,
    ) -> list[PlanRejectionMetric]: ...


def _scalar_context(context: Mapping[str, Any] | None) -> dict[str, ContextScalar]:
    if not context:
        return {}
    scalars: dict[str, ContextScalar] = {}
    for key, value in context.items():
        if value is None or isinstance(value, str | int | float | bool):
            scalars[str(key)] = value
        else:
            scalars[str(key)] = str(value)
    return scalars


def build_statistics(metrics: list[PlanRejectionMetric]) -> dict[str, Any]:
    """Aggregate metrics (oldest first) into dashboard statistics."""
    by_reason: Counter[str] = Counter()
    by_activity_level: Counter[str] = Counter()
    by_day_type: Counter[str] = Counter()

    for metric in metrics:
        by_reason[metric.reason] += 1
        by_activity_level[str(metric.context.get("activityLevel") or "unknown")] += 1
        day_type = metric.context.get("dayType")
        if day_type:
            by_day_type[str(day_type)] += 1

    recent = [metric.to_dict() for metric in reversed(metrics[-RECENT_LIMIT:])]
    return {
        "total": len(metrics),
        "byReason": dict(by_reason),
        "byActivityLevel": dict(by_activity_level),
        "byDayType": dict(by_day_type),
        "recent": recent,
    }


class PlanRejectionMetrics:
    """In-memory rejection log with optional persistence.

    Args:
        max_metrics: Entries kept in memory; the oldest are dropped beyond it
        persistence: Optional database writer/reader
    """

    def __init__(self, max_metrics: int = DEFAULT_MAX_METRICS, persistence: RejectionPersistence | None = None):
        self._max_metrics = max_metrics
        self._persistence = persistence
        self._metrics: list[PlanRejectionMetric] = []
        self._lock = threading.Lock()

    def record(
        self,
        reason: RejectionReason | str,
        context: Mapping[str, Any] | None = None,
        timestamp: int | None = None,
    ) -> PlanRejectionMetric | None:
        """Append a rejection. Never raises; returns None if recording failed."""
        try:
            metric = PlanRejectionMetric(
                reason=str(reason),
                timestamp=timestamp if timestamp is not None else now_ms(),
                context=_scalar_context(context),
            )
            with self._lock:
                self._metrics.append(metric)
                overflow = len(self._metrics) - self._max_metrics
                if overflow > 0:
                    del self._metrics[:overflow]
        except Exception as e:
            logger.error(f"Failed to record plan rejection: {e}")
            return None

        if self._persistence is not None:
            try:
                self._persistence.save(metric)
            except Exception as e:
                logger.error(f"Failed to queue plan rejection for persistence: {e}")
        return metric

    def get_all_metrics(self) -> list[PlanRejectionMetric]:
        with self._lock:
            return list(self._metrics)

    def get_metrics_by_period(self, start_ms: int, end_ms: int | None = None) -> list[PlanRejectionMetric]:
        end = end_ms if end_ms is not None else now_ms()
        return [metric for metric in self.get_all_metrics() if start_ms <= metric.timestamp <= end]

    def get_statistics(
        self,
        period: StatisticsPeriod | str = StatisticsPeriod.ALL,
        source: str = "memory",
    ) -> dict[str, Any]:
        """Statistics for "all" or the last 24h, from memory or the database.

        A database read failure falls back to memory.
        """
        statistics, _ = self.get_statistics_with_source(period, source)
        return statistics

    def get_statistics_with_source(
        self,
        period: StatisticsPeriod | str = StatisticsPeriod.ALL,
        source: str = "memory",
    ) -> tuple[dict[str, Any], str]:
        """Statistics plus the source they were actually read from ("memory" or "db")."""
        since = now_ms() - DAY_MS if StatisticsPeriod(period) == StatisticsPeriod.LAST_24H else None

        if source == "db" and self._persistence is not None:
            try:
                return build_statistics(self._persistence.fetch(since=since)), "db"
            except Exception as e:
                logger.error(f"Failed to read plan rejections from database, using memory: {e}")

        metrics = self.get_all_metrics() if since is None else self.get_metrics_by_period(since)
        return build_statistics(metrics), "memory"

    def clear(self) -> None:
        """Reset in-memory state (tests/ops only). Persisted rows are kept."""
        with self._lock:
            self._metrics.clear()

    def is_persistence_enabled(self) -> bool:
        return self._persistence is not None


# -----------------------------
# Process-wide default store
# -----------------------------
_default_metrics: PlanRejectionMetrics | None = None
_default_lock = threading.Lock()


def _build_default_metrics() -> PlanRejectionMetrics:
    from movaplan.config.settings import settings

    persistence: RejectionPersistence | None = None
    if settings.metrics_persistence_enabled:
        try:
            from movaplan.metrics.persistence import SqlRejectionPersistence

            persistence = SqlRejectionPersistence()
        except Exception as e:
            logger.error(f"Plan rejection persistence disabled: {e}")
    return PlanRejectionMetrics(max_metrics=settings.metrics_max_in_memory, persistence=persistence)


def get_plan_rejection_metrics() -> PlanRejectionMetrics:
    global _default_metrics
    with _default_lock:
        if _default_metrics is None:
            _default_metrics = _build_default_metrics()
        return _default_metrics


def set_plan_rejection_metrics(metrics: PlanRejectionMetrics | None) -> None:
    """Replace the process-wide store (None rebuilds it from settings on next use)."""
    global _default_metrics
    with _default_lock:
        _default_metrics = metrics


# -----------------------------
# Per-call collection
# -----------------------------
@dataclass
class RejectionCollector:
    """Reasons recorded while the collector is active."""

    reasons: list[str] = field(default_factory=list)


_active_collector: ContextVar[RejectionCollector | None] = ContextVar("rejection_collector", default=None)


@contextmanager
def collect_rejections() -> Generator[RejectionCollector, None, None]:
    """Collect the rejection reasons emitted in the current context."""
    collector = RejectionCollector()
    token = _active_collector.set(collector)
    try:
        yield collector
    finally:
        _active_collector.reset(token)


def emit_rejection(
    reason: RejectionReason | str,
    context: Mapping[str, Any] | None = None,
    metrics: PlanRejectionMetrics | None = None,
) -> None:
    """Record a rejection on the given (or default) store and the active collector."""
    collector = _active_collector.get()
    if collector is not None:
        collector.reasons.append(str(reason))
    try:
        store = metrics if metrics is not None else get_plan_rejection_metrics()
    except Exception as e:
        logger.error(f"Plan rejection metrics unavailable: {e}")
        return
    store.record(reason, context)


async def record_plan_rejection(
    reason: RejectionReason | str,
    context: Mapping[str, Any] | None = None,
    metrics: PlanRejectionMetrics | None = None,
) -> None:
    """Async entry point for callers that emit rejections outside the validator."""
    emit_rejection(reason, context, metrics)


# Legacy human-readable messages -> reason codes (matched as normalized substrings)
_WARN_MESSAGE_REASONS: tuple[tuple[str, RejectionReason], ...] = (
    ("weeklyschedule invalido ou ausente", RejectionReason.WEEKLY_SCHEDULE_INVALIDO),
    ("numero de dias incompativel", RejectionReason.NUMERO_DIAS_INCOMPATIVEL),
    ("divisao incompativel com frequencia", RejectionReason.DIVISAO_INCOMPATIVEL_FREQUENCIA),
    ("dias do mesmo tipo", RejectionReason.DIAS_MESMO_TIPO_EXERCICIOS_DIFERENTES),
    ("dia sem exercicios", RejectionReason.DIA_SEM_EXERCICIOS),
    ("excesso de exercicios por nivel", RejectionReason.EXCESSO_EXERCICIOS_NIVEL),
    ("exercicio sem primarymuscle", RejectionReason.EXERCICIO_SEM_PRIMARY_MUSCLE),
    ("grupo muscular proibido no dia", RejectionReason.GRUPO_MUSCULAR_PROIBIDO),
    ("grupo muscular nao permitido", RejectionReason.GRUPO_MUSCULAR_PROIBIDO),
    ("lower day sem grupos obrigatorios", RejectionReason.LOWER_SEM_GRUPOS_OBRIGATORIOS),
    ("full body day sem grupos obrigatorios", RejectionReason.FULL_BODY_SEM_GRUPOS_OBRIGATORIOS),
    ("grupo muscular obrigatorio ausente", RejectionReason.GRUPO_OBRIGATORIO_AUSENTE),
    ("ordem de exercicios invalida", RejectionReason.ORDEM_EXERCICIOS_INVALIDA),
    ("excesso de exercicios com mesmo musculo primario", RejectionReason.EXCESSO_EXERCICIOS_MUSCULO_PRIMARIO),
    ("triceps como primario em excesso no dia push", RejectionReason.DISTRIBUICAO_INTELIGENTE_INVALIDA),
    ("biceps como primario em excesso no dia pull", RejectionReason.DISTRIBUICAO_INTELIGENTE_INVALIDA),
    ("push day sem peitoral ou ombros como primarios", RejectionReason.DISTRIBUICAO_INTELIGENTE_INVALIDA),
    ("musculo concentrado demais no dia lower", RejectionReason.DISTRIBUICAO_INTELIGENTE_INVALIDA),
    ("secondarymuscles excede limite de 2", RejectionReason.SECONDARY_MUSCLES_EXCEDE_LIMITE),
    ("tempo de treino excede disponivel", RejectionReason.TEMPO_TREINO_EXCEDE_DISPONIVEL),
    ("exercicio com musculo primario incompativel", RejectionReason.EXERCICIO_MUSCULO_INCOMPATIVEL),
    ("restricao de ombro", RejectionReason.RESTRICAO_ARTICULAR_OMBRO),
    ("restricao de joelho", RejectionReason.RESTRICAO_ARTICULAR_JOELHO),
    ("alto risco", RejectionReason.EXCESSO_EXERCICIOS_ALTO_RISCO_IDOSO),
    ("vies estetico", RejectionReason.VIES_ESTETICO_DETECTADO),
)


def map_warn_message_to_reason(message: str | None) -> RejectionReason | None:
    """Map a legacy rejection message (e.g., "Plano rejeitado: dia sem exercícios") to its code."""
    normalized = taxonomy.normalize(message)
    for fragment, reason in _WARN_MESSAGE_REASONS:
        if fragment in normalized:
            return reason
    return None
