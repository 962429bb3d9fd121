"""Database persistence for plan rejection metrics.

Writes happen on a background worker thread fed by a queue, so recording
a rejection never blocks the validator. Write failures are logged and
dropped.
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Callable, Generator
from contextlib import AbstractContextManager, contextmanager
from typing import TYPE_CHECKING

from loguru import logger
from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from movaplan.db.models import Base, PlanRejectionMetricRecord

if TYPE_CHECKING:
    from movaplan.metrics.plan_rejections import PlanRejectionMetric

SessionFactory = Callable[[], AbstractContextManager[Session]]

_STOP = object()


def _session_factory_for(engine: Engine) -> SessionFactory:
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @contextmanager
    def factory() -> Generator[Session, None, None]:
        session = session_local()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return factory


class SqlRejectionPersistence:
    """SQLAlchemy-backed store for rejection metrics.

    Args:
        engine: Engine to write to; the application engine when None
        create_tables: Create the metrics table if it does not exist
    """

    def __init__(self, engine: Engine | None = None, create_tables: bool = True):
        if engine is None:
            from movaplan.db.session import get_engine, get_session

            engine = get_engine()
            self._session_factory: SessionFactory = get_session
        else:
            self._session_factory = _session_factory_for(engine)

        if create_tables:
            Base.metadata.create_all(bind=engine, tables=[PlanRejectionMetricRecord.__table__])

        self._queue: queue.Queue[object] = queue.Queue()
        self._worker: threading.Thread | None = None
        self._lock = threading.Lock()

    def save(self, metric: PlanRejectionMetric) -> None:
        """Queue a metric for writing. Never blocks on the database."""
        self._ensure_worker()
        self._queue.put(metric)

    def flush(self, timeout: float | None = None) -> bool:
        """Wait until every queued metric was handled. Returns False on timeout."""
        if self._worker is None:
            return True
        done = threading.Event()

        def _wait() -> None:
            self._queue.join()
            done.set()

        threading.Thread(target=_wait, daemon=True).start()
        return done.wait(timeout)

    def close(self) -> None:
        with self._lock:
            worker = self._worker
            self._worker = None
        if worker is not None:
            self._queue.put(_STOP)
            worker.join(timeout=5)

    def fetch(
        self,
        since: int | None = None,
        until: int | None = None,
        limit: int | None = None,
    ) -> list[PlanRejectionMetric]:
        """Read persisted metrics ordered by timestamp (oldest first).

        Raises:
            sqlalchemy.exc.SQLAlchemyError: On database failure
        """
        from movaplan.metrics.plan_rejections import PlanRejectionMetric

        statement = select(PlanRejectionMetricRecord).order_by(
            PlanRejectionMetricRecord.timestamp, PlanRejectionMetricRecord.id
        )
        if since is not None:
            statement = statement.where(PlanRejectionMetricRecord.timestamp >= since)
        if until is not None:
            statement = statement.where(PlanRejectionMetricRecord.timestamp <= until)

        with self._session_factory() as session:
            records = list(session.scalars(statement))
            metrics = [
                PlanRejectionMetric(reason=record.reason, timestamp=record.timestamp, context=dict(record.context or {}))
                for record in records
            ]
        if limit is not None:
            metrics = metrics[-limit:]
        return metrics

    def _ensure_worker(self) -> None:
        with self._lock:
            if self._worker is None or not self._worker.is_alive():
                self._worker = threading.Thread(
                    target=self._run,
                    name="plan-rejection-persistence",
                    daemon=True,
                )
                self._worker.start()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._write(item)
            finally:
                self._queue.task_done()

    def _write(self, metric: PlanRejectionMetric) -> None:
        try:
            with self._session_factory() as session:
                session.add(
                    PlanRejectionMetricRecord(
                        reason=metric.reason,
                        timestamp=metric.timestamp,
                        context=dict(metric.context),
                    )
                )
        except Exception as e:
            logger.bind(reason=metric.reason).error(f"Failed to persist plan rejection metric: {e}")
