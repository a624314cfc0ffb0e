# classdesk/services/base.py
"""
Base Service Pattern for classdesk

Every service owns one request-scoped session and gets two helpers from
here: ``transaction()`` for commit/rollback around writes, and the
``measure_operation`` decorator which times each public operation, keeps
per-service counters and feeds the Prometheus histograms.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from functools import wraps
import logging
import time
from typing import Any, Callable, ClassVar, Dict, Iterator, Optional, TypeVar, cast

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import InfrastructureException
from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


@dataclass
class OperationStats:
    calls: int = 0
    failures: int = 0
    total_seconds: float = 0.0
    slowest_seconds: float = 0.0

    @property
    def average_seconds(self) -> float:
        return self.total_seconds / self.calls if self.calls else 0.0

    @property
    def success_rate(self) -> float:
        return (self.calls - self.failures) / self.calls if self.calls else 0.0


class BaseService:
    """Shared session handling and instrumentation for the service layer."""

    # service class name -> operation name -> stats
    _stats: ClassVar[Dict[str, Dict[str, OperationStats]]] = {}

    def __init__(self, db: Session):
        self.db = db
        self.logger = logging.getLogger(self.__class__.__name__)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """
        Commit the work done inside the block, or roll all of it back.

        Storage failures surface as ``InfrastructureException``; domain
        exceptions raised inside the block propagate unchanged.

        Usage:
            with self.transaction():
                self.repository.create(...)
        """
        try:
            yield self.db
            self.db.commit()
        except SQLAlchemyError as e:
            self.logger.error(f"Transaction failed: {str(e)}")
            self.db.rollback()
            raise InfrastructureException(f"Database operation failed: {str(e)}") from e
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def measure_operation(operation_name: str) -> Callable[[F], F]:
        """
        Time a service method under ``operation_name``.

        Usage:
            @BaseService.measure_operation("schedule_session")
            def schedule_session(self, data, principal):
                ...
        """

        def decorator(func: F) -> F:
            @wraps(func)
            def wrapper(self, *args, **kwargs):
                started = time.perf_counter()
                error_type: Optional[str] = None
                try:
                    return func(self, *args, **kwargs)
                except Exception as e:
                    error_type = type(e).__name__
                    raise
                finally:
                    self._observe(operation_name, time.perf_counter() - started, error_type)

            return cast(F, wrapper)

        return decorator

    def operation_stats(self) -> Dict[str, OperationStats]:
        """Counters for every measured operation of this service class."""
        return dict(BaseService._stats.get(self.__class__.__name__, {}))

    def reset_operation_stats(self) -> None:
        BaseService._stats.pop(self.__class__.__name__, None)

    def _observe(self, operation: str, elapsed: float, error_type: Optional[str]) -> None:
        service_name = self.__class__.__name__
        stats = BaseService._stats.setdefault(service_name, {}).setdefault(
            operation, OperationStats()
        )
        stats.calls += 1
        stats.total_seconds += elapsed
        stats.slowest_seconds = max(stats.slowest_seconds, elapsed)
        if error_type is not None:
            stats.failures += 1

        if elapsed > settings.slow_operation_threshold_seconds:
            logger.warning(f"Slow operation: {service_name}.{operation} took {elapsed:.2f}s")

        prometheus_metrics.record_service_operation(
            service=service_name,
            operation=operation,
            duration=elapsed,
            status="success" if error_type is None else "error",
            error_type=error_type,
        )
