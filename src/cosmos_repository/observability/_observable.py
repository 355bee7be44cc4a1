"""Metrics plumbing shared by repository classes."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from time import perf_counter
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cosmos_repository.observability.metrics import MetricsRecorder


class ObservableMixin:
    """Reports each repository call to a :class:`MetricsRecorder`.

    Subclasses set ``_resource_name`` and ``_metrics``; a ``None`` recorder
    means the process-level default, looked up at call time so that
    ``set_metrics_recorder`` also reaches repositories built earlier.
    """

    _resource_name: str
    _metrics: MetricsRecorder | None

    @property
    def metrics(self) -> MetricsRecorder:
        from cosmos_repository.observability.metrics import get_metrics_recorder

        return get_metrics_recorder() if self._metrics is None else self._metrics

    @contextmanager
    def _observed(self, operation: str) -> Iterator[None]:
        """Time the block; a raised ``Exception`` is counted as a failure and re-raised."""
        started = perf_counter()
        try:
            yield
        except Exception as exc:
            self._record_failure(operation, started, exc)
            raise
        self._record_success(operation, started)

    def _record_success(self, operation: str, started: float) -> None:
        self.metrics.observe_operation(
            resource=self._resource_name,
            operation=operation,
            duration_seconds=perf_counter() - started,
            success=True,
        )

    def _record_failure(self, operation: str, started: float, exc: BaseException) -> None:
        recorder = self.metrics
        recorder.observe_operation(
            resource=self._resource_name,
            operation=operation,
            duration_seconds=perf_counter() - started,
            success=False,
        )
        recorder.observe_error(
            resource=self._resource_name,
            operation=operation,
            error_type=type(exc).__name__,
        )
