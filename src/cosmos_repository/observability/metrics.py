"""Prometheus metrics primitives for repository operations."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Protocol

from cosmos_repository.errors import MissingDependencyError

if TYPE_CHECKING:
    from cosmos_repository.config.models import AppSettings

_LABEL_NORMALIZER = re.compile(r"[^a-zA-Z0-9_]+")

_LATENCY_BUCKETS = (0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


def _import_prometheus_client() -> Any:
    try:
        import prometheus_client
    except ImportError as exc:  # pragma: no cover - depends on optional extras
        raise MissingDependencyError(
            "Prometheus metrics require optional dependency 'prometheus-client'. "
            "Install with: pip install 'cosmos-repository[observability]'"
        ) from exc
    return prometheus_client


def _sanitize_label(value: str, *, default: str = "unknown") -> str:
    normalized = _LABEL_NORMALIZER.sub("_", value.strip().lower()).strip("_")
    return normalized or default


def _collector_or_create(registry: Any, name: str, factory: Any) -> Any:
    names_to_collectors = getattr(registry, "_names_to_collectors", None)
    if isinstance(names_to_collectors, dict):
        collector = names_to_collectors.get(name)
        if collector is not None:
            return collector
    return factory()


class MetricsRecorder(Protocol):
    """Observer contract for repository metrics."""

    def observe_operation(
        self,
        *,
        resource: str,
        operation: str,
        duration_seconds: float,
        success: bool,
    ) -> None:
        """Record operation latency and throughput."""
        ...

    def observe_error(
        self,
        *,
        resource: str,
        operation: str,
        error_type: str,
    ) -> None:
        """Record operation error counters."""
        ...


class NoopMetricsRecorder:
    """No-op recorder used when metrics are not configured."""

    def observe_operation(
        self,
        *,
        resource: str,
        operation: str,
        duration_seconds: float,
        success: bool,
    ) -> None:
        del resource, operation, duration_seconds, success

    def observe_error(
        self,
        *,
        resource: str,
        operation: str,
        error_type: str,
    ) -> None:
        del resource, operation, error_type


class PrometheusMetricsRecorder:
    """Prometheus-backed recorder with ``<prefix>_resource_*`` naming."""

    def __init__(
        self,
        *,
        registry: Any | None = None,
        prefix: str = "cosmos_repository",
    ) -> None:
        prometheus_client = _import_prometheus_client()
        self._registry = prometheus_client.REGISTRY if registry is None else registry
        self._prefix = _sanitize_label(prefix, default="cosmos_repository")

        latency_name = f"{self._prefix}_resource_latency_seconds"
        throughput_name = f"{self._prefix}_resource_throughput_total"
        errors_name = f"{self._prefix}_resource_errors_total"

        self._latency = _collector_or_create(
            self._registry,
            latency_name,
            lambda: prometheus_client.Histogram(
                latency_name,
                "Resource operation latency in seconds.",
                labelnames=("resource", "operation", "status"),
                registry=self._registry,
                buckets=_LATENCY_BUCKETS,
            ),
        )
        self._throughput = _collector_or_create(
            self._registry,
            throughput_name,
            lambda: prometheus_client.Counter(
                throughput_name,
                "Resource operation throughput counter.",
                labelnames=("resource", "operation", "status"),
                registry=self._registry,
            ),
        )
        self._errors = _collector_or_create(
            self._registry,
            errors_name,
            lambda: prometheus_client.Counter(
                errors_name,
                "Resource operation errors.",
                labelnames=("resource", "operation", "error_type"),
                registry=self._registry,
            ),
        )

    def observe_operation(
        self,
        *,
        resource: str,
        operation: str,
        duration_seconds: float,
        success: bool,
    ) -> None:
        labels = {
            "resource": _sanitize_label(resource),
            "operation": _sanitize_label(operation),
            "status": "success" if success else "error",
        }
        self._latency.labels(**labels).observe(max(0.0, duration_seconds))
        self._throughput.labels(**labels).inc()

    def observe_error(
        self,
        *,
        resource: str,
        operation: str,
        error_type: str,
    ) -> None:
        self._errors.labels(
            resource=_sanitize_label(resource),
            operation=_sanitize_label(operation),
            error_type=_sanitize_label(error_type),
        ).inc()


_NOOP_RECORDER = NoopMetricsRecorder()
_DEFAULT_RECORDER: MetricsRecorder = _NOOP_RECORDER


def get_metrics_recorder() -> MetricsRecorder:
    """Return the process-level metrics recorder."""
    return _DEFAULT_RECORDER


def set_metrics_recorder(recorder: MetricsRecorder | None) -> MetricsRecorder:
    """Set process-level recorder. `None` switches back to no-op."""
    global _DEFAULT_RECORDER
    _DEFAULT_RECORDER = _NOOP_RECORDER if recorder is None else recorder
    return _DEFAULT_RECORDER


def reset_metrics_recorder() -> None:
    set_metrics_recorder(None)


def configure_prometheus_metrics(
    *,
    registry: Any | None = None,
    prefix: str = "cosmos_repository",
    set_default: bool = True,
) -> PrometheusMetricsRecorder:
    """Build a Prometheus recorder and optionally set it as default."""
    recorder = PrometheusMetricsRecorder(registry=registry, prefix=prefix)
    if set_default:
        set_metrics_recorder(recorder)
    return recorder


def prometheus_content_type() -> str:
    """Return Prometheus exposition media type."""
    prometheus_client = _import_prometheus_client()
    return str(prometheus_client.CONTENT_TYPE_LATEST)


def render_prometheus_metrics(*, registry: Any | None = None) -> bytes:
    """Render current Prometheus metrics in exposition text format."""
    prometheus_client = _import_prometheus_client()
    resolved_registry = prometheus_client.REGISTRY if registry is None else registry
    return bytes(prometheus_client.generate_latest(resolved_registry))


def configure_metrics_from_app_settings(
    app_settings: AppSettings,
    *,
    registry: Any | None = None,
) -> MetricsRecorder:
    """Install the recorder selected by ``app_settings.observability``."""
    observability = app_settings.observability
    if not observability.metrics_enabled:
        return set_metrics_recorder(None)
    return configure_prometheus_metrics(
        registry=registry,
        prefix=observability.metrics_prefix,
        set_default=True,
    )
