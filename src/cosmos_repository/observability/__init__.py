"""Logging and metrics helpers."""

from cosmos_repository.observability._observable import ObservableMixin
from cosmos_repository.observability.logging import (
    JsonFormatter,
    SamplingFilter,
    TextFormatter,
    bootstrap_logging,
    bootstrap_logging_from_app_settings,
)
from cosmos_repository.observability.metrics import (
    MetricsRecorder,
    NoopMetricsRecorder,
    PrometheusMetricsRecorder,
    configure_metrics_from_app_settings,
    configure_prometheus_metrics,
    get_metrics_recorder,
    render_prometheus_metrics,
    reset_metrics_recorder,
    set_metrics_recorder,
)

__all__ = [
    "JsonFormatter",
    "MetricsRecorder",
    "NoopMetricsRecorder",
    "ObservableMixin",
    "PrometheusMetricsRecorder",
    "SamplingFilter",
    "TextFormatter",
    "bootstrap_logging",
    "bootstrap_logging_from_app_settings",
    "configure_metrics_from_app_settings",
    "configure_prometheus_metrics",
    "get_metrics_recorder",
    "render_prometheus_metrics",
    "reset_metrics_recorder",
    "set_metrics_recorder",
]
