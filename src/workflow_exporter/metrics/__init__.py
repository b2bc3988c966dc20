"""Metrics - Prometheus exposition of collected workflow data."""

from workflow_exporter.metrics.store import (
    CUSTOM_PROPERTY_LABEL_FMT,
    MetricStore,
    create_registry,
)

__all__ = [
    "CUSTOM_PROPERTY_LABEL_FMT",
    "MetricStore",
    "create_registry",
]
