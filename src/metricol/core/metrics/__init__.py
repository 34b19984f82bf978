"""
Metric model, change notification and repositories.

This package consolidates the metrics store:
- model: MetricKind, Metric, MetricRecord
- observer: Observer, ObserverRegistry, ChangeSignal
- repository: MetricsRepository ABC, InMemoryMetricsRepository
"""

from metricol.core.metrics.model import (
    INT64_MAX,
    INT64_MIN,
    Metric,
    MetricKind,
    MetricRecord,
    parse_value,
)
from metricol.core.metrics.observer import ChangeSignal, Observer, ObserverRegistry
from metricol.core.metrics.repository import InMemoryMetricsRepository, MetricsRepository

__all__ = [
    # model
    "INT64_MAX",
    "INT64_MIN",
    "Metric",
    "MetricKind",
    "MetricRecord",
    "parse_value",
    # observer
    "ChangeSignal",
    "Observer",
    "ObserverRegistry",
    # repository
    "InMemoryMetricsRepository",
    "MetricsRepository",
]
