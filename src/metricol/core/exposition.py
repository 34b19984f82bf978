"""Prometheus exposition of repository contents.

Exposes every stored metric through a ``prometheus_client`` custom collector
so the serving layer (or the CLI) can render the Prometheus text format.
"""

import logging
import re
from typing import Iterator, Optional, Set

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric as PrometheusMetric

from metricol.core.metrics.model import MetricKind
from metricol.core.metrics.repository import MetricsRepository

_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_:]")


def sanitize_metric_name(name: str) -> str:
    """Map an arbitrary metric name onto the Prometheus name charset."""
    sanitized = _INVALID_NAME_CHARS.sub("_", name)
    if not sanitized or sanitized[0].isdigit():
        sanitized = f"_{sanitized}"
    return sanitized


def _exposed_names(kind: MetricKind, full_name: str) -> Set[str]:
    if kind is MetricKind.COUNTER:
        # prometheus_client drops a trailing _total from the family and adds it to the sample
        family = full_name[: -len("_total")] if full_name.endswith("_total") else full_name
        return {family, f"{family}_total"}
    return {full_name}


class RepositoryCollector:
    """Custom collector yielding one family per stored metric."""

    def __init__(
        self,
        repository: MetricsRepository,
        namespace: str = "metricol",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.repository = repository
        self.namespace = namespace
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    def _full_name(self, name: str) -> str:
        base = sanitize_metric_name(name)
        return f"{self.namespace}_{base}" if self.namespace else base

    def collect(self) -> Iterator[PrometheusMetric]:
        """Yield one family per metric.

        Distinct names can sanitize to the same exposed name (``a.b`` and
        ``a_b``, or counter ``x`` and gauge ``x_total``). The first metric in
        ``all()`` order wins; later ones are logged and left out.
        """
        exposed: Set[str] = set()
        for metric in self.repository.all():
            full_name = self._full_name(metric.name)
            names = _exposed_names(metric.kind, full_name)
            if names & exposed:
                self._logger.warning(
                    "Skipping %s %s: exposed name collides with an earlier metric",
                    metric.kind.value,
                    metric.name,
                    extra={"metric": metric.name, "kind": metric.kind.value},
                )
                continue
            exposed |= names
            if metric.kind is MetricKind.COUNTER:
                # prometheus_client appends _total to counter samples
                yield CounterMetricFamily(full_name, f"Counter {metric.name}", value=metric.value)
            else:
                yield GaugeMetricFamily(full_name, f"Gauge {metric.name}", value=metric.value)


def render_text(repository: MetricsRepository, namespace: str = "metricol") -> str:
    """Render the repository in the Prometheus text exposition format."""
    registry = CollectorRegistry(auto_describe=False)
    registry.register(RepositoryCollector(repository, namespace=namespace))
    return generate_latest(registry).decode("utf-8")
