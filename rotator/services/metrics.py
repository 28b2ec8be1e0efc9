"""
Metrics sink for the rotation engine.

The engine only talks to the abstract MetricsSink. PrometheusMetrics backs it
with prometheus_client on a private registry so several instances (tests,
reloaded apps) never collide on the global default registry.
"""

from abc import ABC, abstractmethod

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest
from prometheus_client import CONTENT_TYPE_LATEST


class MetricsSink(ABC):
    @abstractmethod
    def record_rotation(self, namespace: str, technique: str, bytes_rotated: int) -> None:
        pass

    @abstractmethod
    def count_error(self, error_type: str) -> None:
        pass

    @abstractmethod
    def set_namespace_usage(self, namespace: str, usage_bytes: int) -> None:
        pass

    @abstractmethod
    def record_override_applied(self, override_type: str) -> None:
        pass

    @abstractmethod
    def record_scan_cycle(self) -> None:
        pass

    @abstractmethod
    def set_files_discovered(self, count: int) -> None:
        pass


class NullMetrics(MetricsSink):
    """Sink that drops every measurement."""

    def record_rotation(self, namespace: str, technique: str, bytes_rotated: int) -> None:
        pass

    def count_error(self, error_type: str) -> None:
        pass

    def set_namespace_usage(self, namespace: str, usage_bytes: int) -> None:
        pass

    def record_override_applied(self, override_type: str) -> None:
        pass

    def record_scan_cycle(self) -> None:
        pass

    def set_files_discovered(self, count: int) -> None:
        pass


class PrometheusMetrics(MetricsSink):
    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: CollectorRegistry = None):
        self.registry = registry or CollectorRegistry()

        self.rotations_total = Counter(
            "rotator_rotations_total",
            "Total number of rotations performed",
            ["namespace", "technique"],
            registry=self.registry,
        )
        self.bytes_rotated_total = Counter(
            "rotator_bytes_rotated_total",
            "Total bytes rotated per namespace",
            ["namespace"],
            registry=self.registry,
        )
        self.errors_total = Counter(
            "rotator_errors_total",
            "Total number of errors by type",
            ["type"],
            registry=self.registry,
        )
        self.namespace_usage_bytes = Gauge(
            "rotator_ns_usage_bytes",
            "Per-namespace archived usage in bytes",
            ["namespace"],
            registry=self.registry,
        )
        self.overrides_applied_total = Counter(
            "rotator_overrides_applied_total",
            "Overrides applied count by type",
            ["type"],
            registry=self.registry,
        )
        self.scan_cycles_total = Counter(
            "rotator_scan_cycles_total",
            "Total number of scan cycles performed",
            registry=self.registry,
        )
        self.files_discovered = Gauge(
            "rotator_files_discovered",
            "Current number of log files discovered",
            registry=self.registry,
        )

        # Touch label sets so they show up in /metrics before the first event
        self.overrides_applied_total.labels("namespace")
        self.overrides_applied_total.labels("path")
        self.errors_total.labels("discovery")
        self.errors_total.labels("process_file")
        self.errors_total.labels("compression")

    def record_rotation(self, namespace: str, technique: str, bytes_rotated: int) -> None:
        self.rotations_total.labels(namespace, technique).inc()
        self.bytes_rotated_total.labels(namespace).inc(bytes_rotated)

    def count_error(self, error_type: str) -> None:
        self.errors_total.labels(error_type).inc()

    def set_namespace_usage(self, namespace: str, usage_bytes: int) -> None:
        self.namespace_usage_bytes.labels(namespace).set(usage_bytes)

    def record_override_applied(self, override_type: str) -> None:
        self.overrides_applied_total.labels(override_type).inc()

    def record_scan_cycle(self) -> None:
        self.scan_cycles_total.inc()

    def set_files_discovered(self, count: int) -> None:
        self.files_discovered.set(count)

    def get_value(self, name: str, labels: dict = None) -> float:
        """Current value of a sample, 0.0 if it was never recorded."""
        value = self.registry.get_sample_value(name, labels or {})
        return value if value is not None else 0.0

    def render(self) -> bytes:
        return generate_latest(self.registry)
