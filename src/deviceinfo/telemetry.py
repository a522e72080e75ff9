"""OpenTelemetry metrics for counters — graceful no-op if absent."""

from __future__ import annotations

try:
    from opentelemetry import metrics

    _HAS_OTEL = True
except ImportError:
    _HAS_OTEL = False


def has_otel() -> bool:
    """Check if OpenTelemetry is available."""
    return _HAS_OTEL


class CounterTelemetry:
    """OTel integration. No-op if opentelemetry not installed.

    Install: pip install deviceinfo[otel]
    """

    def __init__(self):
        if _HAS_OTEL:
            self._meter = metrics.get_meter("deviceinfo")
            self._setup_metrics()
        else:
            self._meter = None

    def _setup_metrics(self):
        if not self._meter:
            return
        self._increment_counter = self._meter.create_counter(
            "deviceinfo.counter.increments",
            description="Number of versioned counter increments",
        )
        self._read_failure_counter = self._meter.create_counter(
            "deviceinfo.counter.read_failures",
            description="Number of counter reads that fell back to an empty map",
        )
        self._write_failure_counter = self._meter.create_counter(
            "deviceinfo.counter.write_failures",
            description="Number of counter writes rejected by the store",
        )

    def record_increment(self, kind: str, store_kind: str) -> None:
        if _HAS_OTEL and self._meter:
            self._increment_counter.add(1, {"counter.kind": kind, "store.kind": store_kind})

    def record_read_failure(self, kind: str) -> None:
        if _HAS_OTEL and self._meter:
            self._read_failure_counter.add(1, {"counter.kind": kind})

    def record_write_failure(self, kind: str) -> None:
        if _HAS_OTEL and self._meter:
            self._write_failure_counter.add(1, {"counter.kind": kind})
