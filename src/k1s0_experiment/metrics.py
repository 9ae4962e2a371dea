"""OpenTelemetry メトリクス定義"""

from __future__ import annotations

from opentelemetry import metrics

_meter = metrics.get_meter("k1s0_experiment", version="0.1.0")

decisions_total = _meter.create_counter(
    name="experiment_decisions_total",
    description="Total number of client operations",
    unit="1",
)

errors_total = _meter.create_counter(
    name="experiment_errors_total",
    description="Total number of client operations that returned an error",
    unit="1",
)

events_total = _meter.create_counter(
    name="experiment_events_total",
    description="Total number of user events handed to the event processor",
    unit="1",
)
