"""OpenTelemetry フラグ評価メトリクス定義"""

from __future__ import annotations

from opentelemetry import metrics

_meter = metrics.get_meter("tierflag", version="0.1.0")

evaluations_total = _meter.create_counter(
    name="featureflag_evaluations_total",
    description="Total number of feature flag evaluations",
    unit="1",
)

cache_hits_total = _meter.create_counter(
    name="featureflag_cache_hits_total",
    description="Total number of feature flag evaluations served from cache",
    unit="1",
)
