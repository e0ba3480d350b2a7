"""
Metrics: Hierarchical execution metrics for pipeline stages

Provides nested per-stage metrics (duration, counters, annotations), context
manager instrumentation, and merging of partial measurements from workers.
"""

from .aggregator import MetricsAggregator
from .collector import MetricsCollector
from .models import (
    ELEMENT_COUNT_ID,
    PERCENT_DURATION_KEY,
    TRAVERSER_COUNT_ID,
    ImmutableMetrics,
    Metrics,
    MetricsNode,
)
from .units import TimeUnit

__all__ = [
    "MetricsCollector",
    "MetricsAggregator",
    "Metrics",
    "MetricsNode",
    "ImmutableMetrics",
    "TimeUnit",
    "ELEMENT_COUNT_ID",
    "TRAVERSER_COUNT_ID",
    "PERCENT_DURATION_KEY",
]
