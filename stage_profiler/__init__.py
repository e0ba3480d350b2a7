"""
Stage Profiler: Hierarchical execution metrics for composable pipeline stages
"""

from stage_profiler.framework.metrics import (
    ELEMENT_COUNT_ID,
    PERCENT_DURATION_KEY,
    TRAVERSER_COUNT_ID,
    ImmutableMetrics,
    Metrics,
    MetricsAggregator,
    MetricsCollector,
    MetricsNode,
    TimeUnit,
)

__all__ = [
    "ELEMENT_COUNT_ID",
    "TRAVERSER_COUNT_ID",
    "PERCENT_DURATION_KEY",
    "Metrics",
    "MetricsNode",
    "ImmutableMetrics",
    "MetricsAggregator",
    "MetricsCollector",
    "TimeUnit",
]
