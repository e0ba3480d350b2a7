"""
Example: Using metrics collection in a pipeline

Demonstrates per-worker stage tracking and aggregation of partial trees.
"""

from stage_profiler.framework.metrics import (
    ELEMENT_COUNT_ID,
    PERCENT_DURATION_KEY,
    TRAVERSER_COUNT_ID,
    Metrics,
    MetricsAggregator,
    MetricsCollector,
    TimeUnit,
)


def run_worker(collector: MetricsCollector, num_records: int):
    """Simulate one worker running a two-stage plan."""
    with collector.track_run():
        with collector.track_stage("0", "ScanStep") as scan:
            scan.set_annotation("index", "used index name_idx")
            for _ in range(num_records):
                scan.increment_count(TRAVERSER_COUNT_ID)
                scan.increment_count(ELEMENT_COUNT_ID)

        with collector.track_stage("1", "FilterStep") as filter_stage:
            kept = sum(1 for i in range(num_records) if i % 3 == 0)
            filter_stage.increment_count(ELEMENT_COUNT_ID, kept)


def print_tree(metrics: Metrics, depth: int = 0):
    indent = "  " * depth
    print(
        f"{indent}{metrics.name} [{metrics.id}]: "
        f"{metrics.get_duration(TimeUnit.MICROSECONDS)}us, "
        f"{metrics.get_annotation(PERCENT_DURATION_KEY)}%, "
        f"counts={metrics.get_counts()}"
    )
    for child in metrics.get_nested():
        print_tree(child, depth + 1)


def main():
    print("=" * 60)
    print("Aggregating metrics from two workers")
    print("=" * 60)

    collectors = [MetricsCollector(run_id="example_run"), MetricsCollector(run_id="example_run")]
    for worker_idx, collector in enumerate(collectors):
        run_worker(collector, num_records=1000 * (worker_idx + 1))

    aggregator = MetricsAggregator()
    root = aggregator.aggregate(c.get_immutable_metrics() for c in collectors)
    print_tree(root)


if __name__ == "__main__":
    main()
