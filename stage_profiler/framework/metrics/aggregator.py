"""
Metrics aggregator for partial measurements

Merges metrics trees recorded by several workers (or several invocations of
the same stage) into one canonical tree and derives percent-of-total duration.
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any

import ray

from ..config import ProfilingConfig
from .models import PERCENT_DURATION_KEY, ImmutableMetrics, Metrics, MetricsNode

logger = logging.getLogger(__name__)


class MetricsAggregator:
    """Aggregates partial metrics trees into one annotated tree.

    Nodes are merged by id at each tree level:
    - durations and counters are summed (parallel measurements are additional work)
    - annotations are unioned, the last contribution processed wins a conflict
    - the name of the first contribution is kept
    - children are merged the same way, in first-seen order across contributions

    Inputs are never modified.
    """

    def __init__(self, config: ProfilingConfig | None = None):
        """Initialize metrics aggregator.

        Args:
            config: Profiling configuration (defaults if not provided)
        """
        self.config = config or ProfilingConfig()

    def merge(self, nodes: Iterable[Metrics]) -> list[MetricsNode]:
        """Merge sibling metrics that share an id.

        Args:
            nodes: Metrics to merge, in processing order

        Returns:
            One merged node per distinct id, in first-seen order
        """
        merged_by_id: dict[str, MetricsNode] = {}
        num_nodes = 0
        for node in nodes:
            num_nodes += 1
            merged = merged_by_id.get(node.id)
            if merged is None:
                merged = merged_by_id[node.id] = MetricsNode(node.id, node.name)
            merged.aggregate(node)

        logger.debug("Merged %d metrics into %d distinct ids", num_nodes, len(merged_by_id))
        return list(merged_by_id.values())

    def aggregate(
        self,
        trees: Iterable[Metrics],
        sort_key: Callable[[Metrics], Any] | None = None,
    ) -> ImmutableMetrics | None:
        """Merge partial measurements of one root stage and annotate percent duration.

        Args:
            trees: Partial root trees, all with the same root id
            sort_key: Optional key ordering the contributions before merging,
                which makes annotation conflicts independent of arrival order

        Returns:
            Canonical read-only tree, or None if there was nothing to aggregate

        Raises:
            ValueError: If the roots do not share one id
        """
        trees = list(trees)
        if sort_key is not None:
            trees.sort(key=sort_key)

        merged = self.merge(trees)
        if not merged:
            return None
        if len(merged) > 1:
            root_ids = ", ".join(repr(node.id) for node in merged)
            raise ValueError(f"Partial trees must share one root id, got {root_ids}")

        root = merged[0].get_immutable_clone()
        self.annotate_percent_duration(root)
        return root

    def annotate_percent_duration(self, root: Metrics):
        """Annotate every node with its share of the root's duration.

        Written through the live annotation mapping, replacing any previous
        value. A zero-duration root gives "0" for every node.

        Args:
            root: Root of the tree to annotate
        """
        total_ns = root.get_duration()
        for node in root.iter_tree():
            percent = 100.0 * node.get_duration() / total_ns if total_ns > 0 else 0.0
            node.get_annotations()[PERCENT_DURATION_KEY] = self._format_percent(percent)

    def _format_percent(self, percent: float) -> str:
        """Format a percentage with trailing zeros removed ("25", "33.33")."""
        text = f"{percent:.{self.config.percent_precision}f}"
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return text

    def collect_from_workers(self, workers: list[Any]) -> list[Metrics]:
        """Collect partial metrics trees from Ray worker actors.

        Each worker is asked for its tree through the configured actor method.
        Workers that fail or report nothing are skipped.

        Args:
            workers: List of Ray worker actors

        Returns:
            List of partial trees, in worker order
        """
        partial_trees = []

        for worker_idx, worker in enumerate(workers):
            try:
                remote_method = getattr(worker, self.config.worker_method)
                tree = ray.get(remote_method.remote())
            except Exception as e:
                logger.warning("Failed to collect metrics from worker %d: %s", worker_idx, e)
                continue

            if tree is None:
                logger.debug("Worker %d reported no metrics", worker_idx)
                continue
            partial_trees.append(tree)

        return partial_trees

    def collect_and_aggregate(self, workers: list[Any]) -> ImmutableMetrics | None:
        """Collect and aggregate metrics for one stage.

        Convenience method that combines collection and aggregation.

        Args:
            workers: List of Ray worker actors that measured the stage

        Returns:
            Aggregated tree, or None if no worker reported metrics
        """
        return self.aggregate(self.collect_from_workers(workers))
