"""
Metrics collector with context manager auto-instrumentation

Builds a worker's metrics tree as stages run, via nested context managers.
"""

import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from ..config import ProfilingConfig
from .models import ImmutableMetrics, MetricsNode
from .units import TimeUnit

logger = logging.getLogger(__name__)


class MetricsCollector:
    """Collects one worker's metrics tree using context managers.

    A collector is owned by a single worker: stages tracked through it are not
    guarded against concurrent use. Trees from several collectors are combined
    with MetricsAggregator once every worker has finished.
    """

    def __init__(self, run_id: str | None = None, config: ProfilingConfig | None = None):
        """Initialize metrics collector.

        Args:
            run_id: Optional run identifier, used as the root metrics id (auto-generated if not provided)
            config: Profiling configuration (defaults if not provided)
        """
        self.run_id = run_id or self._generate_run_id()
        self.config = config or ProfilingConfig()
        self._root = MetricsNode(self.run_id)
        self._active: list[MetricsNode] = [self._root]

    @staticmethod
    def _generate_run_id() -> str:
        """Generate unique run ID with timestamp."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        short_uuid = str(uuid.uuid4())[:8]
        return f"run_{timestamp}_{short_uuid}"

    @contextmanager
    def track_run(self) -> Iterator["MetricsCollector"]:
        """Context manager timing the whole run on the root metrics.

        Yields:
            Self for method chaining

        Example:
            with collector.track_run():
                # Execute pipeline
                pass
        """
        if not self.config.enabled:
            yield self
            return

        self._root.start()
        try:
            yield self
        finally:
            self._root.stop()
            logger.debug("Run %s took %d ms", self.run_id, self._root.get_duration(TimeUnit.MILLISECONDS))

    @contextmanager
    def track_stage(self, metrics_id: str, name: str | None = None) -> Iterator[MetricsNode]:
        """Context manager timing a stage nested under the innermost active stage.

        Tracking the same id again under the same parent accumulates into the
        same node.

        Args:
            metrics_id: Stage id, unique among its siblings
            name: Display name (defaults to the id)

        Yields:
            The stage's metrics, for counters and annotations

        Example:
            with collector.track_stage("0", "VertexStep") as stage:
                stage.increment_count(ELEMENT_COUNT_ID, 10)
        """
        if not self.config.enabled:
            # Detached node, never attached to the tree
            yield MetricsNode(metrics_id, name)
            return

        node = self._active[-1].get_or_add_nested(metrics_id, name)
        node.start()
        self._active.append(node)
        try:
            yield node
        finally:
            self._active.pop()
            node.stop()

    def get_metrics(self) -> MetricsNode:
        """Get the live root metrics of this collector."""
        return self._root

    def get_immutable_metrics(self) -> ImmutableMetrics:
        """Get a read-only snapshot of the collected tree."""
        return self._root.get_immutable_clone()

    def clear(self):
        """Discard all collected metrics.

        Raises:
            RuntimeError: If called while a stage is being tracked
        """
        if len(self._active) > 1:
            active_ids = ", ".join(repr(node.id) for node in self._active[1:])
            raise RuntimeError(f"Cannot clear metrics while stages are being tracked: {active_ids}")
        self._root = MetricsNode(self.run_id)
        self._active = [self._root]
