"""
Metrics data models for hierarchical stage profiling

Defines the read API shared by every metrics object, the mutable MetricsNode
recorded while a stage executes, and the ImmutableMetrics view handed to
consumers once partial measurements have been aggregated.
"""

import time
from collections.abc import Iterator

from .units import TimeUnit, from_nanos, to_nanos

# Reserved keys shared with every consumer of the metrics tree
ELEMENT_COUNT_ID = "elementCount"
TRAVERSER_COUNT_ID = "traverserCount"
PERCENT_DURATION_KEY = "percentDur"


class Metrics:
    """Read API for one measured stage and its nested sub-stages.

    Leaf and composite stages share this one shape: a stage with no nested
    metrics is simply a leaf.

    Attributes:
        id: Stable identifier, unique among its siblings and used as merge key
        name: Human-readable label, display only
    """

    def __init__(self, metrics_id: str, name: str | None = None):
        self._id = metrics_id
        self._name = name if name is not None else metrics_id
        self._duration_ns = 0
        self._counts: dict[str, int] = {}
        self._annotations: dict[str, str] = {}
        self._nested: dict[str, Metrics] = {}

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    def get_id(self) -> str:
        """Get the stable id of this metrics."""
        return self._id

    def get_name(self) -> str:
        """Get the display name of this metrics."""
        return self._name

    def get_duration(self, unit: TimeUnit | str = TimeUnit.NANOSECONDS) -> int:
        """Get the recorded duration, truncated to whole `unit`s.

        Returns 0 for a stage whose timer never ran.

        Raises:
            ValueError: If the unit is not supported
        """
        return from_nanos(self._duration_ns, unit)

    def get_count(self, count_key: str) -> int | None:
        """Get a counter value, or None if the counter was never recorded."""
        return self._counts.get(count_key)

    def get_counts(self) -> dict[str, int]:
        """Get a copy of all counters, in first-recorded order."""
        return dict(self._counts)

    def get_nested(self) -> tuple["Metrics", ...]:
        """Get the direct nested metrics in insertion order."""
        return tuple(self._nested.values())

    def get_nested_by_id(self, metrics_id: str) -> "Metrics | None":
        """Find nested metrics by id anywhere below this node.

        The search is pre-order: each child is checked before its own
        descendants, and earlier siblings before later ones. The node itself
        is not a candidate.

        Args:
            metrics_id: Id to look for

        Returns:
            First matching metrics, or None if no descendant has that id
        """
        for child in self._nested.values():
            if child.id == metrics_id:
                return child
            found = child.get_nested_by_id(metrics_id)
            if found is not None:
                return found
        return None

    def iter_tree(self) -> Iterator["Metrics"]:
        """Iterate over this node and all descendants in pre-order."""
        yield self
        for child in self._nested.values():
            yield from child.iter_tree()

    def get_annotations(self) -> dict[str, str]:
        """Get the live annotation mapping.

        This is the one mutable handle on an otherwise read-only object:
        writes to the returned dict are persisted on this node. It is how
        derived annotations (such as percent duration) are attached after
        aggregation.
        """
        return self._annotations

    def get_annotation(self, key: str) -> str | None:
        """Get one annotation, or None if it was never set."""
        return self._annotations.get(key)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Metrics):
            return NotImplemented
        return (
            self._id == other._id
            and self._name == other._name
            and self._duration_ns == other._duration_ns
            and self._counts == other._counts
            and self._annotations == other._annotations
            and list(self._nested.values()) == list(other._nested.values())
        )

    __hash__ = None

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(id={self._id!r}, name={self._name!r}, "
            f"duration_ns={self._duration_ns}, counts={self._counts!r}, nested={len(self._nested)})"
        )


class MetricsNode(Metrics):
    """Mutable metrics for a stage that is being measured.

    A node is owned by a single worker while it measures; partial nodes from
    several workers are combined afterwards with MetricsAggregator (or
    aggregate()). No locking is done here.
    """

    def __init__(self, metrics_id: str, name: str | None = None):
        super().__init__(metrics_id, name)
        self._start_ns: int | None = None

    def start(self):
        """Arm the timer. Restarting a running timer discards the open interval."""
        self._start_ns = time.perf_counter_ns()

    def stop(self):
        """Add the time elapsed since start() to the duration.

        Raises:
            RuntimeError: If the timer is not running
        """
        if self._start_ns is None:
            raise RuntimeError(f"Metrics {self._id!r} was stopped without being started")
        self._duration_ns += time.perf_counter_ns() - self._start_ns
        self._start_ns = None

    def is_running(self) -> bool:
        """Whether the timer is armed."""
        return self._start_ns is not None

    def finish(self, bulk: int = 1):
        """Stop the timer and count one traverser carrying `bulk` elements."""
        self.stop()
        self.increment_count(TRAVERSER_COUNT_ID, 1)
        self.increment_count(ELEMENT_COUNT_ID, bulk)

    def add_duration(self, value: float, unit: TimeUnit | str = TimeUnit.NANOSECONDS):
        """Add an explicitly measured duration.

        Args:
            value: Amount of time, in `unit`
            unit: Unit of `value`

        Raises:
            ValueError: If the duration is negative or the unit is not supported
        """
        nanos = to_nanos(value, unit)
        if nanos < 0:
            raise ValueError(f"Duration must be >= 0, got {value} {TimeUnit.coerce(unit).value}")
        self._duration_ns += nanos

    def set_duration(self, value: float, unit: TimeUnit | str = TimeUnit.NANOSECONDS):
        """Replace the recorded duration.

        Args:
            value: Amount of time, in `unit`
            unit: Unit of `value`

        Raises:
            ValueError: If the duration is negative or the unit is not supported
        """
        nanos = to_nanos(value, unit)
        if nanos < 0:
            raise ValueError(f"Duration must be >= 0, got {value} {TimeUnit.coerce(unit).value}")
        self._duration_ns = nanos

    def increment_count(self, count_key: str, delta: int = 1):
        """Add `delta` to a counter, creating it at 0 first.

        Raises:
            ValueError: If the counter would become negative
        """
        value = self._counts.get(count_key, 0) + delta
        if value < 0:
            raise ValueError(f"Counter {count_key!r} of {self._id!r} would become negative ({value})")
        self._counts[count_key] = value

    def set_count(self, count_key: str, value: int):
        """Set a counter to an absolute value.

        Raises:
            ValueError: If the value is negative
        """
        if value < 0:
            raise ValueError(f"Counter {count_key!r} must be >= 0, got {value}")
        self._counts[count_key] = value

    def set_annotation(self, key: str, value: object):
        """Set an annotation, stored as str(value), replacing any previous value."""
        self._annotations[key] = str(value)

    def add_nested(self, child: "MetricsNode") -> "MetricsNode":
        """Attach a child stage.

        A child whose id is already present is merged into the existing child
        instead of replacing it.

        Returns:
            The node now holding the child's measurements

        Raises:
            ValueError: If attaching would make a node its own descendant
        """
        if any(node is self for node in child.iter_tree()):
            raise ValueError(f"Cannot nest {child.id!r} under {self._id!r}: it would create a cycle")

        existing = self._nested.get(child.id)
        if existing is None:
            self._nested[child.id] = child
            return child
        if existing is not child:
            existing.aggregate(child)
        return existing

    def get_or_add_nested(self, metrics_id: str, name: str | None = None) -> "MetricsNode":
        """Get the direct child with `metrics_id`, creating it if absent.

        Args:
            metrics_id: Child id
            name: Display name used only when the child is created

        Returns:
            The existing or newly attached child
        """
        existing = self._nested.get(metrics_id)
        if existing is not None:
            return existing
        return self.add_nested(MetricsNode(metrics_id, name))

    def aggregate(self, other: Metrics):
        """Fold another measurement of the same stage into this node.

        Durations and counters are summed (a counter missing on either side
        counts as 0), annotations are unioned with `other` winning conflicts,
        and nested metrics are merged by id keeping first-seen order. `other`
        is left untouched; its children are copied, never adopted.

        Raises:
            ValueError: If `other` has a different id
        """
        if other.id != self._id:
            raise ValueError(f"Cannot aggregate metrics {other.id!r} into {self._id!r}")

        self._duration_ns += other.get_duration()
        for count_key, value in other.get_counts().items():
            self._counts[count_key] = self._counts.get(count_key, 0) + value
        self._annotations.update(other.get_annotations())

        for child in other.get_nested():
            target = self._nested.get(child.id)
            if target is None:
                target = MetricsNode(child.id, child.name)
                self._nested[child.id] = target
            target.aggregate(child)

    def get_immutable_clone(self) -> "ImmutableMetrics":
        return ImmutableMetrics.from_metrics(self)


class ImmutableMetrics(Metrics):
    """Read-only snapshot of a metrics tree.

    Exposes no mutators. Annotations stay writable through get_annotations()
    so derived values can be attached after the snapshot is taken.
    """

    @classmethod
    def from_metrics(cls, metrics: Metrics) -> "ImmutableMetrics":
        """Deep-copy any metrics tree into an immutable one.

        The duration of a still-running timer only includes stopped intervals.
        """
        clone = cls(metrics.id, metrics.name)
        clone._duration_ns = metrics.get_duration()
        clone._counts = metrics.get_counts()
        clone._annotations = dict(metrics.get_annotations())
        clone._nested = {child.id: cls.from_metrics(child) for child in metrics.get_nested()}
        return clone
