"""
Time units for duration conversion

Durations are stored as integer nanoseconds and converted on read.
"""

from enum import Enum


class TimeUnit(Enum):
    """Supported time units, valued by their conventional short name."""

    NANOSECONDS = "ns"
    MICROSECONDS = "us"
    MILLISECONDS = "ms"
    SECONDS = "s"
    MINUTES = "min"
    HOURS = "h"
    DAYS = "d"

    @property
    def nanos(self) -> int:
        """Number of nanoseconds in one unit."""
        return _NANOS_PER_UNIT[self]

    @classmethod
    def coerce(cls, unit: "TimeUnit | str") -> "TimeUnit":
        """Resolve a unit given as a member, a short name ("ms") or a member name ("MILLISECONDS").

        Raises:
            ValueError: If the unit is not supported
        """
        if isinstance(unit, cls):
            return unit
        if isinstance(unit, str):
            try:
                return cls(unit)
            except ValueError:
                pass
            try:
                return cls[unit.upper()]
            except KeyError:
                pass
        supported = ", ".join(u.value for u in cls)
        raise ValueError(f"Unsupported time unit {unit!r} (supported: {supported})")


_NANOS_PER_UNIT = {
    TimeUnit.NANOSECONDS: 1,
    TimeUnit.MICROSECONDS: 1_000,
    TimeUnit.MILLISECONDS: 1_000_000,
    TimeUnit.SECONDS: 1_000_000_000,
    TimeUnit.MINUTES: 60 * 1_000_000_000,
    TimeUnit.HOURS: 3_600 * 1_000_000_000,
    TimeUnit.DAYS: 86_400 * 1_000_000_000,
}


def to_nanos(value: float, unit: TimeUnit | str) -> int:
    """Convert an amount of `unit` into nanoseconds, rounding fractional input."""
    return round(value * TimeUnit.coerce(unit).nanos)


def from_nanos(nanos: int, unit: TimeUnit | str) -> int:
    """Convert nanoseconds into `unit`, truncating any remainder."""
    return nanos // TimeUnit.coerce(unit).nanos
