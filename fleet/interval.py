"""Half-open rental interval and the overlap predicate."""

from dataclasses import dataclass
from datetime import datetime
from typing import Union

from dateutil.parser import isoparse

from .errors import InvalidInterval


def to_naive(instant: datetime) -> datetime:
    """
    Timestamps are compared as naive local time, like ``datetime.now()``.

    Aware values (``Z``, ``+03:00``) are converted to local time first.
    """
    if instant.tzinfo is None:
        return instant
    return instant.astimezone().replace(tzinfo=None)


def parse_instant(value: Union[str, datetime]) -> datetime:
    """ISO-8601 string (or datetime) as a naive local timestamp."""
    try:
        instant = isoparse(value) if isinstance(value, str) else value
    except ValueError as e:
        raise InvalidInterval(f"Unparseable timestamp {value!r}: {e}") from e
    return to_naive(instant)


def _check(start: datetime, end: datetime) -> None:
    if start >= end:
        raise InvalidInterval(f"Interval start {start} is not before end {end}")


@dataclass(frozen=True)
class Interval:
    """A rental period ``[start, end)`` in naive local time."""

    start: datetime
    end: datetime

    def __post_init__(self):
        object.__setattr__(self, "start", to_naive(self.start))
        object.__setattr__(self, "end", to_naive(self.end))
        _check(self.start, self.end)

    @classmethod
    def parse(
        cls, start: Union[str, datetime], end: Union[str, datetime]
    ) -> "Interval":
        """Build from ISO-8601 strings (or datetimes passed through)."""
        return cls(parse_instant(start), parse_instant(end))

    @property
    def duration_hours(self) -> float:
        return (self.end - self.start).total_seconds() / 3600

    def overlaps(self, other: "Interval") -> bool:
        return overlaps(self, other)

    def __str__(self) -> str:
        return f"[{self.start.isoformat()}, {self.end.isoformat()})"


def overlaps(a: Interval, b: Interval) -> bool:
    """
    Half-open overlap test: ``a.start < b.end and b.start < a.end``.

    Adjacent intervals (``a.end == b.start``) do not overlap, so a return and
    the next checkout can share a timestamp. Degenerate bounds are rejected
    before comparing, even for objects that bypassed the constructor.
    """
    _check(a.start, a.end)
    _check(b.start, b.end)
    return a.start < b.end and b.start < a.end
