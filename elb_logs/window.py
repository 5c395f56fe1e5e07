from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Iterable, List, Optional

# fromisoformat wants exactly 3 or 6 fraction digits before 3.11
_FRACTION_RE = re.compile(r"\.(\d+)(?=[+-]\d{2}:\d{2}$)")


@dataclass(frozen=True)
class ObjectCandidate:
    key: str
    last_modified: str


def parse_timestamp(value: str) -> Optional[datetime]:
    """
    Parse an RFC 3339 timestamp into an aware UTC datetime.

    Fractional seconds of any length are accepted and kept to microseconds.
    Values without an explicit offset are rejected, as is anything
    datetime.fromisoformat cannot read.
    """
    if not isinstance(value, str) or not value:
        return None
    text = value[:-1] + "+00:00" if value[-1] in "Zz" else value
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text)
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        return None
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class SelectionWindow:
    """
    Trailing window (now - lower_offset, now - upper_offset).

    Only the UTC time of day is compared, so the listing prefix is trusted to
    have pinned the calendar date already. A window that crosses midnight has
    after > until and selects nothing.
    """

    reference: datetime
    lower_offset: timedelta
    upper_offset: timedelta

    def __post_init__(self):
        if self.reference.tzinfo is None:
            raise ValueError("reference instant must be timezone aware")
        if self.upper_offset < timedelta(0):
            raise ValueError("upper offset must not be negative")
        if self.lower_offset <= self.upper_offset:
            raise ValueError("lower offset must be greater than upper offset")
        object.__setattr__(self, "reference", self.reference.astimezone(timezone.utc))

    @classmethod
    def trailing(cls, reference: datetime, lag_minutes: float, lookback_minutes: float) -> SelectionWindow:
        return cls(
            reference=reference,
            lower_offset=timedelta(minutes=lookback_minutes),
            upper_offset=timedelta(minutes=lag_minutes),
        )

    @property
    def after(self) -> datetime:
        return self.reference - self.lower_offset

    @property
    def until(self) -> datetime:
        return self.reference - self.upper_offset

    def contains_time(self, tod: time) -> bool:
        return self.after.time() < tod < self.until.time()

    def contains(self, instant: datetime) -> bool:
        return self.contains_time(instant.astimezone(timezone.utc).time())


def select_objects(candidates: Iterable[ObjectCandidate], window: SelectionWindow) -> List[ObjectCandidate]:
    selected = []
    for candidate in candidates:
        modified = parse_timestamp(candidate.last_modified)
        if modified is not None and window.contains(modified):
            selected.append(candidate)
    return selected
