"""Base contribution data, the sparse override layer and its undo history."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, Mapping

from grid_logic import (
    MAX_INTENSITY,
    is_future_date,
    level_for_count,
    parse_date,
    utc_today,
    year_dates,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DayRecord:
    """One day of the externally supplied base dataset."""

    date: date
    count: int = 0
    level: int = 0


@dataclass(frozen=True)
class ContributionDay:
    """A finalized ``{date, count}`` entry handed to export or synthesis."""

    date: str
    count: int

    def to_dict(self) -> dict:
        return {"date": self.date, "count": self.count}


@dataclass(frozen=True)
class SynthesisResult:
    """What a repository-synthesis collaborator reports back."""

    repo_path: str
    commit_count: int
    remote_url: str | None = None


def build_year_records(base: Iterable[DayRecord | Mapping], year: int) -> list[DayRecord]:
    """Return one DayRecord per day of ``year`` from a multi-year dataset.

    Entries may be DayRecords or ``{"date", "count", "level"}`` dicts. Days
    the dataset lacks are filled with zero so the result is contiguous.
    """
    by_date: dict[date, DayRecord] = {}
    for entry in base:
        if isinstance(entry, DayRecord):
            rec = entry
        else:
            d = parse_date(entry.get("date"))
            if d is None:
                logger.warning("Skipping base entry with malformed date: %r", entry)
                continue
            try:
                count = max(0, int(entry.get("count", 0) or 0))
                level = entry.get("level")
                level = level_for_count(count) if level is None else int(level)
            except (TypeError, ValueError):
                logger.warning("Skipping base entry with malformed count: %r", entry)
                continue
            rec = DayRecord(d, count, level)
        if rec.date.year == year:
            by_date[rec.date] = rec
    return [by_date.get(d, DayRecord(d)) for d in year_dates(year)]


class OverrideStore:
    """User-set intensities layered over an immutable base year.

    A key is only ever present with a strictly positive value; clearing a
    cell removes the key.
    """

    def __init__(self, records: list[DayRecord], year: int,
                 today: Callable[[], date] = utc_today) -> None:
        self.year = year
        self._today = today
        self._base: dict[date, DayRecord] = {r.date: r for r in records}
        self._overrides: dict[date, int] = {}

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def has_date(self, d: date) -> bool:
        return d in self._base

    def is_future(self, d: date) -> bool:
        return is_future_date(d, self.year, self._today())

    def is_paintable(self, d: date) -> bool:
        """True for a date of the displayed year that is not in the future."""
        return d in self._base and not self.is_future(d)

    def dates(self) -> list[date]:
        return list(self._base)

    def get(self, d: date) -> int | None:
        return self._overrides.get(d)

    def base_count(self, d: date) -> int:
        rec = self._base.get(d)
        return rec.count if rec else 0

    def effective_count(self, d: date) -> int:
        if d in self._overrides:
            return self._overrides[d]
        return self.base_count(d)

    def effective_level(self, d: date) -> int:
        if d in self._overrides:
            return level_for_count(self._overrides[d])
        rec = self._base.get(d)
        return rec.level if rec else 0

    def __contains__(self, d: date) -> bool:
        return d in self._overrides

    def __len__(self) -> int:
        return len(self._overrides)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def set(self, d: date, intensity: int) -> bool:
        """Write an override; non-positive values clear instead.

        Future dates and dates outside the displayed year are ignored.
        Returns True if the stored value changed.
        """
        if not self.is_paintable(d):
            return False
        if intensity <= 0:
            return self.clear(d)
        if self._overrides.get(d) == intensity:
            return False
        self._overrides[d] = intensity
        return True

    def clear(self, d: date) -> bool:
        return self._overrides.pop(d, None) is not None

    def reset_all(self) -> bool:
        if not self._overrides:
            return False
        self._overrides.clear()
        return True

    def fill_all(self) -> int:
        """Set every non-future day of the year to the maximum intensity."""
        changed = 0
        for d in self._base:
            if self.set(d, MAX_INTENSITY):
                changed += 1
        return changed

    def replace(self, entries: Iterable[tuple[date, int]]) -> int:
        """Wholesale replace the overrides; invalid entries are skipped."""
        self._overrides.clear()
        for d, count in entries:
            if count > 0 and self.is_paintable(d):
                self._overrides[d] = count
        return len(self._overrides)

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    def snapshot(self) -> dict[date, int]:
        return dict(self._overrides)

    def restore(self, snapshot: Mapping[date, int]) -> None:
        self._overrides = dict(snapshot)

    # ------------------------------------------------------------------
    # Boundary contracts
    # ------------------------------------------------------------------
    def finalize(self) -> list[ContributionDay]:
        """Effective ``{date, count}`` list for the year, painted days only."""
        return [
            ContributionDay(d.isoformat(), self.effective_count(d))
            for d in sorted(self._base)
            if self.effective_count(d) > 0
        ]

    def total(self) -> int:
        return sum(self.effective_count(d) for d in self._base)


def parse_contribution_list(items: Iterable) -> list[tuple[date, int]]:
    """Turn an imported ``[{date, count}, ...]`` list into typed pairs.

    Malformed rows are logged and skipped.
    """
    result: list[tuple[date, int]] = []
    for item in items:
        if isinstance(item, ContributionDay):
            raw_date, raw_count = item.date, item.count
        elif isinstance(item, Mapping):
            raw_date, raw_count = item.get("date"), item.get("count")
        else:
            logger.warning("Skipping malformed contribution row: %r", item)
            continue
        d = parse_date(raw_date)
        if d is None or isinstance(raw_count, bool) or not isinstance(raw_count, int):
            logger.warning("Skipping malformed contribution row: %r", item)
            continue
        result.append((d, raw_count))
    return result


class HistoryStack:
    """Two stacks of immutable override snapshots (past, future)."""

    def __init__(self, limit: int | None = None) -> None:
        self._past: list[dict[date, int]] = []
        self._future: list[dict[date, int]] = []
        self._limit = limit

    def push(self, snapshot: Mapping[date, int]) -> None:
        """Record the state before an edit; any redo branch is dropped."""
        self._past.append(dict(snapshot))
        if self._limit is not None and len(self._past) > self._limit:
            del self._past[0]
        self._future.clear()

    def undo(self, current: Mapping[date, int]) -> dict[date, int] | None:
        if not self._past:
            return None
        self._future.append(dict(current))
        return self._past.pop()

    def redo(self, current: Mapping[date, int]) -> dict[date, int] | None:
        if not self._future:
            return None
        self._past.append(dict(current))
        return self._future.pop()

    def clear(self) -> None:
        self._past.clear()
        self._future.clear()

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)
