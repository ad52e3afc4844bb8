"""Random "natural looking" fill of a date range."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from datetime import date, timedelta

from contributions import ContributionDay

MAX_PER_DAY = 10


@dataclass
class RandomPaintRequest:
    start_date: date
    end_date: date
    density: float = 0.7  # chance that an eligible day gets commits
    min_per_day: int = 1
    max_per_day: int = 3
    exclude_weekend: bool = True
    random_seed: int = 0  # 0 means unseeded


@dataclass
class RandomPaintResult:
    contributions: list[ContributionDay] = field(default_factory=list)
    total_days: int = 0
    active_days: int = 0
    total_commits: int = 0


def random_contributions(req: RandomPaintRequest) -> RandomPaintResult:
    """Roll a count for every day between the request's dates (inclusive)."""
    result = RandomPaintResult()
    if req.end_date < req.start_date:
        return result

    rng = random.Random(req.random_seed) if req.random_seed else random.Random()
    density = min(max(req.density, 0.0), 1.0)
    lo = min(max(req.min_per_day, 1), MAX_PER_DAY)
    hi = min(max(req.max_per_day, 1), MAX_PER_DAY)
    if lo > hi:
        lo, hi = hi, lo

    d = req.start_date
    while d <= req.end_date:
        result.total_days += 1
        eligible = not (req.exclude_weekend and d.weekday() >= 5)
        if eligible and rng.random() < density:
            count = rng.randint(lo, hi)
            result.contributions.append(ContributionDay(d.isoformat(), count))
            result.active_days += 1
            result.total_commits += count
        d += timedelta(days=1)
    return result
