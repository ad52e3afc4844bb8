"""Pure contribution-grid calculations, no UI dependencies."""

from datetime import date, datetime, timedelta, timezone

DAY_ABBR = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
MONTH_ABBR = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

MIN_YEAR = 2008
ROWS = 7
MAX_PATTERN_WIDTH = 52
# Labels need this many columns to stay readable
MONTH_LABEL_GAP = 3
MAX_LABEL_COLUMN = MAX_PATTERN_WIDTH - 1

# Discrete intensities the pen ladder walks through
INTENSITIES = (1, 3, 6, 9)
MAX_INTENSITY = 9


def utc_today() -> date:
    """Return today's calendar date in UTC."""
    return datetime.now(timezone.utc).date()


def current_year(today: date | None = None) -> int:
    return (today or utc_today()).year


def is_valid_year(year: int, today: date | None = None) -> bool:
    """Return True if the grid can display ``year`` (2008 … current year)."""
    return isinstance(year, int) and MIN_YEAR <= year <= current_year(today)


def level_for_count(count: int) -> int:
    """Map a contribution count to its 0–4 display level."""
    if count <= 0:
        return 0
    if count <= 2:
        return 1
    if count <= 5:
        return 2
    if count <= 8:
        return 3
    return 4


def first_day_offset(year: int) -> int:
    """Row of January 1 (Monday=0), i.e. the number of blank cells in column 0."""
    return date(year, 1, 1).weekday()


def to_grid(d: date, year: int) -> tuple[int, int]:
    """Return the (column, row) of ``d`` in the grid for ``year``.

    Row 0 is Monday, row 6 is Sunday. January 1 always lands in column 0.
    Dates outside ``year`` map to columns outside the year's range, which
    keeps ``from_grid`` an exact inverse.
    """
    days = (d - date(year, 1, 1)).days
    return (days + first_day_offset(year)) // 7, d.weekday()


def from_grid(column: int, row: int, year: int) -> date:
    """Inverse of :func:`to_grid`."""
    return date(year, 1, 1) + timedelta(days=column * 7 + row - first_day_offset(year))


def column_count(year: int) -> int:
    """Number of week columns the year spans (53 or 54)."""
    return to_grid(date(year, 12, 31), year)[0] + 1


def year_dates(year: int) -> list[date]:
    """Every calendar day of ``year`` in order."""
    start = date(year, 1, 1)
    n = (date(year + 1, 1, 1) - start).days
    return [start + timedelta(days=i) for i in range(n)]


def is_future_date(d: date, year: int, today: date | None = None) -> bool:
    """True only when ``year`` is the current year and ``d`` is tomorrow or later.

    Dates shown for past years are never future.
    """
    today = today or utc_today()
    if year != today.year:
        return False
    return d >= today + timedelta(days=1)


def month_labels(year: int) -> list[tuple[int, str]]:
    """Return ``[(column, "Jan"), ...]`` for the month header row.

    A label is anchored at each Monday whose month differs from the previous
    Monday's. Labels closer than ``MONTH_LABEL_GAP`` columns drop the earlier
    one, and a trailing label past ``MAX_LABEL_COLUMN`` is dropped.
    """
    labels: list[tuple[int, str]] = []
    latest_month = -1
    for d in year_dates(year):
        if d.weekday() != 0 or d.month == latest_month:
            continue
        latest_month = d.month
        labels.append((to_grid(d, year)[0], MONTH_ABBR[d.month - 1]))

    # January's first Monday may sit in column 1; pin it above the first column
    if labels and labels[0][1] == MONTH_ABBR[0]:
        labels[0] = (0, labels[0][1])

    kept: list[tuple[int, str]] = []
    for col, name in labels:
        if kept and col - kept[-1][0] < MONTH_LABEL_GAP:
            kept.pop()
        kept.append((col, name))

    if kept and kept[-1][0] > MAX_LABEL_COLUMN:
        kept.pop()
    return kept


def parse_date(value) -> date | None:
    """Parse an ISO ``YYYY-MM-DD`` string (or pass a date through).

    Returns None for anything malformed.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None
