"""
Attendance arithmetic.

Everything here works on plain attendance rows (dicts with at least
``date`` and ``status``) so the routes can fetch once and aggregate in
memory. Percentages are whole numbers rounded half up, and ``late`` does
not count as present.
"""
import math
from collections import OrderedDict
from datetime import date, timedelta
from typing import Iterable, List, Optional, Tuple, Union

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

TREND_DEAD_BAND = 2
YEARS_OF_HISTORY = 5
COMPARISON_MONTHS = 6
TREND_WINDOW_DAYS = 30


def round_half_up(value: float) -> int:
    # round() would give banker's rounding: 62.5 -> 62
    return int(math.floor(value + 0.5))


def percentage(present: int, total: int) -> int:
    if total <= 0:
        return 0
    return round_half_up(present / total * 100)


def as_date(value: Union[str, date]) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def count(rows: Iterable[dict]) -> Tuple[int, int]:
    """(present, total) for the given rows."""
    present = total = 0
    for row in rows:
        total += 1
        if row.get("status") == "present":
            present += 1
    return present, total


def period_stats(period: str, rows: Iterable[dict]) -> dict:
    present, total = count(rows)
    return {"period": period, "present": present, "total": total, "percentage": percentage(present, total)}


def shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def monthly(rows: List[dict], year: int) -> List[dict]:
    """Twelve entries, Jan to Dec of the given year."""
    buckets = {m: [] for m in range(1, 13)}
    for row in rows:
        d = as_date(row["date"])
        if d.year == year:
            buckets[d.month].append(row)
    return [period_stats(MONTH_NAMES[m - 1], buckets[m]) for m in range(1, 13)]


def yearly(rows: List[dict], current_year: int) -> List[dict]:
    """The last five calendar years, oldest first."""
    years = [current_year - i for i in range(YEARS_OF_HISTORY - 1, -1, -1)]
    buckets = {y: [] for y in years}
    for row in rows:
        d = as_date(row["date"])
        if d.year in buckets:
            buckets[d.year].append(row)
    return [period_stats(str(y), buckets[y]) for y in years]


def month_percentage(rows: List[dict], year: int, month: int) -> int:
    return percentage(*count(r for r in rows if _in_month(r, year, month)))


def comparison(rows: List[dict], year: int, anchor_month: int) -> List[dict]:
    """
    Six months ending at anchor_month of the given year, oldest first.

    Each entry pairs the month's percentage with the same month a year earlier.
    """
    result = []
    for offset in range(COMPARISON_MONTHS - 1, -1, -1):
        y, m = shift_month(year, anchor_month, -offset)
        result.append({
            "period": f"{MONTH_NAMES[m - 1]} {y}",
            "current": month_percentage(rows, y, m),
            "previous": month_percentage(rows, y - 1, m),
        })
    return result


def trend(points: List[dict]) -> Tuple[str, int]:
    """
    Direction of the last step in a comparison series and its size.

    Moves of TREND_DEAD_BAND points or less count as stable.
    """
    if len(points) < 2:
        return "stable", 0
    diff = points[-1]["current"] - points[-2]["current"]
    if diff > TREND_DEAD_BAND:
        return "up", abs(diff)
    if diff < -TREND_DEAD_BAND:
        return "down", abs(diff)
    return "stable", abs(diff)


def best_month(months: List[dict]) -> Optional[dict]:
    with_data = [m for m in months if m["total"] > 0]
    if not with_data:
        return None
    best = with_data[0]
    for m in with_data[1:]:
        if m["percentage"] > best["percentage"]:
            best = m
    return best


def worst_month(months: List[dict]) -> Optional[dict]:
    with_data = [m for m in months if m["total"] > 0]
    if not with_data:
        return None
    worst = with_data[0]
    for m in with_data[1:]:
        if m["percentage"] < worst["percentage"]:
            worst = m
    return worst


def average_percentage(months: List[dict]) -> int:
    """Mean of the months that have any records; 0 when none do."""
    with_data = [m["percentage"] for m in months if m["total"] > 0]
    if not with_data:
        return 0
    return round_half_up(sum(with_data) / len(with_data))


def daily_trend(rows: List[dict], today: date, days: int = TREND_WINDOW_DAYS) -> List[dict]:
    """Per-date present/total over the last `days` days, in date order."""
    since = today - timedelta(days=days)
    grouped = OrderedDict()
    for row in sorted(rows, key=lambda r: as_date(r["date"])):
        d = as_date(row["date"])
        if d < since:
            continue
        grouped.setdefault(d, []).append(row)

    points = []
    for d, day_rows in grouped.items():
        present, total = count(day_rows)
        points.append({"date": d, "present": present, "total": total, "percentage": percentage(present, total)})
    return points


def _in_month(row: dict, year: int, month: int) -> bool:
    d = as_date(row["date"])
    return d.year == year and d.month == month
