"""
Metrics Aggregator and Daily Trend Exporter.

Window filtering, averages, trends, day-of-week rollups and rating
histograms over feedback records. Every function here is pure: inputs are
never mutated and results depend only on the records and `now`.
"""

import json
import logging
import math
import os
from collections import Counter
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

import pandas as pd

from dfac_pulse.models.feedback import (
    MEALS,
    RATING_FIELDS,
    STATIONS,
    FeedbackRecord,
    parse_timestamp,
)
from dfac_pulse.models.metrics import DAY_NAMES, DayStats, MetricsSnapshot, RecommendStats

logger = logging.getLogger(__name__)

WINDOW_ALL = "all"
WINDOW_WEEK = "current-week"
WINDOW_MONTH = "current-month"
WINDOWS = (WINDOW_ALL, WINDOW_WEEK, WINDOW_MONTH)


def _validate_window(window: str) -> None:
    if window not in WINDOWS:
        raise ValueError(f"Invalid window: {window}. Must be one of {WINDOWS}")


def _resolve_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now()
    return parse_timestamp(now)


def _round_half_up(value: float, digits: int = 0) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


def _rating(record: FeedbackRecord, field: str) -> Optional[float]:
    value = getattr(record, field, None)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    return None


# ---------------------------------------------------------------------------
# Time windows
# ---------------------------------------------------------------------------

def window_bounds(window: str, now: Optional[datetime] = None) -> Optional[Tuple[datetime, datetime]]:
    """
    Start and end (inclusive) of a window.

    Args:
        window: "all", "current-week" or "current-month"
        now: Reference instant (defaults to the current local time)

    Returns:
        (start, now) for week/month, None for "all"
    """
    _validate_window(window)
    now = _resolve_now(now)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)

    if window == WINDOW_WEEK:
        # datetime.weekday() has Monday=0; weeks here start on Sunday
        days_since_sunday = (now.weekday() + 1) % 7
        return midnight - timedelta(days=days_since_sunday), now
    if window == WINDOW_MONTH:
        return midnight.replace(day=1), now
    return None


def previous_window_bounds(window: str, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    The window immediately before the current one, as [start, end).

    "current-week" -> the 7 days before this week's Sunday.
    "current-month" -> the previous calendar month.
    "all" has no predecessor, so it compares weeks.
    """
    _validate_window(window)
    now = _resolve_now(now)

    if window == WINDOW_MONTH:
        start, _ = window_bounds(WINDOW_MONTH, now)
        previous_end = start
        if start.month == 1:
            previous_start = start.replace(year=start.year - 1, month=12)
        else:
            previous_start = start.replace(month=start.month - 1)
        return previous_start, previous_end

    start, _ = window_bounds(WINDOW_WEEK, now)
    return start - timedelta(days=7), start


def filter_by_window(
    records: Sequence[FeedbackRecord],
    window: str,
    now: Optional[datetime] = None
) -> List[FeedbackRecord]:
    """
    Records whose timestamp falls inside the window, in input order.

    "all" returns every record, including ones with unparsable timestamps.
    """
    bounds = window_bounds(window, now)
    if bounds is None:
        return list(records)

    start, end = bounds
    selected = []
    for record in records:
        moment = parse_timestamp(record.timestamp)
        if moment is not None and start <= moment <= end:
            selected.append(record)
    return selected


def filter_previous_window(
    records: Sequence[FeedbackRecord],
    window: str,
    now: Optional[datetime] = None
) -> List[FeedbackRecord]:
    """Records in the window preceding `window` (see previous_window_bounds)."""
    start, end = previous_window_bounds(window, now)
    selected = []
    for record in records:
        moment = parse_timestamp(record.timestamp)
        if moment is not None and start <= moment < end:
            selected.append(record)
    return selected


# ---------------------------------------------------------------------------
# Averages and trends
# ---------------------------------------------------------------------------

def average(records: Sequence[FeedbackRecord], field: str) -> float:
    """
    Mean of a rating field over records where it is present and numeric.

    Returns 0 when no record has the field.
    """
    values = [v for v in (_rating(r, field) for r in records) if v is not None]
    if not values:
        return 0
    return sum(values) / len(values)


def overall_average(records: Sequence[FeedbackRecord]) -> float:
    """Mean of the three per-field averages."""
    return sum(average(records, f) for f in RATING_FIELDS) / len(RATING_FIELDS)


def _percent_change(current_value: float, previous_value: float, has_current: bool) -> float:
    if previous_value == 0:
        return 100.0 if has_current else 0.0
    change = (current_value - previous_value) / previous_value * 100
    return _round_half_up(change, 1)


def trend(
    current: Sequence[FeedbackRecord],
    previous: Sequence[FeedbackRecord],
    field: str
) -> float:
    """
    Percentage change of a field's average between two windows.

    Rounded to one decimal. With no baseline (previous average 0) this is
    100 if the current window has records and 0 otherwise.
    """
    return _percent_change(average(current, field), average(previous, field), len(current) > 0)


def count_trend(current: Sequence[FeedbackRecord], previous: Sequence[FeedbackRecord]) -> float:
    """Percentage change in the number of responses between two windows."""
    return _percent_change(len(current), len(previous), len(current) > 0)


# ---------------------------------------------------------------------------
# Day-of-week rollups
# ---------------------------------------------------------------------------

def day_of_week_breakdown(records: Sequence[FeedbackRecord]) -> List[DayStats]:
    """
    Per-weekday response count and field means (Sunday=0).

    Always returns 7 entries; days without records report zeros.
    """
    by_day = {day: [] for day in range(7)}
    for record in records:
        moment = parse_timestamp(record.timestamp)
        if moment is None:
            continue
        by_day[(moment.weekday() + 1) % 7].append(record)

    return [
        DayStats(
            day=day,
            name=DAY_NAMES[day],
            count=len(day_records),
            averages={f: average(day_records, f) for f in RATING_FIELDS}
        )
        for day, day_records in by_day.items()
    ]


def best_worst_days(
    breakdown: Sequence[DayStats],
    k: int = 3
) -> Tuple[List[DayStats], List[DayStats]]:
    """
    Highest and lowest rated weekdays.

    Days with no records are left out. The worst list is ordered lowest
    first, so its first entry needs the most improvement.

    Returns:
        (best, worst), each at most k long
    """
    ranked = sorted(
        (day for day in breakdown if day.count > 0),
        key=lambda day: day.overall,
        reverse=True
    )
    best = ranked[:k]
    worst = list(reversed(ranked[-k:])) if k > 0 else []
    return best, worst


# ---------------------------------------------------------------------------
# Distributions and categorical counts
# ---------------------------------------------------------------------------

def rating_distribution(records: Sequence[FeedbackRecord]) -> Dict[int, int]:
    """
    Histogram of each record's rounded mean rating.

    Only records with all three ratings count. Ties round up (4.5 -> 5);
    means below 1 from legacy zero ratings land in bucket 1.
    Buckets with no records are omitted.
    """
    buckets = Counter()
    for record in records:
        ratings = [_rating(record, f) for f in RATING_FIELDS]
        if any(r is None for r in ratings):
            continue
        bucket = min(5, max(1, int(_round_half_up(sum(ratings) / len(ratings)))))
        buckets[bucket] += 1
    return {bucket: buckets[bucket] for bucket in range(1, 6) if buckets[bucket]}


def meal_breakdown(records: Sequence[FeedbackRecord]) -> Dict[str, int]:
    """Responses per meal. Known meals are always present."""
    counts = Counter({meal: 0 for meal in MEALS})
    counts.update(r.meal for r in records if r.meal)
    return dict(counts)


def station_breakdown(records: Sequence[FeedbackRecord]) -> Dict[str, int]:
    """Mentions per station; a record counts once for each station it lists."""
    counts = Counter({station: 0 for station in STATIONS})
    for record in records:
        counts.update(record.stations or ())
    return dict(counts)


def recommend_stats(records: Sequence[FeedbackRecord]) -> RecommendStats:
    """Yes/no counts and the rounded share of yes answers."""
    yes = sum(1 for r in records if r.recommend == "yes")
    no = sum(1 for r in records if r.recommend == "no")
    answered = yes + no
    percentage = int(_round_half_up(yes / answered * 100)) if answered else 0
    return RecommendStats(yes=yes, no=no, percentage=percentage)


# ---------------------------------------------------------------------------
# Per-day table
# ---------------------------------------------------------------------------

DAILY_COLUMNS = ["date", "responses"] + list(RATING_FIELDS) + ["overall"]


def daily_averages(records: Sequence[FeedbackRecord]) -> pd.DataFrame:
    """
    One row per calendar day: response count and per-field means.

    Records without a parsable timestamp are skipped. Days are sorted
    ascending; means with no data are 0.
    """
    rows = []
    for record in records:
        moment = parse_timestamp(record.timestamp)
        if moment is None:
            continue
        row = {"date": moment.date().isoformat()}
        for f in RATING_FIELDS:
            row[f] = _rating(record, f)
        rows.append(row)

    if not rows:
        return pd.DataFrame(columns=DAILY_COLUMNS)

    df = pd.DataFrame(rows)
    for f in RATING_FIELDS:
        df[f] = pd.to_numeric(df[f], errors="coerce")

    grouped = df.groupby("date", sort=True)
    table = grouped[list(RATING_FIELDS)].mean().fillna(0)
    table["responses"] = grouped.size()
    table["overall"] = table[list(RATING_FIELDS)].mean(axis=1)
    table = table.reset_index()

    return table[DAILY_COLUMNS]


class MetricsAggregator:
    """
    Builds a MetricsSnapshot for one window.
    """

    def __init__(self, best_worst_k: int = 3):
        """
        Initialize metrics aggregator.

        Args:
            best_worst_k: Number of best and worst weekdays to report
        """
        self.best_worst_k = best_worst_k

    def snapshot(
        self,
        records: Sequence[FeedbackRecord],
        window: str = WINDOW_ALL,
        now: Optional[datetime] = None
    ) -> MetricsSnapshot:
        """
        Compute every dashboard metric for a window.

        Args:
            records: All fetched records (any order)
            window: "all", "current-week" or "current-month"
            now: Reference instant (defaults to the current local time)

        Returns:
            MetricsSnapshot for the records inside the window
        """
        now = _resolve_now(now)
        current = filter_by_window(records, window, now)

        # "all" has no predecessor; trends compare this week with last week
        trend_window = WINDOW_WEEK if window == WINDOW_ALL else window
        trend_current = filter_by_window(records, trend_window, now)
        trend_previous = filter_previous_window(records, trend_window, now)

        breakdown = day_of_week_breakdown(current)
        best, worst = best_worst_days(breakdown, self.best_worst_k)

        logger.debug(
            f"Snapshot for {window}: {len(current)} of {len(records)} records, "
            f"{len(trend_previous)} in previous window"
        )

        return MetricsSnapshot(
            window=window,
            generated_at=now.isoformat(),
            total_responses=len(current),
            averages={f: average(current, f) for f in RATING_FIELDS},
            overall_average=overall_average(current),
            trends={f: trend(trend_current, trend_previous, f) for f in RATING_FIELDS},
            response_trend=count_trend(trend_current, trend_previous),
            day_of_week=breakdown,
            best_days=best,
            worst_days=worst,
            rating_distribution=rating_distribution(current),
            meal_breakdown=meal_breakdown(current),
            station_breakdown=station_breakdown(current),
            recommend=recommend_stats(current),
        )


class DailyTrendExporter:
    """
    Writes the per-day table for a window to CSV with a metadata sidecar.
    """

    def __init__(self, output_dir: str = "output"):
        """
        Initialize exporter.

        Args:
            output_dir: Directory to save CSV output
        """
        self.output_dir = output_dir

    def export(
        self,
        records: Sequence[FeedbackRecord],
        window: str = WINDOW_ALL,
        now: Optional[datetime] = None
    ) -> str:
        """
        Export daily averages.

        Args:
            records: All fetched records
            window: Window to export
            now: Reference instant (defaults to the current local time)

        Returns:
            Path to generated CSV file
        """
        now = _resolve_now(now)
        selected = filter_by_window(records, window, now)
        df = daily_averages(selected)

        os.makedirs(self.output_dir, exist_ok=True)
        stem = f"daily_{window}_{now.strftime('%Y-%m-%d')}"
        output_path = os.path.join(self.output_dir, f"{stem}.csv")
        df.to_csv(output_path, index=False)

        logger.info(f"Daily trend table saved to {output_path} ({len(df)} days, {len(selected)} responses)")

        metadata_path = os.path.join(self.output_dir, f"{stem}_metadata.json")
        metadata = {
            "window": window,
            "reference_time": now.isoformat(),
            "date_range": {
                "start": df["date"].iloc[0] if len(df) else None,
                "end": df["date"].iloc[-1] if len(df) else None
            },
            "days_with_responses": len(df),
            "total_responses": len(selected),
            "generated_at": datetime.utcnow().isoformat() + "Z"
        }
        with open(metadata_path, 'w') as f:
            json.dump(metadata, f, indent=2)

        logger.info(f"Metadata saved to {metadata_path}")

        return output_path
