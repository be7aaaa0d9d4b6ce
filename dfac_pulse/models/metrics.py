"""
Metrics data model.

Derived, ephemeral views over a set of feedback records.
"""

from dataclasses import dataclass, field
from typing import Dict, List

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


@dataclass(frozen=True)
class DayStats:
    """Responses received on one weekday (Sunday=0)."""
    day: int
    name: str
    count: int
    averages: Dict[str, float] = field(default_factory=dict)  # field -> mean

    @property
    def overall(self) -> float:
        """Mean of the per-field means."""
        if not self.averages:
            return 0.0
        return sum(self.averages.values()) / len(self.averages)


@dataclass(frozen=True)
class RecommendStats:
    yes: int
    no: int
    percentage: int  # yes / (yes + no) * 100, rounded


@dataclass(frozen=True)
class MetricsSnapshot:
    """
    Everything the dashboard shows for one time window.
    """
    window: str
    generated_at: str  # ISO-8601 "now" the snapshot was computed for
    total_responses: int
    averages: Dict[str, float]
    overall_average: float
    trends: Dict[str, float]  # field -> % change vs previous window
    response_trend: float
    day_of_week: List[DayStats]
    best_days: List[DayStats]
    worst_days: List[DayStats]
    rating_distribution: Dict[int, int]
    meal_breakdown: Dict[str, int]
    station_breakdown: Dict[str, int]
    recommend: RecommendStats

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        def day_dict(day: DayStats) -> dict:
            return {
                "day": day.day,
                "name": day.name,
                "count": day.count,
                "averages": dict(day.averages),
                "overall": day.overall,
            }

        return {
            "window": self.window,
            "generated_at": self.generated_at,
            "total_responses": self.total_responses,
            "averages": dict(self.averages),
            "overall_average": self.overall_average,
            "trends": dict(self.trends),
            "response_trend": self.response_trend,
            "day_of_week": [day_dict(d) for d in self.day_of_week],
            "best_days": [day_dict(d) for d in self.best_days],
            "worst_days": [day_dict(d) for d in self.worst_days],
            "rating_distribution": {str(k): v for k, v in self.rating_distribution.items()},
            "meal_breakdown": dict(self.meal_breakdown),
            "station_breakdown": dict(self.station_breakdown),
            "recommend": {
                "yes": self.recommend.yes,
                "no": self.recommend.no,
                "percentage": self.recommend.percentage,
            },
        }
