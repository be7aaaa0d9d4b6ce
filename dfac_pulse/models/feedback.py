"""
Feedback record data model.

Represents one submitted DFAC survey response.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

RATING_FIELDS = ("customer_satisfaction", "food_quality", "cleanliness")

MEALS = ("breakfast", "lunch", "dinner")
STATIONS = ("breakfast", "asian", "southwest", "grill", "pizza", "deli")
RECOMMEND_CHOICES = ("yes", "no")

# Python attribute -> key used by the hosted store
WIRE_KEYS = {
    "timestamp": "timestamp",
    "customer_satisfaction": "customerSatisfaction",
    "food_quality": "foodQuality",
    "cleanliness": "cleanliness",
    "meal": "meal",
    "stations": "stations",
    "recommend": "recommend",
    "likes": "likes",
    "improvements": "improvements",
    "frequency": "frequency",
    "meal_card": "mealCard",
}


@dataclass(frozen=True)
class FeedbackRecord:
    """
    One survey response.

    Records read back from the store may be partially filled (older form
    variants), so rating fields are Optional here and only checked by
    validate() at submission time.
    """
    timestamp: str  # ISO-8601 instant of submission
    customer_satisfaction: Optional[int] = None  # 1-5 stars
    food_quality: Optional[int] = None  # 1-5 stars
    cleanliness: Optional[int] = None  # 1-5 stars
    meal: Optional[str] = None  # "breakfast", "lunch" or "dinner"
    stations: Tuple[str, ...] = field(default_factory=tuple)
    recommend: Optional[str] = None  # "yes", "no" or absent
    likes: str = ""
    improvements: str = ""
    frequency: Optional[str] = None
    meal_card: Optional[str] = None
    id: Optional[str] = None  # Assigned by the store on append

    def validate(self) -> None:
        """
        Check the invariants every persisted record must satisfy.

        Raises:
            ValueError: If a rating is missing or outside 1-5, or a
                categorical field holds an unknown value
        """
        for name in RATING_FIELDS:
            value = getattr(self, name)
            if not _is_number(value) or not (1 <= value <= 5):
                raise ValueError(f"Invalid {name}: {value!r}. Must be 1-5")

        if parse_timestamp(self.timestamp) is None:
            raise ValueError(f"Invalid timestamp: {self.timestamp!r}")

        if self.meal is not None and self.meal not in MEALS:
            raise ValueError(f"Invalid meal: {self.meal}. Must be one of {MEALS}")

        for station in self.stations:
            if station not in STATIONS:
                raise ValueError(f"Invalid station: {station}. Must be one of {STATIONS}")

        if self.recommend is not None and self.recommend not in RECOMMEND_CHOICES:
            raise ValueError(f"Invalid recommend: {self.recommend}. Must be 'yes' or 'no'")

    @property
    def submitted_at(self) -> Optional[datetime]:
        """Submission time as a naive local datetime, or None if unparsable."""
        return parse_timestamp(self.timestamp)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], record_id: Optional[str] = None) -> "FeedbackRecord":
        """Create FeedbackRecord from a store payload (camelCase keys)."""
        stations = data.get(WIRE_KEYS["stations"]) or ()
        if isinstance(stations, dict):
            # The hosted store turns arrays with gaps into objects
            stations = stations.values()
        if isinstance(stations, str):
            stations = (stations,)

        return cls(
            id=record_id if record_id is not None else data.get("id"),
            timestamp=str(data.get("timestamp", "")),
            customer_satisfaction=_coerce_rating(data.get(WIRE_KEYS["customer_satisfaction"])),
            food_quality=_coerce_rating(data.get(WIRE_KEYS["food_quality"])),
            cleanliness=_coerce_rating(data.get(WIRE_KEYS["cleanliness"])),
            meal=data.get(WIRE_KEYS["meal"]) or None,
            stations=tuple(str(s) for s in stations),
            recommend=data.get(WIRE_KEYS["recommend"]) or None,
            likes=data.get(WIRE_KEYS["likes"]) or "",
            improvements=data.get(WIRE_KEYS["improvements"]) or "",
            frequency=data.get(WIRE_KEYS["frequency"]) or None,
            meal_card=data.get(WIRE_KEYS["meal_card"]) or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable store payload. The id is not included."""
        data = {}
        for attr, key in WIRE_KEYS.items():
            value = getattr(self, attr)
            if attr == "stations":
                value = list(value)
            elif value is None:
                continue
            data[key] = value
        return data


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into a naive local datetime.

    Aware values (e.g. "2024-06-01T12:00:00.000Z") are converted to the local
    timezone; naive values are taken as already local. Returns None for
    anything unparsable.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _coerce_rating(value: Any) -> Optional[int]:
    if _is_number(value):
        return int(value) if float(value).is_integer() else value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None
