"""
Survey Form Controller.

Holds survey form state as an immutable value and submits completed forms
to the record store.
"""

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import FrozenSet, List, Optional

from dfac_pulse.models.feedback import (
    MEALS,
    RATING_FIELDS,
    RECOMMEND_CHOICES,
    STATIONS,
    FeedbackRecord,
)
from dfac_pulse.utils.storage import StoreError

logger = logging.getLogger(__name__)

INCOMPLETE_MESSAGE = "Please provide all star ratings before submitting."
MISSING_MEAL_MESSAGE = "Please select which meal you are rating."
FAILURE_MESSAGE = "Failed to submit survey. Please try again."
SUCCESS_MESSAGE = "Thank you! Your feedback helps us serve you better."

TEXT_FIELDS = ("likes", "improvements")


@dataclass(frozen=True)
class SurveyForm:
    """
    Survey answers being filled in.

    Ratings use 0 for "not yet rated". Every with_* method returns a new
    form; the original is left untouched.
    """
    customer_satisfaction: int = 0
    food_quality: int = 0
    cleanliness: int = 0
    meal: Optional[str] = None
    stations: FrozenSet[str] = field(default_factory=frozenset)
    recommend: Optional[str] = None
    likes: str = ""
    improvements: str = ""
    frequency: Optional[str] = None
    meal_card: Optional[str] = None

    def with_rating(self, name: str, value: int) -> "SurveyForm":
        if name not in RATING_FIELDS:
            raise ValueError(f"Unknown rating: {name}. Must be one of {RATING_FIELDS}")
        if isinstance(value, bool) or not isinstance(value, int) or not (0 <= value <= 5):
            raise ValueError(f"Invalid rating: {value!r}. Must be 1-5 (0 clears it)")
        return dataclasses.replace(self, **{name: value})

    def with_meal(self, meal: Optional[str]) -> "SurveyForm":
        if meal is not None and meal not in MEALS:
            raise ValueError(f"Invalid meal: {meal}. Must be one of {MEALS}")
        return dataclasses.replace(self, meal=meal)

    def toggle_station(self, station: str) -> "SurveyForm":
        """Select the station, or deselect it if already selected."""
        if station not in STATIONS:
            raise ValueError(f"Invalid station: {station}. Must be one of {STATIONS}")
        return dataclasses.replace(self, stations=self.stations ^ {station})

    def with_recommend(self, answer: Optional[str]) -> "SurveyForm":
        if answer is not None and answer not in RECOMMEND_CHOICES:
            raise ValueError(f"Invalid recommend: {answer}. Must be 'yes' or 'no'")
        return dataclasses.replace(self, recommend=answer)

    def with_text(self, name: str, text: str) -> "SurveyForm":
        if name not in TEXT_FIELDS:
            raise ValueError(f"Unknown text field: {name}. Must be one of {TEXT_FIELDS}")
        return dataclasses.replace(self, **{name: text or ""})

    def with_frequency(self, frequency: Optional[str]) -> "SurveyForm":
        return dataclasses.replace(self, frequency=frequency or None)

    def with_meal_card(self, meal_card: Optional[str]) -> "SurveyForm":
        return dataclasses.replace(self, meal_card=meal_card or None)

    def missing_fields(self, require_meal: bool = True) -> List[str]:
        """Names of required fields not yet answered."""
        missing = [name for name in RATING_FIELDS if getattr(self, name) == 0]
        if require_meal and not self.meal:
            missing.append("meal")
        return missing

    def is_complete(self, require_meal: bool = True) -> bool:
        return not self.missing_fields(require_meal)

    def to_record(self, timestamp: str) -> FeedbackRecord:
        """Build the record to submit. Free text is trimmed."""
        return FeedbackRecord(
            timestamp=timestamp,
            customer_satisfaction=self.customer_satisfaction,
            food_quality=self.food_quality,
            cleanliness=self.cleanliness,
            meal=self.meal,
            stations=tuple(s for s in STATIONS if s in self.stations),
            recommend=self.recommend,
            likes=self.likes.strip(),
            improvements=self.improvements.strip(),
            frequency=self.frequency,
            meal_card=self.meal_card,
        )


@dataclass(frozen=True)
class SubmissionResult:
    success: bool
    message: str
    record_id: Optional[str] = None
    missing: List[str] = field(default_factory=list)


class SurveyFormController:
    """
    Validates a form and appends it to the record store.
    """

    def __init__(self, store, require_meal: bool = True):
        """
        Initialize survey controller.

        Args:
            store: Record store with an append(record) method
            require_meal: Whether a meal must be selected before submitting
        """
        self.store = store
        self.require_meal = require_meal

    def submit(self, form: SurveyForm, now: Optional[datetime] = None) -> SubmissionResult:
        """
        Submit a completed form.

        Incomplete forms are rejected without touching the store. Store
        failures are logged and reported; the caller keeps its form and can
        retry.

        Args:
            form: Form to submit
            now: Submission time (defaults to the current UTC time)

        Returns:
            SubmissionResult with the stored record id on success
        """
        missing = form.missing_fields(self.require_meal)
        if missing:
            message = INCOMPLETE_MESSAGE if any(m in RATING_FIELDS for m in missing) else MISSING_MEAL_MESSAGE
            logger.info(f"Rejected incomplete survey (missing: {', '.join(missing)})")
            return SubmissionResult(success=False, message=message, missing=missing)

        record = form.to_record(_iso_timestamp(now))

        try:
            record_id = self.store.append(record)
        except StoreError as e:
            logger.error(f"Error submitting survey: {e}")
            return SubmissionResult(success=False, message=FAILURE_MESSAGE)

        logger.info(f"Survey submitted: {record_id}")
        return SubmissionResult(success=True, message=SUCCESS_MESSAGE, record_id=record_id)


def _iso_timestamp(now: Optional[datetime]) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2024-06-01T12:00:00.000Z."""
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.astimezone()
    now = now.astimezone(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
