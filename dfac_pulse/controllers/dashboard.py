"""
Dashboard Controller.

Composes metrics and themes for the admin dashboard per time window and tab.
"""

import hmac
import logging
from datetime import datetime
from typing import List, Optional

from dfac_pulse.analytics.aggregation import WINDOWS, MetricsAggregator, filter_by_window
from dfac_pulse.analytics.themes import ThemeExtractor, comments_from_records
from dfac_pulse.models.feedback import FeedbackRecord
from dfac_pulse.utils.storage import StoreError

logger = logging.getLogger(__name__)

TAB_OVERVIEW = "overview"
TAB_SCHEDULE = "schedule"
TAB_FEEDBACK = "feedback"
TAB_RESPONSES = "responses"
TABS = (TAB_OVERVIEW, TAB_SCHEDULE, TAB_FEEDBACK, TAB_RESPONSES)

THEME_FIELDS = ("improvements", "likes")


class DashboardController:
    """
    Admin dashboard state: the gate, the fetched records and the views.

    Holds the last successfully fetched record set. Views are recomputed
    from it on every call.
    """

    def __init__(
        self,
        store,
        admin_password: str = "",
        aggregator: Optional[MetricsAggregator] = None,
        extractor: Optional[ThemeExtractor] = None,
        summarizer=None
    ):
        """
        Initialize dashboard controller.

        Args:
            store: Record store with a fetch_all() method
            admin_password: Configured credential; empty admits nobody
            aggregator: Metrics aggregator (default settings if None)
            extractor: Theme extractor (built-in vocabulary if None)
            summarizer: Optional ThemeSummaryAgent for the feedback tab
        """
        self.store = store
        self._admin_password = admin_password or ""
        self.aggregator = aggregator or MetricsAggregator()
        self.extractor = extractor or ThemeExtractor()
        self.summarizer = summarizer

        self.authenticated = False
        self.loading = False
        self.records: List[FeedbackRecord] = []
        self.last_error: Optional[str] = None

    def authenticate(self, password: str) -> bool:
        """Check the admin password. Succeeds only if one is configured."""
        if not self._admin_password:
            logger.error("No admin password configured; dashboard access denied")
            self.authenticated = False
            return False

        self.authenticated = hmac.compare_digest(
            (password or "").encode("utf-8"),
            self._admin_password.encode("utf-8")
        )
        if not self.authenticated:
            logger.warning("Incorrect admin password")
        return self.authenticated

    def load(self) -> bool:
        """
        Fetch all records from the store.

        On failure the previous record set is kept and the error is kept in
        last_error.

        Returns:
            True if the fetch succeeded
        """
        self._require_authentication()
        self.loading = True
        try:
            records = self.store.fetch_all()
        except StoreError as e:
            logger.error(f"Error loading responses: {e}")
            self.last_error = str(e)
            return False
        finally:
            self.loading = False

        self.records = list(records)
        self.last_error = None
        logger.info(f"Loaded {len(self.records)} responses")
        return True

    def view(self, tab: str = TAB_OVERVIEW, window: str = "all", now: Optional[datetime] = None) -> dict:
        """
        Build the data for one dashboard tab.

        Args:
            tab: "overview", "schedule", "feedback" or "responses"
            window: "all", "current-week" or "current-month"
            now: Reference instant (defaults to the current local time)

        Returns:
            JSON-serializable dict for the tab

        Raises:
            PermissionError: If not authenticated
            ValueError: If tab or window is unknown
        """
        self._require_authentication()
        if tab not in TABS:
            raise ValueError(f"Invalid tab: {tab}. Must be one of {TABS}")
        if window not in WINDOWS:
            raise ValueError(f"Invalid window: {window}. Must be one of {WINDOWS}")

        now = now or datetime.now()
        result = {"tab": tab, "window": window, "error": self.last_error}

        if tab == TAB_OVERVIEW:
            snapshot = self.aggregator.snapshot(self.records, window, now).to_dict()
            result.update({
                key: snapshot[key]
                for key in (
                    "total_responses", "averages", "overall_average", "trends",
                    "response_trend", "rating_distribution", "recommend"
                )
            })

        elif tab == TAB_SCHEDULE:
            snapshot = self.aggregator.snapshot(self.records, window, now).to_dict()
            result.update({
                key: snapshot[key]
                for key in (
                    "total_responses", "day_of_week", "best_days", "worst_days",
                    "meal_breakdown", "station_breakdown"
                )
            })

        elif tab == TAB_FEEDBACK:
            selected = filter_by_window(self.records, window, now)
            result["themes"] = {
                field: [theme.to_dict() for theme in self._themes(selected, field)]
                for field in THEME_FIELDS
            }

        else:
            selected = filter_by_window(self.records, window, now)
            result["total_responses"] = len(selected)
            result["responses"] = [dict(r.to_dict(), id=r.id) for r in selected]

        return result

    def _themes(self, records: List[FeedbackRecord], field: str):
        themes = self.extractor.extract_top_themes(comments_from_records(records, field))
        if self.summarizer is not None and themes:
            themes = self.summarizer.summarize_all(themes)
        return themes

    def _require_authentication(self) -> None:
        if not self.authenticated:
            raise PermissionError("Admin authentication required")
