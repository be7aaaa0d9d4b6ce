"""
Theme data model.

Comments fed into theme extraction and the themes that come out of it.
Themes are derived per query and never persisted.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Comment:
    """A free-text comment with optional provenance."""
    text: str
    timestamp: Optional[str] = None  # ISO-8601, used for most-recent-first ordering
    record_id: Optional[str] = None


@dataclass(frozen=True)
class Theme:
    """
    A cluster of comments sharing a phrase or keyword.
    """
    label: str  # Key with first character capitalized (e.g., "Run out")
    key: str  # Matched phrase, keyword, first token or "general"
    count: int
    comments: List[str] = field(default_factory=list)  # Most recent first
    summary: Optional[str] = None  # Filled in by ThemeSummaryAgent

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "label": self.label,
            "key": self.key,
            "count": self.count,
            "comments": list(self.comments),
            "summary": self.summary,
        }
