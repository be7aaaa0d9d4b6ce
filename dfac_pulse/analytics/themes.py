"""
Theme Extractor.

Groups free-text comments into labeled themes by shared phrase or keyword.
"""

import logging
import re
from collections import OrderedDict
from typing import Iterable, List, Optional, Sequence, Union

from dfac_pulse.analytics.vocabulary import DEFAULT_VOCABULARY, ThemeVocabulary
from dfac_pulse.models.feedback import FeedbackRecord, parse_timestamp
from dfac_pulse.models.theme import Comment, Theme

logger = logging.getLogger(__name__)

GENERAL_KEY = "general"

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def comments_from_records(records: Iterable[FeedbackRecord], field: str) -> List[Comment]:
    """
    Collect one free-text field across records.

    Args:
        records: Feedback records (any order)
        field: "likes" or "improvements"

    Returns:
        Non-empty comments with their timestamps and record ids
    """
    comments = []
    for record in records:
        text = getattr(record, field, None)
        if isinstance(text, str) and text.strip():
            comments.append(Comment(text=text, timestamp=record.timestamp, record_id=record.id))
    return comments


class ThemeExtractor:
    """
    Clusters comments into themes without a statistical model.

    Every comment's theme is traceable to one explicit match:
    1. A domain phrase contained in the text (e.g., "ran out" -> "run out")
    2. The first token that is a domain keyword
    3. The first token left after stop-word removal
    4. "general" when nothing is left
    """

    def __init__(
        self,
        vocabulary: Optional[ThemeVocabulary] = None,
        min_characters: int = 6,
        min_token_length: int = 3,
        max_themes: int = 5
    ):
        """
        Initialize theme extractor.

        Args:
            vocabulary: Stop-words, keywords and phrases (built-in defaults if None)
            min_characters: Comments with fewer non-whitespace characters are dropped
            min_token_length: Tokens shorter than this are dropped
            max_themes: Number of themes returned by extract_top_themes()
        """
        self.vocabulary = DEFAULT_VOCABULARY if vocabulary is None else vocabulary
        self.min_characters = min_characters
        self.min_token_length = min_token_length
        self.max_themes = max_themes

        self._keywords = self.vocabulary.keyword_set
        self._phrases = self.vocabulary.phrase_variants()

    def is_meaningful(self, text: str) -> bool:
        """True if the comment has enough non-whitespace characters."""
        return len(_WHITESPACE.sub("", text or "")) >= self.min_characters

    def tokenize(self, text: str) -> List[str]:
        """Lowercase, strip punctuation, split, drop short tokens and stop-words."""
        cleaned = _PUNCTUATION.sub("", text.lower())
        return [
            token for token in cleaned.split()
            if len(token) >= self.min_token_length
            and token not in self.vocabulary.stop_words
        ]

    def match_phrase(self, text: str) -> Optional[str]:
        """
        Canonical key of the phrase found earliest in the text.

        Longer variants win when two start at the same position.
        """
        lowered = text.lower()
        best = None  # (position, -length, key)
        for variant, key in self._phrases:
            position = lowered.find(variant)
            if position == -1:
                continue
            candidate = (position, -len(variant), key)
            if best is None or candidate[:2] < best[:2]:
                best = candidate
        return best[2] if best else None

    def group_key(self, text: str) -> str:
        """Theme key for one comment."""
        phrase = self.match_phrase(text)
        if phrase:
            return phrase

        tokens = self.tokenize(text)
        for token in tokens:
            if token in self._keywords:
                return token

        if tokens:
            return tokens[0]
        return GENERAL_KEY

    def group(self, comments: Sequence[Union[str, Comment]]) -> List[Theme]:
        """
        Group every meaningful comment, largest group first.

        Args:
            comments: Plain strings or Comment values

        Returns:
            All themes ranked by count (ties keep first-seen order)
        """
        groups = OrderedDict()
        dropped = 0

        for position, item in enumerate(comments):
            comment = item if isinstance(item, Comment) else Comment(text=str(item))
            if not self.is_meaningful(comment.text):
                dropped += 1
                continue
            key = self.group_key(comment.text)
            groups.setdefault(key, []).append((position, comment))

        themes = [
            Theme(
                label=_capitalize(key),
                key=key,
                count=len(members),
                comments=[c.text for c in _most_recent_first(members)]
            )
            for key, members in groups.items()
        ]
        themes.sort(key=lambda t: t.count, reverse=True)

        logger.debug(
            f"Grouped {len(comments) - dropped} comments into {len(themes)} themes "
            f"({dropped} too short)"
        )
        return themes

    def extract_top_themes(
        self,
        comments: Sequence[Union[str, Comment]],
        limit: Optional[int] = None
    ) -> List[Theme]:
        """
        Top themes for a set of comments.

        Args:
            comments: Plain strings or Comment values
            limit: Number of themes to return (defaults to max_themes)

        Returns:
            Up to `limit` themes, largest first
        """
        limit = self.max_themes if limit is None else limit
        return self.group(comments)[:limit]


def _capitalize(key: str) -> str:
    return key[:1].upper() + key[1:]


def _most_recent_first(members) -> List[Comment]:
    """Timestamped comments newest first, then the rest in input order."""
    dated = []
    undated = []
    for position, comment in members:
        moment = parse_timestamp(comment.timestamp)
        if moment is None:
            undated.append(comment)
        else:
            dated.append((moment, -position, comment))
    dated.sort(key=lambda entry: entry[:2], reverse=True)
    return [entry[2] for entry in dated] + undated
