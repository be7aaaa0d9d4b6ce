"""
Theme vocabulary.

Stop-words, domain keywords and domain phrases used by theme extraction,
loaded from JSON so they can be tuned without code changes.
"""

import json
import os
import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ThemeVocabulary:
    """
    Word lists for theme extraction.

    keywords maps a category (food, service, facility...) to its tokens.
    phrases maps a canonical phrase key to the variants that select it.
    """
    stop_words: FrozenSet[str] = field(default_factory=frozenset)
    keywords: Dict[str, FrozenSet[str]] = field(default_factory=dict)
    phrases: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    version: str = "1.0.0"

    @property
    def keyword_set(self) -> FrozenSet[str]:
        """All keywords regardless of category."""
        merged = set()
        for tokens in self.keywords.values():
            merged.update(tokens)
        return frozenset(merged)

    def category_of(self, keyword: str) -> Optional[str]:
        """Category a keyword belongs to, or None."""
        for category, tokens in self.keywords.items():
            if keyword in tokens:
                return category
        return None

    def phrase_variants(self) -> List[Tuple[str, str]]:
        """(variant, canonical key) pairs, each key also matching itself."""
        pairs = []
        for key, variants in self.phrases.items():
            seen = set()
            for variant in (key,) + tuple(variants):
                variant = variant.lower()
                if variant not in seen:
                    seen.add(variant)
                    pairs.append((variant, key))
        return pairs

    @classmethod
    def from_dict(cls, data: dict) -> "ThemeVocabulary":
        """Create ThemeVocabulary from JSON dict."""
        phrases = data.get("phrases", {})
        if isinstance(phrases, list):
            # Flat list: every phrase is its own key
            phrases = {p: [p] for p in phrases}

        return cls(
            stop_words=frozenset(w.lower() for w in data.get("stop_words", [])),
            keywords={
                category: frozenset(w.lower() for w in words)
                for category, words in data.get("keywords", {}).items()
            },
            phrases={
                key.lower(): tuple(v.lower() for v in variants)
                for key, variants in phrases.items()
            },
            version=data.get("version", "1.0.0"),
        )

    def to_dict(self) -> dict:
        """Convert to JSON-serializable dict."""
        return {
            "version": self.version,
            "stop_words": sorted(self.stop_words),
            "keywords": {c: sorted(t) for c, t in self.keywords.items()},
            "phrases": {k: list(v) for k, v in self.phrases.items()},
        }

    @classmethod
    def load(cls, path: str) -> "ThemeVocabulary":
        """
        Load vocabulary from disk.

        Sections present in the file replace the built-in ones; missing
        sections keep the defaults. A missing or unreadable file yields
        DEFAULT_VOCABULARY.

        Args:
            path: Path to theme_vocabulary.json
        """
        if not os.path.exists(path):
            logger.warning(f"No theme vocabulary found at {path}, using built-in defaults")
            return DEFAULT_VOCABULARY

        try:
            with open(path, 'r') as f:
                data = json.load(f)
            merged = dict(DEFAULT_VOCABULARY_DATA)
            merged.update(data)
            vocabulary = cls.from_dict(merged)
        except (OSError, ValueError, AttributeError, TypeError) as e:
            logger.error(f"Failed to load theme vocabulary from {path}: {e}. Using built-in defaults")
            return DEFAULT_VOCABULARY

        logger.info(
            f"Loaded theme vocabulary v{vocabulary.version}: "
            f"{len(vocabulary.stop_words)} stop-words, "
            f"{len(vocabulary.keyword_set)} keywords, "
            f"{len(vocabulary.phrases)} phrases"
        )
        return vocabulary


# Built-in word lists; config/theme_vocabulary.json overrides them section by section
DEFAULT_VOCABULARY_DATA = {
    "version": "1.0.0",
    "stop_words": [
        "the", "and", "for", "with", "that", "this", "they", "them", "their", "there",
        "you", "your", "our", "are", "was", "were", "been", "being", "have", "has",
        "had", "but", "not", "all", "any", "can", "could", "would", "should", "will",
        "just", "also", "from", "into", "about", "than", "then", "when", "what",
        "which", "who", "how", "its", "out", "off", "too", "very", "really", "more",
        "most", "much", "some", "get", "got", "getting", "make", "made", "like",
        "want", "need", "needs", "please", "one", "lot", "lots", "always",
        "never", "again", "still", "even", "every", "here", "over", "only", "other",
        "great", "good", "nice", "awesome", "amazing", "best", "better", "bad",
        "well", "love", "thing", "things", "stuff", "dfac", "fast", "keep", "times",
    ],
    "keywords": {
        "food": [
            "food", "chicken", "rice", "eggs", "egg", "bacon", "pancakes", "waffles",
            "pizza", "burgers", "burger", "fries", "salad", "vegetables", "veggies",
            "fruit", "dessert", "desserts", "meat", "steak", "pasta", "sandwich",
            "sandwiches", "soup", "coffee", "juice", "milk", "cereal", "portions",
            "portion", "seasoning", "flavor", "taste", "menu", "options", "variety",
            "protein", "tacos", "omelet", "omelets", "sauce", "bread",
        ],
        "service": [
            "service", "staff", "cooks", "cook", "workers", "friendly", "rude",
            "slow", "quick", "helpful", "attitude", "wait", "speed", "hours",
            "served", "serving",
        ],
        "facility": [
            "line", "lines", "clean", "cleanliness", "dirty", "tables", "table",
            "seating", "seats", "chairs", "trash", "music", "temperature", "napkins",
            "utensils", "trays", "bathroom", "floor", "floors", "atmosphere", "tvs",
        ],
        "quality": [
            "cold", "hot", "fresh", "stale", "bland", "salty", "greasy", "undercooked",
            "overcooked", "raw", "dry", "healthy", "quality",
        ],
    },
    "phrases": {
        "run out": ["run out", "runs out", "ran out", "running out"],
        "long line": ["long line", "long lines", "line is long", "lines are long"],
        "friendly staff": ["friendly staff", "staff is friendly", "staff are friendly", "staff was friendly"],
        "rude staff": ["rude staff", "staff is rude", "staff are rude", "staff was rude"],
        "more options": ["more options", "more variety", "more choices"],
        "cold food": ["cold food", "food is cold", "food was cold"],
        "hot food": ["hot food", "food is hot", "food was hot"],
        "portion size": ["portion size", "portion sizes", "bigger portions", "larger portions"],
        "dirty tables": ["dirty tables", "tables are dirty", "tables were dirty"],
        "hours of operation": ["hours of operation", "open later", "longer hours"],
        "healthy options": ["healthy options", "healthier options", "healthier food"],
    },
}

DEFAULT_VOCABULARY = ThemeVocabulary.from_dict(DEFAULT_VOCABULARY_DATA)
