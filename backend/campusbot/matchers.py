#!/usr/bin/env python3
"""
Category matchers
One generic ranked matcher, parameterized per category, with pluggable scoring strategies
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .classifier import (
    CATEGORY_TRIGGERS,
    LISTING_CUES,
    QUESTION_STOPWORDS,
    content_terms,
    extract_keywords,
    has_any_cue,
    has_cue,
    is_menu_request,
)
from .similarity import similarity
from .telemetry import log_event

GENERAL_THRESHOLD = 0.1
GENERAL_LIMIT = 100

# Never scored: identifiers and bookkeeping
SKIP_FIELDS = frozenset(["id", "createdAt", "updatedAt", "score"])

LABEL_FIELDS: Dict[str, Tuple[str, ...]] = {
    "events": ("title", "name", "Event_Name", "Title"),
    "clubs": ("name", "Club_Name"),
    "facilities": ("name",),
    "faqs": ("question",),
    "academic_info": ("title",),
    "canteen_items": ("name", "itemName"),
}

# Per-record failures that are tolerated (skip the record, keep matching)
RECORD_ERRORS = (TypeError, AttributeError, ValueError, KeyError)


def label_of(record: Dict[str, Any], fields: Sequence[str]) -> str:
    """First non-empty label field, as a string."""
    for name in fields:
        value = record.get(name)
        if value is not None and str(value).strip():
            return str(value)
    return ""


def cascade_score(query_lower: str, field_lower: str) -> float:
    """Exact > field contains query > query contains field > fuzzy."""
    if not field_lower:
        return 0.0
    if field_lower == query_lower:
        return 1.0
    if query_lower and query_lower in field_lower:
        return 0.95
    if len(field_lower) > 2 and field_lower in query_lower:
        return 0.85
    return similarity(query_lower, field_lower)


def substring_fallback(query: str, records: Sequence[Dict], label_fields: Sequence[str], limit: int) -> List[Dict]:
    """
    Last resort when nothing scored: records whose label contains any
    meaningful query token (longer than two characters).
    """
    tokens = [t for t in extract_keywords(query) if len(t) > 2 and t not in QUESTION_STOPWORDS]
    if not tokens:
        return []

    out = []
    for record in records:
        try:
            label = label_of(record, label_fields).lower()
            if label and any(tok in label for tok in tokens):
                out.append({**record, "score": 0.0})
        except RECORD_ERRORS as e:
            log_event("record_skipped", stage="substring_fallback", error=str(e))
            continue
        if len(out) >= limit:
            break
    return out


class BaseScorer(ABC):
    """Base class for record scorers"""

    @abstractmethod
    def score(self, query: str, keywords: List[str], record: Dict, threshold: float) -> float:
        """
        Score one record against the query; 0 means no match
        """
        pass


class FieldSimilarityScorer(BaseScorer):
    """
    Keyword-vs-field similarity, summed over every string field.
    Only comparisons above the threshold contribute.
    """

    def score(self, query: str, keywords: List[str], record: Dict, threshold: float) -> float:
        total = 0.0
        for key, value in record.items():
            if key in SKIP_FIELDS or not isinstance(value, str):
                continue
            for keyword in keywords:
                s = similarity(keyword, value)
                if s > threshold:
                    total += s
        return total


class ExactCascadeScorer(BaseScorer):
    """
    Whole-query comparison against the label and description fields.
    Proper nouns (event names, menu items) match better by substring than by
    per-keyword fuzziness.
    """

    def __init__(self, label_fields: Sequence[str], text_fields: Sequence[str] = ("description",)):
        self.label_fields = tuple(label_fields)
        self.text_fields = tuple(text_fields)

    def score(self, query: str, keywords: List[str], record: Dict, threshold: float) -> float:
        query_lower = query.lower().strip()
        values = [label_of(record, self.label_fields)]
        values += [record.get(name) for name in self.text_fields]

        best = 0.0
        for value in values:
            if not isinstance(value, str):
                continue
            best = max(best, cascade_score(query_lower, value.lower().strip()))
        return best


@dataclass
class MatcherConfig:
    category: str
    label_fields: Tuple[str, ...]
    listing_cues: Tuple[str, ...]
    specific_threshold: float
    specific_limit: int
    scorer: BaseScorer
    general_threshold: float = GENERAL_THRESHOLD
    general_limit: int = GENERAL_LIMIT


class CategoryMatcher:
    """
    Ranks a category snapshot against a query.

    "general" queries (listing cues present) get a low threshold and a high
    limit; "specific" queries get the category's tighter pair.
    """

    def __init__(self, config: MatcherConfig):
        self.config = config

    @property
    def category(self) -> str:
        return self.config.category

    def is_general(self, query: str) -> bool:
        return has_any_cue(query, self.config.listing_cues)

    def threshold_and_limit(self, query: str) -> Tuple[float, int]:
        cfg = self.config
        if self.is_general(query):
            return cfg.general_threshold, cfg.general_limit
        return cfg.specific_threshold, cfg.specific_limit

    def match(self, query: str, records: Sequence[Dict]) -> List[Dict]:
        general = self.is_general(query)
        threshold, limit = self.threshold_and_limit(query)

        # "show all clubs": nothing narrows the request, list the whole category
        if general and not content_terms(query):
            listed = [{**r, "score": 1.0} for r in records if isinstance(r, dict)]
            return listed[:limit]

        keywords = extract_keywords(query)
        scored = []
        for record in records:
            try:
                s = self.config.scorer.score(query, keywords, record, threshold)
                if s > 0 and s >= threshold:
                    scored.append({**record, "score": s})
            except RECORD_ERRORS as e:
                log_event("record_skipped", category=self.category, error=str(e))
                continue

        scored.sort(key=lambda r: r["score"], reverse=True)
        results = scored[:limit]
        if not results:
            results = substring_fallback(query, records, self.config.label_fields, limit)

        log_event(
            "category_matched",
            category=self.category,
            mode="general" if general else "specific",
            candidates=len(records),
            returned=len(results),
        )
        return results


def find_event_match(query: str, events: Sequence[Dict]) -> Optional[Dict]:
    """
    Single best event by name, or None.

    Priority: exact name == query, then every meaningful query word is in the
    name (or every name word is in the query), then similarity > 0.5.
    """
    if not query or not events:
        return None

    q_words = extract_keywords(query)
    q_phrase = " ".join(q_words)
    q_set = set(q_words)
    content = [
        w for w in q_words
        if w not in QUESTION_STOPWORDS and w not in CATEGORY_TRIGGERS["events"]
    ]

    named = []
    for event in events:
        try:
            name_words = extract_keywords(label_of(event, LABEL_FIELDS["events"]))
        except RECORD_ERRORS as e:
            log_event("record_skipped", category="events", error=str(e))
            continue
        if name_words:
            named.append((event, name_words))

    # 1) exact
    for event, name_words in named:
        if " ".join(name_words) == q_phrase:
            return {**event, "score": 1.0}

    # 2) word containment; tightest name wins
    contained = []
    for event, name_words in named:
        name_set = set(name_words)
        if (content and all(w in name_set for w in content)) or name_set <= q_set:
            contained.append((len(name_set), event))
    if contained:
        contained.sort(key=lambda pair: pair[0])
        return {**contained[0][1], "score": 0.9}

    # 3) fuzzy
    best, best_score = None, 0.0
    for event, name_words in named:
        s = similarity(q_phrase, " ".join(name_words))
        if s > best_score:
            best, best_score = event, s
    if best is not None and best_score > 0.5:
        return {**best, "score": best_score}
    return None


class EventMatcher(CategoryMatcher):
    """Tries find_event_match() first for specific queries."""

    def match(self, query: str, records: Sequence[Dict]) -> List[Dict]:
        if not self.is_general(query):
            hit = find_event_match(query, records)
            if hit is not None:
                log_event("event_direct_hit", title=label_of(hit, self.config.label_fields), score=hit["score"])
                return [hit]
        return super().match(query, records)


def find_canteen_matches(query: str, items: Sequence[Dict], limit: int = 5) -> List[Dict]:
    """
    Narrow canteen items to the one the user asked about.

    Menu/"all" queries keep up to `limit` items; anything else keeps the best one.
    """
    if not query or not items:
        return []

    query_lower = query.lower().strip()
    scored = []
    for item in items:
        try:
            name = label_of(item, LABEL_FIELDS["canteen_items"]).lower().strip()
            desc = str(item.get("description") or "").lower().strip()
            if name and name == query_lower:
                score = 1.0
            elif name and query_lower in name:
                score = 0.95
            elif len(name) > 2 and name in query_lower:
                score = 0.85
            else:
                name_score = similarity(query_lower, name) if name else 0.0
                desc_score = similarity(query_lower, desc) if desc else 0.0
                score = max(name_score, desc_score)
        except RECORD_ERRORS as e:
            log_event("record_skipped", category="canteen_items", error=str(e))
            continue
        scored.append({**item, "score": score})

    is_general = is_menu_request(query) or has_cue(query, "all")
    result_limit = limit if is_general else 1

    results = sorted(
        (i for i in scored if i["score"] > 0.3),
        key=lambda i: i["score"],
        reverse=True,
    )[:result_limit]

    if not results:
        return substring_fallback(query, items, LABEL_FIELDS["canteen_items"], result_limit)
    return results


def _config(category: str, threshold: float, limit: int, scorer: BaseScorer) -> MatcherConfig:
    return MatcherConfig(
        category=category,
        label_fields=LABEL_FIELDS[category],
        listing_cues=LISTING_CUES[category],
        specific_threshold=threshold,
        specific_limit=limit,
        scorer=scorer,
    )


MATCHER_CONFIGS: Dict[str, MatcherConfig] = {
    "events": _config("events", 0.3, 5, ExactCascadeScorer(LABEL_FIELDS["events"])),
    "clubs": _config("clubs", 0.3, 1, FieldSimilarityScorer()),
    "facilities": _config("facilities", 0.3, 1, FieldSimilarityScorer()),
    "academic_info": _config("academic_info", 0.25, 3, FieldSimilarityScorer()),
    "faqs": _config("faqs", 0.25, 3, FieldSimilarityScorer()),
    "canteen_items": _config("canteen_items", 0.3, 1, ExactCascadeScorer(LABEL_FIELDS["canteen_items"])),
}


def create_matcher(category: str, **overrides) -> CategoryMatcher:
    """
    Factory function to create a category matcher

    Args:
        category: one of CATEGORIES
        overrides: MatcherConfig fields to replace (threshold, limit, scorer...)

    Returns:
        Matcher instance
    """
    if category not in MATCHER_CONFIGS:
        raise KeyError(f"No matcher configured for category: {category}")

    base = MATCHER_CONFIGS[category]
    config = replace(base, **overrides)

    if category == "events":
        return EventMatcher(config)
    return CategoryMatcher(config)
