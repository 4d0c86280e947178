# backend/campusbot/retrieval.py
"""
Categorize -> fetch strategies.

MatchingRetriever is the default: classify, fetch each selected category and
rank it with its matcher. ContextRetriever is the coarse alternative: a
stopword-filtered vocabulary lookup that returns the first N records of
each relevant collection without scoring.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Set, Tuple

from . import config
from .classifier import classify, extract_keywords, is_menu_request, is_specific_item_query
from .data_store import BaseDataStore
from .errors import DataStoreUnavailable
from .matchers import CategoryMatcher, create_matcher, find_canteen_matches
from .telemetry import log_event

logger = logging.getLogger(__name__)

Gathered = Tuple[Set[str], Dict[str, List[Dict]]]


class BaseRetriever(ABC):
    """Base class for categorize -> fetch strategies"""

    def __init__(self, store: BaseDataStore):
        self.store = store

    @abstractmethod
    def categorize(self, query: str) -> List[str]:
        """
        Categories to fetch for the query, sorted
        """
        pass

    @abstractmethod
    async def fetch(self, query: str, categories: List[str]) -> Dict[str, List[Dict]]:
        """
        Return category -> records for the given categories
        """
        pass

    async def gather(self, query: str) -> Gathered:
        """
        Return (categories queried, category -> records)
        """
        categories = self.categorize(query)
        return set(categories), await self.fetch(query, categories)


class MatchingRetriever(BaseRetriever):

    def __init__(self, store: BaseDataStore, classifier_mode: str = config.CLASSIFIER_MODE,
                 matchers: Optional[Dict[str, CategoryMatcher]] = None):
        super().__init__(store)
        self.classifier_mode = classifier_mode
        self.matchers = matchers or {}

    def _matcher(self, category: str) -> CategoryMatcher:
        if category not in self.matchers:
            self.matchers[category] = create_matcher(category)
        return self.matchers[category]

    async def _fetch_and_match(self, category: str, query: str) -> List[Dict]:
        # the whole snapshot is needed before ranking can start
        try:
            records = await self.store.list_all(category)
        except DataStoreUnavailable as e:
            logger.warning("store unavailable while fetching %s: %s", category, e)
            return []
        return self._matcher(category).match(query, records)

    def categorize(self, query: str) -> List[str]:
        keywords = extract_keywords(query)
        categories = sorted(classify(keywords, mode=self.classifier_mode))
        log_event("query_classified", keywords=keywords, categories=categories)
        return categories

    async def fetch(self, query: str, categories: List[str]) -> Dict[str, List[Dict]]:
        matched = await asyncio.gather(*(self._fetch_and_match(c, query) for c in categories))
        results = dict(zip(categories, matched))

        # "how much is the veg sandwich": narrow the canteen list to that item,
        # unless the whole menu was asked for
        canteen = results.get("canteen_items")
        if canteen and is_specific_item_query(query) and not is_menu_request(query):
            narrowed = find_canteen_matches(query, canteen, 5)
            if narrowed:
                results["canteen_items"] = narrowed

        return results


# ---------- Coarse context retrieval ----------

CONTEXT_STOPWORDS = frozenset([
    'a', 'an', 'and', 'are', 'as', 'at', 'be', 'by', 'for', 'from',
    'has', 'he', 'in', 'is', 'it', 'its', 'of', 'on', 'or', 'that',
    'the', 'to', 'was', 'will', 'with', 'what', 'where', 'when', 'how',
])

COLLECTION_VOCABULARY: Dict[str, List[str]] = {
    "events": ['event', 'events', 'happening', 'festival', 'program', 'schedule'],
    "clubs": ['club', 'clubs', 'organization', 'group', 'society', 'team'],
    "faqs": ['faq', 'question', 'answer', 'help', 'how', 'what'],
    "facilities": ['facility', 'facilities', 'library', 'room', 'building', 'location', 'campus'],
    "academic_info": ['academic', 'exam', 'registration', 'course', 'grades', 'study'],
    "canteen_items": ['food', 'canteen', 'menu', 'eat', 'lunch', 'breakfast', 'dinner',
                      'coffee', 'snack', 'item', 'price'],
}


def extract_context_keywords(query: str, max_keywords: int = 5) -> List[str]:
    words = [w.strip("?!.,;:'\"()") for w in (query or "").lower().split()]
    return [w for w in words if len(w) > 2 and w not in CONTEXT_STOPWORDS][:max_keywords]


def determine_collections(keywords: List[str]) -> Set[str]:
    """Collections whose vocabulary overlaps a keyword by containment; FAQs always included."""
    relevant = {"faqs"}
    for keyword in keywords:
        for collection, vocabulary in COLLECTION_VOCABULARY.items():
            if any(k in keyword or keyword in k for k in vocabulary):
                relevant.add(collection)
    return relevant


class ContextRetriever(BaseRetriever):

    def __init__(self, store: BaseDataStore, fetch_limit: int = config.CONTEXT_FETCH_LIMIT):
        super().__init__(store)
        self.fetch_limit = fetch_limit

    async def _fetch(self, collection: str) -> List[Dict]:
        try:
            records = await self.store.list_all(collection)
        except Exception as e:
            # one failing collection must not empty the others
            logger.warning("error fetching %s: %s", collection, e)
            return []
        return records[:self.fetch_limit]

    def categorize(self, query: str) -> List[str]:
        keywords = extract_context_keywords(query)
        collections = sorted(determine_collections(keywords))
        log_event("context_collections", keywords=keywords, collections=collections)
        return collections

    async def fetch(self, query: str, categories: List[str]) -> Dict[str, List[Dict]]:
        fetched = await asyncio.gather(*(self._fetch(c) for c in categories))
        return {c: recs for c, recs in zip(categories, fetched) if recs}


def create_retriever(strategy: str, store: BaseDataStore, **kwargs) -> BaseRetriever:
    """
    Factory function to create a retriever

    Args:
        strategy: "matching" (ranked, default) or "broad" (coarse context fetch)
    """
    if strategy == "broad":
        return ContextRetriever(store, **kwargs)
    return MatchingRetriever(store, **kwargs)
