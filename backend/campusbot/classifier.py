# backend/campusbot/classifier.py
"""
Keyword extraction and topic routing.

A query is routed to every category whose trigger vocabulary shares a word
with it. Routing is deliberately shallow: no stemming, no stopword removal
in extract_keywords().
"""

import re
from typing import Dict, Iterable, List, Set, Tuple

CATEGORIES: Tuple[str, ...] = (
    "events",
    "clubs",
    "facilities",
    "faqs",
    "academic_info",
    "canteen_items",
)

CATEGORY_TRIGGERS: Dict[str, frozenset] = {
    "events": frozenset([
        "event", "events", "happening", "coming", "upcoming", "festival", "fest",
    ]),
    "clubs": frozenset([
        "club", "clubs", "society", "societies", "group", "team",
    ]),
    "facilities": frozenset([
        "facility", "facilities", "library", "cafeteria", "sports", "lab", "gym",
        "where", "location", "place",
    ]),
    "academic_info": frozenset([
        "academic", "semester", "exam", "exams", "schedule", "grade", "grades",
        "course", "courses", "registration",
    ]),
    "canteen_items": frozenset([
        "food", "canteen", "menu", "eat", "lunch", "breakfast", "dinner", "coffee",
        "snack", "snacks", "item", "items", "price", "cost",
    ]),
    "faqs": frozenset([
        "faq", "faqs", "question", "questions",
    ]),
}

# Cues that turn a query into a listing request ("show all clubs", "canteen menu")
COMMON_LISTING_CUES = ("all", "list", "show all", "list all", "every")

LISTING_CUES: Dict[str, Tuple[str, ...]] = {
    "events": COMMON_LISTING_CUES + ("events", "upcoming"),
    "clubs": COMMON_LISTING_CUES + ("clubs", "societies"),
    "facilities": COMMON_LISTING_CUES + ("facilities",),
    "faqs": COMMON_LISTING_CUES + ("faqs", "questions"),
    "academic_info": COMMON_LISTING_CUES,
    "canteen_items": COMMON_LISTING_CUES + ("menu", "items", "food menu", "what do you have"),
}

MENU_CUES = ("menu", "show all", "all items", "list all", "what do you have", "canteen items", "food menu")

ITEM_DETAIL_CUES = (
    "price", "prices", "cost", "costs", "availability", "available", "in stock",
    "vegetarian", "vegan", "calories", "how much",
)

QUESTION_STOPWORDS = frozenset([
    'a', 'an', 'and', 'are', 'as', 'at', 'be', 'by', 'for', 'from', 'has', 'he',
    'in', 'is', 'it', 'its', 'of', 'on', 'or', 'that', 'the', 'to', 'was', 'will',
    'with', 'what', 'when', 'how', 'who', 'which', 'tell', 'me', 'about', 'show',
    'give', 'please', 'i', 'you', 'we', 'us', 'can', 'could', 'do', 'does',
    'there', 'any', 'some', 'info', 'information', 'details', 'know', 'want',
    'need', 'my', 'our', 'your', 'this', 'get', 'find', 'have', 'much', 'many',
])

_WORD_RE = re.compile(r"[^\W_]+")


def extract_keywords(query: str) -> List[str]:
    """Lowercased alphanumeric words in query order, duplicates kept."""
    return _WORD_RE.findall((query or "").lower())


def classify(keywords: Iterable[str], mode: str = "exact") -> Set[str]:
    """
    Return the categories whose trigger words appear among `keywords`.

    mode="exact" tests set membership. mode="containment" also accepts a
    keyword that contains a trigger or sits inside one; keywords shorter
    than three characters are ignored there since they would hit almost
    every vocabulary.
    """
    keywords = list(keywords)
    selected: Set[str] = set()
    for category, triggers in CATEGORY_TRIGGERS.items():
        if mode == "containment":
            hit = any(
                len(k) > 2 and any(t in k or k in t for t in triggers)
                for k in keywords
            )
        else:
            hit = any(k in triggers for k in keywords)
        if hit:
            selected.add(category)
    return selected


def has_cue(query: str, cue: str) -> bool:
    """Whole-word / whole-phrase test, so "all" does not fire on "hall"."""
    words = extract_keywords(query)
    if " " not in cue:
        return cue in words
    return f" {cue} " in f" {' '.join(words)} "


def has_any_cue(query: str, cues: Iterable[str]) -> bool:
    return any(has_cue(query, cue) for cue in cues)


def is_menu_request(query: str) -> bool:
    return has_any_cue(query, MENU_CUES)


def is_specific_item_query(query: str) -> bool:
    """True for questions about one item's price, stock, diet or calories."""
    return has_any_cue(query, ITEM_DETAIL_CUES)


def _noise_words() -> Set[str]:
    words = set(QUESTION_STOPWORDS)
    for triggers in CATEGORY_TRIGGERS.values():
        words.update(triggers)
    for cues in LISTING_CUES.values():
        for cue in cues:
            words.update(cue.split())
    return words


_NOISE = frozenset(_noise_words())


def content_terms(query: str) -> List[str]:
    """Keywords that narrow a request: stopwords, trigger words and listing cues removed."""
    return [k for k in extract_keywords(query) if k not in _NOISE]
