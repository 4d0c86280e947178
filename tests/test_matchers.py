import copy

import pytest

from backend.campusbot.matchers import (
    ExactCascadeScorer,
    FieldSimilarityScorer,
    GENERAL_LIMIT,
    GENERAL_THRESHOLD,
    cascade_score,
    create_matcher,
    find_canteen_matches,
    find_event_match,
)
from backend.campusbot.similarity import similarity


# ---------- generic matcher ----------

def test_specific_club_query_returns_single_best(clubs):
    results = create_matcher("clubs").match("tell me about the robotics club", clubs)
    assert len(results) == 1
    assert results[0]["name"] == "Robotics Club"
    assert results[0]["score"] > 0


def test_specific_facility_query_at_most_one(sample_data):
    facilities = sample_data["facilities"]
    for query in ("where is the library", "gym timings", "computer lab location"):
        assert len(create_matcher("facilities").match(query, facilities)) <= 1


def test_bare_listing_returns_whole_category(clubs):
    results = create_matcher("clubs").match("show all clubs", clubs)
    assert [r["name"] for r in results] == [c["name"] for c in clubs]
    assert all(r["score"] == 1.0 for r in results)


def test_general_mode_respects_threshold_and_limit(clubs):
    results = create_matcher("clubs").match("list all clubs about photography", clubs)
    assert 0 < len(results) <= GENERAL_LIMIT
    assert all(r["score"] >= GENERAL_THRESHOLD for r in results)
    assert "Photography Club" in [r["name"] for r in results]


def test_results_sorted_descending(sample_data):
    results = create_matcher("faqs").match("list all questions about library membership", sample_data["faqs"])
    scores = [r["score"] for r in results]
    assert scores == sorted(scores, reverse=True)


def test_substring_fallback_when_nothing_scores():
    records = [{"id": "1", "name": "Astronomy Society Westside"}, {"id": "2", "name": "Chess Club"}]
    assert similarity("astro", records[0]["name"]) < 0.3

    results = create_matcher("clubs").match("astro", records)
    assert [r["id"] for r in results] == ["1"]
    assert results[0]["score"] == 0.0


def test_fallback_ignores_short_tokens():
    records = [{"id": "1", "name": "Go Club"}]
    assert create_matcher("clubs").match("go", records) == []


def test_malformed_records_are_skipped(clubs):
    robotics = next(c for c in clubs if c["name"] == "Robotics Club")
    records = [None, "junk", 42, {"name": 123}, robotics]
    results = create_matcher("clubs").match("tell me about the robotics club", records)
    assert [r["name"] for r in results] == ["Robotics Club"]


def test_records_are_not_mutated(clubs):
    before = copy.deepcopy(clubs)
    create_matcher("clubs").match("tell me about the robotics club", clubs)
    create_matcher("clubs").match("show all clubs", clubs)
    assert clubs == before


def test_create_matcher_overrides():
    matcher = create_matcher("clubs", specific_limit=3)
    assert matcher.config.specific_limit == 3
    assert create_matcher("clubs").config.specific_limit == 1


def test_create_matcher_unknown_category():
    with pytest.raises(KeyError):
        create_matcher("conversations")


# ---------- scorers ----------

def test_cascade_score_levels():
    assert cascade_score("veg sandwich", "veg sandwich") == 1.0
    assert cascade_score("sandwich", "veg sandwich") == 0.95
    assert cascade_score("price of veg sandwich", "veg sandwich") == 0.85
    assert cascade_score("anything", "") == 0.0


def test_field_similarity_skips_ids_and_non_strings():
    scorer = FieldSimilarityScorer()
    record = {"id": "robotics", "memberCount": 45, "amenities": ["robotics"]}
    assert scorer.score("robotics", ["robotics"], record, 0.3) == 0.0


def test_exact_cascade_takes_best_field():
    scorer = ExactCascadeScorer(("name",))
    record = {"name": "Filter Coffee", "description": "South Indian style coffee with milk"}
    assert scorer.score("coffee with milk", [], record, 0.3) == 0.95


# ---------- canteen ----------

def test_find_canteen_matches_exact_name(canteen_items):
    items = canteen_items + [{"id": "x", "name": "Veg Sandwich Deluxe"}]
    results = find_canteen_matches("Veg Sandwich", items, 5)
    assert len(results) == 1
    assert results[0]["name"] == "Veg Sandwich"
    assert results[0]["score"] == 1.0


def test_find_canteen_matches_query_contains_name(canteen_items):
    results = find_canteen_matches("how much is the paneer wrap?", canteen_items)
    assert [r["name"] for r in results] == ["Paneer Wrap"]
    assert results[0]["score"] == 0.85


def test_find_canteen_matches_empty_inputs(canteen_items):
    assert find_canteen_matches("", canteen_items) == []
    assert find_canteen_matches("coffee", []) == []


def test_find_canteen_matches_item_name_alias():
    items = [{"id": "1", "itemName": "Samosa"}]
    assert find_canteen_matches("samosa", items)[0]["score"] == 1.0


def test_canteen_menu_lists_everything(canteen_items):
    results = create_matcher("canteen_items").match("canteen menu", canteen_items)
    assert len(results) == len(canteen_items)


def test_canteen_specific_query_single_item(canteen_items):
    results = create_matcher("canteen_items").match("what is the price of masala dosa", canteen_items)
    assert [r["name"] for r in results] == ["Masala Dosa"]


# ---------- events ----------

def test_find_event_match_all_words_rule(events):
    query = "tell me about freshers day"
    assert similarity(query, "freshers day") < 0.5

    hit = find_event_match(query, events)
    assert hit["title"] == "Freshers Day"
    assert hit["score"] == 0.9


def test_find_event_match_exact(events):
    hit = find_event_match("TechFest 2026", events)
    assert hit["title"] == "TechFest 2026"
    assert hit["score"] == 1.0


def test_find_event_match_fuzzy(events):
    hit = find_event_match("techfest 2025", events)
    assert hit["title"] == "TechFest 2026"
    assert hit["score"] == pytest.approx(12 / 13)


def test_find_event_match_none(events):
    assert find_event_match("quantum", events) is None
    assert find_event_match("", events) is None


def test_event_matcher_uses_direct_hit(events):
    results = create_matcher("events").match("tell me about freshers day", events)
    assert len(results) == 1
    assert results[0]["title"] == "Freshers Day"


def test_event_listing(events):
    results = create_matcher("events").match("list all upcoming events", events)
    assert len(results) == len(events)


def test_event_specific_limit(events):
    results = create_matcher("events").match("cultural celebration performances", events)
    assert len(results) <= 5
