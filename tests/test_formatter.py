from datetime import datetime

from backend.campusbot.formatter import SECTION_SPECS, assemble, format_section, no_results_section


def test_single_event_section():
    event = {"id": "e1", "title": "TechFest 2026", "date": "2026-02-15", "venue": "Main Auditorium", "score": 1.0}
    response = assemble("techfest", {"events": [event]})

    assert response["totalResults"] == 1
    assert len(response["sections"]) == 1
    section = response["sections"][0]
    assert section["type"] == "events"
    assert section["title"] == "📅 Upcoming Events (1 found)"
    item = section["items"][0]
    assert item["title"] == "TechFest 2026"
    assert item["venue"] == "Main Auditorium"
    assert item["status"] == "upcoming"
    assert item["icon"] == "🎉"
    assert "score" not in item


def test_empty_queried_category_gets_empty_section(clubs):
    response = assemble("clubs and events", {"clubs": clubs[:2], "events": []}, queried=["clubs", "events"])

    assert response["totalResults"] == 2
    types = [s["type"] for s in response["sections"]]
    assert types == ["empty", "clubs"]
    assert response["sections"][0]["title"] == "No Events Found"
    assert response["sections"][0]["category"] == "events"


def test_unqueried_categories_are_omitted(clubs):
    response = assemble("robotics", {"clubs": clubs[:1]}, queried=["clubs"])
    assert [s["category"] for s in response["sections"]] == ["clubs"]


def test_no_results_replaces_everything():
    response = assemble("hello there", {"events": [], "faqs": []}, queried=["events", "faqs"])
    assert response["totalResults"] == 0
    assert len(response["sections"]) == 1
    assert response["sections"][0]["title"] == "No Results Found"
    assert "hello there" in response["sections"][0]["message"]


def test_no_categories_at_all():
    response = assemble("hello", {})
    assert response["sections"] == [no_results_section("hello")]


def test_section_order_is_fixed(sample_data):
    results = {category: records[:1] for category, records in sample_data.items()}
    response = assemble("everything", results)
    assert [s["category"] for s in response["sections"]] == [spec.category for spec in SECTION_SPECS]
    assert [s["type"] for s in response["sections"]] == [
        "events", "clubs", "facilities", "canteen", "faqs", "academic",
    ]
    assert response["totalResults"] == 6


def test_timestamp_is_iso8601():
    response = assemble("x", {})
    assert datetime.fromisoformat(response["timestamp"])


def test_field_aliases_are_normalized():
    spec = {s.category: s for s in SECTION_SPECS}
    event = format_section(spec["events"], [{"Event_Name": "Hack Night", "Venue": "Lab 3", "Participants": 40}])
    club = format_section(spec["clubs"], [{"Club_Name": "Chess", "members": 12, "head": "Ana"}])
    canteen = format_section(spec["canteen_items"], [{"itemName": "Samosa", "price": 0.5}])

    assert event["items"][0]["title"] == "Hack Night"
    assert event["items"][0]["venue"] == "Lab 3"
    assert event["items"][0]["capacity"] == 40
    assert club["items"][0]["name"] == "Chess"
    assert club["items"][0]["memberCount"] == 12
    assert club["items"][0]["president"] == "Ana"
    assert club["items"][0]["status"] == "Active"
    assert canteen["items"][0]["name"] == "Samosa"
    assert canteen["items"][0]["vegetarian"] is False


def test_facility_amenities_from_string():
    spec = next(s for s in SECTION_SPECS if s.category == "facilities")
    section = format_section(spec, [{"name": "Gym", "amenities": "Weights, Cardio ,"}])
    assert section["items"][0]["amenities"] == ["Weights", "Cardio"]
