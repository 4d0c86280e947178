# backend/campusbot/formatter.py
"""
Response assembler: matched records -> typed display sections.

No scoring happens here. Field names are normalized across the aliases that
imported datasets use (Event_Name, Venue, members, head...).
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence


def _first(record: Dict[str, Any], *keys: str, default: Any = "") -> Any:
    """First non-empty value among `keys`."""
    for key in keys:
        value = record.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return default


def _event_item(event: Dict) -> Dict:
    return {
        "id": event.get("id"),
        "title": _first(event, "title", "Event_Name", "name", "Title"),
        "date": _first(event, "date", "Date"),
        "time": _first(event, "time", "Time"),
        "venue": _first(event, "venue", "Venue", "location"),
        "organizer": _first(event, "organizer", "Organizer"),
        "description": _first(event, "description", "Category"),
        "category": _first(event, "category", "Category"),
        "capacity": _first(event, "capacity", "Participants", default=0),
        "duration": _first(event, "duration", "Duration_Hours"),
        "status": _first(event, "status", "Status", default="upcoming"),
        "icon": "🎉",
    }


def _club_item(club: Dict) -> Dict:
    return {
        "id": club.get("id"),
        "name": _first(club, "name", "Club_Name"),
        "description": _first(club, "description"),
        "memberCount": _first(club, "memberCount", "members", default=0),
        "president": _first(club, "president", "head"),
        "coordinator": _first(club, "coordinator", "head"),
        "contactEmail": _first(club, "contactEmail", "email"),
        "contactPhone": _first(club, "contactPhone", "phone"),
        "meetingSchedule": _first(club, "meetingSchedule", "meetingDay"),
        "location": _first(club, "location"),
        "category": _first(club, "category"),
        "status": _first(club, "status", default="Active"),
        "icon": "🎓",
    }


def _facility_item(facility: Dict) -> Dict:
    amenities = facility.get("amenities") or []
    if isinstance(amenities, str):
        amenities = [a.strip() for a in amenities.split(",") if a.strip()]
    return {
        "id": facility.get("id"),
        "name": _first(facility, "name"),
        "type": _first(facility, "type"),
        "location": _first(facility, "location"),
        "hours": _first(facility, "hours"),
        "capacity": _first(facility, "capacity", default=None),
        "amenities": list(amenities),
        "icon": "📍",
    }


def _faq_item(faq: Dict) -> Dict:
    return {
        "id": faq.get("id"),
        "question": _first(faq, "question"),
        "answer": _first(faq, "answer"),
        "category": _first(faq, "category"),
        "icon": "❓",
    }


def _academic_item(item: Dict) -> Dict:
    return {
        "id": item.get("id"),
        "title": _first(item, "title"),
        "content": _first(item, "content"),
        "icon": "📚",
    }


def _canteen_item(item: Dict) -> Dict:
    return {
        "id": item.get("id"),
        "name": _first(item, "name", "itemName"),
        "category": _first(item, "category"),
        "price": _first(item, "price", default=None),
        "availability": _first(item, "availability"),
        "calories": _first(item, "calories", default=None),
        "vegetarian": bool(item.get("vegetarian", False)),
        "description": _first(item, "description"),
        "allergens": _first(item, "allergens"),
        "icon": "🍽️",
    }


class SectionSpec:
    def __init__(self, category: str, type_: str, title: str, empty_title: str,
                 empty_message: str, project: Callable[[Dict], Dict]):
        self.category = category
        self.type = type_
        self.title = title
        self.empty_title = empty_title
        self.empty_message = empty_message
        self.project = project


# Display order
SECTION_SPECS: List[SectionSpec] = [
    SectionSpec("events", "events", "📅 Upcoming Events", "No Events Found",
                "No upcoming events match your query. Check back soon!", _event_item),
    SectionSpec("clubs", "clubs", "🎓 Campus Clubs", "No Clubs Found",
                "No clubs match your query. Visit the Admin Dashboard to add clubs!", _club_item),
    SectionSpec("facilities", "facilities", "📍 Campus Facilities", "No Facilities Found",
                "No facilities match your query.", _facility_item),
    SectionSpec("canteen_items", "canteen", "🍽️ Canteen Menu", "No Food Items Found",
                "No food items match your query. Check the canteen menu!", _canteen_item),
    SectionSpec("faqs", "faqs", "❓ Frequently Asked Questions", "No FAQs Found",
                "No frequently asked questions match your query.", _faq_item),
    SectionSpec("academic_info", "academic", "📚 Academic Information", "No Academic Info Found",
                "No academic information matches your query.", _academic_item),
]


def format_section(spec: SectionSpec, records: Sequence[Dict]) -> Dict:
    if not records:
        return {
            "type": "empty",
            "category": spec.category,
            "title": spec.empty_title,
            "message": spec.empty_message,
        }
    return {
        "type": spec.type,
        "category": spec.category,
        "title": f"{spec.title} ({len(records)} found)",
        "items": [spec.project(r) for r in records],
    }


def no_results_section(query: str) -> Dict:
    return {
        "type": "empty",
        "title": "No Results Found",
        "message": (
            f'I couldn\'t find information matching "{query}". Try asking about events, '
            "clubs, facilities, food items, or academic schedules."
        ),
    }


def assemble(query: str, results: Dict[str, Sequence[Dict]],
             queried: Optional[Iterable[str]] = None) -> Dict:
    """
    Build the structured response for one query.

    Categories in `queried` that came back empty get a friendly "empty"
    section; categories never queried get nothing. When no section has
    items, a single "No Results Found" section replaces them all.
    """
    queried = set(queried) if queried is not None else set(results)
    sections = []
    for spec in SECTION_SPECS:
        records = results.get(spec.category) or []
        if records or spec.category in queried:
            sections.append(format_section(spec, records))

    total = sum(len(s.get("items", [])) for s in sections)
    if total == 0:
        sections = [no_results_section(query)]

    return {
        "query": query,
        "sections": sections,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "totalResults": total,
    }
