import asyncio

from backend.campusbot.data_store import InMemoryDataStore
from backend.campusbot.errors import DataStoreUnavailable
from backend.campusbot.matchers import create_matcher
from backend.campusbot.retrieval import (
    ContextRetriever,
    MatchingRetriever,
    create_retriever,
    determine_collections,
    extract_context_keywords,
)


class FlakyStore(InMemoryDataStore):
    """Raises for the listed categories."""

    def __init__(self, seed, broken, error=DataStoreUnavailable):
        super().__init__(seed=seed)
        self.broken = set(broken)
        self.error = error

    async def list_all(self, category):
        if category in self.broken:
            raise self.error(f"{category} offline")
        return await super().list_all(category)


def test_matching_listing(store):
    queried, results = asyncio.run(MatchingRetriever(store).gather("show all clubs"))
    assert queried == {"clubs"}
    assert len(results["clubs"]) == 4


def test_matching_multi_category(store):
    queried, results = asyncio.run(MatchingRetriever(store).gather("any clubs or events happening this week?"))
    assert queried == {"clubs", "events"}
    assert set(results) == {"clubs", "events"}


def test_matching_no_category(store):
    queried, results = asyncio.run(MatchingRetriever(store).gather("hello there"))
    assert queried == set()
    assert results == {}


def test_canteen_narrowed_to_the_item_asked_about(store):
    wide = {"canteen_items": create_matcher("canteen_items", specific_limit=10, specific_threshold=0.0)}
    retriever = MatchingRetriever(store, matchers=wide)

    _, results = asyncio.run(retriever.gather("what is the price of masala dosa"))
    assert [r["name"] for r in results["canteen_items"]] == ["Masala Dosa"]


def test_canteen_menu_not_narrowed(store):
    _, results = asyncio.run(MatchingRetriever(store).gather("show me the canteen menu"))
    assert len(results["canteen_items"]) == 5


def test_unavailable_category_comes_back_empty(sample_data):
    flaky = FlakyStore(sample_data, broken=["events"])
    queried, results = asyncio.run(MatchingRetriever(flaky).gather("list all clubs and events"))
    assert queried == {"clubs", "events"}
    assert results["events"] == []
    assert len(results["clubs"]) == 4


def test_containment_mode(store):
    exact = MatchingRetriever(store, classifier_mode="exact")
    loose = MatchingRetriever(store, classifier_mode="containment")

    exact_queried, _ = asyncio.run(exact.gather("eventful clubhouse"))
    loose_queried, _ = asyncio.run(loose.gather("eventful clubhouse"))
    assert exact_queried == set()
    assert {"events", "clubs"} <= loose_queried


# ---------- broad context retrieval ----------

def test_extract_context_keywords():
    assert extract_context_keywords("Where is the Library?") == ["library"]
    assert extract_context_keywords("one two three four five six seven", max_keywords=3) == ["one", "two", "three"]
    assert extract_context_keywords("") == []


def test_determine_collections_always_has_faqs():
    assert determine_collections([]) == {"faqs"}
    assert determine_collections(["library"]) == {"faqs", "facilities"}
    assert "canteen_items" in determine_collections(["coffee"])


def test_context_retriever_caps_each_collection(store):
    queried, results = asyncio.run(ContextRetriever(store, fetch_limit=2).gather("where is the library"))
    assert queried == {"faqs", "facilities"}
    assert all(len(records) <= 2 for records in results.values())
    assert "score" not in results["facilities"][0]


def test_context_retriever_drops_empty_collections(sample_data):
    sparse = InMemoryDataStore(seed={"faqs": sample_data["faqs"]})
    queried, results = asyncio.run(ContextRetriever(sparse).gather("events happening"))
    assert "events" in queried
    assert set(results) == {"faqs"}


def test_context_retriever_tolerates_failures(sample_data):
    flaky = FlakyStore(sample_data, broken=["facilities"], error=RuntimeError)
    _, results = asyncio.run(ContextRetriever(flaky).gather("where is the library"))
    assert set(results) == {"faqs"}


def test_create_retriever(store):
    assert isinstance(create_retriever("broad", store), ContextRetriever)
    assert isinstance(create_retriever("matching", store), MatchingRetriever)
    assert isinstance(create_retriever("matching", store, classifier_mode="containment"), MatchingRetriever)


def test_menu_request_with_price_cue_keeps_whole_menu(store):
    queried, results = asyncio.run(MatchingRetriever(store).gather("what is on the menu and how much"))
    assert queried == {"canteen_items"}
    assert len(results["canteen_items"]) == 5


def test_categorize_then_fetch(store):
    retriever = MatchingRetriever(store)
    categories = retriever.categorize("show all clubs")
    assert categories == ["clubs"]

    results = asyncio.run(retriever.fetch("show all clubs", categories))
    assert list(results) == ["clubs"]
    assert len(results["clubs"]) == 4
