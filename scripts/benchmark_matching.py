import asyncio
import json
import os
import time
import sys
from typing import Any, Dict, List

# Ensure repo root on sys.path
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from backend.campusbot.classifier import classify, extract_keywords
from backend.campusbot.data_store import InMemoryDataStore
from backend.campusbot.matchers import LABEL_FIELDS, label_of
from backend.campusbot.orchestrator import CampusAssistant


QUERIES: List[Dict[str, Any]] = [
    # Routing + top label
    {"q": "tell me about freshers day event", "expect": {"categories": ["events"], "top": "Freshers Day"}},
    {"q": "how much is the veg sandwich in the canteen", "expect": {"categories": ["canteen_items"], "top": "Veg Sandwich"}},
    {"q": "when does the robotics club meet", "expect": {"categories": ["clubs"], "top": "Robotics Club"}},
    {"q": "show all clubs", "expect": {"categories": ["clubs"], "count": 4}},
    {"q": "canteen menu", "expect": {"categories": ["canteen_items"], "count": 5}},
    {"q": "what is the exam schedule", "expect": {"categories": ["academic_info"], "top": "Exam Schedule"}},
]


def load_store() -> InMemoryDataStore:
    with open(os.path.join(ROOT, "data", "sample_campus.json"), "r", encoding="utf-8") as f:
        return InMemoryDataStore(seed=json.load(f))


def check_accuracy(response: Dict[str, Any], q: str, expect: Dict[str, Any]) -> bool:
    categories = sorted(classify(extract_keywords(q)))
    if categories != sorted(expect["categories"]):
        return False

    category = expect["categories"][0]
    section = next(
        (s for s in response["data"]["sections"] if s.get("category") == category),
        None,
    )
    items = (section or {}).get("items", [])
    if "count" in expect and len(items) != expect["count"]:
        return False
    if "top" in expect:
        if not items:
            return False
        top = label_of(items[0], LABEL_FIELDS[category])
        return top == expect["top"]
    return True


async def run_scalability_test(assistant: CampusAssistant, q: str, concurrency: int = 10) -> Dict[str, Any]:
    async def one():
        t0 = time.perf_counter()
        await assistant.handle_message(q)
        return time.perf_counter() - t0
    durations = await asyncio.gather(*(one() for _ in range(concurrency)))
    return {
        "concurrency": concurrency,
        "avg_latency_sec": sum(durations) / len(durations),
        "p95_latency_sec": sorted(durations)[max(int(0.95 * len(durations)) - 1, 0)],
        "min_latency_sec": min(durations),
        "max_latency_sec": max(durations),
    }


def write_benchmark(results: Dict[str, Any]) -> None:
    out = os.path.join(ROOT, 'metrics', 'benchmark.json')
    os.makedirs(os.path.dirname(out), exist_ok=True)
    with open(out, 'w', encoding='utf-8') as f:
        json.dump(results, f, indent=2)
    print(f"Wrote benchmark metrics to {out}")


async def run() -> Dict[str, Any]:
    # no generator: measure matching, not the LLM
    assistant = CampusAssistant(store=load_store(), generator=None)

    per_query = []
    for item in QUERIES:
        t0 = time.perf_counter()
        response = await assistant.handle_message(item["q"])
        latency = time.perf_counter() - t0
        ok = check_accuracy(response, item["q"], item["expect"])
        print(f"{'✓' if ok else '✗'} {item['q']} ({latency * 1000:.1f} ms)")
        per_query.append({"query": item["q"], "accuracy": 1.0 if ok else 0.0, "latency_sec": latency})

    scal = await run_scalability_test(assistant, "list all events and clubs", concurrency=8)
    return {
        "timestamp": int(time.time()),
        "accuracy": sum(p["accuracy"] for p in per_query) / len(per_query),
        "per_query": per_query,
        "scalability": scal,
    }


def main() -> None:
    write_benchmark(asyncio.run(run()))


if __name__ == '__main__':
    main()
