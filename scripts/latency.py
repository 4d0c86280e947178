#!/usr/bin/env python3
"""
Compare reply latency between Ollama models on grounded and ungrounded
prompts; results go to metrics/latency.json
"""

import asyncio
import json
import sys
import time
from pathlib import Path
from typing import Dict, List

# --- ensure repo root on sys.path ---
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.campusbot import config
from backend.campusbot.ai_generator import OllamaTextGenerator
from backend.campusbot.errors import AIGenerationFailure

# Queries paired with the context the matcher would hand over
QUERIES = [
    ("How much is the veg sandwich?", {"canteen_items": [
        {"name": "Veg Sandwich", "price": 2.5, "availability": "Available", "vegetarian": True}]}),
    ("When is TechFest?", {"events": [
        {"title": "TechFest 2026", "date": "2026-02-15", "time": "10:00 AM", "venue": "Main Auditorium"}]}),
    ("How should I prepare for exams?", {}),
]


async def time_reply(generator: OllamaTextGenerator, query: str, context: Dict) -> Dict:
    started = time.perf_counter()
    error = None
    try:
        await generator.generate(query, context)
    except AIGenerationFailure as e:
        error = str(e)
        print(f"   ⚠ {error}")
    return {
        "query": query,
        "grounded": bool(context),
        "latency_sec": time.perf_counter() - started,
        "ok": error is None,
        "error": error,
    }


async def profile_model(model: str, timeout: float) -> Dict:
    print(f"\n🚀 Profiling {model}")
    generator = OllamaTextGenerator(ollama_url=config.OLLAMA_URL, models=[model], timeout=timeout)

    runs = []
    for query, context in QUERIES:
        run = await time_reply(generator, query, context)
        print(f" → {query}  ⏱️  {run['latency_sec']:.2f}s")
        runs.append(run)

    answered = [r["latency_sec"] for r in runs if r["ok"]]
    avg = sum(answered) / len(answered) if answered else None
    print(f"✅ {model}: {len(answered)}/{len(runs)} answered" + (f", avg {avg:.2f}s" if avg is not None else ""))
    return {"model": model, "runs": runs, "answered": len(answered), "avg_latency_sec": avg}


async def profile(models: List[str], timeout: float) -> List[Dict]:
    return [await profile_model(m, timeout) for m in models]


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Compare Ollama model latency')
    parser.add_argument('--models', '-m', nargs='+', default=list(config.LLM_MODELS),
                        help='Models to profile, in order')
    parser.add_argument('--timeout', type=float, default=config.AI_TIMEOUT,
                        help='Per-attempt timeout in seconds')
    args = parser.parse_args()

    report = asyncio.run(profile(args.models, args.timeout))

    out_path = ROOT / "metrics" / "latency.json"
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    print(f"\n📁 Results written to {out_path}")


if __name__ == "__main__":
    main()
