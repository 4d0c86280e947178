#!/usr/bin/env python3
"""
Load sample campus data into the JSON data store.
Every record goes through the admin whitelist, exactly like the admin API.
"""

import asyncio
import json
import sys
from pathlib import Path

# --- ensure repo root on sys.path ---
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.campusbot import config
from backend.campusbot.data_store import JsonFileDataStore
from backend.campusbot.errors import ValidationError

SAMPLE_PATH = ROOT / "data" / "sample_campus.json"


async def seed(sample_path: Path, target_path: str) -> dict:
    with open(sample_path, "r", encoding="utf-8") as f:
        sample = json.load(f)

    store = JsonFileDataStore(target_path)
    added = {}
    for collection, documents in sample.items():
        print(f"📝 Seeding {collection}...")
        count = 0
        for doc in documents:
            try:
                await store.add(collection, doc)
                count += 1
            except ValidationError as e:
                print(f"  ⚠ skipped record: {e}")
        added[collection] = count
        print(f"✅ Added {count} documents to {collection}")
    return added


def main():
    import argparse

    parser = argparse.ArgumentParser(description='Seed the campus data store')
    parser.add_argument('--target', '-t', type=str, default=config.CAMPUS_DATA_PATH,
                        help='JSON data file to write')
    parser.add_argument('--sample', '-s', type=str, default=str(SAMPLE_PATH),
                        help='Sample data to load')
    args = parser.parse_args()

    print(f"🌱 Seeding {args.target} from {args.sample}\n")
    added = asyncio.run(seed(Path(args.sample), args.target))
    print("\n📊 Summary:")
    for collection, count in added.items():
        print(f"- {collection}: {count}")


if __name__ == "__main__":
    main()
