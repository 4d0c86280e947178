# backend/campusbot/data_store.py
"""
Data store collaborator.

The core only needs list_all() and append(); the remaining methods back the
admin CRUD surface. Every write goes through validate_record(), which
enforces the per-category field whitelist.
"""

import asyncio
import json
import os
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .classifier import CATEGORIES
from .errors import DataStoreUnavailable, NotFoundError, PersistenceWriteFailure, ValidationError

CONVERSATIONS = "conversations"

FIELD_RULES: Dict[str, Dict[str, List[str]]] = {
    "events": {
        "required": ["title"],
        "optional": ["description", "date", "time", "venue", "organizer", "category",
                     "capacity", "duration", "status"],
    },
    "clubs": {
        "required": ["name"],
        "optional": ["description", "coordinator", "president", "contactEmail", "contactPhone",
                     "meetingSchedule", "location", "memberCount", "status", "category"],
    },
    "facilities": {
        "required": ["name"],
        "optional": ["type", "location", "hours", "capacity", "amenities"],
    },
    "faqs": {
        "required": ["question", "answer"],
        "optional": ["category"],
    },
    "academic_info": {
        "required": ["title"],
        "optional": ["content"],
    },
    "canteen_items": {
        "required": ["name"],
        "optional": ["category", "price", "availability", "calories", "vegetarian",
                     "description", "allergens"],
    },
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def check_category(category: str) -> None:
    if category not in FIELD_RULES:
        raise ValidationError(
            "Invalid collection. Valid options: " + ", ".join(CATEGORIES)
        )


def validate_record(category: str, data: Dict, partial: bool = False) -> None:
    """
    Enforce the write-time whitelist.

    Full writes must carry every required field (non-blank); partial updates
    only may not blank one out. Unknown fields are always rejected.
    """
    check_category(category)
    if not isinstance(data, dict) or not data:
        raise ValidationError("Data is required")

    rules = FIELD_RULES[category]
    for name in rules["required"]:
        if name not in data:
            if partial:
                continue
            raise ValidationError(f"Missing required field: {name}")
        value = data[name]
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"Missing required field: {name}")

    allowed = set(rules["required"]) | set(rules["optional"])
    for name in data:
        if name not in allowed:
            raise ValidationError(f"Unknown field: {name}")


def _matches_text(record: Dict, needle: str) -> bool:
    for value in record.values():
        if isinstance(value, str) and needle in value.lower():
            return True
        if isinstance(value, list) and any(isinstance(v, str) and needle in v.lower() for v in value):
            return True
    return False


class BaseDataStore(ABC):
    """Async store interface; reads return snapshots the caller may not mutate back."""

    @abstractmethod
    async def list_all(self, category: str) -> List[Dict]:
        pass

    @abstractmethod
    async def get(self, category: str, record_id: str) -> Dict:
        pass

    @abstractmethod
    async def add(self, category: str, record: Dict) -> str:
        pass

    @abstractmethod
    async def update(self, category: str, record_id: str, changes: Dict) -> Dict:
        pass

    @abstractmethod
    async def delete(self, category: str, record_id: str) -> None:
        pass

    @abstractmethod
    async def append(self, collection: str, record: Dict) -> str:
        """Append-only write, used for the conversation log."""
        pass

    async def search(self, category: str, text: str) -> List[Dict]:
        if not text or not text.strip():
            raise ValidationError("Search query is required")
        needle = text.lower()
        return [r for r in await self.list_all(category) if _matches_text(r, needle)]

    async def count(self, category: str) -> int:
        return len(await self.list_all(category))

    async def stats(self) -> Dict:
        collections = {c: await self.count(c) for c in CATEGORIES}
        return {"totalDocuments": sum(collections.values()), "collections": collections}


class InMemoryDataStore(BaseDataStore):
    """
    Dict-backed store.

    `seed` maps category -> records and is loaded as-is (imported datasets use
    field aliases the admin whitelist would reject).

    Writes are copy-on-write: a changed category is staged on a copy, persisted
    through _flush(), and only then swapped in. A published category dict is
    never mutated, so readers need no lock. Writes run in a worker thread.
    """

    # JsonFileDataStore keeps its log on disk only
    retain_conversations = True

    def __init__(self, seed: Optional[Dict[str, List[Dict]]] = None):
        self._collections: Dict[str, Dict[str, Dict]] = {c: {} for c in CATEGORIES}
        self._conversations: List[Dict] = []
        self._lock = threading.Lock()
        self._log_lock = threading.Lock()
        for category, records in (seed or {}).items():
            if category == CONVERSATIONS:
                if self.retain_conversations:
                    self._conversations.extend(dict(r) for r in records)
                continue
            check_category(category)
            for record in records:
                rid = str(record.get("id") or uuid.uuid4().hex)
                self._collections[category][rid] = {**record, "id": rid}

    @property
    def conversations(self) -> List[Dict]:
        return [dict(c) for c in self._conversations]

    async def list_all(self, category: str) -> List[Dict]:
        check_category(category)
        return [dict(r) for r in self._collections[category].values()]

    async def get(self, category: str, record_id: str) -> Dict:
        check_category(category)
        record = self._collections[category].get(record_id)
        if record is None:
            raise NotFoundError("Document not found")
        return dict(record)

    def _commit(self, category: str, change: Callable[[Dict[str, Dict]], Any]) -> Any:
        with self._lock:
            staged = dict(self._collections[category])
            result = change(staged)
            self._flush({**self._collections, category: staged})
            self._collections[category] = staged
        return result

    async def add(self, category: str, record: Dict) -> str:
        validate_record(category, record)
        rid = uuid.uuid4().hex
        now = _now()

        def change(staged):
            staged[rid] = {**record, "id": rid, "createdAt": now, "updatedAt": now}
            return rid

        return await asyncio.to_thread(self._commit, category, change)

    async def update(self, category: str, record_id: str, changes: Dict) -> Dict:
        validate_record(category, changes, partial=True)

        def change(staged):
            current = staged.get(record_id)
            if current is None:
                raise NotFoundError("Document not found")
            staged[record_id] = {**current, **changes, "updatedAt": _now()}
            return dict(staged[record_id])

        return await asyncio.to_thread(self._commit, category, change)

    async def delete(self, category: str, record_id: str) -> None:
        check_category(category)

        def change(staged):
            if record_id not in staged:
                raise NotFoundError("Document not found")
            del staged[record_id]

        await asyncio.to_thread(self._commit, category, change)

    def _log(self, entry: Dict) -> None:
        with self._log_lock:
            self._write_conversation(entry)
            if self.retain_conversations:
                self._conversations.append(entry)

    async def append(self, collection: str, record: Dict) -> str:
        if collection != CONVERSATIONS:
            return await self.add(collection, record)
        rid = uuid.uuid4().hex
        await asyncio.to_thread(self._log, {**record, "id": rid})
        return rid

    def _flush(self, collections: Dict[str, Dict[str, Dict]]) -> None:
        """Persist the staged collections; no-op in memory."""

    def _write_conversation(self, entry: Dict) -> None:
        """Persist one conversation entry; no-op in memory."""

    def snapshot(self) -> Dict[str, List[Dict]]:
        return _as_lists(self._collections)


def _as_lists(collections: Dict[str, Dict[str, Dict]]) -> Dict[str, List[Dict]]:
    return {c: [dict(r) for r in recs.values()] for c, recs in collections.items()}


class JsonFileDataStore(InMemoryDataStore):
    """
    Collections live in one JSON document; conversations are appended to a
    JSONL file so the log is never rewritten.
    """

    retain_conversations = False

    def __init__(self, path: str, conversation_log_path: Optional[str] = None):
        self.path = Path(path)
        self.conversation_log_path = Path(conversation_log_path) if conversation_log_path else None
        seed = {}
        if self.path.is_file():
            with open(self.path, "r", encoding="utf-8") as f:
                seed = json.load(f)
            seed = {k: v for k, v in seed.items() if k in FIELD_RULES}
        super().__init__(seed=seed)

    def _flush(self, collections: Dict[str, Dict[str, Dict]]) -> None:
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(_as_lists(collections), f, ensure_ascii=False, indent=2, default=str)
            os.replace(tmp, self.path)
        except OSError as e:
            raise DataStoreUnavailable(f"could not write {self.path}: {e}") from e

    def _write_conversation(self, entry: Dict) -> None:
        if self.conversation_log_path is None:
            return
        try:
            self.conversation_log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.conversation_log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
        except OSError as e:
            raise PersistenceWriteFailure(f"could not append conversation: {e}") from e
