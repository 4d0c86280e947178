# backend/campusbot/orchestrator.py
import logging
import time
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Sequence

from . import config
from .ai_generator import BaseTextGenerator, OllamaTextGenerator, fallback_response
from .data_store import CONVERSATIONS, BaseDataStore, JsonFileDataStore
from .errors import AIGenerationFailure, DataStoreUnavailable, PersistenceWriteFailure, ValidationError
from .formatter import assemble
from .retrieval import BaseRetriever, create_retriever
from .telemetry import log_event, log_summary

logger = logging.getLogger(__name__)


class RequestState(str, Enum):
    RECEIVED = "received"
    CLASSIFIED = "classified"
    MATCHED = "matched"
    AI_AUGMENTED = "ai_augmented"
    PERSISTED = "persisted"
    RESPONDED = "responded"


def build_ai_context(results: Dict[str, Sequence[Dict]], per_category: int) -> Dict[str, List[Dict]]:
    """Matched records without scores, capped per category; empty categories dropped."""
    context = {}
    for category, records in results.items():
        if not records:
            continue
        context[category] = [
            {k: v for k, v in r.items() if k != "score"}
            for r in records[:per_category]
        ]
    return context


class CampusAssistant:
    """
    Handles one chat message at a time; holds no per-request state.

    A None store means the deployment has no data store configured:
    handle_message() then raises DataStoreUnavailable.
    """

    def __init__(self,
                 store: Optional[BaseDataStore],
                 generator: Optional[BaseTextGenerator] = None,
                 retriever: Optional[BaseRetriever] = None,
                 context_strategy: str = config.CONTEXT_STRATEGY,
                 ai_context_limit: int = config.AI_CONTEXT_LIMIT):
        self.store = store
        self.generator = generator
        self.ai_context_limit = ai_context_limit
        self.retriever = retriever
        if self.retriever is None and store is not None:
            self.retriever = create_retriever(context_strategy, store)

    def _advance(self, request_id: str, state: RequestState, **fields):
        log_event("request_state", request_id=request_id, state=state.value, **fields)

    async def _generate(self, request_id: str, query: str, context: Dict[str, List[Dict]]) -> str:
        if self.generator is None:
            return fallback_response(query, context)
        try:
            return await self.generator.generate(query, context)
        except AIGenerationFailure as e:
            logger.warning("AI generation failed, using fallback: %s", e)
            log_event("ai_fallback", request_id=request_id, error=str(e))
        except Exception as e:
            logger.exception("unexpected AI generator error")
            log_event("ai_fallback", request_id=request_id, error=str(e))
        return fallback_response(query, context)

    async def _persist(self, request_id: str, entry: Dict) -> bool:
        try:
            await self.store.append(CONVERSATIONS, entry)
            return True
        except PersistenceWriteFailure as e:
            logger.error("conversation log append failed: %s", e)
        except Exception as e:
            logger.exception("conversation log append failed")
            log_event("persist_failed", request_id=request_id, error=str(e))
        return False

    async def handle_message(self, message: str, user_id: Optional[str] = None) -> Dict:
        if not isinstance(message, str) or not message.strip():
            raise ValidationError("Message is required and must be non-empty")
        if self.store is None or self.retriever is None:
            raise DataStoreUnavailable("Database not initialized")

        request_id = uuid.uuid4().hex
        t0 = time.time()
        query = message.strip()
        self._advance(request_id, RequestState.RECEIVED, query=query)

        categories = self.retriever.categorize(query)
        queried = set(categories)
        self._advance(request_id, RequestState.CLASSIFIED, categories=categories)

        t_match = time.time()
        results = await self.retriever.fetch(query, categories)
        match_ms = int((time.time() - t_match) * 1000)
        self._advance(
            request_id, RequestState.MATCHED,
            counts={c: len(r) for c, r in results.items()}, match_ms=match_ms,
        )

        context = build_ai_context(results, self.ai_context_limit)
        t1 = time.time()
        ai_response = await self._generate(request_id, query, context)
        ai_ms = int((time.time() - t1) * 1000)
        self._advance(request_id, RequestState.AI_AUGMENTED, grounded=bool(context))

        structured = assemble(query, results, queried)
        structured["aiResponse"] = ai_response

        timestamp = datetime.now(timezone.utc).isoformat()
        persisted = await self._persist(request_id, {
            "userMessage": query,
            "response": structured,
            "aiResponse": ai_response,
            "timestamp": timestamp,
            "userId": user_id or "anonymous",
        })
        self._advance(request_id, RequestState.PERSISTED, ok=persisted)

        log_summary(
            event="chat_summary",
            request_id=request_id,
            query=query,
            categories=sorted(queried),
            total_results=structured["totalResults"],
            grounded=bool(context),
            match_ms=match_ms,
            ai_ms=ai_ms,
            total_ms=int((time.time() - t0) * 1000),
            persisted=persisted,
        )
        self._advance(request_id, RequestState.RESPONDED)

        return {
            "success": True,
            "message": query,
            "data": structured,
            "aiResponse": ai_response,
            "totalResults": structured["totalResults"],
            "timestamp": timestamp,
            "requestId": request_id,
        }


# Singleton instance
_assistant = None


def get_campus_assistant() -> CampusAssistant:
    global _assistant
    if _assistant is None:
        store = JsonFileDataStore(config.CAMPUS_DATA_PATH, config.CONVERSATION_LOG_PATH)
        generator = OllamaTextGenerator() if config.AI_ENABLED else None
        _assistant = CampusAssistant(store=store, generator=generator)
        print("✓ Campus assistant initialized")
        print(f"  - Data file: {config.CAMPUS_DATA_PATH}")
        print(f"  - Models: {', '.join(config.LLM_MODELS) if generator else 'disabled (rule-based replies)'}")
        print(f"  - Retrieval: {config.CONTEXT_STRATEGY}")
    return _assistant
