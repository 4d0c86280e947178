# backend/campusbot/ai_generator.py
import asyncio
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence

from ollama import AsyncClient

from . import config
from .errors import AIGenerationFailure
from .telemetry import log_event

logger = logging.getLogger(__name__)

# Grounded answers stick to the data; general-knowledge answers may roam
GROUNDED_OPTIONS = {"temperature": 0.3, "top_p": 0.9}
GENERAL_OPTIONS = {"temperature": 0.9, "top_p": 1}


def _has_data(context: Optional[Dict[str, Sequence[Dict]]]) -> bool:
    return bool(context) and any(items for items in context.values())


def _format_context_line(collection: str, item: Dict) -> str:
    if collection == "canteen_items":
        name = item.get("name") or item.get("itemName") or "Unknown"
        price = item.get("price")
        price = f"${price}" if price not in (None, "") else "N/A"
        veg = "Yes" if item.get("vegetarian") else "No"
        return f"- {name}: {price} | Availability: {item.get('availability') or 'N/A'} | Vegetarian: {veg}"
    if collection == "events":
        title = item.get("title") or item.get("name") or item.get("Event_Name") or "Unknown"
        venue = item.get("venue") or item.get("location") or "TBD"
        return f"- {title} on {item.get('date') or 'TBD'} at {item.get('time') or ''} in {venue}"
    if collection == "clubs":
        contact = item.get("contactEmail") or item.get("email") or "N/A"
        return f"- {item.get('name') or 'Unknown'}: {item.get('description') or ''} | Contact: {contact}"
    if collection == "faqs":
        return f"- Q: {item.get('question') or ''} A: {item.get('answer') or ''}"
    if collection == "facilities":
        return f"- {item.get('name') or 'Unknown'} ({item.get('type') or ''}) at {item.get('location') or 'N/A'}, hours: {item.get('hours') or 'N/A'}"
    return "- " + json.dumps(item, ensure_ascii=False, default=str)[:200] + "..."


def build_prompt(query: str, context: Optional[Dict[str, Sequence[Dict]]]) -> str:
    data_block = ""
    if _has_data(context):
        lines = ["CAMPUS DATA:"]
        for collection, items in context.items():
            if not items:
                continue
            lines.append(f"\n{collection.upper()}:")
            lines.extend(_format_context_line(collection, item) for item in items)
        data_block = "You have access to this campus information:\n" + "\n".join(lines) + "\n"

    return f"""You are a friendly, knowledgeable assistant for a campus community.

{data_block}
Guidelines:
- Be conversational and natural, not robotic
- If campus data is given, answer from it and do not invent events, prices or contacts
- If no campus data is given, answer from general knowledge and say what the user can ask about
- For academic/study questions: give practical, actionable tips
- Use simple, clear language

User Question: {query}

Answer:"""


def fallback_response(query: str, context: Optional[Dict[str, Sequence[Dict]]] = None) -> str:
    """Canned reply keyed by coarse intent, used when no model answers."""
    q = (query or "").lower()

    if _has_data(context):
        if "facility" in q or "facilities" in q:
            return ("🏫 Our campus has facilities such as the library, computer labs, sports complex "
                    "and cafeteria. The details I found are listed below.")
        if "event" in q:
            return "🎉 Here are the events I found, with dates, times, venues and organizers."
        if "club" in q:
            return "🎓 Here are the clubs that match your question, with their contacts and meeting times."
        if "exam" in q or "registration" in q:
            return ("📝 For exam registration and academic dates, see the information below or contact "
                    "the Academic Office.")
        if "food" in q or "canteen" in q or "menu" in q or "price" in q:
            return "🍽️ Here is what I found in the canteen menu."
        return "📋 Here is the campus information I found for your question."

    if "how" in q or "what" in q:
        if "study" in q:
            return ("📚 Effective study tips: break topics into manageable chunks, use active recall, "
                    "take regular breaks, form study groups, and review regularly.")
        if "exam" in q:
            return ("✅ Exam preparation: make a study schedule, focus on key concepts, practice past "
                    "papers, and get enough sleep before the exam.")
        if "manage" in q:
            return ("⏰ Time management: prioritize tasks, use the Pomodoro technique, minimize "
                    "distractions, and review your progress regularly.")

    return ("👋 I'm the Campus Assistant! I can help with campus events, clubs, facilities, the "
            "canteen menu, exams, and general academic advice. What would you like to know?")


class BaseTextGenerator(ABC):
    """Base class for reply generators"""

    @abstractmethod
    async def generate(self, query: str, context: Dict[str, Sequence[Dict]]) -> str:
        """
        Return a natural-language reply; raise AIGenerationFailure on failure
        """
        pass


class OllamaTextGenerator(BaseTextGenerator):
    """
    Tries each model in order; the first non-empty reply wins.
    Every attempt is bounded by `timeout` seconds.
    """

    def __init__(self,
                 ollama_url: str = config.OLLAMA_URL,
                 models: Optional[List[str]] = None,
                 timeout: float = config.AI_TIMEOUT,
                 client_factory: Optional[Callable[[], Any]] = None):
        self.ollama_url = ollama_url
        self.models = list(models) if models is not None else list(config.LLM_MODELS)
        self.timeout = timeout
        self._client_factory = client_factory or (
            lambda: AsyncClient(host=self.ollama_url, timeout=self.timeout)
        )

    async def _attempt(self, client: Any, model: str, prompt: str, options: Dict) -> str:
        response = await client.chat(
            model=model,
            messages=[{'role': 'user', 'content': prompt}],
            stream=False,
            keep_alive=config.LLM_KEEP_ALIVE,
            options={**options, "num_predict": config.LLM_NUM_PREDICT},
        )
        text = (response['message']['content'] or "").strip()
        if not text:
            raise AIGenerationFailure(f"{model} returned an empty reply")
        return text

    async def generate(self, query: str, context: Dict[str, Sequence[Dict]]) -> str:
        if not self.models:
            raise AIGenerationFailure("no models configured")

        prompt = build_prompt(query, context)
        options = GROUNDED_OPTIONS if _has_data(context) else GENERAL_OPTIONS
        client = self._client_factory()

        errors = []
        for model in self.models:
            t0 = time.time()
            try:
                text = await asyncio.wait_for(
                    self._attempt(client, model, prompt, options),
                    timeout=self.timeout,
                )
            except Exception as e:
                # any failure moves on to the next model
                reason = "timeout" if isinstance(e, asyncio.TimeoutError) else str(e) or type(e).__name__
                logger.warning("model %s failed: %s", model, reason)
                log_event("llm_attempt_failed", model=model, error=reason)
                errors.append(f"{model}: {reason}")
                continue
            log_event("llm_attempt_ok", model=model, llm_ms=int((time.time() - t0) * 1000))
            return text

        raise AIGenerationFailure("all models failed: " + "; ".join(errors))
