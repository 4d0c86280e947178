# backend/campusbot/config.py
import os
from typing import List


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except Exception:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except Exception:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [part.strip() for part in raw.split(",") if part.strip()]


# ---- Storage ----
CAMPUS_DATA_PATH = os.getenv("CAMPUS_DATA_PATH", "./data/campus_data.json")
CONVERSATION_LOG_PATH = os.getenv("CONVERSATION_LOG_PATH", "./data/conversations.jsonl")

# ---- LLM (Ollama) ----
OLLAMA_URL = os.getenv("OLLAMA_URL", "http://localhost:11434")
LLM_MODELS = _env_list("LLM_MODELS", ["llama3.2:3b", "llama3.2:1b"])
LLM_KEEP_ALIVE = os.getenv("LLM_KEEP_ALIVE", "15m")
LLM_NUM_PREDICT = _env_int("LLM_NUM_PREDICT", 1024)
AI_ENABLED = _env_bool("AI_ENABLED", True)
AI_TIMEOUT = _env_float("AI_TIMEOUT", 20.0)
AI_CONTEXT_LIMIT = _env_int("AI_CONTEXT_LIMIT", 5)

# ---- Retrieval ----
CONTEXT_STRATEGY = os.getenv("CONTEXT_STRATEGY", "matching")
CLASSIFIER_MODE = os.getenv("CLASSIFIER_MODE", "exact")
CONTEXT_FETCH_LIMIT = _env_int("CONTEXT_FETCH_LIMIT", 10)
