# backend/campusbot/telemetry.py
import os
import json
import time
import logging
from pathlib import Path

# ---------- Structured logging ----------
# Paths are resolved per call so LOG_DIR can be changed at runtime (tests, scripts).


def _log_dir() -> Path:
    return Path(os.getenv("LOG_DIR", "./logs"))


def _verbose() -> bool:
    return os.getenv("CAMPUS_VERBOSE", "0").lower() in ("1", "true", "yes", "on")


def _summary_path() -> Path:
    summary_dir = _log_dir() / "log"
    summary_dir.mkdir(parents=True, exist_ok=True)
    return summary_dir / f"chat_{time.strftime('%Y-%m-%d')}.jsonl"


def _debug_path() -> Path:
    debug_dir = _log_dir() / "debug"
    debug_dir.mkdir(parents=True, exist_ok=True)
    return debug_dir / f"chat_debug_{time.strftime('%Y-%m-%d')}.jsonl"


def log_summary(**fields):
    """One line per handled query."""
    fields.setdefault("ts", time.strftime('%Y-%m-%dT%H:%M:%S%z'))
    line = json.dumps(fields, ensure_ascii=False, default=str)
    try:
        with open(_summary_path(), "a", encoding="utf-8") as f:
            f.write(line + "\n")
    except OSError as e:
        logging.getLogger(__name__).warning("could not write query summary: %s", e)


_logger = logging.getLogger("campus_debug")
_logger.setLevel(logging.INFO)
_logger.propagate = False


def _ensure_debug_handler():
    if _logger.handlers:
        return
    try:
        fh = logging.FileHandler(_debug_path(), encoding="utf-8")
        fh.setFormatter(logging.Formatter('%(message)s'))
        _logger.addHandler(fh)
    except OSError:
        _logger.addHandler(logging.NullHandler())


def log_event(event: str, **fields):
    if not _verbose():
        return
    _ensure_debug_handler()
    payload = {
        "ts": time.strftime('%Y-%m-%dT%H:%M:%S%z'),
        "event": event,
        **fields
    }
    _logger.info(json.dumps(payload, ensure_ascii=False, default=str))
