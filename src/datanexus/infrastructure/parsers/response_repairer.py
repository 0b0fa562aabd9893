from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from typing import Any

from datanexus.domain.models.repair import Fallback, RepairOutcome, WellFormed

logger = logging.getLogger(__name__)

DEFAULT_ARRAY_KEYS: tuple[str, ...] = ("source_indices",)

_LEADING_FENCE_RE = re.compile(r"^\s*```[A-Za-z0-9_+-]*[ \t]*\r?\n?")
_TRAILING_FENCE_RE = re.compile(r"\r?\n?[ \t]*```\s*$")
_PREVIEW_CHARS = 100


def strip_code_fences(text: str) -> str:
    cleaned = _LEADING_FENCE_RE.sub("", text, count=1)
    cleaned = _TRAILING_FENCE_RE.sub("", cleaned, count=1)
    return cleaned.strip()


def _missing_array_value_re(key: str) -> re.Pattern[str]:
    # "key": immediately followed by , } or ] means the model dropped the value.
    return re.compile(r'"' + re.escape(key) + r'"\s*:\s*(?=[,}\]])')


def fill_missing_arrays(text: str, keys: Iterable[str] = DEFAULT_ARRAY_KEYS) -> str:
    for key in keys:
        text = _missing_array_value_re(key).sub(f'"{key}": []', text)
    return text


def clean_response_text(raw_text: str | None, keys: Iterable[str] = DEFAULT_ARRAY_KEYS) -> str:
    return fill_missing_arrays(strip_code_fences(raw_text or ""), keys)


def extract_items(payload: Any) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("items"), list):
        return payload["items"]
    return []


def repair(raw_text: str | None, keys: Iterable[str] = DEFAULT_ARRAY_KEYS) -> RepairOutcome:
    """Turn a model response that should be JSON into a tagged outcome. Never raises."""
    cleaned = clean_response_text(raw_text, keys)
    if not cleaned:
        logger.warning("Empty model response; using empty item list")
        return Fallback(reason="empty response")
    try:
        payload = json.loads(cleaned)
    except (ValueError, RecursionError) as exc:
        logger.warning(
            "Model response is not valid JSON (%s); using empty item list. Preview: %s...",
            exc,
            cleaned[:_PREVIEW_CHARS],
        )
        return Fallback(reason=str(exc))
    return WellFormed(payload=payload, items=extract_items(payload))


def parse_response(raw_text: str | None, keys: Iterable[str] = DEFAULT_ARRAY_KEYS) -> Any:
    return repair(raw_text, keys).payload
