from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path

from datanexus.core.errors import ProviderError
from datanexus.domain.models.market_item import Category
from datanexus.infrastructure.providers.base import ProviderResponse
from datanexus.infrastructure.providers.grounding import sources_from_payload

logger = logging.getLogger(__name__)


def capture_path(captures_dir: Path, category: Category, date: str) -> Path:
    return captures_dir / date / f"{category.value}.json"


def load_capture(path: Path) -> ProviderResponse:
    """Read ``{"text": ..., "sources" | "groundingChunks": [...]}`` from disk."""
    if not path.exists() or not path.is_file():
        raise ProviderError(f"No captured response at {path}")
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ProviderError(f"Unreadable capture file {path}: {exc}") from exc
    if not isinstance(payload, dict) or not isinstance(payload.get("text"), str):
        raise ProviderError(f"Capture file {path} must be an object with a 'text' string")
    return ProviderResponse(text=payload["text"], sources=tuple(sources_from_payload(payload)))


class CaptureDirectoryProvider:
    """Replays provider responses saved as ``<captures_dir>/<date>/<category>.json``."""

    def __init__(self, captures_dir: Path) -> None:
        self.captures_dir = captures_dir

    async def fetch(self, category: Category, date: str) -> ProviderResponse:
        path = capture_path(self.captures_dir, category, date)
        logger.debug("Replaying capture %s", path)
        return await asyncio.to_thread(load_capture, path)
