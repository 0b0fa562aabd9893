from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from datanexus.domain.models.market_item import GroundingSource

UNKNOWN_SOURCE_TITLE = "unknown source"
UNKNOWN_SOURCE_URI = "#"


def sources_from_grounding_chunks(chunks: Iterable[Any] | None) -> list[GroundingSource]:
    """Keep web chunks only; their order defines the 1-based citation numbering."""
    sources: list[GroundingSource] = []
    for chunk in chunks or []:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        if not isinstance(web, dict):
            continue
        sources.append(
            GroundingSource(
                title=str(web.get("title") or UNKNOWN_SOURCE_TITLE),
                uri=str(web.get("uri") or UNKNOWN_SOURCE_URI),
            )
        )
    return sources


def sources_from_payload(payload: Any) -> list[GroundingSource]:
    """Read either a plain ``[{title, uri}]`` list or a ``groundingChunks`` container."""
    if isinstance(payload, dict):
        if isinstance(payload.get("sources"), list):
            return sources_from_payload(payload["sources"])
        if "groundingChunks" in payload:
            return sources_from_grounding_chunks(payload.get("groundingChunks"))
        return []
    if not isinstance(payload, list):
        return []
    if any(isinstance(entry, dict) and "web" in entry for entry in payload):
        return sources_from_grounding_chunks(payload)
    return [
        GroundingSource(
            title=str(entry.get("title") or UNKNOWN_SOURCE_TITLE),
            uri=str(entry.get("uri") or UNKNOWN_SOURCE_URI),
        )
        for entry in payload
        if isinstance(entry, dict)
    ]
