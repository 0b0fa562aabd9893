from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence

from datanexus.core.citation import resolve_citations
from datanexus.core.time import now_utc_iso
from datanexus.domain.models.market_item import Category, GroundingSource, MarketItem, SearchResult
from datanexus.domain.models.repair import Fallback
from datanexus.infrastructure.parsers.response_repairer import repair

logger = logging.getLogger(__name__)

UNTITLED = "untitled"
NATIONWIDE = "nationwide"
UNKNOWN_ENTITY = "unknown subject"
UNDISCLOSED = "undisclosed"

_WHITESPACE_CONTROL_RE = re.compile(r"[\t\n\r\v\f]+")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0e-\x1f\x7f-\x9f\u2028\u2029]")


def printable_text(value: object) -> str:
    """Coerce a loosely-typed JSON value to single-line printable text."""
    if value is None or isinstance(value, (dict, list, bool)):
        return ""
    text = str(value)
    text = _WHITESPACE_CONTROL_RE.sub(" ", text)
    text = _CONTROL_RE.sub("", text)
    return text.strip()


def coerce_source_indices(value: object) -> list[int]:
    if not isinstance(value, list):
        return []
    indices: list[int] = []
    for entry in value:
        if isinstance(entry, bool):
            continue
        if isinstance(entry, int):
            indices.append(entry)
        elif isinstance(entry, float) and entry.is_integer():
            indices.append(int(entry))
    return indices


def normalize_item(
    raw: object,
    category: Category,
    date: str,
    sources: Sequence[GroundingSource],
) -> MarketItem:
    fields: Mapping[str, object] = raw if isinstance(raw, Mapping) else {}
    indices = coerce_source_indices(fields.get("source_indices"))
    return MarketItem(
        category=category,
        date=date,
        title=printable_text(fields.get("title")) or UNTITLED,
        region=printable_text(fields.get("region")) or NATIONWIDE,
        entity=printable_text(fields.get("entity")) or UNKNOWN_ENTITY,
        amount=printable_text(fields.get("amount")) or UNDISCLOSED,
        summary=printable_text(fields.get("summary")),
        source_indices=indices,
        sources=resolve_citations(indices, sources),
    )


def normalize_response(
    raw_text: str | None,
    sources: Sequence[GroundingSource],
    category: Category,
    date: str,
) -> SearchResult:
    outcome = repair(raw_text)
    if isinstance(outcome, Fallback):
        logger.info("No items recovered for %s on %s: %s", category.value, date, outcome.reason)
    source_list = tuple(sources)
    items = tuple(normalize_item(raw, category, date, source_list) for raw in outcome.items)
    return SearchResult(items=items, sources=source_list, timestamp=now_utc_iso())
