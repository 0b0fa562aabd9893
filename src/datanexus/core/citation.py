from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from datanexus.domain.models.market_item import GroundingSource

CITATION_MARKER_RE = re.compile(r"\[(\d+)\]")


@dataclass(frozen=True, slots=True)
class CitationSegment:
    text: str
    index: int | None = None
    source: GroundingSource | None = None

    @property
    def is_citation(self) -> bool:
        return self.source is not None


def lookup_source(index: object, sources: Sequence[GroundingSource]) -> GroundingSource | None:
    """Map a 1-based citation index onto ``sources``; None when out of range."""
    if isinstance(index, bool) or not isinstance(index, int):
        return None
    if 1 <= index <= len(sources):
        return sources[index - 1]
    return None


def resolve_citations(indices: Iterable[object], sources: Sequence[GroundingSource]) -> list[GroundingSource]:
    resolved: list[GroundingSource] = []
    for index in indices:
        source = lookup_source(index, sources)
        if source is not None:
            resolved.append(source)
    return resolved


def cited_indices(text: str | None) -> list[int]:
    return [int(match.group(1)) for match in CITATION_MARKER_RE.finditer(text or "")]


def split_citation_markers(text: str | None, sources: Sequence[GroundingSource]) -> list[CitationSegment]:
    """Split free text into plain runs and ``[n]`` markers resolved against ``sources``.

    Markers resolve against the full source list whether or not the item lists
    ``n`` in its own source indices. A marker that points outside the list is
    kept as plain text.
    """
    segments: list[CitationSegment] = []
    raw = text or ""
    cursor = 0
    for match in CITATION_MARKER_RE.finditer(raw):
        if match.start() > cursor:
            segments.append(CitationSegment(text=raw[cursor : match.start()]))
        index = int(match.group(1))
        source = lookup_source(index, sources)
        if source is None:
            segments.append(CitationSegment(text=match.group(0)))
        else:
            segments.append(CitationSegment(text=match.group(0), index=index, source=source))
        cursor = match.end()
    if cursor < len(raw):
        segments.append(CitationSegment(text=raw[cursor:]))
    return segments
