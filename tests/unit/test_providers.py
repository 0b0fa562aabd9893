import asyncio
import json
from pathlib import Path

import pytest

from datanexus.core.errors import ProviderError
from datanexus.domain.models.market_item import Category, GroundingSource
from datanexus.infrastructure.providers.capture_provider import CaptureDirectoryProvider, capture_path
from datanexus.infrastructure.providers.grounding import (
    UNKNOWN_SOURCE_TITLE,
    UNKNOWN_SOURCE_URI,
    sources_from_grounding_chunks,
    sources_from_payload,
)


def test_grounding_chunks_keep_web_entries_with_defaults() -> None:
    chunks = [
        {"web": {"title": "Gov Portal", "uri": "https://gov.example"}},
        {"retrievedContext": {"uri": "gs://bucket/doc"}},
        {"web": {}},
    ]

    assert sources_from_grounding_chunks(chunks) == [
        GroundingSource(title="Gov Portal", uri="https://gov.example"),
        GroundingSource(title=UNKNOWN_SOURCE_TITLE, uri=UNKNOWN_SOURCE_URI),
    ]
    assert sources_from_grounding_chunks(None) == []


def test_sources_from_payload_accepts_plain_lists_and_containers() -> None:
    plain = [{"title": "A", "uri": "https://a"}, "junk"]
    assert sources_from_payload(plain) == [GroundingSource(title="A", uri="https://a")]
    assert sources_from_payload({"sources": plain}) == [GroundingSource(title="A", uri="https://a")]
    assert sources_from_payload({"groundingChunks": [{"web": {"title": "B", "uri": "https://b"}}]}) == [
        GroundingSource(title="B", uri="https://b")
    ]
    assert sources_from_payload("nope") == []


def test_capture_provider_replays_saved_response(tmp_path: Path) -> None:
    path = capture_path(tmp_path, Category.TENDER, "2024-01-01")
    path.parent.mkdir(parents=True)
    path.write_text(
        json.dumps(
            {
                "text": '{"items": []}',
                "groundingChunks": [{"web": {"title": "Gov Portal", "uri": "https://x"}}],
            }
        ),
        encoding="utf-8",
    )

    response = asyncio.run(CaptureDirectoryProvider(tmp_path).fetch(Category.TENDER, "2024-01-01"))

    assert response.text == '{"items": []}'
    assert response.sources == (GroundingSource(title="Gov Portal", uri="https://x"),)


def test_capture_provider_missing_file_is_provider_error(tmp_path: Path) -> None:
    with pytest.raises(ProviderError):
        asyncio.run(CaptureDirectoryProvider(tmp_path).fetch(Category.DEMAND, "2024-01-01"))


def test_capture_provider_rejects_bad_shape(tmp_path: Path) -> None:
    path = capture_path(tmp_path, Category.DEMAND, "2024-01-01")
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({"items": []}), encoding="utf-8")

    with pytest.raises(ProviderError):
        asyncio.run(CaptureDirectoryProvider(tmp_path).fetch(Category.DEMAND, "2024-01-01"))
