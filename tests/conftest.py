"""Shared fixtures for the test suite."""

from __future__ import annotations

import base64
import io
from collections.abc import Iterator
from typing import Any

import pytest
from PIL import Image

from evidence_pack import config
from evidence_pack.models import evidence, metadata, records
from evidence_pack.models.records import TriState


def _make_png(width: int = 40, height: int = 20, color: str = "red") -> bytes:
    """Create a minimal PNG image in memory."""
    img = Image.new("RGB", (width, height), color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    """Re-read settings from the environment for every test."""
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


# ── Metadata ────────────────────────────────────────────────────


@pytest.fixture()
def metadata_json() -> dict[str, Any]:
    """Run metadata as the capture stage writes it, including an unknown key."""
    return {
        "runId": "run-2026-01-01-a",
        "url": "https://news.example.com/article",
        "startedAt": 1767225600000,
        "finishedAt": 1767225606500,
        "userAgent": "Mozilla/5.0 (X11; Linux x86_64) HeadlessChrome/120.0",
        "viewport": {"width": 1366, "height": 768},
        "locale": "en-US",
        "template": "article",
        "crawlerVersion": "2.4.1",
        "featureFlags": {"adImpression": True, "cmsDrift": False},
        "expectedTags": {"GTM": ["GTM-ABC123"], "GA4": ["G-XYZ789"]},
        "notes": "Résumé of a run with non-ASCII notes",
        "scannerHost": "scanner-7",
    }


@pytest.fixture()
def sample_metadata(metadata_json: dict[str, Any]) -> metadata.RunMetadata:
    return metadata.RunMetadata.model_validate(metadata_json)


# ── Records ─────────────────────────────────────────────────────


@pytest.fixture()
def sample_iframes() -> list[records.IframeRecord]:
    """Two frames: a visible ad slot and a tracking pixel frame."""
    return [
        records.IframeRecord(
            id="google_ads_iframe_1",
            src="https://securepubads.g.doubleclick.net/container.html",
            bbox=records.BoundingBox(x=10, y=200, width=300, height=250),
            z_index=5,
            visibility="visible",
            opacity=1,
            in_viewport_pct=100,
            area_pct_of_viewport=7.15,
            overlap_pct_with=[records.FrameOverlap(other_id="pixel", pct=0.5)],
            is_tiny=TriState.FALSE,
            is_hidden=TriState.FALSE,
            is_ad_iframe=TriState.TRUE,
        ),
        records.IframeRecord(
            id="pixel",
            bbox=records.BoundingBox(x=0, y=0, width=1, height=1),
            is_tiny=TriState.TRUE,
        ),
    ]


@pytest.fixture()
def sample_tags() -> list[records.TagRecord]:
    return [
        records.TagRecord(
            id="GTM-ABC123",
            type="GTM",
            name="Main container",
            container_id="GTM-ABC123",
            triggers=["pageview", "scroll"],
            fired=TriState.TRUE,
            frame_url="https://news.example.com/article",
            page_url="https://news.example.com/article",
        ),
        records.TagRecord(id="G-XYZ789", type="GA4", fired=TriState.FALSE),
    ]


@pytest.fixture()
def sample_events() -> list[records.GptEvent]:
    return [
        records.GptEvent(ts=1767225601000, type="adRequested", slot_id="div-gpt-ad-1", ad_unit_path="/1234/news/top"),
        records.GptEvent(
            ts=1767225602500,
            type="slotRenderEnded",
            slot_id="div-gpt-ad-1",
            ad_unit_path="/1234/news/top",
            request_id="req-9",
            size=(300, 250),
            payload={"isEmpty": False, "advertiserId": 42},
        ),
        records.GptEvent(ts=1767225604000, type="impressionViewable", slot_id="div-gpt-ad-1"),
    ]


# ── Captures ────────────────────────────────────────────────────


@pytest.fixture()
def har_object() -> dict[str, Any]:
    return {"log": {"version": "1.2", "creator": {"name": "capture", "version": "1"}, "entries": []}}


@pytest.fixture()
def full_capture(
    sample_metadata: metadata.RunMetadata,
    sample_iframes: list[records.IframeRecord],
    sample_tags: list[records.TagRecord],
    sample_events: list[records.GptEvent],
    har_object: dict[str, Any],
) -> evidence.PackCapture:
    """A capture with every optional artifact populated."""
    return evidence.PackCapture(
        metadata=sample_metadata,
        network_har=har_object,
        dom_snapshots=evidence.DomSnapshots(
            initial="<html><body>loading</body></html>",
            t3="<html><body><div id='ad'></div></body></html>",
            t6="<html><body><div id='ad'><iframe></iframe></div></body></html>",
        ),
        screenshots=evidence.ScreenshotPayloads(
            full=_make_png(1366, 768),
            crops={"top_banner": base64.b64encode(_make_png(300, 250)).decode("ascii")},
        ),
        iframes=sample_iframes,
        tags=sample_tags,
        gpt_events=sample_events,
    )


@pytest.fixture()
def minimal_capture(sample_metadata: metadata.RunMetadata) -> evidence.PackCapture:
    """A capture carrying metadata only."""
    return evidence.PackCapture(metadata=sample_metadata)
