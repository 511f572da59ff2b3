"""Tests for evidence_pack.models: Pydantic pack and record models."""

from __future__ import annotations

import json

import pytest

from evidence_pack.models import evidence, metadata, records
from evidence_pack.models.records import TriState


class TestTriState:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (True, TriState.TRUE),
            (False, TriState.FALSE),
            ("true", TriState.TRUE),
            ("FALSE", TriState.FALSE),
            (None, TriState.UNKNOWN),
            (1, TriState.UNKNOWN),
            ("maybe", TriState.UNKNOWN),
            (TriState.FALSE, TriState.FALSE),
        ],
    )
    def test_coerce(self, value: object, expected: TriState) -> None:
        assert TriState.coerce(value) is expected

    def test_to_optional(self) -> None:
        assert TriState.TRUE.to_optional() is True
        assert TriState.FALSE.to_optional() is False
        assert TriState.UNKNOWN.to_optional() is None


class TestRunMetadata:
    def test_camel_case_input(self, metadata_json: dict[str, object]) -> None:
        meta = metadata.RunMetadata.model_validate(metadata_json)
        assert meta.run_id == "run-2026-01-01-a"
        assert meta.viewport == metadata.Viewport(width=1366, height=768)
        assert meta.started_at == 1767225600000
        assert isinstance(meta.started_at, int)

    def test_snake_case_input(self) -> None:
        meta = metadata.RunMetadata(run_id="r", crawler_version="1.0")
        assert meta.model_dump(by_alias=True) == {"runId": "r", "crawlerVersion": "1.0"}

    def test_run_id_required(self) -> None:
        with pytest.raises(ValueError):
            metadata.RunMetadata.model_validate({"url": "https://example.com"})

    def test_extras_serialized(self) -> None:
        meta = metadata.RunMetadata.model_validate({"runId": "r", "pipelineStage": "capture"})
        assert json.loads(meta.model_dump_json(by_alias=True)) == {"runId": "r", "pipelineStage": "capture"}

    def test_null_values_written_back(self) -> None:
        raw = {"runId": "r", "notes": None, "operator": None}
        meta = metadata.RunMetadata.model_validate(raw)
        assert meta.notes is None
        assert json.loads(meta.model_dump_json(by_alias=True)) == raw

    @pytest.mark.parametrize(
        "raw",
        [
            {"runId": "r", "viewport": {"width": 1366}},
            {"runId": "r", "startedAt": "2026-01-01T00:00:00Z"},
            {"runId": "r", "featureFlags": {"adImpression": "sometimes"}},
        ],
    )
    def test_malformed_optional_kept_verbatim(self, raw: dict[str, object]) -> None:
        meta = metadata.RunMetadata.model_validate(raw)
        (key,) = set(raw) - {"runId"}
        assert meta.run_id == "r"
        assert meta.unparsed == {key: raw[key]}
        assert json.loads(meta.model_dump_json(by_alias=True)) == raw

    def test_malformed_field_reads_as_absent(self) -> None:
        meta = metadata.RunMetadata.model_validate({"runId": "r", "viewport": {"width": 1366}, "url": "https://example.com"})
        assert meta.viewport is None
        assert meta.url == "https://example.com"

    @pytest.mark.parametrize("run_id", ["", None, {"value": "r"}])
    def test_unusable_run_id_still_rejected(self, run_id: object) -> None:
        with pytest.raises(ValueError):
            metadata.RunMetadata.model_validate({"runId": run_id, "startedAt": "soon"})


class TestIframeRecord:
    def test_defaults(self) -> None:
        frame = records.IframeRecord(id="a")
        assert frame.bbox == records.BoundingBox()
        assert frame.in_viewport_pct == 0
        assert frame.area_pct_of_viewport == 0
        assert frame.is_tiny is TriState.UNKNOWN

    def test_legacy_equals_canonical(self) -> None:
        legacy = records.IframeRecord.model_validate(
            {"id": "a", "boundingBox": {"x": 1, "y": 2, "width": 3, "height": 4}, "tinyFlag": True}
        )
        canonical = records.IframeRecord.model_validate(
            {"id": "a", "bbox": {"x": 1, "y": 2, "width": 3, "height": 4}, "isTiny": True}
        )
        assert legacy.model_dump() == canonical.model_dump()

    def test_unknown_flags_omitted_from_output(self) -> None:
        frame = records.IframeRecord(id="a", is_hidden=False)
        dumped = frame.model_dump(by_alias=True)
        assert dumped["isHidden"] is False
        assert "isTiny" not in dumped
        assert "isAdIframe" not in dumped

    def test_z_index_keeps_css_keyword(self) -> None:
        frame = records.IframeRecord.model_validate({"id": "a", "zIndex": "auto"})
        assert frame.z_index == "auto"

    def test_malformed_axis_falls_back_to_zero(self) -> None:
        frame = records.IframeRecord.model_validate(
            {"id": "a", "bbox": {"x": "10px", "y": 5, "width": 300, "height": 250}, "isAdIframe": True}
        )
        assert frame.bbox == records.BoundingBox(x=0, y=5, width=300, height=250)
        assert frame.is_ad_iframe is TriState.TRUE

    def test_malformed_overlap_list_dropped(self) -> None:
        frame = records.IframeRecord.model_validate({"id": "a", "overlapPctWith": [{"pct": 40}], "opacity": 1})
        assert frame.overlap_pct_with is None
        assert frame.opacity == 1

    def test_reset_fields_reported_in_context(self) -> None:
        context: dict[str, object] = {}
        records.IframeRecord.model_validate({"id": "a", "zIndex": [1], "inViewportPct": "most"}, context=context)
        assert context["reset_fields"] == ["z_index", "in_viewport_pct"]

    def test_canonical_revalidation_is_stable(self) -> None:
        frame = records.IframeRecord.model_validate(
            {"name": "a", "viewportCoveragePct": 12.5, "inViewport": True, "classification": "ad"}
        )
        again = records.IframeRecord.model_validate(frame.model_dump(by_alias=True))
        assert again.model_dump(by_alias=True) == frame.model_dump(by_alias=True)
        assert again.in_viewport_pct == 100
        assert again.is_ad_iframe is TriState.TRUE


class TestTagRecord:
    def test_default_type(self) -> None:
        assert records.TagRecord(id="t").type == "Custom"

    def test_all_types_accepted(self) -> None:
        for tag_type in records.TAG_TYPES:
            assert records.TagRecord(id="t", type=tag_type).type == tag_type

    def test_malformed_triggers_dropped(self) -> None:
        tag = records.TagRecord.model_validate({"id": "t", "triggers": [{"type": "click"}], "containerId": "G-1"})
        assert tag.triggers is None
        assert tag.container_id == "G-1"


class TestGptEvent:
    def test_size_serialized_as_pair(self) -> None:
        event = records.GptEvent(size="300x250")
        assert json.loads(event.model_dump_json(by_alias=True))["size"] == [300, 250]

    def test_malformed_timestamp_defaults(self) -> None:
        event = records.GptEvent.model_validate({"ts": "noon", "slotId": "top"})
        assert event.ts == 0
        assert event.slot_id == "top"

    def test_event_types(self) -> None:
        assert set(records.GPT_EVENT_TYPES) == {"slotRenderEnded", "impressionViewable", "adRequested"}


class TestPackCapture:
    def test_run_id_from_metadata(self, full_capture: evidence.PackCapture) -> None:
        assert full_capture.run_id == full_capture.metadata.run_id

    def test_from_camel_case_mapping(self) -> None:
        capture = evidence.PackCapture.model_validate(
            {
                "metadata": {"runId": "r"},
                "networkHar": {"log": {}},
                "domSnapshots": {"t3": "<html></html>"},
                "gptEvents": [{"type": "impressionViewable"}],
            }
        )
        assert capture.network_har == {"log": {}}
        assert capture.dom_snapshots is not None
        assert capture.dom_snapshots.present() == {"t3": "<html></html>"}
        assert capture.gpt_events is not None
        assert capture.gpt_events[0].type == "impressionViewable"


class TestDomSnapshots:
    def test_present_keeps_checkpoint_order(self) -> None:
        dom = evidence.DomSnapshots(t6="c", initial="a")
        assert list(dom.present()) == ["initial", "t6"]

    def test_empty_string_is_present(self) -> None:
        assert evidence.DomSnapshots(initial="").present() == {"initial": ""}
