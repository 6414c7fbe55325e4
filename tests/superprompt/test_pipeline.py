"""Tests for superprompt.pipeline: PipelineOrchestrator and run_pipeline.

Covers:
- Happy path ordering, indices and labels passed to the component analyzer
- Empty detections, degraded design analysis, synthesis failure
- Missing credentials, cancellation, progress callback
- Cropping and concurrent fan-out
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, List
from unittest.mock import patch

import pytest
from PIL import Image

from superprompt.errors import ProviderError
from superprompt.models import PipelineConfig, StageStatus
from superprompt.pipeline import PipelineOrchestrator, run_pipeline

DETECT = "UI analysis expert"
COMPONENT = "analyzing UI components"
DESIGN = "ANALYZE AND OUTPUT"
ACTIVITY = "webpage activity"
SYNTH = "Rewrite it into"

TWO_DETECTIONS = json.dumps({"components": [
    {"type": "header", "location": "top", "bbox": [10, 10, 50, 20], "text": "Navigation"},
    {"type": "button", "location": "center", "bbox": [100, 50, 80, 30], "text": "Submit"},
]})


def _echo_user_prompt(call: Dict[str, Any]) -> str:
    return call["user_prompt"]


def _component_reply(call: Dict[str, Any]) -> str:
    line = next(row for row in call["user_prompt"].splitlines() if "number:" in row)
    return f"analysis #{line.rsplit(':', 1)[1].strip()}"


def _replies(**overrides) -> Dict[str, Any]:
    replies = {
        DETECT: TWO_DETECTIONS,
        COMPONENT: _component_reply,
        DESIGN: "Header over a single column",
        ACTIVITY: "The user is filling a form.",
        SYNTH: _echo_user_prompt,
    }
    replies.update(overrides)
    return replies


def _config(**overrides) -> PipelineConfig:
    return PipelineConfig(**overrides)


# ─── Happy path ──────────────────────────────────────────────────────


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_two_detections_in_order(self, screenshot, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies())
        result = await run_pipeline(screenshot, config=_config(), gateway=gateway)

        assert result.status == "ok"
        assert [d.bounding_box for d in result.detections] == [
            (10.0, 10.0, 50.0, 20.0), (100.0, 50.0, 80.0, 30.0),
        ]
        assert len(result.component_summaries) == len(result.detections) == 2

        component_calls = gateway.calls_matching(COMPONENT)
        assert len(component_calls) == 2
        assert "- Component number: 0" in component_calls[0]["user_prompt"]
        assert "- Location: Navigation" in component_calls[0]["user_prompt"]
        assert "- Component number: 1" in component_calls[1]["user_prompt"]
        assert "- Location: Submit" in component_calls[1]["user_prompt"]

        assert result.component_summaries == [
            "[Location: Navigation]\nanalysis #0",
            "[Location: Submit]\nanalysis #1",
        ]

        final = result.final_prompt
        assert final.startswith("Build this app: ")
        first = final.index("Component 1: [Location: Navigation]")
        second = final.index("Component 2: [Location: Submit]")
        assert first < second

        assert result.design_summary == "Header over a single column"
        assert result.activity_summary == "The user is filling a form."
        assert [s.stage for s in result.stages] == [
            "detect", "analyze_design", "analyze_activity", "analyze_component", "synthesize",
        ]
        assert all(s.status is StageStatus.OK for s in result.stages)

    @pytest.mark.asyncio
    async def test_call_order(self, screenshot, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies())
        await run_pipeline(screenshot, config=_config(), gateway=gateway)

        order = []
        for call in gateway.calls:
            for name, fragment in (("detect", DETECT), ("component", COMPONENT),
                                   ("design", DESIGN), ("activity", ACTIVITY), ("synth", SYNTH)):
                if fragment in call["system_prompt"]:
                    order.append(name)
                    break
        assert order == ["detect", "design", "activity", "component", "component", "synth"]

    @pytest.mark.asyncio
    async def test_detection_cap_argument_overrides_config(self, screenshot, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies())
        result = await run_pipeline(screenshot, 1, config=_config(detection_cap=6), gateway=gateway)
        assert len(result.detections) == 1
        assert len(gateway.calls_matching(COMPONENT)) == 1
        assert "identify up to 1 UI components" in gateway.calls[0]["user_prompt"]

    @pytest.mark.asyncio
    async def test_verbosity_changes_synthesis_input(self, screenshot, fake_gateway_factory):
        concise = await run_pipeline(
            screenshot, config=_config(verbosity="concise"),
            gateway=fake_gateway_factory(replies=_replies()),
        )
        extensive = await run_pipeline(
            screenshot, config=_config(verbosity="extensive"),
            gateway=fake_gateway_factory(replies=_replies()),
        )
        assert concise.final_prompt != extensive.final_prompt
        assert "5. Visual Hierarchy" in extensive.final_prompt
        assert "5. Visual Hierarchy" not in concise.final_prompt

    @pytest.mark.asyncio
    async def test_accepts_raw_bytes(self, png_bytes, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies())
        result = await run_pipeline(png_bytes, config=_config(), gateway=gateway)
        assert result.status == "ok"


# ─── Terminal states ─────────────────────────────────────────────────


class TestTerminalStates:
    @pytest.mark.asyncio
    async def test_no_detections_skips_analysis(self, screenshot, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies(**{DETECT: '{"components": []}'}))
        result = await run_pipeline(screenshot, config=_config(), gateway=gateway)

        assert result.status == "empty"
        assert result.design_summary == "No components detected."
        assert result.final_prompt == "No components detected."
        assert result.component_summaries == ["No components detected."]
        assert len(gateway.calls) == 1
        assert gateway.calls_matching(COMPONENT) == []
        assert gateway.calls_matching(SYNTH) == []

    @pytest.mark.asyncio
    async def test_invalid_detection_json_is_empty(self, screenshot, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies(**{DETECT: "I see a login page"}))
        result = await run_pipeline(screenshot, config=_config(), gateway=gateway)
        assert result.status == "empty"
        assert result.stages[0].status is StageStatus.DEGRADED

    @pytest.mark.asyncio
    async def test_design_failure_still_synthesizes(self, screenshot, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies(**{DESIGN: ProviderError(500, "overloaded")}))
        result = await run_pipeline(screenshot, config=_config(), gateway=gateway)

        assert result.status == "ok"
        assert result.design_summary == "Error analyzing main design structure"
        [synth_call] = gateway.calls_matching(SYNTH)
        assert "Error analyzing main design structure" in synth_call["user_prompt"]
        design_report = next(s for s in result.stages if s.stage == "analyze_design")
        assert design_report.status is StageStatus.DEGRADED

    @pytest.mark.asyncio
    async def test_component_failure_keeps_count(self, screenshot, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies(**{COMPONENT: ProviderError(429, "rate")}))
        result = await run_pipeline(screenshot, config=_config(), gateway=gateway)

        assert result.status == "ok"
        assert result.component_summaries == [
            "[Location: Navigation]\nError analyzing component 0",
            "[Location: Submit]\nError analyzing component 1",
        ]
        report = next(s for s in result.stages if s.stage == "analyze_component")
        assert report.status is StageStatus.DEGRADED

    @pytest.mark.asyncio
    async def test_synthesis_failure_is_failed_result(self, screenshot, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies(**{SYNTH: ProviderError(500, "down")}))
        result = await run_pipeline(screenshot, config=_config(), gateway=gateway)

        assert result.status == "failed"
        assert result.final_prompt.startswith("Error processing image (synthesize): ")
        assert result.design_summary == result.final_prompt
        assert result.component_summaries == [result.final_prompt]
        assert result.stages[-1].status is StageStatus.FATAL

    @pytest.mark.asyncio
    async def test_missing_credentials_makes_no_call(self, screenshot, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies(), has_credentials=False)
        result = await run_pipeline(screenshot, config=_config(), gateway=gateway)

        assert result.status == "failed"
        assert "API key not set" in result.final_prompt
        assert "(start)" in result.final_prompt
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_unreadable_bytes_is_failed_result(self, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies())
        result = await run_pipeline(b"not an image", config=_config(), gateway=gateway)
        assert result.status == "failed"
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_oversized_bytes_is_failed_result(self, png_bytes, fake_gateway_factory, monkeypatch):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        gateway = fake_gateway_factory(replies=_replies())
        result = await run_pipeline(png_bytes, config=_config(), gateway=gateway)
        assert result.status == "failed"
        assert "too large" in result.final_prompt
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_invalid_cap_is_failed_result(self, screenshot, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies())
        result = await run_pipeline(screenshot, 0, gateway=gateway)
        assert result.status == "failed"
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_unexpected_exception_never_escapes(self, screenshot, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies())
        with patch(
            "superprompt.pipeline.PromptSynthesizer.synthesize",
            side_effect=RuntimeError("kaboom"),
        ):
            result = await run_pipeline(screenshot, config=_config(), gateway=gateway)
        assert result.status == "failed"
        assert result.error == "kaboom"


# ─── Cancellation / progress ─────────────────────────────────────────


class TestRunControl:
    @pytest.mark.asyncio
    async def test_cancel_before_start(self, screenshot, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies())
        event = asyncio.Event()
        event.set()
        result = await run_pipeline(screenshot, config=_config(), gateway=gateway, cancel_event=event)

        assert result.status == "cancelled"
        assert result.final_prompt == "CANCELLED"
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_cancel_during_run_stops_before_synthesis(self, screenshot, fake_gateway_factory):
        event = asyncio.Event()

        def _design_then_cancel(call):
            event.set()
            return "design"

        gateway = fake_gateway_factory(replies=_replies(**{DESIGN: _design_then_cancel}))
        result = await run_pipeline(screenshot, config=_config(), gateway=gateway, cancel_event=event)

        assert result.status == "cancelled"
        assert gateway.calls_matching(ACTIVITY) == []
        assert gateway.calls_matching(SYNTH) == []

    @pytest.mark.asyncio
    async def test_progress_events(self, screenshot, fake_gateway_factory):
        events: List[tuple] = []

        async def on_progress(event, data):
            events.append((event, data))

        gateway = fake_gateway_factory(replies=_replies())
        await run_pipeline(screenshot, config=_config(), gateway=gateway, on_progress=on_progress)

        stages = [d["stage"] for e, d in events if e == "stage_completed"]
        assert stages == ["detect", "analyze_design", "analyze_activity", "synthesize"]
        components = [d["index"] for e, d in events if e == "component_analyzed"]
        assert components == [0, 1]
        assert events[0][1]["count"] == 2

    @pytest.mark.asyncio
    async def test_progress_callback_errors_ignored(self, screenshot, fake_gateway_factory):
        async def on_progress(event, data):
            raise RuntimeError("ui went away")

        gateway = fake_gateway_factory(replies=_replies())
        result = await run_pipeline(screenshot, config=_config(), gateway=gateway, on_progress=on_progress)
        assert result.status == "ok"


# ─── Component images / fan-out ──────────────────────────────────────


class TestComponentFanOut:
    @pytest.mark.asyncio
    async def test_components_are_cropped(self, screenshot, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies())
        await run_pipeline(screenshot, config=_config(), gateway=gateway)

        sizes = [(c["image"].width, c["image"].height) for c in gateway.calls_matching(COMPONENT)]
        assert sizes == [(50, 20), (80, 30)]

    @pytest.mark.asyncio
    async def test_crop_disabled_sends_full_image(self, screenshot, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies())
        await run_pipeline(screenshot, config=_config(crop_components=False), gateway=gateway)
        assert all(c["image"] is screenshot for c in gateway.calls_matching(COMPONENT))

    @pytest.mark.asyncio
    async def test_zero_area_box_uses_full_image(self, screenshot, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies(**{DETECT: '{"components": [{"text": "x"}]}'}))
        await run_pipeline(screenshot, config=_config(), gateway=gateway)
        [call] = gateway.calls_matching(COMPONENT)
        assert call["image"] is screenshot

    @pytest.mark.asyncio
    async def test_concurrent_fan_out_preserves_order(self, screenshot, fake_gateway_factory):
        items = [{"text": f"item {i}", "bbox": [i * 10, 0, 10, 10]} for i in range(5)]
        gateway = fake_gateway_factory(replies=_replies(**{DETECT: json.dumps({"components": items})}))
        orchestrator = PipelineOrchestrator(gateway, _config(detection_cap=5, component_concurrency=3))

        real_run = orchestrator.component_analyzer.run

        async def _delayed_run(image, index, label):
            await asyncio.sleep(0.01 * (5 - index))
            return await real_run(image, index, label)

        orchestrator.component_analyzer.run = _delayed_run
        result = await orchestrator.run(screenshot)

        assert result.status == "ok"
        assert [s.split("\n")[0] for s in result.component_summaries] == [
            f"[Location: item {i}]" for i in range(5)
        ]

    @pytest.mark.asyncio
    async def test_concurrent_runs_keep_separate_reports(self, screenshot, fake_gateway_factory):
        gateway = fake_gateway_factory(replies=_replies())
        orchestrator = PipelineOrchestrator(gateway, _config())

        real_run = orchestrator.design_analyzer.run

        async def _slow_design(image):
            await asyncio.sleep(0.01)
            return await real_run(image)

        orchestrator.design_analyzer.run = _slow_design
        first, second = await asyncio.gather(orchestrator.run(screenshot), orchestrator.run(screenshot))

        expected = ["detect", "analyze_design", "analyze_activity", "analyze_component", "synthesize"]
        assert [s.stage for s in first.stages] == expected
        assert [s.stage for s in second.stages] == expected
