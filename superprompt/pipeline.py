"""Pipeline orchestrator: screenshot in, AnalysisResult out.

State machine:
    START → DETECT → (no detections → EMPTY)
                   → ANALYZE_DESIGN → ANALYZE_ACTIVITY
                   → ANALYZE_COMPONENTS (detection order) → SYNTHESIZE → DONE

Any unrecovered error ends the run in a FAILED result and a set cancel event
ends it in a CANCELLED result; ``run_pipeline`` itself never raises.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from . import runtime
from .errors import PipelineError
from .gateway import ModelGateway
from .imaging import SourceImage, crop_detection
from .models import AnalysisResult, Detection, PipelineConfig, StageReport, StageResult
from .stages import (
    ActivityDescriber,
    ComponentAnalyzer,
    ComponentDetector,
    DesignAnalyzer,
    PromptSynthesizer,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, Dict[str, Any]], Awaitable[None]]

CANCELLED_TEXT = "CANCELLED"


def empty_text(detection_term: str) -> str:
    return f"No {detection_term}s detected."


def failure_text(stage: str, error: Union[str, BaseException]) -> str:
    return f"Error processing image ({stage}): {error}"


class _Cancelled(Exception):
    pass


@dataclass
class _RunState:
    stage: str = "start"
    reports: List[StageReport] = field(default_factory=list)


class PipelineOrchestrator:
    """Runs one analysis over one screenshot with a frozen config.

    The stages are built once per orchestrator; ``run`` may be called again,
    including concurrently, for another image with the same gateway and config.
    Stage progress and reports live in a per-call ``_RunState``.
    """

    def __init__(
        self,
        gateway,
        config: PipelineConfig,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        self.gateway = gateway
        self.config = config
        self.on_progress = on_progress
        self.cancel_event = cancel_event
        self.detection_term = runtime.get_detection_term(config.detection_mode)

        self.detector = ComponentDetector(
            gateway,
            detection_term=self.detection_term,
            temperature=config.detection_temperature,
            min_confidence=config.min_confidence,
        )
        self.component_analyzer = ComponentAnalyzer(
            gateway, detection_term=self.detection_term, temperature=config.analysis_temperature,
        )
        self.design_analyzer = DesignAnalyzer(gateway, temperature=config.design_temperature)
        self.activity_describer = ActivityDescriber(gateway, temperature=config.design_temperature)
        self.synthesizer = PromptSynthesizer(
            gateway, detection_term=self.detection_term, temperature=config.synthesis_temperature,
        )

    async def run(self, image: SourceImage) -> AnalysisResult:
        state = _RunState()
        start = time.monotonic()
        try:
            result = await self._run(image, state)
        except _Cancelled:
            logger.info("Pipeline cancelled before %s", state.stage)
            return AnalysisResult.sentinel(
                CANCELLED_TEXT, "cancelled", error="cancelled", stages=state.reports,
            )
        except Exception as e:
            logger.error("Error processing image (%s): %s", state.stage, e, exc_info=True)
            state.reports.append(StageResult.fatal(state.stage, str(e)).report())
            return AnalysisResult.sentinel(
                failure_text(state.stage, e), "failed", error=str(e), stages=state.reports,
            )

        logger.info(
            "Pipeline finished: status=%s, %d %ss, %.1fs",
            result.status, len(result.detections), self.detection_term,
            time.monotonic() - start,
        )
        return result

    async def _run(self, image: SourceImage, state: _RunState) -> AnalysisResult:
        self._check_credentials()
        self._check_cancelled()

        # ─── Detect ───
        state.stage = ComponentDetector.stage
        detected = await self.detector.run(image, self.config.detection_cap)
        detections: List[Detection] = detected.value or []
        await self._stage_completed(state, detected, count=len(detections))

        if not detections:
            logger.error("No %ss detected. Exiting processing.", self.detection_term)
            return AnalysisResult.sentinel(
                empty_text(self.detection_term), "empty", stages=state.reports,
            )
        self._check_cancelled()

        # ─── Whole-image analyses ───
        state.stage = DesignAnalyzer.stage
        design = await self.design_analyzer.run(image)
        await self._stage_completed(state, design)
        self._check_cancelled()

        state.stage = ActivityDescriber.stage
        activity = await self.activity_describer.run(image)
        await self._stage_completed(state, activity)
        self._check_cancelled()

        # ─── Per-component fan-out ───
        state.stage = ComponentAnalyzer.stage
        summaries = await self._analyze_components(image, detections, state)
        self._check_cancelled()

        # ─── Synthesize ───
        state.stage = PromptSynthesizer.stage
        started = time.monotonic()
        final_prompt = await self.synthesizer.synthesize(
            design.value, summaries, activity.value, verbosity=self.config.verbosity,
        )
        await self._stage_completed(
            state,
            StageResult.ok(state.stage, final_prompt, int((time.monotonic() - started) * 1000)),
        )

        return AnalysisResult(
            design_summary=design.value,
            component_summaries=summaries,
            final_prompt=final_prompt,
            activity_summary=activity.value,
            detections=detections,
            status="ok",
            stages=state.reports,
        )

    async def _analyze_components(
        self, image: SourceImage, detections: List[Detection], state: _RunState,
    ) -> List[str]:
        total = len(detections)
        results: List[Optional[StageResult[str]]] = [None] * total

        async def _analyze_one(index: int, detection: Detection) -> None:
            logger.info(
                "Analyzing %s %d/%d: %s", self.detection_term, index + 1, total, detection.label,
            )
            result = await self.component_analyzer.run(
                self._component_image(image, detection), index, detection.label,
            )
            results[index] = result
            await self._notify("component_analyzed", {
                "index": index,
                "total": total,
                "label": detection.label,
                "status": result.status.value,
            })

        if self.config.component_concurrency <= 1:
            for index, detection in enumerate(detections):
                self._check_cancelled()
                await _analyze_one(index, detection)
        else:
            sem = asyncio.Semaphore(self.config.component_concurrency)

            async def _bounded(index: int, detection: Detection) -> None:
                async with sem:
                    self._check_cancelled()
                    await _analyze_one(index, detection)

            tasks = [asyncio.ensure_future(_bounded(i, d)) for i, d in enumerate(detections)]
            try:
                await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise

        summaries: List[str] = []
        degraded = 0
        for result in results:
            summaries.append(result.value)
            if not result.is_ok:
                degraded += 1
        state.reports.append(StageReport(
            stage=ComponentAnalyzer.stage,
            status="degraded" if degraded else "ok",
            error=f"{degraded}/{total} {self.detection_term} analyses failed" if degraded else None,
            duration_ms=sum(r.duration_ms for r in results),
        ))
        return summaries

    def _component_image(self, image: SourceImage, detection: Detection) -> SourceImage:
        if not self.config.crop_components:
            return image
        if not detection.has_area:
            logger.debug("No bounding box for %s, using full image", detection.label)
            return image
        try:
            return crop_detection(image, detection.bounding_box)
        except (ValueError, OSError) as e:
            logger.warning("Crop failed for %s (%s), using full image", detection.label, e)
            return image

    def _check_credentials(self) -> None:
        check = getattr(self.gateway, "check_credentials", None)
        if check is not None:
            check()

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise _Cancelled()

    async def _stage_completed(self, state: _RunState, result: StageResult, **extra: Any) -> None:
        state.reports.append(result.report())
        await self._notify("stage_completed", {
            "stage": result.stage,
            "status": result.status.value,
            "duration_ms": result.duration_ms,
            **extra,
        })

    async def _notify(self, event: str, data: Dict[str, Any]) -> None:
        if self.on_progress is None:
            return
        try:
            await self.on_progress(event, data)
        except Exception as e:
            logger.warning("Progress callback failed for %s: %s", event, e)


async def run_pipeline(
    image: Union[SourceImage, bytes],
    detection_cap: Optional[int] = None,
    *,
    config: Optional[PipelineConfig] = None,
    gateway=None,
    cancel_event: Optional[asyncio.Event] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> AnalysisResult:
    """Analyze one screenshot end to end. Never raises.

    Args:
        image: Screenshot as a ``SourceImage`` or raw PNG/JPEG bytes
        detection_cap: Max components; overrides ``config.detection_cap``
        config: Run configuration; defaults to a snapshot of the process-wide settings
        gateway: Model gateway; defaults to one built from ``runtime.credentials``
            for ``config.provider`` and closed when the run ends
        cancel_event: Set it to stop the run at the next stage boundary
        on_progress: ``async (event, data)`` callback after each stage and component
    """
    owns_gateway = False
    try:
        if config is None:
            config = runtime.snapshot_config(detection_cap=detection_cap)
        elif detection_cap is not None:
            config = PipelineConfig(**{**config.model_dump(), "detection_cap": detection_cap})

        if isinstance(image, (bytes, bytearray)):
            image = SourceImage.from_bytes(bytes(image))

        if gateway is None:
            gateway = ModelGateway.from_credentials(
                runtime.credentials, provider=config.provider, model=config.model,
            )
            owns_gateway = True
    except (PipelineError, ValueError) as e:
        logger.error("Error processing image (start): %s", e)
        return AnalysisResult.sentinel(failure_text("start", e), "failed", error=str(e))

    try:
        orchestrator = PipelineOrchestrator(
            gateway, config, on_progress=on_progress, cancel_event=cancel_event,
        )
        return await orchestrator.run(image)
    finally:
        if owns_gateway:
            await gateway.close()
