"""Stage 1: ComponentDetector, one vision call enumerating UI components.

The model is asked for ``{"components": [...]}``; each item is union-decoded
into a ``Detection``. Malformed output or a failed call degrades to an empty
list (the documented "no detections" outcome) and is logged, never raised.
"""

import logging
import time
from typing import Any, Dict, List

from .. import settings
from ..errors import InvalidArgument, MalformedResponseError
from ..imaging import SourceImage
from ..models import Detection, StageResult
from ..prompts.analysis_prompts import build_detection_prompts
from .parsing import coerce_confidence, coerce_text, normalize_bbox, parse_llm_json

logger = logging.getLogger(__name__)


def _decode_item(item: Dict[str, Any], index: int, detection_term: str) -> Detection:
    location = coerce_text(item.get("location"))
    text = coerce_text(item.get("text"))
    bbox_value = item.get("bbox")
    if bbox_value is None:
        bbox_value = item.get("box")
    return Detection(
        kind=coerce_text(item.get("type")) or detection_term,
        bounding_box=normalize_bbox(bbox_value),
        confidence=coerce_confidence(item.get("confidence")),
        label=text or location or f"{detection_term} {index}",
        location=location,
    )


def parse_components(
    raw: str,
    cap: int,
    detection_term: str = "component",
    min_confidence: float = 0.0,
) -> List[Detection]:
    """Decode a detection reply into at most ``cap`` detections.

    Raises:
        MalformedResponseError: If the reply holds no JSON object
    """
    parsed = parse_llm_json(raw, caller="ComponentDetector")
    if parsed is None:
        raise MalformedResponseError("Detection reply is not a JSON object")

    items = parsed.get("components") or []
    if not isinstance(items, list):
        logger.warning("ComponentDetector: 'components' is %s, not a list", type(items).__name__)
        return []

    detections: List[Detection] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            logger.warning("ComponentDetector: skipping non-object item %d", index)
            continue
        detection = _decode_item(item, index, detection_term)
        if detection.confidence < min_confidence:
            logger.info(
                "ComponentDetector: dropping %s (confidence %.2f < %.2f)",
                detection.label, detection.confidence, min_confidence,
            )
            continue
        detections.append(detection)

    if len(detections) > cap:
        logger.info("ComponentDetector: truncating %d detections to %d", len(detections), cap)
    return detections[:cap]


class ComponentDetector:
    """Enumerates up to ``cap`` UI components with one gateway call."""

    stage = "detect"

    def __init__(
        self,
        gateway,
        detection_term: str = "component",
        temperature: float = settings.DETECTION_TEMPERATURE,
        max_tokens: int = settings.DETECTION_MAX_TOKENS,
        min_confidence: float = 0.0,
    ):
        self.gateway = gateway
        self.detection_term = detection_term
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.min_confidence = min_confidence

    async def run(self, image: SourceImage, cap: int) -> StageResult[List[Detection]]:
        if cap < 1:
            raise InvalidArgument(f"Detection cap must be >= 1, got {cap}")

        start = time.monotonic()
        system_prompt, user_prompt = build_detection_prompts(cap, self.detection_term)
        logger.info(
            "ComponentDetector: detecting up to %d %ss", cap, self.detection_term,
        )

        try:
            raw = await self.gateway.invoke(
                user_prompt=user_prompt,
                system_prompt=system_prompt,
                temperature=self.temperature,
                json_response=True,
                max_tokens=self.max_tokens,
                image=image,
            )
            detections = parse_components(
                raw, cap, self.detection_term, self.min_confidence,
            )
        except Exception as e:
            logger.error("ComponentDetector: %s detection failed: %s", self.detection_term, e)
            return StageResult.degraded(self.stage, [], str(e), _elapsed_ms(start))

        if not detections:
            logger.warning("ComponentDetector: LLM detected no %ss", self.detection_term)
        else:
            logger.info(
                "ComponentDetector: %d %ss detected", len(detections), self.detection_term,
            )
        return StageResult.ok(self.stage, detections, _elapsed_ms(start))

    async def detect(self, image: SourceImage, cap: int) -> List[Detection]:
        return (await self.run(image, cap)).value or []


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)
