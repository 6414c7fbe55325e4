"""Stage 3: ComponentAnalyzer, one vision call per detected component."""

import logging
import time

from .. import settings
from ..imaging import SourceImage
from ..models import StageResult
from ..prompts.analysis_prompts import VISION_ANALYSIS_PROMPT, build_component_prompt

logger = logging.getLogger(__name__)


def location_marker(label: str) -> str:
    return f"[Location: {label}]"


def component_error_text(index: int, detection_term: str = "component") -> str:
    return f"Error analyzing {detection_term} {index}"


class ComponentAnalyzer:
    """Describes one component image as implementation-ready JSON text.

    The returned summary always starts with a ``[Location: <label>]`` line so
    the synthesizer can place the component, even when the call failed.
    """

    stage = "analyze_component"

    def __init__(
        self,
        gateway,
        detection_term: str = "component",
        temperature: float = settings.ANALYSIS_TEMPERATURE,
        max_tokens: int = settings.COMPONENT_MAX_TOKENS,
    ):
        self.gateway = gateway
        self.detection_term = detection_term
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def run(self, image: SourceImage, index: int, location_label: str) -> StageResult[str]:
        start = time.monotonic()
        marker = location_marker(location_label)
        try:
            text = await self.gateway.invoke(
                user_prompt=build_component_prompt(index, location_label, self.detection_term),
                system_prompt=VISION_ANALYSIS_PROMPT,
                temperature=self.temperature,
                json_response=True,
                max_tokens=self.max_tokens,
                image=image,
            )
        except Exception as e:
            logger.error(
                "ComponentAnalyzer: %s %d (%s) failed: %s",
                self.detection_term, index, location_label, e,
            )
            summary = f"{marker}\n{component_error_text(index, self.detection_term)}"
            return StageResult.degraded(
                self.stage, summary, str(e), int((time.monotonic() - start) * 1000),
            )

        logger.debug("ComponentAnalyzer: %s %d analyzed (%d chars)", self.detection_term, index, len(text))
        return StageResult.ok(
            self.stage, f"{marker}\n{text}", int((time.monotonic() - start) * 1000),
        )

    async def analyze(self, image: SourceImage, index: int, location_label: str) -> str:
        return (await self.run(image, index, location_label)).value
