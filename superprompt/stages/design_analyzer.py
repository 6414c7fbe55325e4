"""Stages 2a/2b: whole-image design-system analysis and activity description.

Both are single free-text vision calls. On failure they return a fixed
sentinel string, which the synthesizer accepts like any other summary.
"""

import logging
import time
from typing import Optional

from .. import settings
from ..imaging import SourceImage
from ..models import StageResult
from ..prompts.analysis_prompts import (
    ACTIVITY_SYSTEM_PROMPT,
    ACTIVITY_USER_PROMPT,
    DESIGN_USER_PROMPT,
    MAIN_DESIGN_ANALYSIS_PROMPT,
)

logger = logging.getLogger(__name__)

DESIGN_ERROR_SENTINEL = "Error analyzing main design structure"
ACTIVITY_ERROR_SENTINEL = "Error describing on-screen activity"


class _WholeImageStage:
    stage = ""
    system_prompt: Optional[str] = None
    user_prompt = ""
    sentinel = ""

    def __init__(self, gateway, temperature: float, max_tokens: int):
        self.gateway = gateway
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def run(self, image: SourceImage) -> StageResult[str]:
        start = time.monotonic()
        try:
            text = await self.gateway.invoke(
                user_prompt=self.user_prompt,
                system_prompt=self.system_prompt,
                temperature=self.temperature,
                json_response=False,
                max_tokens=self.max_tokens,
                image=image,
            )
        except Exception as e:
            logger.error("%s failed: %s", type(self).__name__, e)
            return StageResult.degraded(
                self.stage, self.sentinel, str(e), int((time.monotonic() - start) * 1000),
            )
        return StageResult.ok(self.stage, text, int((time.monotonic() - start) * 1000))


class DesignAnalyzer(_WholeImageStage):
    """Layout, design system, interactions and visual hierarchy of the whole screen."""

    stage = "analyze_design"
    system_prompt = MAIN_DESIGN_ANALYSIS_PROMPT
    user_prompt = DESIGN_USER_PROMPT
    sentinel = DESIGN_ERROR_SENTINEL

    def __init__(
        self,
        gateway,
        temperature: float = settings.DESIGN_TEMPERATURE,
        max_tokens: int = settings.DESIGN_MAX_TOKENS,
    ):
        super().__init__(gateway, temperature, max_tokens)

    async def analyze(self, image: SourceImage) -> str:
        return (await self.run(image)).value


class ActivityDescriber(_WholeImageStage):
    """A few sentences on what the user is doing on the screen."""

    stage = "analyze_activity"
    system_prompt = ACTIVITY_SYSTEM_PROMPT
    user_prompt = ACTIVITY_USER_PROMPT
    sentinel = ACTIVITY_ERROR_SENTINEL

    def __init__(
        self,
        gateway,
        temperature: float = settings.DESIGN_TEMPERATURE,
        max_tokens: int = settings.ACTIVITY_MAX_TOKENS,
    ):
        super().__init__(gateway, temperature, max_tokens)

    async def describe(self, image: SourceImage) -> str:
        return (await self.run(image)).value
