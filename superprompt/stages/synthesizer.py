"""Stage 4: PromptSynthesizer, merges all partial analyses into the super prompt.

Template fill and cleanup are local; the cleaned draft then goes through one
text-only gateway pass that rewrites it into the final build prompt. Unlike
the analysis stages, a failure here is not recoverable and is raised as
``SynthesisError``.
"""

import logging
from typing import Sequence

from .. import settings
from ..errors import PipelineError, SynthesisError
from ..prompts.super_prompt import (
    SUPER_PROMPT_SYSTEM_PROMPT,
    build_super_prompt,
    clean_super_prompt,
    ensure_build_prefix,
)

logger = logging.getLogger(__name__)


class PromptSynthesizer:
    stage = "synthesize"

    def __init__(
        self,
        gateway,
        detection_term: str = "component",
        temperature: float = settings.SYNTHESIS_TEMPERATURE,
        max_tokens: int = settings.SYNTHESIS_MAX_TOKENS,
    ):
        self.gateway = gateway
        self.detection_term = detection_term
        self.temperature = temperature
        self.max_tokens = max_tokens

    def draft(
        self,
        design_summary: str,
        component_summaries: Sequence[str],
        activity_summary: str,
        verbosity: str = "concise",
    ) -> str:
        """Fill and clean the template without calling the model."""
        filled = build_super_prompt(
            design_summary,
            component_summaries,
            activity_summary,
            verbosity=verbosity,
            detection_term=self.detection_term,
        )
        return clean_super_prompt(filled)

    async def synthesize(
        self,
        design_summary: str,
        component_summaries: Sequence[str],
        activity_summary: str,
        verbosity: str = "concise",
    ) -> str:
        """Return the final prompt, always starting with "Build this app: ".

        Raises:
            InvalidArgument: Unknown verbosity
            SynthesisError: The final model pass failed or returned nothing
        """
        draft = self.draft(design_summary, component_summaries, activity_summary, verbosity)
        logger.info(
            "PromptSynthesizer: %s draft with %d %ss (%d chars)",
            verbosity, len(component_summaries), self.detection_term, len(draft),
        )

        try:
            text = await self.gateway.invoke(
                user_prompt=draft,
                system_prompt=SUPER_PROMPT_SYSTEM_PROMPT,
                temperature=self.temperature,
                json_response=False,
                max_tokens=self.max_tokens,
            )
        except PipelineError as e:
            raise SynthesisError(f"Super prompt synthesis failed: {e}") from e

        if not text.strip():
            raise SynthesisError("Super prompt synthesis returned an empty reply")
        return ensure_build_prefix(text)
