"""Process-wide pipeline settings for the interactive shell.

Detection mode and prompt verbosity persist across runs until changed.
They are plain module globals (last write wins, no locking); each run reads
them once through ``snapshot_config``. Programmatic callers that run
pipelines concurrently should pass their own ``PipelineConfig`` instead.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from . import settings
from .errors import InvalidArgument
from .gateway.credentials import CredentialStore
from .models import PipelineConfig

logger = logging.getLogger(__name__)

# Detection mode → term used in prompts and labels
DETECTION_TERMS: Dict[str, str] = {"llm": "component"}
VERBOSITY_LEVELS = ("concise", "extensive")

_detection_mode: str = settings.DETECTION_MODE if settings.DETECTION_MODE in DETECTION_TERMS else "llm"
_prompt_verbosity: str = (
    settings.PROMPT_VERBOSITY if settings.PROMPT_VERBOSITY in VERBOSITY_LEVELS else "concise"
)

# Shared credential store read by run_pipeline when no gateway is passed in
credentials = CredentialStore()


def set_detection_mode(mode: str) -> None:
    global _detection_mode
    if mode not in DETECTION_TERMS:
        raise InvalidArgument(
            f"Invalid detection mode: {mode!r}. Must be one of {sorted(DETECTION_TERMS)}"
        )
    _detection_mode = mode
    logger.info("Detection mode set to: %s", mode)


def get_detection_mode() -> str:
    return _detection_mode


def get_detection_term(mode: Optional[str] = None) -> str:
    """Term for the current (or given) detection mode; always 'component' for llm."""
    return DETECTION_TERMS.get(mode or _detection_mode, "component")


def set_prompt_verbosity(level: str) -> None:
    """Select the super-prompt template. The previous value is kept on error."""
    global _prompt_verbosity
    if level not in VERBOSITY_LEVELS:
        raise InvalidArgument(
            "Invalid prompt verbosity. Must be 'concise' or 'extensive'"
        )
    _prompt_verbosity = level
    logger.info("Prompt verbosity set to: %s", level)


def get_prompt_verbosity() -> str:
    return _prompt_verbosity


def snapshot_config(**overrides: Any) -> PipelineConfig:
    """Freeze the current process-wide settings into a run-scoped config."""
    values: Dict[str, Any] = {
        "detection_mode": _detection_mode,
        "verbosity": _prompt_verbosity,
    }
    values.update({k: v for k, v in overrides.items() if v is not None})
    return PipelineConfig(**values)
