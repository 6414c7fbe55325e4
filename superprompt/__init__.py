"""Screenshot-to-super-prompt pipeline.

Subpackages:
- gateway: Provider envelopes, credential store and the httpx model client
- prompts: Vision and synthesis prompt templates
- stages: Detector, component/design/activity analyzers, synthesizer

Entry points: ``run_pipeline`` (async, never raises) and ``python -m superprompt``.
"""

from .errors import (
    AuthenticationError,
    InvalidArgument,
    MalformedResponseError,
    PipelineError,
    ProviderError,
    SynthesisError,
)
from .imaging import SourceImage
from .models import AnalysisResult, Detection, PipelineConfig
from .pipeline import PipelineOrchestrator, run_pipeline
from .runtime import set_detection_mode, set_prompt_verbosity

__all__ = [
    "AnalysisResult",
    "AuthenticationError",
    "Detection",
    "InvalidArgument",
    "MalformedResponseError",
    "PipelineConfig",
    "PipelineError",
    "PipelineOrchestrator",
    "ProviderError",
    "SourceImage",
    "SynthesisError",
    "run_pipeline",
    "set_detection_mode",
    "set_prompt_verbosity",
]
