"""Pipeline stages. Each stage wraps one kind of gateway call."""

from .component_analyzer import ComponentAnalyzer
from .design_analyzer import ActivityDescriber, DesignAnalyzer
from .detector import ComponentDetector, parse_components
from .synthesizer import PromptSynthesizer

__all__ = [
    "ActivityDescriber",
    "ComponentAnalyzer",
    "ComponentDetector",
    "DesignAnalyzer",
    "PromptSynthesizer",
    "parse_components",
]
