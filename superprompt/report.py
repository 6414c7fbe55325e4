"""Markdown rendering of an AnalysisResult for the CLI and the HTTP shell."""

from typing import Any, Dict

from .models import AnalysisResult
from .prompts.analysis_prompts import capitalize_term


def format_report(result: AnalysisResult, detection_term: str = "component") -> str:
    term_title = capitalize_term(detection_term)
    components = "".join(
        f"**{term_title} {i}:** {summary}\n"
        for i, summary in enumerate(result.component_summaries)
    )
    return (
        f"**Main Design Choices:**\n{result.design_summary}\n\n"
        f"**{term_title} Analysis:**\n{components}"
        f"\n**Final Analysis:**\n{result.final_prompt}"
    )


def result_payload(result: AnalysisResult, detection_term: str = "component") -> Dict[str, Any]:
    """JSON-ready dict: the full result plus the rendered markdown under ``output``."""
    payload = result.model_dump(mode="json")
    payload["output"] = format_report(result, detection_term)
    return payload
