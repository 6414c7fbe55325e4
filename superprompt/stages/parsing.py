"""Shared parsing utilities: JSON extraction from model replies and
shape-tolerant decoding of detection fields.
"""

import json
import logging
import math
import re
from typing import Any, Dict, Optional

from ..models import BoundingBox

logger = logging.getLogger(__name__)

EMPTY_BOX: BoundingBox = (0.0, 0.0, 0.0, 0.0)


def parse_llm_json(raw: str, caller: str = "LLM") -> Optional[Dict]:
    """Parse a JSON object from a model reply, handling markdown fences and preamble.

    Tries in order: direct parse -> strip leading fence -> regex fence -> outermost braces.
    Returns None when nothing parses to a JSON object.
    """
    if not raw:
        return None

    text = raw.strip()

    # Strip leading markdown code fence
    if text.startswith("```"):
        lines = text.split("\n")
        lines = lines[1:]
        if lines and lines[-1].strip() == "```":
            lines = lines[:-1]
        text = "\n".join(lines).strip()

    # Try direct parse
    try:
        parsed = json.loads(text)
        if isinstance(parsed, dict):
            return parsed
    except json.JSONDecodeError:
        pass

    # Try extracting from non-leading markdown fence
    fence_match = re.search(r"```(?:json)?\s*\n(.*?)\n```", text, re.DOTALL)
    if fence_match:
        try:
            parsed = json.loads(fence_match.group(1))
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            pass

    # Fallback: extract outermost { ... }
    brace_start = text.find("{")
    brace_end = text.rfind("}")
    if brace_start >= 0 and brace_end > brace_start:
        try:
            parsed = json.loads(text[brace_start:brace_end + 1])
            if isinstance(parsed, dict):
                return parsed
        except json.JSONDecodeError:
            pass

    logger.error("%s: JSON parse error, raw[:500]: %s", caller, text[:500])
    return None


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().removesuffix("px"))
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _first_present(mapping: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if mapping.get(key) is not None:
            return mapping[key]
    return None


def normalize_bbox(value: Any) -> BoundingBox:
    """Decode a bounding box given as ``[x, y, w, h]`` or ``{x, y, width, height}``.

    Missing or non-numeric coordinates become 0; negative sizes are clamped
    to 0. Anything that is neither form yields ``(0, 0, 0, 0)``.
    """
    if isinstance(value, (list, tuple)):
        if len(value) < 4:
            return EMPTY_BOX
        coords = [_number(v) for v in value[:4]]
    elif isinstance(value, dict):
        coords = [
            _number(value.get("x")),
            _number(value.get("y")),
            _number(_first_present(value, "width", "w")),
            _number(_first_present(value, "height", "h")),
        ]
    else:
        return EMPTY_BOX

    x, y, w, h = (c if c is not None else 0.0 for c in coords)
    return (x, y, max(0.0, w), max(0.0, h))


def coerce_confidence(value: Any, default: float = 1.0) -> float:
    """Clamp a model-reported confidence into [0, 1]; missing/invalid -> default."""
    number = _number(value)
    if number is None:
        return default
    return min(1.0, max(0.0, number))


def coerce_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    return str(value).strip()
