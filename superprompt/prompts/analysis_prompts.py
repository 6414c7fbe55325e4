"""Vision Analysis Prompt Templates

Prompts for the whole-image and per-component model calls: component
detection, per-component analysis, design-system analysis and activity
description.

The detection term ("component" in LLM mode) is injected as a variable.
"""

# ---------------------------------------------------------------------------
# Component detection
# ---------------------------------------------------------------------------

DETECTION_SYSTEM_PROMPT = "As a UI analysis expert, identify {detection_term}s in the interface."

DETECTION_USER_PROMPT = """\
Analyze this UI interface and identify up to {max_components} UI components.
For each component, provide the following information:
1. Location description (e.g., "top left", "bottom center of page", etc.)
2. Component type (e.g., button, input field, navigation bar, icon, etc.)
3. Bounding box estimation (relative to entire image, x,y coordinates of top-left corner and width, height in pixels)
4. Component confidence (0.0 to 1.0)
5. Component text content (if visible)

Return results in JSON format:
{{
  "components": [
    {{
      "id": numeric ID,
      "type": "component type",
      "location": "location description",
      "bbox": [x, y, width, height],
      "confidence": confidence,
      "text": "text content"
    }}
  ]
}}"""


# ---------------------------------------------------------------------------
# Per-component analysis
# ---------------------------------------------------------------------------

VISION_ANALYSIS_PROMPT = """\
You are an expert AI system analyzing UI components for development replication.

COMPONENT ANALYSIS REQUIREMENTS:
{
    "type": "Identify component type (button/input/card/etc)",
    "visual": {
        "colors": ["primary", "secondary", "text"],
        "dimensions": "size and spacing",
        "typography": "font styles and weights",
        "borders": "border styles and radius",
        "shadows": "elevation and depth"
    },
    "content": {
        "text": "content and labels",
        "icons": "icon types if present",
        "images": "image content if present"
    },
    "interaction": {
        "primary": "main interaction type",
        "states": ["hover", "active", "disabled"],
        "animations": "transitions and effects"
    },
    "location": {
        "position": "relative to parent/siblings",
        "alignment": "layout alignment",
        "spacing": "margins and padding"
    }
}

OUTPUT FORMAT (JSON):
{
    "component": "technical name (<5 words)",
    "specs": {
        // Fill above structure with detected values
    },
    "implementation": "key technical considerations (<15 words)"
}"""

COMPONENT_USER_PROMPT = """\
Analyze this UI {detection_term}:
- Location: {location}
- {detection_term_title} number: {index}

Provide structured analysis following the JSON schema in system prompt.
Focus on implementation-relevant details."""


# ---------------------------------------------------------------------------
# Whole-image design system analysis
# ---------------------------------------------------------------------------

MAIN_DESIGN_ANALYSIS_PROMPT = """\
You are an expert UI/UX analyst creating structured design specifications.

ANALYZE AND OUTPUT THE FOLLOWING JSON STRUCTURE:
{
    "layout": {
        "pattern": "primary layout system (grid/flex/etc)",
        "structure": {
            "sections": ["header", "main", "footer", etc],
            "columns": {
                "count": "number of columns",
                "sizes": "column width distributions"
            },
            "elements": {
                "boxes": "count and arrangement",
                "circles": "diameter and placement"
            }
        },
        "spacing": {
            "between_sections": "major gaps",
            "between_elements": "element spacing"
        },
        "responsive_hints": "visible breakpoint considerations"
    },
    "design_system": {
        "colors": {
            "primary": "main color palette",
            "secondary": "supporting colors",
            "text": "text hierarchy colors",
            "background": "surface colors",
            "interactive": "button/link colors"
        },
        "typography": {
            "headings": "heading hierarchy",
            "body": "body text styles",
            "special": "distinctive text styles"
        },
        "components": {
            "shadows": "elevation levels",
            "borders": "border styles",
            "radius": "corner rounding"
        }
    },
    "interactions": {
        "buttons": {
            "types": "button variations",
            "states": "visible states (hover/disabled)"
        },
        "inputs": "form element patterns",
        "feedback": "visible status indicators"
    },
    "content": {
        "media": {
            "images": "image usage patterns",
            "aspect_ratios": "common ratios"
        },
        "text": {
            "lengths": "content constraints",
            "density": "text distribution"
        }
    },
    "visual_hierarchy": {
        "emphasis": "attention hierarchy",
        "flow": "visual reading order",
        "density": "content distribution"
    },
    "implementation_notes": "key technical considerations (<30 words)"
}"""

DESIGN_USER_PROMPT = "Analyze the complete design system and structure of this interface."


# ---------------------------------------------------------------------------
# Activity description
# ---------------------------------------------------------------------------

ACTIVITY_SYSTEM_PROMPT = "Describe this webpage activity in a few sentences."

ACTIVITY_USER_PROMPT = "What activity is shown in this image?"


def capitalize_term(term: str) -> str:
    """Upper-case the first letter only ("navigation bar" -> "Navigation bar")."""
    return term[:1].upper() + term[1:]


def build_detection_prompts(max_components: int, detection_term: str) -> tuple:
    """Return (system_prompt, user_prompt) for the detection call."""
    return (
        DETECTION_SYSTEM_PROMPT.format(detection_term=detection_term),
        DETECTION_USER_PROMPT.format(max_components=max_components),
    )


def build_component_prompt(index: int, location: str, detection_term: str) -> str:
    """User prompt for analyzing one detected component."""
    return COMPONENT_USER_PROMPT.format(
        detection_term=detection_term,
        detection_term_title=capitalize_term(detection_term),
        location=location,
        index=index,
    )
