"""Super Prompt Templates

Final synthesis: merges the design summary, the per-component analyses and
the activity description into one build prompt for a code-generation tool.

Two templates keyed by verbosity:
  concise:   compact framework narrative, four technical headings
  extensive: exhaustive five-section replication brief

The first and last template lines are framing; ``clean_super_prompt``
drops them together with blank lines before the "Build this app: " prefix
is applied.
"""

from typing import Sequence

from ..errors import InvalidArgument
from .analysis_prompts import capitalize_term

BUILD_PREFIX = "Build this app: "

NO_LAYOUT_ANALYSIS = "No layout analysis available"

SUPER_PROMPT_SYSTEM_PROMPT = """\
You are an expert UI/UX analyst creating structured design specifications.

You receive a build request assembled from several vision analyses of one \
interface screenshot. Rewrite it into a single, self-contained prompt for an \
AI code-generation tool:
- keep every concrete value (colors, sizes, spacing, typography, counts)
- keep the component order and the location of each component
- remove duplication between the component list and the layout analysis
- do not invent elements that are not described

Start your answer with "Build this app: " and return only the prompt text."""

CONCISE_TEMPLATE = """\
This study presents a systematic analysis framework for precise UI replication, incorporating component specifications and visual hierarchy assessment. The framework examines:

[{term_title} Analysis]
{region_specs}

[Layout Analysis]
{layout_section}

[Interactive Elements]
{activity_description}

Technical Specifications for Implementation:

1. Layout Architecture
- Container dimensions and responsive breakpoints
- Component positioning matrix including:
    • Primary sections (header, content, footer)
    • Grid system specifications
    • Spatial relationships and padding metrics

2. Visual Parameters
- Color schema (primary, secondary, accent)
- Typography specifications
- Elevation system (shadows, borders)

3. Component Specifications
- Interactive controls
- Static elements
- State representations

4. Content Parameters
- Text constraints and overflow behavior
- Media dimensions and ratios
- Component hierarchy

This framework enables precise replication while maintaining structural integrity and interactive functionality across various viewport dimensions.
"""

EXTENSIVE_TEMPLATE = """\
You are an expert UI development agent tasked with providing exact technical specifications for recreating this interface. Analyze all details with high precision:

[Components Specifications by Location]
{region_specs}

[Layout Structure]
{layout_section}

[Interaction Patterns]
{activity_description}

Note: If a component has already been explained in detail above, only its name and location will be listed below to provide geographical context.

Provide a complete technical specification for exact replication in text format:

1. Layout Structure
- Primary container dimensions
- Component positioning map:
    • Header, main content, sidebars, footer
    • Layout elements:
        - Number and size of columns (e.g., 3 columns at 33% each)
        - Number and height of rows
        - Grid/box count and arrangement
        - Circular elements diameter and placement
    • Spacing and gaps:
        - Between major sections
        - Between grid items
        - Inner padding
- Responsive behavior:
    • Breakpoint dimensions
    • Layout changes at each breakpoint
    • Element reflow rules

2. Visual Style
- Colors:
    • Primary, secondary, accent colors
    • Background colors
    • Text colors
    • Border colors
- Typography:
    • Font sizes
    • Text weights
    • Text alignment
- Depth and Emphasis:
    • Visible shadows
    • Border styles
    • Opacity levels

3. Visible Elements
- Controls:
    • Button appearances (if new, otherwise location only)
    • Form element styling (if new, otherwise location only)
    • Interactive element looks (if new, otherwise location only)
- Static Elements:
    • Images and icons (if new, otherwise location only)
    • Text content (if new, otherwise location only)
    • Decorative elements (if new, otherwise location only)
- Visual States:
    • Active/selected states
    • Disabled appearances
    • Current page indicators

4. Content Presentation
- Text:
    • Visible length limits
    • Current overflow handling
    • Text wrapping behavior
- Media:
    • Image dimensions
    • Aspect ratios
    • Current placeholder states

5. Visual Hierarchy
- Element stacking
- Content grouping
- Visual emphasis
- Spatial relationships between previously described components
"""

TEMPLATES = {
    "concise": CONCISE_TEMPLATE,
    "extensive": EXTENSIVE_TEMPLATE,
}


def build_region_specs(component_summaries: Sequence[str], detection_term: str = "component") -> str:
    """One line per component: ``"<Term> <i+1>: <summary>"``."""
    term_title = capitalize_term(detection_term)
    return "\n".join(
        f"{term_title} {i + 1}: {summary}"
        for i, summary in enumerate(component_summaries)
    )


def build_super_prompt(
    main_image_caption: str,
    component_summaries: Sequence[str],
    activity_description: str,
    verbosity: str = "concise",
    detection_term: str = "component",
) -> str:
    """Fill the template selected by ``verbosity`` (framing lines included)."""
    template = TEMPLATES.get(verbosity)
    if template is None:
        raise InvalidArgument(
            f"Invalid prompt verbosity: {verbosity!r}. Must be 'concise' or 'extensive'"
        )
    return template.format(
        term_title=capitalize_term(detection_term),
        region_specs=build_region_specs(component_summaries, detection_term),
        layout_section=main_image_caption or NO_LAYOUT_ANALYSIS,
        activity_description=activity_description,
    )


def clean_super_prompt(super_prompt: str) -> str:
    """Drop the framing lines and blank lines, then apply the build prefix."""
    lines = super_prompt.split("\n")[1:-1]
    body = "\n".join(line for line in lines if line.strip()).strip()
    return f"{BUILD_PREFIX}{body}"


def ensure_build_prefix(text: str) -> str:
    text = text.strip()
    if text.startswith(BUILD_PREFIX):
        return text
    if text.lower().startswith(BUILD_PREFIX.strip().lower()):
        text = text[len(BUILD_PREFIX.strip()):].lstrip()
    return f"{BUILD_PREFIX}{text}"
