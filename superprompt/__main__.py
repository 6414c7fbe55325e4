"""Command-line entry point: analyze one screenshot and print the super prompt.

Usage:
    # Default: concise prompt, up to 6 components, OpenAI
    python -m superprompt screenshot.png

    # Extensive prompt from Anthropic, report saved to a file:
    python -m superprompt screenshot.png --verbosity extensive --provider anthropic --output report.md

    # Draw the detected boxes:
    python -m superprompt screenshot.png --visualize boxes.png

Requires:
    - OPENAI_API_KEY (or ANTHROPIC_API_KEY with --provider anthropic)
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import runtime, settings
from .errors import PipelineError
from .gateway import PROVIDERS
from .imaging import SourceImage, resize_image, visualize_detections
from .logging_config import get_pipeline_logger
from .pipeline import run_pipeline
from .report import format_report, result_payload


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="superprompt",
        description="Turn a UI screenshot into a build prompt for code-generation tools",
    )
    parser.add_argument("image", help="Screenshot file (PNG or JPEG)")
    parser.add_argument(
        "--max-components", type=int, default=settings.MAX_UI_COMPONENTS,
        help=f"Max UI components to detect (default: {settings.MAX_UI_COMPONENTS})",
    )
    parser.add_argument(
        "--verbosity", choices=runtime.VERBOSITY_LEVELS, default=None,
        help=f"Super prompt template (default: {runtime.get_prompt_verbosity()})",
    )
    parser.add_argument(
        "--provider", choices=sorted(PROVIDERS), default=None,
        help="Model provider (default: MODEL_PROVIDER env or openai)",
    )
    parser.add_argument("--model", default=None, help="Model name override")
    parser.add_argument("--output", "-o", default=None, help="Write the report to this file")
    parser.add_argument(
        "--visualize", default=None,
        help="Save a PNG with the detected bounding boxes drawn on the screenshot",
    )
    parser.add_argument(
        "--json", action="store_true",
        help="Print the full result as JSON instead of the markdown report",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logger = get_pipeline_logger(logging.DEBUG if args.verbose else logging.INFO)

    try:
        if args.verbosity:
            runtime.set_prompt_verbosity(args.verbosity)
        image = SourceImage.from_path(args.image)
    except (PipelineError, OSError) as e:
        logger.error("Cannot load %s: %s", args.image, e)
        return 2

    if settings.MAX_IMAGE_DIMENSION > 0:
        image = resize_image(image, settings.MAX_IMAGE_DIMENSION, settings.MAX_IMAGE_DIMENSION)

    config = runtime.snapshot_config(provider=args.provider, model=args.model)
    result = asyncio.run(run_pipeline(image, args.max_components, config=config))
    term = runtime.get_detection_term(config.detection_mode)

    if args.json:
        text = json.dumps(result_payload(result, term), indent=2, ensure_ascii=False)
    else:
        text = format_report(result, term)

    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        logger.info("Report written to %s", args.output)
    else:
        print(text)

    if args.visualize and result.detections:
        Path(args.visualize).write_bytes(visualize_detections(image, result.detections))
        logger.info("Visualization written to %s", args.visualize)

    return 0 if result.status in ("ok", "empty") else 1


if __name__ == "__main__":
    sys.exit(main())
