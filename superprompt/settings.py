"""Pipeline runtime settings: tunable parameters for screenshot analysis.

All values read from environment variables with defaults matching the
interactive tool's behaviour. Import from here instead of hardcoding.

Infrastructure config (provider, model, API version, CORS) stays in
superprompt/config.py.
"""

from __future__ import annotations

import os


def _int(key: str, default: int) -> int:
    return int(os.getenv(key, str(default)))


def _float(key: str, default: float) -> float:
    return float(os.getenv(key, str(default)))


def _str(key: str, default: str) -> str:
    return os.getenv(key, default)


def _bool(key: str, default: bool) -> bool:
    return os.getenv(key, str(default)).lower() in ("true", "1", "yes")


# =====================================================================
# Detection
# =====================================================================

# Max components requested from (and kept after) the detection call
MAX_UI_COMPONENTS = _int("MAX_UI_COMPONENTS", 6)

# Detections below this confidence are dropped (0.0 keeps everything)
MIN_CONFIDENCE = _float("MIN_CONFIDENCE", 0.0)

# Default process-wide detection mode and prompt verbosity
DETECTION_MODE = _str("DETECTION_MODE", "llm")
PROMPT_VERBOSITY = _str("PROMPT_VERBOSITY", "concise")


# =====================================================================
# Stage temperatures
# =====================================================================

DETECTION_TEMPERATURE = _float("DETECTION_TEMPERATURE", 0.2)
ANALYSIS_TEMPERATURE = _float("ANALYSIS_TEMPERATURE", 0.1)
DESIGN_TEMPERATURE = _float("DESIGN_TEMPERATURE", 0.1)
SYNTHESIS_TEMPERATURE = _float("SYNTHESIS_TEMPERATURE", 0.2)


# =====================================================================
# Stage output budgets (max tokens per model call)
# =====================================================================

DETECTION_MAX_TOKENS = _int("DETECTION_MAX_TOKENS", 1024)
COMPONENT_MAX_TOKENS = _int("COMPONENT_MAX_TOKENS", 1024)
DESIGN_MAX_TOKENS = _int("DESIGN_MAX_TOKENS", 2048)
ACTIVITY_MAX_TOKENS = _int("ACTIVITY_MAX_TOKENS", 512)
SYNTHESIS_MAX_TOKENS = _int("SYNTHESIS_MAX_TOKENS", 4096)


# =====================================================================
# Component fan-out
# =====================================================================

# Parallel component analyses (1 = strictly sequential, detection order)
COMPONENT_CONCURRENCY = _int("COMPONENT_CONCURRENCY", 1)

# Crop each component out of the screenshot before analysis
CROP_COMPONENTS = _bool("CROP_COMPONENTS", True)


# =====================================================================
# HTTP client (gateway → model provider)
# =====================================================================

# Per-call deadline (seconds)
GATEWAY_TIMEOUT = _float("GATEWAY_TIMEOUT", 120.0)

# Connection-establishment retries handled by the httpx transport
GATEWAY_CONNECT_RETRIES = _int("GATEWAY_CONNECT_RETRIES", 1)

GATEWAY_MAX_CONNECTIONS = _int("GATEWAY_MAX_CONNECTIONS", 5)
GATEWAY_MAX_KEEPALIVE = _int("GATEWAY_MAX_KEEPALIVE", 3)


# =====================================================================
# Input images
# =====================================================================

# Longest edge allowed for uploaded screenshots (0 disables downscaling)
MAX_IMAGE_DIMENSION = _int("MAX_IMAGE_DIMENSION", 0)
