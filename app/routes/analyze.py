"""Screenshot analysis API endpoints.

Wraps ``run_pipeline`` for browser uploads and exposes the process-wide
detection mode, prompt verbosity and provider credentials.
"""

from __future__ import annotations

import base64
import logging
from typing import List, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from pydantic import BaseModel, Field

from superprompt import runtime, settings
from superprompt.errors import InvalidArgument
from superprompt.gateway import PROVIDERS, get_provider
from superprompt.imaging import SourceImage, resize_image, visualize_detections
from superprompt.models import AnalysisResult
from superprompt.pipeline import run_pipeline
from superprompt.report import format_report

logger = logging.getLogger("app.routes.analyze")

router = APIRouter(prefix="/api", tags=["analyze"])


# --- Schemas ---


class AnalyzeResponse(BaseModel):
    """Response for POST /api/analyze."""

    result: AnalysisResult
    output: str = Field(..., description="Markdown report of all stage outputs")
    visualization_image: Optional[str] = Field(
        None, description="PNG data URL with detection boxes drawn, when any were found",
    )


class ProviderStatus(BaseModel):
    name: str
    has_api_key: bool
    endpoint: str = ""


class SettingsResponse(BaseModel):
    """Response for GET/PUT /api/settings. Never contains secrets."""

    detection_mode: str
    detection_term: str
    verbosity: str
    max_components: int
    provider: str
    providers: List[ProviderStatus]


class SettingsUpdate(BaseModel):
    """Request for PUT /api/settings; omitted fields keep their value."""

    detection_mode: Optional[str] = None
    verbosity: Optional[str] = None


class CredentialsUpdate(BaseModel):
    """Request for PUT /api/settings/credentials.

    An empty string clears a stored value (the environment applies again);
    ``None`` leaves it unchanged.
    """

    provider: str = Field(..., description="Provider name, e.g. openai or anthropic")
    api_key: Optional[str] = None
    endpoint: Optional[str] = Field(None, description="Base URL override")


def _settings_response() -> SettingsResponse:
    store = runtime.credentials
    return SettingsResponse(
        detection_mode=runtime.get_detection_mode(),
        detection_term=runtime.get_detection_term(),
        verbosity=runtime.get_prompt_verbosity(),
        max_components=settings.MAX_UI_COMPONENTS,
        provider=runtime.snapshot_config().provider,
        providers=[
            ProviderStatus(
                name=name,
                has_api_key=store.has_token(name),
                endpoint=store.get_endpoint(name),
            )
            for name in sorted(PROVIDERS)
        ],
    )


# --- Endpoints ---


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_screenshot(
    image: UploadFile = File(..., description="Screenshot (PNG or JPEG)"),
    max_components: int = Form(settings.MAX_UI_COMPONENTS, ge=1),
    verbosity: Optional[str] = Form(None),
):
    """Run the full pipeline on one uploaded screenshot.

    Pipeline failures come back as a 200 with ``result.status == "failed"``;
    only unreadable uploads and invalid options are rejected.
    """
    data = await image.read()
    if verbosity and verbosity not in runtime.VERBOSITY_LEVELS:
        raise HTTPException(
            status_code=400,
            detail="Invalid prompt verbosity. Must be 'concise' or 'extensive'",
        )
    try:
        source = SourceImage.from_bytes(data)
    except InvalidArgument as e:
        raise HTTPException(status_code=400, detail=str(e))
    config = runtime.snapshot_config(detection_cap=max_components, verbosity=verbosity or None)

    if settings.MAX_IMAGE_DIMENSION > 0:
        source = resize_image(source, settings.MAX_IMAGE_DIMENSION, settings.MAX_IMAGE_DIMENSION)

    logger.info(
        "Analyzing %s (%dx%d), max_components=%d, verbosity=%s",
        image.filename, source.width, source.height, max_components, config.verbosity,
    )
    result = await run_pipeline(source, config=config)

    visualization = None
    if result.detections:
        png = visualize_detections(source, result.detections)
        visualization = f"data:image/png;base64,{base64.b64encode(png).decode('ascii')}"

    term = runtime.get_detection_term(config.detection_mode)
    return AnalyzeResponse(
        result=result,
        output=format_report(result, term),
        visualization_image=visualization,
    )


@router.get("/settings", response_model=SettingsResponse)
async def get_settings():
    return _settings_response()


@router.put("/settings", response_model=SettingsResponse)
async def update_settings(payload: SettingsUpdate):
    try:
        if payload.detection_mode is not None:
            runtime.set_detection_mode(payload.detection_mode)
        if payload.verbosity is not None:
            runtime.set_prompt_verbosity(payload.verbosity)
    except InvalidArgument as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _settings_response()


@router.put("/settings/credentials", response_model=SettingsResponse)
async def update_credentials(payload: CredentialsUpdate):
    try:
        provider = get_provider(payload.provider)
    except InvalidArgument as e:
        raise HTTPException(status_code=400, detail=str(e))
    runtime.credentials.set(provider.name, api_key=payload.api_key, endpoint=payload.endpoint)
    return _settings_response()
