"""FastAPI Application Entry Point.

Configures the app, lifespan, CORS, and includes the analysis routes.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from superprompt import config, runtime
from superprompt.logging_config import get_api_logger, get_pipeline_logger

logger = logging.getLogger("app")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and warn about missing provider credentials."""
    get_api_logger()
    get_pipeline_logger()

    if not runtime.credentials.has_token(config.MODEL_PROVIDER):
        logger.warning(
            "%s_API_KEY not set: /api/analyze will return failed results until a key is "
            "configured via the environment or PUT /api/settings/credentials.",
            config.MODEL_PROVIDER.upper(),
        )

    yield


app = FastAPI(title="Screenshot to Super Prompt API", version="1.0.0", lifespan=lifespan)

CORS_ORIGINS = [o.strip() for o in config.CORS_ORIGINS.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from .routes.analyze import router as analyze_router  # noqa: E402

app.include_router(analyze_router)


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "ok"}
