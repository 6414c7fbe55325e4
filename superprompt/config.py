"""Pipeline configuration constants: single source of truth for infra env vars."""

import os

# Model provider used when a run does not name one ("openai" | "anthropic")
MODEL_PROVIDER = os.getenv("MODEL_PROVIDER", "openai")

# Model override; empty means the provider's default vision model
MODEL_NAME = os.getenv("MODEL_NAME", "")

# Anthropic Messages API version header
ANTHROPIC_VERSION = os.getenv("ANTHROPIC_VERSION", "2023-06-01")

# CORS origins for the HTTP shell (comma-separated)
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
