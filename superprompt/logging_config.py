"""Unified logging configuration for the pipeline, CLI and HTTP shell."""
from __future__ import annotations

import logging
import os
from pathlib import Path

# Log directory, configurable via LOG_DIR env var for Docker
LOG_DIR = Path(os.getenv("LOG_DIR", str(Path.cwd() / "logs")))

# Prevent duplicate handlers
_configured_loggers: set[str] = set()


def setup_logger(name: str, filename: str, level: int = logging.INFO) -> logging.Logger:
    """Setup a logger with file and console handlers.

    Module loggers (``logging.getLogger(__name__)``) below ``name``
    propagate into these handlers.

    Args:
        name: Logger name (e.g., 'superprompt', 'app')
        filename: Log file name (e.g., 'pipeline.log')
        level: Level for the logger and both handlers

    Returns:
        Configured logger instance
    """
    if name in _configured_loggers:
        return logging.getLogger(name)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False  # Prevent duplicate logs

    LOG_DIR.mkdir(parents=True, exist_ok=True)

    # File handler
    fh = logging.FileHandler(LOG_DIR / filename, encoding="utf-8")
    fh.setLevel(level)
    fh.setFormatter(logging.Formatter(
        "%(asctime)s [%(name)s] [%(levelname)s] %(message)s"
    ))

    # Console handler
    sh = logging.StreamHandler()
    sh.setLevel(level)
    sh.setFormatter(logging.Formatter(
        "%(asctime)s [%(name)s] %(message)s"
    ))

    logger.addHandler(fh)
    logger.addHandler(sh)

    _configured_loggers.add(name)
    return logger


# Pre-configured loggers
def get_pipeline_logger(level: int = logging.INFO) -> logging.Logger:
    """Logger for the analysis pipeline (all ``superprompt.*`` modules)."""
    return setup_logger("superprompt", "pipeline.log", level)


def get_api_logger() -> logging.Logger:
    """Logger for API requests."""
    return setup_logger("app", "api.log")
