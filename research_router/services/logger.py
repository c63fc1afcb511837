"""Centralized logging setup for the CLI and HTTP service using loguru."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from loguru import logger

from research_router.config import settings
from research_router.models.research import ResearchTurnOutput

NOISY_LOGGERS = (
    "uvicorn",
    "uvicorn.error",
    "uvicorn.access",
    "fastapi",
    "httpx",
    "httpcore",
    "hpack",
    "asyncio",
)

_configured = False


def configure_logging(level: str | None = None, noisy_level: str | None = None) -> None:
    """Install the stderr sink and re-enable package logs.

    Library use leaves the package disabled; applications call this once.
    """
    global _configured
    app_level = (level or settings.app_log_level).upper()
    if not _configured:
        logger.remove()
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
            level=app_level,
            colorize=True,
        )
        _configured = True
    logger.enable("research_router")

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel((noisy_level or settings.noisy_log_level).upper())


def log_turn(output: ResearchTurnOutput, *, duration_ms: int = 0, caller: str = "") -> None:
    """Log a completed research turn."""
    turn_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "request_id": output.request_id,
        "caller": caller,
        "query": output.query,
        "actions": [a.value for a in output.actions_planned],
        "primary_action": output.primary_action.value,
        "duration_ms": duration_ms,
        "metrics": output.metrics.to_dict(),
    }
    logger.info(f"TURN: {json.dumps(turn_data)}")


def log_event(
    event_type: str,
    message: str,
    **kwargs: Any,
) -> None:
    """Log a generic event."""
    event_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event_type": event_type,
        "message": message,
        **kwargs,
    }
    logger.info(f"EVENT: {json.dumps(event_data, default=str)}")
