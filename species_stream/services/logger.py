"""Centralized logging service using loguru."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from loguru import logger

from species_stream.config import settings

# Remove default handler
logger.remove()

# Add console handler with color
logger.add(
    sys.stderr,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level=settings.app_log_level.upper(),
    colorize=True,
)

if settings.log_to_file:
    LOG_DIR = Path(settings.log_dir)
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logger.add(
        LOG_DIR / "species_stream_{time:YYYY-MM-DD}.log",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level="DEBUG",
        rotation="00:00",  # New file at midnight
        retention="7 days",
        compression="zip",
    )

# Reduce noise from network libraries
for logger_name in ("httpx", "httpcore", "hpack", "asyncio"):
    logging.getLogger(logger_name).setLevel(settings.noisy_log_level.upper())


def log_session(
    session_id: str,
    profile: str,
    status: str,
    data: Optional[dict] = None,
) -> None:
    """Log a stream session lifecycle transition."""
    session_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "session_id": session_id,
        "profile": profile,
        "status": status,
        "data": data,
    }
    if status == "failed":
        logger.error(f"STREAM_SESSION_FAILED: {session_data}")
    else:
        logger.info(f"STREAM_SESSION: {session_data}")


def log_stream_event(
    session_id: str,
    event_type: str,
    message: str,
    **kwargs,
) -> None:
    """Log a notable event seen on a stream."""
    event_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "session_id": session_id,
        "event_type": event_type,
        "message": message,
        **kwargs,
    }
    logger.debug(f"STREAM_EVENT: {event_data}")
