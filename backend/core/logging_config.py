"""
Logging Configuration

Centralized logging using loguru with structured output.
"""

import sys
from pathlib import Path

from loguru import logger

from config import get_settings

_settings = get_settings()

# Remove default handler
logger.remove()

# Console handler
logger.add(
    sys.stderr,
    format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[component]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>",
    level=_settings.log_level,
    colorize=True,
)

# Rotating file handler
logger.add(
    str(Path(_settings.log_dir) / "insights_{time:YYYY-MM-DD}.log"),
    rotation="10 MB",
    retention="7 days",
    format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[component]}:{function}:{line} | {message}",
    level=_settings.log_level,
)

logger.configure(extra={"component": "app"})


def get_logger(component: str):
    """Get a logger bound to a component name."""
    return logger.bind(component=component)


upload_logger = get_logger("upload")
data_logger = get_logger("data")
analysis_logger = get_logger("analysis")
narration_logger = get_logger("narration")
chart_logger = get_logger("charts")
