# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/edgegap_orchestrator

"""
Loguru configuration shared by every module of the orchestrator.
"""

import os
import sys
from pathlib import Path

from loguru import logger

LOG_DIR = Path("logs")
LOG_FILE = LOG_DIR / "edgegap_orchestrator.log"


def _ensure_log_directory() -> None:
    """Creates the log directory if it does not exist yet."""
    if not LOG_DIR.exists():
        LOG_DIR.mkdir(parents=True, exist_ok=True)


def configure_logger(level: str = "INFO") -> None:
    """
    Replaces the default loguru sinks with a stderr sink and a rotating file sink.

    Args:
        level: Minimum level for the stderr sink. The file sink always records DEBUG.
    """
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {name}:{line} - {message}",
    )
    _ensure_log_directory()
    logger.add(LOG_FILE, level="DEBUG", rotation="5 MB", retention=5, enqueue=False)


configure_logger(os.environ.get("EDGEGAP_LOG_LEVEL", "INFO"))

__all__ = ["logger", "configure_logger"]
