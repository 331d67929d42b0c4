from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

from slunch.config import Settings


def configure_logging(settings: Settings) -> None:
    """Console output plus one JSON log file per day under ``logs_dir``."""
    logger.remove()
    logger.add(sys.stderr, level=settings.log_level.upper())

    logs_dir = Path(settings.logs_dir)
    logs_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        str(logs_dir / "{time:YYYYMMDD}.log"),
        level=settings.log_level.upper(),
        rotation="00:00",
        retention=f"{settings.log_retention_days} days",
        serialize=True,
        enqueue=True,
        encoding="utf-8",
    )
    logger.info(f"Logging to {logs_dir} at level {settings.log_level.upper()}")
