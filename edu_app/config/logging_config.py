#!/usr/bin/env python3
"""
Configuration loguru
"""

import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


def setup_logging(level: str = "INFO") -> None:
    """Remplace le sink par défaut par une sortie stderr au niveau demandé"""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT, enqueue=False, backtrace=False)
    logger.debug(f"Journalisation configurée au niveau {level.upper()}")
