"""
Logging configuration.

Configure le logging standard de Python pour toute l'application :
- niveau global et format (simple, detailed, json) issus des settings
- niveaux par module (bruit réduit pour sqlalchemy / httpx)
- get_logger(name) à utiliser dans les services
"""

import logging
from typing import Optional

from heritage_crafts.core.config import settings

SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s"

JSON_FORMAT = (
    '{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", '
    '"module": "%(filename)s", "function": "%(funcName)s", "line": %(lineno)d, '
    '"message": "%(message)s"}'
)

MODULE_LOG_LEVELS = {
    "heritage_crafts": "INFO",
    "heritage_crafts.features": "INFO",
    "heritage_crafts.api": "INFO",
    "sqlalchemy": "WARNING",
    "sqlalchemy.engine": "WARNING",
    "httpx": "WARNING",
    "botocore": "WARNING",
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
}


def _format_for(name: str) -> str:
    if name == "json":
        return JSON_FORMAT
    if name == "simple":
        return SIMPLE_FORMAT
    return DETAILED_FORMAT


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure le root logger (console uniquement).

    Args:
        log_level: surcharge du niveau (DEBUG, INFO, WARNING, ERROR)
        log_format: surcharge du format (simple, detailed, json)
    """
    level = (log_level or settings.LOG_LEVEL).upper()
    fmt = log_format or settings.LOG_FORMAT

    formatter = logging.Formatter(_format_for(fmt), datefmt="%Y-%m-%d %H:%M:%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Évite les doublons si setup_logging est appelé plusieurs fois
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    for module_name, module_level in MODULE_LOG_LEVELS.items():
        logging.getLogger(module_name).setLevel(module_level)

    root_logger.info("Logging configured: level=%s, format=%s", level, fmt)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
