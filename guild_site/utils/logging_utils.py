"""
Centralized logging utilities for consistent logging configuration across the application
"""

import logging
from typing import Optional

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: int = logging.INFO, format_string: Optional[str] = None):
    """
    Configure application-wide logging

    Args:
        level: Logging level (default: INFO)
        format_string: Custom format string (optional)
    """
    if format_string is None:
        format_string = DEFAULT_FORMAT

    logging.basicConfig(
        level=level,
        format=format_string,
        handlers=[logging.StreamHandler()],
        force=True  # Override any existing configuration
    )


def level_from_name(name: str) -> int:
    """Translate a level name such as 'debug' into a logging constant, INFO if unknown"""
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.INFO
