import sys

from loguru import logger

from gastown_formula.config import get_settings

# Remove default handler and add a structured one
logger.remove()
logger.add(
    sys.stderr,
    format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
    level=get_settings().log_level,
)

__all__ = ["logger"]
