"""
Inspecting context logger.

Provides logging interface for inspecting context with automatic [inspect] prefix.
All inspecting modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[inspect]"


def _log_warning(message: str) -> None:
    """Log warning message with [inspect] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [inspect] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_inspection_result(document: str, analyzer_name: str, toc_depth) -> None:
    """Log the derived TOC depth (or its absence) for a document."""
    if toc_depth is None:
        _log_debug(f"{document}: no TOC depth recommendation ({analyzer_name})")
    else:
        _log_debug(f"{document}: TOC depth {toc_depth} ({analyzer_name})")
