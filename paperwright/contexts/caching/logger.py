"""
Caching context logger.

Provides logging interface for caching context with automatic [cache] prefix.
All caching modules should import from this module, not from loguru directly.
"""

from pathlib import Path

from loguru import logger

CONTEXT_PREFIX = "[cache]"


def _log_info(message: str) -> None:
    """Log info message with [cache] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [cache] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [cache] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [cache] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [cache] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_fetch_start(resource_id: str, source: str, refresh: bool) -> None:
    """Log start of a fetch."""
    action = "Refreshing" if refresh else "Fetching"
    _log_info(f"{action} {resource_id}")
    _log_debug(f"  Source: {source}")


def log_fetch_result(resource_id: str, local_path: Path, size: int, elapsed_time: float) -> None:
    """Log a completed fetch."""
    _log_success(f"{resource_id}: {size} bytes ({elapsed_time:.2f}s)")
    _log_debug(f"  Saved to: {local_path}")


def log_fetch_failure(resource_id: str, error: Exception, elapsed_time: float) -> None:
    """Log a failed fetch."""
    _log_error(f"Failed to fetch {resource_id} ({elapsed_time:.2f}s)")
    _log_error(f"  {error}")
