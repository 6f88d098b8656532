"""
Building context logger.

Provides logging interface for building context with automatic [build] prefix.
All building modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path
from typing import Optional

from loguru import logger

from paperwright.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[build]"


def setup_building_logger(
    log_dir: Optional[Path], renderer: str, verbose: bool = False
) -> Optional[Path]:
    """
    Setup logger for building context.

    Args:
        log_dir: Directory for this build session (None for console only)
        renderer: Renderer binary, recorded in the provenance header
        verbose: Show DEBUG messages on the console

    Returns:
        Path to log file, or None

    Example:
        from paperwright.contexts.building.logger import setup_building_logger, _log_info

        setup_building_logger(None, renderer="pandoc")
        _log_info("Starting build...")
    """
    return _setup_logger(
        context_name="build",
        log_dir=log_dir,
        extra_provenance={"Renderer": renderer},
        console_level="DEBUG" if verbose else "INFO",
    )


# Wrapper functions with automatic [build] prefix


def _log_info(message: str) -> None:
    """Log info message with [build] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [build] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [build] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [build] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level building-specific logging helpers


def log_render_start(target_name: str, source: Path, options) -> None:
    """Log start of a render with its composed options."""
    _log_info(f"Rendering {target_name}")
    _log_debug(f"  Source: {source}")
    _log_debug(f"  Layers: {', '.join(layer.origin.label for layer in options.layers)}")
    if options.toc_depth is not None:
        _log_debug(f"  TOC depth: {options.toc_depth}")


def log_render_result(
    target_name: str,
    result,  # RenderResult
    elapsed_time: float,
    verbose: bool = False,
) -> None:
    """
    Log render result with diagnostics.

    Args:
        target_name: Target identifier
        result: RenderResult from Renderer.render()
        elapsed_time: Time taken to render
        verbose: Log renderer output even on success
    """
    if result.success:
        _log_success(f"{target_name} ({elapsed_time:.2f}s)")
        if result.output_path:
            _log_debug(f"  Output: {result.output_path}")
    else:
        _log_error(f"{target_name}: render failed ({elapsed_time:.2f}s)")
        for err in result.errors:
            _log_error(f"  {err}")

    # Use opt(raw=True) to keep the renderer's own formatting
    if verbose or not result.success:
        if result.stdout:
            logger.opt(raw=True).debug(
                f"\n{'=' * 80}\nRENDERER STDOUT ({target_name}):\n{'=' * 80}\n{result.stdout}\n"
            )
        if result.stderr:
            logger.opt(raw=True).debug(
                f"\n{'=' * 80}\nRENDERER STDERR ({target_name}):\n{'=' * 80}\n{result.stderr}\n"
            )


def log_build_summary(report) -> None:
    """Log the aggregate outcome of a build."""
    summary = (
        f"{len(report.built)} built, {len(report.up_to_date)} up to date, "
        f"{len(report.failed)} failed, {len(report.skipped)} skipped"
    )
    if report.success:
        _log_success(f"Summary: {summary}")
    else:
        _log_error(f"Summary: {summary}")
