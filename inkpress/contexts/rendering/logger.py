"""
Rendering context logger.

Provides logging interface for rendering context with automatic [render] prefix.
All rendering modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path
from typing import List

from loguru import logger

from inkpress.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[render]"


def setup_rendering_logger(log_dir: Path, engine_path: str, verbose: bool = False) -> Path:
    """
    Setup logger for rendering context.

    Configures loguru sinks and records the engine in the run header.

    Args:
        log_dir: Directory for this rendering session
        engine_path: Engine executable, recorded in the run header
        verbose: Also show debug output (chunk traffic, engine stderr) on the console

    Returns:
        Path to log file

    Example:
        from inkpress.contexts.rendering.logger import setup_rendering_logger

        log_file = setup_rendering_logger(log_dir, "prince")
    """
    return _setup_logger(
        context_name="render",
        log_dir=log_dir,
        run_details={"Engine": engine_path},
        console_level="DEBUG" if verbose else "INFO",
    )


# Wrapper functions with automatic [render] prefix


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_session_start(engine_path: str, version: str) -> None:
    """Log a successful control handshake."""
    _log_info(f"Control session started: {engine_path}")
    _log_debug(f"  Engine version: {version}")


def log_session_stop(engine_path: str, jobs: int) -> None:
    _log_info(f"Control session stopped: {engine_path} ({jobs} jobs)")


def log_job_start(label: str, inputs: List[str], resource_count: int) -> None:
    """Log submission of one job (control or one-shot)."""
    _log_info(f"Starting conversion: {label}")
    _log_debug(f"  Inputs: {', '.join(inputs) if inputs else '(none)'}")
    _log_debug(f"  Job resources: {resource_count}")


def log_job_result(
    label: str,
    result,  # ConversionResult
    elapsed_time: float,
    verbose: bool = False,
) -> None:
    """
    Log conversion result with diagnostics.

    Args:
        label: Job identifier shown in the log
        result: ConversionResult of the job
        elapsed_time: Time taken to convert
        verbose: Show all warnings/errors (default: False)
    """
    if result.success:
        _log_success(f"{label}: {len(result.warnings)} warnings ({elapsed_time:.2f}s)")
    elif not result.complete:
        _log_error(f"{label}: engine log ended without a result ({elapsed_time:.2f}s)")
    else:
        _log_error(f"{label}: {len(result.errors)} errors ({elapsed_time:.2f}s)")

    error_limit = 10 if verbose else 5
    for i, err in enumerate(result.errors[:error_limit], 1):
        _log_error(f"  Error {i}: {err}")
    if len(result.errors) > error_limit:
        _log_error(f"  ... and {len(result.errors) - error_limit} more errors")

    # Warnings at debug level (can be verbose)
    if result.warnings:
        warning_limit = 10 if verbose else 3
        for i, warn in enumerate(result.warnings[:warning_limit], 1):
            _log_debug(f"  Warning {i}: {warn}")
        if len(result.warnings) > warning_limit:
            _log_debug(f"  ... and {len(result.warnings) - warning_limit} more warnings")

    for data in result.data_messages:
        _log_debug(f"  Data {data.name}: {data.value}")
