"""
loguru sink setup shared by the CLI entry points.

Library modules never configure sinks; they log through the prefixed helpers
in contexts/{context}/logger.py, and whichever script runs configures the
sinks once through setup_logger().
"""

import sys
from pathlib import Path
from typing import Dict, Optional

from loguru import logger

from inkpress import __version__

# Console colors per level; the file sink is uncolored
LEVEL_COLORS = {
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<bold><red>",
}


def setup_logger(
    context_name: str,
    log_dir: Path,
    run_details: Optional[Dict[str, str]] = None,
    level_colors: Optional[Dict[str, str]] = None,
    console_level: str = "INFO",
) -> Path:
    """
    Route loguru output to <log_dir>/<context_name>.log and to stderr.

    The file always records DEBUG, so chunk traffic and engine stderr are
    kept even when the console only shows INFO.

    Args:
        context_name: Log file stem (e.g., "render")
        log_dir: Directory for this run, created if missing
        run_details: Extra key/value lines for the run header (e.g., the engine path)
        level_colors: Console color overrides (e.g., {"INFO": "<cyan>"})
        console_level: Minimum level shown on stderr

    Returns:
        Path to log file
    """
    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / f"{context_name}.log"

    logger.remove()

    for level_name, color in {**LEVEL_COLORS, **(level_colors or {})}.items():
        logger.level(level_name, color=color)

    logger.add(
        log_file, format="{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {message}", level="DEBUG"
    )
    logger.add(
        sys.stderr,
        format="{time:YYYY-MM-DD HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>",
        level=console_level,
        colorize=True,
    )

    log_run_header(run_details)
    return log_file


def log_run_header(details: Optional[Dict[str, str]] = None) -> None:
    """Log which inkpress version ran which command, so a log file explains itself."""
    logger.info(f"inkpress {__version__}: {' '.join(sys.argv)}")
    logger.debug(f"cwd={Path.cwd()} python={sys.version.split()[0]}")
    for key, value in (details or {}).items():
        logger.info(f"{key}: {value}")
