"""
Protocol context logger.

Provides logging interface for the wire-format modules with automatic [protocol] prefix.
All protocol modules should import from this module, not from loguru directly.
"""

from loguru import logger

CONTEXT_PREFIX = "[protocol]"


def _log_debug(message: str) -> None:
    """Log debug message with [protocol] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


def log_chunk(direction: str, tag: str, length: int) -> None:
    """Log one framed chunk crossing the pipe (direction is 'send' or 'recv')."""
    _log_debug(f"{direction} chunk {tag} ({length} bytes)")


def log_skipped_line(line: str, reason: str) -> None:
    """Log a structured-log line that was ignored."""
    # Lines can be long engine messages, keep the debug log readable
    snippet = line[:120] + "..." if len(line) > 120 else line
    _log_debug(f"Skipping structured-log line ({reason}): {snippet!r}")
