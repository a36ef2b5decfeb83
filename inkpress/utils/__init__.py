"""
Shared utilities for inkpress.

Common functionality used across contexts:
- loguru sink setup with a run header
- Timestamp for log directory names
"""

from inkpress.utils.timestamp import now

__all__ = ["now"]
