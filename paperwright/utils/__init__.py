"""
Shared utilities for paperwright.

Common functionality used across contexts:
- Logger setup with provenance
- Timestamp formatting
"""

from paperwright.utils.timestamp import format_mtime, now

__all__ = ["format_mtime", "now"]
