"""Timestamp formatting utilities."""

from datetime import datetime
from typing import Optional


def now() -> str:
    """Current local time as a filesystem-friendly string (e.g. "20251114_123456")."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def format_mtime(mtime: Optional[float], relative: bool = False) -> str:
    """
    Format a file modification time to readable format.

    Args:
        mtime: POSIX timestamp as returned by Path.stat().st_mtime, or None
               for a file that does not exist
        relative: If True, show relative time (e.g., "2h ago")
                 If False, show absolute time (e.g., "2025-11-13 18:45:40")

    Returns:
        Human-readable timestamp, or "never" when mtime is None

    Examples:
        format_mtime(1763059540.57)
        # "2025-11-13 18:45:40"

        format_mtime(path.stat().st_mtime, relative=True)
        # "2h ago"
    """
    if mtime is None:
        return "never"

    dt = datetime.fromtimestamp(mtime)
    if relative:
        return _format_relative_time(dt)
    return dt.strftime("%Y-%m-%d %H:%M:%S")


def _format_relative_time(dt: datetime) -> str:
    """
    Format datetime as relative time in compact format (e.g., "2h ago").

    - Seconds: "30s ago"
    - Minutes: "15m ago"
    - Hours: "2h ago"
    - Days: "5d ago"

    Args:
        dt: datetime object to format

    Returns:
        Compact relative time string
    """
    diff = datetime.now() - dt

    # Future times (clock skew between machines sharing a build tree)
    if diff.total_seconds() < 0:
        diff = -diff
        suffix = "from now"
    else:
        suffix = "ago"

    seconds = int(diff.total_seconds())
    minutes = seconds // 60
    hours = minutes // 60
    days = diff.days

    if seconds < 60:
        return f"{seconds}s {suffix}"
    elif minutes < 60:
        return f"{minutes}m {suffix}"
    elif hours < 24:
        return f"{hours}h {suffix}"
    else:
        return f"{days}d {suffix}"
