"""Date and time formatting utilities."""

import time
from datetime import datetime, timezone
from typing import Optional


def format_relative_time(ts: int, now: Optional[int] = None) -> str:
    """
    Format a unix timestamp relative to now.

    Args:
        ts: Unix timestamp in seconds (0 or less means unknown)
        now: Reference time (defaults to the current time)

    Returns:
        "just now", "5m ago", "3h ago", "2d ago", a YYYY-MM-DD date, or "-"
    """
    if ts <= 0:
        return "-"
    now = int(time.time()) if now is None else now
    diff = max(now - ts, 0)
    if diff < 60:
        return "just now"
    if diff < 3600:
        return f"{diff // 60}m ago"
    if diff < 86400:
        return f"{diff // 3600}h ago"
    if diff < 86400 * 7:
        return f"{diff // 86400}d ago"
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d")
