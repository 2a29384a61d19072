"""
Utility functions for the application.
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """Naive UTC timestamp, matching the TIMESTAMP(timezone=False) columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_bytes(num_bytes: int) -> str:
    """Human readable size, e.g. 2.5 MB"""
    size = float(num_bytes or 0)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024 or unit == "GB":
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"
