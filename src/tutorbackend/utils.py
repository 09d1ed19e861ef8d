from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, the form SQLite hands back on read."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def truncate(text: str, limit: int) -> str:
    """Cut text to at most `limit` characters, marking the cut with '...'"""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
