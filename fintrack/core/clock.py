from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware current time; stored timestamps are always UTC."""
    return datetime.now(timezone.utc)
