"""Wall clock for the shell. Components take a clock callable so tests can pin time."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
