"""Shared utilities used across the visit analysis service."""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Current wall-clock time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into the closed interval [lower, upper].

    Examples:
        >>> clamp(1.2, 0.0, 1.0)
        1.0
        >>> clamp(-3, -1, 1)
        -1
    """
    return min(max(value, lower), upper)


def contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    """Case-insensitive substring match against any of the keywords."""
    lower = text.lower()
    return any(keyword in lower for keyword in keywords)
