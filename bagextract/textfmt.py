"""Text formatting helpers shared by the tab-separated extractors."""

from __future__ import annotations

from collections.abc import Iterable

DEFAULT_PRECISION = 6


def format_stamp(sec: int, nsec: int) -> str:
    """Render a stamp as seconds and nanoseconds, each zero-padded to nine digits."""
    return f"{sec:09d}{nsec:09d}"


def format_number(value: float, precision: int = DEFAULT_PRECISION) -> str:
    """Render a float the way a default-configured output stream does."""
    return f"{value:.{precision}g}"


def format_covariance(values: Iterable[float], precision: int = DEFAULT_PRECISION) -> str:
    """Render a sequence of floats joined by commas."""
    return ",".join(format_number(v, precision) for v in values)