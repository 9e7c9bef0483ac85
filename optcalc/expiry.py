"""
Time-to-expiry normalization.

Both paths use the same 365-day convention so an expiry instant and an
equal-length duration produce the same year fraction.
"""

from datetime import datetime, timedelta
from typing import Optional

import pandas as pd

from . import config as cfg


def _now_like(expiry: datetime) -> datetime:
    if expiry.tzinfo is not None:
        return datetime.now(tz=expiry.tzinfo)
    return datetime.now()


def from_instant(expiry: datetime, now: Optional[datetime] = None) -> float:
    """Year fraction until ``expiry``.  Zero or negative once it has passed."""
    now = now or _now_like(expiry)
    days = (expiry - now).total_seconds() / cfg.SECONDS_PER_DAY
    return days / cfg.DAYS_PER_YEAR


def from_duration(hours: float = 0, minutes: float = 0, seconds: float = 0) -> float:
    total_seconds = hours * 3600 + minutes * 60 + seconds
    days = total_seconds / cfg.SECONDS_PER_DAY
    return days / cfg.DAYS_PER_YEAR


def from_preset(label: str, now: Optional[datetime] = None) -> datetime:
    """Expiry instant for a quick-select label (1h, 1d, 1w, 1m, 3m, 1y)."""
    try:
        offset = cfg.EXPIRY_PRESETS[label.strip().lower()]
    except KeyError:
        raise ValueError(
            f"unknown expiry preset {label!r}; choose from {', '.join(cfg.EXPIRY_PRESETS)}"
        ) from None
    now = now or datetime.now()
    return (pd.Timestamp(now) + pd.DateOffset(**offset)).to_pydatetime()


def parse_duration(text: str) -> tuple[float, float, float]:
    """'H:M:S', 'H:M' or 'H' -> (hours, minutes, seconds).  Parts must be >= 0."""
    parts = [p.strip() for p in text.split(":")]
    if not 1 <= len(parts) <= 3:
        raise ValueError(f"duration must look like H:M:S, got {text!r}")
    values = [float(p) for p in parts] + [0.0] * (3 - len(parts))
    if any(v < 0 for v in values):
        raise ValueError(f"duration parts must be non-negative, got {text!r}")
    hours, minutes, seconds = values
    return hours, minutes, seconds


def default_expiry(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now()
    return now + timedelta(days=cfg.DEFAULT_EXPIRY_DAYS)
