from __future__ import annotations

from datetime import datetime
from typing import Optional

import pytz


def utc_now() -> datetime:
    return datetime.now(pytz.utc)


def parse_iso(dt_iso: str) -> datetime:
    # fromisoformat only learned the trailing Z in 3.11
    dt = datetime.fromisoformat(dt_iso.replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = pytz.utc.localize(dt)
    return dt


def relative_time(dt_iso: Optional[str], now: Optional[datetime] = None) -> str:
    if not dt_iso:
        return ""
    try:
        dt = parse_iso(dt_iso)
    except ValueError:
        return dt_iso
    now = now or utc_now()
    minutes = int((now - dt).total_seconds() // 60)
    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if minutes < 1440:
        return f"{minutes // 60}h ago"
    return dt.strftime("%d/%m/%Y")


def format_article_date(dt_iso: str) -> str:
    try:
        dt = parse_iso(dt_iso)
    except ValueError:
        return dt_iso
    # Example: October 1, 2025
    return f"{dt.strftime('%B')} {dt.day}, {dt.year}"


def format_countdown(seconds: int) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"
