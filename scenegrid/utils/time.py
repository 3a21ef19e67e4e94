from __future__ import annotations

from datetime import datetime, timedelta, timezone


def utc_now_aware() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_naive() -> datetime:
    return utc_now_aware().replace(tzinfo=None)


def days_ago_naive(days: int) -> datetime:
    return utc_now_naive() - timedelta(days=max(0, int(days)))
