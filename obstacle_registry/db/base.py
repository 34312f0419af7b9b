from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    # Naive UTC: SQLite round-trips DateTime columns without tzinfo.
    return datetime.now(timezone.utc).replace(tzinfo=None)
