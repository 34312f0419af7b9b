from __future__ import annotations

from collections.abc import Generator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from obstacle_registry.settings import get_settings


_settings = get_settings()

engine = create_engine(
    _settings.resolved_db_url(),
    connect_args={"check_same_thread": False} if _settings.resolved_db_url().startswith("sqlite") else {},
)

SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False, class_=Session)


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Main DB dependency.

    The resolved caller (if the security dependency ran) is copied into
    `Session.info["caller"]` so the `do_orm_execute` listener in
    `obstacle_registry/db/filters.py` can scope notification reads.
    """

    db = SessionLocal()
    try:
        caller = getattr(getattr(request, "state", None), "caller", None)
        if caller is not None:
            db.info["caller"] = caller
        yield db
    finally:
        db.close()
