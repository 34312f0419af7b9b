from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from obstacle_registry.db.session import get_db
from obstacle_registry.services.dashboards import database_is_reachable

router = APIRouter(tags=["health"])


@router.get("/health")
def health(db: Session = Depends(get_db)) -> dict:
    return {"status": "ok", "database": "up" if database_is_reachable(db) else "down"}
