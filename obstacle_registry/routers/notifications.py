from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from obstacle_registry.db.session import get_db
from obstacle_registry.schemas.reports import NotificationOut, NotificationsOut
from obstacle_registry.security.context import Caller
from obstacle_registry.security.dependencies import get_caller
from obstacle_registry.services import notifications as notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationsOut)
def list_notifications(caller: Caller = Depends(get_caller), db: Session = Depends(get_db)) -> NotificationsOut:
    unread, rows = notification_service.list_notifications(db, caller)
    return NotificationsOut(
        unread_count=unread,
        notifications=[NotificationOut.model_validate(row) for row in rows],
    )


@router.post("/{id}/read")
def mark_as_read(id: int, caller: Caller = Depends(get_caller), db: Session = Depends(get_db)) -> dict:
    # Other users' notifications are ignored without telling the caller.
    notification_service.mark_as_read(db, caller, id)
    return {"success": True}


@router.post("/read-all")
def mark_all_as_read(caller: Caller = Depends(get_caller), db: Session = Depends(get_db)) -> dict:
    updated = notification_service.mark_all_as_read(db, caller)
    return {"success": True, "updated": updated}
