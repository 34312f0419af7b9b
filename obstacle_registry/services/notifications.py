from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from obstacle_registry.db.base import utcnow
from obstacle_registry.models.reports import Notification
from obstacle_registry.policy.visibility import can_mutate_notification
from obstacle_registry.security.context import Caller

logger = logging.getLogger(__name__)


def list_notifications(db: Session, caller: Caller) -> tuple[int, list[Notification]]:
    if not caller.is_identified:
        return 0, []

    mine = Notification.user_id == caller.user_id
    unread = db.scalar(select(func.count(Notification.id)).where(mine, Notification.is_read.is_(False))) or 0
    rows = db.scalars(
        select(Notification).where(mine).order_by(Notification.created_at.desc(), Notification.id.desc())
    ).all()
    return unread, list(rows)


def mark_as_read(db: Session, caller: Caller, notification_id: int) -> bool:
    """
    Mark one of the caller's notifications as read.

    Someone else's (or a missing) notification is left untouched and the call
    still succeeds from the caller's point of view.
    """

    notification = db.get(Notification, notification_id)
    if notification is None or not can_mutate_notification(caller, notification.user_id):
        logger.debug("Ignored mark-as-read user=%s notification=%s", caller.user_id, notification_id)
        return False

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = utcnow()
        db.commit()
    return True


def mark_all_as_read(db: Session, caller: Caller) -> int:
    if not caller.is_identified:
        return 0

    now = utcnow()
    unread = db.scalars(
        select(Notification).where(Notification.user_id == caller.user_id, Notification.is_read.is_(False))
    ).all()
    for notification in unread:
        notification.is_read = True
        notification.read_at = now
    db.commit()
    return len(unread)
