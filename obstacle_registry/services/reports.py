from __future__ import annotations

import logging
from typing import Union

from sqlalchemy import delete, select
from sqlalchemy.orm import Session, selectinload

from obstacle_registry.db.base import utcnow
from obstacle_registry.db.concurrency import commit_guarded
from obstacle_registry.models.identity import User
from obstacle_registry.models.reports import Notification, Report, ReportStatus
from obstacle_registry.policy import lifecycle
from obstacle_registry.policy.lifecycle import Denied, InvalidAssignment, ReportState, Transition, ValidationFailed
from obstacle_registry.policy.notifications import NotificationRequest
from obstacle_registry.policy.visibility import Access, owned_report_access, report_detail_access
from obstacle_registry.schemas.reports import ObstacleForm
from obstacle_registry.security.context import REGISTRAR, Caller
from obstacle_registry.services.listing import UNKNOWN_SENDER

logger = logging.getLogger(__name__)

Failure = Union[Denied, ValidationFailed, InvalidAssignment]


# -- user directory ---------------------------------------------------------


def resolve_user(db: Session, user_id: str | None) -> User | None:
    if not user_id:
        return None
    return db.execute(
        select(User).where(User.id == user_id).options(selectinload(User.roles))
    ).scalar_one_or_none()


def get_roles(db: Session, user_id: str | None) -> frozenset[str]:
    user = resolve_user(db, user_id)
    return user.role_names if user is not None else frozenset()


def display_name(db: Session, user_id: str | None) -> str | None:
    user = resolve_user(db, user_id)
    return user.display_name if user is not None else None


# -- report repository ------------------------------------------------------


def get_report(db: Session, report_id: int) -> Report | None:
    return db.get(Report, report_id)


def list_by(db: Session, *where, newest_first: bool = True, limit: int | None = None) -> list[Report]:
    stmt = select(Report).where(*where)
    stmt = stmt.order_by(Report.created_at.desc(), Report.id.desc()) if newest_first else stmt.order_by(Report.id)
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(db.scalars(stmt).all())


def state_of(report: Report | None) -> ReportState | None:
    if report is None:
        return None
    return ReportState(
        id=report.id,
        user_id=report.user_id,
        status=report.status,
        obstacle_type=report.obstacle_type,
        obstacle_height=report.obstacle_height,
        obstacle_description=report.obstacle_description,
        obstacle_location=report.obstacle_location,
        assigned_registrar_id=report.assigned_registrar_id,
        rejection_reason=report.rejection_reason,
        processed_at=report.processed_at,
    )


def insert_notification(db: Session, request: NotificationRequest) -> Notification:
    notification = Notification(
        user_id=request.user_id,
        report_id=request.report_id,
        title=request.title,
        message=request.message,
        is_read=False,
    )
    db.add(notification)
    return notification


_STATE_FIELDS = (
    "user_id",
    "status",
    "obstacle_type",
    "obstacle_height",
    "obstacle_description",
    "obstacle_location",
    "assigned_registrar_id",
    "rejection_reason",
    "processed_at",
)


def apply_transition(db: Session, transition: Transition, report: Report | None = None) -> Report | None:
    """
    Persist a lifecycle transition and its notifications in one commit.

    Deletion removes every notification that references the report before the
    report itself, then records the deletion notice (which keeps pointing at
    the now-missing report id). Returns None when the row vanished under a
    concurrent writer.
    """

    if transition.delete:
        report_id = report.id
        db.execute(delete(Notification).where(Notification.report_id == report_id))
        db.delete(report)
        for request in transition.notifications:
            insert_notification(db, request)
        if not commit_guarded(db, Report, report_id):
            return None
        logger.info("Report deleted id=%s notices=%d", report_id, len(transition.notifications))
        return report

    if report is None:
        report = Report()
        db.add(report)
    for name in _STATE_FIELDS:
        setattr(report, name, getattr(transition.state, name))
    for request in transition.notifications:
        insert_notification(db, request)

    if report.id is None:
        # New rows need their id; inserts carry no version check.
        db.flush()
    report_id = report.id
    if not commit_guarded(db, Report, report_id):
        return None
    logger.info("Report saved id=%s status=%s", report_id, transition.state.status)
    return report


def _persist(db: Session, result, report: Report | None = None) -> Report | Failure:
    if not isinstance(result, Transition):
        return result
    saved = apply_transition(db, result, report)
    if saved is None:
        return Denied(Access.NOT_FOUND)
    return saved


# -- pilot operations -------------------------------------------------------


def create_report(db: Session, caller: Caller, form: ObstacleForm) -> Report | Failure:
    return _persist(db, lifecycle.create_report(caller, form))


def get_draft(db: Session, caller: Caller, report_id: int) -> Report | Denied:
    report = get_report(db, report_id)
    access = owned_report_access(caller, report.user_id if report else None, report is not None)
    if access is not Access.ALLOW:
        return Denied(access)
    if report.status != ReportStatus.DRAFT:
        return Denied(Access.NOT_FOUND)
    return report


def update_draft(db: Session, caller: Caller, report_id: int, form: ObstacleForm) -> Report | Failure:
    report = get_report(db, report_id)
    return _persist(db, lifecycle.update_draft(caller, state_of(report), form), report)


def list_drafts(db: Session, caller: Caller) -> list[Report] | Denied:
    if not caller.is_identified:
        return Denied(Access.FORBID)
    return list_by(db, Report.user_id == caller.user_id, Report.status == ReportStatus.DRAFT)


# -- review operations ------------------------------------------------------


def report_details(db: Session, caller: Caller, report_id: int) -> tuple[Report, str] | Denied:
    report = get_report(db, report_id)
    access = report_detail_access(caller, report.user_id if report else None, report is not None)
    if access is not Access.ALLOW:
        return Denied(access)
    return report, display_name(db, report.user_id) or UNKNOWN_SENDER


def approve_report(db: Session, caller: Caller, report_id: int) -> Report | Failure:
    report = get_report(db, report_id)
    result = lifecycle.approve(caller, state_of(report), display_name(db, caller.user_id), utcnow())
    return _persist(db, result, report)


def reject_report(db: Session, caller: Caller, report_id: int, reason: str | None) -> Report | Failure:
    report = get_report(db, report_id)
    result = lifecycle.reject(caller, state_of(report), reason, display_name(db, caller.user_id), utcnow())
    if isinstance(result, ValidationFailed):
        logger.info("Reject refused without reason report=%s", report_id)
    return _persist(db, result, report)


def assign_registrar(db: Session, caller: Caller, report_id: int, registrar_id: str | None) -> Report | Failure:
    report = get_report(db, report_id)
    target_is_registrar = bool(registrar_id) and REGISTRAR in get_roles(db, registrar_id.strip())
    result = lifecycle.assign_registrar(caller, state_of(report), registrar_id, target_is_registrar)
    if isinstance(result, InvalidAssignment):
        logger.warning("Refused assignment of non-registrar user=%s report=%s", registrar_id, report_id)
    return _persist(db, result, report)


def delete_report(db: Session, caller: Caller, report_id: int) -> int | Failure:
    report = get_report(db, report_id)
    result = lifecycle.delete(caller, state_of(report), display_name(db, caller.user_id))
    persisted = _persist(db, result, report)
    if isinstance(persisted, Report):
        return report_id
    return persisted


# -- public obstacle feeds --------------------------------------------------


def obstacle_features(db: Session, approved_only: bool = False) -> list[dict]:
    where = [Report.obstacle_location.is_not(None), Report.obstacle_location != ""]
    if approved_only:
        where.append(Report.status == ReportStatus.APPROVED)
    return [
        {
            "id": r.id,
            "type": r.obstacle_type,
            "height": r.obstacle_height,
            "location": r.obstacle_location,
        }
        for r in list_by(db, *where)
    ]
