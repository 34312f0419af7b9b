from __future__ import annotations

import logging

from sqlalchemy import func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from obstacle_registry.models.identity import Organization, User
from obstacle_registry.models.reports import Report, ReportStatus
from obstacle_registry.policy.lifecycle import Denied
from obstacle_registry.policy.visibility import Access, manager_dashboard_access
from obstacle_registry.schemas.reports import ReportListItem
from obstacle_registry.security.context import ADMIN, ORGANIZATION_MANAGER, PILOT, REGISTRAR, Caller
from obstacle_registry.services.listing import list_report_items
from obstacle_registry.services.reports import list_by

logger = logging.getLogger(__name__)

RECENT_REPORTS_LIMIT = 10


def _count(db: Session, *where) -> int:
    return db.scalar(select(func.count(Report.id)).where(*where)) or 0


def database_is_reachable(db: Session) -> bool:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Database connectivity check failed", exc_info=True)
        return False
    return True


def landing_path(caller: Caller) -> str | None:
    """Where a caller starts; None means the admin status page."""
    if caller.has_role(ADMIN):
        return None
    if caller.has_role(REGISTRAR):
        return "/registrar"
    if caller.has_role(ORGANIZATION_MANAGER):
        return "/organization-manager"
    if caller.has_role(PILOT):
        return "/pilot"
    return "/obstacles/form"


def registrar_dashboard(db: Session, caller: Caller) -> dict:
    """
    Totals across the system plus the caller's own queue.

    Drafts stay out of the recent list; they are private to their owner.

    The assigned widget only holds Pending reports assigned to the caller;
    `pending_reports` is the system-wide list.
    """

    if caller.is_identified:
        assigned = list_by(
            db,
            Report.assigned_registrar_id == caller.user_id,
            Report.status == ReportStatus.PENDING,
        )
    else:
        assigned = []

    return {
        "report_count": _count(db),
        "pending_reports_count": _count(db, Report.status == ReportStatus.PENDING),
        "my_assigned_reports": assigned,
        "recent_reports": list_by(db, Report.status != ReportStatus.DRAFT, limit=RECENT_REPORTS_LIMIT),
    }


def pending_reports(
    db: Session,
    sort_by: str | None = None,
    sort_order: str | None = None,
    search: str | None = None,
) -> list[ReportListItem]:
    return list_report_items(db, [Report.status == ReportStatus.PENDING], sort_by, sort_order, search)


def submitted_reports(
    db: Session,
    sort_by: str | None = None,
    sort_order: str | None = None,
    search: str | None = None,
) -> list[ReportListItem]:
    # Drafts stay private to their owner.
    return list_report_items(db, [Report.status != ReportStatus.DRAFT], sort_by, sort_order, search)


def pilot_dashboard(db: Session, caller: Caller) -> dict | Denied:
    if not caller.is_identified:
        return Denied(Access.FORBID)

    mine = Report.user_id == caller.user_id
    healthy = database_is_reachable(db)
    return {
        "my_reports_count": _count(db, mine),
        "my_drafts_count": _count(db, mine, Report.status == ReportStatus.DRAFT),
        "submitted_reports_count": _count(db, mine, Report.status != ReportStatus.DRAFT),
        "system_status": "Active" if healthy else "Degraded",
    }


def my_reports(
    db: Session,
    caller: Caller,
    sort_by: str | None = None,
    sort_order: str | None = None,
    search: str | None = None,
) -> list[ReportListItem] | Denied:
    if not caller.is_identified:
        return Denied(Access.FORBID)
    return list_report_items(db, [Report.user_id == caller.user_id], sort_by, sort_order, search)


def member_ids(db: Session, organization_id: int) -> list[str]:
    return list(db.scalars(select(User.id).where(User.organization_id == organization_id)).all())


def manager_dashboard(db: Session, caller: Caller) -> dict | Denied:
    organization = db.get(Organization, caller.organization_id) if caller.organization_id is not None else None
    access = manager_dashboard_access(caller, caller.organization_id, organization is not None)
    if access is not Access.ALLOW:
        return Denied(access)

    of_members = Report.user_id.in_(member_ids(db, organization.id))
    return {
        "organization": organization,
        "total_reports": _count(db, of_members),
        "pending_reports": _count(db, of_members, Report.status == ReportStatus.PENDING),
        "approved_reports": _count(db, of_members, Report.status == ReportStatus.APPROVED),
        "rejected_reports": _count(db, of_members, Report.status == ReportStatus.REJECTED),
    }
