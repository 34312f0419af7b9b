"""
Report list query in two explicit phases.

1. `ordered_report_items` runs in the store: outer-join each report to its
   sender and the sender's organization, project to `ReportListItem` and order
   by one of a fixed set of keys.
2. `search_items` filters the materialized rows in memory with a
   case-insensitive substring match.

Searching after materializing keeps formatted values (creation date, id as
text) out of SQL, where not every backend can express them identically.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlalchemy import ColumnElement, func, literal, select
from sqlalchemy.orm import Session

from obstacle_registry.models.identity import Organization, User
from obstacle_registry.models.reports import Report
from obstacle_registry.schemas.reports import ReportListItem

UNKNOWN_SENDER = "(unknown)"
DATE_FORMAT = "%b %d, %Y"

DEFAULT_SORT_BY = "createdAt"
DEFAULT_SORT_ORDER = "desc"


def _sender_column():
    return func.coalesce(User.email, User.username, literal(UNKNOWN_SENDER))


def _order_by(sort_by: str | None, sort_order: str | None, sender) -> list:
    columns = {
        "id": Report.id,
        "createdat": Report.created_at,
        "sender": sender,
        "organizationname": func.coalesce(Organization.name, literal("")),
        "obstacletype": func.coalesce(Report.obstacle_type, literal("")),
        "status": Report.status,
    }
    column = columns.get((sort_by or "").lower())
    if column is None:
        return [Report.created_at.desc(), Report.id.desc()]

    if (sort_order or "").lower() == "asc":
        return [column.asc(), Report.id.asc()]
    return [column.desc(), Report.id.desc()]


def ordered_report_items(
    db: Session,
    where: Iterable[ColumnElement[bool]] = (),
    sort_by: str | None = DEFAULT_SORT_BY,
    sort_order: str | None = DEFAULT_SORT_ORDER,
) -> list[ReportListItem]:
    sender = _sender_column().label("sender")
    stmt = (
        select(
            Report.id,
            Report.created_at,
            sender,
            Organization.name.label("organization_name"),
            Report.obstacle_type,
            Report.status,
            Report.obstacle_location,
        )
        .select_from(Report)
        .outerjoin(User, User.id == Report.user_id)
        .outerjoin(Organization, Organization.id == User.organization_id)
    )
    for clause in where:
        stmt = stmt.where(clause)
    stmt = stmt.order_by(*_order_by(sort_by, sort_order, _sender_column()))

    return [ReportListItem.model_validate(row) for row in db.execute(stmt).all()]


def _haystack(item: ReportListItem) -> Sequence[str]:
    return (
        str(item.id),
        item.sender or "",
        item.organization_name or "",
        item.obstacle_type or "",
        item.created_at.strftime(DATE_FORMAT),
        item.status or "",
    )


def search_items(items: list[ReportListItem], search: str | None) -> list[ReportListItem]:
    if search is None or not search.strip():
        return items

    needle = search.lower()
    return [item for item in items if any(needle in value.lower() for value in _haystack(item))]


def list_report_items(
    db: Session,
    where: Iterable[ColumnElement[bool]] = (),
    sort_by: str | None = DEFAULT_SORT_BY,
    sort_order: str | None = DEFAULT_SORT_ORDER,
    search: str | None = None,
) -> list[ReportListItem]:
    return search_items(ordered_report_items(db, where, sort_by, sort_order), search)
