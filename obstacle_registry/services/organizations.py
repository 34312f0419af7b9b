from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from obstacle_registry.db.concurrency import commit_guarded
from obstacle_registry.models.identity import Organization
from obstacle_registry.models.reports import Report
from obstacle_registry.policy.lifecycle import Denied
from obstacle_registry.policy.visibility import Access, organization_reports_access
from obstacle_registry.schemas.identity import OrganizationIn
from obstacle_registry.schemas.reports import ReportListItem
from obstacle_registry.security.context import Caller
from obstacle_registry.services.dashboards import member_ids
from obstacle_registry.services.listing import list_report_items

logger = logging.getLogger(__name__)


def list_organizations(db: Session) -> list[Organization]:
    stmt = select(Organization).options(selectinload(Organization.users)).order_by(Organization.name)
    return list(db.scalars(stmt).all())


def get_organization(db: Session, organization_id: int) -> Organization | None:
    return db.execute(
        select(Organization).where(Organization.id == organization_id).options(selectinload(Organization.users))
    ).scalar_one_or_none()


def create_organization(db: Session, data: OrganizationIn) -> Organization:
    organization = Organization(name=data.name, description=data.description)
    db.add(organization)
    db.commit()
    logger.info("Organization created id=%s", organization.id)
    return organization


def update_organization(db: Session, organization_id: int, data: OrganizationIn) -> Organization | None:
    organization = db.get(Organization, organization_id)
    if organization is None:
        return None

    organization.name = data.name
    organization.description = data.description
    if not commit_guarded(db, Organization, organization_id):
        return None
    return organization


def delete_organization(db: Session, organization_id: int) -> str | None:
    """Delete an organization; its members stay, detached (organization_id = NULL)."""
    organization = get_organization(db, organization_id)
    if organization is None:
        return None

    name = organization.name
    for member in organization.users:
        member.organization_id = None
    db.delete(organization)
    if not commit_guarded(db, Organization, organization_id):
        return None
    logger.info("Organization deleted id=%s", organization_id)
    return name


def organization_reports(
    db: Session,
    caller: Caller,
    organization_id: int,
    sort_by: str | None = None,
    sort_order: str | None = None,
    search: str | None = None,
) -> tuple[Organization, list[ReportListItem]] | Denied:
    organization = db.get(Organization, organization_id)
    access = organization_reports_access(caller, organization_id, organization is not None)
    if access is not Access.ALLOW:
        logger.info("Organization reports refused user=%s org=%s access=%s", caller.user_id, organization_id, access.value)
        return Denied(access)

    where = [Report.user_id.in_(member_ids(db, organization_id))]
    return organization, list_report_items(db, where, sort_by, sort_order, search)
