"""Tests for organization management and organization report listings."""
from __future__ import annotations

from obstacle_registry.models.identity import Organization, User
from obstacle_registry.models.reports import Report, ReportStatus
from obstacle_registry.policy.lifecycle import Denied
from obstacle_registry.policy.visibility import Access
from obstacle_registry.schemas.identity import OrganizationIn
from obstacle_registry.services import organizations as organization_service
from obstacle_registry.services.organizations import organization_reports


def _org(db, name: str) -> Organization:
    return next(o for o in organization_service.list_organizations(db) if o.name == name)


def test_list_is_sorted_by_name_with_members(db_session, seeded):
    organizations = organization_service.list_organizations(db_session)

    assert [o.name for o in organizations] == ["Kartverket", "Luftforsvaret", "NLA", "Politiet"]
    assert {u.username for u in _org(db_session, "NLA").users} == {"pilot", "manager"}


def test_create_and_update(db_session):
    created = organization_service.create_organization(db_session, OrganizationIn(name="  Avinor ", description="Airports"))
    assert created.name == "Avinor"

    updated = organization_service.update_organization(
        db_session, created.id, OrganizationIn(name="Avinor AS", description=None)
    )
    assert updated.name == "Avinor AS"
    assert updated.description is None


def test_update_missing_organization_returns_none(db_session):
    assert organization_service.update_organization(db_session, 999, OrganizationIn(name="x")) is None


def test_delete_detaches_members(db_session, seeded):
    nla = _org(db_session, "NLA")

    assert organization_service.delete_organization(db_session, nla.id) == "NLA"

    db_session.expire_all()
    assert db_session.get(Organization, nla.id) is None
    pilot = db_session.get(User, seeded["pilot"].id)
    assert pilot is not None
    assert pilot.organization_id is None


def test_delete_missing_organization_returns_none(db_session):
    assert organization_service.delete_organization(db_session, 999) is None


def test_reports_are_limited_to_members(db_session, seeded, as_caller):
    nla = _org(db_session, "NLA")
    db_session.add_all(
        [
            Report(user_id=seeded["pilot"].id, obstacle_type="Crane", status=ReportStatus.PENDING),
            Report(user_id=seeded["registrar"].id, obstacle_type="Mast", status=ReportStatus.PENDING),
        ]
    )
    db_session.commit()

    organization, items = organization_reports(db_session, as_caller(seeded["manager"]), nla.id)

    assert organization.name == "NLA"
    assert [i.obstacle_type for i in items] == ["Crane"]


def test_reports_of_other_organization_are_forbidden_for_manager(db_session, seeded, as_caller):
    kartverket = _org(db_session, "Kartverket")
    result = organization_reports(db_session, as_caller(seeded["manager"]), kartverket.id)
    assert result == Denied(Access.FORBID)


def test_reports_of_missing_organization_are_not_found(db_session, seeded, as_caller):
    assert organization_reports(db_session, as_caller(seeded["admin"]), 999) == Denied(Access.NOT_FOUND)
