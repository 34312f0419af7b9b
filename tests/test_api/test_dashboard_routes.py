"""API tests for landing, dashboards, organizations and administration routes."""
from __future__ import annotations

import pytest
from sqlalchemy import event, update
from sqlalchemy.orm import Session

from obstacle_registry.models.identity import Organization
from obstacle_registry.security.auth import create_access_token


def organization_id(client, auth_headers, name: str) -> int:
    organizations = client.get("/organizations", headers=auth_headers("admin")).json()
    return next(o["id"] for o in organizations if o["name"] == name)


def test_landing_redirects_by_role(client, auth_headers):
    response = client.get("/", headers=auth_headers("pilot"), follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/pilot"

    response = client.get("/", headers=auth_headers("manager"), follow_redirects=False)
    assert response.headers["location"] == "/organization-manager"


def test_admin_landing_reports_database_status(client, auth_headers):
    response = client.get("/", headers=auth_headers("admin"))
    assert response.status_code == 200
    assert response.json() == {"message": "Connected to the database successfully!"}


def test_me_returns_stored_profile(client, auth_headers):
    body = client.get("/me", headers=auth_headers("manager")).json()
    assert body["username"] == "manager"
    assert body["organization"]["name"] == "NLA"
    assert [r["name"] for r in body["roles"]] == ["OrganizationManager"]


def test_dashboards_are_role_gated(client, auth_headers):
    assert client.get("/registrar", headers=auth_headers("pilot")).status_code == 403
    assert client.get("/pilot", headers=auth_headers("registrar")).status_code == 403
    assert client.get("/organization-manager", headers=auth_headers("pilot")).status_code == 403


def test_pilot_dashboard(client, auth_headers):
    response = client.get("/pilot", headers=auth_headers("pilot"))
    assert response.status_code == 200
    assert response.json() == {
        "my_reports_count": 0,
        "my_drafts_count": 0,
        "submitted_reports_count": 0,
        "system_status": "Active",
    }


def test_manager_dashboard(client, auth_headers):
    body = client.get("/organization-manager", headers=auth_headers("manager")).json()
    assert body["organization"]["name"] == "NLA"
    assert body["total_reports"] == 0


def test_token_without_subject_passes_role_gate_but_has_no_identity(client):
    headers = {"Authorization": f"Bearer {create_access_token(None, roles=['Pilot'])}"}

    assert client.get("/pilot", headers=headers).status_code == 403
    assert client.get("/obstacles/drafts", headers=headers).status_code == 403


def test_organization_reports_visibility(client, auth_headers):
    nla = organization_id(client, auth_headers, "NLA")
    kartverket = organization_id(client, auth_headers, "Kartverket")

    own = client.get(f"/organizations/{nla}/reports", headers=auth_headers("manager"))
    assert own.status_code == 200
    assert own.json() == {"organization": {"id": nla, "name": "NLA"}, "reports": []}

    assert client.get(f"/organizations/{kartverket}/reports", headers=auth_headers("manager")).status_code == 403
    assert client.get("/organizations/999/reports", headers=auth_headers("manager")).status_code == 404
    assert client.get(f"/organizations/{kartverket}/reports", headers=auth_headers("registrar")).status_code == 200


def test_organization_crud(client, auth_headers):
    assert client.post("/organizations", json={"name": "Avinor"}, headers=auth_headers("pilot")).status_code == 403

    created = client.post("/organizations", json={"name": " Avinor "}, headers=auth_headers("registrar"))
    assert created.status_code == 201
    org_id = created.json()["id"]
    assert created.json()["name"] == "Avinor"

    updated = client.put(
        f"/organizations/{org_id}", json={"name": "Avinor AS", "description": "Airports"}, headers=auth_headers("admin")
    )
    assert updated.json()["description"] == "Airports"

    assert client.delete(f"/organizations/{org_id}", headers=auth_headers("manager")).status_code == 403
    deleted = client.delete(f"/organizations/{org_id}", headers=auth_headers("admin"))
    assert deleted.json() == {"message": "Organization 'Avinor AS' deleted successfully."}
    assert client.get(f"/organizations/{org_id}", headers=auth_headers("admin")).status_code == 404


def test_deleting_organization_keeps_its_members(client, auth_headers, user_ids):
    nla = organization_id(client, auth_headers, "NLA")

    client.delete(f"/organizations/{nla}", headers=auth_headers("admin"))

    pilot = client.get(f"/users/{user_ids['pilot']}", headers=auth_headers("admin")).json()
    assert pilot["organization"] is None


@pytest.fixture
def concurrent_organization_writer():
    """Bump the stored version of every organization just before it is flushed."""

    def bump(session, flush_context, instances):
        for obj in session.dirty:
            if isinstance(obj, Organization):
                table = Organization.__table__
                session.connection().execute(
                    update(table).where(table.c.id == obj.id).values(version_id=table.c.version_id + 1)
                )

    event.listen(Session, "before_flush", bump)
    yield
    event.remove(Session, "before_flush", bump)


def test_concurrent_edit_answers_conflict(client, auth_headers, concurrent_organization_writer):
    kartverket = organization_id(client, auth_headers, "Kartverket")

    response = client.put(f"/organizations/{kartverket}", json={"name": "Kartverket AS"}, headers=auth_headers("admin"))

    assert response.status_code == 409
    assert client.get(f"/organizations/{kartverket}", headers=auth_headers("admin")).json()["name"] == "Kartverket"


def test_user_administration_uses_decorator_roles(client, auth_headers, user_ids):
    assert client.get("/users", headers=auth_headers("pilot")).status_code == 403
    assert len(client.get("/users", headers=auth_headers("registrar")).json()) == 4

    kartverket = organization_id(client, auth_headers, "Kartverket")
    moved = client.put(
        f"/users/{user_ids['pilot']}/organization",
        json={"organization_id": kartverket},
        headers=auth_headers("registrar"),
    )
    assert moved.json()["organization"]["name"] == "Kartverket"

    missing = client.put(
        "/users/nobody/organization", json={"organization_id": kartverket}, headers=auth_headers("registrar")
    )
    assert missing.status_code == 404


def test_role_management(client, auth_headers, user_ids):
    assert client.get("/roles", headers=auth_headers("registrar")).status_code == 403

    created = client.post("/roles", json={"name": "Auditor"}, headers=auth_headers("admin"))
    assert created.status_code == 201
    duplicate = client.post("/roles", json={"name": "Auditor"}, headers=auth_headers("admin"))
    assert duplicate.status_code == 422

    granted = client.post(
        f"/users/{user_ids['pilot']}/roles", json={"role_name": "Auditor"}, headers=auth_headers("admin")
    )
    assert {r["name"] for r in granted.json()["roles"]} == {"Pilot", "Auditor"}

    in_use = client.delete(f"/roles/{created.json()['id']}", headers=auth_headers("admin"))
    assert in_use.status_code == 422

    client.delete(f"/users/{user_ids['pilot']}/roles/Auditor", headers=auth_headers("admin"))
    assert client.delete(f"/roles/{created.json()['id']}", headers=auth_headers("admin")).status_code == 200
