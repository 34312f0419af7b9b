from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from obstacle_registry.db.session import get_db
from obstacle_registry.models.identity import Organization
from obstacle_registry.routers._http import require_found, unwrap
from obstacle_registry.schemas.dashboards import OrganizationReportsOut
from obstacle_registry.schemas.identity import OrganizationIn, OrganizationOut, OrganizationSummaryOut
from obstacle_registry.security.context import Caller
from obstacle_registry.security.dependencies import get_caller
from obstacle_registry.services import organizations as organization_service

router = APIRouter(prefix="/organizations", tags=["organizations"])

ORGANIZATION_NOT_FOUND = "Organization not found."


@router.get("", response_model=list[OrganizationOut])
def list_organizations(db: Session = Depends(get_db)) -> list[Organization]:
    return organization_service.list_organizations(db)


@router.post("", response_model=OrganizationOut, status_code=status.HTTP_201_CREATED)
def create_organization(data: OrganizationIn, db: Session = Depends(get_db)) -> Organization:
    return organization_service.create_organization(db, data)


@router.get("/{id}", response_model=OrganizationOut)
def organization_details(id: int, db: Session = Depends(get_db)) -> Organization:
    return require_found(organization_service.get_organization(db, id), ORGANIZATION_NOT_FOUND)


@router.put("/{id}", response_model=OrganizationOut)
def update_organization(id: int, data: OrganizationIn, db: Session = Depends(get_db)) -> Organization:
    return require_found(organization_service.update_organization(db, id, data), ORGANIZATION_NOT_FOUND)


@router.delete("/{id}")
def delete_organization(id: int, db: Session = Depends(get_db)) -> dict:
    name = require_found(organization_service.delete_organization(db, id), ORGANIZATION_NOT_FOUND)
    return {"message": f"Organization '{name}' deleted successfully."}


@router.get("/{id}/reports", response_model=OrganizationReportsOut)
def organization_reports(
    id: int,
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_order: str | None = Query(default=None, alias="sortOrder"),
    search: str | None = None,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
) -> OrganizationReportsOut:
    organization, items = unwrap(
        organization_service.organization_reports(db, caller, id, sort_by, sort_order, search),
        not_found=ORGANIZATION_NOT_FOUND,
    )
    return OrganizationReportsOut(organization=OrganizationSummaryOut.model_validate(organization), reports=items)
