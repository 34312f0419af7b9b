from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from obstacle_registry.db.session import get_db
from obstacle_registry.routers._http import unwrap
from obstacle_registry.schemas.dashboards import ManagerDashboardOut
from obstacle_registry.security.context import Caller
from obstacle_registry.security.dependencies import get_caller
from obstacle_registry.services import dashboards

router = APIRouter(prefix="/organization-manager", tags=["organization_manager"])


@router.get("", response_model=ManagerDashboardOut)
def dashboard(caller: Caller = Depends(get_caller), db: Session = Depends(get_db)) -> dict:
    return unwrap(dashboards.manager_dashboard(db, caller), not_found="You are not assigned to an organization.")
