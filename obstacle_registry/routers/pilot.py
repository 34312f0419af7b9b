from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from obstacle_registry.db.session import get_db
from obstacle_registry.routers._http import unwrap
from obstacle_registry.schemas.dashboards import PilotDashboardOut
from obstacle_registry.schemas.reports import ReportListItem
from obstacle_registry.security.context import Caller
from obstacle_registry.security.dependencies import get_caller
from obstacle_registry.services import dashboards

router = APIRouter(prefix="/pilot", tags=["pilot"])


@router.get("", response_model=PilotDashboardOut)
def dashboard(caller: Caller = Depends(get_caller), db: Session = Depends(get_db)) -> dict:
    return unwrap(dashboards.pilot_dashboard(db, caller))


@router.get("/reports", response_model=list[ReportListItem])
def my_reports(
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_order: str | None = Query(default=None, alias="sortOrder"),
    search: str | None = None,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
) -> list[ReportListItem]:
    return unwrap(dashboards.my_reports(db, caller, sort_by, sort_order, search))
