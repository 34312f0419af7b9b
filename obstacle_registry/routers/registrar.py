from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from obstacle_registry.db.session import get_db
from obstacle_registry.schemas.dashboards import RegistrarDashboardOut
from obstacle_registry.schemas.reports import ReportListItem
from obstacle_registry.security.context import Caller
from obstacle_registry.security.dependencies import get_caller
from obstacle_registry.services import dashboards

router = APIRouter(prefix="/registrar", tags=["registrar"])


@router.get("", response_model=RegistrarDashboardOut)
def dashboard(caller: Caller = Depends(get_caller), db: Session = Depends(get_db)) -> dict:
    return dashboards.registrar_dashboard(db, caller)


@router.get("/pending", response_model=list[ReportListItem])
def pending(
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_order: str | None = Query(default=None, alias="sortOrder"),
    search: str | None = None,
    db: Session = Depends(get_db),
) -> list[ReportListItem]:
    return dashboards.pending_reports(db, sort_by, sort_order, search)
