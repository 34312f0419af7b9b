from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from obstacle_registry.db.session import get_db
from obstacle_registry.models.reports import Report
from obstacle_registry.routers._http import unwrap
from obstacle_registry.schemas.reports import (
    AssignRegistrarForm,
    RejectForm,
    ReportDetailsOut,
    ReportListItem,
    ReportOut,
    ReviewOut,
)
from obstacle_registry.security.context import Caller
from obstacle_registry.security.dependencies import get_caller
from obstacle_registry.services import reports as report_service
from obstacle_registry.services.dashboards import submitted_reports

router = APIRouter(tags=["reports"])

REPORT_NOT_FOUND = "Report not found."


@router.get("/reports", response_model=list[ReportListItem])
def list_reports(
    sort_by: str | None = Query(default=None, alias="sortBy"),
    sort_order: str | None = Query(default=None, alias="sortOrder"),
    search: str | None = None,
    db: Session = Depends(get_db),
) -> list[ReportListItem]:
    return submitted_reports(db, sort_by, sort_order, search)


@router.get("/api/reports", response_model=list[ReportOut])
def all_reports(db: Session = Depends(get_db)) -> list[Report]:
    return report_service.list_by(db)


@router.get("/reports/{id}", response_model=ReportDetailsOut)
def report_details(id: int, caller: Caller = Depends(get_caller), db: Session = Depends(get_db)) -> ReportDetailsOut:
    report, sender = unwrap(report_service.report_details(db, caller, id), not_found=REPORT_NOT_FOUND)
    return ReportDetailsOut(report=ReportOut.model_validate(report), sender=sender)


@router.post("/reports/{id}/approve", response_model=ReviewOut)
def approve(id: int, caller: Caller = Depends(get_caller), db: Session = Depends(get_db)) -> ReviewOut:
    report = unwrap(report_service.approve_report(db, caller, id), not_found=REPORT_NOT_FOUND)
    return ReviewOut(report=ReportOut.model_validate(report), message="Report approved.")


@router.post("/reports/{id}/reject", response_model=ReviewOut)
def reject(
    id: int,
    form: RejectForm,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
) -> ReviewOut:
    report = unwrap(report_service.reject_report(db, caller, id, form.rejection_reason), not_found=REPORT_NOT_FOUND)
    return ReviewOut(report=ReportOut.model_validate(report), message="Report rejected.")


@router.post("/reports/{id}/assign", response_model=ReviewOut)
def assign_registrar(
    id: int,
    form: AssignRegistrarForm,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
) -> ReviewOut:
    report = unwrap(report_service.assign_registrar(db, caller, id, form.registrar_id), not_found=REPORT_NOT_FOUND)
    message = "Registrar assigned." if report.assigned_registrar_id else "Registrar assignment cleared."
    return ReviewOut(report=ReportOut.model_validate(report), message=message)


@router.delete("/reports/{id}")
def delete_report(id: int, caller: Caller = Depends(get_caller), db: Session = Depends(get_db)) -> dict:
    report_id = unwrap(report_service.delete_report(db, caller, id), not_found=REPORT_NOT_FOUND)
    return {"id": report_id, "message": "Report deleted."}
