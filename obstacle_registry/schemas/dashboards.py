from __future__ import annotations

from pydantic import BaseModel

from obstacle_registry.schemas.identity import OrganizationSummaryOut
from obstacle_registry.schemas.reports import ReportListItem, ReportOut


class RegistrarDashboardOut(BaseModel):
    report_count: int
    pending_reports_count: int
    my_assigned_reports: list[ReportOut]
    recent_reports: list[ReportOut]


class PilotDashboardOut(BaseModel):
    my_reports_count: int
    my_drafts_count: int
    submitted_reports_count: int
    system_status: str


class ManagerDashboardOut(BaseModel):
    organization: OrganizationSummaryOut
    total_reports: int
    pending_reports: int
    approved_reports: int
    rejected_reports: int


class OrganizationReportsOut(BaseModel):
    organization: OrganizationSummaryOut
    reports: list[ReportListItem]
