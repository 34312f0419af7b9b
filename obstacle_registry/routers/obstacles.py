from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from obstacle_registry.db.session import get_db
from obstacle_registry.models.reports import Report
from obstacle_registry.routers._http import unwrap
from obstacle_registry.schemas.reports import ObstacleForm, ObstacleOut, ReportOut
from obstacle_registry.security.context import Caller
from obstacle_registry.security.dependencies import get_caller
from obstacle_registry.services import reports as report_service

router = APIRouter(tags=["obstacles"])


@router.get("/obstacles/form")
def data_form() -> dict:
    # The map/form UI lives client-side; this describes what the form posts.
    return {
        "fields": ["obstacle_type", "obstacle_height", "obstacle_description", "obstacle_location"],
        "actions": ["draft", "submit"],
        "height_range": [0, 200],
    }


@router.post("/obstacles", response_model=ReportOut, status_code=status.HTTP_201_CREATED)
def submit_obstacle(
    form: ObstacleForm,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
) -> Report:
    return unwrap(report_service.create_report(db, caller, form))


@router.get("/obstacles/drafts", response_model=list[ReportOut])
def drafts(caller: Caller = Depends(get_caller), db: Session = Depends(get_db)) -> list[Report]:
    return unwrap(report_service.list_drafts(db, caller))


@router.get("/obstacles/drafts/{id}", response_model=ReportOut)
def get_draft(id: int, caller: Caller = Depends(get_caller), db: Session = Depends(get_db)) -> Report:
    return unwrap(report_service.get_draft(db, caller, id), not_found="Draft not found")


@router.put("/obstacles/drafts/{id}", response_model=ReportOut)
def edit_draft(
    id: int,
    form: ObstacleForm,
    caller: Caller = Depends(get_caller),
    db: Session = Depends(get_db),
) -> Report:
    return unwrap(report_service.update_draft(db, caller, id, form), not_found="Draft not found")


@router.get("/api/obstacles", response_model=list[ObstacleOut])
def obstacles(db: Session = Depends(get_db)) -> list[dict]:
    return report_service.obstacle_features(db)


@router.get("/api/obstacles/approved", response_model=list[ObstacleOut])
def approved_obstacles(db: Session = Depends(get_db)) -> list[dict]:
    # Anonymous access is granted in config/security_config.yaml.
    return report_service.obstacle_features(db, approved_only=True)
