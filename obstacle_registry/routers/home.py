from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from obstacle_registry.db.session import get_db
from obstacle_registry.schemas.identity import UserOut
from obstacle_registry.security.context import Caller
from obstacle_registry.security.dependencies import get_caller, get_current_user
from obstacle_registry.services.dashboards import database_is_reachable, landing_path

router = APIRouter(tags=["home"])


@router.get("/")
def home(caller: Caller = Depends(get_caller), db: Session = Depends(get_db)):
    # Everyone but admins is sent to the page for their role.
    target = landing_path(caller)
    if target is not None:
        return RedirectResponse(url=target, status_code=status.HTTP_303_SEE_OTHER)

    if database_is_reachable(db):
        return {"message": "Connected to the database successfully!"}
    return {"message": "Failed to connect to the database."}


@router.get("/me", response_model=UserOut)
def me(user=Depends(get_current_user)) -> UserOut:
    return user
