from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from obstacle_registry.db.session import get_db
from obstacle_registry.models.identity import Role
from obstacle_registry.routers._http import unwrap
from obstacle_registry.schemas.identity import RoleIn, RoleOut
from obstacle_registry.security.decorators import require_roles
from obstacle_registry.services import users as user_service

router = APIRouter(prefix="/roles", tags=["roles"])


@router.get("", response_model=list[RoleOut])
@require_roles(["Admin"])
def list_roles(db: Session = Depends(get_db)) -> list[Role]:
    return user_service.list_roles(db)


@router.post("", response_model=RoleOut, status_code=status.HTTP_201_CREATED)
@require_roles(["Admin"])
def create_role(data: RoleIn, db: Session = Depends(get_db)) -> Role:
    return unwrap(user_service.create_role(db, data.name, data.description))


@router.delete("/{role_id}")
@require_roles(["Admin"])
def delete_role(role_id: int, db: Session = Depends(get_db)) -> dict:
    name = unwrap(user_service.delete_role(db, role_id), not_found="Role not found.")
    return {"message": f"Role '{name}' deleted successfully."}
