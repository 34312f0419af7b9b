from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from obstacle_registry.db.session import get_db
from obstacle_registry.models.identity import User
from obstacle_registry.routers._http import require_found, unwrap
from obstacle_registry.schemas.identity import OrganizationAssignment, RoleAssignment, UserOut
from obstacle_registry.security.decorators import require_roles
from obstacle_registry.services import users as user_service

router = APIRouter(prefix="/users", tags=["users"])

USER_NOT_FOUND = "User not found."


@router.get("", response_model=list[UserOut])
@require_roles(["Admin", "Registrar"])
def list_users(db: Session = Depends(get_db)) -> list[User]:
    return user_service.list_users(db)


@router.get("/{user_id}", response_model=UserOut)
@require_roles(["Admin", "Registrar"])
def user_details(user_id: str, db: Session = Depends(get_db)) -> User:
    return require_found(user_service.get_user(db, user_id), USER_NOT_FOUND)


@router.put("/{user_id}/organization", response_model=UserOut)
@require_roles(["Admin", "Registrar"])
def assign_to_organization(user_id: str, data: OrganizationAssignment, db: Session = Depends(get_db)) -> User:
    return unwrap(
        user_service.assign_to_organization(db, user_id, data.organization_id),
        not_found="User or organization not found.",
    )


@router.delete("/{user_id}/organization", response_model=UserOut)
@require_roles(["Admin", "Registrar"])
def remove_from_organization(user_id: str, db: Session = Depends(get_db)) -> User:
    return unwrap(user_service.remove_from_organization(db, user_id), not_found=USER_NOT_FOUND)


@router.post("/{user_id}/roles", response_model=UserOut)
@require_roles(["Admin"])
def assign_role(user_id: str, data: RoleAssignment, db: Session = Depends(get_db)) -> User:
    return unwrap(user_service.assign_role(db, user_id, data.role_name), not_found="User or role not found.")


@router.delete("/{user_id}/roles/{role_name}", response_model=UserOut)
@require_roles(["Admin"])
def remove_role(user_id: str, role_name: str, db: Session = Depends(get_db)) -> User:
    return unwrap(user_service.remove_role(db, user_id, role_name), not_found="User or role not found.")
