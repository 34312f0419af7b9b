from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from obstacle_registry.models.identity import Organization, Role, User
from obstacle_registry.policy.lifecycle import Denied, ValidationFailed
from obstacle_registry.policy.visibility import Access

logger = logging.getLogger(__name__)


def list_users(db: Session) -> list[User]:
    stmt = (
        select(User)
        .options(selectinload(User.organization), selectinload(User.roles))
        .order_by(User.email, User.username)
    )
    return list(db.scalars(stmt).all())


def get_user(db: Session, user_id: str) -> User | None:
    return db.execute(
        select(User)
        .where(User.id == user_id)
        .options(selectinload(User.organization), selectinload(User.roles))
    ).scalar_one_or_none()


def assign_to_organization(db: Session, user_id: str, organization_id: int) -> User | Denied:
    user = get_user(db, user_id)
    if user is None:
        return Denied(Access.NOT_FOUND)
    organization = db.get(Organization, organization_id)
    if organization is None:
        return Denied(Access.NOT_FOUND)

    user.organization = organization
    db.commit()
    logger.info("User %s assigned to organization %s", user_id, organization_id)
    return user


def remove_from_organization(db: Session, user_id: str) -> User | Denied:
    user = get_user(db, user_id)
    if user is None:
        return Denied(Access.NOT_FOUND)

    user.organization = None
    db.commit()
    return user


# -- roles ------------------------------------------------------------------


def list_roles(db: Session) -> list[Role]:
    return list(db.scalars(select(Role).order_by(Role.name)).all())


def get_role_by_name(db: Session, name: str) -> Role | None:
    return db.scalars(select(Role).where(Role.name == name)).first()


def create_role(db: Session, name: str, description: str | None = None) -> Role | ValidationFailed:
    name = name.strip()
    if not name:
        return ValidationFailed({"name": "Role name cannot be empty."})
    if get_role_by_name(db, name) is not None:
        return ValidationFailed({"name": f"Role '{name}' already exists."})

    role = Role(name=name, description=description)
    db.add(role)
    db.commit()
    return role


def assign_role(db: Session, user_id: str, role_name: str) -> User | Denied:
    user = get_user(db, user_id)
    role = get_role_by_name(db, role_name)
    if user is None or role is None:
        return Denied(Access.NOT_FOUND)

    if role not in user.roles:
        user.roles.append(role)
        db.commit()
        logger.info("Role %s granted to user %s", role_name, user_id)
    return user


def remove_role(db: Session, user_id: str, role_name: str) -> User | Denied:
    user = get_user(db, user_id)
    role = get_role_by_name(db, role_name)
    if user is None or role is None:
        return Denied(Access.NOT_FOUND)

    if role in user.roles:
        user.roles.remove(role)
        db.commit()
        logger.info("Role %s revoked from user %s", role_name, user_id)
    return user


def delete_role(db: Session, role_id: int) -> str | Denied | ValidationFailed:
    role = db.execute(select(Role).where(Role.id == role_id).options(selectinload(Role.users))).scalar_one_or_none()
    if role is None:
        return Denied(Access.NOT_FOUND)
    if role.users:
        return ValidationFailed(
            {"role": f"Cannot delete role '{role.name}' because it has users assigned. Remove users from the role first."}
        )

    name = role.name
    db.delete(role)
    db.commit()
    return name
