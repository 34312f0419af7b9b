from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from obstacle_registry.db.base import Base
from obstacle_registry.db.session import SessionLocal, engine
from obstacle_registry.models import reports as _reports  # noqa: F401  (register tables)
from obstacle_registry.models.identity import Organization, Role, User
from obstacle_registry.security.context import ADMIN, ORGANIZATION_MANAGER, PILOT, REGISTRAR
from obstacle_registry.settings import get_settings

ROLE_DESCRIPTIONS = {
    ADMIN: "Administrator with full system access",
    REGISTRAR: "Registrar who reviews and processes obstacle reports",
    PILOT: "Pilot who submits obstacle reports",
    ORGANIZATION_MANAGER: "Manager with access to the reports of their organization",
}

ORGANIZATIONS = (
    ("Kartverket", "Norwegian Mapping Authority"),
    ("NLA", "Norsk Luftambulanse"),
    ("Luftforsvaret", "Royal Norwegian Air Force"),
    ("Politiet", "Norwegian Police Service"),
)


def init_db() -> None:
    """
    Create tables + seed demo data.

    Deterministic and idempotent: the seed only runs against an empty roles
    table, so restarting the service never duplicates rows.
    """

    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        if _has_seed_data(db):
            return
        seed(db)


def _has_seed_data(db: Session) -> bool:
    return db.execute(select(Role.id).limit(1)).first() is not None


def seed(db: Session) -> None:
    roles = {name: Role(name=name, description=description) for name, description in ROLE_DESCRIPTIONS.items()}
    db.add_all(roles.values())

    organizations = {name: Organization(name=name, description=description) for name, description in ORGANIZATIONS}
    db.add_all(organizations.values())
    db.flush()

    admin = User(username="admin", email=get_settings().admin_email)
    admin.roles.append(roles[ADMIN])

    registrar = User(username="registrar", email="registrar@kartverket.no", organization=organizations["Kartverket"])
    registrar.roles.append(roles[REGISTRAR])

    pilot = User(username="pilot", email="pilot@nla.no", organization=organizations["NLA"])
    pilot.roles.append(roles[PILOT])

    manager = User(username="manager", email="manager@nla.no", organization=organizations["NLA"])
    manager.roles.append(roles[ORGANIZATION_MANAGER])

    db.add_all([admin, registrar, pilot, manager])
    db.commit()
