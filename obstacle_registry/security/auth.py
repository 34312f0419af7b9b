from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable

import jwt
from fastapi import HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from obstacle_registry.models.identity import User
from obstacle_registry.security.config import SecurityConfig
from obstacle_registry.security.context import Caller
from obstacle_registry.settings import get_settings

logger = logging.getLogger(__name__)


def create_access_token(
    subject: str | None,
    roles: Iterable[str] = (),
    expires_in: timedelta | None = None,
) -> str:
    """
    Issue a signed session token.

    `subject` becomes the `sub` claim; pass None to mint a token without one
    (useful for service principals that only carry role claims).
    """

    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "iat": now,
        "exp": now + (expires_in or timedelta(minutes=settings.token_ttl_minutes)),
        "roles": sorted(roles),
    }
    if subject is not None:
        payload["sub"] = str(subject)
    return jwt.encode(payload, settings.token_secret, algorithm=settings.token_algorithm)


def decode_claims(token: str) -> dict[str, Any]:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.token_secret, algorithms=[settings.token_algorithm])
    except jwt.ExpiredSignatureError as exc:
        logger.info("Rejected expired token")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired") from exc
    except jwt.InvalidTokenError as exc:
        logger.warning("Rejected invalid token: %s", type(exc).__name__)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc
    return payload


def extract_bearer_token(request: Request, config: SecurityConfig) -> str | None:
    """
    Read `Authorization: Bearer <token>`.

    Returns None when the header is absent; a present-but-malformed header is
    a client error (400).
    """

    header_name = config.auth.authorization_header
    bearer_prefix = config.auth.bearer_prefix

    raw = request.headers.get(header_name)
    if not raw:
        logger.info("Missing Authorization header (auth required) path=%s method=%s", request.url.path, request.method)
        return None

    prefix = f"{bearer_prefix} "
    if not raw.startswith(prefix):
        logger.warning("Invalid Authorization header format path=%s method=%s", request.url.path, request.method)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {header_name}. Expected '{bearer_prefix} <token>'.",
        )

    token = raw[len(prefix) :].strip()
    if not token:
        logger.warning("Empty bearer token path=%s method=%s", request.url.path, request.method)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {header_name}. Missing token after '{bearer_prefix}'.",
        )

    return token


def load_user(db: Session, user_id: str) -> User:
    user = db.execute(
        select(User)
        .where(User.id == user_id)
        .options(
            selectinload(User.organization),
            selectinload(User.roles),
        )
    ).scalar_one_or_none()

    if user is None or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or inactive user")

    return user


def resolve_caller(db: Session, claims: dict[str, Any]) -> tuple[Caller, User | None]:
    """
    Turn validated claims into a Caller.

    - `sub` present: the stored user is authoritative for roles and organization.
    - `sub` missing: roles come from the token, identity stays unresolved.
    """

    subject = claims.get("sub")
    if not subject:
        token_roles = claims.get("roles") or []
        if isinstance(token_roles, str):
            token_roles = [token_roles]
        return Caller(user_id=None, roles=frozenset(token_roles)), None

    user = load_user(db, str(subject))
    caller = Caller(
        user_id=user.id,
        roles=user.role_names,
        organization_id=user.organization_id,
    )
    return caller, user
