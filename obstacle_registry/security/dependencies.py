from __future__ import annotations

import dataclasses
import logging

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from obstacle_registry.db.session import get_db
from obstacle_registry.models.identity import User
from obstacle_registry.security.auth import decode_claims, extract_bearer_token, resolve_caller
from obstacle_registry.security.config import SecurityConfig
from obstacle_registry.security.context import Caller

logger = logging.getLogger(__name__)


def get_security_config(request: Request) -> SecurityConfig:
    config = getattr(request.app.state, "security_config", None)
    if config is None:
        raise RuntimeError("Security config not loaded. Did app startup run?")
    return config


def get_caller(request: Request) -> Caller:
    caller = getattr(request.state, "caller", None)
    if caller is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return caller


def get_current_user(request: Request) -> User:
    user = getattr(request.state, "user", None)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user


def enforce_security(
    request: Request,
    config: SecurityConfig = Depends(get_security_config),
    db: Session = Depends(get_db, use_cache=False),
) -> None:
    """
    Global security dependency (configuration-driven, decorator-aware).

    Runs after routing, so endpoint decorator metadata is available, and
    before the handler's own `get_db`, so the handler session sees the caller.
    Route gates only check role membership; per-resource visibility is decided
    by `obstacle_registry.policy.visibility` inside the handlers.
    """

    path = request.url.path
    method = request.method.upper()

    rule = config.match(path, method)

    endpoint = request.scope.get("endpoint")
    decorator_roles = set(getattr(endpoint, "__security_required_roles__", set())) if endpoint else set()

    auth_required = rule.auth_required or bool(decorator_roles)

    token = extract_bearer_token(request, config)
    if token is None:
        if auth_required:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")
        return

    claims = decode_claims(token)
    caller, user = resolve_caller(db, claims)
    request.state.user = user

    required_roles = set(rule.required_roles) | decorator_roles
    if required_roles and not (caller.roles & required_roles):
        logger.info("Role gate refused user=%s path=%s method=%s", caller.user_id, path, method)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Insufficient role. Required one of: {sorted(required_roles)}",
        )

    request.state.caller = dataclasses.replace(caller, scope_notifications=rule.scope_notifications)
