from __future__ import annotations

from dataclasses import dataclass, field

ADMIN = "Admin"
REGISTRAR = "Registrar"
PILOT = "Pilot"
ORGANIZATION_MANAGER = "OrganizationManager"


@dataclass(frozen=True)
class Caller:
    """
    Per-request identity of the authenticated principal.

    Small and immutable so it can be attached to:
    - request.state (FastAPI request lifetime)
    - Session.info (SQLAlchemy session lifetime)

    `user_id` is None when the token carried no subject claim; such a caller
    may pass role gates but is refused every identity-scoped action.
    """

    user_id: str | None
    roles: frozenset[str] = field(default_factory=frozenset)
    organization_id: int | None = None

    # Scope decision (driven by config)
    scope_notifications: bool = False

    def has_role(self, role: str) -> bool:
        return role in self.roles

    @property
    def is_identified(self) -> bool:
        return bool(self.user_id)

    @property
    def is_privileged(self) -> bool:
        return ADMIN in self.roles or REGISTRAR in self.roles
