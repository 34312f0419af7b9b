"""
Who may see or act on which report and organization.

Every decision is one of three outcomes, evaluated in a fixed order:

1. the target does not exist                      -> NOT_FOUND
2. caller is Admin or Registrar                   -> ALLOW
3. OrganizationManager of the same organization   -> ALLOW, other managers -> FORBID
4. plain member of the same organization          -> ALLOW (read-only), else FORBID
5. per-user resources (drafts, own reports)       -> ALLOW for the owner, NOT_FOUND otherwise
6. caller without a user id                       -> FORBID for identity-scoped actions

Where rule 6 applies (organization listings, the manager dashboard, per-user
resources) it runs ahead of rules 2-5, so roles only count for a caller whose
identity resolved. Review actions are not identity-scoped.

Existence is checked first so that probing an id cannot distinguish a missing
resource from a hidden one. Organization listings answer FORBID (not
NOT_FOUND) once the organization is known to exist.
"""

from __future__ import annotations

import enum

from obstacle_registry.security.context import ORGANIZATION_MANAGER, REGISTRAR, Caller


class Access(str, enum.Enum):
    ALLOW = "allow"
    FORBID = "forbid"
    NOT_FOUND = "not_found"


def organization_reports_access(caller: Caller, organization_id: int, organization_exists: bool) -> Access:
    """
    Listing the reports filed by members of an organization.

    A caller without a user id is refused before roles are looked at, so a
    subject-less token carrying Admin still gets FORBID here. Only a missing
    organization takes precedence over that.
    """
    if not organization_exists:
        return Access.NOT_FOUND
    if not caller.is_identified:
        return Access.FORBID
    if caller.is_privileged:
        return Access.ALLOW
    if caller.has_role(ORGANIZATION_MANAGER):
        return Access.ALLOW if caller.organization_id == organization_id else Access.FORBID
    if caller.organization_id is not None and caller.organization_id == organization_id:
        return Access.ALLOW
    return Access.FORBID


def manager_dashboard_access(caller: Caller, organization_id: int | None, organization_exists: bool) -> Access:
    """The organization manager dashboard for the caller's own organization."""
    if not caller.is_identified:
        return Access.FORBID
    if organization_id is None or not organization_exists:
        return Access.NOT_FOUND
    if caller.is_privileged:
        return Access.ALLOW
    if caller.has_role(ORGANIZATION_MANAGER) and caller.organization_id == organization_id:
        return Access.ALLOW
    return Access.FORBID


def review_access(caller: Caller, report_exists: bool) -> Access:
    """Approve, reject and delete: Admin or Registrar on any existing report."""
    if not report_exists:
        return Access.NOT_FOUND
    if caller.is_privileged:
        return Access.ALLOW
    return Access.FORBID


def assignment_access(caller: Caller, report_exists: bool) -> Access:
    """Assigning a registrar is reserved for registrars."""
    if not report_exists:
        return Access.NOT_FOUND
    if caller.has_role(REGISTRAR):
        return Access.ALLOW
    return Access.FORBID


def owned_report_access(caller: Caller, owner_id: str | None, report_exists: bool) -> Access:
    """Drafts and own reports: only the owner, everyone else gets NOT_FOUND."""
    if not caller.is_identified:
        return Access.FORBID
    if not report_exists or owner_id != caller.user_id:
        return Access.NOT_FOUND
    return Access.ALLOW


def report_detail_access(caller: Caller, owner_id: str | None, report_exists: bool) -> Access:
    if not report_exists:
        return Access.NOT_FOUND
    if caller.is_privileged:
        return Access.ALLOW
    if not caller.is_identified:
        return Access.FORBID
    if owner_id is not None and owner_id == caller.user_id:
        return Access.ALLOW
    return Access.NOT_FOUND


def can_mutate_notification(caller: Caller, recipient_id: str) -> bool:
    # Callers without an id, or touching someone else's row, get a silent no-op.
    return caller.is_identified and recipient_id == caller.user_id
