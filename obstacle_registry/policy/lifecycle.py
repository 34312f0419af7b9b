"""
Report status transitions as pure functions.

Each transition takes the current state (or None when creating) and returns
either a `Transition` (new state plus notifications to insert) or one of the
failure variants. Nothing here touches the database; `services.reports`
persists the result.

    Draft --submit--> Pending --approve--> Approved
                              --reject---> Rejected

A registrar may approve a rejected report or reject an approved one again.
Drafts are not reviewable.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from typing import Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from obstacle_registry.models.reports import ReportStatus
from obstacle_registry.policy.notifications import NotificationRequest, Outcome, notification_for
from obstacle_registry.policy.visibility import Access, assignment_access, owned_report_access, review_access
from obstacle_registry.schemas.reports import ObstacleDraft, ObstacleForm, ObstacleSubmission
from obstacle_registry.security.context import Caller

FORM_FIELDS = ("obstacle_type", "obstacle_height", "obstacle_description", "obstacle_location")


@dataclass(frozen=True)
class ReportState:
    id: int | None
    user_id: str | None
    status: str
    obstacle_type: str | None = None
    obstacle_height: int | None = None
    obstacle_description: str | None = None
    obstacle_location: str | None = None
    assigned_registrar_id: str | None = None
    rejection_reason: str | None = None
    processed_at: datetime | None = None


@dataclass(frozen=True)
class Transition:
    state: ReportState
    notifications: tuple[NotificationRequest, ...] = ()
    delete: bool = False


@dataclass(frozen=True)
class Denied:
    access: Access


@dataclass(frozen=True)
class ValidationFailed:
    errors: dict[str, str]

    @property
    def message(self) -> str:
        return "; ".join(self.errors.values())


@dataclass(frozen=True)
class InvalidAssignment:
    registrar_id: str
    message: str = "Selected user is not a registrar."


TransitionResult = Union[Transition, Denied, ValidationFailed, InvalidAssignment]


def _validation_failed(exc: PydanticValidationError) -> ValidationFailed:
    errors: dict[str, str] = {}
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "__root__"
        errors.setdefault(field, err.get("msg", "Invalid value"))
    return ValidationFailed(errors)


def _validated(model: type[BaseModel], values: dict) -> BaseModel | ValidationFailed:
    try:
        return model.model_validate(values)
    except PydanticValidationError as exc:
        return _validation_failed(exc)


def _fields_from(validated: BaseModel) -> dict:
    values = {name: getattr(validated, name) for name in FORM_FIELDS}
    if values["obstacle_height"] is not None:
        values["obstacle_height"] = int(round(values["obstacle_height"]))
    return values


def create_report(caller: Caller, form: ObstacleForm) -> TransitionResult:
    """Save-as-draft (only a location is required) or submit (everything required)."""
    if not caller.is_identified:
        return Denied(Access.FORBID)

    schema = ObstacleSubmission if form.action == "submit" else ObstacleDraft
    validated = _validated(schema, form.model_dump(include=set(FORM_FIELDS)))
    if isinstance(validated, ValidationFailed):
        return validated

    status = ReportStatus.PENDING if form.action == "submit" else ReportStatus.DRAFT
    return Transition(ReportState(id=None, user_id=caller.user_id, status=status, **_fields_from(validated)))


def update_draft(caller: Caller, current: ReportState | None, form: ObstacleForm) -> TransitionResult:
    """
    Edit an existing draft and either keep it as a draft or submit it.

    Only non-empty submitted fields overwrite stored ones; the merged result
    must satisfy the rules of the target status.
    """
    access = owned_report_access(caller, current.user_id if current else None, current is not None)
    if access is not Access.ALLOW:
        return Denied(access)
    if current.status != ReportStatus.DRAFT:
        return Denied(Access.NOT_FOUND)

    merged = {name: getattr(current, name) for name in FORM_FIELDS}
    for name, value in form.model_dump(include=set(FORM_FIELDS)).items():
        if value is not None:
            merged[name] = value

    schema = ObstacleSubmission if form.action == "submit" else ObstacleDraft
    validated = _validated(schema, merged)
    if isinstance(validated, ValidationFailed):
        return validated

    status = ReportStatus.PENDING if form.action == "submit" else ReportStatus.DRAFT
    return Transition(dataclasses.replace(current, status=status, **_fields_from(validated)))


def _reviewable(caller: Caller, current: ReportState | None) -> Denied | ValidationFailed | None:
    access = review_access(caller, current is not None)
    if access is not Access.ALLOW:
        return Denied(access)
    if current.status == ReportStatus.DRAFT:
        return ValidationFailed({"status": "Draft reports must be submitted before review."})
    return None


def _with_notification(state: ReportState, request: NotificationRequest | None, delete: bool = False) -> Transition:
    return Transition(state, (request,) if request is not None else (), delete)


def approve(caller: Caller, current: ReportState | None, actor_name: str | None, now: datetime) -> TransitionResult:
    refused = _reviewable(caller, current)
    if refused is not None:
        return refused

    state = dataclasses.replace(
        current,
        status=ReportStatus.APPROVED,
        processed_at=now,
        rejection_reason=None,
    )
    return _with_notification(state, notification_for(current.id, current.user_id, Outcome.APPROVED, actor_name))


def reject(
    caller: Caller,
    current: ReportState | None,
    reason: str | None,
    actor_name: str | None,
    now: datetime,
) -> TransitionResult:
    refused = _reviewable(caller, current)
    if refused is not None:
        return refused

    if reason is None or not reason.strip():
        return ValidationFailed({"rejection_reason": "You must provide a reason for rejection."})

    reason = reason.strip()
    state = dataclasses.replace(
        current,
        status=ReportStatus.REJECTED,
        rejection_reason=reason,
        processed_at=now,
    )
    return _with_notification(
        state, notification_for(current.id, current.user_id, Outcome.REJECTED, actor_name, reason)
    )


def assign_registrar(
    caller: Caller,
    current: ReportState | None,
    registrar_id: str | None,
    target_is_registrar: bool,
) -> TransitionResult:
    """
    Set or clear the registrar responsible for a report.

    `target_is_registrar` is resolved by the caller against the user directory.
    """
    access = assignment_access(caller, current is not None)
    if access is not Access.ALLOW:
        return Denied(access)

    if registrar_id is None or not registrar_id.strip():
        return Transition(dataclasses.replace(current, assigned_registrar_id=None))

    if not target_is_registrar:
        return InvalidAssignment(registrar_id)

    return Transition(dataclasses.replace(current, assigned_registrar_id=registrar_id.strip()))


def delete(caller: Caller, current: ReportState | None, actor_name: str | None) -> TransitionResult:
    access = review_access(caller, current is not None)
    if access is not Access.ALLOW:
        return Denied(access)

    return _with_notification(
        current,
        notification_for(current.id, current.user_id, Outcome.DELETED, actor_name),
        delete=True,
    )
