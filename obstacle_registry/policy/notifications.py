from __future__ import annotations

import enum
from dataclasses import dataclass

FALLBACK_ACTOR_NAME = "a registrar"


class Outcome(str, enum.Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    DELETED = "deleted"


@dataclass(frozen=True)
class NotificationRequest:
    """A notification row to insert once the transition is persisted."""

    user_id: str
    report_id: int
    title: str
    message: str


def notification_for(
    report_id: int,
    owner_id: str | None,
    outcome: Outcome,
    actor_name: str | None = None,
    reason: str | None = None,
) -> NotificationRequest | None:
    """
    Build the single notification sent to a report's owner.

    Reports without an owner produce nothing; that is not an error.
    """

    if not owner_id:
        return None

    actor = actor_name or FALLBACK_ACTOR_NAME
    title = f"Report #{report_id} {outcome.value}"

    if outcome is Outcome.APPROVED:
        message = f"Your report #{report_id} has been approved by {actor}."
    elif outcome is Outcome.REJECTED:
        message = f"Your report #{report_id} has been rejected by {actor}. Reason: {reason}"
    else:
        message = f"Your report #{report_id} has been deleted by {actor}."

    return NotificationRequest(user_id=owner_id, report_id=report_id, title=title, message=message)
