from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.orm import Session, with_loader_criteria


@event.listens_for(Session, "do_orm_execute")
def _scope_notifications_to_recipient(execute_state) -> None:
    """
    Transparent recipient scoping.

    On routes whose rule sets `scope_notifications`, every SELECT touching
    notifications only ever sees rows addressed to the caller, so
    `db.get`-style lookups of someone else's notification come back empty.
    """

    if not execute_state.is_select:
        return

    caller = execute_state.session.info.get("caller")
    if caller is None or not caller.scope_notifications:
        return

    # Local import to avoid cycles.
    from obstacle_registry.models.reports import Notification  # noqa: WPS433 (local import)

    user_id = caller.user_id
    execute_state.statement = execute_state.statement.options(
        with_loader_criteria(Notification, lambda cls: cls.user_id == user_id, include_aliases=True),
    )
