"""Tests for reading and acknowledging notifications."""
from __future__ import annotations

from datetime import datetime

import pytest

from obstacle_registry.models.reports import Notification
from obstacle_registry.services import notifications as notification_service


@pytest.fixture
def inbox(db_session, seeded):
    pilot_id = seeded["pilot"].id
    rows = [
        Notification(user_id=pilot_id, report_id=1, title="Report #1 approved", message="m1",
                     created_at=datetime(2025, 1, 1)),
        Notification(user_id=pilot_id, report_id=2, title="Report #2 rejected", message="m2",
                     created_at=datetime(2025, 1, 2)),
        Notification(user_id=seeded["manager"].id, report_id=3, title="Report #3 deleted", message="m3"),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


def test_list_is_newest_first_with_unread_count(db_session, seeded, inbox, as_caller):
    unread, rows = notification_service.list_notifications(db_session, as_caller(seeded["pilot"]))

    assert unread == 2
    assert [n.report_id for n in rows] == [2, 1]


def test_mark_as_read_sets_read_at(db_session, seeded, inbox, as_caller):
    assert notification_service.mark_as_read(db_session, as_caller(seeded["pilot"]), inbox[0].id) is True

    db_session.refresh(inbox[0])
    assert inbox[0].is_read is True
    assert inbox[0].read_at is not None


def test_mark_as_read_ignores_other_users_rows(db_session, seeded, inbox, as_caller):
    assert notification_service.mark_as_read(db_session, as_caller(seeded["pilot"]), inbox[2].id) is False

    db_session.refresh(inbox[2])
    assert inbox[2].is_read is False


def test_mark_all_as_read_only_touches_callers_rows(db_session, seeded, inbox, as_caller):
    assert notification_service.mark_all_as_read(db_session, as_caller(seeded["pilot"])) == 2

    unread, _ = notification_service.list_notifications(db_session, as_caller(seeded["pilot"]))
    assert unread == 0
    db_session.refresh(inbox[2])
    assert inbox[2].is_read is False
