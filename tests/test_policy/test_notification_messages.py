"""Tests for the owner notification produced by review outcomes."""
from __future__ import annotations

from obstacle_registry.policy.notifications import FALLBACK_ACTOR_NAME, Outcome, notification_for


def test_approved_notification_names_the_actor():
    request = notification_for(7, "pilot-1", Outcome.APPROVED, "reg@example.com")
    assert request.user_id == "pilot-1"
    assert request.report_id == 7
    assert request.title == "Report #7 approved"
    assert request.message == "Your report #7 has been approved by reg@example.com."


def test_rejected_notification_embeds_the_reason():
    request = notification_for(7, "pilot-1", Outcome.REJECTED, "reg@example.com", "Wrong coordinates")
    assert request.title == "Report #7 rejected"
    assert "Reason: Wrong coordinates" in request.message


def test_missing_actor_falls_back_to_generic_name():
    request = notification_for(3, "pilot-1", Outcome.DELETED)
    assert request.title == "Report #3 deleted"
    assert FALLBACK_ACTOR_NAME in request.message


def test_report_without_owner_produces_nothing():
    assert notification_for(3, None, Outcome.APPROVED, "reg") is None
    assert notification_for(3, "", Outcome.DELETED, "reg") is None
