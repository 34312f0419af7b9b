"""
Tests for the two-phase report list query (ORM ordering, in-memory search).

Uses db_session fixture: in-memory SQLite, rolled back after each test.
"""
from __future__ import annotations

from datetime import datetime

import pytest

from obstacle_registry.models.identity import Organization, User
from obstacle_registry.models.reports import Report, ReportStatus
from obstacle_registry.services.listing import UNKNOWN_SENDER, list_report_items, ordered_report_items, search_items


@pytest.fixture
def reports(db_session):
    nla = Organization(name="NLA", description="Air ambulance")
    police = Organization(name="Politiet")
    db_session.add_all([nla, police])
    db_session.flush()

    anna = User(username="anna", email="anna@nla.no", organization_id=nla.id)
    bob = User(username="bob", email=None, organization_id=police.id)
    db_session.add_all([anna, bob])
    db_session.flush()

    rows = [
        Report(user_id=anna.id, obstacle_type="Crane", status=ReportStatus.PENDING,
               created_at=datetime(2025, 1, 5, 9, 0)),
        Report(user_id=bob.id, obstacle_type="Mast", status=ReportStatus.APPROVED,
               created_at=datetime(2025, 3, 1, 9, 0)),
        Report(user_id="ghost", obstacle_type="Power line", status=ReportStatus.REJECTED,
               created_at=datetime(2025, 2, 10, 9, 0)),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


def test_default_order_is_newest_first(db_session, reports):
    items = ordered_report_items(db_session)
    assert [i.obstacle_type for i in items] == ["Mast", "Power line", "Crane"]


def test_sender_falls_back_to_username_then_unknown(db_session, reports):
    by_type = {i.obstacle_type: i for i in ordered_report_items(db_session)}
    assert by_type["Crane"].sender == "anna@nla.no"
    assert by_type["Crane"].organization_name == "NLA"
    assert by_type["Mast"].sender == "bob"
    assert by_type["Power line"].sender == UNKNOWN_SENDER
    assert by_type["Power line"].organization_name is None


def test_sort_key_is_case_insensitive_and_asc_is_explicit(db_session, reports):
    ascending = ordered_report_items(db_session, sort_by="OBSTACLETYPE", sort_order="ASC")
    assert [i.obstacle_type for i in ascending] == ["Crane", "Mast", "Power line"]

    # Anything other than "asc" sorts descending.
    descending = ordered_report_items(db_session, sort_by="obstacleType", sort_order="sideways")
    assert [i.obstacle_type for i in descending] == ["Power line", "Mast", "Crane"]


def test_unknown_sort_key_falls_back_to_created_at_desc(db_session, reports):
    items = ordered_report_items(db_session, sort_by="height", sort_order="asc")
    assert [i.obstacle_type for i in items] == ["Mast", "Power line", "Crane"]


def test_sort_by_organization_name(db_session, reports):
    items = ordered_report_items(db_session, sort_by="organizationName", sort_order="asc")
    assert [i.organization_name for i in items] == [None, "NLA", "Politiet"]


def test_predicate_restricts_rows(db_session, reports):
    items = ordered_report_items(db_session, [Report.status == ReportStatus.PENDING])
    assert [i.obstacle_type for i in items] == ["Crane"]


@pytest.mark.parametrize(
    "needle, expected",
    [
        ("crane", {"Crane"}),
        ("NLA", {"Crane"}),
        ("approved", {"Mast"}),
        ("feb 10", {"Power line"}),
        ("2025", {"Crane", "Mast", "Power line"}),
        ("(unknown)", {"Power line"}),
        ("zeppelin", set()),
    ],
)
def test_search_matches_formatted_fields(db_session, reports, needle, expected):
    items = list_report_items(db_session, search=needle)
    assert {i.obstacle_type for i in items} == expected


def test_search_matches_id_as_text(db_session, reports):
    target = reports[1]
    items = search_items(ordered_report_items(db_session), str(target.id))
    assert target.id in {i.id for i in items}


def test_blank_search_returns_everything(db_session, reports):
    assert len(list_report_items(db_session, search="   ")) == 3
