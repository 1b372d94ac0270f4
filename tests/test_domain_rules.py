"""Pure rules: transition policy, resolved flag, contact filter, helpfulness."""

import pytest

from warddost.complaints import apply_status, can_transition
from warddost.emergency import filter_contacts
from warddost.models import Complaint, EmergencyContact, Review
from warddost.reviews import summarize


@pytest.mark.parametrize("status", ["pending", "in_progress", "resolved", "rejected"])
def test_permissive_policy_allows_any_known_status(status):
    assert can_transition("permissive", "resolved", status)


def test_unknown_status_is_never_allowed():
    assert not can_transition("permissive", "pending", "closed")


def test_strict_policy_follows_table():
    assert can_transition("strict", "pending", "in_progress")
    assert can_transition("strict", "in_progress", "resolved")
    assert not can_transition("strict", "pending", "resolved")
    assert not can_transition("strict", "resolved", "pending")


def test_strict_policy_allows_same_status():
    assert can_transition("strict", "resolved", "resolved")


def test_is_resolved_tracks_status():
    complaint = Complaint(title="t", description="d", location="l", ward_id="w", user_id="u")
    apply_status(complaint, "resolved")
    assert complaint.is_resolved is True
    for status in ["pending", "in_progress", "rejected"]:
        apply_status(complaint, status)
        assert complaint.is_resolved is False
        assert complaint.status == status


@pytest.fixture
def contacts():
    return [
        EmergencyContact(id="c1", ward_id="A", contact_type="hospital", name="City Hospital", phone="1"),
        EmergencyContact(id="c2", ward_id="B", contact_type="pwd_engineer", name="PWD Office", phone="2"),
    ]


def test_filter_by_ward(contacts):
    assert [c.id for c in filter_contacts(contacts, ward_id="A")] == ["c1"]


def test_filter_by_query_matches_name(contacts):
    assert [c.id for c in filter_contacts(contacts, query="hosp")] == ["c1"]


def test_filter_by_query_matches_type(contacts):
    assert [c.id for c in filter_contacts(contacts, query="PWD_ENG")] == ["c2"]


def test_filters_combine(contacts):
    assert filter_contacts(contacts, ward_id="B", query="hosp") == []


def test_absent_filters_match_all(contacts):
    assert len(filter_contacts(contacts)) == 2
    assert len(filter_contacts(contacts, ward_id="", query="  ")) == 2


def test_helpfulness_score():
    review = Review(complaint_id="c", user_id="u", content="ok")
    assert summarize(review).helpfulness_score == 0
    assert summarize(review, [True, True, False]).helpfulness_score == 1
    assert summarize(review, [False, False]).helpfulness_score == -2


def test_summary_counts_votes():
    summary = summarize(Review(complaint_id="c", user_id="u", content="ok"), [True, False, False])
    assert (summary.helpful_votes, summary.unhelpful_votes, summary.helpfulness_score) == (1, 2, -1)
