"""Status transition tables"""
import pytest

from models.contract import (
    ACTIVE_ESCROW_STATUSES,
    ESCROW_STATUS_TRANSITIONS,
    ESCROW_STATUSES,
    allowed_escrow_transitions,
)
from models.project import PROJECT_STATUS_TRANSITIONS, PROJECT_STATUSES, allowed_project_transitions


def test_project_transition_table():
    assert PROJECT_STATUS_TRANSITIONS["pending"] == {"in_progress", "cancelled"}
    assert PROJECT_STATUS_TRANSITIONS["in_progress"] == {"completed", "cancelled"}
    assert PROJECT_STATUS_TRANSITIONS["completed"] == frozenset()
    assert PROJECT_STATUS_TRANSITIONS["cancelled"] == frozenset()


def test_every_project_status_has_an_entry():
    assert set(PROJECT_STATUS_TRANSITIONS) == set(PROJECT_STATUSES)


def test_escrow_transition_table():
    assert ESCROW_STATUS_TRANSITIONS["pending"] == {"funded", "disputed"}
    assert ESCROW_STATUS_TRANSITIONS["funded"] == {"released", "disputed"}
    assert ESCROW_STATUS_TRANSITIONS["released"] == frozenset()
    assert ESCROW_STATUS_TRANSITIONS["disputed"] == {"released"}
    assert set(ESCROW_STATUS_TRANSITIONS) == set(ESCROW_STATUSES)


def test_pending_is_never_a_target():
    assert "pending" not in ACTIVE_ESCROW_STATUSES
    for targets in ESCROW_STATUS_TRANSITIONS.values():
        assert "pending" not in targets


def test_unknown_status_has_no_transitions():
    assert allowed_project_transitions("archived") == frozenset()
    assert allowed_escrow_transitions("refunded") == frozenset()


def test_tables_are_read_only():
    with pytest.raises(TypeError):
        PROJECT_STATUS_TRANSITIONS["completed"] = frozenset({"pending"})
    with pytest.raises(TypeError):
        ESCROW_STATUS_TRANSITIONS["released"] = frozenset({"funded"})
