"""Unit tests for the table-driven request state machine."""

import pytest

from lendly_api.errors import Forbidden
from lendly_api.errors import InvalidAction
from lendly_api.errors import InvalidTransition
from lendly_api.lifecycle.enums import RequestAction
from lendly_api.lifecycle.enums import RequestStatus
from lendly_api.lifecycle.state_machine import ACTION_RULES
from lendly_api.lifecycle.state_machine import TRANSITIONS
from lendly_api.lifecycle.state_machine import parse_action
from lendly_api.lifecycle.state_machine import resolve_transition
from tests.consts import OWNER_ID
from tests.consts import REQUESTER_ID
from tests.consts import STRANGER_ID
from tests.fixtures.lifecycle_fixtures import make_request

ACTOR_FOR = {
    RequestAction.APPROVE: OWNER_ID,
    RequestAction.REJECT: OWNER_ID,
    RequestAction.CANCEL: REQUESTER_ID,
    RequestAction.ACTIVATE: REQUESTER_ID,
    RequestAction.COMPLETE: OWNER_ID,
}


class TestParseAction:
    """Tests for parse_action."""

    @pytest.mark.parametrize("name", ["approve", "reject", "cancel", "activate", "complete"])
    def test_known_actions(self, name):
        assert parse_action(name).value == name

    @pytest.mark.parametrize("name", ["", "APPROVE", "delete", "approved", " approve"])
    def test_unknown_actions_raise_invalid_action(self, name):
        with pytest.raises(InvalidAction) as exc_info:
            parse_action(name)

        assert exc_info.value.message == "Invalid action"


class TestTransitionTable:
    """The table holds exactly the six legal transitions."""

    def test_table_contents(self):
        assert {(status.value, action.value): t.next_status.value for (status, action), t in TRANSITIONS.items()} == {
            ("pending", "approve"): "approved",
            ("pending", "reject"): "rejected",
            ("pending", "cancel"): "cancelled",
            ("approved", "cancel"): "cancelled",
            ("approved", "activate"): "active",
            ("active", "complete"): "completed",
        }

    def test_code_effects(self):
        assert TRANSITIONS[(RequestStatus.PENDING, RequestAction.APPROVE)].issues_code == "handover_code"
        assert TRANSITIONS[(RequestStatus.ACTIVE, RequestAction.COMPLETE)].issues_code == "return_code"
        assert TRANSITIONS[(RequestStatus.APPROVED, RequestAction.ACTIVATE)].verifies_code == "handover_code"

    def test_no_transition_leaves_a_terminal_status(self):
        terminal = {RequestStatus.REJECTED, RequestStatus.CANCELLED, RequestStatus.COMPLETED}
        assert not [key for key in TRANSITIONS if key[0] in terminal]

    def test_every_action_has_a_rule(self):
        assert set(ACTION_RULES) == set(RequestAction)


class TestResolveTransition:
    """Tests for resolve_transition over every (status, action) pair."""

    @pytest.mark.parametrize("status", list(RequestStatus))
    @pytest.mark.parametrize("action", list(RequestAction))
    def test_designated_actor(self, status, action):
        request = make_request(status=status)

        if (status, action) in TRANSITIONS:
            transition = resolve_transition(request, action, ACTOR_FOR[action])
            assert transition is TRANSITIONS[(status, action)]
        else:
            with pytest.raises(InvalidTransition):
                resolve_transition(request, action, ACTOR_FOR[action])

    @pytest.mark.parametrize("status", list(RequestStatus))
    @pytest.mark.parametrize("action", list(RequestAction))
    def test_wrong_participant_is_forbidden_even_when_transition_is_invalid(self, status, action):
        request = make_request(status=status)
        wrong_actor = REQUESTER_ID if ACTOR_FOR[action] == OWNER_ID else OWNER_ID

        with pytest.raises(Forbidden):
            resolve_transition(request, action, wrong_actor)

    @pytest.mark.parametrize("action", list(RequestAction))
    def test_third_party_is_forbidden(self, action):
        with pytest.raises(Forbidden):
            resolve_transition(make_request(), action, STRANGER_ID)

    def test_messages(self):
        with pytest.raises(Forbidden) as forbidden:
            resolve_transition(make_request(), RequestAction.APPROVE, REQUESTER_ID)
        with pytest.raises(InvalidTransition) as invalid:
            resolve_transition(make_request(status=RequestStatus.COMPLETED), RequestAction.CANCEL, REQUESTER_ID)

        assert forbidden.value.message == "Only the owner can approve requests"
        assert invalid.value.message == "Can only cancel pending or approved requests"

    @pytest.mark.parametrize("action", list(RequestAction))
    def test_owner_who_is_also_requester_may_perform_every_action(self, action):
        status = next(s for (s, a) in TRANSITIONS if a is action)
        request = make_request(status=status, requester_id=OWNER_ID)

        assert resolve_transition(request, action, OWNER_ID) is TRANSITIONS[(status, action)]
