"""
Request State Machine

Table-driven transitions for lending requests. Adding a state or an action means
adding rows to ACTION_RULES and TRANSITIONS; the service never branches on action names.

    pending  --approve(owner)-->      approved   issues handover code
    pending  --reject(owner)-->       rejected
    pending  --cancel(requester)-->   cancelled
    approved --cancel(requester)-->   cancelled
    approved --activate(requester)--> active     checks handover code
    active   --complete(owner)-->     completed  issues return code
"""

from dataclasses import dataclass
from typing import Dict
from typing import Optional
from typing import Tuple

from lendly_api.errors import Forbidden
from lendly_api.errors import InvalidAction
from lendly_api.errors import InvalidTransition
from lendly_api.lifecycle.enums import ActorRole
from lendly_api.lifecycle.enums import RequestAction
from lendly_api.lifecycle.enums import RequestStatus
from lendly_api.lifecycle.models import LendingRequest


@dataclass(frozen=True)
class ActionRule:
    """Who may perform an action and the messages reported when it is refused."""

    actor: ActorRole
    forbidden_message: str
    invalid_status_message: str


@dataclass(frozen=True)
class Transition:
    """Effect of applying an action from a given status."""

    next_status: RequestStatus
    issues_code: Optional[str] = None  # column that receives a freshly generated code
    verifies_code: Optional[str] = None  # column the caller's code must match


ACTION_RULES: Dict[RequestAction, ActionRule] = {
    RequestAction.APPROVE: ActionRule(
        actor=ActorRole.OWNER,
        forbidden_message="Only the owner can approve requests",
        invalid_status_message="Can only approve pending requests",
    ),
    RequestAction.REJECT: ActionRule(
        actor=ActorRole.OWNER,
        forbidden_message="Only the owner can reject requests",
        invalid_status_message="Can only reject pending requests",
    ),
    RequestAction.CANCEL: ActionRule(
        actor=ActorRole.REQUESTER,
        forbidden_message="Only the requester can cancel requests",
        invalid_status_message="Can only cancel pending or approved requests",
    ),
    RequestAction.ACTIVATE: ActionRule(
        actor=ActorRole.REQUESTER,
        forbidden_message="Only the requester can activate requests",
        invalid_status_message="Can only activate approved requests",
    ),
    RequestAction.COMPLETE: ActionRule(
        actor=ActorRole.OWNER,
        forbidden_message="Only the owner can complete requests",
        invalid_status_message="Can only complete active requests",
    ),
}

TRANSITIONS: Dict[Tuple[RequestStatus, RequestAction], Transition] = {
    (RequestStatus.PENDING, RequestAction.APPROVE): Transition(
        next_status=RequestStatus.APPROVED, issues_code="handover_code"
    ),
    (RequestStatus.PENDING, RequestAction.REJECT): Transition(next_status=RequestStatus.REJECTED),
    (RequestStatus.PENDING, RequestAction.CANCEL): Transition(next_status=RequestStatus.CANCELLED),
    (RequestStatus.APPROVED, RequestAction.CANCEL): Transition(next_status=RequestStatus.CANCELLED),
    (RequestStatus.APPROVED, RequestAction.ACTIVATE): Transition(
        next_status=RequestStatus.ACTIVE, verifies_code="handover_code"
    ),
    (RequestStatus.ACTIVE, RequestAction.COMPLETE): Transition(
        next_status=RequestStatus.COMPLETED, issues_code="return_code"
    ),
}


def parse_action(action: str) -> RequestAction:
    """Map a raw action name onto RequestAction, raising InvalidAction for anything else."""
    try:
        return RequestAction(action)
    except ValueError:
        raise InvalidAction() from None


def resolve_transition(request: LendingRequest, action: RequestAction, acting_user_id: str) -> Transition:
    """
    Validate ``action`` by ``acting_user_id`` against ``request`` and return its transition.

    The actor check runs before the status check so that a wrong actor is told
    Forbidden even when the transition would also be invalid.

    Raises
    ------
    Forbidden
        The caller is not the participant designated for the action.
    InvalidTransition
        The action is not legal from the request's current status.
    """
    rule = ACTION_RULES[action]

    if not request.plays(rule.actor, acting_user_id):
        raise Forbidden(rule.forbidden_message)

    transition = TRANSITIONS.get((request.status, action))
    if transition is None:
        raise InvalidTransition(rule.invalid_status_message)

    return transition
