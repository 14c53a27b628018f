"""Assessment instance status workflow state machine."""

from src.core.errors import InvalidTransition
from src.models.enums import AssessmentStatus

# Valid status transitions for the assessment lifecycle
# Key: current status, Value: list of allowed next statuses
VALID_TRANSITIONS: dict[AssessmentStatus, list[AssessmentStatus]] = {
    AssessmentStatus.SCHEDULED: [
        AssessmentStatus.SENT,
        AssessmentStatus.COMPLETED,  # link used without an explicit send
        AssessmentStatus.CANCELLED,
    ],
    AssessmentStatus.SENT: [AssessmentStatus.COMPLETED, AssessmentStatus.CANCELLED],
    AssessmentStatus.COMPLETED: [],  # Terminal
    AssessmentStatus.CANCELLED: [],  # Terminal
}

TERMINAL_STATUSES = frozenset({AssessmentStatus.COMPLETED, AssessmentStatus.CANCELLED})


def is_valid_transition(from_status: AssessmentStatus, to_status: AssessmentStatus) -> bool:
    """Check if a status transition is valid.

    Args:
        from_status: Current assessment status
        to_status: Target assessment status

    Returns:
        True if the transition is allowed, False otherwise

    Examples:
        >>> is_valid_transition(AssessmentStatus.SCHEDULED, AssessmentStatus.COMPLETED)
        True
        >>> is_valid_transition(AssessmentStatus.COMPLETED, AssessmentStatus.CANCELLED)
        False
    """
    return to_status in VALID_TRANSITIONS.get(from_status, [])


def get_allowed_transitions(from_status: AssessmentStatus) -> list[AssessmentStatus]:
    """Get list of allowed transitions from a given status."""
    return VALID_TRANSITIONS.get(from_status, [])


def ensure_transition(from_status: AssessmentStatus, to_status: AssessmentStatus) -> None:
    """Raise InvalidTransition unless ``from_status -> to_status`` is allowed."""
    if not is_valid_transition(from_status, to_status):
        raise InvalidTransition(
            f"Cannot move assessment from {from_status.value} to {to_status.value}",
            {
                "from_status": from_status.value,
                "to_status": to_status.value,
                "allowed": [s.value for s in get_allowed_transitions(from_status)],
            },
        )


def ensure_open(status: AssessmentStatus) -> None:
    """Raise InvalidTransition if the assessment is completed or cancelled."""
    if status in TERMINAL_STATUSES:
        raise InvalidTransition(
            f"Assessment is already {status.value}",
            {"from_status": status.value, "allowed": []},
        )
