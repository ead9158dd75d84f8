"""Attempt lifecycle state machine."""

from enum import Enum, auto
from typing import ClassVar

import structlog


logger = structlog.get_logger()


class AttemptState(Enum):
    """Request attempt lifecycle states.

    State transitions:
        CREATED -> DISPATCHED: Request handed to the transport
        CREATED -> SUCCEEDED: Short-circuited by cache hit or dedup follower
        CREATED -> FAILED: Rejected during the request phase
        DISPATCHED -> SUCCEEDED / FAILED: Transport outcome
        FAILED -> DISPATCHED: Retry or replay after token refresh
        FAILED -> SUCCEEDED: Follower received a leader's response after a failure
        SUCCEEDED -> FAILED: Inbound stage (e.g. transformation) failed
        SUCCEEDED / FAILED -> DELIVERED: Result handed back to the caller
    """

    CREATED = auto()
    DISPATCHED = auto()
    SUCCEEDED = auto()
    FAILED = auto()
    DELIVERED = auto()


class AttemptStateError(Exception):
    """Raised when an invalid attempt state transition is attempted."""

    def __init__(self, from_state: AttemptState, to_state: AttemptState) -> None:
        """Initialize the error.

        Args:
            from_state: The current state.
            to_state: The attempted target state.
        """
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid attempt state transition: {from_state.name} -> {to_state.name}"
        )


class AttemptStateMachine:
    """State machine for one request's lifecycle.

    Enforces valid transitions while the pipeline runs and logs invariant
    violations when invalid transitions are attempted.
    """

    VALID_TRANSITIONS: ClassVar[dict[AttemptState, set[AttemptState]]] = {
        AttemptState.CREATED: {
            AttemptState.DISPATCHED,
            AttemptState.SUCCEEDED,
            AttemptState.FAILED,
        },
        AttemptState.DISPATCHED: {
            AttemptState.SUCCEEDED,
            AttemptState.FAILED,
        },
        AttemptState.SUCCEEDED: {
            AttemptState.FAILED,
            AttemptState.DELIVERED,
        },
        AttemptState.FAILED: {
            AttemptState.DISPATCHED,
            AttemptState.SUCCEEDED,
            AttemptState.DELIVERED,
        },
        AttemptState.DELIVERED: set(),  # Terminal state
    }

    def __init__(self, request_id: str = "") -> None:
        self.request_id = request_id
        self._state = AttemptState.CREATED
        self._dispatch_count = 0

    @property
    def state(self) -> AttemptState:
        """Get the current state."""
        return self._state

    @property
    def dispatch_count(self) -> int:
        """Number of times the request reached the transport."""
        return self._dispatch_count

    def can_transition(self, to_state: AttemptState) -> bool:
        """Check if a transition to the given state is valid."""
        return to_state in self.VALID_TRANSITIONS.get(self._state, set())

    def transition(self, to_state: AttemptState) -> None:
        """Transition to a new state.

        Args:
            to_state: The target state.

        Raises:
            AttemptStateError: If the transition is invalid.
        """
        if not self.can_transition(to_state):
            logger.error(
                "invariant_violation",
                component="pipeline",
                error_type="illegal_state_transition",
                request_id=self.request_id,
                from_state=self._state.name,
                to_state=to_state.name,
            )
            raise AttemptStateError(self._state, to_state)

        if to_state is AttemptState.DISPATCHED:
            self._dispatch_count += 1
        self._state = to_state

    def settle(self, succeeded: bool) -> None:
        """Move to SUCCEEDED/FAILED unless already there."""
        target = AttemptState.SUCCEEDED if succeeded else AttemptState.FAILED
        if self._state is not target:
            self.transition(target)

    def is_terminal(self) -> bool:
        """Check if the result has been delivered."""
        return self._state is AttemptState.DELIVERED
