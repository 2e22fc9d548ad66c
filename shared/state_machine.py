from enum import Enum
from typing import Optional, Callable, List
from dataclasses import dataclass


class GameState(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


TERMINAL_STATES = (GameState.CANCELLED,)

# Phrasing used in "Cannot ... a game that is <state>"
ACTION_PHRASES = {
    "start": "start",
    "reschedule": "reschedule",
    "assign_referee": "assign a referee to",
    "submit_score": "submit a score for",
    "verify": "verify",
    "cancel": "cancel",
}

NO_SCORE_REASON = "No score has been submitted for this game"


class TransitionError(Exception):
    def __init__(self, from_state: str, to_state: str, reason: str = None):
        self.from_state = from_state
        self.to_state = to_state
        self.reason = reason or f"Cannot transition from {from_state} to {to_state}"
        super().__init__(self.reason)


def score_submitted_guard(context: dict) -> bool:
    return context.get("score_submitted", False)


def score_pending_guard(context: dict) -> bool:
    """A resubmitted score on a completed game still awaits verification."""
    return context.get("score_submitted", False) and not context.get("score_verified", False)


@dataclass
class Transition:
    from_state: GameState
    to_state: GameState
    action: str
    guard: Optional[Callable] = None
    guard_reason: Optional[str] = None


class GameStateMachine:
    """
    Lifecycle of a single game.

    Score submission and referee reassignment keep the current state;
    verification is the only way into COMPLETED. A completed game still
    accepts a resubmitted score, which must be verified again.
    """

    TRANSITIONS = [
        Transition(GameState.SCHEDULED, GameState.IN_PROGRESS, "start"),
        Transition(GameState.SCHEDULED, GameState.SCHEDULED, "reschedule"),
        Transition(GameState.SCHEDULED, GameState.SCHEDULED, "assign_referee"),
        Transition(GameState.IN_PROGRESS, GameState.IN_PROGRESS, "assign_referee"),
        Transition(GameState.SCHEDULED, GameState.SCHEDULED, "submit_score"),
        Transition(GameState.IN_PROGRESS, GameState.IN_PROGRESS, "submit_score"),
        Transition(GameState.COMPLETED, GameState.COMPLETED, "submit_score"),
        Transition(GameState.SCHEDULED, GameState.COMPLETED, "verify",
                   guard=score_submitted_guard, guard_reason=NO_SCORE_REASON),
        Transition(GameState.IN_PROGRESS, GameState.COMPLETED, "verify",
                   guard=score_submitted_guard, guard_reason=NO_SCORE_REASON),
        Transition(GameState.COMPLETED, GameState.COMPLETED, "verify",
                   guard=score_pending_guard, guard_reason="Score has already been verified"),
        Transition(GameState.SCHEDULED, GameState.CANCELLED, "cancel"),
        Transition(GameState.IN_PROGRESS, GameState.CANCELLED, "cancel"),
    ]

    def __init__(self, initial_state: GameState = GameState.SCHEDULED):
        self._state = initial_state
        self._history: List[tuple] = []

    @property
    def state(self) -> GameState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    @property
    def allowed_actions(self) -> List[str]:
        actions = []
        for t in self.TRANSITIONS:
            if t.from_state == self._state and t.action not in actions:
                actions.append(t.action)
        return actions

    def can_perform(self, action: str) -> bool:
        return action in self.allowed_actions

    def transition(self, action: str, guard_context: dict = None) -> GameState:
        for t in self.TRANSITIONS:
            if t.from_state == self._state and t.action == action:
                if t.guard and not t.guard(guard_context or {}):
                    raise TransitionError(
                        self._state.value,
                        t.to_state.value,
                        t.guard_reason or f"Guard condition failed for action '{action}'"
                    )

                old_state = self._state
                self._state = t.to_state
                self._history.append((old_state, action, self._state))
                return self._state

        raise TransitionError(
            self._state.value,
            "unknown",
            f"Cannot {ACTION_PHRASES.get(action, action)} a game that is {self._state.value}"
        )

    def get_history(self) -> List[tuple]:
        return self._history.copy()

    @classmethod
    def from_state_string(cls, state_str: str) -> "GameStateMachine":
        try:
            state = GameState(state_str)
        except ValueError:
            raise TransitionError(state_str, "unknown", f"Unknown game status '{state_str}'")
        return cls(initial_state=state)
