from enum import Enum
from dataclasses import dataclass
from datetime import datetime
import json


class EventType(str, Enum):
    # Game lifecycle
    GAME_CREATED = "game.created"

    # State changes
    STATE_CHANGED = "state.changed"

    # Score workflow
    SCORE_SUBMITTED = "score.submitted"
    SCORE_VERIFIED = "score.verified"


@dataclass
class Event:
    type: EventType
    tournament_id: int
    timestamp: str = None
    data: dict = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.utcnow().isoformat() + "Z"
        if self.data is None:
            self.data = {}

    @property
    def channel(self) -> str:
        return f"tournament:{self.tournament_id}:events"

    def to_dict(self) -> dict:
        return {
            "type": self.type.value if isinstance(self.type, EventType) else self.type,
            "tournament_id": self.tournament_id,
            "timestamp": self.timestamp,
            "data": self.data
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def game_created_event(tournament_id: int, game_id: int, scheduled_time: str) -> Event:
    return Event(
        type=EventType.GAME_CREATED,
        tournament_id=tournament_id,
        data={
            "game_id": game_id,
            "scheduled_time": scheduled_time
        }
    )


def state_changed_event(tournament_id: int, game_id: int, from_state: str, to_state: str) -> Event:
    return Event(
        type=EventType.STATE_CHANGED,
        tournament_id=tournament_id,
        data={
            "game_id": game_id,
            "from_state": from_state,
            "to_state": to_state
        }
    )


def score_submitted_event(tournament_id: int, game_id: int, submitted_by: int, scores: dict) -> Event:
    return Event(
        type=EventType.SCORE_SUBMITTED,
        tournament_id=tournament_id,
        data={
            "game_id": game_id,
            "submitted_by": submitted_by,
            "scores": scores
        }
    )


def score_verified_event(tournament_id: int, game_id: int, verified_by: int, winner: int = None) -> Event:
    return Event(
        type=EventType.SCORE_VERIFIED,
        tournament_id=tournament_id,
        data={
            "game_id": game_id,
            "verified_by": verified_by,
            "winner": winner
        }
    )
