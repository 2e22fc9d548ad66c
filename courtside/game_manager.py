import logging
from typing import Optional, List

import redis
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from .auth import ensure_admin, ensure_can_officiate
from .errors import NotFound, InvalidState, Conflict, InternalError
from .models import db, Game, Team, Tournament, User, Role
from .validators import FieldErrors, validate_game_create, validate_game_update, validate_scores
from shared.state_machine import GameStateMachine, GameState, TransitionError
from shared.events import (
    Event,
    game_created_event,
    state_changed_event,
    score_submitted_event,
    score_verified_event,
)

logger = logging.getLogger(__name__)


def derive_winner(game: Game) -> Optional[int]:
    """Team with the strictly higher total; None on a tie."""
    if game.team1_total > game.team2_total:
        return game.team1_id
    if game.team2_total > game.team1_total:
        return game.team2_id
    return None


class GameLifecycleManager:
    """
    Owns every write to a game:
    - Schedule games and (re)assign referees
    - Accept score submissions from any authenticated user
    - Let the assigned referee (or an admin) verify a score, completing the game
    - Start and cancel games

    The acting user is always passed in; nothing here reads request state.
    """

    def __init__(self, redis_client: redis.Redis = None):
        self.redis = redis_client

    # ==================== Queries ====================

    def get_game(self, game_id: int) -> Optional[Game]:
        return db.session.get(Game, game_id)

    def list_games(self, tournament_id: int = None) -> List[Game]:
        """All games ordered by scheduled time, optionally for one tournament."""
        query = Game.query
        if tournament_id is not None:
            query = query.filter_by(tournament_id=tournament_id)
        return query.order_by(Game.scheduled_time.asc(), Game.id.asc()).all()

    # ==================== Scheduling ====================

    def create_game(self, data: dict, user: User) -> Game:
        fields = validate_game_create(data)

        errors = FieldErrors()
        if db.session.get(Tournament, fields['tournament_id']) is None:
            errors.add('tournament', 'Tournament not found', fields['tournament_id'])
        for side in ('team1', 'team2'):
            if db.session.get(Team, fields[f'{side}_id']) is None:
                errors.add(side, 'Team not found', fields[f'{side}_id'])
        self._check_referee(errors, fields['referee_id'])
        errors.raise_if_any()

        game = Game(
            tournament_id=fields['tournament_id'],
            team1_id=fields['team1_id'],
            team2_id=fields['team2_id'],
            scheduled_time=fields['scheduled_time'],
            referee_id=fields['referee_id'],
            status=GameState.SCHEDULED.value
        )
        db.session.add(game)
        self._commit(game)

        logger.info(f"Game {game.id} scheduled in tournament {game.tournament_id} by user {user.id}")
        self._publish(game_created_event(game.tournament_id, game.id, game.scheduled_time.isoformat()))
        return game

    def update_game(self, game_id: int, data: dict, user: User) -> Game:
        """Reschedule a game or reassign its referee (admin only)."""
        changes = validate_game_update(data)
        game = self._require_game(game_id)
        ensure_admin(user)

        sm = GameStateMachine.from_state_string(game.status)
        if 'scheduled_time' in changes:
            self._apply(sm, 'reschedule')
        if 'referee_id' in changes:
            self._apply(sm, 'assign_referee')
            errors = FieldErrors()
            self._check_referee(errors, changes['referee_id'])
            errors.raise_if_any()

        if 'scheduled_time' in changes:
            game.scheduled_time = changes['scheduled_time']
        if 'referee_id' in changes:
            game.referee_id = changes['referee_id']

        self._commit(game)
        logger.info(f"Game {game.id} updated by admin {user.id}: {sorted(changes)}")
        return game

    def start_game(self, game_id: int, user: User) -> Game:
        game = self._require_game(game_id)
        ensure_can_officiate(user, game, 'start')
        return self._change_state(game, 'start', user)

    def cancel_game(self, game_id: int, user: User) -> Game:
        game = self._require_game(game_id)
        ensure_admin(user)
        return self._change_state(game, 'cancel', user)

    # ==================== Score workflow ====================

    def submit_score(
        self,
        game_id: int,
        scores: dict,
        user: User,
        expected_version: int = None
    ) -> Game:
        """
        Replace the game's scores wholesale and clear any prior verification.

        Status and winner are left alone; only verification moves those. This
        holds for completed games too, which then await verification again.
        """
        scores = validate_scores(scores)
        game = self._require_game(game_id)
        self._check_version(game, expected_version)

        sm = GameStateMachine.from_state_string(game.status)
        self._apply(sm, 'submit_score')

        game.scores = scores
        game.score_submitted_by_id = user.id
        game.score_verified = False
        self._commit(game)

        logger.info(
            f"Score {scores['team1']['total']}-{scores['team2']['total']} "
            f"submitted for game {game.id} by user {user.id}"
        )
        self._publish(score_submitted_event(game.tournament_id, game.id, user.id, game.scores))
        return game

    def verify_score(self, game_id: int, user: User) -> Game:
        """
        Lock in the submitted score: verified flag, verifier, completed status and
        winner are written in a single commit. A completed game whose score was
        resubmitted is verified again the same way.
        """
        game = self._require_game(game_id)
        ensure_can_officiate(user, game, 'verify')

        sm = GameStateMachine.from_state_string(game.status)
        old_state = sm.state.value
        self._apply(sm, 'verify', {
            'score_submitted': game.score_submitted_by_id is not None,
            'score_verified': game.score_verified,
        })
        if game.team1_total == 0 and game.team2_total == 0:
            raise InvalidState('A 0-0 score cannot be verified')

        game.score_verified = True
        game.score_verified_by_id = user.id
        game.status = sm.state.value
        game.winner_id = derive_winner(game)
        self._commit(game)

        if game.winner_id is None:
            logger.warning(f"Game {game.id} verified with tied totals {game.team1_total}; no winner set")
        else:
            logger.info(f"Game {game.id} verified by user {user.id}, winner team {game.winner_id}")

        verified = score_verified_event(game.tournament_id, game.id, user.id, game.winner_id)
        self._publish(verified)
        self._publish(verified, channel='global:announcements')
        if old_state != game.status:
            self._publish(state_changed_event(game.tournament_id, game.id, old_state, game.status))
        return game

    # ==================== Internals ====================

    def _require_game(self, game_id: int) -> Game:
        game = self.get_game(game_id)
        if game is None:
            raise NotFound('Game not found')
        return game

    def _check_referee(self, errors: FieldErrors, referee_id: Optional[int]):
        if referee_id is None:
            return
        referee = db.session.get(User, referee_id)
        if referee is None:
            errors.add('referee', 'Referee not found', referee_id)
        elif referee.role is not Role.REFEREE:
            errors.add('referee', 'Referee must be a user with the referee role', referee_id)

    def _check_version(self, game: Game, expected_version: Optional[int]):
        if expected_version is not None and expected_version != game.version:
            logger.warning(
                f"Stale write on game {game.id}: expected version {expected_version}, found {game.version}"
            )
            raise Conflict()

    def _apply(self, sm: GameStateMachine, action: str, guard_context: dict = None) -> GameState:
        try:
            return sm.transition(action, guard_context)
        except TransitionError as e:
            raise InvalidState(e.reason) from e

    def _change_state(self, game: Game, action: str, user: User) -> Game:
        sm = GameStateMachine.from_state_string(game.status)
        old_state = sm.state.value
        game.status = self._apply(sm, action).value
        self._commit(game)

        logger.info(f"Game {game.id} {old_state} -> {game.status} by user {user.id}")
        self._publish(state_changed_event(game.tournament_id, game.id, old_state, game.status))
        return game

    def _commit(self, game: Game):
        game_id = game.id
        try:
            db.session.commit()
        except StaleDataError as e:
            db.session.rollback()
            logger.warning(f"Concurrent update detected on game {game_id}")
            raise Conflict() from e
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception(f"Failed to persist game {game_id}")
            raise InternalError() from e

    def _publish(self, event: Event, channel: str = None):
        if not self.redis:
            return
        try:
            self.redis.publish(channel or event.channel, event.to_json())
        except redis.exceptions.RedisError as e:
            logger.error(f"Failed to publish {event.type.value} for tournament {event.tournament_id}: {e}")
