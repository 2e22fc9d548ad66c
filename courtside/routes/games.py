from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required, current_user

from courtside.auth import roles_required
from courtside.errors import NotFound
from courtside.models import Role
from courtside.validators import validate_score_submission

bp = Blueprint('games', __name__, url_prefix='/api/games')


def get_manager():
    return current_app.games


def acting_user():
    return current_user._get_current_object()


# --- Routes ---

@bp.route('', methods=['GET'])
def list_games():
    """All games, soonest first. Public."""
    tournament_id = request.args.get('tournament', type=int)
    games = get_manager().list_games(tournament_id=tournament_id)
    return jsonify([g.to_dict() for g in games])


@bp.route('/<int:game_id>', methods=['GET'])
def get_game(game_id):
    game = get_manager().get_game(game_id)
    if not game:
        raise NotFound('Game not found')
    return jsonify(game.to_dict())


@bp.route('', methods=['POST'])
@login_required
def create_game():
    game = get_manager().create_game(request.get_json(silent=True), acting_user())
    return jsonify(game.to_dict()), 201


@bp.route('/<int:game_id>', methods=['PUT'])
@login_required
@roles_required(Role.ADMIN)
def update_game(game_id):
    """Reschedule or reassign the referee."""
    game = get_manager().update_game(game_id, request.get_json(silent=True), acting_user())
    return jsonify(game.to_dict())


@bp.route('/<int:game_id>/score', methods=['PUT'])
@login_required
def submit_score(game_id):
    scores, version = validate_score_submission(request.get_json(silent=True))
    game = get_manager().submit_score(game_id, scores, acting_user(), expected_version=version)
    return jsonify(game.to_dict())


@bp.route('/<int:game_id>/verify', methods=['PUT'])
@login_required
@roles_required(Role.REFEREE, Role.ADMIN)
def verify_score(game_id):
    game = get_manager().verify_score(game_id, acting_user())
    return jsonify(game.to_dict())


@bp.route('/<int:game_id>/start', methods=['PUT'])
@login_required
@roles_required(Role.REFEREE, Role.ADMIN)
def start_game(game_id):
    game = get_manager().start_game(game_id, acting_user())
    return jsonify(game.to_dict())


@bp.route('/<int:game_id>/cancel', methods=['PUT'])
@login_required
@roles_required(Role.ADMIN)
def cancel_game(game_id):
    game = get_manager().cancel_game(game_id, acting_user())
    return jsonify(game.to_dict())
