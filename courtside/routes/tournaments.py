from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required, current_user

from courtside.auth import roles_required
from courtside.models import Role

bp = Blueprint('tournaments', __name__, url_prefix='/api/tournaments')


def get_registry():
    return current_app.tournaments


@bp.route('', methods=['GET'])
def list_tournaments():
    """List tournaments with optional status filtering."""
    status = request.args.get('status')
    limit = request.args.get('limit', 50, type=int)
    offset = request.args.get('offset', 0, type=int)

    tournaments = get_registry().list_tournaments(status=status, limit=limit, offset=offset)
    return jsonify([t.to_dict() for t in tournaments])


@bp.route('/<int:tournament_id>', methods=['GET'])
def get_tournament(tournament_id):
    return jsonify(get_registry().require_tournament(tournament_id).to_dict())


@bp.route('', methods=['POST'])
@login_required
@roles_required(Role.ADMIN)
def create_tournament():
    tournament = get_registry().create_tournament(
        request.get_json(silent=True),
        current_user._get_current_object()
    )
    return jsonify(tournament.to_dict()), 201


@bp.route('/<int:tournament_id>/teams', methods=['PUT'])
@login_required
@roles_required(Role.ADMIN)
def set_teams(tournament_id):
    tournament = get_registry().set_teams(tournament_id, request.get_json(silent=True))
    return jsonify(tournament.to_dict())


@bp.route('/<int:tournament_id>/status', methods=['PUT'])
@login_required
@roles_required(Role.ADMIN)
def update_status(tournament_id):
    tournament = get_registry().update_status(tournament_id, request.get_json(silent=True))
    return jsonify(tournament.to_dict())
