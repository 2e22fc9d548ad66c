from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required

from courtside.auth import roles_required
from courtside.models import Role

bp = Blueprint('teams', __name__, url_prefix='/api/teams')


def get_registry():
    return current_app.teams


@bp.route('', methods=['GET'])
def list_teams():
    return jsonify([t.to_dict() for t in get_registry().list_teams()])


@bp.route('/<int:team_id>', methods=['GET'])
def get_team(team_id):
    return jsonify(get_registry().require_team(team_id).to_dict())


@bp.route('', methods=['POST'])
@login_required
@roles_required(Role.ADMIN)
def create_team():
    team = get_registry().create_team(request.get_json(silent=True))
    return jsonify(team.to_dict()), 201


@bp.route('/<int:team_id>', methods=['PUT'])
@login_required
@roles_required(Role.ADMIN)
def update_team(team_id):
    team = get_registry().update_team(team_id, request.get_json(silent=True))
    return jsonify(team.to_dict())


@bp.route('/<int:team_id>', methods=['DELETE'])
@login_required
@roles_required(Role.ADMIN)
def delete_team(team_id):
    get_registry().delete_team(team_id)
    return jsonify({'msg': 'Team removed'})
