import logging
from typing import Optional, List

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from .errors import NotFound, InvalidState
from .models import db, Team, Player, PlayerPosition, Game
from .validators import field_error, validate_team

logger = logging.getLogger(__name__)


class TeamRegistry:
    """Team records and their rosters."""

    def get_team(self, team_id: int) -> Optional[Team]:
        return db.session.get(Team, team_id)

    def require_team(self, team_id: int) -> Team:
        team = self.get_team(team_id)
        if team is None:
            raise NotFound('Team not found')
        return team

    def list_teams(self) -> List[Team]:
        return Team.query.order_by(Team.name.asc()).all()

    def create_team(self, data: dict) -> Team:
        fields = validate_team(data)
        self._check_unique_name(fields['name'])

        team = Team(name=fields['name'], coach=fields['coach'])
        team.players = self._build_roster(fields['players'])
        db.session.add(team)
        self._commit()

        logger.info(f"Team '{team.name}' created with {len(team.players)} players")
        return team

    def update_team(self, team_id: int, data: dict) -> Team:
        """Replace name, coach and roster wholesale."""
        fields = validate_team(data)
        team = self.require_team(team_id)
        self._check_unique_name(fields['name'], exclude_id=team.id)

        team.name = fields['name']
        team.coach = fields['coach']
        team.players = self._build_roster(fields['players'])
        self._commit()
        return team

    def delete_team(self, team_id: int):
        team = self.require_team(team_id)

        scheduled = Game.query.filter(or_(Game.team1_id == team.id, Game.team2_id == team.id)).count()
        if scheduled:
            raise InvalidState(f"Team '{team.name}' is part of {scheduled} game(s) and cannot be removed")

        db.session.delete(team)
        db.session.commit()
        logger.info(f"Team {team_id} removed")

    def _build_roster(self, players: List[dict]) -> List[Player]:
        return [
            Player(name=p['name'], number=p['number'], position=PlayerPosition(p['position']))
            for p in players
        ]

    def _check_unique_name(self, name: str, exclude_id: int = None):
        query = Team.query.filter(Team.name == name)
        if exclude_id is not None:
            query = query.filter(Team.id != exclude_id)
        if query.first() is not None:
            raise field_error('name', 'Team name already exists', name)

    def _commit(self):
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            raise field_error('name', 'Team name already exists') from e
