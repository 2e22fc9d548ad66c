import logging
from typing import Optional, List

from sqlalchemy.exc import IntegrityError

from .errors import NotFound
from .models import db, Tournament, TournamentStatus, Team, User
from .validators import (
    FieldErrors,
    field_error,
    validate_tournament,
    validate_tournament_status,
    validate_tournament_teams,
)

logger = logging.getLogger(__name__)


class TournamentRegistry:
    """
    Manages tournament records:
    - Create tournaments owned by an admin
    - Replace the participating teams
    - Move the tournament status between upcoming, ongoing, completed and cancelled
    """

    def create_tournament(self, data: dict, user: User) -> Tournament:
        """Create a new tournament in upcoming state."""
        fields = validate_tournament(data)

        if Tournament.query.filter_by(name=fields['name']).first() is not None:
            raise field_error('name', 'Tournament name already exists', fields['name'])

        tournament = Tournament(
            name=fields['name'],
            start_date=fields['start_date'],
            end_date=fields['end_date'],
            format=fields['format'],
            location=fields['location'],
            status=TournamentStatus.UPCOMING.value,
            created_by_id=user.id
        )

        db.session.add(tournament)
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            raise field_error('name', 'Tournament name already exists', fields['name']) from e

        logger.info(f"Tournament '{tournament.name}' created by user {user.id}")
        return tournament

    def get_tournament(self, tournament_id: int) -> Optional[Tournament]:
        return db.session.get(Tournament, tournament_id)

    def require_tournament(self, tournament_id: int) -> Tournament:
        tournament = self.get_tournament(tournament_id)
        if tournament is None:
            raise NotFound('Tournament not found')
        return tournament

    def list_tournaments(
        self,
        status: str = None,
        limit: int = 50,
        offset: int = 0
    ) -> List[Tournament]:
        """List tournaments, most recent start date first."""
        query = Tournament.query

        if status:
            query = query.filter_by(status=status)

        query = query.order_by(Tournament.start_date.desc())
        return query.offset(offset).limit(limit).all()

    def set_teams(self, tournament_id: int, data: dict) -> Tournament:
        team_ids = validate_tournament_teams(data)
        tournament = self.require_tournament(tournament_id)

        teams = Team.query.filter(Team.id.in_(team_ids)).all()
        found = {t.id for t in teams}
        errors = FieldErrors()
        for i, team_id in enumerate(team_ids):
            if team_id not in found:
                errors.add(f'teams[{i}]', 'Team not found', team_id)
        errors.raise_if_any()

        tournament.teams = teams
        db.session.commit()

        logger.info(f"Tournament {tournament.id} now has {len(teams)} teams")
        return tournament

    def update_status(self, tournament_id: int, data: dict) -> Tournament:
        status = validate_tournament_status(data)
        tournament = self.require_tournament(tournament_id)

        old_status = tournament.status
        tournament.status = status.value
        db.session.commit()

        logger.info(f"Tournament {tournament.id} status {old_status} -> {status.value}")
        return tournament
