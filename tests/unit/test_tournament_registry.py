"""
Unit tests for TournamentRegistry class.
Tests: create_tournament, get_tournament, list_tournaments, set_teams,
       update_status
"""
from datetime import datetime

import pytest

from courtside.errors import ValidationError, NotFound
from courtside.models import db, Tournament
from courtside.tournament_registry import TournamentRegistry


def tournament_body(**overrides):
    data = {
        'name': 'Autumn Cup',
        'startDate': '2024-09-01T00:00:00Z',
        'endDate': '2024-09-10T00:00:00Z',
        'format': 'single_elimination',
        'location': 'Riverside Hall',
    }
    data.update(overrides)
    return data


class TestCreateTournament:
    """Tests for create_tournament method."""

    def test_create_upcoming(self, world):
        tournament = TournamentRegistry().create_tournament(tournament_body(), world.admin)

        assert tournament.id is not None
        assert tournament.status == 'upcoming'
        assert tournament.created_by_id == world.admin.id
        assert tournament.start_date == datetime(2024, 9, 1)
        assert tournament.teams == []

    def test_duplicate_name(self, world):
        with pytest.raises(ValidationError) as exc:
            TournamentRegistry().create_tournament(
                tournament_body(name='Summer Championship 2024'),
                world.admin
            )
        assert exc.value.errors[0]['msg'] == 'Tournament name already exists'

    def test_invalid_body(self, world):
        with pytest.raises(ValidationError):
            TournamentRegistry().create_tournament({'name': 'Nameless'}, world.admin)
        assert Tournament.query.count() == 1


class TestGetTournament:

    def test_get_existing(self, world):
        assert TournamentRegistry().get_tournament(world.tournament.id).name == 'Summer Championship 2024'

    def test_get_missing(self, app_ctx):
        assert TournamentRegistry().get_tournament(999) is None
        with pytest.raises(NotFound):
            TournamentRegistry().require_tournament(999)

    def test_to_dict_lists_teams_and_games(self, world):
        data = world.tournament.to_dict()
        assert [t['name'] for t in data['teams']] == ['Eagles', 'Hawks']
        assert data['games'] == [world.game.id]
        assert data['format'] == 'round_robin'


class TestListTournaments:
    """Tests for list_tournaments method."""

    def test_most_recent_first(self, world):
        registry = TournamentRegistry()
        registry.create_tournament(tournament_body(), world.admin)

        names = [t.name for t in registry.list_tournaments()]
        assert names == ['Autumn Cup', 'Summer Championship 2024']

    def test_filter_by_status(self, world):
        registry = TournamentRegistry()
        registry.create_tournament(tournament_body(), world.admin)
        registry.update_status(world.tournament.id, {'status': 'ongoing'})

        assert [t.name for t in registry.list_tournaments(status='ongoing')] == ['Summer Championship 2024']

    def test_pagination(self, world):
        registry = TournamentRegistry()
        registry.create_tournament(tournament_body(), world.admin)

        assert len(registry.list_tournaments(limit=1)) == 1
        assert registry.list_tournaments(limit=1, offset=1)[0].name == 'Summer Championship 2024'


class TestSetTeams:

    def test_replace_teams(self, world):
        tournament = TournamentRegistry().set_teams(
            world.tournament.id,
            {'teams': [world.falcons.id, world.eagles.id]}
        )
        assert [t.name for t in tournament.teams] == ['Eagles', 'Falcons']

    def test_unknown_team(self, world):
        with pytest.raises(ValidationError) as exc:
            TournamentRegistry().set_teams(world.tournament.id, {'teams': [world.eagles.id, 999]})
        assert exc.value.errors[0]['param'] == 'teams[1]'

        db.session.expire_all()
        assert len(db.session.get(Tournament, world.tournament.id).teams) == 2


class TestUpdateStatus:

    def test_update(self, world):
        tournament = TournamentRegistry().update_status(world.tournament.id, {'status': 'completed'})
        assert tournament.status == 'completed'

    def test_invalid(self, world):
        with pytest.raises(ValidationError):
            TournamentRegistry().update_status(world.tournament.id, {'status': 'archived'})
