"""
Pytest configuration and fixtures for courtside tests.

Each test gets its own app bound to a fresh in-memory SQLite database.
Tests that call services directly use ``app_ctx``; tests that go through the
HTTP client must not hold an app context open across requests, because
Flask-Login caches the resolved user on ``g`` for the lifetime of the context.
"""
import os
import sys
from datetime import datetime
from types import SimpleNamespace

import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Set testing environment before importing app
os.environ['FLASK_ENV'] = 'testing'

from courtside.app import create_app
from courtside.game_manager import GameLifecycleManager
from courtside.models import db, User, Role, Team, Player, PlayerPosition, Tournament, Game


SCORES_TEAM1_WINS = {
    'team1': {'sets': [25, 23, 25], 'total': 73},
    'team2': {'sets': [23, 25, 20], 'total': 68},
}

SCORES_TEAM2_WINS = {
    'team1': {'sets': [20, 22], 'total': 42},
    'team2': {'sets': [25, 25], 'total': 50},
}

SCORES_TIED = {
    'team1': {'sets': [25, 20], 'total': 45},
    'team2': {'sets': [20, 25], 'total': 45},
}


def build_world() -> SimpleNamespace:
    """Users for every role, two teams, a tournament and one scheduled game."""
    admin = User.create_user('admin', 'admin@example.com', role=Role.ADMIN, password='admin123')
    referee = User.create_user('referee', 'referee@example.com', role=Role.REFEREE, password='referee123')
    other_referee = User.create_user('referee2', 'referee2@example.com', role=Role.REFEREE)
    fan = User.create_user('fan', 'fan@example.com', role=Role.USER)

    eagles = Team(name='Eagles', coach='John Smith', players=[
        Player(name='Mike Johnson', number=1, position=PlayerPosition.SETTER),
        Player(name='James White', number=5, position=PlayerPosition.LIBERO),
    ])
    hawks = Team(name='Hawks', coach='Sarah Davis', players=[
        Player(name='Alex Turner', number=1, position=PlayerPosition.SETTER),
    ])
    falcons = Team(name='Falcons', coach='Michael Brown', players=[
        Player(name='Eric Martinez', number=1, position=PlayerPosition.SETTER),
    ])

    tournament = Tournament(
        name='Summer Championship 2024',
        start_date=datetime(2024, 6, 1),
        end_date=datetime(2024, 6, 15),
        format='round_robin',
        location='City Sports Center',
        created_by=admin,
        teams=[eagles, hawks]
    )

    game = Game(
        tournament=tournament,
        team1=eagles,
        team2=hawks,
        scheduled_time=datetime(2024, 6, 1, 10, 0),
        status='scheduled',
        referee=referee
    )

    db.session.add_all([admin, referee, other_referee, fan, eagles, hawks, falcons, tournament, game])
    db.session.commit()

    return SimpleNamespace(
        admin=admin,
        referee=referee,
        other_referee=other_referee,
        fan=fan,
        eagles=eagles,
        hawks=hawks,
        falcons=falcons,
        tournament=tournament,
        game=game,
    )


@pytest.fixture
def app():
    """Create application for testing."""
    app = create_app('testing')
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def app_ctx(app):
    """Application context held open for direct service calls."""
    with app.app_context():
        yield app
        db.session.rollback()


@pytest.fixture
def world(app_ctx):
    """Seeded model instances, attached to the open session."""
    return build_world()


@pytest.fixture
def seeded(app):
    """Seeded ids and tokens for HTTP tests; no context is left open."""
    with app.app_context():
        w = build_world()
        return SimpleNamespace(
            admin_id=w.admin.id,
            referee_id=w.referee.id,
            other_referee_id=w.other_referee.id,
            fan_id=w.fan.id,
            eagles_id=w.eagles.id,
            hawks_id=w.hawks.id,
            falcons_id=w.falcons.id,
            tournament_id=w.tournament.id,
            game_id=w.game.id,
            admin_token=w.admin.api_token,
            referee_token=w.referee.api_token,
            other_referee_token=w.other_referee.api_token,
            fan_token=w.fan.api_token,
        )


@pytest.fixture
def auth():
    """Build request headers carrying a bearer token."""
    def headers(token: str) -> dict:
        return {'Authorization': f'Bearer {token}'}
    return headers


@pytest.fixture
def mock_redis(mocker):
    """Stand-in Redis client recording publishes."""
    return mocker.MagicMock()


@pytest.fixture
def manager(app_ctx, mock_redis):
    """GameLifecycleManager wired to the mock Redis client."""
    return GameLifecycleManager(redis_client=mock_redis)
