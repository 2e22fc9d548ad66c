"""
Demo dataset: three users (one per role), three teams, one round robin
tournament and three referee-assigned games.
"""
import logging
from datetime import datetime

from .models import (
    db,
    User,
    Role,
    Team,
    Player,
    PlayerPosition,
    Tournament,
    TournamentFormat,
    TournamentStatus,
    Game,
    tournament_teams,
)

logger = logging.getLogger(__name__)

USERS = [
    ('admin', 'admin@example.com', 'admin123', Role.ADMIN),
    ('referee', 'referee@example.com', 'referee123', Role.REFEREE),
    ('user', 'user@example.com', 'user123', Role.USER),
]

TEAMS = {
    'Eagles': ('John Smith', ['Mike Johnson', 'Tom Wilson', 'Chris Brown', 'David Lee', 'James White']),
    'Hawks': ('Sarah Davis', ['Alex Turner', 'Ryan Miller', 'Kevin Park', 'Daniel Kim', 'Jason Chen']),
    'Falcons': ('Michael Brown', ['Eric Martinez', 'Carlos Rodriguez', 'Juan Garcia', 'Miguel Lopez', 'Luis Hernandez']),
}

# Roster order follows jersey numbers 1-5
POSITIONS = [
    PlayerPosition.SETTER,
    PlayerPosition.OUTSIDE_HITTER,
    PlayerPosition.MIDDLE_BLOCKER,
    PlayerPosition.OPPOSITE,
    PlayerPosition.LIBERO,
]

GAMES = [
    ('Eagles', 'Hawks', datetime(2024, 6, 1, 10, 0)),
    ('Hawks', 'Falcons', datetime(2024, 6, 2, 14, 0)),
    ('Eagles', 'Falcons', datetime(2024, 6, 3, 16, 0)),
]


def clear_database():
    Game.query.delete()
    db.session.execute(tournament_teams.delete())
    Tournament.query.delete()
    Player.query.delete()
    Team.query.delete()
    User.query.delete()
    db.session.commit()


def seed_database() -> dict:
    """Replace all data with the demo dataset. Returns the created users by username."""
    clear_database()
    logger.info("Cleared existing data")

    users = {}
    for username, email, password, role in USERS:
        user = User.create_user(username, email, role=role, password=password)
        db.session.add(user)
        users[username] = user

    teams = []
    for name, (coach, players) in TEAMS.items():
        team = Team(name=name, coach=coach)
        team.players = [
            Player(name=player, number=number, position=position)
            for number, (player, position) in enumerate(zip(players, POSITIONS), start=1)
        ]
        db.session.add(team)
        teams.append(team)

    tournament = Tournament(
        name='Summer Championship 2024',
        start_date=datetime(2024, 6, 1),
        end_date=datetime(2024, 6, 15),
        status=TournamentStatus.UPCOMING.value,
        format=TournamentFormat.ROUND_ROBIN.value,
        location='City Sports Center',
        teams=teams,
        created_by=users['admin']
    )
    db.session.add(tournament)

    by_name = {t.name: t for t in teams}
    for home, away, scheduled_time in GAMES:
        db.session.add(Game(
            tournament=tournament,
            team1=by_name[home],
            team2=by_name[away],
            scheduled_time=scheduled_time,
            status='scheduled',
            referee=users['referee']
        ))

    db.session.commit()
    logger.info(f"Seeded {len(users)} users, {len(teams)} teams, {len(GAMES)} games")
    return users
