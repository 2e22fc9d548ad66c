import secrets
from datetime import datetime
from enum import Enum

from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

db = SQLAlchemy()


class Role(str, Enum):
    ADMIN = 'admin'
    REFEREE = 'referee'
    USER = 'user'


class PlayerPosition(str, Enum):
    SETTER = 'setter'
    OUTSIDE_HITTER = 'outside_hitter'
    MIDDLE_BLOCKER = 'middle_blocker'
    OPPOSITE = 'opposite'
    LIBERO = 'libero'


class TournamentStatus(str, Enum):
    UPCOMING = 'upcoming'
    ONGOING = 'ongoing'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class TournamentFormat(str, Enum):
    SINGLE_ELIMINATION = 'single_elimination'
    DOUBLE_ELIMINATION = 'double_elimination'
    ROUND_ROBIN = 'round_robin'


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


def _isoformat(value):
    return value.isoformat() if value else None


tournament_teams = db.Table(
    'tournament_teams',
    db.Column('tournament_id', db.Integer, db.ForeignKey('tournaments.id'), primary_key=True),
    db.Column('team_id', db.Integer, db.ForeignKey('teams.id'), primary_key=True),
)


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=True)
    role = db.Column(
        db.Enum(Role, values_callable=_enum_values, native_enum=False, length=20),
        nullable=False,
        default=Role.USER
    )
    api_token = db.Column(db.String(64), unique=True, nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def get_id(self):
        """Return the user ID for Flask-Login session management."""
        return str(self.id)

    def set_password(self, password: str):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @staticmethod
    def create_user(username: str, email: str, role: Role = Role.USER, password: str = None) -> 'User':
        """Create a new user holding a fresh bearer token."""
        user = User(
            username=username,
            email=email,
            role=role,
            api_token=secrets.token_urlsafe(32)
        )
        if password:
            user.set_password(password)
        return user

    def to_summary(self):
        return {'id': self.id, 'username': self.username}

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'role': self.role.value,
            'createdAt': _isoformat(self.created_at),
        }


class Team(db.Model):
    __tablename__ = 'teams'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False, index=True)
    coach = db.Column(db.String(100), nullable=False)
    wins = db.Column(db.Integer, default=0)
    losses = db.Column(db.Integer, default=0)
    points = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    players = db.relationship(
        'Player',
        back_populates='team',
        cascade='all, delete-orphan',
        order_by='Player.number'
    )
    tournaments = db.relationship('Tournament', secondary=tournament_teams, back_populates='teams')

    def to_summary(self):
        return {'id': self.id, 'name': self.name}

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'coach': self.coach,
            'players': [p.to_dict() for p in self.players],
            'wins': self.wins,
            'losses': self.losses,
            'points': self.points,
            'createdAt': _isoformat(self.created_at),
        }


class Player(db.Model):
    __tablename__ = 'players'

    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    number = db.Column(db.Integer, nullable=False)
    position = db.Column(
        db.Enum(PlayerPosition, values_callable=_enum_values, native_enum=False, length=20),
        nullable=False
    )

    team = db.relationship('Team', back_populates='players')

    def to_dict(self):
        return {
            'name': self.name,
            'number': self.number,
            'position': self.position.value,
        }


class Tournament(db.Model):
    __tablename__ = 'tournaments'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), unique=True, nullable=False, index=True)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(20), nullable=False, default=TournamentStatus.UPCOMING.value)
    format = db.Column(db.String(50), nullable=False)
    location = db.Column(db.String(200), nullable=False)
    created_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    teams = db.relationship(
        'Team',
        secondary=tournament_teams,
        back_populates='tournaments',
        order_by='Team.name'
    )
    games = db.relationship('Game', back_populates='tournament', order_by='Game.scheduled_time')
    created_by = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'startDate': _isoformat(self.start_date),
            'endDate': _isoformat(self.end_date),
            'status': self.status,
            'format': self.format,
            'location': self.location,
            'teams': [t.to_summary() for t in self.teams],
            'games': [g.id for g in self.games],
            'createdBy': self.created_by_id,
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }


class Game(db.Model):
    __tablename__ = 'games'

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournaments.id'), nullable=False, index=True)
    team1_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=False)
    team2_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=False)
    scheduled_time = db.Column(db.DateTime, nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default='scheduled')

    # Scores, zeroed until a submission
    team1_sets = db.Column(db.JSON, nullable=False, default=list)
    team1_total = db.Column(db.Integer, nullable=False, default=0)
    team2_sets = db.Column(db.JSON, nullable=False, default=list)
    team2_total = db.Column(db.Integer, nullable=False, default=0)

    winner_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=True)
    referee_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    # Audit trail
    score_verified = db.Column(db.Boolean, nullable=False, default=False)
    score_submitted_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    score_verified_by_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    version = db.Column(db.Integer, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tournament = db.relationship('Tournament', back_populates='games')
    team1 = db.relationship('Team', foreign_keys=[team1_id])
    team2 = db.relationship('Team', foreign_keys=[team2_id])
    winner = db.relationship('Team', foreign_keys=[winner_id])
    referee = db.relationship('User', foreign_keys=[referee_id])
    score_submitted_by = db.relationship('User', foreign_keys=[score_submitted_by_id])
    score_verified_by = db.relationship('User', foreign_keys=[score_verified_by_id])

    __mapper_args__ = {'version_id_col': version}

    @property
    def scores(self) -> dict:
        return {
            'team1': {'sets': list(self.team1_sets or []), 'total': self.team1_total},
            'team2': {'sets': list(self.team2_sets or []), 'total': self.team2_total},
        }

    @scores.setter
    def scores(self, value: dict):
        # Wholesale replacement; the JSON columns need new list objects to register a change
        self.team1_sets = list(value['team1']['sets'])
        self.team1_total = value['team1']['total']
        self.team2_sets = list(value['team2']['sets'])
        self.team2_total = value['team2']['total']

    def to_dict(self):
        return {
            'id': self.id,
            'tournament': self.tournament_id,
            'team1': self.team1.to_summary() if self.team1 else None,
            'team2': self.team2.to_summary() if self.team2 else None,
            'scheduledTime': _isoformat(self.scheduled_time),
            'status': self.status,
            'scores': self.scores,
            'winner': self.winner_id,
            'referee': self.referee.to_summary() if self.referee else None,
            'scoreVerified': self.score_verified,
            'scoreSubmittedBy': self.score_submitted_by_id,
            'scoreVerifiedBy': self.score_verified_by_id,
            'version': self.version,
            'createdAt': _isoformat(self.created_at),
            'updatedAt': _isoformat(self.updated_at),
        }
